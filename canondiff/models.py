"""Data models for canondiff engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class DocumentFormat(Enum):
    JSON = "json"
    XML = "xml"
    TEXT = "text"


class TextCompareMode(Enum):
    LINE = "line"
    WORD = "word"


class AlignmentStrategy(Enum):
    LCS = "lcs"
    SCAN = "scan"


class ChangeType(Enum):
    """Classification of a diff line or word."""
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


class DifferenceType(Enum):
    """Classification of a structural difference."""
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    ATTRIBUTE_CHANGED = "attribute_changed"


_OPTION_ALIASES = {
    "caseSensitive": "case_sensitive",
    "ignoreWhitespace": "ignore_whitespace",
    "ignoreKeyOrder": "ignore_key_order",
    "ignoreArrayOrder": "ignore_array_order",
    "ignoreAttributeOrder": "ignore_attribute_order",
}


def _parse_flag(key: str, value) -> bool:
    """Accept real booleans and the strings "true"/"false"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"Comparison option {key} must be true or false, got {value!r}")


@dataclass(frozen=True)
class ComparisonOptions:
    """Equivalence policy applied to a single comparison."""
    case_sensitive: bool = True
    ignore_whitespace: bool = False
    ignore_key_order: bool = False
    ignore_array_order: bool = False
    ignore_attribute_order: bool = False

    @property
    def ignore_xml_order(self) -> bool:
        """XML folds attribute order and child order into one flag."""
        return self.ignore_key_order or self.ignore_attribute_order

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'ComparisonOptions':
        """
        Build options from a mapping.

        Accepts snake_case field names as well as the camelCase names
        used by the web front end (caseSensitive, ignoreKeyOrder, ...).
        Unknown keys raise ValueError.
        """
        if not data:
            return cls()

        values = {}
        for key, value in data.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in cls.__dataclass_fields__:
                raise ValueError(f"Unknown comparison option: {key}")
            values[name] = _parse_flag(key, value)
        return cls(**values)

    def to_dict(self) -> dict:
        return {
            "caseSensitive": self.case_sensitive,
            "ignoreWhitespace": self.ignore_whitespace,
            "ignoreKeyOrder": self.ignore_key_order,
            "ignoreArrayOrder": self.ignore_array_order,
            "ignoreAttributeOrder": self.ignore_attribute_order,
        }


_DEFAULT_OPTIONS = {
    DocumentFormat.JSON: ComparisonOptions(),
    DocumentFormat.XML: ComparisonOptions(),
    DocumentFormat.TEXT: ComparisonOptions(),
}


def default_options(fmt: DocumentFormat) -> ComparisonOptions:
    """Default options per document format (strict for every format)."""
    return _DEFAULT_OPTIONS.get(fmt, ComparisonOptions())


@dataclass
class EngineConfig:
    """Global configuration for the comparison engine."""
    max_input_size_mb: float = 2
    log_level: LogLevel = LogLevel.INFO
    alignment: AlignmentStrategy = AlignmentStrategy.LCS
    # Forward-scan heuristic tuning (used when alignment is SCAN)
    scan_lookahead: int = 100
    scan_sample_window: int = 10
    scan_match_rate: float = 0.1
    scan_near_end: int = 2


@dataclass
class WordDiff:
    """A single word inside a compared line."""
    word: str
    type: ChangeType

    def to_dict(self) -> dict:
        return {"word": self.word, "type": self.type.value}


@dataclass
class DiffLine:
    """One row of the aligned two-column diff."""
    display_line_number: int
    type: ChangeType
    left_line_number: Optional[int] = None
    right_line_number: Optional[int] = None
    left: Optional[str] = None
    right: Optional[str] = None
    left_words: Optional[list[WordDiff]] = None
    right_words: Optional[list[WordDiff]] = None

    def to_dict(self) -> dict:
        result = {
            "lineNumber": self.display_line_number,
            "leftLineNumber": self.left_line_number,
            "rightLineNumber": self.right_line_number,
            "left": self.left,
            "right": self.right,
            "type": self.type.value,
        }
        if self.left_words is not None:
            result["leftWords"] = [w.to_dict() for w in self.left_words]
        if self.right_words is not None:
            result["rightWords"] = [w.to_dict() for w in self.right_words]
        return result


@dataclass
class Difference:
    """A single path-addressed structural difference."""
    type: DifferenceType
    path: str
    message: str
    element: Optional[str] = None
    attribute: Optional[str] = None
    old_value: Any = None
    new_value: Any = None

    def to_dict(self) -> dict:
        result = {
            "type": self.type.value,
            "path": self.path,
            "message": self.message,
        }
        if self.element is not None:
            result["element"] = self.element
        if self.attribute is not None:
            result["attribute"] = self.attribute
        if self.old_value is not None:
            result["oldValue"] = self.old_value
        if self.new_value is not None:
            result["newValue"] = self.new_value
        return result


@dataclass
class CompareResult:
    """Complete comparison result for one pair of documents."""
    are_equal: bool
    differences: list[Difference] = field(default_factory=list)
    differences_count: int = 0
    diff_lines: list[DiffLine] = field(default_factory=list)
    added_count: int = 0
    removed_count: int = 0
    modified_count: int = 0
    has_parse_error: bool = False
    parse_error_message: Optional[str] = None

    @property
    def changed_lines(self) -> list[DiffLine]:
        return [d for d in self.diff_lines if d.type != ChangeType.UNCHANGED]

    def to_dict(self) -> dict:
        result = {
            "areEqual": self.are_equal,
            "differences": [d.to_dict() for d in self.differences],
            "differencesCount": self.differences_count,
            "diffLines": [d.to_dict() for d in self.diff_lines],
            "addedCount": self.added_count,
            "removedCount": self.removed_count,
            "modifiedCount": self.modified_count,
            "hasParseError": self.has_parse_error,
        }
        if self.parse_error_message:
            result["parseErrorMessage"] = self.parse_error_message
        return result


@dataclass
class ValidationResult:
    """Outcome of validating a single JSON or XML document."""
    is_valid: bool
    formatted: Optional[str] = None
    error: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def to_dict(self) -> dict:
        result = {"isValid": self.is_valid}
        if self.formatted is not None:
            result["formatted"] = self.formatted
        if self.error:
            result["error"] = self.error
        if self.line is not None:
            result["line"] = self.line
            result["column"] = self.column
        return result


@dataclass
class ErrorResponse:
    """Error response structure."""
    success: bool = False
    error: Optional[dict] = None

    def to_dict(self) -> dict:
        result = {"success": self.success}
        if self.error:
            result["error"] = self.error
        return result
