"""
canondiff - Structural diff engine for JSON, XML and plain text

Compares two documents of the same kind under a configurable equivalence
policy (case, whitespace, key/attribute/array order) and produces an
aligned, line-numbered diff plus a structured change list.
"""

from .engine import ComparisonEngine, compare
from .models import (
    AlignmentStrategy,
    ChangeType,
    CompareResult,
    ComparisonOptions,
    DiffLine,
    Difference,
    DifferenceType,
    DocumentFormat,
    EngineConfig,
    ErrorResponse,
    LogLevel,
    TextCompareMode,
    ValidationResult,
    WordDiff,
)
from .json_compare import compare_json
from .xml_compare import compare_xml
from .text_compare import compare_text
from .validator import validate_json, validate_text, validate_xml
from .suite import (
    SuiteRunner,
    ScenarioResult,
    GlobalReport,
)
from .runner import (
    CanonDiffRunner,
    run_tests,
)

__version__ = "1.0.0"
__all__ = [
    # Engine
    "ComparisonEngine",
    "EngineConfig",
    "compare",
    # Comparators
    "compare_json",
    "compare_xml",
    "compare_text",
    "validate_json",
    "validate_text",
    "validate_xml",
    # Models
    "AlignmentStrategy",
    "ChangeType",
    "CompareResult",
    "ComparisonOptions",
    "DiffLine",
    "Difference",
    "DifferenceType",
    "DocumentFormat",
    "ErrorResponse",
    "LogLevel",
    "TextCompareMode",
    "ValidationResult",
    "WordDiff",
    # Scenario suites
    "SuiteRunner",
    "ScenarioResult",
    "GlobalReport",
    # Simple Runner
    "CanonDiffRunner",
    "run_tests",
]
