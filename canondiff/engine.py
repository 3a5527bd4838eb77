"""Main comparison engine for canondiff."""

from __future__ import annotations

import logging
from typing import Optional

from .exceptions import InputSizeError, ValidationError
from .json_compare import compare_json
from .models import (
    CompareResult,
    ComparisonOptions,
    DocumentFormat,
    EngineConfig,
    ErrorResponse,
    LogLevel,
    TextCompareMode,
    ValidationResult,
    default_options,
)
from .text_compare import compare_text
from .utils import get_text_size_mb
from .validator import validate_json, validate_text, validate_xml
from .xml_compare import compare_xml

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class ComparisonEngine:
    """
    Entry point that guards and dispatches a comparison:

    1. Input validation: both sides must be strings within the size ceiling
    2. Options: per-format defaults when none are given
    3. Dispatch: JSON, XML or text comparator
    """

    VERSION = "1.0.0"

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the engine.

        Args:
            config: Engine configuration (uses defaults if not provided)
        """
        self.config = config or EngineConfig()
        logging.getLogger("canondiff").setLevel(_LOG_LEVELS[self.config.log_level])

    def compare(
        self,
        left: str,
        right: str,
        fmt: DocumentFormat | str,
        options: Optional[ComparisonOptions] = None,
        mode: TextCompareMode | str = TextCompareMode.LINE
    ) -> CompareResult | ErrorResponse:
        """
        Compare two documents of the same format.

        Args:
            left: The left/old document text
            right: The right/new document text
            fmt: Document format ("json", "xml" or "text")
            options: Equivalence policy (format defaults if not provided)
            mode: Line or word granularity, text only

        Returns:
            CompareResult on success, ErrorResponse on validation/processing errors
        """
        try:
            fmt = self._coerce(DocumentFormat, fmt, "format")
            mode = self._coerce(TextCompareMode, mode, "mode")
            self._validate_inputs(left, right)

            options = options or default_options(fmt)
            logger.debug("Comparing %s documents with %s", fmt.value, options)

            if fmt == DocumentFormat.JSON:
                return compare_json(left, right, options)
            if fmt == DocumentFormat.XML:
                return compare_xml(left, right, options)
            return compare_text(left, right, options, mode, self.config)

        except ValidationError as e:
            return self._create_error_response("VALIDATION_ERROR", e.message, e.details)
        except InputSizeError as e:
            return self._create_error_response(
                "INPUT_SIZE_ERROR",
                str(e),
                {"size_mb": round(e.size_mb, 2), "limit_mb": e.limit_mb, "side": e.side}
            )
        except Exception as e:
            logger.exception("Comparison failed")
            return self._create_error_response(
                "PROCESSING_ERROR",
                str(e),
                {"type": type(e).__name__}
            )

    def validate(self, text: str, fmt: DocumentFormat | str) -> ValidationResult | ErrorResponse:
        """Validate and format a single document."""
        try:
            fmt = self._coerce(DocumentFormat, fmt, "format")
            self._check_size(text, "input")
        except ValidationError as e:
            return self._create_error_response("VALIDATION_ERROR", e.message, e.details)
        except InputSizeError as e:
            return self._create_error_response(
                "INPUT_SIZE_ERROR",
                str(e),
                {"size_mb": round(e.size_mb, 2), "limit_mb": e.limit_mb, "side": e.side}
            )

        if fmt == DocumentFormat.JSON:
            return validate_json(text)
        if fmt == DocumentFormat.XML:
            return validate_xml(text)
        return validate_text(text)

    def _coerce(self, enum_type, value, name: str):
        """Accept either an enum member or its string value."""
        if isinstance(value, enum_type):
            return value
        try:
            return enum_type(str(value).lower())
        except ValueError:
            allowed = [member.value for member in enum_type]
            raise ValidationError(
                f"Unsupported {name}: {value}",
                {name: value, "allowed": allowed}
            )

    def _validate_inputs(self, left: str, right: str):
        """Validate input parameters."""
        if left is None:
            raise ValidationError("left is required")
        if right is None:
            raise ValidationError("right is required")

        self._check_size(left, "left")
        self._check_size(right, "right")

    def _check_size(self, text: str, side: str):
        if not isinstance(text, str):
            raise ValidationError(
                f"{side} must be a string",
                {"type": type(text).__name__}
            )

        size = get_text_size_mb(text)
        if size > self.config.max_input_size_mb:
            raise InputSizeError(size, self.config.max_input_size_mb, side)

    def _create_error_response(self, code: str, message: str, details: dict) -> ErrorResponse:
        """Create an error response."""
        logger.debug("Returning %s: %s", code, message)
        return ErrorResponse(
            success=False,
            error={
                "code": code,
                "message": message,
                "details": details
            }
        )


def compare(
    left: str,
    right: str,
    fmt: DocumentFormat | str,
    options: Optional[ComparisonOptions] = None,
    mode: TextCompareMode | str = TextCompareMode.LINE,
    config: Optional[EngineConfig] = None
) -> CompareResult | ErrorResponse:
    """
    Convenience function to compare two documents.

    Args:
        left: The left/old document text
        right: The right/new document text
        fmt: Document format ("json", "xml" or "text")
        options: Optional equivalence policy
        mode: Line or word granularity, text only
        config: Optional engine configuration

    Returns:
        CompareResult on success, ErrorResponse on errors
    """
    engine = ComparisonEngine(config)
    return engine.compare(left, right, fmt, options, mode)
