"""Validation and pretty formatting of single JSON or XML documents."""

from __future__ import annotations

import logging
import re

from .exceptions import JsonParseError, XmlParseError
from .json_compare import parse_json, serialize_json
from .models import ComparisonOptions, ValidationResult
from .xml_tree import extract_declaration, looks_like_xml, parse_xml, serialize_xml

logger = logging.getLogger(__name__)

EMPTY_INPUT = "Input is empty"

_TRAILING_COMMA = re.compile(r',\s*[}\]]')
_UNQUOTED_KEY = re.compile(r'[{,]\s*([a-zA-Z_$][a-zA-Z0-9_$]*)\s*:')


def _json_hint(text: str, error: JsonParseError) -> str:
    """Turn a decoder message into something a person can act on."""
    if _TRAILING_COMMA.search(text):
        return "Trailing comma detected - remove comma before closing bracket/brace"
    match = _UNQUOTED_KEY.search(text)
    if match:
        return f'Unquoted key "{match.group(1)}" - all keys must be quoted in JSON'
    return error.message


def validate_json(text: str) -> ValidationResult:
    """
    Validate JSON text.

    Returns:
        ValidationResult; valid input carries its 2-space pretty form,
        invalid input the error message with line and column
    """
    if not text.strip():
        return ValidationResult(is_valid=False, error=EMPTY_INPUT)

    try:
        value = parse_json(text)
    except JsonParseError as e:
        logger.debug("JSON validation failed: %s", e)
        return ValidationResult(
            is_valid=False,
            error=_json_hint(text, e),
            line=e.line,
            column=e.column,
        )

    return ValidationResult(is_valid=True, formatted=serialize_json(value))


def validate_xml(text: str) -> ValidationResult:
    """
    Validate XML text.

    Returns:
        ValidationResult; valid input carries its pretty form (declaration
        kept, attribute and child order untouched)
    """
    if not text.strip():
        return ValidationResult(is_valid=False, error=EMPTY_INPUT)

    if not looks_like_xml(text):
        return ValidationResult(is_valid=False, error="Input does not appear to be XML")

    try:
        root = parse_xml(text)
    except XmlParseError as e:
        logger.debug("XML validation failed: %s", e)
        return ValidationResult(
            is_valid=False,
            error=f"XML is not well-formed: {e.message}",
            line=e.line,
            column=e.column,
        )

    declaration, _ = extract_declaration(text)
    body = serialize_xml(root, ComparisonOptions())
    formatted = f"{declaration}\n{body}" if declaration else body
    return ValidationResult(is_valid=True, formatted=formatted)


def validate_text(text: str) -> ValidationResult:
    """Plain text is always valid; line endings are normalized to LF."""
    return ValidationResult(is_valid=True, formatted=text.replace('\r\n', '\n'))
