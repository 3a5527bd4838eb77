"""JSON canonicalization and comparison."""

from __future__ import annotations

import json
import logging
from typing import Optional, Union

from .aligner import align
from .differ import ROOT_PATH, diff_json
from .exceptions import JsonParseError
from .models import (
    ChangeType,
    CompareResult,
    ComparisonOptions,
    DiffLine,
    Difference,
    DifferenceType,
)
from .normalizer import normalize, normalize_key
from .utils import count_line_types, split_lines

logger = logging.getLogger(__name__)

JsonValue = Union[None, bool, int, float, str, list, dict]

# Integral floats inside this range collapse to int, mirroring JSON's
# single number type ("1.0" and "1" are the same value).
_MAX_SAFE_INTEGER = 2 ** 53


def _parse_float(token: str) -> Union[int, float]:
    value = float(token)
    if value.is_integer() and abs(value) <= _MAX_SAFE_INTEGER:
        return int(value)
    return value


def _reject_constant(token: str):
    raise ValueError(f"Invalid JSON value: {token}")


def parse_json(text: str) -> JsonValue:
    """
    Parse JSON text strictly.

    Raises:
        JsonParseError: on any syntax error, including the NaN/Infinity
            extensions Python's json module would otherwise accept
    """
    try:
        return json.loads(text, parse_float=_parse_float, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise JsonParseError(e.msg, line=e.lineno, column=e.colno) from e
    except ValueError as e:
        raise JsonParseError(str(e)) from e


def serialize_json(value: JsonValue, pretty: bool = True) -> str:
    """Serialize a value, 2-space indented for display or compact for equality."""
    if pretty:
        return json.dumps(value, indent=2, ensure_ascii=False)
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False)


def canonicalize_json(value: JsonValue, options: ComparisonOptions) -> JsonValue:
    """
    Build the canonical form of a JSON value.

    Always returns a new value; the input is never mutated.
    - strings are normalized (whitespace, case)
    - object keys are case-folded when not case_sensitive, keeping the
      first-seen key on collision
    - object keys are sorted by normalized form with ignore_key_order
    - array elements are sorted by their compact serialization with
      ignore_array_order
    """
    if isinstance(value, str):
        return normalize(value, options)

    if isinstance(value, list):
        items = [canonicalize_json(item, options) for item in value]
        if options.ignore_array_order:
            items.sort(key=lambda item: serialize_json(item, pretty=False))
        return items

    if isinstance(value, dict):
        keys = list(value.keys())
        if options.ignore_key_order:
            keys.sort(key=lambda k: normalize_key(k, options.case_sensitive))

        canonical = {}
        for key in keys:
            canonical_key = normalize_key(key, options.case_sensitive)
            if canonical_key in canonical:
                continue
            canonical[canonical_key] = canonicalize_json(value[key], options)
        return canonical

    return value


def _build_diff_lines(left_lines: list[str], right_lines: list[str]) -> list[DiffLine]:
    """Align two line lists into numbered diff rows."""
    diff_lines = []
    for number, pair in enumerate(align(left_lines, right_lines), start=1):
        diff_lines.append(DiffLine(
            display_line_number=number,
            type=pair.type,
            left_line_number=None if pair.left_index is None else pair.left_index + 1,
            right_line_number=None if pair.right_index is None else pair.right_index + 1,
            left=pair.left,
            right=pair.right,
        ))
    return diff_lines


def _format_for_display(text: str) -> str:
    """Pretty-print parseable JSON, otherwise return the raw text."""
    try:
        return serialize_json(parse_json(text))
    except JsonParseError:
        return text


def _parse_error_result(
    left_text: str,
    right_text: str,
    left_error: Optional[JsonParseError],
    right_error: Optional[JsonParseError]
) -> CompareResult:
    """Build the degraded result shown when either side fails to parse."""
    if left_error and right_error:
        message = "Both inputs contain invalid JSON"
    elif left_error:
        message = "Left input contains invalid JSON"
    else:
        message = "Right input contains invalid JSON"

    error = left_error or right_error
    if error.line is not None:
        message = f"{message} (line {error.line}, column {error.column}: {error.message})"

    left_display = _format_for_display(left_text)
    right_display = _format_for_display(right_text)
    diff_lines = _build_diff_lines(split_lines(left_display), split_lines(right_display))
    if not left_display.strip() and not right_display.strip():
        diff_lines = [DiffLine(
            display_line_number=1,
            type=ChangeType.MODIFIED,
            left_line_number=1,
            right_line_number=1,
            left=left_display or ' ',
            right=right_display or ' ',
        )]

    added, removed, modified = count_line_types(diff_lines)
    return CompareResult(
        are_equal=False,
        differences=[Difference(type=DifferenceType.MODIFIED, path=ROOT_PATH, message=message)],
        differences_count=1,
        diff_lines=diff_lines,
        added_count=added,
        removed_count=removed,
        modified_count=modified,
        has_parse_error=True,
        parse_error_message=message,
    )


def compare_json(
    left_text: str,
    right_text: str,
    options: Optional[ComparisonOptions] = None
) -> CompareResult:
    """
    Compare two JSON documents.

    Args:
        left_text: The left/old JSON text
        right_text: The right/new JSON text
        options: Equivalence policy (strict defaults when omitted)

    Returns:
        CompareResult; parse failures are reported in the result and
        never raised
    """
    options = options or ComparisonOptions()

    left_value = right_value = None
    left_error = right_error = None
    try:
        left_value = parse_json(left_text)
    except JsonParseError as e:
        e.side = "left"
        left_error = e
    try:
        right_value = parse_json(right_text)
    except JsonParseError as e:
        e.side = "right"
        right_error = e

    if left_error or right_error:
        logger.debug("JSON parse failure: left=%s right=%s", left_error, right_error)
        return _parse_error_result(left_text, right_text, left_error, right_error)

    left_canonical = canonicalize_json(left_value, options)
    right_canonical = canonicalize_json(right_value, options)

    diff_lines = _build_diff_lines(
        serialize_json(left_canonical).split('\n'),
        serialize_json(right_canonical).split('\n'),
    )
    differences = diff_json(left_canonical, right_canonical, options)

    same_text = (
        serialize_json(left_canonical, pretty=False) ==
        serialize_json(right_canonical, pretty=False)
    )
    added, removed, modified = count_line_types(diff_lines)

    logger.debug(
        "JSON comparison: %d differences, +%d -%d ~%d lines",
        len(differences), added, removed, modified
    )

    return CompareResult(
        are_equal=same_text and not differences,
        differences=differences,
        differences_count=len(differences),
        diff_lines=diff_lines,
        added_count=added,
        removed_count=removed,
        modified_count=modified,
    )
