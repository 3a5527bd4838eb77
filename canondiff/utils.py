"""Utility functions for canondiff engine."""

from __future__ import annotations

import re
from typing import Any, Iterable

from .models import ChangeType, DiffLine

_LINE_BREAK = re.compile(r'\r?\n')
_SIMPLE_KEY = re.compile(r'^[a-zA-Z_$][a-zA-Z0-9_$]*$')


def get_text_size_mb(text: str) -> float:
    """Get the UTF-8 encoded size of a string in megabytes."""
    return len(text.encode('utf-8')) / (1024 * 1024)


def split_lines(text: str) -> list[str]:
    """Split text on LF or CRLF line boundaries."""
    return _LINE_BREAK.split(text)


def get_type_name(value: Any) -> str:
    """
    Get the JSON kind of a value.

    Booleans are checked before numbers since bool is an int subclass,
    and int/float share the "number" kind as they do in JSON.
    """
    if value is None:
        return "null"
    elif isinstance(value, bool):
        return "boolean"
    elif isinstance(value, (int, float)):
        return "number"
    elif isinstance(value, str):
        return "string"
    elif isinstance(value, list):
        return "array"
    elif isinstance(value, dict):
        return "object"
    else:
        return type(value).__name__


def build_path(parent_path: str, key: str | int) -> str:
    """Build a dotted difference path from parent path and key."""
    if isinstance(key, int):
        return f"{parent_path}[{key}]"
    if not parent_path:
        return key
    if _SIMPLE_KEY.match(key):
        return f"{parent_path}.{key}"
    return f"{parent_path}['{key}']"


def count_line_types(diff_lines: Iterable[DiffLine]) -> tuple[int, int, int]:
    """Count (added, removed, modified) rows of a diff."""
    added = removed = modified = 0
    for line in diff_lines:
        if line.type == ChangeType.ADDED:
            added += 1
        elif line.type == ChangeType.REMOVED:
            removed += 1
        elif line.type == ChangeType.MODIFIED:
            modified += 1
    return added, removed, modified
