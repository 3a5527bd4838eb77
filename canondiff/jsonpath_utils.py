"""JSONPath utilities for canondiff scenarios."""

from __future__ import annotations

from typing import Any

from jsonpath_ng import parse as jsonpath_parse
from jsonpath_ng.exceptions import JsonPathParserError
from jsonpath_ng.jsonpath import Fields, Index


class JSONPathMatcher:
    """Utility class for JSONPath matching and deletion."""

    # Cache for compiled JSONPath expressions
    _cache: dict = {}

    @classmethod
    def compile(cls, path: str):
        """Compile and cache a JSONPath expression."""
        if path not in cls._cache:
            try:
                cls._cache[path] = jsonpath_parse(path)
            except JsonPathParserError as e:
                raise ValueError(f"Invalid JSONPath expression '{path}': {e}")
        return cls._cache[path]

    @classmethod
    def find_values(cls, data: Any, path: str) -> list[Any]:
        """Find all values matching a JSONPath expression."""
        return [m.value for m in cls.compile(path).find(data)]

    @classmethod
    def delete_paths(cls, data: Any, paths: list[str]) -> tuple[Any, int]:
        """
        Delete all values matching the given JSONPath expressions.

        Args:
            data: The data to modify (modified in place)
            paths: List of JSONPath expressions

        Returns:
            (modified data, number of values removed)

        Raises:
            ValueError: if an expression does not parse
        """
        removed = 0
        for path in paths:
            removed += cls._delete_path(data, path)
        return data, removed

    @classmethod
    def _delete_path(cls, data: Any, path: str) -> int:
        """Delete a single JSONPath from data."""
        removed = 0

        # Reverse order keeps earlier list indices valid while deleting
        for match in reversed(cls.compile(path).find(data)):
            if match.context is None:
                continue
            parent = match.context.value
            key = match.path

            if isinstance(parent, dict) and isinstance(key, Fields):
                for name in key.fields:
                    if name in parent:
                        del parent[name]
                        removed += 1
            elif isinstance(parent, list) and isinstance(key, Index):
                indices = getattr(key, "indices", None) or (key.index,)
                for index in sorted(indices, reverse=True):
                    if 0 <= index < len(parent):
                        del parent[index]
                        removed += 1

        return removed
