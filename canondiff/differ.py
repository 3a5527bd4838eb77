"""Structural diffing of canonical JSON values."""

from __future__ import annotations

import json
from typing import Any

from .models import ComparisonOptions, Difference, DifferenceType
from .utils import build_path, get_type_name

ROOT_PATH = "root"


def _display(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


class Differ:
    """
    Walks two canonical JSON values and records typed differences.

    Handles:
    - null on one side (added / removed)
    - kind changes (modified)
    - primitive value changes (modified, both values attached)
    - arrays index by index, padded to the longer side
    - objects key by key over the union of keys
    """

    def __init__(self, options: ComparisonOptions):
        self.options = options
        self.diffs: list[Difference] = []
        self.values_checked = 0

    def diff(self, old: Any, new: Any, path: str = "") -> bool:
        """
        Perform deep diff comparison.

        Args:
            old: The left canonical value
            new: The right canonical value
            path: Current difference path ("" at the root)

        Returns:
            True if values match, False otherwise
        """
        label = path or ROOT_PATH

        if old is None and new is None:
            self.values_checked += 1
            return True

        if old is None:
            self._add_diff(DifferenceType.ADDED, label, None, new, f"Added: {label}")
            return False

        if new is None:
            self._add_diff(DifferenceType.REMOVED, label, old, None, f"Removed: {label}")
            return False

        old_kind = get_type_name(old)
        new_kind = get_type_name(new)

        if old_kind != new_kind:
            self._add_diff(
                DifferenceType.MODIFIED, label, old, new,
                f"Type changed: {old_kind} → {new_kind}"
            )
            return False

        if old_kind == "object":
            return self._diff_objects(old, new, path)
        elif old_kind == "array":
            return self._diff_arrays(old, new, path)
        else:
            return self._diff_scalars(old, new, label)

    def _diff_objects(self, old: dict, new: dict, path: str) -> bool:
        """Compare two objects."""
        all_match = True

        keys = list(old.keys())
        keys.extend(k for k in new.keys() if k not in old)
        if self.options.ignore_key_order:
            keys.sort()

        for key in keys:
            child_path = build_path(path, key)

            if key not in old:
                self._add_diff(
                    DifferenceType.ADDED, child_path, None, new[key],
                    f"Added key: {child_path}"
                )
                all_match = False
            elif key not in new:
                self._add_diff(
                    DifferenceType.REMOVED, child_path, old[key], None,
                    f"Removed key: {child_path}"
                )
                all_match = False
            elif not self.diff(old[key], new[key], child_path):
                all_match = False

        return all_match

    def _diff_arrays(self, old: list, new: list, path: str) -> bool:
        """Compare arrays index-by-index, padding the shorter one."""
        all_match = True

        for i in range(max(len(old), len(new))):
            child_path = build_path(path, i)

            if i >= len(old):
                self._add_diff(
                    DifferenceType.ADDED, child_path, None, new[i],
                    f"Added at {child_path}"
                )
                all_match = False
            elif i >= len(new):
                self._add_diff(
                    DifferenceType.REMOVED, child_path, old[i], None,
                    f"Removed from {child_path}"
                )
                all_match = False
            elif not self.diff(old[i], new[i], child_path):
                all_match = False

        return all_match

    def _diff_scalars(self, old: Any, new: Any, path: str) -> bool:
        self.values_checked += 1
        if old == new:
            return True

        self._add_diff(
            DifferenceType.MODIFIED, path, old, new,
            f"Value changed: {_display(old)} → {_display(new)}"
        )
        return False

    def _add_diff(
        self,
        diff_type: DifferenceType,
        path: str,
        old_value: Any,
        new_value: Any,
        message: str
    ):
        """Add a difference entry."""
        self.diffs.append(Difference(
            type=diff_type,
            path=path,
            old_value=old_value,
            new_value=new_value,
            message=message,
        ))


def diff_json(old: Any, new: Any, options: ComparisonOptions) -> list[Difference]:
    """Convenience wrapper returning the differences between two canonical values."""
    differ = Differ(options)
    differ.diff(old, new)
    return differ.diffs
