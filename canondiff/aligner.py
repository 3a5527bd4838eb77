"""Sequence alignment for line- and word-level diffs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from .models import ChangeType, EngineConfig

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class AlignedPair(Generic[T]):
    """
    One step of an alignment.

    Indices are 0-based positions in the input sequences; a side is None
    when the step consumed nothing from it.
    """
    type: ChangeType
    left_index: Optional[int] = None
    right_index: Optional[int] = None
    left: Optional[T] = None
    right: Optional[T] = None


def _default_equals(a: Any, b: Any) -> bool:
    return a == b


def lcs_table(
    left: Sequence[T],
    right: Sequence[T],
    equals: Callable[[T, T], bool]
) -> list[list[int]]:
    """Build the (n+1) x (m+1) longest-common-subsequence length table."""
    n = len(left)
    m = len(right)
    table = [[0] * (m + 1) for _ in range(n + 1)]

    for i in range(1, n + 1):
        row = table[i]
        prev = table[i - 1]
        item = left[i - 1]
        for j in range(1, m + 1):
            if equals(item, right[j - 1]):
                row[j] = prev[j - 1] + 1
            else:
                row[j] = max(prev[j], row[j - 1])

    return table


def merge_modified(pairs: list[AlignedPair[T]]) -> list[AlignedPair[T]]:
    """Fold each REMOVED step immediately followed by an ADDED step into MODIFIED."""
    merged: list[AlignedPair[T]] = []
    k = 0

    while k < len(pairs):
        current = pairs[k]
        following = pairs[k + 1] if k + 1 < len(pairs) else None

        if (
            current.type == ChangeType.REMOVED and
            following is not None and
            following.type == ChangeType.ADDED
        ):
            merged.append(AlignedPair(
                type=ChangeType.MODIFIED,
                left_index=current.left_index,
                right_index=following.right_index,
                left=current.left,
                right=following.right,
            ))
            k += 2
        else:
            merged.append(current)
            k += 1

    return merged


def align(
    left: Sequence[T],
    right: Sequence[T],
    equals: Optional[Callable[[T, T], bool]] = None
) -> list[AlignedPair[T]]:
    """
    Align two sequences with a longest-common-subsequence backtrack.

    Args:
        left: The left/old sequence
        right: The right/new sequence
        equals: Equality predicate (already normalization-aware)

    Returns:
        Aligned pairs in reading order, with adjacent removed/added
        steps merged into modified pairs
    """
    equals = equals or _default_equals
    table = lcs_table(left, right, equals)

    steps: list[AlignedPair[T]] = []
    i = len(left)
    j = len(right)

    while i > 0 or j > 0:
        if i > 0 and j > 0 and equals(left[i - 1], right[j - 1]):
            steps.append(AlignedPair(
                type=ChangeType.UNCHANGED,
                left_index=i - 1,
                right_index=j - 1,
                left=left[i - 1],
                right=right[j - 1],
            ))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or table[i][j - 1] >= table[i - 1][j]):
            # Ties go to the right side so that "added" is emitted first
            # while backtracking, which puts it after "removed" in reading order.
            steps.append(AlignedPair(
                type=ChangeType.ADDED,
                right_index=j - 1,
                right=right[j - 1],
            ))
            j -= 1
        else:
            steps.append(AlignedPair(
                type=ChangeType.REMOVED,
                left_index=i - 1,
                left=left[i - 1],
            ))
            i -= 1

    steps.reverse()
    return merge_modified(steps)


def scan_align(
    left: Sequence[T],
    right: Sequence[T],
    equals: Optional[Callable[[T, T], bool]] = None,
    config: Optional[EngineConfig] = None
) -> list[AlignedPair[T]]:
    """
    Align two sequences with a bounded forward-scan heuristic.

    Linear-ish alternative to align() for very large inputs. When the
    current lines differ, the next exact match is searched within
    config.scan_lookahead lines on each side; the side whose match is
    nearer decides whether the other line was added or removed. With no
    nearby match, a config.scan_sample_window look-ahead sample on both
    sides is cross-matched: a match rate at or above
    config.scan_match_rate means the documents are locally similar and
    the pair is MODIFIED, otherwise it is REMOVED + ADDED. Lines within
    config.scan_near_end of either end always resolve to REMOVED + ADDED.
    """
    equals = equals or _default_equals
    config = config or EngineConfig()

    pairs: list[AlignedPair[T]] = []
    n = len(left)
    m = len(right)
    i = 0
    j = 0

    def removed(idx: int) -> AlignedPair[T]:
        return AlignedPair(type=ChangeType.REMOVED, left_index=idx, left=left[idx])

    def added(idx: int) -> AlignedPair[T]:
        return AlignedPair(type=ChangeType.ADDED, right_index=idx, right=right[idx])

    while i < n or j < m:
        if i >= n:
            pairs.append(added(j))
            j += 1
            continue
        if j >= m:
            pairs.append(removed(i))
            i += 1
            continue

        if equals(left[i], right[j]):
            pairs.append(AlignedPair(
                type=ChangeType.UNCHANGED,
                left_index=i,
                right_index=j,
                left=left[i],
                right=right[j],
            ))
            i += 1
            j += 1
            continue

        left_next = _find_next(left[i], right, j + 1, config.scan_lookahead, equals, flip=False)
        right_next = _find_next(right[j], left, i + 1, config.scan_lookahead, equals, flip=True)

        if left_next is not None and (right_next is None or left_next - j < right_next - i):
            pairs.append(added(j))
            j += 1
        elif right_next is not None:
            pairs.append(removed(i))
            i += 1
        elif _is_locally_similar(left, right, i, j, equals, config):
            pairs.append(AlignedPair(
                type=ChangeType.MODIFIED,
                left_index=i,
                right_index=j,
                left=left[i],
                right=right[j],
            ))
            i += 1
            j += 1
        else:
            pairs.append(removed(i))
            pairs.append(added(j))
            i += 1
            j += 1

    return pairs


def _find_next(
    item: T,
    other: Sequence[T],
    start: int,
    window: int,
    equals: Callable[[T, T], bool],
    flip: bool
) -> Optional[int]:
    """Find the first index in other[start:start+window] matching item."""
    end = min(start + window, len(other))
    for idx in range(start, end):
        matched = equals(other[idx], item) if flip else equals(item, other[idx])
        if matched:
            return idx
    return None


def _is_locally_similar(
    left: Sequence[T],
    right: Sequence[T],
    i: int,
    j: int,
    equals: Callable[[T, T], bool],
    config: EngineConfig
) -> bool:
    """Decide whether the lines following position (i, j) look alike."""
    if len(left) - i <= config.scan_near_end or len(right) - j <= config.scan_near_end:
        return False

    window = config.scan_sample_window
    left_sample = left[i + 1:i + 1 + window]
    right_sample = right[j + 1:j + 1 + window]
    if not left_sample or not right_sample:
        return False

    matches = 0
    used: set[int] = set()
    for item in left_sample:
        for k, candidate in enumerate(right_sample):
            if k not in used and equals(item, candidate):
                matches += 1
                used.add(k)
                break

    rate = matches / min(len(left_sample), len(right_sample))
    logger.debug("Forward scan sample at (%d, %d): match rate %.2f", i, j, rate)
    return rate >= config.scan_match_rate
