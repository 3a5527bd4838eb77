"""Plain-text comparison at line and word granularity."""

from __future__ import annotations

import logging
import re
from typing import Optional

from .aligner import AlignedPair, align, scan_align
from .models import (
    AlignmentStrategy,
    ChangeType,
    CompareResult,
    ComparisonOptions,
    DiffLine,
    Difference,
    DifferenceType,
    EngineConfig,
    TextCompareMode,
    WordDiff,
)
from .normalizer import Normalizer
from .utils import count_line_types, split_lines

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r'\S+|\s+')
_WORD = re.compile(r'\S+')

_LINE_DIFFERENCE = {
    ChangeType.ADDED: (DifferenceType.ADDED, "Line added"),
    ChangeType.REMOVED: (DifferenceType.REMOVED, "Line removed"),
    ChangeType.MODIFIED: (DifferenceType.MODIFIED, "Line changed"),
}


def split_words(line: str, options: ComparisonOptions) -> list[str]:
    """
    Split a line into word tokens.

    Whitespace runs are kept as tokens of their own so a word diff can be
    rendered back exactly; with ignore_whitespace only the words remain.
    """
    if options.ignore_whitespace:
        return _WORD.findall(line)
    return _TOKEN.findall(line)


def compare_words(
    left: Optional[str],
    right: Optional[str],
    options: ComparisonOptions
) -> tuple[list[WordDiff], list[WordDiff]]:
    """
    Align the words of one line pair.

    A missing side yields an empty list and every word of the other side
    is marked added or removed.
    """
    normalizer = Normalizer(options)
    left_words = split_words(left, options) if left is not None else []
    right_words = split_words(right, options) if right is not None else []

    pairs = align(
        [normalizer.word(w) for w in left_words],
        [normalizer.word(w) for w in right_words],
    )

    left_diff: list[WordDiff] = []
    right_diff: list[WordDiff] = []
    for pair in pairs:
        if pair.left_index is not None:
            left_diff.append(WordDiff(word=left_words[pair.left_index], type=pair.type))
        if pair.right_index is not None:
            right_diff.append(WordDiff(word=right_words[pair.right_index], type=pair.type))

    return left_diff, right_diff


def _align_lines(
    left: list[str],
    right: list[str],
    config: EngineConfig
) -> list[AlignedPair[str]]:
    if config.alignment == AlignmentStrategy.SCAN:
        logger.debug("Aligning %d/%d lines with forward scan", len(left), len(right))
        return scan_align(left, right, config=config)
    return align(left, right)


def compare_text(
    left_text: str,
    right_text: str,
    options: Optional[ComparisonOptions] = None,
    mode: TextCompareMode = TextCompareMode.LINE,
    config: Optional[EngineConfig] = None
) -> CompareResult:
    """
    Compare two plain-text documents.

    Lines are aligned on their normalized form while the original text is
    kept for display. In word mode every row additionally carries
    left_words/right_words; the row type still comes from line alignment
    and the counts are per line.

    Args:
        left_text: The left/old text
        right_text: The right/new text
        options: Equivalence policy (strict defaults when omitted)
        mode: Line or word granularity
        config: Engine configuration selecting the alignment strategy

    Returns:
        CompareResult (never a parse error; any string is valid text)
    """
    options = options or ComparisonOptions()
    config = config or EngineConfig()
    normalizer = Normalizer(options)

    left_lines = split_lines(left_text)
    right_lines = split_lines(right_text)

    pairs = _align_lines(
        [normalizer.value(line) for line in left_lines],
        [normalizer.value(line) for line in right_lines],
        config,
    )

    diff_lines: list[DiffLine] = []
    differences: list[Difference] = []

    for number, pair in enumerate(pairs, start=1):
        left = None if pair.left_index is None else left_lines[pair.left_index]
        right = None if pair.right_index is None else right_lines[pair.right_index]

        row = DiffLine(
            display_line_number=number,
            type=pair.type,
            left_line_number=None if pair.left_index is None else pair.left_index + 1,
            right_line_number=None if pair.right_index is None else pair.right_index + 1,
            left=left,
            right=right,
        )
        if mode == TextCompareMode.WORD:
            row.left_words, row.right_words = compare_words(left, right, options)
        diff_lines.append(row)

        if pair.type in _LINE_DIFFERENCE:
            diff_type, label = _LINE_DIFFERENCE[pair.type]
            line_number = row.right_line_number if pair.type == ChangeType.ADDED else row.left_line_number
            differences.append(Difference(
                type=diff_type,
                path=f"line {line_number}",
                message=f"{label}: {line_number}",
                old_value=left,
                new_value=right,
            ))

    added, removed, modified = count_line_types(diff_lines)

    logger.debug(
        "Text comparison (%s): +%d -%d ~%d lines",
        mode.value, added, removed, modified
    )

    return CompareResult(
        are_equal=not differences,
        differences=differences,
        differences_count=len(differences),
        diff_lines=diff_lines,
        added_count=added,
        removed_count=removed,
        modified_count=modified,
    )
