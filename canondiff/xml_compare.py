"""XML structural comparison and semantic line reconciliation."""

from __future__ import annotations

import logging
import re
from typing import Optional

from .exceptions import XmlParseError
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
from .xml_tree import (
    XmlElement,
    canonicalize_xml,
    extract_declaration,
    looks_like_xml,
    parse_xml,
    serialize_xml,
)

logger = logging.getLogger(__name__)

ATTRIBUTE_ORDER = "attribute_order"

_LINE_TAG = re.compile(r'^<([^\s>/]+)')
_SELF_CLOSING = re.compile(r'/\s*>$')
_INLINE_CONTENT = re.compile(r'^<[^>]+>([^<]*)</[^>]+>$')
_OPEN_CONTENT = re.compile(r'^<[^>]+>([^<]+)$')


class XmlDiffer:
    """
    Walks two canonical element trees and records typed differences.

    Paths are slash-addressed: the root is "/tag" and each child is
    "<parent>/<tag>[<index>]", where the index counts position among all
    children, or among same-tag siblings when order is ignored.
    """

    def __init__(self, options: ComparisonOptions):
        self.options = options
        self.diffs: list[Difference] = []

    def _key(self, name: str) -> str:
        return normalize_key(name, self.options.case_sensitive)

    def diff(self, old: Optional[XmlElement], new: Optional[XmlElement], path: str = "") -> None:
        """Compare two elements (either may be None) and their subtrees."""
        if old is None and new is None:
            return

        if old is None:
            path = path or f"/{new.tag}"
            self._add(DifferenceType.ADDED, path, new.tag,
                      message=f"Element added: {new.tag} at {path}")
            for idx, child in enumerate(new.children):
                self.diff(None, child, f"{path}/{child.tag}[{idx}]")
            return

        if new is None:
            path = path or f"/{old.tag}"
            self._add(DifferenceType.REMOVED, path, old.tag,
                      message=f"Element removed: {old.tag} at {path}")
            for idx, child in enumerate(old.children):
                self.diff(child, None, f"{path}/{child.tag}[{idx}]")
            return

        path = path or f"/{old.tag}"

        if self._key(old.tag) != self._key(new.tag):
            self._add(DifferenceType.MODIFIED, path, old.tag,
                      old_value=old.tag, new_value=new.tag,
                      message=f"Element renamed: {old.tag} → {new.tag}")

        self._diff_attributes(old, new, path)
        self._diff_text(old, new, path)

        if self.options.ignore_xml_order:
            self._diff_children_by_tag(old, new, path)
        else:
            self._diff_children_by_position(old, new, path)

    def _diff_attributes(self, old: XmlElement, new: XmlElement, path: str):
        old_keys = list(old.attributes.keys())
        new_keys = list(new.attributes.keys())
        old_map = {self._key(k): k for k in old_keys}
        new_map = {self._key(k): k for k in new_keys}

        if not self.options.ignore_xml_order and old_keys and len(old_keys) == len(new_keys):
            old_order = [self._key(k) for k in old_keys]
            new_order = [self._key(k) for k in new_keys]
            if set(old_order) == set(new_order) and old_order != new_order:
                self._add(
                    DifferenceType.ATTRIBUTE_CHANGED, path, old.tag,
                    attribute=ATTRIBUTE_ORDER,
                    old_value=', '.join(old_keys),
                    new_value=', '.join(new_keys),
                    message=f"Attribute order changed: [{', '.join(old_keys)}] → [{', '.join(new_keys)}]"
                )

        ordered = list(old_map)
        ordered.extend(k for k in new_map if k not in old_map)
        if self.options.ignore_xml_order:
            ordered.sort()

        for key in ordered:
            if key not in old_map:
                name = new_map[key]
                value = new.attributes[name]
                self._add(DifferenceType.ADDED, path, old.tag, attribute=name,
                          new_value=value,
                          message=f'Attribute added: {name}="{value}"')
            elif key not in new_map:
                name = old_map[key]
                value = old.attributes[name]
                self._add(DifferenceType.REMOVED, path, old.tag, attribute=name,
                          old_value=value,
                          message=f'Attribute removed: {name}="{value}"')
            else:
                name = old_map[key]
                old_value = old.attributes[name]
                new_value = new.attributes[new_map[key]]
                if normalize(old_value, self.options) != normalize(new_value, self.options):
                    self._add(DifferenceType.ATTRIBUTE_CHANGED, path, old.tag,
                              attribute=name, old_value=old_value, new_value=new_value,
                              message=f'Attribute changed: {name}="{old_value}" → "{new_value}"')

    def _diff_text(self, old: XmlElement, new: XmlElement, path: str):
        old_text = old.text or ''
        new_text = new.text or ''
        if normalize(old_text, self.options) != normalize(new_text, self.options):
            self._add(DifferenceType.MODIFIED, path, old.tag,
                      old_value=old_text, new_value=new_text,
                      message=f'Text content changed: "{old_text}" → "{new_text}"')

    def _diff_children_by_tag(self, old: XmlElement, new: XmlElement, path: str):
        """Pair children position-wise inside same-tag buckets."""
        old_buckets = self._bucket(old.children)
        new_buckets = self._bucket(new.children)

        for tag in sorted(set(old_buckets) | set(new_buckets)):
            old_children = old_buckets.get(tag, [])
            new_children = new_buckets.get(tag, [])
            for i in range(max(len(old_children), len(new_children))):
                self.diff(
                    old_children[i] if i < len(old_children) else None,
                    new_children[i] if i < len(new_children) else None,
                    f"{path}/{tag}[{i}]"
                )

    def _diff_children_by_position(self, old: XmlElement, new: XmlElement, path: str):
        for i in range(max(len(old.children), len(new.children))):
            old_child = old.children[i] if i < len(old.children) else None
            new_child = new.children[i] if i < len(new.children) else None
            tag = (old_child or new_child).tag
            self.diff(old_child, new_child, f"{path}/{tag}[{i}]")

    def _bucket(self, children: list[XmlElement]) -> dict[str, list[XmlElement]]:
        buckets: dict[str, list[XmlElement]] = {}
        for child in children:
            buckets.setdefault(self._key(child.tag), []).append(child)
        return buckets

    def _add(
        self,
        diff_type: DifferenceType,
        path: str,
        element: str,
        message: str,
        attribute: Optional[str] = None,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None
    ):
        self.diffs.append(Difference(
            type=diff_type,
            path=path,
            element=element,
            attribute=attribute,
            old_value=old_value,
            new_value=new_value,
            message=message,
        ))


def diff_xml_elements(
    old: Optional[XmlElement],
    new: Optional[XmlElement],
    options: ComparisonOptions
) -> list[Difference]:
    """Convenience wrapper returning the differences between two canonical trees."""
    differ = XmlDiffer(options)
    differ.diff(old, new)
    return differ.diffs


def extract_line_tag(line: str) -> Optional[str]:
    """Tag name of the opening tag a line starts with ('<name>x</name>' -> 'name')."""
    match = _LINE_TAG.match(line.strip())
    return match.group(1) if match else None


def extract_inner_text(line: str) -> str:
    """Text between the opening and closing tag of a line ('<name>x</name>' -> 'x')."""
    trimmed = line.strip()
    if _SELF_CLOSING.search(trimmed):
        return ''
    match = _INLINE_CONTENT.match(trimmed) or _OPEN_CONTENT.match(trimmed)
    return match.group(1).strip() if match else ''


def create_line_number_map(original_lines: list[str], display_lines: list[str]) -> dict[int, int]:
    """
    Map 1-based display line numbers to 1-based original line numbers.

    Lines are matched by trimmed content. Repeated identical lines are
    consumed in original order, so the n-th occurrence in the display maps
    to the n-th occurrence in the original. Blank lines and the XML
    declaration are never mapped.
    """
    occurrences: dict[str, list[int]] = {}
    for idx, line in enumerate(original_lines, start=1):
        content = line.strip()
        if content and not content.startswith('<?xml'):
            occurrences.setdefault(content, []).append(idx)

    used: dict[str, int] = {}
    mapping: dict[int, int] = {}
    for idx, line in enumerate(display_lines, start=1):
        content = line.strip()
        if not content or content.startswith('<?xml'):
            continue
        candidates = occurrences.get(content)
        count = used.get(content, 0)
        if candidates and count < len(candidates):
            mapping[idx] = candidates[count]
            used[content] = count + 1

    return mapping


class LineReconciler:
    """
    Matches canonical XML lines across both sides by tag identity.

    Canonicalization may reorder elements, so lines are paired by tag
    name and inner text instead of position:
    1. with order ignored, a same-index right line with the same tag wins
    2. otherwise the first unconsumed same-tag right line whose inner text
       equals the left line's, falling back to the first unconsumed
       same-tag right line
    3. a pair is MODIFIED when the structural walk flagged its tag as
       modified or when the inner text differs, else UNCHANGED
    4. unpaired left lines are REMOVED, unpaired right lines ADDED

    Tag-less lines (closing tags) pair with the first unconsumed
    identical right line.
    """

    def __init__(
        self,
        options: ComparisonOptions,
        differences: list[Difference],
        left_map: Optional[dict[int, int]] = None,
        right_map: Optional[dict[int, int]] = None
    ):
        self.options = options
        self.left_map = left_map or {}
        self.right_map = right_map or {}
        self.tag_changes = self._index_differences(differences)

    def _key(self, name: str) -> str:
        return normalize_key(name, self.options.case_sensitive)

    def _text(self, line: str) -> str:
        return normalize(extract_inner_text(line), self.options)

    def _index_differences(self, differences: list[Difference]) -> dict[str, DifferenceType]:
        """Map each tag to the strongest change reported for it (modified wins)."""
        changes: dict[str, DifferenceType] = {}
        for diff in differences:
            if not diff.element:
                continue
            tag = self._key(diff.element)
            change = DifferenceType.MODIFIED
            if diff.type in (DifferenceType.ADDED, DifferenceType.REMOVED) and diff.attribute is None:
                change = diff.type
            if tag not in changes or change == DifferenceType.MODIFIED:
                changes[tag] = change
        return changes

    def reconcile(self, left_lines: list[str], right_lines: list[str]) -> list[DiffLine]:
        right_by_tag: dict[str, list[int]] = {}
        for j, line in enumerate(right_lines):
            tag = extract_line_tag(line)
            if tag:
                right_by_tag.setdefault(self._key(tag), []).append(j)

        consumed: set[int] = set()
        rows: list[DiffLine] = []

        for i, line in enumerate(left_lines):
            tag = extract_line_tag(line)
            if tag is None:
                match = next(
                    (j for j, other in enumerate(right_lines) if j not in consumed and other == line),
                    None
                )
                change = ChangeType.UNCHANGED
            else:
                match = self._match_tag_line(i, line, self._key(tag), right_lines, right_by_tag, consumed)
                change = None if match is None else self._classify(line, right_lines[match], self._key(tag))

            if match is None:
                rows.append(self._row(ChangeType.REMOVED, i, None, line, None))
            else:
                consumed.add(match)
                rows.append(self._row(change, i, match, line, right_lines[match]))

        for j, line in enumerate(right_lines):
            if j not in consumed:
                rows.append(self._row(ChangeType.ADDED, None, j, None, line))

        rows = [
            row for row in rows
            if (row.left or '').strip() or (row.right or '').strip()
        ]
        rows.sort(key=_reading_order)
        for number, row in enumerate(rows, start=1):
            row.display_line_number = number

        return rows

    def _match_tag_line(
        self,
        i: int,
        line: str,
        tag: str,
        right_lines: list[str],
        right_by_tag: dict[str, list[int]],
        consumed: set[int]
    ) -> Optional[int]:
        if self.options.ignore_xml_order and i < len(right_lines) and i not in consumed:
            right_tag = extract_line_tag(right_lines[i])
            if right_tag and self._key(right_tag) == tag:
                return i

        left_text = self._text(line)
        fallback = None
        for j in right_by_tag.get(tag, []):
            if j in consumed:
                continue
            if left_text and self._text(right_lines[j]) == left_text:
                return j
            if fallback is None:
                fallback = j
        return fallback

    def _classify(self, left: str, right: str, tag: str) -> ChangeType:
        if left.strip() == right.strip():
            return ChangeType.UNCHANGED
        if self.tag_changes.get(tag) == DifferenceType.MODIFIED:
            return ChangeType.MODIFIED
        if self._text(left) != self._text(right):
            return ChangeType.MODIFIED
        return ChangeType.UNCHANGED

    def _row(
        self,
        change: ChangeType,
        left_index: Optional[int],
        right_index: Optional[int],
        left: Optional[str],
        right: Optional[str]
    ) -> DiffLine:
        left_number = right_number = None
        if left_index is not None:
            left_number = self.left_map.get(left_index + 1, left_index + 1)
        if right_index is not None:
            right_number = self.right_map.get(right_index + 1, right_index + 1)
        return DiffLine(
            display_line_number=0,
            type=change,
            left_line_number=left_number,
            right_line_number=right_number,
            left=left,
            right=right,
        )


def _reading_order(row: DiffLine) -> tuple[int, int]:
    """Sort by the smaller side's line number; ties put the right side's order first."""
    numbers = [n for n in (row.left_line_number, row.right_line_number) if n is not None]
    secondary = row.right_line_number if row.right_line_number is not None else row.left_line_number
    return min(numbers), secondary


def _side_message(left_failed: bool, right_failed: bool, both: str, left: str, right: str) -> str:
    if left_failed and right_failed:
        return both
    return left if left_failed else right


def _parse_error_result(message: str) -> CompareResult:
    return CompareResult(
        are_equal=False,
        differences=[Difference(type=DifferenceType.MODIFIED, path="root", message=message)],
        differences_count=1,
        diff_lines=[],
        has_parse_error=True,
        parse_error_message=message,
    )


def _display_lines(text: str, canonical: XmlElement, options: ComparisonOptions) -> list[str]:
    declaration, _ = extract_declaration(text)
    body = serialize_xml(canonical, options)
    display = f"{declaration}\n{body}" if declaration else body
    return display.split('\n')


def compare_xml(
    left_text: str,
    right_text: str,
    options: Optional[ComparisonOptions] = None
) -> CompareResult:
    """
    Compare two XML documents.

    Args:
        left_text: The left/old XML text
        right_text: The right/new XML text
        options: Equivalence policy; XML treats ignore_key_order and
            ignore_attribute_order alike (attribute and child order)

    Returns:
        CompareResult; malformed or non-XML input is reported in the
        result and never raised
    """
    options = options or ComparisonOptions()

    left_is_xml = looks_like_xml(left_text)
    right_is_xml = looks_like_xml(right_text)
    if not left_is_xml or not right_is_xml:
        return _parse_error_result(_side_message(
            not left_is_xml, not right_is_xml,
            "Inputs do not appear to be valid XML. Please check your XML syntax.",
            "Left input does not appear to be valid XML. Please check your XML syntax.",
            "Right input does not appear to be valid XML. Please check your XML syntax.",
        ))

    try:
        left_root = right_root = None
        left_error = right_error = None
        try:
            left_root = parse_xml(left_text)
        except XmlParseError as e:
            e.side = "left"
            left_error = e
        try:
            right_root = parse_xml(right_text)
        except XmlParseError as e:
            e.side = "right"
            right_error = e

        if left_error or right_error:
            logger.debug("XML parse failure: left=%s right=%s", left_error, right_error)
            return _parse_error_result(_side_message(
                left_error is not None, right_error is not None,
                "Both XML inputs are not valid. Please correct tag errors before comparing.",
                f"Left XML is not valid (line {getattr(left_error, 'line', '?')}). "
                "Please correct tag errors before comparing.",
                f"Right XML is not valid (line {getattr(right_error, 'line', '?')}). "
                "Please correct tag errors before comparing.",
            ))

        left_canonical = canonicalize_xml(left_root, options)
        right_canonical = canonicalize_xml(right_root, options)

        left_lines = _display_lines(left_text, left_canonical, options)
        right_lines = _display_lines(right_text, right_canonical, options)

        differences = diff_xml_elements(left_canonical, right_canonical, options)
        reconciler = LineReconciler(
            options,
            differences,
            left_map=create_line_number_map(split_lines(left_text), left_lines),
            right_map=create_line_number_map(split_lines(right_text), right_lines),
        )
        diff_lines = reconciler.reconcile(left_lines, right_lines)
    except Exception as e:
        logger.exception("XML comparison failed")
        return _parse_error_result(f"Error comparing XML: {e}")

    added, removed, modified = count_line_types(diff_lines)
    changed = added + removed + modified

    logger.debug(
        "XML comparison: %d differences, +%d -%d ~%d lines",
        len(differences), added, removed, modified
    )

    return CompareResult(
        are_equal=not differences and changed == 0,
        differences=differences,
        differences_count=changed if changed else len(differences),
        diff_lines=diff_lines,
        added_count=added,
        removed_count=removed,
        modified_count=modified,
    )
