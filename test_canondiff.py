"""Tests for canondiff comparison engine."""

import logging

import pytest
from canondiff import (
    AlignmentStrategy,
    ChangeType,
    CompareResult,
    ComparisonEngine,
    ComparisonOptions,
    DifferenceType,
    EngineConfig,
    ErrorResponse,
    LogLevel,
    TextCompareMode,
    WordDiff,
    compare,
    compare_json,
    compare_text,
    compare_xml,
    validate_json,
    validate_xml,
)
from canondiff.aligner import AlignedPair, align, merge_modified, scan_align
from canondiff.json_compare import canonicalize_json, parse_json
from canondiff.exceptions import JsonParseError, XmlParseError
from canondiff.normalizer import Normalizer, normalize, normalize_key
from canondiff.utils import build_path, get_type_name
from canondiff.xml_compare import (
    create_line_number_map,
    extract_inner_text,
    extract_line_tag,
)
from canondiff.xml_tree import (
    canonicalize_xml,
    looks_like_xml,
    parse_xml,
    serialize_xml,
)


def assert_counts_consistent(result: CompareResult):
    changed = [d for d in result.diff_lines if d.type != ChangeType.UNCHANGED]
    assert result.added_count + result.removed_count + result.modified_count == len(changed)


class TestNormalizer:
    """Test value normalization."""

    def test_strict_options_leave_value_untouched(self):
        assert normalize("  Hello   World ", ComparisonOptions()) == "  Hello   World "

    def test_ignore_whitespace_collapses_and_trims(self):
        options = ComparisonOptions(ignore_whitespace=True)
        assert normalize("  Hello \t  World\n", options) == "Hello World"

    def test_ignore_whitespace_inside_quotes(self):
        options = ComparisonOptions(ignore_whitespace=True)
        assert normalize('"name":   "a    b"', options) == '"name": "a b"'

    def test_case_insensitive_lowercases(self):
        options = ComparisonOptions(case_sensitive=False)
        assert normalize("HeLLo", options) == "hello"

    def test_normalize_key(self):
        assert normalize_key("Name", True) == "Name"
        assert normalize_key("Name", False) == "name"

    def test_normalizer_word_ignores_whitespace_policy(self):
        normalizer = Normalizer(ComparisonOptions(case_sensitive=False, ignore_whitespace=True))
        assert normalizer.word("WORD") == "word"
        assert normalizer.value("  A  B ") == "a b"


class TestComparisonOptions:
    """Test option parsing."""

    def test_defaults_are_strict(self):
        options = ComparisonOptions()
        assert options.case_sensitive is True
        assert options.ignore_whitespace is False
        assert options.ignore_key_order is False
        assert options.ignore_array_order is False
        assert options.ignore_attribute_order is False

    def test_from_dict_accepts_camel_case(self):
        options = ComparisonOptions.from_dict({"ignoreKeyOrder": True, "case_sensitive": False})
        assert options.ignore_key_order is True
        assert options.case_sensitive is False

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ValueError):
            ComparisonOptions.from_dict({"ignoreEverything": True})

    def test_from_dict_parses_boolean_strings(self):
        options = ComparisonOptions.from_dict({"ignoreKeyOrder": "false", "ignore_whitespace": "True"})
        assert options.ignore_key_order is False
        assert options.ignore_whitespace is True

    def test_from_dict_rejects_non_boolean_values(self):
        with pytest.raises(ValueError):
            ComparisonOptions.from_dict({"caseSensitive": "no"})
        with pytest.raises(ValueError):
            ComparisonOptions.from_dict({"caseSensitive": 0})

    def test_xml_order_flag_combines_key_and_attribute_order(self):
        assert ComparisonOptions(ignore_attribute_order=True).ignore_xml_order is True
        assert ComparisonOptions(ignore_key_order=True).ignore_xml_order is True
        assert ComparisonOptions().ignore_xml_order is False

    def test_to_dict_round_trips(self):
        options = ComparisonOptions(ignore_whitespace=True)
        assert ComparisonOptions.from_dict(options.to_dict()) == options


class TestUtils:
    """Test path and type helpers."""

    def test_type_names(self):
        assert get_type_name(None) == "null"
        assert get_type_name(True) == "boolean"
        assert get_type_name(1) == "number"
        assert get_type_name(1.5) == "number"
        assert get_type_name("x") == "string"
        assert get_type_name([]) == "array"
        assert get_type_name({}) == "object"

    def test_build_path(self):
        assert build_path("", "a") == "a"
        assert build_path("a", "b") == "a.b"
        assert build_path("a", 0) == "a[0]"
        assert build_path("a", "my key") == "a['my key']"


class TestAligner:
    """Test LCS alignment."""

    def test_identical_sequences(self):
        pairs = align(["a", "b"], ["a", "b"])
        assert [p.type for p in pairs] == [ChangeType.UNCHANGED, ChangeType.UNCHANGED]

    def test_substitution_becomes_modified(self):
        pairs = align(["a", "b", "c"], ["a", "b", "d"])
        assert [p.type for p in pairs] == [
            ChangeType.UNCHANGED, ChangeType.UNCHANGED, ChangeType.MODIFIED
        ]
        assert pairs[2].left == "c"
        assert pairs[2].right == "d"
        assert pairs[2].left_index == 2
        assert pairs[2].right_index == 2

    def test_removed_line(self):
        pairs = align(["a", "b"], ["b"])
        assert [p.type for p in pairs] == [ChangeType.REMOVED, ChangeType.UNCHANGED]
        assert pairs[0].left == "a"
        assert pairs[0].right_index is None

    def test_added_line(self):
        pairs = align(["b"], ["a", "b"])
        assert [p.type for p in pairs] == [ChangeType.ADDED, ChangeType.UNCHANGED]

    def test_empty_sides(self):
        assert [p.type for p in align([], ["x"])] == [ChangeType.ADDED]
        assert [p.type for p in align(["x"], [])] == [ChangeType.REMOVED]
        assert align([], []) == []

    def test_custom_equality(self):
        pairs = align(["A"], ["a"], equals=lambda x, y: x.lower() == y.lower())
        assert pairs[0].type == ChangeType.UNCHANGED
        assert pairs[0].left == "A"
        assert pairs[0].right == "a"

    def test_merge_only_adjacent_removed_then_added(self):
        pairs = [
            AlignedPair(type=ChangeType.REMOVED, left_index=0, left="x"),
            AlignedPair(type=ChangeType.REMOVED, left_index=1, left="y"),
            AlignedPair(type=ChangeType.ADDED, right_index=0, right="z"),
        ]
        merged = merge_modified(pairs)
        assert [p.type for p in merged] == [ChangeType.REMOVED, ChangeType.MODIFIED]
        assert merged[1].left == "y"
        assert merged[1].right == "z"

    def test_added_then_removed_is_not_merged(self):
        pairs = [
            AlignedPair(type=ChangeType.ADDED, right_index=0, right="z"),
            AlignedPair(type=ChangeType.REMOVED, left_index=0, left="x"),
        ]
        assert [p.type for p in merge_modified(pairs)] == [ChangeType.ADDED, ChangeType.REMOVED]


class TestScanAligner:
    """Test the forward-scan heuristic."""

    def test_identical_sequences(self):
        pairs = scan_align(["a", "b", "c"], ["a", "b", "c"])
        assert all(p.type == ChangeType.UNCHANGED for p in pairs)

    def test_insertion(self):
        pairs = scan_align(["a", "b", "c"], ["a", "x", "b", "c"])
        assert [p.type for p in pairs] == [
            ChangeType.UNCHANGED, ChangeType.ADDED, ChangeType.UNCHANGED, ChangeType.UNCHANGED
        ]
        assert pairs[1].right == "x"

    def test_deletion(self):
        pairs = scan_align(["a", "x", "b", "c"], ["a", "b", "c"])
        assert [p.type for p in pairs] == [
            ChangeType.UNCHANGED, ChangeType.REMOVED, ChangeType.UNCHANGED, ChangeType.UNCHANGED
        ]

    def test_near_end_resolves_to_removed_and_added(self):
        pairs = scan_align(["a", "b"], ["a", "c"])
        assert [p.type for p in pairs] == [
            ChangeType.UNCHANGED, ChangeType.REMOVED, ChangeType.ADDED
        ]

    def test_locally_similar_change_is_modified(self):
        tail = ["s1", "s2", "s3", "s4", "s5"]
        pairs = scan_align(["x", "p"] + tail, ["x", "q"] + tail)
        assert pairs[1].type == ChangeType.MODIFIED
        assert pairs[1].left == "p"
        assert pairs[1].right == "q"
        assert all(p.type == ChangeType.UNCHANGED for p in pairs[2:])


class TestJsonParsing:
    """Test strict JSON parsing and canonicalization."""

    def test_integral_float_collapses_to_int(self):
        assert parse_json('{"a": 1.0}') == {"a": 1}
        assert isinstance(parse_json("2.0"), int)

    def test_nan_is_rejected(self):
        with pytest.raises(JsonParseError):
            parse_json('{"a": NaN}')

    def test_parse_error_has_position(self):
        with pytest.raises(JsonParseError) as exc_info:
            parse_json('{\n  "a": \n}')
        assert exc_info.value.line == 3

    def test_canonicalize_sorts_keys_when_ignoring_order(self):
        options = ComparisonOptions(ignore_key_order=True)
        canonical = canonicalize_json({"b": 1, "a": 2}, options)
        assert list(canonical.keys()) == ["a", "b"]

    def test_canonicalize_keeps_key_order_by_default(self):
        canonical = canonicalize_json({"b": 1, "a": 2}, ComparisonOptions())
        assert list(canonical.keys()) == ["b", "a"]

    def test_canonicalize_folds_key_case_first_wins(self):
        options = ComparisonOptions(case_sensitive=False)
        canonical = canonicalize_json({"Name": "X", "name": "y"}, options)
        assert canonical == {"name": "x"}

    def test_canonicalize_does_not_mutate_input(self):
        value = {"b": [3, 1, 2], "a": "X"}
        canonicalize_json(value, ComparisonOptions(ignore_key_order=True, ignore_array_order=True))
        assert value == {"b": [3, 1, 2], "a": "X"}

    def test_canonicalization_is_idempotent(self):
        options = ComparisonOptions(
            case_sensitive=False,
            ignore_whitespace=True,
            ignore_key_order=True,
            ignore_array_order=True,
        )
        value = {"B": [{"y": " Q  r"}, 2, "a"], "a": {"Z": None, "c": True}}
        once = canonicalize_json(value, options)
        assert canonicalize_json(once, options) == once


class TestJsonComparison:
    """Test JSON comparison results."""

    def test_reflexive(self):
        text = '{"a": [1, 2, {"b": null}], "c": "x"}'
        for options in (
            ComparisonOptions(),
            ComparisonOptions(case_sensitive=False, ignore_whitespace=True),
            ComparisonOptions(ignore_key_order=True, ignore_array_order=True),
        ):
            result = compare_json(text, text, options)
            assert result.are_equal is True
            assert result.differences == []
            assert result.changed_lines == []

    def test_key_order_ignored(self):
        result = compare_json('{"a":1,"b":2}', '{"b":2,"a":1}', ComparisonOptions(ignore_key_order=True))
        assert result.are_equal is True

    def test_key_order_only_change_is_not_equal(self):
        result = compare_json('{"a":1,"b":2}', '{"b":2,"a":1}', ComparisonOptions())
        assert result.are_equal is False
        assert result.differences == []
        assert result.changed_lines

    def test_whitespace_ignored(self):
        result = compare_json('{"a": "x  y"}', '{"a":"x y"}', ComparisonOptions(ignore_whitespace=True))
        assert result.are_equal is True

    def test_whitespace_significant_by_default(self):
        result = compare_json('{"a": "x  y"}', '{"a":"x y"}')
        assert result.are_equal is False
        assert result.differences[0].type == DifferenceType.MODIFIED
        assert result.differences[0].path == "a"

    def test_case_insensitive_keys_and_values(self):
        result = compare_json('{"Name": "ADA"}', '{"name": "ada"}', ComparisonOptions(case_sensitive=False))
        assert result.are_equal is True

    def test_array_order_ignored(self):
        result = compare_json('[1, 2, 3]', '[3, 2, 1]', ComparisonOptions(ignore_array_order=True))
        assert result.are_equal is True

    def test_array_order_significant_by_default(self):
        result = compare_json('[1, 2, 3]', '[3, 2, 1]')
        assert result.are_equal is False
        assert [d.path for d in result.differences] == ["[0]", "[2]"]

    def test_added_key_scenario(self):
        options = ComparisonOptions(ignore_key_order=True, case_sensitive=True, ignore_whitespace=False)
        result = compare_json('{"b":1,"a":2}', '{"a":2,"b":1,"c":3}', options)

        assert result.are_equal is False
        assert len(result.differences) == 1
        assert result.differences[0].type == DifferenceType.ADDED
        assert result.differences[0].path == "c"
        assert result.differences[0].new_value == 3
        assert result.added_count == 1
        assert result.removed_count == 0
        assert_counts_consistent(result)

    def test_removed_key(self):
        result = compare_json('{"a":1,"b":2}', '{"a":1}')
        assert result.differences[0].type == DifferenceType.REMOVED
        assert result.differences[0].path == "b"
        assert result.differences[0].old_value == 2

    def test_nested_value_change_path(self):
        result = compare_json('{"a":{"b":[1,2]}}', '{"a":{"b":[1,3]}}')
        assert len(result.differences) == 1
        diff = result.differences[0]
        assert diff.path == "a.b[1]"
        assert diff.old_value == 2
        assert diff.new_value == 3
        assert diff.message == "Value changed: 2 → 3"

    def test_quoted_path_segment(self):
        result = compare_json('{"a":{"my key":1}}', '{"a":{"my key":2}}')
        assert result.differences[0].path == "a['my key']"

    def test_type_change(self):
        result = compare_json('{"a":1}', '{"a":"1"}')
        assert result.differences[0].type == DifferenceType.MODIFIED
        assert result.differences[0].message == "Type changed: number → string"

    def test_null_to_value_is_added(self):
        result = compare_json('{"a":null}', '{"a":1}')
        assert result.differences[0].type == DifferenceType.ADDED

    def test_integral_float_equals_int(self):
        assert compare_json('{"a":1.0}', '{"a":1}').are_equal is True

    def test_array_length_change(self):
        result = compare_json('[1]', '[1, 2]')
        assert result.differences[0].type == DifferenceType.ADDED
        assert result.differences[0].path == "[1]"

    def test_display_lines_are_numbered(self):
        result = compare_json('{"a":1}', '{"a":2}')
        assert [d.display_line_number for d in result.diff_lines] == list(
            range(1, len(result.diff_lines) + 1)
        )
        modified = result.changed_lines
        assert len(modified) == 1
        assert modified[0].left == '  "a": 1'
        assert modified[0].right == '  "a": 2'
        assert modified[0].left_line_number == 2

    def test_left_parse_error(self):
        result = compare_json('{"a":', '{"a":1}')
        assert result.has_parse_error is True
        assert result.are_equal is False
        assert result.parse_error_message.startswith("Left input contains invalid JSON")
        assert result.diff_lines
        assert result.differences_count == 1

    def test_both_parse_errors(self):
        result = compare_json('{', '[')
        assert result.parse_error_message.startswith("Both inputs contain invalid JSON")

    def test_empty_inputs_fall_back_to_single_line(self):
        result = compare_json('', '')
        assert result.has_parse_error is True
        assert len(result.diff_lines) == 1
        assert result.diff_lines[0].type == ChangeType.MODIFIED
        assert result.diff_lines[0].left == ' '
        assert result.modified_count == 1

    def test_to_dict_uses_camel_case(self):
        data = compare_json('{"a":1}', '{"a":2}').to_dict()
        assert data["areEqual"] is False
        assert data["differencesCount"] == 1
        assert data["diffLines"][0]["lineNumber"] == 1
        assert data["differences"][0]["oldValue"] == 1


class TestXmlTree:
    """Test XML parsing, canonicalization and serialization."""

    def test_looks_like_xml(self):
        assert looks_like_xml('<?xml version="1.0"?><a/>') is True
        assert looks_like_xml('  <root>') is True
        assert looks_like_xml('{"a": "<b>"}') is False
        assert looks_like_xml('hello') is False
        assert looks_like_xml('text before <a>tag</a>') is True

    def test_parse_builds_tree(self):
        root = parse_xml('<?xml version="1.0"?><a x="1"><b>hi</b><c/></a>')
        assert root.tag == "a"
        assert root.attributes == {"x": "1"}
        assert [child.tag for child in root.children] == ["b", "c"]
        assert root.children[0].text == "hi"
        assert root.children[1].text is None

    def test_parse_keeps_attribute_order(self):
        root = parse_xml('<a y="2" x="1"/>')
        assert list(root.attributes.keys()) == ["y", "x"]

    def test_parse_drops_comments(self):
        root = parse_xml('<a><!-- note --><b>1</b></a>')
        assert [child.tag for child in root.children] == ["b"]

    def test_parse_keeps_namespace_prefix(self):
        root = parse_xml('<ns:a xmlns:ns="urn:x"><ns:b>1</ns:b></ns:a>')
        assert root.tag == "ns:a"
        assert root.attributes == {"xmlns:ns": "urn:x"}
        assert root.children[0].tag == "ns:b"

    def test_default_namespace_shadows_prefixed_binding(self):
        root = parse_xml('<r xmlns:p="urn:x"><x xmlns="urn:x">1</x></r>')
        assert root.children[0].tag == "x"
        assert root.children[0].attributes == {"xmlns": "urn:x"}

    def test_each_element_keeps_its_own_prefix_for_a_shared_uri(self):
        root = parse_xml('<r xmlns:a="urn:x"><b:y xmlns:b="urn:x"/><a:y/></r>')
        assert [child.tag for child in root.children] == ["b:y", "a:y"]

    def test_redeclared_prefix_resolves_to_innermost_binding(self):
        root = parse_xml(
            '<r xmlns:p="urn:x" xmlns:q="urn:x">'
            '<s xmlns:p="urn:y"><p:z/><q:w/></s>'
            '</r>'
        )
        assert [child.tag for child in root.children[0].children] == ["p:z", "q:w"]

    def test_prefixed_attribute_ignores_default_namespace(self):
        root = parse_xml('<r xmlns="urn:x" xmlns:a="urn:x" a:k="1"/>')
        assert root.tag == "r"
        assert root.attributes["a:k"] == "1"

    def test_parse_error_has_position(self):
        with pytest.raises(XmlParseError) as exc_info:
            parse_xml('<a>\n<b></a>')
        assert exc_info.value.line == 2

    def test_serialize_is_indented(self):
        root = parse_xml('<a x="1"><b>hi &amp; bye</b><c/></a>')
        assert serialize_xml(root, ComparisonOptions()) == (
            '<a x="1">\n'
            '  <b>hi &amp; bye</b>\n'
            '  <c></c>\n'
            '</a>'
        )

    def test_canonicalize_sorts_when_ignoring_order(self):
        root = parse_xml('<r b="2" a="1"><z/><y/></r>')
        canonical = canonicalize_xml(root, ComparisonOptions(ignore_attribute_order=True))
        assert list(canonical.attributes.keys()) == ["a", "b"]
        assert [child.tag for child in canonical.children] == ["y", "z"]

    def test_canonicalize_returns_fresh_tree(self):
        root = parse_xml('<R><B/><A/></R>')
        canonical = canonicalize_xml(root, ComparisonOptions(case_sensitive=False, ignore_key_order=True))
        assert canonical.tag == "r"
        assert root.tag == "R"
        assert [child.tag for child in root.children] == ["B", "A"]

    def test_canonicalization_is_idempotent(self):
        options = ComparisonOptions(case_sensitive=False, ignore_whitespace=True, ignore_key_order=True)
        root = parse_xml('<R b=" 2  x" a="1"><Z>  t   u </Z><y/></R>')
        once = canonicalize_xml(root, options)
        assert canonicalize_xml(once, options) == once

    def test_line_helpers(self):
        assert extract_line_tag('  <name id="1">x</name>') == "name"
        assert extract_line_tag('</name>') is None
        assert extract_line_tag('<ns:item>') == "ns:item"
        assert extract_inner_text('  <name>Ada</name>') == "Ada"
        assert extract_inner_text('<name/>') == ""
        assert extract_inner_text('<name>') == ""

    def test_line_number_map_consumes_repeats_in_order(self):
        original = ['<?xml version="1.0"?>', '<r>', '  <a>1</a>', '', '  <a>1</a>', '</r>']
        display = ['<?xml version="1.0"?>', '<r>', '  <a>1</a>', '  <a>1</a>', '</r>']
        mapping = create_line_number_map(original, display)
        assert mapping == {2: 2, 3: 3, 4: 5, 5: 6}


class TestXmlComparison:
    """Test XML comparison results."""

    def test_reflexive(self):
        text = (
            '<?xml version="1.0"?>\n'
            '<root>\n'
            '  <item id="1">A</item>\n'
            '  <item id="2">B</item>\n'
            '</root>'
        )
        for options in (
            ComparisonOptions(),
            ComparisonOptions(ignore_key_order=True),
            ComparisonOptions(case_sensitive=False, ignore_whitespace=True),
        ):
            result = compare_xml(text, text, options)
            assert result.are_equal is True
            assert result.changed_lines == []

    def test_identical_child_under_different_prefix_scope(self):
        result = compare_xml(
            '<r xmlns:p="urn:x"><x xmlns="urn:x">1</x></r>',
            '<r><x xmlns="urn:x">1</x></r>'
        )
        assert [d.message for d in result.differences] == ['Attribute removed: xmlns:p="urn:x"']
        changed = [d for d in result.diff_lines if d.type != ChangeType.UNCHANGED]
        assert all("<x" not in (d.left or "") + (d.right or "") for d in changed)

    def test_attribute_order_only_change(self):
        result = compare_xml('<a x="1" y="2"/>', '<a y="2" x="1"/>', ComparisonOptions(ignore_attribute_order=False))
        assert result.are_equal is False
        assert len(result.differences) == 1
        diff = result.differences[0]
        assert diff.type == DifferenceType.ATTRIBUTE_CHANGED
        assert diff.attribute == "attribute_order"

    def test_attribute_order_ignored(self):
        result = compare_xml('<a x="1" y="2"/>', '<a y="2" x="1"/>', ComparisonOptions(ignore_attribute_order=True))
        assert result.are_equal is True
        assert result.differences == []

    def test_attribute_value_change(self):
        result = compare_xml('<r><a id="1">x</a></r>', '<r><a id="2">x</a></r>')
        assert len(result.differences) == 1
        diff = result.differences[0]
        assert diff.type == DifferenceType.ATTRIBUTE_CHANGED
        assert diff.path == "/r/a[0]"
        assert diff.attribute == "id"
        assert diff.old_value == "1"
        assert diff.new_value == "2"
        assert result.modified_count == 1
        assert result.differences_count == 1
        assert_counts_consistent(result)

    def test_attribute_added_and_removed(self):
        result = compare_xml('<a x="1"/>', '<a y="1"/>')
        types = sorted(d.type.value for d in result.differences)
        assert types == ["added", "removed"]

    def test_text_change(self):
        result = compare_xml('<r><name>Ada</name></r>', '<r><name>Grace</name></r>')
        assert result.differences[0].type == DifferenceType.MODIFIED
        assert result.differences[0].old_value == "Ada"
        assert result.differences[0].new_value == "Grace"
        assert len(result.changed_lines) == 1
        assert result.changed_lines[0].type == ChangeType.MODIFIED

    def test_added_element(self):
        result = compare_xml('<r><a>1</a></r>', '<r><a>1</a><b>2</b></r>')
        assert result.are_equal is False
        assert len(result.differences) == 1
        assert result.differences[0].type == DifferenceType.ADDED
        assert result.differences[0].path == "/r/b[1]"
        assert result.added_count == 1
        assert result.removed_count == 0
        assert [d.right for d in result.diff_lines] == ['<r>', '  <a>1</a>', '  <b>2</b>', '</r>']
        assert result.diff_lines[2].type == ChangeType.ADDED
        assert [d.display_line_number for d in result.diff_lines] == [1, 2, 3, 4]

    def test_removed_subtree_reports_descendants(self):
        result = compare_xml('<r><a><b>1</b></a></r>', '<r/>')
        paths = [d.path for d in result.differences if d.type == DifferenceType.REMOVED]
        assert paths == ["/r/a[0]", "/r/a[0]/b[0]"]
        assert result.removed_count == 4
        assert_counts_consistent(result)

    def test_renamed_element(self):
        result = compare_xml('<r><a/></r>', '<r><b/></r>')
        assert result.differences[0].type == DifferenceType.MODIFIED
        assert result.differences[0].old_value == "a"
        assert result.differences[0].new_value == "b"

    def test_reordered_children_ignored(self):
        result = compare_xml(
            '<r><a>1</a><b>2</b></r>',
            '<r><b>2</b><a>1</a></r>',
            ComparisonOptions(ignore_key_order=True)
        )
        assert result.are_equal is True

    def test_reordered_children_reconciled_by_tag(self):
        result = compare_xml('<r><a>1</a><b>2</b></r>', '<r><b>2</b><a>1</a></r>')
        assert result.are_equal is False
        assert result.differences
        # Lines pair up by tag and text, so no display line is changed
        assert result.changed_lines == []
        assert result.differences_count == len(result.differences)

    def test_case_insensitive(self):
        result = compare_xml('<Root><Name>ADA</Name></Root>', '<root><name>ada</name></root>',
                             ComparisonOptions(case_sensitive=False))
        assert result.are_equal is True

    def test_whitespace_insensitive(self):
        result = compare_xml('<r><a>x   y</a></r>', '<r>\n  <a> x y </a>\n</r>',
                             ComparisonOptions(ignore_whitespace=True))
        assert result.are_equal is True

    def test_line_numbers_map_back_to_original(self):
        left = '<r>\n  <a>1</a>\n  <b>2</b>\n</r>'
        right = '<r>\n\n  <a>1</a>\n  <b>3</b>\n</r>'
        result = compare_xml(left, right)
        changed = result.changed_lines
        assert len(changed) == 1
        assert changed[0].left_line_number == 3
        # "<b>3</b>" sits on line 4 of the right input
        assert changed[0].right_line_number == 4

    def test_declaration_is_displayed(self):
        text = '<?xml version="1.0"?>\n<a>1</a>'
        result = compare_xml(text, '<?xml version="1.0"?>\n<a>2</a>')
        assert result.diff_lines[0].left == '<?xml version="1.0"?>'
        assert result.diff_lines[0].type == ChangeType.UNCHANGED

    def test_not_xml(self):
        result = compare_xml('hello', '<a/>')
        assert result.has_parse_error is True
        assert result.parse_error_message.startswith("Left input does not appear to be valid XML")
        assert result.diff_lines == []

    def test_malformed_right(self):
        result = compare_xml('<a/>', '<a><b></a>')
        assert result.has_parse_error is True
        assert result.are_equal is False
        assert result.parse_error_message.startswith("Right XML is not valid")
        assert result.diff_lines == []
        assert result.differences[0].path == "root"

    def test_both_malformed(self):
        result = compare_xml('<a><b></a>', '<a><c></a>')
        assert result.parse_error_message.startswith("Both XML inputs are not valid")


class TestTextComparison:
    """Test plain-text comparison."""

    def test_reflexive(self):
        text = "alpha\nbeta\n\ngamma"
        assert compare_text(text, text).are_equal is True

    def test_case_insensitivity(self):
        assert compare_text("Hello", "hello", ComparisonOptions(case_sensitive=False)).are_equal is True
        assert compare_text("Hello", "hello", ComparisonOptions(case_sensitive=True)).are_equal is False

    def test_whitespace_insensitivity(self):
        options = ComparisonOptions(ignore_whitespace=True)
        result = compare_text("a  b\nc", "a b \nc", options)
        assert result.are_equal is True
        # Original text is kept for display
        assert result.diff_lines[0].left == "a  b"

    def test_crlf_line_breaks(self):
        assert compare_text("a\r\nb", "a\nb").are_equal is True

    def test_modified_line(self):
        result = compare_text("line1\nline2", "line1\nline2x")
        assert [d.type for d in result.diff_lines] == [ChangeType.UNCHANGED, ChangeType.MODIFIED]
        assert result.diff_lines[1].left == "line2"
        assert result.diff_lines[1].right == "line2x"
        assert result.modified_count == 1
        assert result.differences[0].path == "line 2"
        assert result.diff_lines[1].left_words is None

    def test_word_mode_isolates_changed_token(self):
        result = compare_text("line1\nline2", "line1\nline2x", mode=TextCompareMode.WORD)
        pair = result.diff_lines[1]
        assert pair.type == ChangeType.MODIFIED
        assert pair.left_words == [WordDiff(word="line2", type=ChangeType.MODIFIED)]
        assert pair.right_words == [WordDiff(word="line2x", type=ChangeType.MODIFIED)]
        assert result.diff_lines[0].left_words == [WordDiff(word="line1", type=ChangeType.UNCHANGED)]
        assert result.modified_count == 1

    def test_word_mode_inside_sentence(self):
        result = compare_text("the quick brown fox", "the quick red fox", mode=TextCompareMode.WORD)
        words = [w for w in result.diff_lines[0].left_words if w.word.strip()]
        assert [w.type for w in words] == [
            ChangeType.UNCHANGED, ChangeType.UNCHANGED, ChangeType.MODIFIED, ChangeType.UNCHANGED
        ]
        assert words[2].word == "brown"

    def test_word_mode_unpaired_line(self):
        result = compare_text("x\na b", "x", mode=TextCompareMode.WORD)
        removed = result.diff_lines[1]
        assert removed.type == ChangeType.REMOVED
        assert all(w.type == ChangeType.REMOVED for w in removed.left_words)
        assert removed.right_words == []

    def test_added_and_removed_counts(self):
        result = compare_text("a\nb\nc", "a\nc\nd")
        assert result.added_count == 1
        assert result.removed_count == 1
        assert_counts_consistent(result)

    def test_scan_alignment(self):
        config = EngineConfig(alignment=AlignmentStrategy.SCAN)
        result = compare_text("a\nb\nc", "a\nx\nb\nc", config=config)
        assert [d.type for d in result.diff_lines] == [
            ChangeType.UNCHANGED, ChangeType.ADDED, ChangeType.UNCHANGED, ChangeType.UNCHANGED
        ]
        assert result.diff_lines[1].right_line_number == 2

    def test_never_parse_error(self):
        result = compare_text("{not json", "<not xml")
        assert result.has_parse_error is False


class TestValidator:
    """Test single document validation."""

    def test_empty_input(self):
        assert validate_json("   ").error == "Input is empty"
        assert validate_xml("").error == "Input is empty"

    def test_valid_json_is_formatted(self):
        result = validate_json('{"a":1}')
        assert result.is_valid is True
        assert result.formatted == '{\n  "a": 1\n}'

    def test_invalid_json_reports_position(self):
        result = validate_json('{"a":1,}')
        assert result.is_valid is False
        assert result.error.startswith("Trailing comma")
        assert result.line == 1

    def test_valid_xml_keeps_declaration(self):
        result = validate_xml('<?xml version="1.0"?><a><b>1</b></a>')
        assert result.is_valid is True
        assert result.formatted == '<?xml version="1.0"?>\n<a>\n  <b>1</b>\n</a>'

    def test_invalid_xml(self):
        result = validate_xml('<a><b></a>')
        assert result.is_valid is False
        assert result.line == 1


class TestEngine:
    """Test the engine facade."""

    def setup_method(self):
        self.engine = ComparisonEngine()

    def test_dispatch_by_format_name(self):
        assert self.engine.compare('{"a":1}', '{"a":1}', "JSON").are_equal is True
        assert self.engine.compare('<a/>', '<a/>', "xml").are_equal is True
        assert self.engine.compare('x', 'x', "text").are_equal is True

    def test_word_mode_by_name(self):
        result = self.engine.compare("a b", "a c", "text", mode="word")
        assert result.diff_lines[0].left_words is not None

    def test_unknown_format(self):
        result = self.engine.compare("a", "b", "yaml")
        assert isinstance(result, ErrorResponse)
        assert result.error["code"] == "VALIDATION_ERROR"

    def test_missing_input(self):
        result = self.engine.compare(None, "b", "text")
        assert result.error["code"] == "VALIDATION_ERROR"

    def test_non_string_input(self):
        result = self.engine.compare({"a": 1}, "{}", "json")
        assert result.error["code"] == "VALIDATION_ERROR"
        assert result.error["details"]["type"] == "dict"

    def test_input_size_limit(self):
        engine = ComparisonEngine(EngineConfig(max_input_size_mb=0.001))
        result = engine.compare("x" * 2048, "x", "text")
        assert isinstance(result, ErrorResponse)
        assert result.error["code"] == "INPUT_SIZE_ERROR"
        assert result.error["details"]["side"] == "left"
        assert result.to_dict()["success"] is False

    def test_validate(self):
        assert self.engine.validate('{"a":1}', "json").is_valid is True
        assert self.engine.validate('<a>', "xml").is_valid is False
        assert self.engine.validate('x', "csv").error["code"] == "VALIDATION_ERROR"

    def test_validate_text_normalizes_line_endings(self):
        result = self.engine.validate('a\r\nb\n', "text")
        assert result.is_valid is True
        assert result.formatted == 'a\nb\n'

    def test_log_level_applies_to_package_logger(self):
        ComparisonEngine(EngineConfig(log_level=LogLevel.DEBUG))
        assert logging.getLogger("canondiff").level == logging.DEBUG
        ComparisonEngine(EngineConfig(log_level=LogLevel.WARN))
        assert logging.getLogger("canondiff").level == logging.WARNING

    def test_module_level_compare(self):
        result = compare('{"a":1}', '{"a":2}', "json")
        assert result.are_equal is False
        assert result.differences_count == 1
