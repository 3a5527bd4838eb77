"""Example usage of canondiff comparison engine."""

import json
from canondiff import (
    ComparisonEngine,
    ComparisonOptions,
    EngineConfig,
    AlignmentStrategy,
    CompareResult,
)

# Old API response (legacy system)
old_invoice = """{
  "id": "INV-001",
  "status": "PAID",
  "description": "  Test   Invoice ",
  "lineItems": [
    {"sku": "WIDGET-001", "quantity": 5},
    {"sku": "GADGET-002", "quantity": 2}
  ]
}"""

# New API response (new system): keys reordered, case and spacing differ
new_invoice = """{
  "lineItems": [
    {"quantity": 2, "sku": "GADGET-002"},
    {"quantity": 5, "sku": "WIDGET-001"}
  ],
  "description": "test invoice",
  "status": "paid",
  "id": "INV-001",
  "currency": "EUR"
}"""

old_order = """<?xml version="1.0" encoding="UTF-8"?>
<order id="42" status="open">
  <customer>Ada</customer>
  <item sku="A1">Widget</item>
</order>"""

new_order = """<?xml version="1.0" encoding="UTF-8"?>
<order status="open" id="42">
  <item sku="A1">Widget</item>
  <customer>Ada Lovelace</customer>
</order>"""


def print_result(result):
    if not isinstance(result, CompareResult):
        # Error - ErrorResponse
        print(f"\nError: {result.error['code']}")
        print(f"Message: {result.error['message']}")
        print(f"Details: {result.error.get('details', {})}")
        return

    print(f"\nEqual: {result.are_equal}")
    if result.has_parse_error:
        print(f"Parse error: {result.parse_error_message}")

    print(f"\nSummary:")
    print(f"  Differences: {result.differences_count}")
    print(f"  Lines added: {result.added_count}")
    print(f"  Lines removed: {result.removed_count}")
    print(f"  Lines modified: {result.modified_count}")

    if result.differences:
        print(f"\nDifferences:")
        for diff in result.differences:
            print(f"  - [{diff.type.value}] {diff.path}")
            print(f"    {diff.message}")

    if result.changed_lines:
        print(f"\nChanged lines:")
        for line in result.changed_lines:
            print(f"  {line.display_line_number:>3} {line.type.value:<9} "
                  f"{line.left or '':<40} | {line.right or ''}")


def main():
    print("=" * 60)
    print("canondiff Comparison Engine - Example")
    print("=" * 60)

    engine = ComparisonEngine()

    options = ComparisonOptions(
        case_sensitive=False,
        ignore_whitespace=True,
        ignore_key_order=True,
        ignore_array_order=True,
    )
    result = engine.compare(old_invoice, new_invoice, "json", options)
    print_result(result)

    print("\n" + "-" * 60)
    print("Full JSON Report:")
    print(json.dumps(result.to_dict(), indent=2))


def example_xml():
    """Example that demonstrates XML reconciliation with reordered elements."""
    print("\n" + "=" * 60)
    print("XML Example")
    print("=" * 60)

    engine = ComparisonEngine()

    print("\nStrict order:")
    print_result(engine.compare(old_order, new_order, "xml"))

    print("\nIgnoring attribute and element order:")
    options = ComparisonOptions(ignore_attribute_order=True)
    print_result(engine.compare(old_order, new_order, "xml", options))


def example_text_words():
    """Example with word-level text comparison and the forward-scan aligner."""
    print("\n" + "=" * 60)
    print("Text Example (word mode)")
    print("=" * 60)

    config = EngineConfig(alignment=AlignmentStrategy.SCAN)
    engine = ComparisonEngine(config)

    result = engine.compare(
        "the quick brown fox\njumps over\nthe lazy dog",
        "the quick red fox\njumps over\nthe lazy dog",
        "text",
        mode="word",
    )
    print_result(result)

    for line in result.diff_lines:
        if line.left_words:
            words = ' '.join(f"{w.word}({w.type.value})" for w in line.left_words if w.word.strip())
            print(f"  left  {line.display_line_number}: {words}")


if __name__ == "__main__":
    main()
    example_xml()
    example_text_words()
