"""XML element trees: parsing, canonicalization and serialization."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Optional
from xml.sax.saxutils import escape

from .exceptions import XmlParseError
from .models import ComparisonOptions
from .normalizer import normalize, normalize_key

_DECLARATION = re.compile(r'^\s*<\?xml[^>]*\?>\s*')
_OPENING_TAG = re.compile(r'^<\w+')
_ANY_TAG = re.compile(r'<\w+[^>]*>')
_QNAME = re.compile(r'^\{([^}]*)\}(.*)$')
_ATTR_ENTITIES = {'"': '&quot;'}
_XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

INDENT = "  "


@dataclass
class XmlElement:
    """A parsed XML element; attribute insertion order is preserved."""
    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: list['XmlElement'] = field(default_factory=list)
    text: Optional[str] = None


def looks_like_xml(text: str) -> bool:
    """Cheap check that text is XML rather than JSON or prose."""
    trimmed = text.strip()
    if trimmed.startswith('<?xml'):
        return True
    if _OPENING_TAG.match(trimmed):
        return True
    if trimmed.startswith('{') or trimmed.startswith('['):
        return False
    return bool(_ANY_TAG.search(trimmed))


def extract_declaration(text: str) -> tuple[str, str]:
    """Split a leading XML declaration from the document body."""
    match = _DECLARATION.match(text)
    if match:
        return match.group(0).strip(), text[match.end():]
    return '', text


def parse_xml(text: str) -> XmlElement:
    """
    Parse XML text into an XmlElement tree.

    Comments and processing instructions are dropped. Namespaced names
    keep the prefix they were written with, and namespace declarations
    are restored as xmlns attributes so the tree serializes back to what
    the author wrote.

    Raises:
        XmlParseError: if the text is not well-formed XML
    """
    _, body = extract_declaration(text)
    # Keep line numbers of reported errors relative to the original text
    body = '\n' * text[:len(text) - len(body)].count('\n') + body

    # Syntax errors hit during feed() are queued and raised by read_events()
    parser = ET.XMLPullParser(events=("start-ns", "start", "end"))
    try:
        parser.feed(body)
        events = list(parser.read_events())
        parser.close()
        events.extend(parser.read_events())
    except ET.ParseError as e:
        line, column = e.position
        raise XmlParseError(str(e), line=line, column=column) from e

    scopes: list[list[tuple[str, str]]] = []
    names: dict[ET.Element, tuple[str, list[tuple[str, str]], dict[str, str]]] = {}
    pending: list[tuple[str, str]] = []
    root = None

    for event, payload in events:
        if event == "start-ns":
            pending.append(payload)
        elif event == "start":
            if root is None:
                root = payload
            scopes.append(pending)
            pending = []
            names[payload] = (
                _qualified(payload.tag, scopes, attribute=False),
                scopes[-1],
                {name: _qualified(name, scopes, attribute=True) for name in payload.attrib},
            )
        else:
            scopes.pop()

    if root is None:
        raise XmlParseError("no element found")

    return _build_tree(root, names)


def _qualified(name: str, scopes: list[list[tuple[str, str]]], attribute: bool) -> str:
    """Resolve a {uri}local name against the innermost visible prefix binding."""
    match = _QNAME.match(name)
    if not match:
        return name
    uri, local = match.groups()
    if uri == _XML_NAMESPACE:
        return f"xml:{local}"

    shadowed = set()
    for scope in reversed(scopes):
        for prefix, bound in scope:
            if bound != uri or prefix in shadowed:
                continue
            # Unprefixed attributes never take the default namespace
            if attribute and not prefix:
                continue
            return f"{prefix}:{local}" if prefix else local
        shadowed.update(prefix for prefix, _ in scope)
    return local


def _build_tree(
    node: ET.Element,
    names: dict[ET.Element, tuple[str, list[tuple[str, str]], dict[str, str]]]
) -> XmlElement:
    tag, declared, attribute_names = names[node]
    element = XmlElement(tag=tag)

    for prefix, uri in declared:
        element.attributes[f"xmlns:{prefix}" if prefix else "xmlns"] = uri
    for name, value in node.attrib.items():
        element.attributes[attribute_names[name]] = value

    texts = []
    if node.text and node.text.strip():
        texts.append(node.text.strip())
    for child in node:
        element.children.append(_build_tree(child, names))
        if child.tail and child.tail.strip():
            texts.append(child.tail.strip())

    # Mixed content is not represented: text only survives on leaves.
    if texts and not element.children:
        element.text = ' '.join(texts)

    return element


def canonicalize_xml(element: XmlElement, options: ComparisonOptions) -> XmlElement:
    """
    Build the canonical form of an element tree.

    Always returns a fresh tree. Tag and attribute names are case-folded
    when not case_sensitive, attribute values and text are normalized,
    and with attribute/key order ignored both attributes and children are
    sorted (children stably, by normalized tag name).
    """
    ignore_order = options.ignore_xml_order

    names = list(element.attributes.keys())
    if ignore_order:
        names.sort(key=lambda k: normalize_key(k, options.case_sensitive))

    attributes = {}
    for name in names:
        key = normalize_key(name, options.case_sensitive)
        if key not in attributes:
            attributes[key] = normalize(element.attributes[name], options)

    children = [canonicalize_xml(child, options) for child in element.children]
    if ignore_order:
        children.sort(key=lambda child: normalize_key(child.tag, options.case_sensitive))

    return XmlElement(
        tag=normalize_key(element.tag, options.case_sensitive),
        attributes=attributes,
        children=children,
        text=normalize(element.text, options) if element.text else None,
    )


def serialize_xml(element: XmlElement, options: ComparisonOptions, indent: int = 0) -> str:
    """
    Serialize an element tree deterministically for display.

    Always pretty (2-space indentation) regardless of ignore_whitespace.
    Elements with children put each child on its own line; leaves carry
    their text inline. Attributes are emitted sorted only when order is
    ignored.
    """
    return '\n'.join(_serialize_lines(element, options, indent))


def _serialize_lines(element: XmlElement, options: ComparisonOptions, indent: int) -> list[str]:
    pad = INDENT * indent

    names = list(element.attributes.keys())
    if options.ignore_xml_order:
        names.sort()
    attrs = ''.join(
        f' {name}="{escape(element.attributes[name], _ATTR_ENTITIES)}"'
        for name in names
    )

    opening = f"{pad}<{element.tag}{attrs}>"
    closing = f"</{element.tag}>"

    if element.children:
        lines = [opening]
        for child in element.children:
            lines.extend(_serialize_lines(child, options, indent + 1))
        lines.append(pad + closing)
        return lines

    return [opening + escape(element.text or '') + closing]
