"""Map invoice XML onto plain dicts and lists.

Conventions:

- element names keep the namespace prefix they were written with
  (``rsm:CrossIndustryInvoice``)
- attributes are keyed ``@_<name>``; namespace declarations appear as
  ``@_xmlns`` / ``@_xmlns:<prefix>`` attributes
- text content of an element that also has attributes or children is
  keyed ``#text``; text between child elements is joined into it
- the XML declaration becomes a ``?xml`` entry with string attributes
- repeated sibling elements collapse into a list
- numeric text and attribute values become ``int`` / ``float``, except
  values with leading zeros, which stay strings
"""

import re
import xml.etree.ElementTree as ET
from typing import Any

from .exceptions import XmlMappingError

ATTRIBUTE_PREFIX = "@_"
TEXT_KEY = "#text"
DECLARATION_KEY = "?xml"

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

_INT_RE = re.compile(r"[+-]?(?:0|[1-9]\d*)")
_FLOAT_RE = re.compile(r"[+-]?(?:0|[1-9]\d*)\.\d+")
_DECLARATION_RE = re.compile(r"\ufeff?\s*<\?xml\s+(.*?)\?>", re.DOTALL)
_PSEUDO_ATTRIBUTE_RE = re.compile(r"([\w.:-]+)\s*=\s*([\"'])(.*?)\2")


def xml_to_dict(text: str) -> dict[str, Any]:
    """Parse an XML document into nested dicts.

    Args:
        text: The XML document.

    Returns:
        A dict keyed by the root element's name, preceded by a ``?xml``
        entry holding the XML declaration's pseudo-attributes when the
        document has one.

    Raises:
        XmlMappingError: If the text is not well-formed XML.
    """
    parser = ET.XMLPullParser(events=("start-ns", "start", "end"))
    events = []
    try:
        parser.feed(text)
        events.extend(parser.read_events())
        parser.close()
        events.extend(parser.read_events())
    except ET.ParseError as e:
        raise XmlMappingError(f"Invalid XML: {e}") from e

    prefixes = {XML_NAMESPACE: "xml"}
    declared: list[tuple[str, str]] = []
    stack: list[dict[str, Any]] = []
    result: dict[str, Any] = {}

    declaration = _DECLARATION_RE.match(text)
    if declaration:
        result[DECLARATION_KEY] = {
            ATTRIBUTE_PREFIX + name: value
            for name, _, value in _PSEUDO_ATTRIBUTE_RE.findall(declaration.group(1))
        }

    def qualify(tag: str) -> str:
        if not tag.startswith("{"):
            return tag
        uri, local = tag[1:].split("}", 1)
        prefix = prefixes.get(uri)
        return f"{prefix}:{local}" if prefix else local

    for event, payload in events:
        if event == "start-ns":
            prefix, uri = payload
            prefixes.setdefault(uri, prefix)
            declared.append(payload)
        elif event == "start":
            node: dict[str, Any] = {}
            for prefix, uri in declared:
                key = f"xmlns:{prefix}" if prefix else "xmlns"
                node[ATTRIBUTE_PREFIX + key] = uri
            declared = []
            for name, value in payload.attrib.items():
                node[ATTRIBUTE_PREFIX + qualify(name)] = _coerce(value)
            stack.append(node)
        else:
            node = stack.pop()
            value = _element_value(node, _element_text(payload))
            parent = stack[-1] if stack else result
            _add_child(parent, qualify(payload.tag), value)

    return result


def _element_text(element: ET.Element) -> str:
    """Concatenate the element's own text and the tails of its children."""
    pieces = [element.text, *(child.tail for child in element)]
    stripped = (piece.strip() for piece in pieces if piece)
    return " ".join(piece for piece in stripped if piece)


def _element_value(node: dict[str, Any], text: str) -> Any:
    if not node:
        return _coerce(text) if text else ""
    if text:
        node[TEXT_KEY] = _coerce(text)
    return node


def _add_child(parent: dict[str, Any], key: str, value: Any) -> None:
    if key not in parent:
        parent[key] = value
    elif isinstance(parent[key], list):
        parent[key].append(value)
    else:
        parent[key] = [parent[key], value]


def _coerce(value: str) -> Any:
    """Convert numeric strings to numbers; leave everything else alone."""
    if _INT_RE.fullmatch(value):
        return int(value)
    if _FLOAT_RE.fullmatch(value):
        return float(value)
    return value
