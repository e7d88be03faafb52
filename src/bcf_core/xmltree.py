"""XML text <-> tagged tree conversion on top of lxml.

Parsing turns a document into nested dicts, in the shape expected by the
version strategies:

* attributes become keys with a prefix (`@_Guid`),
* elements with neither attributes nor child elements become their text,
* other elements become dicts, their text (if any) is stored under a text key,
* repeated child elements are merged into lists, and children whose path is
  listed in the configuration are always lists, even if they occur once.

Namespaces are dropped, only local names are used.
"""
from __future__ import annotations

import re
from typing import Any, Dict, FrozenSet, List, Optional, Union

from lxml import etree
from pydantic import BaseModel, ConfigDict

from .errors import ParseError, SchemaMismatchError

XmlTree = Dict[str, Any]
"""Parsed XML document, a dict with the root element name as the only key."""


class XmlParserConfig(BaseModel):
    """Options controlling how a document is turned into a tree."""

    model_config = ConfigDict(frozen=True)

    attribute_prefix: str = "@_"
    """Prefix of keys holding attribute values."""

    text_key: str = "#text"
    """Key of the text content in elements that also have attributes or children."""

    array_paths: FrozenSet[str] = frozenset()
    """Dot-separated element paths that are always parsed into a list.

    A path matches if it is equal to the full path of an element
    (starting with the root element), or a suffix of it starting at an element
    boundary, i.e. `Comments.Comment` matches `Markup.Topic.Comments.Comment`,
    but not `Markup.Topic.Comments.Comment.Comment`.
    """

    trim_values: bool = True
    """Whether to strip surrounding whitespace from text and attribute values."""

    def is_array(self, path: str) -> bool:
        return any(path == p or path.endswith("." + p) for p in self.array_paths)

    def attr(self, name: str) -> str:
        return f"{self.attribute_prefix}{name}"


def _local(tag: str) -> str:
    return etree.QName(tag).localname


def _new_parser() -> etree.XMLParser:
    # no DTD or entity resolution, no network access
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )


def _convert(el, el_path: str, config: XmlParserConfig) -> Any:
    trim = (lambda s: s.strip()) if config.trim_values else (lambda s: s)
    attrs = {config.attr(_local(k)): trim(v) for k, v in el.attrib.items()}
    children = [c for c in el if isinstance(c.tag, str)]
    text = trim(el.text or "")

    if not attrs and not children:
        return text

    node: Dict[str, Any] = attrs
    grouped: Dict[str, List[Any]] = {}
    for child in children:
        name = _local(child.tag)
        grouped.setdefault(name, []).append(
            _convert(child, f"{el_path}.{name}", config)
        )
    for name, values in grouped.items():
        if len(values) > 1 or config.is_array(f"{el_path}.{name}"):
            node[name] = values
        else:
            node[name] = values[0]
    if text:
        node[config.text_key] = text
    return node


def parse_xml(
    text: Union[str, bytes], config: XmlParserConfig, path: Optional[str] = None
) -> XmlTree:
    """Parse an XML document into a tree.

    Raises:
        ParseError: if the document is not well-formed XML
    """
    data = text.encode("utf-8") if isinstance(text, str) else text
    try:
        root = etree.fromstring(data, _new_parser())
    except (etree.XMLSyntaxError, ValueError) as e:
        raise ParseError(f"Malformed XML: {e}", path) from e
    name = _local(root.tag)
    return {name: _convert(root, name, config)}


def get_root(tree: XmlTree, name: str, path: Optional[str] = None) -> Any:
    """Return the content of the root element, which must have the given name."""
    if name not in tree:
        found = next(iter(tree), None)
        msg = f"Expected root element '{name}', found '{found}'"
        raise SchemaMismatchError(msg, path)
    return tree[name]


def as_list(value: Any) -> List[Any]:
    """Return value as list (None -> empty, single value -> singleton)."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def as_node(value: Any) -> Dict[str, Any]:
    """Return value as dict (elements with only text or no content are empty)."""
    return value if isinstance(value, dict) else {}


def text_of(value: Any, config: XmlParserConfig) -> Optional[str]:
    """Return the text of an element given as tree value (None if absent)."""
    if value is None:
        return None
    if isinstance(value, dict):
        return value.get(config.text_key, "")
    if isinstance(value, list):
        return text_of(value[0], config) if value else None
    return str(value)


# ----
# building documents


_XML_INVALID_CHAR = re.compile(r"[^\t\n\r\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")


def xml_compatible(text: str) -> bool:
    """Return whether a string only has characters allowed in XML 1.0 documents."""
    return _XML_INVALID_CHAR.search(text) is None


def fmt(value: Any) -> str:
    """Format a value as XML text, using XML Schema notation for booleans."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def element(tag: str, **attrs: Any) -> etree._Element:
    """Create a root element, skipping attributes set to None."""
    return etree.Element(tag, {k: fmt(v) for k, v in attrs.items() if v is not None})


def sub(parent: etree._Element, tag: str, text: Any = None, **attrs: Any):
    """Append a child element with optional text and attributes (None is skipped)."""
    child = etree.SubElement(
        parent, tag, {k: fmt(v) for k, v in attrs.items() if v is not None}
    )
    if text is not None:
        child.text = fmt(text)
    return child


def opt(parent: etree._Element, tag: str, text: Any):
    """Append a text child element only if the text is not None."""
    if text is not None:
        return sub(parent, tag, text)
    return None


def to_xml(root: etree._Element) -> str:
    """Serialize a document (with declaration, indented) into text."""
    data = etree.tostring(
        root, xml_declaration=True, encoding="UTF-8", pretty_print=True
    )
    return data.decode("utf-8")


__all__ = [
    "XmlParserConfig",
    "XmlTree",
    "parse_xml",
    "get_root",
    "as_list",
    "as_node",
    "text_of",
    "xml_compatible",
    "element",
    "sub",
    "opt",
    "to_xml",
]
