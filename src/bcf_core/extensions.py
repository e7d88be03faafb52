"""Normalization of project extension schemas.

BCF 2.1 declares permitted values of topic fields in an XML Schema
(`extensions.xsd`) redefining the enumerations of the markup schema,
BCF 3.0 lists them in a plain XML document (`extensions.xml`).
Both are turned into the same `ExtensionSchema`, which is either complete
or not produced at all: a malformed declaration is an error, never skipped.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from lxml import etree
from typing_extensions import Final

from .errors import SchemaMismatchError
from .schema import ExtensionSchema
from .xmltree import (
    XmlParserConfig,
    XmlTree,
    as_list,
    as_node,
    element,
    get_root,
    sub,
)

logger = logging.getLogger(__name__)

XSD_NS: Final[str] = "http://www.w3.org/2001/XMLSchema"

XSD_MARKUP_SCHEMA: Final[str] = "markup.xsd"
"""Schema redefined by a BCF 2.1 extension schema."""

XSD_TYPES: Final[Dict[str, str]] = {
    "TopicType": "topic_types",
    "TopicStatus": "topic_statuses",
    "TopicLabel": "topic_labels",
    "Priority": "priorities",
    "UserIdType": "users",
    "Stage": "stages",
    "SnippetType": "snippet_types",
}
"""Simple type names in BCF 2.1 extension schemas to categories."""

XML_LISTS: Final[Dict[str, Tuple[str, str]]] = {
    "topic_types": ("TopicTypes", "TopicType"),
    "topic_statuses": ("TopicStatuses", "TopicStatus"),
    "priorities": ("Priorities", "Priority"),
    "topic_labels": ("TopicLabels", "TopicLabel"),
    "users": ("Users", "User"),
    "snippet_types": ("SnippetTypes", "SnippetType"),
    "stages": ("Stages", "Stage"),
}
"""Categories to (list element, item element) in BCF 3.0 extension documents."""

XSD_ARRAY_PATHS: Final[Tuple[str, ...]] = (
    "schema.simpleType",
    "redefine.simpleType",
    "restriction.enumeration",
)
XML_ARRAY_PATHS: Final[Tuple[str, ...]] = tuple(
    f"{lst}.{item}" for lst, item in XML_LISTS.values()
)


def normalize_xsd(
    tree: XmlTree, config: XmlParserConfig, path: Optional[str] = None
) -> ExtensionSchema:
    """Extract permitted values from a parsed BCF 2.1 extension schema.

    Raises:
        SchemaMismatchError: if the root is not an XML Schema
            or a declared simple type has no enumeration restriction
    """
    root = as_node(get_root(tree, "schema", path))
    # the types are usually wrapped in a <redefine>, but plain declarations are valid
    simple_types: List[Any] = list(as_list(root.get("simpleType")))
    for redefine in as_list(root.get("redefine")):
        simple_types += as_list(as_node(redefine).get("simpleType"))

    values: Dict[str, Tuple[str, ...]] = {}
    for st in map(as_node, simple_types):
        name = st.get(config.attr("name"))
        if name not in XSD_TYPES:
            logger.debug("Ignoring unknown extension type: %s", name)
            continue
        restriction = st.get("restriction")
        if not isinstance(restriction, dict):
            msg = f"Simple type '{name}' has no restriction"
            raise SchemaMismatchError(msg, path)
        enum_vals = []
        for enum in as_list(restriction.get("enumeration")):
            val = as_node(enum).get(config.attr("value"))
            if val is None:
                msg = f"Enumeration of '{name}' without value"
                raise SchemaMismatchError(msg, path)
            enum_vals.append(val)
        values[XSD_TYPES[name]] = tuple(enum_vals)
    return ExtensionSchema(**values)


def normalize_extensions_xml(
    tree: XmlTree, config: XmlParserConfig, path: Optional[str] = None
) -> ExtensionSchema:
    """Extract permitted values from a parsed BCF 3.0 extensions document.

    Raises:
        SchemaMismatchError: if the root is not `Extensions`
            or a list holds something else than text items
    """
    root = as_node(get_root(tree, "Extensions", path))

    values: Dict[str, Tuple[str, ...]] = {}
    for category, (lst, item) in XML_LISTS.items():
        if lst not in root:
            continue
        items = as_list(as_node(root[lst]).get(item))
        if not all(isinstance(x, str) for x in items):
            msg = f"'{lst}' must only contain text '{item}' elements"
            raise SchemaMismatchError(msg, path)
        values[category] = tuple(items)
    return ExtensionSchema(**values)


# ----


def xsd_document(schema: ExtensionSchema) -> etree._Element:
    """Build a BCF 2.1 extension schema (only non-empty categories are declared)."""
    ns = f"{{{XSD_NS}}}"
    root = etree.Element(f"{ns}schema", nsmap={None: XSD_NS})
    redefine = etree.SubElement(root, f"{ns}redefine", schemaLocation=XSD_MARKUP_SCHEMA)
    categories = schema.categories()
    for type_name, category in XSD_TYPES.items():
        if not categories[category]:
            continue
        st = etree.SubElement(redefine, f"{ns}simpleType", name=type_name)
        restriction = etree.SubElement(st, f"{ns}restriction", base=type_name)
        for val in categories[category]:
            etree.SubElement(restriction, f"{ns}enumeration", value=val)
    return root


def extensions_xml_document(schema: ExtensionSchema) -> etree._Element:
    """Build a BCF 3.0 extensions document (only non-empty categories are listed)."""
    root = element("Extensions")
    categories = schema.categories()
    # order of the lists is fixed by the 3.0 extensions schema
    for category, (lst, item) in XML_LISTS.items():
        if not categories[category]:
            continue
        node = sub(root, lst)
        for val in categories[category]:
            sub(node, item, val)
    return root
