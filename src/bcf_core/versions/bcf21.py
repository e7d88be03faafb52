"""Documents of BCF 2.1.

In 2.1, comments and viewpoint references are children of the markup root
(next to the topic) and lists inside of the topic are plain repeated elements.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from lxml import etree

from ..extensions import XSD_ARRAY_PATHS, normalize_xsd, xsd_document
from ..schema import (
    Components,
    DocumentReference,
    ExtensionSchema,
    Header,
    Topic,
    VisualizationInfo,
)
from ..xmltree import XmlParserConfig, XmlTree, as_list, as_node, element, opt, sub, to_xml
from .common import (
    VISINFO_ARRAY_PATHS,
    attr,
    build,
    compact,
    read_bim_snippet,
    read_bitmap,
    read_camera,
    read_clipping_planes,
    read_coloring,
    read_comment,
    read_components_of,
    read_header_file,
    read_lines,
    read_project,
    read_version,
    read_view_setup_hints,
    read_viewpoint_ref,
    require,
    root_node,
    text,
    texts,
    write_bim_snippet,
    write_bitmap,
    write_camera,
    write_clipping_planes,
    write_coloring,
    write_comment,
    write_components_to,
    write_header_file,
    write_lines,
    write_project,
    write_view_setup_hints,
    write_viewpoint_ref,
)
from .interface import VersionStrategy, XmlText

MARKUP_ARRAY_PATHS: Tuple[str, ...] = (
    "Header.File",
    "Topic.ReferenceLink",
    "Topic.Labels",
    "Topic.DocumentReference",
    "Topic.RelatedTopic",
    "Markup.Comment",
    "Markup.Viewpoints",
)

ORTHO_EXTRA = ("ViewToWorldScale",)
PERSP_EXTRA = ("FieldOfView",)


class Bcf21(VersionStrategy):
    version = "2.1"
    extension_schema_file = "extensions.xsd"
    xml_parser_config = XmlParserConfig(
        array_paths=frozenset(
            MARKUP_ARRAY_PATHS
            + VISINFO_ARRAY_PATHS
            + ("VisualizationInfo.Bitmap",)
            + XSD_ARRAY_PATHS
        )
    )

    # ---- descriptors

    def parse_version(self, text: XmlText, path: Optional[str] = None) -> str:
        return read_version(self.parse(text, path), self.xml_parser_config, path)

    def serialize_version(self) -> str:
        root = element("Version", VersionId=self.version)
        sub(root, "DetailedVersion", self.version)
        return to_xml(root)

    def parse_project(self, text: XmlText, path: Optional[str] = None):
        roots = ("ProjectExtension", "ProjectInfo")
        return read_project(self.parse(text, path), roots, self.xml_parser_config, path)

    def serialize_project(
        self, project_id: str, name: str, with_extension_schema: bool = False
    ) -> str:
        root = element("ProjectExtension")
        write_project(root, project_id, name)
        if with_extension_schema:
            sub(root, "ExtensionSchema", self.extension_schema_file)
        return to_xml(root)

    # ---- markup

    def _read_document_reference(self, value: Any, path=None) -> DocumentReference:
        cfg = self.xml_parser_config
        node = as_node(value)
        data = {
            "guid": attr(node, "Guid", cfg),
            "is_external": attr(node, "isExternal", cfg),
            "referenced_document": text(node, "ReferencedDocument", cfg),
            "description": text(node, "Description", cfg),
        }
        return build(DocumentReference, compact(data), path)

    def _write_document_reference(self, parent: etree._Element, ref: DocumentReference):
        # documents referenced the 3.0 way are mapped onto the 2.1 fields
        doc, external = ref.referenced_document, ref.is_external
        if doc is None and ref.url is not None:
            doc, external = ref.url, True
        elif doc is None:
            doc = ref.document_guid
        el = sub(parent, "DocumentReference", Guid=ref.guid, isExternal=external)
        opt(el, "ReferencedDocument", doc)
        opt(el, "Description", ref.description)

    def parse_markup(self, text_: XmlText, path: Optional[str] = None):
        cfg = self.xml_parser_config
        root = root_node(self.parse(text_, path), "Markup", path)
        node = as_node(require(root, "Topic", "Markup", path))

        header = None
        if "Header" in root:
            files = as_list(as_node(root["Header"]).get("File"))
            header = Header(files=[read_header_file(f, cfg, path) for f in files])

        data: Dict[str, Any] = {
            "guid": attr(node, "Guid", cfg),
            "topic_type": attr(node, "TopicType", cfg),
            "topic_status": attr(node, "TopicStatus", cfg),
            "reference_links": texts(node, "ReferenceLink", cfg),
            "title": text(node, "Title", cfg),
            "priority": text(node, "Priority", cfg),
            "index": text(node, "Index", cfg),
            "labels": texts(node, "Labels", cfg),
            "creation_date": text(node, "CreationDate", cfg),
            "creation_author": text(node, "CreationAuthor", cfg),
            "modified_date": text(node, "ModifiedDate", cfg),
            "modified_author": text(node, "ModifiedAuthor", cfg),
            "due_date": text(node, "DueDate", cfg),
            "assigned_to": text(node, "AssignedTo", cfg),
            "stage": text(node, "Stage", cfg),
            "description": text(node, "Description", cfg),
            "bim_snippet": read_bim_snippet(node.get("BimSnippet"), cfg, path),
            "document_references": [
                self._read_document_reference(d, path)
                for d in as_list(node.get("DocumentReference"))
            ],
            "related_topics": [
                attr(as_node(r), "Guid", cfg) for r in as_list(node.get("RelatedTopic"))
            ],
            "comments": [read_comment(c, cfg, path) for c in as_list(root.get("Comment"))],
            "viewpoints": [
                read_viewpoint_ref(v, cfg, path) for v in as_list(root.get("Viewpoints"))
            ],
        }
        return header, build(Topic, compact(data), path)

    def serialize_markup(self, header: Optional[Header], topic: Topic) -> str:
        root = element("Markup")
        if header is not None:
            h = sub(root, "Header")
            for file in header.files:
                write_header_file(h, file)

        t = sub(
            root,
            "Topic",
            Guid=topic.guid,
            TopicType=topic.topic_type,
            TopicStatus=topic.topic_status,
        )
        for link in topic.reference_links:
            sub(t, "ReferenceLink", link)
        sub(t, "Title", topic.title)
        opt(t, "Priority", topic.priority)
        opt(t, "Index", topic.index)
        for label in topic.labels:
            sub(t, "Labels", label)
        sub(t, "CreationDate", topic.creation_date)
        sub(t, "CreationAuthor", topic.creation_author)
        opt(t, "ModifiedDate", topic.modified_date)
        opt(t, "ModifiedAuthor", topic.modified_author)
        opt(t, "DueDate", topic.due_date)
        opt(t, "AssignedTo", topic.assigned_to)
        opt(t, "Stage", topic.stage)
        opt(t, "Description", topic.description)
        write_bim_snippet(t, topic.bim_snippet)
        for ref in topic.document_references:
            self._write_document_reference(t, ref)
        for guid in topic.related_topics:
            sub(t, "RelatedTopic", Guid=guid)

        for comment in topic.comments:
            write_comment(root, comment)
        for vp_ref in topic.viewpoints:
            write_viewpoint_ref(root, "Viewpoints", vp_ref)
        return to_xml(root)

    # ---- viewpoints

    def _read_components(self, value: Any) -> Optional[Dict[str, Any]]:
        if value is None:
            return None
        cfg = self.xml_parser_config
        node = as_node(value)
        vis = as_node(node.get("Visibility"))
        visibility = {
            "default_visibility": attr(vis, "DefaultVisibility", cfg),
            "exceptions": read_components_of(vis.get("Exceptions"), cfg),
        }
        return compact(
            {
                # 2.1 keeps the hints inside of the visibility element
                "view_setup_hints": read_view_setup_hints(vis.get("ViewSetupHints"), cfg),
                "selection": read_components_of(node.get("Selection"), cfg),
                "visibility": compact(visibility),
                "coloring": read_coloring(node.get("Coloring"), cfg),
            }
        )

    def _write_components(self, parent: etree._Element, comps: Optional[Components]):
        if comps is None:
            return
        el = sub(parent, "Components")
        write_components_to(el, "Selection", comps.selection)
        vis = sub(
            el, "Visibility", DefaultVisibility=comps.visibility.default_visibility
        )
        write_view_setup_hints(vis, comps.view_setup_hints)
        write_components_to(vis, "Exceptions", comps.visibility.exceptions)
        write_coloring(el, comps.coloring)

    def parse_viewpoint(self, text_: XmlText, path: Optional[str] = None):
        cfg = self.xml_parser_config
        root = root_node(self.parse(text_, path), "VisualizationInfo", path)
        data = {
            "guid": require(root, cfg.attr("Guid"), "VisualizationInfo", path),
            "components": self._read_components(root.get("Components")),
            "orthogonal_camera": read_camera(
                root.get("OrthogonalCamera"), ORTHO_EXTRA, cfg
            ),
            "perspective_camera": read_camera(
                root.get("PerspectiveCamera"), PERSP_EXTRA, cfg
            ),
            "lines": read_lines(root.get("Lines"), cfg),
            "clipping_planes": read_clipping_planes(root.get("ClippingPlanes"), cfg),
            "bitmaps": [
                read_bitmap(as_node(b), "Bitmap", cfg)
                for b in as_list(root.get("Bitmap"))
            ],
        }
        return build(VisualizationInfo, compact(data), path)

    def serialize_viewpoint(self, viewpoint: VisualizationInfo) -> str:
        root = element("VisualizationInfo", Guid=viewpoint.guid)
        self._write_components(root, viewpoint.components)
        write_camera(root, "OrthogonalCamera", viewpoint.orthogonal_camera, ORTHO_EXTRA)
        write_camera(root, "PerspectiveCamera", viewpoint.perspective_camera, PERSP_EXTRA)
        write_lines(root, viewpoint.lines)
        write_clipping_planes(root, viewpoint.clipping_planes)
        for bitmap in viewpoint.bitmaps:
            el = sub(root, "Bitmap")
            write_bitmap(el, bitmap, "Bitmap", bitmap.format.upper())
        return to_xml(root)

    # ---- extension schema

    def normalize_extension_schema(
        self, tree: XmlTree, path: Optional[str] = None
    ) -> ExtensionSchema:
        return normalize_xsd(tree, self.xml_parser_config, path)

    def serialize_extension_schema(self, schema: ExtensionSchema) -> str:
        return to_xml(xsd_document(schema))
