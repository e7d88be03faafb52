"""Documents of BCF 3.0.

In 3.0, all lists are wrapped in a plural element (`Comments/Comment`, ...),
comments and viewpoint references moved into the topic and the project
extensions are a plain XML document instead of an XML Schema.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from lxml import etree

from ..extensions import (
    XML_ARRAY_PATHS,
    extensions_xml_document,
    normalize_extensions_xml,
)
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
    "Files.File",
    "ReferenceLinks.ReferenceLink",
    "Labels.Label",
    "DocumentReferences.DocumentReference",
    "RelatedTopics.RelatedTopic",
    "Comments.Comment",
    "Viewpoints.ViewPoint",
)

ORTHO_EXTRA = ("ViewToWorldScale", "AspectRatio")
PERSP_EXTRA = ("FieldOfView", "AspectRatio")


def _wrapped(node: Dict[str, Any], wrapper: str, item: str) -> List[Any]:
    """Return the items of a list wrapped in a plural element."""
    return as_list(as_node(node.get(wrapper)).get(item))


class Bcf30(VersionStrategy):
    version = "3.0"
    extension_schema_file = "extensions.xml"
    xml_parser_config = XmlParserConfig(
        array_paths=frozenset(
            MARKUP_ARRAY_PATHS
            + VISINFO_ARRAY_PATHS
            + ("Bitmaps.Bitmap",)
            + XML_ARRAY_PATHS
        )
    )

    # ---- descriptors

    def parse_version(self, text: XmlText, path: Optional[str] = None) -> str:
        return read_version(self.parse(text, path), self.xml_parser_config, path)

    def serialize_version(self) -> str:
        return to_xml(element("Version", VersionId=self.version))

    def parse_project(self, text: XmlText, path: Optional[str] = None):
        roots = ("ProjectInfo", "ProjectExtension")
        return read_project(self.parse(text, path), roots, self.xml_parser_config, path)

    def serialize_project(
        self, project_id: str, name: str, with_extension_schema: bool = False
    ) -> str:
        # the extensions document is found by its name, it is not linked
        root = element("ProjectInfo")
        write_project(root, project_id, name)
        return to_xml(root)

    # ---- markup

    def _read_document_reference(self, value: Any, path=None) -> DocumentReference:
        cfg = self.xml_parser_config
        node = as_node(value)
        data = {
            "guid": attr(node, "Guid", cfg),
            "document_guid": text(node, "DocumentGuid", cfg),
            "url": text(node, "Url", cfg),
            "description": text(node, "Description", cfg),
        }
        return build(DocumentReference, compact(data), path)

    def _write_document_reference(self, parent: etree._Element, ref: DocumentReference):
        # documents referenced the 2.1 way are mapped onto the 3.0 fields
        doc_guid, url = ref.document_guid, ref.url
        if doc_guid is None and url is None and ref.referenced_document is not None:
            if ref.is_external:
                url = ref.referenced_document
            else:
                doc_guid = ref.referenced_document
        el = sub(parent, "DocumentReference", Guid=ref.guid)
        if doc_guid is not None:
            sub(el, "DocumentGuid", doc_guid)
        else:
            opt(el, "Url", url)
        opt(el, "Description", ref.description)

    def check_topic(self, topic: Topic) -> List[str]:
        return [
            f"Topic has no {what}, which is required in BCF {self.version}"
            for what, val in (("type", topic.topic_type), ("status", topic.topic_status))
            if val is None
        ]

    def parse_markup(self, text_: XmlText, path: Optional[str] = None):
        cfg = self.xml_parser_config
        root = root_node(self.parse(text_, path), "Markup", path)
        node = as_node(require(root, "Topic", "Markup", path))
        require(node, cfg.attr("TopicType"), "Topic", path)
        require(node, cfg.attr("TopicStatus"), "Topic", path)

        header = None
        if "Header" in root:
            files = _wrapped(as_node(root["Header"]), "Files", "File")
            header = Header(files=[read_header_file(f, cfg, path) for f in files])

        data: Dict[str, Any] = {
            "guid": attr(node, "Guid", cfg),
            "server_assigned_id": attr(node, "ServerAssignedId", cfg),
            "topic_type": attr(node, "TopicType", cfg),
            "topic_status": attr(node, "TopicStatus", cfg),
            "reference_links": texts(
                as_node(node.get("ReferenceLinks")), "ReferenceLink", cfg
            ),
            "title": text(node, "Title", cfg),
            "priority": text(node, "Priority", cfg),
            "labels": texts(as_node(node.get("Labels")), "Label", cfg),
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
                for d in _wrapped(node, "DocumentReferences", "DocumentReference")
            ],
            "related_topics": [
                attr(as_node(r), "Guid", cfg)
                for r in _wrapped(node, "RelatedTopics", "RelatedTopic")
            ],
            "comments": [
                read_comment(c, cfg, path) for c in _wrapped(node, "Comments", "Comment")
            ],
            "viewpoints": [
                read_viewpoint_ref(v, cfg, path)
                for v in _wrapped(node, "Viewpoints", "ViewPoint")
            ],
        }
        return header, build(Topic, compact(data), path)

    def serialize_markup(self, header: Optional[Header], topic: Topic) -> str:
        root = element("Markup")
        if header is not None:
            h = sub(root, "Header")
            if header.files:
                files = sub(h, "Files")
                for file in header.files:
                    write_header_file(files, file)

        t = sub(
            root,
            "Topic",
            Guid=topic.guid,
            ServerAssignedId=topic.server_assigned_id,
            TopicType=topic.topic_type,
            TopicStatus=topic.topic_status,
        )
        if topic.reference_links:
            links = sub(t, "ReferenceLinks")
            for link in topic.reference_links:
                sub(links, "ReferenceLink", link)
        sub(t, "Title", topic.title)
        opt(t, "Priority", topic.priority)
        if topic.labels:
            labels = sub(t, "Labels")
            for label in topic.labels:
                sub(labels, "Label", label)
        sub(t, "CreationDate", topic.creation_date)
        sub(t, "CreationAuthor", topic.creation_author)
        opt(t, "ModifiedDate", topic.modified_date)
        opt(t, "ModifiedAuthor", topic.modified_author)
        opt(t, "DueDate", topic.due_date)
        opt(t, "AssignedTo", topic.assigned_to)
        opt(t, "Stage", topic.stage)
        opt(t, "Description", topic.description)
        write_bim_snippet(t, topic.bim_snippet)
        if topic.document_references:
            refs = sub(t, "DocumentReferences")
            for ref in topic.document_references:
                self._write_document_reference(refs, ref)
        if topic.related_topics:
            related = sub(t, "RelatedTopics")
            for guid in topic.related_topics:
                sub(related, "RelatedTopic", Guid=guid)
        if topic.comments:
            comments = sub(t, "Comments")
            for comment in topic.comments:
                write_comment(comments, comment)
        if topic.viewpoints:
            vps = sub(t, "Viewpoints")
            for vp_ref in topic.viewpoints:
                write_viewpoint_ref(vps, "ViewPoint", vp_ref)
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
                "view_setup_hints": read_view_setup_hints(node.get("ViewSetupHints"), cfg),
                "selection": read_components_of(node.get("Selection"), cfg),
                "visibility": compact(visibility),
                "coloring": read_coloring(node.get("Coloring"), cfg),
            }
        )

    def _write_components(self, parent: etree._Element, comps: Optional[Components]):
        if comps is None:
            return
        el = sub(parent, "Components")
        write_view_setup_hints(el, comps.view_setup_hints)
        write_components_to(el, "Selection", comps.selection)
        vis = sub(
            el, "Visibility", DefaultVisibility=comps.visibility.default_visibility
        )
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
                read_bitmap(as_node(b), "Format", cfg)
                for b in _wrapped(root, "Bitmaps", "Bitmap")
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
        if viewpoint.bitmaps:
            bitmaps = sub(root, "Bitmaps")
            for bitmap in viewpoint.bitmaps:
                write_bitmap(sub(bitmaps, "Bitmap"), bitmap, "Format", bitmap.format)
        return to_xml(root)

    # ---- extension schema

    def normalize_extension_schema(
        self, tree: XmlTree, path: Optional[str] = None
    ) -> ExtensionSchema:
        return normalize_extensions_xml(tree, self.xml_parser_config, path)

    def serialize_extension_schema(self, schema: ExtensionSchema) -> str:
        return to_xml(extensions_xml_document(schema))
