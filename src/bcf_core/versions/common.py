"""Building blocks shared by the strategies of different specification versions.

Elements whose shape did not change between versions are read from the parsed
tree into plain dicts (validated into entities by the strategies) and written
from entities with these functions.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from lxml import etree
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..errors import SchemaMismatchError
from ..schema import (
    BimSnippet,
    ClippingPlane,
    Comment,
    Component,
    ComponentColoring,
    HeaderFile,
    Line,
    Point,
    ViewPoint,
    ViewSetupHints,
)
from ..xmltree import (
    XmlParserConfig,
    XmlTree,
    as_list,
    as_node,
    get_root,
    opt,
    sub,
    text_of,
)

M = TypeVar("M", bound=BaseModel)
Node = Dict[str, Any]


def build(model: Type[M], data: Dict[str, Any], path: Optional[str] = None) -> M:
    """Validate extracted data into an entity.

    Raises:
        SchemaMismatchError: if the data does not fit the entity
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise SchemaMismatchError(f"Invalid {model.__name__}: {e}", path) from e


def compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys of missing values, so that entity defaults apply."""
    return {k: v for k, v in data.items() if v is not None}


def root_node(tree: XmlTree, name: str, path: Optional[str] = None) -> Node:
    return as_node(get_root(tree, name, path))


def require(node: Node, key: str, what: str, path: Optional[str] = None) -> Any:
    if node.get(key) is None:
        raise SchemaMismatchError(f"{what} is missing required '{key}'", path)
    return node[key]


def text(node: Node, key: str, cfg: XmlParserConfig) -> Optional[str]:
    return text_of(node.get(key), cfg)


def attr(node: Node, name: str, cfg: XmlParserConfig) -> Optional[str]:
    return node.get(cfg.attr(name))


def texts(node: Node, key: str, cfg: XmlParserConfig) -> List[str]:
    return [text_of(v, cfg) or "" for v in as_list(node.get(key))]


# ----
# descriptors


def read_version(tree: XmlTree, cfg: XmlParserConfig, path: Optional[str] = None) -> str:
    """Return the declared version (detailed version preferred over version id)."""
    node = root_node(tree, "Version", path)
    return text(node, "DetailedVersion", cfg) or attr(node, "VersionId", cfg) or ""


def read_project(
    tree: XmlTree, roots: Tuple[str, ...], cfg: XmlParserConfig, path=None
) -> Tuple[str, str]:
    """Return (project_id, name) from a project document with one of the given roots."""
    name = next((r for r in roots if r in tree), None)
    if name is None:
        msg = f"Expected root in {list(roots)}, found '{next(iter(tree), None)}'"
        raise SchemaMismatchError(msg, path)
    project = as_node(root_node(tree, name, path).get("Project"))
    return (attr(project, "ProjectId", cfg) or "", text(project, "Name", cfg) or "")


def write_project(parent: etree._Element, project_id: str, name: str):
    project = sub(parent, "Project", ProjectId=project_id)
    sub(project, "Name", name)


# ----
# markup


def read_header_file(value: Any, cfg: XmlParserConfig, path=None) -> HeaderFile:
    node = as_node(value)
    data = {
        "ifc_project": attr(node, "IfcProject", cfg),
        "ifc_spatial_structure_element": attr(node, "IfcSpatialStructureElement", cfg),
        "is_external": attr(node, "isExternal", cfg),
        "filename": text(node, "Filename", cfg),
        "date": text(node, "Date", cfg),
        "reference": text(node, "Reference", cfg),
    }
    return build(HeaderFile, compact(data), path)


def write_header_file(parent: etree._Element, file: HeaderFile):
    el = sub(
        parent,
        "File",
        IfcProject=file.ifc_project,
        IfcSpatialStructureElement=file.ifc_spatial_structure_element,
        isExternal=file.is_external,
    )
    opt(el, "Filename", file.filename)
    opt(el, "Date", file.date)
    opt(el, "Reference", file.reference)


def read_bim_snippet(value: Any, cfg: XmlParserConfig, path=None) -> Optional[BimSnippet]:
    if value is None:
        return None
    node = as_node(value)
    data = {
        "snippet_type": attr(node, "SnippetType", cfg),
        "is_external": attr(node, "isExternal", cfg),
        "reference": text(node, "Reference", cfg),
        "reference_schema": text(node, "ReferenceSchema", cfg),
    }
    return build(BimSnippet, compact(data), path)


def write_bim_snippet(parent: etree._Element, snippet: Optional[BimSnippet]):
    if snippet is None:
        return
    el = sub(
        parent,
        "BimSnippet",
        SnippetType=snippet.snippet_type,
        isExternal=snippet.is_external,
    )
    sub(el, "Reference", snippet.reference)
    opt(el, "ReferenceSchema", snippet.reference_schema)


def read_comment(value: Any, cfg: XmlParserConfig, path=None) -> Comment:
    node = as_node(value)
    data = {
        "guid": attr(node, "Guid", cfg),
        "date": text(node, "Date", cfg),
        "author": text(node, "Author", cfg),
        "comment": text(node, "Comment", cfg),
        "viewpoint": attr(as_node(node.get("Viewpoint")), "Guid", cfg),
        "modified_date": text(node, "ModifiedDate", cfg),
        "modified_author": text(node, "ModifiedAuthor", cfg),
    }
    return build(Comment, compact(data), path)


def write_comment(parent: etree._Element, comment: Comment):
    el = sub(parent, "Comment", Guid=comment.guid)
    sub(el, "Date", comment.date)
    sub(el, "Author", comment.author)
    opt(el, "Comment", comment.comment)
    if comment.viewpoint is not None:
        sub(el, "Viewpoint", Guid=comment.viewpoint)
    opt(el, "ModifiedDate", comment.modified_date)
    opt(el, "ModifiedAuthor", comment.modified_author)


def read_viewpoint_ref(value: Any, cfg: XmlParserConfig, path=None) -> ViewPoint:
    node = as_node(value)
    data = {
        "guid": attr(node, "Guid", cfg),
        "viewpoint": text(node, "Viewpoint", cfg),
        "snapshot": text(node, "Snapshot", cfg),
        "index": text(node, "Index", cfg),
    }
    return build(ViewPoint, compact(data), path)


def write_viewpoint_ref(parent: etree._Element, tag: str, ref: ViewPoint):
    el = sub(parent, tag, Guid=ref.guid)
    opt(el, "Viewpoint", ref.viewpoint)
    opt(el, "Snapshot", ref.snapshot)
    opt(el, "Index", ref.index)


# ----
# visualization info


def read_point(value: Any, cfg: XmlParserConfig) -> Dict[str, Any]:
    node = as_node(value)
    return {k.lower(): text(node, k, cfg) for k in ("X", "Y", "Z")}


def write_point(parent: etree._Element, tag: str, point: Point):
    el = sub(parent, tag)
    sub(el, "X", point.x)
    sub(el, "Y", point.y)
    sub(el, "Z", point.z)


def read_component(value: Any, cfg: XmlParserConfig) -> Dict[str, Any]:
    node = as_node(value)
    return compact(
        {
            "ifc_guid": attr(node, "IfcGuid", cfg),
            "originating_system": text(node, "OriginatingSystem", cfg),
            "authoring_tool_id": text(node, "AuthoringToolId", cfg),
        }
    )


def read_components_of(value: Any, cfg: XmlParserConfig) -> List[Dict[str, Any]]:
    """Read the `Component` children of an element (e.g. `Selection`)."""
    return [read_component(c, cfg) for c in as_list(as_node(value).get("Component"))]


def write_components_to(parent: etree._Element, tag: str, comps: List[Component]):
    """Write components wrapped in an element (omitted if there are no components)."""
    if not comps:
        return
    el = sub(parent, tag)
    for comp in comps:
        write_component(el, comp)


def write_component(parent: etree._Element, comp: Component):
    el = sub(parent, "Component", IfcGuid=comp.ifc_guid)
    opt(el, "OriginatingSystem", comp.originating_system)
    opt(el, "AuthoringToolId", comp.authoring_tool_id)


def read_coloring(value: Any, cfg: XmlParserConfig) -> List[Dict[str, Any]]:
    return [
        {"color": attr(as_node(c), "Color", cfg), "components": read_components_of(c, cfg)}
        for c in as_list(as_node(value).get("Color"))
    ]


def write_coloring(parent: etree._Element, coloring: List[ComponentColoring]):
    if not coloring:
        return
    el = sub(parent, "Coloring")
    for col in coloring:
        c = sub(el, "Color", Color=col.color)
        for comp in col.components:
            write_component(c, comp)


def read_view_setup_hints(value: Any, cfg: XmlParserConfig) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    node = as_node(value)
    return compact(
        {
            "spaces_visible": attr(node, "SpacesVisible", cfg),
            "space_boundaries_visible": attr(node, "SpaceBoundariesVisible", cfg),
            "openings_visible": attr(node, "OpeningsVisible", cfg),
        }
    )


def write_view_setup_hints(parent: etree._Element, hints: Optional[ViewSetupHints]):
    if hints is None:
        return
    sub(
        parent,
        "ViewSetupHints",
        SpacesVisible=hints.spaces_visible,
        SpaceBoundariesVisible=hints.space_boundaries_visible,
        OpeningsVisible=hints.openings_visible,
    )


def read_camera(value: Any, extra: Tuple[str, ...], cfg: XmlParserConfig):
    """Read camera position and orientation plus given scalar child elements.

    Scalar elements are returned under snake case keys,
    e.g. `ViewToWorldScale` as `view_to_world_scale`.
    """
    if value is None:
        return None
    node = as_node(value)
    data = {
        "camera_view_point": read_point(node.get("CameraViewPoint"), cfg),
        "camera_direction": read_point(node.get("CameraDirection"), cfg),
        "camera_up_vector": read_point(node.get("CameraUpVector"), cfg),
    }
    for key in extra:
        data[snake_case(key)] = text(node, key, cfg)
    return compact(data)


def write_camera(parent: etree._Element, tag: str, camera: Any, extra: Tuple[str, ...]):
    if camera is None:
        return
    el = sub(parent, tag)
    write_point(el, "CameraViewPoint", camera.camera_view_point)
    write_point(el, "CameraDirection", camera.camera_direction)
    write_point(el, "CameraUpVector", camera.camera_up_vector)
    for key in extra:
        opt(el, key, getattr(camera, snake_case(key)))


def read_lines(value: Any, cfg: XmlParserConfig) -> List[Dict[str, Any]]:
    return [
        {
            "start_point": read_point(as_node(ln).get("StartPoint"), cfg),
            "end_point": read_point(as_node(ln).get("EndPoint"), cfg),
        }
        for ln in as_list(as_node(value).get("Line"))
    ]


def write_lines(parent: etree._Element, lines: List[Line]):
    if not lines:
        return
    el = sub(parent, "Lines")
    for line in lines:
        ln = sub(el, "Line")
        write_point(ln, "StartPoint", line.start_point)
        write_point(ln, "EndPoint", line.end_point)


def read_clipping_planes(value: Any, cfg: XmlParserConfig) -> List[Dict[str, Any]]:
    return [
        {
            "location": read_point(as_node(cp).get("Location"), cfg),
            "direction": read_point(as_node(cp).get("Direction"), cfg),
        }
        for cp in as_list(as_node(value).get("ClippingPlane"))
    ]


def write_clipping_planes(parent: etree._Element, planes: List[ClippingPlane]):
    if not planes:
        return
    el = sub(parent, "ClippingPlanes")
    for plane in planes:
        cp = sub(el, "ClippingPlane")
        write_point(cp, "Location", plane.location)
        write_point(cp, "Direction", plane.direction)


def read_bitmap(node: Node, fmt_key: str, cfg: XmlParserConfig) -> Dict[str, Any]:
    """Read a bitmap, whose format is stored in the child element `fmt_key`."""
    return {
        "format": text(node, fmt_key, cfg),
        "reference": text(node, "Reference", cfg),
        "location": read_point(node.get("Location"), cfg),
        "normal": read_point(node.get("Normal"), cfg),
        "up": read_point(node.get("Up"), cfg),
        "height": text(node, "Height", cfg),
    }


def write_bitmap(el: etree._Element, bitmap: Any, fmt_key: str, fmt_value: str):
    sub(el, fmt_key, fmt_value)
    sub(el, "Reference", bitmap.reference)
    write_point(el, "Location", bitmap.location)
    write_point(el, "Normal", bitmap.normal)
    write_point(el, "Up", bitmap.up)
    sub(el, "Height", bitmap.height)


def snake_case(name: str) -> str:
    """Convert an element name to a field name (`FieldOfView` -> `field_of_view`)."""
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name).lstrip("_")


VISINFO_ARRAY_PATHS: Tuple[str, ...] = (
    "Selection.Component",
    "Exceptions.Component",
    "Coloring.Color",
    "Color.Component",
    "Lines.Line",
    "ClippingPlanes.ClippingPlane",
)
"""Lists in viewpoint documents with the same shape in all versions."""
