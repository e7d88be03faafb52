"""Viewpoint entities (visualization info) and the lazy snapshot accessor."""
from __future__ import annotations

import base64
from typing import Callable, List, Optional

from pydantic import Field, PrivateAttr, field_validator

from ..layout import default_snapshot_file
from .core import BcfModel

SnapshotSource = Callable[[], Optional[bytes]]
"""Callable returning the bytes of a snapshot image (None if unavailable)."""


class Point(BcfModel):
    """Point or direction in model coordinates."""

    x: float
    y: float
    z: float


class Component(BcfModel):
    ifc_guid: Optional[str] = None
    originating_system: Optional[str] = None
    authoring_tool_id: Optional[str] = None


class ComponentColoring(BcfModel):
    color: str
    """ARGB or RGB hex color, e.g. `FF00FF00`."""

    components: List[Component] = []


class ViewSetupHints(BcfModel):
    spaces_visible: bool = False
    space_boundaries_visible: bool = False
    openings_visible: bool = False


class ComponentVisibility(BcfModel):
    default_visibility: bool = False
    exceptions: List[Component] = []
    """Components whose visibility is the opposite of the default."""


class Components(BcfModel):
    view_setup_hints: Optional[ViewSetupHints] = None
    selection: List[Component] = []
    visibility: ComponentVisibility = Field(default_factory=ComponentVisibility)
    coloring: List[ComponentColoring] = []


class OrthogonalCamera(BcfModel):
    camera_view_point: Point
    camera_direction: Point
    camera_up_vector: Point
    view_to_world_scale: float
    aspect_ratio: Optional[float] = None


class PerspectiveCamera(BcfModel):
    camera_view_point: Point
    camera_direction: Point
    camera_up_vector: Point
    field_of_view: float
    aspect_ratio: Optional[float] = None


class Line(BcfModel):
    start_point: Point
    end_point: Point


class ClippingPlane(BcfModel):
    location: Point
    direction: Point


class Bitmap(BcfModel):
    format: str
    reference: str
    location: Point
    normal: Point
    up: Point
    height: float

    @field_validator("format")
    @classmethod
    def _lower_format(cls, v: str) -> str:
        return v.lower()


class VisualizationInfo(BcfModel):
    """A saved view: camera, component selection/visibility, markup geometry.

    The snapshot image is not stored in the entity. Instead, the reader binds an
    accessor that loads the image from the container when it is requested,
    clients can attach new images with `set_snapshot`.
    """

    guid: str
    components: Optional[Components] = None
    orthogonal_camera: Optional[OrthogonalCamera] = None
    perspective_camera: Optional[PerspectiveCamera] = None
    lines: List[Line] = []
    clipping_planes: List[ClippingPlane] = []
    bitmaps: List[Bitmap] = []

    snapshot: Optional[str] = None
    """File name of the snapshot image, relative to the topic folder."""

    _snapshot_source: Optional[SnapshotSource] = PrivateAttr(default=None)

    def bind_snapshot(self, source: Optional[SnapshotSource]):
        """Set the callable used to load the snapshot image."""
        self._snapshot_source = source

    def set_snapshot(self, data: bytes, name: Optional[str] = None):
        """Attach a snapshot image, to be written into the container."""
        blob = bytes(data)
        self.snapshot = name or self.snapshot or default_snapshot_file(self.guid)
        self._snapshot_source = lambda: blob

    def get_snapshot_bytes(self) -> Optional[bytes]:
        """Return the snapshot image, or None if the viewpoint has no snapshot."""
        if self._snapshot_source is None:
            return None
        return self._snapshot_source()

    def get_snapshot(self) -> Optional[str]:
        """Return the snapshot image as base64 encoded string (or None)."""
        data = self.get_snapshot_bytes()
        if data is None:
            return None
        return base64.b64encode(data).decode("ascii")
