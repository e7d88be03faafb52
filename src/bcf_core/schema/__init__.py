"""Entities of the BCF data model."""

from .core import BcfModel  # noqa: F401
from .markup import (  # noqa: F401
    BimSnippet,
    Comment,
    DocumentReference,
    Header,
    HeaderFile,
    Topic,
    ViewPoint,
)
from .project import ExtensionSchema, Markup, Project  # noqa: F401
from .visinfo import (  # noqa: F401
    Bitmap,
    ClippingPlane,
    Component,
    ComponentColoring,
    Components,
    ComponentVisibility,
    Line,
    OrthogonalCamera,
    PerspectiveCamera,
    Point,
    SnapshotSource,
    ViewSetupHints,
    VisualizationInfo,
)
