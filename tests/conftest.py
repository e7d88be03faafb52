import zipfile
from io import BytesIO
from typing import Dict

import pytest

from bcf_core.schema import (
    Comment,
    Component,
    Components,
    ComponentVisibility,
    ExtensionSchema,
    Header,
    HeaderFile,
    Markup,
    PerspectiveCamera,
    Point,
    Project,
    Topic,
    VisualizationInfo,
)
from bcf_core.versions import supported_versions

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(64))
"""Stand-in for the contents of a snapshot image."""


@pytest.fixture(params=supported_versions())
def version(request):
    """Run a test once for each supported specification version."""
    return request.param


@pytest.fixture
def make_zip():
    """Return a function creating archive bytes from a dict of entries."""

    def wrapped(entries: Dict[str, bytes]) -> bytes:
        buf = BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
            for name, blob in entries.items():
                zf.writestr(name, blob)
        return buf.getvalue()

    return wrapped


@pytest.fixture
def make_odd_zip():
    """Return a function creating a stored one-entry archive with patched headers.

    `method` replaces the compression method, `flags` the general purpose flags
    (in both the local and the central directory header).
    """

    def wrapped(name: str, blob: bytes, method=None, flags=None) -> bytes:
        buf = BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_STORED) as zf:
            zf.writestr(name, blob)
        data = bytearray(buf.getvalue())
        central = data.index(b"PK\x01\x02")
        if flags is not None:
            data[6:8] = data[central + 8 : central + 10] = flags.to_bytes(2, "little")
        if method is not None:
            data[8:10] = data[central + 10 : central + 12] = method.to_bytes(2, "little")
        return bytes(data)

    return wrapped


def make_viewpoint(guid: str, with_snapshot: bool = True) -> VisualizationInfo:
    vp = VisualizationInfo(
        guid=guid,
        components=Components(
            selection=[Component(ifc_guid="0Gd8cvsYr1dOYdXAHGJ7ns")],
            visibility=ComponentVisibility(
                default_visibility=True,
                exceptions=[Component(ifc_guid="2MF28NhmDBiRVyFakgdbCT")],
            ),
        ),
        perspective_camera=PerspectiveCamera(
            camera_view_point=Point(x=12.5, y=-3.0, z=1.75),
            camera_direction=Point(x=0.0, y=1.0, z=0.0),
            camera_up_vector=Point(x=0.0, y=0.0, z=1.0),
            field_of_view=60.0,
        ),
    )
    if with_snapshot:
        vp.set_snapshot(PNG_BYTES)
    return vp


def make_markup(guid: str, title: str, n_viewpoints: int = 1) -> Markup:
    viewpoints = [make_viewpoint(f"{guid}-vp{i}") for i in range(n_viewpoints)]
    topic = Topic(
        guid=guid,
        topic_type="Issue",
        topic_status="Open",
        title=title,
        description=f"Description of {title}",
        creation_date="2023-01-01T10:00:00Z",
        creation_author="alice@example.com",
        labels=["Structural", "MEP"],
        comments=[
            Comment(
                guid=f"{guid}-c1",
                date="2023-01-02T08:30:00Z",
                author="bob@example.com",
                comment="Please check.",
                viewpoint=viewpoints[0].guid if viewpoints else None,
            )
        ],
    )
    header = Header(files=[HeaderFile(filename="model.ifc", date="2023-01-01T09:00:00Z")])
    return Markup(header=header, topic=topic, viewpoints=viewpoints)


@pytest.fixture
def demo_project() -> Project:
    """Project `p1`/`Demo` with a single topic `g1` titled `T1`."""
    return Project(
        project_id="p1",
        name="Demo",
        version="2.1",
        markups=[make_markup("g1", "T1")],
    )


@pytest.fixture
def big_project() -> Project:
    """Project with several markups, viewpoints and an extension schema."""
    return Project(
        project_id="p2",
        name="Big",
        extension_schema=ExtensionSchema(
            topic_types=("Issue", "Request"),
            topic_statuses=("Open", "Closed"),
            users=("alice@example.com", "bob@example.com"),
        ),
        markups=[
            make_markup("t1", "First", 0),
            make_markup("t2", "Second", 2),
            make_markup("t3", "Third", 1),
        ],
    )


@pytest.fixture
def markup_factory():
    """Return a function creating a markup with comments and viewpoints."""
    return make_markup


@pytest.fixture
def viewpoint_factory():
    """Return a function creating a viewpoint (with snapshot, by default)."""
    return make_viewpoint


@pytest.fixture
def snapshot_bytes():
    return PNG_BYTES
