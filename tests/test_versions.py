import pytest

from bcf_core.errors import ParseError, SchemaMismatchError, UnsupportedVersionError
from bcf_core.schema import (
    Bitmap,
    BimSnippet,
    ClippingPlane,
    Component,
    ComponentColoring,
    Components,
    DocumentReference,
    Header,
    HeaderFile,
    Line,
    OrthogonalCamera,
    Point,
    Topic,
    ViewPoint,
    ViewSetupHints,
    VisualizationInfo,
)
from bcf_core.versions import Bcf21, Bcf30, get_strategy, supported_versions

ORIGIN = Point(x=0.0, y=0.0, z=0.0)
UP = Point(x=0.0, y=0.0, z=1.0)


def full_topic(**kwargs) -> Topic:
    data = dict(
        guid="a1b2c3",
        topic_type="Error",
        topic_status="Open",
        reference_links=["https://example.com/issue/1"],
        title="Wall too thin",
        priority="High",
        labels=["Architecture", "Structural"],
        creation_date="2023-05-04T12:00:00+00:00",
        creation_author="alice@example.com",
        modified_date="2023-05-05T12:00:00+00:00",
        modified_author="bob@example.com",
        due_date="2023-06-01T00:00:00+00:00",
        assigned_to="bob@example.com",
        stage="Design",
        description="The wall in the second floor is too thin.",
        bim_snippet=BimSnippet(snippet_type="JSON", reference="snippet.json"),
        related_topics=["d4e5f6"],
        comments=[
            {
                "guid": "c1",
                "date": "2023-05-04T13:00:00+00:00",
                "author": "bob@example.com",
                "comment": "Agreed & confirmed <really>",
                "viewpoint": "v1",
            }
        ],
        viewpoints=[ViewPoint(guid="v1", viewpoint="v1.bcfv", snapshot="v1.png")],
    )
    data.update(kwargs)
    return Topic(**data)


def full_viewpoint() -> VisualizationInfo:
    return VisualizationInfo(
        guid="v1",
        components=Components(
            view_setup_hints=ViewSetupHints(spaces_visible=True),
            selection=[Component(ifc_guid="sel1", authoring_tool_id="42")],
            visibility={
                "default_visibility": False,
                "exceptions": [{"ifc_guid": "ex1"}, {"ifc_guid": "ex2"}],
            },
            coloring=[
                ComponentColoring(color="FFFF0000", components=[Component(ifc_guid="c1")])
            ],
        ),
        orthogonal_camera=OrthogonalCamera(
            camera_view_point=Point(x=1.5, y=2.5, z=3.5),
            camera_direction=Point(x=-1.0, y=0.0, z=0.0),
            camera_up_vector=UP,
            view_to_world_scale=20.0,
        ),
        lines=[Line(start_point=ORIGIN, end_point=UP)],
        clipping_planes=[ClippingPlane(location=ORIGIN, direction=UP)],
        bitmaps=[
            Bitmap(
                format="png",
                reference="bitmap.png",
                location=ORIGIN,
                normal=UP,
                up=Point(x=0.0, y=1.0, z=0.0),
                height=2.0,
            )
        ],
    )


def test_registry():
    assert supported_versions() == ["2.1", "3.0"]
    assert isinstance(get_strategy("2.1"), Bcf21)
    assert isinstance(get_strategy("3.0"), Bcf30)
    assert repr(get_strategy("3.0")) == "Bcf30(version='3.0')"
    with pytest.raises(UnsupportedVersionError):
        get_strategy("1.0")


def test_version_document(version):
    bcf = get_strategy(version)
    assert bcf.parse_version(bcf.serialize_version()) == version


def test_version_document_layout():
    assert "DetailedVersion" in Bcf21().serialize_version()
    assert "DetailedVersion" not in Bcf30().serialize_version()
    # both strategies understand both layouts
    assert Bcf21().parse_version(Bcf30().serialize_version()) == "3.0"
    assert Bcf30().parse_version(Bcf21().serialize_version()) == "2.1"


def test_project_document(version):
    bcf = get_strategy(version)
    xml = bcf.serialize_project("p1", "Demo", with_extension_schema=True)
    assert bcf.parse_project(xml) == ("p1", "Demo")
    assert bcf.parse_project(bcf.serialize_project("", "")) == ("", "")


def test_project_document_layout():
    xml21 = Bcf21().serialize_project("p1", "Demo", with_extension_schema=True)
    assert "<ProjectExtension>" in xml21
    assert "<ExtensionSchema>extensions.xsd</ExtensionSchema>" in xml21
    xml30 = Bcf30().serialize_project("p1", "Demo", with_extension_schema=True)
    assert "<ProjectInfo>" in xml30
    assert "ExtensionSchema" not in xml30
    with pytest.raises(SchemaMismatchError):
        Bcf21().parse_project("<Markup/>", "project.bcfp")


def test_markup_roundtrip(version):
    bcf = get_strategy(version)
    header = Header(
        files=[
            HeaderFile(
                ifc_project="0M6o7Znnv7hxsbWgeu7oQq",
                filename="model.ifc",
                date="2023-05-01T00:00:00+00:00",
                reference="file:///model.ifc",
            )
        ]
    )
    topic = full_topic()

    header2, topic2 = bcf.parse_markup(bcf.serialize_markup(header, topic))
    assert header2 == header
    assert topic2 == topic


def test_markup_version_specific_fields():
    topic = full_topic(index=3, server_assigned_id="ISSUE-7")

    _, topic21 = Bcf21().parse_markup(Bcf21().serialize_markup(None, topic))
    assert topic21.index == 3
    assert topic21.server_assigned_id is None

    _, topic30 = Bcf30().parse_markup(Bcf30().serialize_markup(None, topic))
    assert topic30.index is None
    assert topic30.server_assigned_id == "ISSUE-7"


def test_markup_layout():
    topic = full_topic()
    xml21 = Bcf21().serialize_markup(Header(files=[HeaderFile()]), topic)
    xml30 = Bcf30().serialize_markup(Header(files=[HeaderFile()]), topic)

    tree21 = Bcf21().parse(xml21)["Markup"]
    assert "Comment" in tree21 and "Viewpoints" in tree21
    assert "File" in tree21["Header"]

    tree30 = Bcf30().parse(xml30)["Markup"]
    assert "Comment" not in tree30 and "Viewpoints" not in tree30
    assert "Comments" in tree30["Topic"] and "Viewpoints" in tree30["Topic"]
    assert "Files" in tree30["Header"]


def test_document_references():
    refs = [
        DocumentReference(guid="d1", referenced_document="../doc.pdf", description="x"),
        DocumentReference(guid="d2", url="https://example.com/spec.pdf"),
        DocumentReference(guid="d3", document_guid="0a1b"),
    ]
    topic = full_topic(document_references=refs)

    _, topic21 = Bcf21().parse_markup(Bcf21().serialize_markup(None, topic))
    assert topic21.document_references == [
        refs[0],
        DocumentReference(
            guid="d2", referenced_document="https://example.com/spec.pdf", is_external=True
        ),
        DocumentReference(guid="d3", referenced_document="0a1b"),
    ]

    _, topic30 = Bcf30().parse_markup(Bcf30().serialize_markup(None, topic))
    assert topic30.document_references == [
        DocumentReference(guid="d1", document_guid="../doc.pdf", description="x"),
        refs[1],
        refs[2],
    ]


def test_parse_markup_errors(version):
    bcf = get_strategy(version)
    with pytest.raises(ParseError):
        bcf.parse_markup("<Markup><Topic></Markup>", "g1/markup.bcf")
    with pytest.raises(SchemaMismatchError):
        bcf.parse_markup("<VisualizationInfo/>")
    with pytest.raises(SchemaMismatchError):
        bcf.parse_markup("<Markup><Header/></Markup>")

    xml = bcf.serialize_markup(None, full_topic()).replace(
        "<Title>Wall too thin</Title>", ""
    )
    with pytest.raises(SchemaMismatchError) as e:
        bcf.parse_markup(xml, "a1b2c3/markup.bcf")
    assert e.value.path == "a1b2c3/markup.bcf"


def test_topic_type_and_status_required_in_30():
    topic = full_topic(topic_type=None, topic_status=None)
    assert Bcf21().check_topic(topic) == []
    assert len(Bcf30().check_topic(topic)) == 2

    xml = Bcf21().serialize_markup(None, topic)
    assert Bcf21().parse_markup(xml)[1] == topic
    with pytest.raises(SchemaMismatchError):
        Bcf30().parse_markup(xml)


def test_viewpoint_roundtrip(version):
    bcf = get_strategy(version)
    vp = full_viewpoint()
    assert bcf.parse_viewpoint(bcf.serialize_viewpoint(vp)) == vp

    empty = VisualizationInfo(guid="v2")
    assert bcf.parse_viewpoint(bcf.serialize_viewpoint(empty)) == empty


def test_viewpoint_layout():
    vp = full_viewpoint()
    tree21 = Bcf21().parse(Bcf21().serialize_viewpoint(vp))["VisualizationInfo"]
    assert "ViewSetupHints" in tree21["Components"]["Visibility"]
    assert tree21["Bitmap"][0]["Bitmap"] == "PNG"

    tree30 = Bcf30().parse(Bcf30().serialize_viewpoint(vp))["VisualizationInfo"]
    assert "ViewSetupHints" in tree30["Components"]
    assert tree30["Bitmaps"]["Bitmap"][0]["Format"] == "png"


def test_camera_aspect_ratio():
    vp = full_viewpoint()
    assert vp.orthogonal_camera is not None
    vp.orthogonal_camera.aspect_ratio = 1.5

    vp30 = Bcf30().parse_viewpoint(Bcf30().serialize_viewpoint(vp))
    assert vp30.orthogonal_camera.aspect_ratio == 1.5
    vp21 = Bcf21().parse_viewpoint(Bcf21().serialize_viewpoint(vp))
    assert vp21.orthogonal_camera.aspect_ratio is None


def test_parse_viewpoint_errors(version):
    bcf = get_strategy(version)
    with pytest.raises(SchemaMismatchError):
        bcf.parse_viewpoint("<Markup/>")
    with pytest.raises(SchemaMismatchError) as e:
        bcf.parse_viewpoint("<VisualizationInfo><Lines/></VisualizationInfo>", "g/v.bcfv")
    assert e.value.path == "g/v.bcfv"
    # camera without required field of view
    broken = """<VisualizationInfo Guid="v"><PerspectiveCamera>
      <CameraViewPoint><X>0</X><Y>0</Y><Z>0</Z></CameraViewPoint>
      <CameraDirection><X>0</X><Y>0</Y><Z>1</Z></CameraDirection>
      <CameraUpVector><X>0</X><Y>1</Y><Z>0</Z></CameraUpVector>
    </PerspectiveCamera></VisualizationInfo>"""
    with pytest.raises(SchemaMismatchError):
        bcf.parse_viewpoint(broken)
