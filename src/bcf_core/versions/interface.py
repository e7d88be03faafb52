from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, List, Optional, Tuple, Union

from ..schema import ExtensionSchema, Header, Topic, VisualizationInfo
from ..xmltree import XmlParserConfig, XmlTree, parse_xml

XmlText = Union[str, bytes]


class VersionStrategy(ABC):
    """Interface implemented once for each supported BCF specification version.

    A strategy knows everything about the on-disk shape of the XML documents of
    its version and converts between them and the (version independent)
    entities. Readers and writers only talk to this interface, so supporting a
    new version of the specification only means adding an implementation
    and registering it in `bcf_core.versions`.

    All `parse_*` methods accept an optional `path` of the container entry
    the document was loaded from, which is attached to raised errors.
    They raise `ParseError` if the document is not well-formed XML and
    `SchemaMismatchError` if elements required by the version are missing.
    """

    version: ClassVar[str]
    """Version tag, e.g. `"2.1"`."""

    extension_schema_file: ClassVar[str]
    """Name of the entry holding the project extension schema."""

    xml_parser_config: ClassVar[XmlParserConfig]
    """Options needed to parse the documents of this version into trees."""

    def parse(self, text: XmlText, path: Optional[str] = None) -> XmlTree:
        """Parse a document of this version into a tree."""
        return parse_xml(text, self.xml_parser_config, path)

    # ---- descriptors

    @abstractmethod
    def parse_version(self, text: XmlText, path: Optional[str] = None) -> str:
        """Return the version declared in a version document."""

    @abstractmethod
    def serialize_version(self) -> str:
        """Return a version document declaring this version."""

    @abstractmethod
    def parse_project(
        self, text: XmlText, path: Optional[str] = None
    ) -> Tuple[str, str]:
        """Return project id and name from a project document."""

    @abstractmethod
    def serialize_project(
        self, project_id: str, name: str, with_extension_schema: bool = False
    ) -> str:
        """Return a project document.

        If `with_extension_schema` is set, the container will also hold
        an extension schema (some versions link it from the project document).
        """

    # ---- markup and viewpoints

    @abstractmethod
    def parse_markup(
        self, text: XmlText, path: Optional[str] = None
    ) -> Tuple[Optional[Header], Topic]:
        """Return header (if present) and topic of a markup document."""

    @abstractmethod
    def serialize_markup(self, header: Optional[Header], topic: Topic) -> str:
        """Return a markup document for the header and topic.

        Viewpoint references are taken from `topic.viewpoints`.
        """

    def check_topic(self, topic: Topic) -> List[str]:
        """Return problems preventing the topic from being written in this version."""
        return []

    @abstractmethod
    def parse_viewpoint(
        self, text: XmlText, path: Optional[str] = None
    ) -> VisualizationInfo:
        """Return the visualization info of a viewpoint document."""

    @abstractmethod
    def serialize_viewpoint(self, viewpoint: VisualizationInfo) -> str:
        """Return a viewpoint document."""

    # ---- extension schema

    @abstractmethod
    def normalize_extension_schema(
        self, tree: XmlTree, path: Optional[str] = None
    ) -> ExtensionSchema:
        """Convert a parsed extension schema document into an `ExtensionSchema`."""

    @abstractmethod
    def serialize_extension_schema(self, schema: ExtensionSchema) -> str:
        """Return an extension schema document."""

    def parse_extension_schema(
        self, text: XmlText, path: Optional[str] = None
    ) -> ExtensionSchema:
        return self.normalize_extension_schema(self.parse(text, path), path)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(version={self.version!r})"
