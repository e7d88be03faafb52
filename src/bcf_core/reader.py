"""Build the entity graph of a project from a BCF container."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Literal, Optional, Tuple

from .container import BcfContainer, BcfSource
from .errors import BcfError, MissingEntryError
from .layout import (
    MARKUP_SUFFIX,
    PROJECT_SUFFIX,
    VERSION_SUFFIX,
    markup_path,
    topic_path,
)
from .schema import ExtensionSchema, Markup, Project, ViewPoint, VisualizationInfo
from .versions import DEFAULT_VERSION, VersionStrategy, get_strategy

logger = logging.getLogger(__name__)

ErrorPolicy = Literal["raise", "skip"]


@dataclass
class _Classified:
    """Entry paths of a container, grouped by their role."""

    version: Optional[str] = None
    project: Optional[str] = None
    extension_schema: Optional[str] = None
    markups: List[str] = field(default_factory=list)
    ignored: List[str] = field(default_factory=list)


class BcfReader:
    """Reader for containers of one specification version.

    With `on_error="raise"` the first error aborts the read. With `"skip"`,
    errors of single markups or descriptors are logged and collected in
    `errors`, the affected markup is left out and the read goes on.
    Errors of the archive itself are always raised.
    """

    strategy: VersionStrategy
    on_error: ErrorPolicy

    errors: List[BcfError]
    """Errors collected during the last read (`on_error="skip"` only)."""

    project: Optional[Project]
    """Project returned by the last read."""

    def __init__(self, version: str = DEFAULT_VERSION, on_error: ErrorPolicy = "raise"):
        if on_error not in ("raise", "skip"):
            raise ValueError(f"Invalid error policy: '{on_error}'")
        self.strategy = get_strategy(version)
        self.on_error = on_error
        self.errors = []
        self.project = None

    def read(self, src: BcfSource) -> Project:
        """Open an archive and return the project stored in it.

        Raises:
            UnsupportedInputError: if `src` is not of an accepted form
            ArchiveError: if `src` is not a valid zip archive
            BcfError: on other errors, unless errors are skipped
        """
        return self.read_container(BcfContainer.open(src))

    async def aread(self, src: BcfSource) -> Project:
        """Like `read`, but runs in a worker thread."""
        return await asyncio.to_thread(self.read, src)

    def read_container(self, container: BcfContainer) -> Project:
        """Return the project stored in an opened container."""
        self.errors = []
        entries = self._classify(container)

        version = self._read_descriptor(container, entries.version, self._parse_version)
        if version and version != self.strategy.version:
            logger.warning(
                "Container declares version %s, reading it as %s",
                version,
                self.strategy.version,
            )
        project_id, name = self._read_descriptor(
            container, entries.project, self._parse_project
        ) or ("", "")
        ext_schema = self._read_descriptor(
            container, entries.extension_schema, self._parse_extension_schema
        )

        markups: List[Markup] = []
        for path in entries.markups:
            try:
                markups.append(self._read_markup(container, path))
            except BcfError as e:
                self._handle(e, "markup")

        self.project = Project(
            project_id=project_id,
            name=name,
            version=version or "",
            extension_schema=ext_schema,
            markups=markups,
        )
        logger.info(
            "Read project '%s' with %d markups (%d skipped)",
            self.project.name,
            len(markups),
            len(self.errors),
        )
        return self.project

    # ----

    def _classify(self, container: BcfContainer) -> _Classified:
        ret = _Classified()
        ext_file = self.strategy.extension_schema_file
        for path in container.names():
            if path.endswith(MARKUP_SUFFIX):
                ret.markups.append(path)
            elif path.endswith(VERSION_SUFFIX) and ret.version is None:
                ret.version = path
            elif path.endswith(PROJECT_SUFFIX) and ret.project is None:
                ret.project = path
            elif path.endswith(ext_file) and ret.extension_schema is None:
                ret.extension_schema = path
            else:
                ret.ignored.append(path)
        logger.debug(
            "Found %d markups, version=%s, project=%s, extensions=%s (%d ignored)",
            len(ret.markups),
            ret.version,
            ret.project,
            ret.extension_schema,
            len(ret.ignored),
        )
        return ret

    def _handle(self, err: BcfError, what: str):
        if self.on_error == "raise":
            raise err
        logger.warning("Skipping %s: %s", what, err)
        self.errors.append(err)

    def _read_descriptor(self, container: BcfContainer, path: Optional[str], parse):
        if path is None:
            return None
        blob = container.require(path)
        try:
            return parse(blob, path)
        except BcfError as e:
            self._handle(e, "descriptor")
            return None

    def _parse_version(self, blob: bytes, path: str) -> str:
        return self.strategy.parse_version(blob, path)

    def _parse_project(self, blob: bytes, path: str) -> Tuple[str, str]:
        return self.strategy.parse_project(blob, path)

    def _parse_extension_schema(self, blob: bytes, path: str) -> ExtensionSchema:
        return self.strategy.parse_extension_schema(blob, path)

    def _read_markup(self, container: BcfContainer, path: str) -> Markup:
        blob = container.require(path)
        header, topic = self.strategy.parse_markup(blob, path)
        logger.debug("Reading topic %s from %s", topic.guid, path)
        viewpoints = [
            self._read_viewpoint(container, topic.guid, ref) for ref in topic.viewpoints
        ]
        return Markup(header=header, topic=topic, viewpoints=viewpoints)

    def _read_viewpoint(
        self, container: BcfContainer, topic_guid: str, ref: ViewPoint
    ) -> VisualizationInfo:
        if not ref.viewpoint:
            msg = f"Viewpoint reference {ref.guid} of topic {topic_guid} names no file"
            raise MissingEntryError(msg, markup_path(topic_guid))
        vp_path = topic_path(topic_guid, ref.viewpoint)
        blob = container.get(vp_path)
        if blob is None:
            raise MissingEntryError("Referenced viewpoint does not exist!", vp_path)
        vp = self.strategy.parse_viewpoint(blob, vp_path)

        if ref.snapshot:
            snap_path = topic_path(topic_guid, ref.snapshot)
            if snap_path not in container:
                raise MissingEntryError("Referenced snapshot does not exist!", snap_path)
            vp.snapshot = ref.snapshot
            vp.bind_snapshot(lambda: container.get(snap_path))
        return vp


__all__ = ["BcfReader", "ErrorPolicy"]
