"""Serialize the entity graph of a project into a BCF container."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from .container import BcfContainer
from .errors import ValidationError
from .layout import (
    PROJECT_FILE,
    VERSION_FILE,
    default_snapshot_file,
    default_viewpoint_file,
    markup_path,
    topic_path,
)
from .schema import Markup, Project, Topic, ViewPoint, VisualizationInfo
from .versions import DEFAULT_VERSION, VersionStrategy, get_strategy
from .xmltree import xml_compatible

logger = logging.getLogger(__name__)

# viewpoint with the bytes of its snapshot (if any)
_Snapshots = List[Tuple[VisualizationInfo, Optional[bytes]]]


class BcfWriter:
    """Writer producing containers of one specification version.

    The whole archive is built in memory, the caller only gets to see
    the finished bytes (or an exception).
    """

    strategy: VersionStrategy

    def __init__(self, version: str = DEFAULT_VERSION):
        self.strategy = get_strategy(version)

    def write(self, project: Project) -> bytes:
        """Return the bytes of a container holding the project.

        Raises:
            ValidationError: if the project violates invariants needed to write it
        """
        self.validate(project)
        if project.version and project.version != self.strategy.version:
            logger.warning(
                "Project has version %s, writing it as %s",
                project.version,
                self.strategy.version,
            )

        container = BcfContainer.create()
        self._put(container, VERSION_FILE, self.strategy.serialize_version())
        has_schema = project.extension_schema is not None
        prj = self.strategy.serialize_project(project.project_id, project.name, has_schema)
        self._put(container, PROJECT_FILE, prj)
        if project.extension_schema is not None:
            ext = self.strategy.serialize_extension_schema(project.extension_schema)
            self._put(container, self.strategy.extension_schema_file, ext)

        for markup in project.markups:
            self._write_markup(container, markup)

        ret = container.to_bytes()
        logger.info(
            "Wrote project '%s' with %d markups (%d bytes)",
            project.name,
            len(project.markups),
            len(ret),
        )
        return ret

    async def awrite(self, project: Project) -> bytes:
        """Like `write`, but runs in a worker thread."""
        return await asyncio.to_thread(self.write, project)

    def validate(self, project: Project):
        """Check that the project can be written.

        Raises:
            ValidationError: collecting all problems, by markup
        """
        errs = ValidationError()
        for where in _xml_incompatible(project.model_dump(exclude={"markups"})):
            errs.add("project", f"'{where}' has characters not allowed in XML")
        seen: Dict[str, int] = {}
        for i, markup in enumerate(project.markups):
            key = f"markups[{i}]"
            guid = markup.topic.guid
            if not guid:
                errs.add(key, "Topic guid is empty")
            elif guid in seen:
                msg = f"Topic guid '{guid}' is already used by markups[{seen[guid]}]"
                errs.add(key, msg)
            else:
                seen[guid] = i
            for problem in self.strategy.check_topic(markup.topic):
                errs.add(key, problem)
            for problem in self._check_viewpoints(markup):
                errs.add(key, problem)
            for where in _xml_incompatible(markup.model_dump()):
                errs.add(key, f"'{where}' has characters not allowed in XML")
        if errs:
            raise errs

    # ----

    def _check_viewpoints(self, markup: Markup) -> List[str]:
        problems = []
        vp_guids: Set[str] = set()
        for vp in markup.viewpoints:
            if not vp.guid:
                problems.append("Viewpoint guid is empty")
            elif vp.guid in vp_guids:
                problems.append(f"Viewpoint guid '{vp.guid}' is not unique")
            vp_guids.add(vp.guid)
        for ref in markup.topic.viewpoints:
            if ref.guid not in vp_guids:
                problems.append(f"Viewpoint reference '{ref.guid}' has no viewpoint")

        files = [r.viewpoint for r in self._viewpoint_refs(markup)]
        for name in sorted({f for f in files if files.count(f) > 1}):
            problems.append(f"Viewpoint file '{name}' is used more than once")
        return problems

    def _viewpoint_refs(
        self, markup: Markup, snapshots: Optional[_Snapshots] = None
    ) -> List[ViewPoint]:
        """Derive the topic viewpoint references from the viewpoints of a markup.

        Existing file names are kept, missing ones get default names.
        The snapshot name is only kept if there is a snapshot to be written.
        """
        ret = []
        for i, vp in enumerate(markup.viewpoints):
            old = markup.topic.get_viewpoint_ref(vp.guid)
            data = snapshots[i][1] if snapshots is not None else None
            snapshot = None
            if data is not None:
                snapshot = vp.snapshot or (old and old.snapshot)
                snapshot = snapshot or default_snapshot_file(vp.guid)
            ret.append(
                ViewPoint(
                    guid=vp.guid,
                    viewpoint=(old and old.viewpoint) or default_viewpoint_file(vp.guid),
                    snapshot=snapshot,
                    index=old.index if old else None,
                )
            )
        return ret

    def _write_markup(self, container: BcfContainer, markup: Markup):
        topic = markup.topic
        snapshots = [(vp, vp.get_snapshot_bytes()) for vp in markup.viewpoints]
        refs = self._viewpoint_refs(markup, snapshots)
        out_topic: Topic = topic.model_copy(update={"viewpoints": refs})

        xml = self.strategy.serialize_markup(markup.header, out_topic)
        self._put(container, markup_path(topic.guid), xml)
        for ref, (vp, data) in zip(refs, snapshots):
            vp_file = ref.viewpoint or default_viewpoint_file(vp.guid)
            vp_xml = self.strategy.serialize_viewpoint(vp)
            self._put(container, topic_path(topic.guid, vp_file), vp_xml)
            if ref.snapshot is not None and data is not None:
                self._put(container, topic_path(topic.guid, ref.snapshot), data)

    def _put(self, container: BcfContainer, path: str, data):
        blob = data.encode("utf-8") if isinstance(data, str) else data
        container.put(path, blob)
        logger.debug("Wrote entry %s (%d bytes)", path, len(blob))


def _xml_incompatible(value: Any, where: str = "") -> Iterator[str]:
    """Yield the locations of strings in dumped model data that XML cannot hold."""
    if isinstance(value, str):
        if not xml_compatible(value):
            yield where
    elif isinstance(value, dict):
        for k, v in value.items():
            yield from _xml_incompatible(v, f"{where}.{k}" if where else k)
    elif isinstance(value, (list, tuple)):
        for i, v in enumerate(value):
            yield from _xml_incompatible(v, f"{where}[{i}]")


__all__ = ["BcfWriter"]
