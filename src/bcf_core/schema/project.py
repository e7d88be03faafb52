"""Project root entity, markups and the project extension schema."""
from __future__ import annotations

import weakref
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ConfigDict, PrivateAttr, model_validator

from .core import BcfModel
from .markup import Header, Topic
from .visinfo import VisualizationInfo


class ExtensionSchema(BcfModel):
    """Permitted values of topic fields, as declared for a project.

    Instances are immutable. An empty category means that nothing
    was declared for it (i.e. any value is allowed).
    """

    model_config = ConfigDict(frozen=True)

    topic_types: Tuple[str, ...] = ()
    topic_statuses: Tuple[str, ...] = ()
    topic_labels: Tuple[str, ...] = ()
    priorities: Tuple[str, ...] = ()
    users: Tuple[str, ...] = ()
    stages: Tuple[str, ...] = ()
    snippet_types: Tuple[str, ...] = ()

    def categories(self) -> Dict[str, Tuple[str, ...]]:
        """Return mapping from category name to permitted values."""
        return {name: getattr(self, name) for name in type(self).model_fields}

    def allows(self, category: str, value: str) -> bool:
        """Return whether a value is permitted in a category.

        Categories without declared values permit everything.
        """
        values = self.categories()[category]
        return not values or value in values


class Markup(BcfModel):
    """The per-topic unit of a BCF container: a topic with header and viewpoints.

    A markup knows the project it belongs to through a weak reference,
    which is set by the project (see `Project.add_markup`).
    """

    header: Optional[Header] = None
    topic: Topic
    viewpoints: List[VisualizationInfo] = []

    _project_ref: Optional[Any] = PrivateAttr(default=None)

    @property
    def project(self) -> Optional[Project]:
        """Return the project owning this markup (if any)."""
        if self._project_ref is None:
            return None
        return self._project_ref()

    def _set_project(self, project: Optional[Project]):
        self._project_ref = weakref.ref(project) if project is not None else None

    def get_viewpoint(self, guid: str) -> Optional[VisualizationInfo]:
        return next((vp for vp in self.viewpoints if vp.guid == guid), None)


class Project(BcfModel):
    """Root entity, owning all markups of a container."""

    project_id: str = ""
    name: str = ""
    version: str = ""
    """Specification version the project was read from or is intended for."""

    extension_schema: Optional[ExtensionSchema] = None
    markups: List[Markup] = []

    @model_validator(mode="after")
    def _link_markups(self) -> Project:
        self._relink()
        return self

    def _relink(self):
        for markup in self.markups:
            markup._set_project(self)

    def __deepcopy__(self, memo: Optional[Dict[int, Any]] = None) -> Project:
        # copied weak references still point to the original project
        ret = super().__deepcopy__(memo)
        ret._relink()
        return ret

    def add_markup(self, markup: Markup) -> Markup:
        """Append a markup and make this project its owner."""
        self.markups.append(markup)
        markup._set_project(self)
        return markup

    def get_markup(self, guid: str) -> Optional[Markup]:
        """Return the markup whose topic has the given guid."""
        return next((m for m in self.markups if m.topic.guid == guid), None)

    def topic_guids(self) -> List[str]:
        return [m.topic.guid for m in self.markups]
