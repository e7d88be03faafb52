"""Entities stored in a markup document: header and topic with its annotations."""
from __future__ import annotations

from typing import List, Optional

from pydantic import Field, NonNegativeInt

from .core import BcfModel


class HeaderFile(BcfModel):
    """Reference to a model file the topic is related to."""

    ifc_project: Optional[str] = None
    ifc_spatial_structure_element: Optional[str] = None
    is_external: bool = True
    filename: Optional[str] = None
    date: Optional[str] = None
    reference: Optional[str] = None


class Header(BcfModel):
    files: List[HeaderFile] = []


class BimSnippet(BcfModel):
    """Reference to a piece of BIM data (e.g. an IFC fragment) attached to a topic."""

    snippet_type: str
    is_external: bool = False
    reference: str
    reference_schema: Optional[str] = None


class DocumentReference(BcfModel):
    """Reference to a document attached to a topic.

    BCF 2.1 references documents by a file reference and an external flag,
    BCF 3.0 either by guid of a document stored in the container, or by URL.
    """

    guid: Optional[str] = None

    referenced_document: Optional[str] = None
    """Path or URL of the document (BCF 2.1)."""

    is_external: bool = False
    """Whether `referenced_document` points outside of the container (BCF 2.1)."""

    document_guid: Optional[str] = None
    """Guid of a document inside of the container (BCF 3.0)."""

    url: Optional[str] = None
    """Location of an external document (BCF 3.0)."""

    description: Optional[str] = None


class Comment(BcfModel):
    guid: str
    date: str
    author: str
    comment: Optional[str] = None
    viewpoint: Optional[str] = None
    """Guid of the viewpoint the comment refers to."""

    modified_date: Optional[str] = None
    modified_author: Optional[str] = None


class ViewPoint(BcfModel):
    """Reference from a topic to a viewpoint document and its snapshot image.

    File names are relative to the topic folder.
    """

    guid: str
    viewpoint: Optional[str] = None
    snapshot: Optional[str] = None
    index: Optional[NonNegativeInt] = None


class Topic(BcfModel):
    """A single issue, request or remark, with its comments and viewpoint references.

    The guid is the identity of the topic and can not be changed after creation,
    it also determines where the topic is stored in a container.
    Dates are kept as given (ISO 8601 strings).

    Values read from a container have surrounding whitespace stripped,
    so e.g. a title `"  T1  "` is written as is, but reads back as `"T1"`.
    """

    guid: str = Field(frozen=True)
    server_assigned_id: Optional[str] = None
    topic_type: Optional[str] = None
    topic_status: Optional[str] = None
    reference_links: List[str] = []
    title: str
    priority: Optional[str] = None
    index: Optional[int] = None
    labels: List[str] = []
    creation_date: str
    creation_author: str
    modified_date: Optional[str] = None
    modified_author: Optional[str] = None
    due_date: Optional[str] = None
    assigned_to: Optional[str] = None
    stage: Optional[str] = None
    description: Optional[str] = None
    bim_snippet: Optional[BimSnippet] = None
    document_references: List[DocumentReference] = []
    related_topics: List[str] = []
    """Guids of related topics."""

    comments: List[Comment] = []
    viewpoints: List[ViewPoint] = []

    def get_viewpoint_ref(self, guid: str) -> Optional[ViewPoint]:
        return next((vp for vp in self.viewpoints if vp.guid == guid), None)
