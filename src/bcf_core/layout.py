"""
Constants and helper functions.

Provides syntactic path transformations implementing the BCF container layout.
"""

from typing_extensions import Final

VERSION_FILE: Final[str] = "bcf.version"
"""Path of the document declaring the specification version of the container."""

PROJECT_FILE: Final[str] = "project.bcfp"
"""Path of the document with project id and name."""

MARKUP_FILE: Final[str] = "markup.bcf"
"""Name of the markup document inside of a topic folder."""

VERSION_SUFFIX: Final[str] = ".version"
PROJECT_SUFFIX: Final[str] = ".bcfp"
MARKUP_SUFFIX: Final[str] = ".bcf"

VIEWPOINT_EXT: Final[str] = ".bcfv"
"""Extension of viewpoint documents named after their guid."""

SNAPSHOT_EXT: Final[str] = ".png"
"""Extension of snapshot images named after their viewpoint guid."""


def topic_path(guid: str, name: str) -> str:
    """Return the entry path of a file scoped under the folder of a topic."""
    return f"{guid}/{name}"


def markup_path(guid: str) -> str:
    """Return the entry path of the markup document of a topic."""
    return topic_path(guid, MARKUP_FILE)


def default_viewpoint_file(vp_guid: str) -> str:
    return f"{vp_guid}{VIEWPOINT_EXT}"


def default_snapshot_file(vp_guid: str) -> str:
    return f"{vp_guid}{SNAPSHOT_EXT}"


def is_directory_entry(path: str) -> bool:
    """Return whether a zip member name denotes a directory, not a file."""
    return path.endswith("/")
