"""Exceptions raised while reading or writing BCF containers."""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class BcfError(Exception):
    """Base class of all errors raised by this package.

    If the error can be attributed to an entry of the container,
    `path` holds the entry path and is prepended to the message.
    """

    path: Optional[str]

    def __init__(self, msg: str = "", path: Optional[str] = None):
        self.path = path
        self.msg = msg
        super().__init__(f"{path}: {msg}" if path else msg)


class ArchiveError(BcfError):
    """Input is not a readable zip archive, or the archive cannot be modified."""


class UnsupportedInputError(BcfError):
    """Input form is not accepted (e.g. a URL or other string)."""


class UnsupportedVersionError(BcfError):
    """No strategy is available for the requested specification version."""


class ParseError(BcfError):
    """XML document is structurally invalid."""


class SchemaMismatchError(BcfError):
    """XML is well-formed, but elements required by the specification are missing."""


class MissingEntryError(BcfError):
    """A path referenced from another document is absent from the container."""


class DuplicatePathError(BcfError):
    """An entry path was populated twice while writing."""


class ValidationError(BcfError):
    """Project graph violates an invariant required for serialization.

    Collects all detected problems, mapping a markup key
    (e.g. `markups[2]`, or `project` for the project itself) to a list of messages.
    """

    errors: Dict[str, List[Any]]

    def __init__(self, errs: Optional[Dict[str, List[Any]]] = None):
        self.errors = errs or {}
        super().__init__(self._summary())

    def _summary(self) -> str:
        lines = (f"{k}: {'; '.join(map(str, v))}" for k, v in self.errors.items())
        return "Project is not serializable:\n" + "\n".join(lines)

    def __bool__(self):
        return bool(self.errors)

    def add(self, k: str, v: Any):
        if k not in self.errors:
            self.errors[k] = []
        self.errors[k].append(v)
        self.args = (self._summary(),)


__all__ = [
    "BcfError",
    "ArchiveError",
    "UnsupportedInputError",
    "UnsupportedVersionError",
    "ParseError",
    "SchemaMismatchError",
    "MissingEntryError",
    "DuplicatePathError",
    "ValidationError",
]
