"""
Access layer wrapping the raw zip archive of a BCF container.

`BcfContainer` is a thin mapping from entry path to bytes.
It is either opened read-only from existing archive bytes
(members are decompressed on demand), or created empty for writing,
populated with `put` and finally turned into archive bytes with `to_bytes`.
"""
from __future__ import annotations

import logging
import os
import zipfile
import zlib
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from typing_extensions import Final

from .errors import (
    ArchiveError,
    DuplicatePathError,
    MissingEntryError,
    UnsupportedInputError,
)
from .layout import is_directory_entry

logger = logging.getLogger(__name__)

ZIP_DATE_TIME: Final[Tuple[int, int, int, int, int, int]] = (1980, 1, 1, 0, 0, 0)
"""Timestamp stored for every written entry (earliest date zip can represent)."""

ZIP_FILE_MODE: Final[int] = 0o644
"""Unix permissions stored for every written entry."""

BcfSource = Union[bytes, bytearray, memoryview, os.PathLike, Any]
"""Input forms accepted by `BcfContainer.open`."""


def read_source(src: BcfSource) -> bytes:
    """Normalize the accepted input forms into a byte buffer.

    String input (URLs, base64 text, string paths) is rejected explicitly.
    """
    if isinstance(src, str):
        msg = "String input is not supported, pass bytes, a binary stream or a Path."
        raise UnsupportedInputError(msg)
    if isinstance(src, (bytes, bytearray, memoryview)):
        return bytes(src)
    if isinstance(src, os.PathLike):
        path = Path(src)
        try:
            return path.read_bytes()
        except OSError as e:
            raise ArchiveError(f"Cannot read archive file: {e}", str(path)) from e
    read = getattr(src, "read", None)
    if callable(read):
        data = read()
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
    raise UnsupportedInputError(f"Unsupported input type: {type(src).__name__}")


class BcfContainer:
    """Mapping from entry path to immutable byte blob.

    Use `open` to read an existing archive and `create` for a fresh, writable one.
    """

    _zip: Optional[zipfile.ZipFile]  # source archive (read mode)
    _blobs: Dict[str, bytes]  # populated entries (write mode)
    _names: List[str]  # entry paths in archive / insertion order

    def __init__(self):
        self._zip = None
        self._blobs = {}
        self._names = []

    @classmethod
    def create(cls) -> BcfContainer:
        """Return an empty container to be populated for writing."""
        return cls()

    @classmethod
    def open(cls, src: BcfSource) -> BcfContainer:
        """Open an existing archive read-only.

        Raises:
            UnsupportedInputError: if `src` is not of an accepted form
            ArchiveError: if the data is not a valid zip archive
        """
        data = read_source(src)
        try:
            zf = zipfile.ZipFile(BytesIO(data), "r")
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as e:
            raise ArchiveError(f"Not a valid zip archive: {e}") from e

        names = [n for n in zf.namelist() if not is_directory_entry(n)]
        seen = set()
        for info in zf.infolist():
            if is_directory_entry(info.filename):
                continue
            if info.filename in seen:
                zf.close()
                msg = "Archive contains this entry more than once!"
                raise ArchiveError(msg, info.filename)
            if info.flag_bits & 0x1:
                zf.close()
                raise ArchiveError("Encrypted entries are not supported!", info.filename)
            seen.add(info.filename)

        ret = cls()
        ret._zip = zf
        ret._names = names
        logger.debug("Opened archive with %d entries", len(names))
        return ret

    @property
    def writable(self) -> bool:
        return self._zip is None

    def __contains__(self, path: object) -> bool:
        if self._zip is not None:
            return path in self._zip.NameToInfo and not is_directory_entry(str(path))
        return path in self._blobs

    def __len__(self) -> int:
        return len(self._names)

    def names(self) -> List[str]:
        """Return entry paths in archive order (or insertion order, when writing)."""
        return list(self._names)

    def get(self, path: str) -> Optional[bytes]:
        """Return the blob stored at `path`, or None if there is no such entry."""
        if path not in self:
            return None
        if self._zip is None:
            return self._blobs[path]
        try:
            return self._zip.read(path)
        except (
            zipfile.BadZipFile,
            zlib.error,
            EOFError,
            NotImplementedError,  # unsupported compression method
            RuntimeError,  # encrypted entry
        ) as e:
            raise ArchiveError(f"Cannot decompress entry: {e}", path) from e

    def require(self, path: str) -> bytes:
        """Return the blob stored at `path`.

        Raises:
            MissingEntryError: if there is no such entry
        """
        blob = self.get(path)
        if blob is None:
            raise MissingEntryError("Entry does not exist!", path)
        return blob

    def entries(self) -> Iterator[Tuple[str, bytes]]:
        """Iterate over (path, blob) pairs. Can be called any number of times."""
        for name in self._names:
            yield (name, self.require(name))

    def put(self, path: str, blob: bytes):
        """Add a new entry to a writable container.

        Raises:
            ArchiveError: if the container was opened read-only
            DuplicatePathError: if the path is already populated
        """
        if not self.writable:
            raise ArchiveError("Container is read-only!", path)
        if not path or is_directory_entry(path):
            raise ValueError(f"Invalid entry path: '{path}'")
        if path in self._blobs:
            raise DuplicatePathError("Entry already exists!", path)
        self._blobs[path] = bytes(blob)
        self._names.append(path)

    def to_bytes(self) -> bytes:
        """Compress all entries into the bytes of a zip archive.

        Entries are stored in insertion order with fixed metadata,
        so equal containers result in equal bytes.
        """
        if not self.writable:
            raise ArchiveError("Container is read-only!")
        buf = BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
            for name in self._names:
                info = zipfile.ZipInfo(name, date_time=ZIP_DATE_TIME)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.create_system = 3  # unix, so the permissions are honored
                info.external_attr = ZIP_FILE_MODE << 16
                zf.writestr(info, self._blobs[name])
        return buf.getvalue()
