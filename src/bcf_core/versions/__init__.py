"""Version strategies, one for each supported BCF specification version."""
from __future__ import annotations

from typing import Dict, List, Type

from ..errors import UnsupportedVersionError
from .bcf21 import Bcf21
from .bcf30 import Bcf30
from .interface import VersionStrategy

BCF_VERSIONS: Dict[str, Type[VersionStrategy]] = {
    Bcf21.version: Bcf21,
    Bcf30.version: Bcf30,
}
"""Registered strategies by version tag."""

DEFAULT_VERSION = Bcf21.version


def supported_versions() -> List[str]:
    return list(BCF_VERSIONS.keys())


def get_strategy(version: str) -> VersionStrategy:
    """Return the strategy for the given specification version.

    Raises:
        UnsupportedVersionError: if the version is not supported
    """
    try:
        return BCF_VERSIONS[version]()
    except KeyError:
        msg = f"Unsupported BCF version: '{version}' (supported: {supported_versions()})"
        raise UnsupportedVersionError(msg) from None


__all__ = [
    "BCF_VERSIONS",
    "DEFAULT_VERSION",
    "Bcf21",
    "Bcf30",
    "VersionStrategy",
    "get_strategy",
    "supported_versions",
]
