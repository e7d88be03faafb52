"""Reading and writing of BIM Collaboration Format (BCF) containers."""
import importlib_metadata
from typing_extensions import Final

from .container import BcfContainer  # noqa: F401
from .errors import (  # noqa: F401
    ArchiveError,
    BcfError,
    DuplicatePathError,
    MissingEntryError,
    ParseError,
    SchemaMismatchError,
    UnsupportedInputError,
    UnsupportedVersionError,
    ValidationError,
)
from .reader import BcfReader  # noqa: F401
from .schema import ExtensionSchema, Markup, Project, Topic, VisualizationInfo  # noqa: F401
from .versions import get_strategy, supported_versions  # noqa: F401
from .writer import BcfWriter  # noqa: F401

# Set version, will use version from pyproject.toml if defined
__version__: Final[str] = importlib_metadata.version(__package__ or __name__)
