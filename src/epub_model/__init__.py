"""Parse EPUB archives into a navigable document model."""

from epub_model.core.content import ContentDocument
from epub_model.core.parser import EpubParser, parse, parse_bytes
from epub_model.core.paths import ArchivePath, resolve, resolve_with_fragment
from epub_model.errors import (
    ArchiveClosedError,
    DanglingSpineReferenceError,
    DuplicateManifestIdError,
    EpubError,
    InvalidReferenceError,
    MalformedContainerError,
    MalformedContentError,
    MalformedNavigationError,
    MalformedPackageError,
    NoNavigationSourceError,
    NotAnEpubError,
    ResourceNotFoundError,
    SourceUnreadableError,
)
from epub_model.models import (
    Document,
    ManifestItem,
    NavigationTree,
    NavPoint,
    Package,
    ParseOptions,
    SpineItem,
)

__version__ = "0.1.0"

__all__ = [
    "ArchivePath",
    "ContentDocument",
    "Document",
    "EpubParser",
    "ManifestItem",
    "NavPoint",
    "NavigationTree",
    "Package",
    "ParseOptions",
    "SpineItem",
    "parse",
    "parse_bytes",
    "resolve",
    "resolve_with_fragment",
    # Errors
    "ArchiveClosedError",
    "DanglingSpineReferenceError",
    "DuplicateManifestIdError",
    "EpubError",
    "InvalidReferenceError",
    "MalformedContainerError",
    "MalformedContentError",
    "MalformedNavigationError",
    "MalformedPackageError",
    "NoNavigationSourceError",
    "NotAnEpubError",
    "ResourceNotFoundError",
    "SourceUnreadableError",
]
