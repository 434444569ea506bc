"""Data models."""

from epub_model.models.container import (
    ContainerDescriptor,
    EncryptedResource,
    Rendition,
)
from epub_model.models.document import Document
from epub_model.models.navigation import NavigationTree, NavPoint
from epub_model.models.options import ParseOptions
from epub_model.models.package import (
    GuideReference,
    InBandNavigation,
    LegacyNavigation,
    ManifestItem,
    Metadata,
    MetadataEntry,
    NavigationSource,
    Package,
    SpineItem,
)

__all__ = [
    # Container models
    "ContainerDescriptor",
    "EncryptedResource",
    "Rendition",
    # Package models
    "GuideReference",
    "InBandNavigation",
    "LegacyNavigation",
    "ManifestItem",
    "Metadata",
    "MetadataEntry",
    "NavigationSource",
    "Package",
    "SpineItem",
    # Navigation models
    "NavPoint",
    "NavigationTree",
    # Result and options
    "Document",
    "ParseOptions",
]
