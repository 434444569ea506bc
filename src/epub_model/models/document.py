"""Top-level parse result."""

from collections.abc import Iterator
from typing import TYPE_CHECKING

from lxml import etree
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from epub_model.models.container import ContainerDescriptor
from epub_model.models.navigation import NavigationTree
from epub_model.models.package import ManifestItem, Metadata, Package

if TYPE_CHECKING:
    from epub_model.core.content import ContentAccessor, ContentDocument


class Document(BaseModel):
    """Parsed EPUB publication.

    Owns the archive handle; resources are only read when requested
    through open/read/content_document. Closing the document makes
    every later access fail with ArchiveClosedError.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    container: ContainerDescriptor
    packages: list[Package]
    navigation: NavigationTree = Field(default_factory=NavigationTree)
    landmarks: NavigationTree = Field(
        default_factory=lambda: NavigationTree(kind="landmarks")
    )
    page_list: NavigationTree = Field(
        default_factory=lambda: NavigationTree(kind="page-list")
    )
    warnings: list[str] = Field(default_factory=list)

    _accessor = PrivateAttr(default=None)

    def attach(self, accessor: "ContentAccessor") -> "Document":
        self._accessor = accessor
        return self

    @property
    def package(self) -> Package:
        """Package of the default rendition."""
        return self.packages[0]

    @property
    def metadata(self) -> Metadata:
        return self.package.metadata

    @property
    def title(self) -> str | None:
        return self.package.metadata.title

    @property
    def missing_resources(self) -> list[str]:
        return [path for package in self.packages for path in package.missing_resources]

    @property
    def is_valid(self) -> bool:
        """True when every declared resource exists in the archive."""
        return not self.missing_resources

    def _require_accessor(self) -> "ContentAccessor":
        if self._accessor is None:
            raise RuntimeError("Document is not attached to an archive")
        return self._accessor

    def read(self, item: ManifestItem) -> bytes:
        return self._require_accessor().read(item)

    def open(self, item: ManifestItem) -> etree._ElementTree | bytes:
        return self._require_accessor().open(item)

    def content_document(self, item: ManifestItem) -> "ContentDocument":
        return self._require_accessor().content_document(item)

    def spine_documents(self, linear_only: bool = False) -> Iterator["ContentDocument"]:
        """Content documents of the default rendition in reading order."""
        package = self.package
        items = package.linear_reading_order() if linear_only else package.reading_order()
        for item in items:
            if item.is_xhtml:
                yield self.content_document(item)

    @property
    def closed(self) -> bool:
        return self._accessor is None or self._accessor.closed

    def close(self) -> None:
        if self._accessor is not None:
            self._accessor.close()

    def __enter__(self) -> "Document":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
