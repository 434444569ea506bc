"""Data models for the OPF package layer."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from epub_model.core.paths import ArchivePath
from epub_model.models.container import Rendition

XHTML_MEDIA_TYPES = frozenset({"application/xhtml+xml", "text/html"})
NCX_MEDIA_TYPE = "application/x-dtbncx+xml"
_XML_MEDIA_TYPES = frozenset({"application/xml", "text/xml", NCX_MEDIA_TYPE})


class MetadataEntry(BaseModel):
    """Single metadata term, from any vocabulary."""

    model_config = ConfigDict(frozen=True)

    term: str  # e.g. "dc:title", "dcterms:modified", "cover"
    value: str = ""
    id: str | None = None
    lang: str | None = None
    attributes: dict[str, str] = Field(default_factory=dict)
    # property -> value from <meta refines="#id"> elements
    refinements: dict[str, str] = Field(default_factory=dict)


class Metadata(BaseModel):
    """Ordered, open-ended bag of metadata entries."""

    model_config = ConfigDict(frozen=True)

    entries: list[MetadataEntry] = Field(default_factory=list)
    unique_identifier_id: str | None = None

    def find(self, term: str) -> list[MetadataEntry]:
        return [entry for entry in self.entries if entry.term == term]

    def first(self, term: str) -> MetadataEntry | None:
        return next((entry for entry in self.entries if entry.term == term), None)

    @property
    def titles(self) -> list[str]:
        return [entry.value for entry in self.find("dc:title")]

    @property
    def title(self) -> str | None:
        """Main title when one is marked, else the first dc:title."""
        titles = self.find("dc:title")
        for entry in titles:
            if entry.refinements.get("title-type") == "main":
                return entry.value
        return titles[0].value if titles else None

    @property
    def creators(self) -> list[str]:
        return [entry.value for entry in self.find("dc:creator")]

    @property
    def languages(self) -> list[str]:
        return [entry.value for entry in self.find("dc:language")]

    @property
    def language(self) -> str | None:
        languages = self.languages
        return languages[0] if languages else None

    @property
    def unique_identifier(self) -> str | None:
        identifiers = self.find("dc:identifier")
        for entry in identifiers:
            if self.unique_identifier_id and entry.id == self.unique_identifier_id:
                return entry.value
        return identifiers[0].value if identifiers else None

    @property
    def modified(self) -> str | None:
        entry = self.first("dcterms:modified")
        return entry.value if entry else None

    @property
    def release_identifier(self) -> str | None:
        """Unique identifier and modification date joined with "@"."""
        if self.unique_identifier is None or self.modified is None:
            return None
        return f"{self.unique_identifier}@{self.modified}"

    @property
    def cover_id(self) -> str | None:
        """Manifest id named by a legacy <meta name="cover">."""
        entry = self.first("cover")
        return entry.value if entry else None


class ManifestItem(BaseModel):
    """Resource declared in the manifest, with its href already resolved."""

    model_config = ConfigDict(frozen=True)

    id: str
    href: ArchivePath
    raw_href: str
    media_type: str
    properties: frozenset[str] = frozenset()
    fallback: str | None = None
    media_overlay: str | None = None

    @property
    def is_xhtml(self) -> bool:
        return self.media_type in XHTML_MEDIA_TYPES

    @property
    def is_xml(self) -> bool:
        return (
            self.media_type.endswith("+xml")
            or self.media_type in _XML_MEDIA_TYPES
        )

    @property
    def is_nav(self) -> bool:
        return "nav" in self.properties

    @property
    def is_ncx(self) -> bool:
        return self.media_type == NCX_MEDIA_TYPE

    @property
    def is_cover_image(self) -> bool:
        return "cover-image" in self.properties


class SpineItem(BaseModel):
    """Entry of the reading order."""

    model_config = ConfigDict(frozen=True)

    idref: str
    linear: bool = True
    id: str | None = None
    properties: frozenset[str] = frozenset()


class GuideReference(BaseModel):
    """Legacy EPUB 2 guide reference."""

    model_config = ConfigDict(frozen=True)

    type: str
    title: str = ""
    href: ArchivePath
    fragment: str | None = None


class InBandNavigation(BaseModel):
    """EPUB 3 navigation document declared with the "nav" property."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["nav"] = "nav"
    manifest_id: str
    path: ArchivePath


class LegacyNavigation(BaseModel):
    """EPUB 2 NCX file referenced from the spine."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ncx"] = "ncx"
    manifest_id: str
    path: ArchivePath


NavigationSource = Annotated[
    Union[InBandNavigation, LegacyNavigation], Field(discriminator="kind")
]


class Package(BaseModel):
    """Parsed package document of one rendition."""

    model_config = ConfigDict(frozen=True)

    location: ArchivePath
    rendition: Rendition | None = None
    version: str | None = None
    unique_identifier_id: str | None = None
    metadata: Metadata
    manifest: dict[str, ManifestItem]
    spine: list[SpineItem] = Field(default_factory=list)
    spine_toc: str | None = None
    page_progression_direction: str | None = None
    guide: list[GuideReference] = Field(default_factory=list)
    navigation_source: NavigationSource | None = None
    missing_resources: list[ArchivePath] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def item(self, item_id: str) -> ManifestItem | None:
        return self.manifest.get(item_id)

    def item_by_href(self, href: str) -> ManifestItem | None:
        return next((item for item in self.manifest.values() if item.href == href), None)

    def reading_order(self) -> list[ManifestItem]:
        """Manifest items in spine order."""
        return [self.manifest[ref.idref] for ref in self.spine]

    def linear_reading_order(self) -> list[ManifestItem]:
        return [self.manifest[ref.idref] for ref in self.spine if ref.linear]

    def items_by_media_type(self, media_type: str) -> list[ManifestItem]:
        return [item for item in self.manifest.values() if item.media_type == media_type]

    @property
    def nav_item(self) -> ManifestItem | None:
        return next((item for item in self.manifest.values() if item.is_nav), None)

    @property
    def ncx_item(self) -> ManifestItem | None:
        if self.spine_toc and self.spine_toc in self.manifest:
            return self.manifest[self.spine_toc]
        return next((item for item in self.manifest.values() if item.is_ncx), None)

    @property
    def cover_image(self) -> ManifestItem | None:
        """Cover image from the EPUB 3 property, else the legacy cover meta."""
        for item in self.manifest.values():
            if item.is_cover_image:
                return item
        cover_id = self.metadata.cover_id
        if cover_id:
            return self.manifest.get(cover_id)
        return None

    def fallback_chain(self, item: ManifestItem) -> list[ManifestItem]:
        """Item followed by its fallbacks, stopping at a dangling id or a cycle."""
        chain = [item]
        seen = {item.id}
        current = item
        while current.fallback and current.fallback not in seen:
            nxt = self.manifest.get(current.fallback)
            if nxt is None:
                break
            chain.append(nxt)
            seen.add(nxt.id)
            current = nxt
        return chain
