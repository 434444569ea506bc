"""OPF layer: metadata, manifest, spine, guide and navigation source."""

import logging

from lxml import etree

from epub_model.core.archive import ZipEntryReader
from epub_model.core.paths import ArchivePath, resolve, resolve_with_fragment
from epub_model.core.xml import (
    NAMESPACES,
    XML_LANG,
    local_name,
    parse_xml,
    plain_attributes,
    qualified_name,
    text_content,
    tokens,
)
from epub_model.errors import (
    DanglingSpineReferenceError,
    DuplicateManifestIdError,
    InvalidReferenceError,
    MalformedPackageError,
    NoNavigationSourceError,
    ResourceNotFoundError,
)
from epub_model.models.container import Rendition
from epub_model.models.options import ParseOptions
from epub_model.models.package import (
    GuideReference,
    InBandNavigation,
    LegacyNavigation,
    ManifestItem,
    Metadata,
    MetadataEntry,
    NCX_MEDIA_TYPE,
    Package,
    SpineItem,
)

log = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"
# EPUB 2 opf:* attributes that play the role of EPUB 3 refinements
_LEGACY_REFINING_ATTRIBUTES = {"role", "file-as", "scheme", "event"}
_METADATA_WRAPPERS = {"dc-metadata", "x-metadata"}


def _children(element: etree._Element, name: str) -> list[etree._Element]:
    return [child for child in element if local_name(child) == name]


def _child(element: etree._Element, name: str) -> etree._Element | None:
    return next((child for child in element if local_name(child) == name), None)


class PackageParser:
    """Parse one package document into a Package.

    Recoverable anomalies are logged and collected in ``warnings``;
    integrity violations raise.
    """

    def __init__(
        self,
        reader: ZipEntryReader,
        location: ArchivePath,
        rendition: Rendition | None = None,
        options: ParseOptions | None = None,
    ):
        self.reader = reader
        self.location = location
        self.rendition = rendition
        self.options = options or ParseOptions()
        self.warnings: list[str] = []

    def _warn(self, message: str) -> None:
        log.warning("%s: %s", self.location, message)
        self.warnings.append(message)

    def parse(self) -> Package:
        root = self._load()
        unique_identifier_id = root.get("unique-identifier")

        metadata_el = _child(root, "metadata")
        if metadata_el is None:
            raise MalformedPackageError(
                "Package document has no <metadata>", path=self.location
            )
        manifest_el = _child(root, "manifest")
        if manifest_el is None:
            raise MalformedPackageError(
                "Package document has no <manifest>", path=self.location
            )

        manifest = self._parse_manifest(manifest_el)
        metadata = self._parse_metadata(metadata_el, manifest, unique_identifier_id)

        spine_el = _child(root, "spine")
        if spine_el is None:
            self._warn("package has no <spine>, reading order is empty")
            spine, spine_toc, direction = [], None, None
        else:
            spine = self._parse_spine(spine_el, manifest)
            spine_toc = spine_el.get("toc")
            direction = spine_el.get("page-progression-direction")

        guide_el = _child(root, "guide")
        guide = self._parse_guide(guide_el) if guide_el is not None else []

        package = Package(
            location=self.location,
            rendition=self.rendition,
            version=root.get("version"),
            unique_identifier_id=unique_identifier_id,
            metadata=metadata,
            manifest=manifest,
            spine=spine,
            spine_toc=spine_toc,
            page_progression_direction=direction,
            guide=guide,
            navigation_source=self._navigation_source(manifest, spine_toc),
            missing_resources=self._check_resources(manifest),
            warnings=self.warnings,
        )
        log.debug(
            "Parsed %s: %d manifest items, %d spine items",
            self.location,
            len(manifest),
            len(spine),
        )
        return package

    def _load(self) -> etree._Element:
        if not self.reader.has(self.location):
            raise MalformedPackageError(
                f"Package document '{self.location}' is not in the archive",
                path=self.location,
            )
        root = parse_xml(
            self.reader.read(self.location),
            self.options.encoding,
            self.location,
            MalformedPackageError,
        )
        if local_name(root) != "package":
            raise MalformedPackageError(
                f"Root element is <{local_name(root)}>, expected <package>",
                path=self.location,
            )
        if etree.QName(root).namespace != NAMESPACES["opf"]:
            self._warn("package element is not in the OPF namespace")
        return root

    # -- metadata ------------------------------------------------------------

    def _metadata_elements(self, metadata_el: etree._Element):
        for child in metadata_el:
            if not isinstance(child.tag, str):
                continue
            if local_name(child) in _METADATA_WRAPPERS:
                yield from self._metadata_elements(child)
            else:
                yield child

    def _parse_metadata(
        self,
        metadata_el: etree._Element,
        manifest: dict[str, ManifestItem],
        unique_identifier_id: str | None,
    ) -> Metadata:
        entries: list[MetadataEntry] = []
        refining: list[MetadataEntry] = []

        for element in self._metadata_elements(metadata_el):
            entry = self._metadata_entry(element)
            entries.append(entry)
            if "refines" in entry.attributes:
                refining.append(entry)

        by_id = {entry.id: entry for entry in entries if entry.id}
        refined: dict[str, dict[str, str]] = {}
        for entry in refining:
            target_id = entry.attributes["refines"].removeprefix("#")
            if target_id in by_id:
                refined.setdefault(target_id, {})[entry.term] = entry.value
            elif target_id not in manifest:
                self._warn(f"meta refines unknown id '{target_id}'")

        entries = [
            entry.model_copy(
                update={"refinements": {**entry.refinements, **refined[entry.id]}}
            )
            if entry.id in refined
            else entry
            for entry in entries
        ]
        metadata = Metadata(entries=entries, unique_identifier_id=unique_identifier_id)
        if unique_identifier_id and unique_identifier_id not in by_id:
            self._warn(f"unique-identifier '{unique_identifier_id}' matches no metadata entry")
        cover_id = metadata.cover_id
        if cover_id and cover_id not in manifest:
            self._warn(f"cover meta names unknown manifest id '{cover_id}'")
        return metadata

    def _metadata_entry(self, element: etree._Element) -> MetadataEntry:
        attributes = plain_attributes(element)
        entry_id = attributes.pop("id", None)
        lang = element.get(XML_LANG)
        attributes.pop("xml:lang", None)
        name = local_name(element)
        namespace = etree.QName(element).namespace

        if namespace == NAMESPACES["dc"]:
            term = f"dc:{name.lower()}"
            value = text_content(element)
        elif name == "meta" and "property" in attributes:
            term = attributes.pop("property")
            value = text_content(element)
        elif name == "meta" and "name" in attributes:
            term = attributes.pop("name")
            value = attributes.pop("content", "")
        elif name == "link":
            term = "link"
            value = attributes.get("href", "")
        else:
            term = qualified_name(element)
            value = text_content(element)

        refinements = {}
        for key, attr_value in attributes.items():
            prefix, _, local = key.rpartition(":")
            if prefix == "opf" and local in _LEGACY_REFINING_ATTRIBUTES:
                refinements[local] = attr_value

        return MetadataEntry(
            term=term,
            value=value,
            id=entry_id,
            lang=lang,
            attributes=attributes,
            refinements=refinements,
        )

    # -- manifest ------------------------------------------------------------

    def _parse_manifest(self, manifest_el: etree._Element) -> dict[str, ManifestItem]:
        manifest: dict[str, ManifestItem] = {}
        for element in _children(manifest_el, "item"):
            item_id = element.get("id")
            href = element.get("href")
            if not item_id:
                raise MalformedPackageError(
                    "Manifest item without id", path=self.location
                )
            if not href:
                raise MalformedPackageError(
                    f"Manifest item '{item_id}' has no href",
                    path=self.location,
                    identifier=item_id,
                )
            if item_id in manifest:
                raise DuplicateManifestIdError(item_id, path=self.location)

            try:
                resolved = resolve(self.location, href)
            except InvalidReferenceError as exc:
                exc.path = self.location
                exc.identifier = item_id
                raise

            media_type = element.get("media-type")
            if not media_type:
                self._warn(f"manifest item '{item_id}' has no media-type")
                media_type = DEFAULT_MEDIA_TYPE

            manifest[item_id] = ManifestItem(
                id=item_id,
                href=resolved,
                raw_href=href,
                media_type=media_type,
                properties=tokens(element.get("properties")),
                fallback=element.get("fallback"),
                media_overlay=element.get("media-overlay"),
            )

        if not manifest:
            raise MalformedPackageError(
                "Package manifest declares no items", path=self.location
            )

        for item in manifest.values():
            if item.fallback and item.fallback not in manifest:
                self._warn(f"manifest item '{item.id}' has unknown fallback '{item.fallback}'")
        return manifest

    # -- spine ---------------------------------------------------------------

    def _parse_spine(
        self, spine_el: etree._Element, manifest: dict[str, ManifestItem]
    ) -> list[SpineItem]:
        spine = []
        seen: set[str] = set()
        for element in _children(spine_el, "itemref"):
            idref = element.get("idref")
            if not idref:
                raise MalformedPackageError(
                    "Spine itemref without idref", path=self.location
                )
            if idref not in manifest:
                raise DanglingSpineReferenceError(idref, path=self.location)
            if idref in seen:
                self._warn(f"spine references '{idref}' more than once")
            seen.add(idref)

            linear_attr = element.get("linear", "yes")
            if linear_attr not in ("yes", "no"):
                self._warn(f"itemref '{idref}' has invalid linear value {linear_attr!r}")

            spine.append(
                SpineItem(
                    idref=idref,
                    linear=linear_attr != "no",
                    id=element.get("id"),
                    properties=tokens(element.get("properties")),
                )
            )
        return spine

    # -- guide ---------------------------------------------------------------

    def _parse_guide(self, guide_el: etree._Element) -> list[GuideReference]:
        references = []
        for element in _children(guide_el, "reference"):
            ref_type = element.get("type", "")
            href = element.get("href")
            if not href:
                self._warn(f"guide reference '{ref_type}' has no href")
                continue
            try:
                path, fragment = resolve_with_fragment(self.location, href)
            except InvalidReferenceError as exc:
                self._warn(f"skipping guide reference '{ref_type}': {exc}")
                continue
            references.append(
                GuideReference(
                    type=ref_type,
                    title=element.get("title", ""),
                    href=path,
                    fragment=fragment,
                )
            )
        return references

    # -- navigation source ---------------------------------------------------

    def _navigation_source(
        self, manifest: dict[str, ManifestItem], spine_toc: str | None
    ) -> InBandNavigation | LegacyNavigation | None:
        nav_items = [item for item in manifest.values() if item.is_nav]
        if nav_items:
            if len(nav_items) > 1:
                self._warn(
                    f"{len(nav_items)} manifest items carry the nav property, using '{nav_items[0].id}'"
                )
            nav = nav_items[0]
            if not nav.is_xhtml:
                self._warn(f"nav item '{nav.id}' has media-type {nav.media_type}")
            return InBandNavigation(manifest_id=nav.id, path=nav.href)

        if spine_toc:
            ncx = manifest.get(spine_toc)
            if ncx is not None:
                return LegacyNavigation(manifest_id=ncx.id, path=ncx.href)
            self._warn(f"spine toc '{spine_toc}' matches no manifest item")

        ncx = next((item for item in manifest.values() if item.media_type == NCX_MEDIA_TYPE), None)
        if ncx is not None:
            self._warn(f"using NCX '{ncx.id}' not referenced from the spine")
            return LegacyNavigation(manifest_id=ncx.id, path=ncx.href)

        if self.options.require_navigation:
            raise NoNavigationSourceError(
                "Package declares no navigation document or NCX", path=self.location
            )
        self._warn("package declares no navigation document or NCX")
        return None

    # -- resources -----------------------------------------------------------

    def _check_resources(self, manifest: dict[str, ManifestItem]) -> list[ArchivePath]:
        if self.options.validate_resources == "lazy":
            return []
        missing = []
        for item in manifest.values():
            if self.reader.has(item.href):
                continue
            if self.options.strict_resources:
                raise ResourceNotFoundError(
                    f"Manifest item '{item.id}' points to missing entry '{item.href}'",
                    path=item.href,
                    identifier=item.id,
                )
            self._warn(f"manifest item '{item.id}' points to missing entry '{item.href}'")
            missing.append(item.href)
        return missing


def parse_package(
    reader: ZipEntryReader,
    location: ArchivePath,
    rendition: Rendition | None = None,
    options: ParseOptions | None = None,
) -> Package:
    """Parse the package document at location.

    Raises:
        MalformedPackageError: If the document is broken, lacks metadata or
            manifest, or the manifest declares no items
        DuplicateManifestIdError: If a manifest id repeats
        DanglingSpineReferenceError: If a spine idref has no manifest item
        InvalidReferenceError: If a manifest href is external or escapes the archive
        NoNavigationSourceError: If navigation is required and none is declared
        ResourceNotFoundError: If strict_resources is set and an entry is missing
    """
    return PackageParser(reader, location, rendition, options).parse()
