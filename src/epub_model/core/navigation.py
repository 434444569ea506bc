"""Build navigation trees from an EPUB 3 nav document or an EPUB 2 NCX."""

import logging

from lxml import etree

from epub_model.core.archive import ZipEntryReader
from epub_model.core.paths import ArchivePath, resolve_with_fragment
from epub_model.core.xml import EPUB_TYPE, local_name, parse_xml, text_content, tokens
from epub_model.errors import (
    InvalidReferenceError,
    MalformedNavigationError,
    SourceUnreadableError,
)
from epub_model.models.navigation import NavigationTree, NavPoint
from epub_model.models.options import ParseOptions
from epub_model.models.package import Package

log = logging.getLogger(__name__)


def _first_child(element: etree._Element, *names: str) -> etree._Element | None:
    return next((child for child in element if local_name(child) in names), None)


class NavigationResolver:
    """Resolve the toc, landmarks and page list of one package.

    The navigation source is parsed at most once per resolver. Nodes with
    unusable references are skipped and reported in ``warnings``.
    """

    def __init__(
        self,
        reader: ZipEntryReader,
        package: Package,
        options: ParseOptions | None = None,
    ):
        self.reader = reader
        self.package = package
        self.source = package.navigation_source
        self.options = options or ParseOptions()
        self.warnings: list[str] = []
        self._root: etree._Element | None = None

    def _warn(self, message: str) -> None:
        log.warning("%s: %s", self.source.path if self.source else self.package.location, message)
        self.warnings.append(message)

    def _load(self) -> etree._Element:
        if self._root is not None:
            return self._root
        path = self.source.path
        if not self.reader.has(path):
            raise MalformedNavigationError(
                f"Navigation source '{path}' is not in the archive", path=path
            )
        try:
            self._root = parse_xml(
                self.reader.read(path),
                self.options.encoding,
                path,
                MalformedNavigationError,
                recover=self.options.recover_navigation,
            )
        except SourceUnreadableError as exc:
            raise MalformedNavigationError(
                f"Cannot read navigation source '{path}': {exc}", path=path
            ) from exc
        return self._root

    def _tree(self, kind: str, points: list[NavPoint], source: str | None = None) -> NavigationTree:
        if source is None and self.source is not None:
            source = self.source.kind
        return NavigationTree(
            kind=kind,
            source=source,
            source_path=self.source.path if source in ("nav", "ncx") else None,
            points=points,
        )

    def _target(self, href: str, label: str) -> tuple[ArchivePath, str | None] | None:
        try:
            return resolve_with_fragment(self.source.path, href)
        except InvalidReferenceError as exc:
            self._warn(f"skipping nav point '{label}': {exc}")
            return None

    # -- public --------------------------------------------------------------

    def toc(self) -> NavigationTree:
        """Table of contents.

        Raises:
            MalformedNavigationError: If the source cannot be parsed or has
                no toc structure
        """
        if self.source is None:
            return NavigationTree(kind="toc")
        if self.source.kind == "nav":
            nav = self._find_nav("toc")
            if nav is None:
                nav = next(self._nav_elements(), None)
            if nav is None:
                raise MalformedNavigationError(
                    "Navigation document has no <nav> element", path=self.source.path
                )
            return self._tree("toc", self._walk_ol(nav))

        root = self._ncx_root()
        nav_map = _first_child(root, "navMap")
        if nav_map is None:
            raise MalformedNavigationError("NCX has no <navMap>", path=self.source.path)
        return self._tree("toc", self._walk_nav_points(nav_map))

    def landmarks(self) -> NavigationTree:
        """Landmarks from the nav document, or from the guide for legacy packages."""
        if self.source is not None and self.source.kind == "nav":
            nav = self._find_nav("landmarks")
            points = self._walk_ol(nav) if nav is not None else []
            return self._tree("landmarks", points)

        points = [
            NavPoint(
                label=ref.title or ref.type,
                target=ref.href,
                fragment=ref.fragment,
                types=frozenset({ref.type}) if ref.type else frozenset(),
            )
            for ref in self.package.guide
        ]
        if not points:
            return NavigationTree(kind="landmarks")
        return self._tree("landmarks", points, source="guide")

    def page_list(self) -> NavigationTree:
        if self.source is None:
            return NavigationTree(kind="page-list")
        if self.source.kind == "nav":
            nav = self._find_nav("page-list")
            points = self._walk_ol(nav) if nav is not None else []
            return self._tree("page-list", points)

        page_list = _first_child(self._ncx_root(), "pageList")
        points = []
        if page_list is not None:
            for target in page_list:
                if local_name(target) == "pageTarget":
                    point = self._ncx_point(target, with_children=False)
                    if point is not None:
                        points.append(point)
        return self._tree("page-list", points)

    # -- EPUB 3 nav document -------------------------------------------------

    def _nav_elements(self):
        return (el for el in self._load().iter() if local_name(el) == "nav")

    def _find_nav(self, nav_type: str) -> etree._Element | None:
        for nav in self._nav_elements():
            if nav_type in tokens(nav.get(EPUB_TYPE)):
                return nav
        return None

    def _walk_ol(self, parent: etree._Element) -> list[NavPoint]:
        ol = _first_child(parent, "ol")
        if ol is None:
            return []

        points = []
        for li in ol:
            if local_name(li) != "li":
                continue
            anchor = _first_child(li, "a", "span")
            children = self._walk_ol(li)
            if anchor is None:
                self._warn("skipping list item without a link or heading")
                continue

            label = text_content(anchor) or anchor.get("title", "").strip()
            if not label:
                self._warn("skipping nav point without a label")
                continue

            target = fragment = None
            href = anchor.get("href") if local_name(anchor) == "a" else None
            if href:
                resolved = self._target(href, label)
                if resolved is None:
                    continue
                target, fragment = resolved
            elif not children:
                self._warn(f"nav point '{label}' has neither a link nor children")

            points.append(
                NavPoint(
                    label=label,
                    target=target,
                    fragment=fragment,
                    id=anchor.get("id") or li.get("id"),
                    types=tokens(anchor.get(EPUB_TYPE)),
                    children=children,
                )
            )
        return points

    # -- EPUB 2 NCX ----------------------------------------------------------

    def _ncx_root(self) -> etree._Element:
        root = self._load()
        if local_name(root) != "ncx":
            raise MalformedNavigationError(
                f"Root element is <{local_name(root)}>, expected <ncx>",
                path=self.source.path,
            )
        return root

    def _ncx_point(self, element: etree._Element, with_children: bool = True) -> NavPoint | None:
        nav_label = _first_child(element, "navLabel")
        text_el = _first_child(nav_label, "text") if nav_label is not None else None
        label = text_content(text_el) if text_el is not None else ""
        if not label:
            self._warn(f"skipping {local_name(element)} '{element.get('id')}' without a label")
            return None

        content = _first_child(element, "content")
        src = content.get("src") if content is not None else None
        if not src:
            self._warn(f"skipping nav point '{label}' without content src")
            return None
        resolved = self._target(src, label)
        if resolved is None:
            return None
        target, fragment = resolved

        return NavPoint(
            label=label,
            target=target,
            fragment=fragment,
            id=element.get("id"),
            children=self._walk_nav_points(element) if with_children else [],
        )

    def _walk_nav_points(self, parent: etree._Element) -> list[NavPoint]:
        points = []
        for element in parent:
            if local_name(element) != "navPoint":
                continue
            point = self._ncx_point(element)
            if point is not None:
                points.append(point)
        return points


def resolve_navigation(
    reader: ZipEntryReader, package: Package, options: ParseOptions | None = None
) -> NavigationTree:
    """Table of contents of package, normalized from whichever source it declares."""
    return NavigationResolver(reader, package, options).toc()
