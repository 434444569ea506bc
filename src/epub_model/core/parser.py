"""Parse EPUB archives into Document models."""

import logging
from pathlib import Path
from typing import Callable, TypeVar

from epub_model.core.archive import ZipEntryReader
from epub_model.core.container_parser import parse_container
from epub_model.core.content import ContentAccessor
from epub_model.core.navigation import NavigationResolver
from epub_model.core.package_parser import parse_package
from epub_model.errors import MalformedNavigationError, SourceUnreadableError
from epub_model.models.document import Document
from epub_model.models.navigation import NavigationTree
from epub_model.models.options import ParseOptions
from epub_model.models.package import Package

log = logging.getLogger(__name__)

T = TypeVar("T")


class EpubParser:
    """Parse an opened archive into a Document.

    The returned Document takes ownership of the reader. If parsing fails
    the reader is closed before the error propagates.
    """

    def __init__(self, reader: ZipEntryReader, options: ParseOptions | None = None):
        self.reader = reader
        self.options = options or ParseOptions()

    def parse(self) -> Document:
        try:
            return self._parse()
        except BaseException:
            self.reader.close()
            raise

    def _parse(self) -> Document:
        encoding = self.options.encoding
        container = parse_container(self.reader, encoding)
        packages = [
            parse_package(self.reader, rendition.full_path, rendition, self.options)
            for rendition in container.renditions
        ]

        warnings = list(container.warnings)
        for package in packages:
            warnings.extend(f"{package.location}: {message}" for message in package.warnings)

        toc, landmarks, page_list, nav_warnings = self._navigation(packages[0])
        warnings.extend(nav_warnings)

        document = Document(
            source=self.reader.source,
            container=container,
            packages=packages,
            navigation=toc,
            landmarks=landmarks,
            page_list=page_list,
            warnings=warnings,
        )
        log.debug(
            "Parsed %s: %d package(s), %d toc entries",
            self.reader.source,
            len(packages),
            toc.node_count,
        )
        return document.attach(ContentAccessor(self.reader, encoding))

    def _navigation(
        self, package: Package
    ) -> tuple[NavigationTree, NavigationTree, NavigationTree, list[str]]:
        """Resolve the default rendition's trees, degrading to empty ones on failure."""
        resolver = NavigationResolver(self.reader, package, self.options)
        try:
            toc = resolver.toc()
            page_list = resolver.page_list()
            landmarks = resolver.landmarks()
        except MalformedNavigationError as exc:
            if self.options.require_navigation:
                raise
            message = f"navigation unavailable: {exc}"
            log.warning(message)
            return (
                NavigationTree(kind="toc"),
                NavigationTree(kind="landmarks"),
                NavigationTree(kind="page-list"),
                resolver.warnings + [message],
            )
        return toc, landmarks, page_list, resolver.warnings


def parse(
    source: str | Path,
    *,
    options: ParseOptions | None = None,
    adapter: Callable[[Document], T] | None = None,
) -> Document | T:
    """Parse the EPUB file at source.

    Args:
        source: Path to the .epub file
        options: Validation options (defaults to ParseOptions())
        adapter: Optional function applied to the finished Document; its
            result is returned instead

    Raises:
        SourceUnreadableError: If the file cannot be opened as a zip archive
        EpubError: Any other parse failure, see epub_model.errors
    """
    path = Path(source)
    if not path.is_file():
        raise SourceUnreadableError(f"File not readable: {path}", path=str(path))
    reader = ZipEntryReader.open(path)
    document = EpubParser(reader, options).parse()
    return adapter(document) if adapter else document


def parse_bytes(
    data: bytes,
    *,
    encoding: str,
    options: ParseOptions | None = None,
    adapter: Callable[[Document], T] | None = None,
) -> Document | T:
    """Parse an EPUB archive held in memory.

    Args:
        data: The archive bytes
        encoding: Encoding of the markup entries; invalid byte sequences
            raise SourceUnreadableError instead of being coerced
        options: Validation options; its encoding is replaced by encoding
        adapter: Optional function applied to the finished Document
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise SourceUnreadableError(
            f"Expected bytes, got {type(data).__name__}", path="<memory>"
        )
    options = (options or ParseOptions()).model_copy(update={"encoding": encoding})
    reader = ZipEntryReader.from_bytes(bytes(data))
    document = EpubParser(reader, options).parse()
    return adapter(document) if adapter else document
