"""Lazy access to content resources of a parsed archive."""

import logging
import warnings

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
from lxml import etree
from lxml import html as lxml_html
from markdownify import markdownify as md

from epub_model.core.archive import ZipEntryReader
from epub_model.core.xml import decode_check, parse_xml
from epub_model.errors import MalformedContentError, ResourceNotFoundError
from epub_model.models.package import ManifestItem

# Suppress XML parsing warnings - EPUB files often use XHTML
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

log = logging.getLogger(__name__)


class ContentAccessor:
    """Resolve manifest items to archive content on demand.

    Holds only the entry reader; nothing is cached, so every call returns
    an independent value.
    """

    def __init__(self, reader: ZipEntryReader, encoding: str | None = None):
        self._reader = reader
        self.encoding = encoding

    @property
    def closed(self) -> bool:
        return self._reader.closed

    def close(self) -> None:
        self._reader.close()

    def read(self, item: ManifestItem) -> bytes:
        """Raw bytes of the resource."""
        if not self._reader.has(item.href):
            raise ResourceNotFoundError(
                f"Manifest item '{item.id}' points to missing entry '{item.href}'",
                path=item.href,
                identifier=item.id,
            )
        return self._reader.read(item.href)

    def open(self, item: ManifestItem) -> etree._ElementTree | bytes:
        """Parsed tree for markup resources, raw bytes for everything else.

        Raises:
            ResourceNotFoundError: If the entry is missing from the archive
            MalformedContentError: If an XML resource is not well-formed
        """
        data = self.read(item)
        if item.media_type == "text/html":
            data = decode_check(data, self.encoding, item.href)
            parser = lxml_html.HTMLParser(encoding=self.encoding)
            return etree.ElementTree(lxml_html.document_fromstring(data, parser=parser))
        if item.is_xml:
            log.debug("Parsing %s as XML", item.href)
            root = parse_xml(data, self.encoding, item.href, MalformedContentError)
            return root.getroottree()
        return data

    def content_document(self, item: ManifestItem) -> "ContentDocument":
        if not item.is_xhtml:
            raise ValueError(
                f"Manifest item '{item.id}' is {item.media_type}, not a content document"
            )
        return ContentDocument(item, self.read(item))


class ContentDocument:
    """XHTML content document with text helpers."""

    def __init__(self, item: ManifestItem, content: bytes):
        self.item = item
        self.content = content
        self._soup: BeautifulSoup | None = None

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.content, "lxml")
        return self._soup

    @property
    def title(self) -> str | None:
        """Title from <title>, then the first h1/h2."""
        for tag in ["title", "h1", "h2"]:
            element = self.soup.find(tag)
            if element:
                text = element.get_text(strip=True)
                if text:
                    return text
        return None

    @property
    def text(self) -> str:
        return self.soup.get_text(separator=" ", strip=True)

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def has_images(self) -> bool:
        return self.soup.find(["img", "image"]) is not None

    def _body(self) -> BeautifulSoup:
        # Fresh soup so removing scripts does not touch the cached one
        soup = BeautifulSoup(self.content, "lxml")
        for tag in soup(["script", "style"]):
            tag.decompose()
        return soup

    def to_markdown(self) -> str:
        """Body converted to Markdown, with runs of blank lines collapsed."""
        soup = self._body()
        body = soup.body or soup
        markdown = md(str(body), heading_style="ATX", bullets="-")
        lines = [line.rstrip() for line in markdown.split("\n")]
        cleaned = []
        prev_blank = False
        for line in lines:
            is_blank = not line.strip()
            if is_blank and prev_blank:
                continue
            cleaned.append(line)
            prev_blank = is_blank
        return "\n".join(cleaned).strip()

    def to_text(self) -> str:
        """Block-level text separated by blank lines."""
        paragraphs = []
        for block in self._body().find_all(["p", "h1", "h2", "h3", "h4", "h5", "h6", "li"]):
            text = block.get_text(" ", strip=True)
            if text:
                paragraphs.append(text)
        return "\n\n".join(paragraphs)
