"""lxml helpers for loading archive entries as element trees."""

import codecs
import re

from lxml import etree

from epub_model.errors import EpubError, SourceUnreadableError

NAMESPACES = {
    "container": "urn:oasis:names:tc:opendocument:xmlns:container",
    "opf": "http://www.idpf.org/2007/opf",
    "dc": "http://purl.org/dc/elements/1.1/",
    "dcterms": "http://purl.org/dc/terms/",
    "ncx": "http://www.daisy.org/z3986/2005/ncx/",
    "xhtml": "http://www.w3.org/1999/xhtml",
    "epub": "http://www.idpf.org/2007/ops",
    "enc": "http://www.w3.org/2001/04/xmlenc#",
    "xml": "http://www.w3.org/XML/1998/namespace",
}

XML_LANG = f"{{{NAMESPACES['xml']}}}lang"
EPUB_TYPE = f"{{{NAMESPACES['epub']}}}type"

_WHITESPACE_RE = re.compile(r"\s+")


def decode_check(data: bytes, encoding: str | None, path: str) -> bytes:
    """Fail fast when data is not valid under encoding.

    Returns data with a leading UTF-8 byte order mark removed. With no
    encoding, data is returned unchanged for the parser to detect.
    """
    if encoding is None:
        return data
    try:
        data.decode(encoding)
    except LookupError as exc:
        raise SourceUnreadableError(
            f"Unknown encoding '{encoding}'", path=path
        ) from exc
    except UnicodeDecodeError as exc:
        raise SourceUnreadableError(
            f"Entry '{path}' is not valid {encoding}: {exc}", path=path
        ) from exc
    if codecs.lookup(encoding).name == "utf-8" and data.startswith(codecs.BOM_UTF8):
        return data[len(codecs.BOM_UTF8):]
    return data


def parse_xml(
    data: bytes,
    encoding: str | None,
    path: str,
    error_cls: type[EpubError],
    recover: bool = False,
) -> etree._Element:
    """Parse data into an element tree and return its root.

    Args:
        data: Raw entry bytes
        encoding: Encoding the entry is expected to use; None lets lxml
            follow the byte order mark and XML declaration
        path: Archive path of the entry, used in error messages
        error_cls: Exception raised when the markup is not well-formed
        recover: Let lxml repair broken markup instead of failing

    Raises:
        SourceUnreadableError: If data is not valid under encoding
        error_cls: If the markup cannot be parsed
    """
    data = decode_check(data, encoding, path)
    parser = etree.XMLParser(
        encoding=encoding,
        recover=recover,
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
    )
    try:
        root = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as exc:
        raise error_cls(f"'{path}' is not well-formed XML: {exc}", path=path) from exc
    if root is None:
        raise error_cls(f"'{path}' has no root element", path=path)
    return root


def local_name(element: etree._Element) -> str:
    """Tag name without its namespace, "" for comments and processing instructions."""
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return etree.QName(tag).localname


def qualified_name(element: etree._Element) -> str:
    """Tag as "prefix:local", falling back to the local name."""
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    qname = etree.QName(tag)
    prefix = element.prefix
    if prefix is None and qname.namespace:
        prefix = next(
            (p for p, uri in NAMESPACES.items() if uri == qname.namespace), None
        )
    return f"{prefix}:{qname.localname}" if prefix else qname.localname


def plain_attributes(element: etree._Element) -> dict[str, str]:
    """Attributes with namespaced keys shortened to "prefix:local"."""
    result = {}
    for key, value in element.attrib.items():
        qname = etree.QName(key)
        if qname.namespace:
            prefix = next(
                (p for p, uri in (element.nsmap or {}).items() if uri == qname.namespace and p),
                None,
            )
            if prefix is None:
                prefix = next(
                    (p for p, uri in NAMESPACES.items() if uri == qname.namespace),
                    None,
                )
            key = f"{prefix}:{qname.localname}" if prefix else qname.localname
        result[key] = value
    return result


def text_content(element: etree._Element) -> str:
    """All descendant text with whitespace runs collapsed."""
    text = "".join(element.itertext())
    return _WHITESPACE_RE.sub(" ", text).strip()


def tokens(value: str | None) -> frozenset[str]:
    """Split a whitespace-separated attribute value into a set of tokens."""
    return frozenset(value.split()) if value else frozenset()
