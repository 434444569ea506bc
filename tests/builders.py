"""In-memory EPUB fixture builders."""

import io
import struct
import zipfile

CONTAINER_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<container xmlns="urn:oasis:names:tc:opendocument:xmlns:container" version="1.0">
  <rootfiles>
{rootfiles}
  </rootfiles>
</container>"""

DEFAULT_METADATA = """\
    <dc:identifier id="pub-id">urn:uuid:12345678-1234-1234-1234-123456789abc</dc:identifier>
    <dc:title>Test Book</dc:title>
    <dc:language>en</dc:language>
    <meta property="dcterms:modified">2024-01-01T00:00:00Z</meta>"""


def build_container(opf_paths: list[str]) -> str:
    rootfiles = "\n".join(
        f'    <rootfile full-path="{path}" media-type="application/oebps-package+xml"/>'
        for path in opf_paths
    )
    return CONTAINER_XML.format(rootfiles=rootfiles)


def build_opf(
    manifest: list[tuple[str, str, str] | tuple[str, str, str, str]],
    spine: list[str | tuple[str, str]],
    metadata: str = DEFAULT_METADATA,
    toc: str | None = None,
    guide: list[tuple[str, str, str]] | None = None,
    version: str = "3.0",
) -> str:
    """Build an OPF package document.

    manifest: [(id, href, media_type[, properties]), ...]
    spine: [idref, ...] or [(idref, linear), ...]
    guide: [(type, title, href), ...]
    """
    items = []
    for entry in manifest:
        item_id, href, media_type = entry[:3]
        props = f' properties="{entry[3]}"' if len(entry) > 3 else ""
        items.append(f'    <item id="{item_id}" href="{href}" media-type="{media_type}"{props}/>')

    refs = []
    for entry in spine:
        if isinstance(entry, tuple):
            refs.append(f'    <itemref idref="{entry[0]}" linear="{entry[1]}"/>')
        else:
            refs.append(f'    <itemref idref="{entry}"/>')

    toc_attr = f' toc="{toc}"' if toc else ""
    guide_xml = ""
    if guide is not None:
        references = "\n".join(
            f'    <reference type="{ref_type}" title="{title}" href="{href}"/>'
            for ref_type, title, href in guide
        )
        guide_xml = f"  <guide>\n{references}\n  </guide>\n"

    return f"""\
<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf"
         xmlns:dc="http://purl.org/dc/elements/1.1/"
         xmlns:opf="http://www.idpf.org/2007/opf"
         version="{version}" unique-identifier="pub-id">
  <metadata>
{metadata}
  </metadata>
  <manifest>
{chr(10).join(items)}
  </manifest>
  <spine{toc_attr}>
{chr(10).join(refs)}
  </spine>
{guide_xml}</package>"""


def build_chapter(title: str, body: str = "<p>Some text.</p>") -> str:
    return f"""\
<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml">
<head><title>{title}</title></head>
<body>
<h1>{title}</h1>
{body}
</body>
</html>"""


def build_nav(
    toc_items: str,
    landmarks: str = "",
    page_list: str = "",
) -> str:
    """Build an EPUB 3 nav document from raw <li> markup."""
    extra = ""
    if landmarks:
        extra += f'  <nav epub:type="landmarks">\n    <ol>\n{landmarks}\n    </ol>\n  </nav>\n'
    if page_list:
        extra += f'  <nav epub:type="page-list">\n    <ol>\n{page_list}\n    </ol>\n  </nav>\n'
    return f"""\
<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<head><title>Contents</title></head>
<body>
  <nav epub:type="toc" id="toc">
    <h1>Contents</h1>
    <ol>
{toc_items}
    </ol>
  </nav>
{extra}</body>
</html>"""


def build_ncx(nav_points: str, page_targets: str = "") -> str:
    """Build an EPUB 2 NCX from raw <navPoint> markup."""
    page_list = f"  <pageList>\n{page_targets}\n  </pageList>\n" if page_targets else ""
    return f"""\
<?xml version="1.0" encoding="UTF-8"?>
<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">
  <head><meta name="dtb:uid" content="urn:uuid:12345678"/></head>
  <docTitle><text>Test Book</text></docTitle>
  <navMap>
{nav_points}
  </navMap>
{page_list}</ncx>"""


def nav_point(nav_id: str, label: str, src: str, children: str = "") -> str:
    return (
        f'<navPoint id="{nav_id}"><navLabel><text>{label}</text></navLabel>'
        f'<content src="{src}"/>{children}</navPoint>'
    )


def make_epub(
    files: dict[str, str | bytes],
    opf_paths: list[str] | None = None,
    mimetype: bytes | None = b"application/epub+zip",
    mimetype_first: bool = True,
    compress_mimetype: bool = False,
    container: str | None = None,
) -> bytes:
    """Build an EPUB ZIP in memory.

    files: archive path -> content, written after mimetype and container.xml
    """
    if opf_paths is None:
        opf_paths = ["OEBPS/content.opf"]
    if container is None:
        container = build_container(opf_paths)

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        mimetype_compression = zipfile.ZIP_DEFLATED if compress_mimetype else zipfile.ZIP_STORED
        if mimetype_first and mimetype is not None:
            zf.writestr("mimetype", mimetype, compress_type=mimetype_compression)
        zf.writestr("META-INF/container.xml", container)
        for path, content in files.items():
            zf.writestr(path, content)
        if not mimetype_first and mimetype is not None:
            zf.writestr("mimetype", mimetype, compress_type=mimetype_compression)
    return buf.getvalue()


def corrupt_entry(data: bytes, name: str) -> bytes:
    """Invert every stored byte of one archive member, leaving its headers intact."""
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        info = zf.getinfo(name)
    buf = bytearray(data)
    offset = info.header_offset
    name_len, extra_len = struct.unpack("<HH", buf[offset + 26 : offset + 30])
    start = offset + 30 + name_len + extra_len
    for i in range(start, start + info.compress_size):
        buf[i] ^= 0xFF
    return bytes(buf)


def epub3_files() -> dict[str, str | bytes]:
    """Minimal EPUB 3 publication with a nav document and two chapters."""
    return {
        "OEBPS/content.opf": build_opf(
            manifest=[
                ("nav", "nav.xhtml", "application/xhtml+xml", "nav"),
                ("chap1", "text/chap1.xhtml", "application/xhtml+xml"),
                ("chap2", "text/chap2.xhtml", "application/xhtml+xml"),
                ("css", "styles/main.css", "text/css"),
                ("cover", "images/cover.png", "image/png", "cover-image"),
            ],
            spine=["chap1", "chap2"],
        ),
        "OEBPS/nav.xhtml": build_nav(
            '      <li><a href="text/chap1.xhtml">Chapter One</a>\n'
            '        <ol><li><a href="text/chap1.xhtml#sec1">Section 1.1</a></li></ol>\n'
            "      </li>\n"
            '      <li><a href="text/chap2.xhtml">Chapter Two</a></li>',
            landmarks='      <li><a epub:type="bodymatter" href="text/chap1.xhtml">Start</a></li>',
            page_list='      <li><a href="text/chap1.xhtml#p1">1</a></li>\n'
            '      <li><a href="text/chap2.xhtml#p2">2</a></li>',
        ),
        "OEBPS/text/chap1.xhtml": build_chapter("Chapter One", "<p>The first chapter.</p>"),
        "OEBPS/text/chap2.xhtml": build_chapter("Chapter Two", "<p>The second chapter.</p>"),
        "OEBPS/styles/main.css": "body { margin: 0; }",
        "OEBPS/images/cover.png": b"\x89PNG\r\n\x1a\nfake",
    }


def epub2_files() -> dict[str, str | bytes]:
    """Minimal EPUB 2 publication with an NCX and a guide."""
    metadata = """\
    <dc:identifier id="pub-id" opf:scheme="ISBN">9780000000000</dc:identifier>
    <dc:title>Legacy Book</dc:title>
    <dc:creator opf:role="aut" opf:file-as="Doe, Jane">Jane Doe</dc:creator>
    <dc:language>en</dc:language>
    <meta name="cover" content="cover-img"/>"""
    return {
        "OEBPS/content.opf": build_opf(
            manifest=[
                ("ncx", "toc.ncx", "application/x-dtbncx+xml"),
                ("chap1", "chap1.html", "application/xhtml+xml"),
                ("chap2", "chap2.html", "application/xhtml+xml"),
                ("cover-img", "cover.jpg", "image/jpeg"),
            ],
            spine=["chap1", ("chap2", "no")],
            metadata=metadata,
            toc="ncx",
            guide=[("toc", "Table of Contents", "chap1.html#toc")],
            version="2.0",
        ),
        "OEBPS/toc.ncx": build_ncx(
            nav_point(
                "np1",
                "Chapter One",
                "chap1.html",
                nav_point("np1-1", "Part A", "chap1.html#a"),
            )
            + nav_point("np2", "Chapter Two", "chap2.html"),
            page_targets='<pageTarget id="p1" type="normal" value="1">'
            '<navLabel><text>1</text></navLabel><content src="chap1.html#page1"/></pageTarget>',
        ),
        "OEBPS/chap1.html": build_chapter("Chapter One"),
        "OEBPS/chap2.html": build_chapter("Chapter Two"),
        "OEBPS/cover.jpg": b"\xff\xd8\xff\xe0fake",
    }
