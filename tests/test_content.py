"""Tests for lazy resource access and content documents."""

import threading

import pytest
from lxml import etree

from epub_model import (
    ArchiveClosedError,
    ContentDocument,
    EpubError,
    MalformedContentError,
    ResourceNotFoundError,
    parse_bytes,
)
from epub_model.core.archive import ZipEntryReader
from epub_model.core.content import ContentAccessor
from tests.builders import build_chapter, epub3_files, make_epub


class TestOpen:
    def test_xhtml_returns_tree(self, epub3_document):
        item = epub3_document.package.item("chap1")
        tree = epub3_document.open(item)
        assert isinstance(tree, etree._ElementTree)
        assert etree.QName(tree.getroot()).localname == "html"

    def test_binary_returns_bytes(self, epub3_document):
        item = epub3_document.package.item("cover")
        assert epub3_document.open(item) == b"\x89PNG\r\n\x1a\nfake"

    def test_css_returns_bytes(self, epub3_document):
        item = epub3_document.package.item("css")
        assert epub3_document.read(item) == b"body { margin: 0; }"

    def test_each_call_is_independent(self, epub3_document):
        item = epub3_document.package.item("chap1")
        first = epub3_document.open(item)
        second = epub3_document.open(item)
        assert first is not second
        first.getroot().clear()
        assert len(second.getroot()) > 0

    def test_missing_resource(self):
        files = epub3_files()
        del files["OEBPS/text/chap2.xhtml"]
        with parse_bytes(make_epub(files), encoding="utf-8") as document:
            item = document.package.item("chap2")
            with pytest.raises(ResourceNotFoundError) as exc_info:
                document.open(item)
            assert exc_info.value.path == "OEBPS/text/chap2.xhtml"
            assert exc_info.value.identifier == "chap2"

    def test_malformed_xhtml(self):
        files = epub3_files()
        files["OEBPS/text/chap1.xhtml"] = "<html><body><p>Unclosed</body></html>"
        with parse_bytes(make_epub(files), encoding="utf-8") as document:
            with pytest.raises(MalformedContentError) as exc_info:
                document.open(document.package.item("chap1"))
            assert isinstance(exc_info.value, EpubError)
            assert exc_info.value.path == "OEBPS/text/chap1.xhtml"

    def test_html_media_type(self):
        files = epub3_files()
        files["OEBPS/text/chap1.xhtml"] = "<html><body><p>Unclosed<br></body></html>"
        files["OEBPS/content.opf"] = files["OEBPS/content.opf"].replace(
            'id="chap1" href="text/chap1.xhtml" media-type="application/xhtml+xml"',
            'id="chap1" href="text/chap1.xhtml" media-type="text/html"',
        )
        with parse_bytes(make_epub(files), encoding="utf-8") as document:
            tree = document.open(document.package.item("chap1"))
            assert tree.getroot().tag == "html"


class TestClose:
    def test_access_after_close(self, epub3_bytes):
        document = parse_bytes(epub3_bytes, encoding="utf-8")
        item = document.package.item("chap1")
        document.close()
        assert document.closed
        with pytest.raises(ArchiveClosedError):
            document.open(item)
        with pytest.raises(ArchiveClosedError):
            document.content_document(item)

    def test_context_manager_closes(self, epub3_bytes):
        with parse_bytes(epub3_bytes, encoding="utf-8") as document:
            assert not document.closed
        assert document.closed

    def test_close_is_idempotent(self, epub3_bytes):
        document = parse_bytes(epub3_bytes, encoding="utf-8")
        document.close()
        document.close()
        assert document.closed

    def test_metadata_survives_close(self, epub3_bytes):
        document = parse_bytes(epub3_bytes, encoding="utf-8")
        document.close()
        assert document.title == "Test Book"
        assert document.navigation.node_count == 3

    def test_concurrent_reads(self, epub3_bytes):
        reader = ZipEntryReader.from_bytes(epub3_bytes)
        accessor = ContentAccessor(reader)
        document = parse_bytes(epub3_bytes, encoding="utf-8")
        item = document.package.item("chap1")
        results = []

        def worker():
            results.append(accessor.read(item))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert len(set(results)) == 1
        accessor.close()
        document.close()


class TestContentDocument:
    def test_title_and_text(self, epub3_document):
        content = epub3_document.content_document(epub3_document.package.item("chap1"))
        assert isinstance(content, ContentDocument)
        assert content.title == "Chapter One"
        assert "The first chapter." in content.text
        assert content.word_count >= 5
        assert not content.has_images

    def test_to_markdown(self, epub3_document):
        content = epub3_document.content_document(epub3_document.package.item("chap1"))
        markdown = content.to_markdown()
        assert "# Chapter One" in markdown
        assert "The first chapter." in markdown
        assert "\n\n\n" not in markdown

    def test_to_text(self, epub3_document):
        content = epub3_document.content_document(epub3_document.package.item("chap2"))
        assert content.to_text() == "Chapter Two\n\nThe second chapter."

    def test_scripts_removed(self):
        item_content = build_chapter(
            "Scripted", "<script>var x = 1;</script><p>Visible</p><img src='a.png'/>"
        ).encode()
        files = epub3_files()
        files["OEBPS/text/chap1.xhtml"] = item_content
        with parse_bytes(make_epub(files), encoding="utf-8") as document:
            content = document.content_document(document.package.item("chap1"))
            assert "var x" not in content.to_markdown()
            assert "var x" not in content.to_text()
            assert content.has_images

    def test_title_falls_back_to_heading(self):
        files = epub3_files()
        files["OEBPS/text/chap1.xhtml"] = (
            '<html xmlns="http://www.w3.org/1999/xhtml"><head></head>'
            "<body><h2>Only Heading</h2></body></html>"
        )
        with parse_bytes(make_epub(files), encoding="utf-8") as document:
            content = document.content_document(document.package.item("chap1"))
            assert content.title == "Only Heading"

    def test_non_xhtml_rejected(self, epub3_document):
        with pytest.raises(ValueError):
            epub3_document.content_document(epub3_document.package.item("css"))

    def test_spine_documents(self, epub2_document):
        titles = [doc.title for doc in epub2_document.spine_documents()]
        assert titles == ["Chapter One", "Chapter Two"]
        linear = [doc.title for doc in epub2_document.spine_documents(linear_only=True)]
        assert linear == ["Chapter One"]
