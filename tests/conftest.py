"""Shared fixtures: EPUB archives built in memory and written to tmp_path."""

from pathlib import Path

import pytest

from epub_model import parse, parse_bytes
from tests.builders import epub2_files, epub3_files, make_epub


@pytest.fixture
def epub3_bytes() -> bytes:
    return make_epub(epub3_files())


@pytest.fixture
def epub2_bytes() -> bytes:
    return make_epub(epub2_files())


@pytest.fixture
def epub3_path(tmp_path: Path, epub3_bytes: bytes) -> Path:
    path = tmp_path / "book3.epub"
    path.write_bytes(epub3_bytes)
    return path


@pytest.fixture
def epub2_path(tmp_path: Path, epub2_bytes: bytes) -> Path:
    path = tmp_path / "book2.epub"
    path.write_bytes(epub2_bytes)
    return path


@pytest.fixture
def epub3_document(epub3_path: Path):
    document = parse(epub3_path)
    yield document
    document.close()


@pytest.fixture
def epub2_document(epub2_bytes: bytes):
    document = parse_bytes(epub2_bytes, encoding="utf-8")
    yield document
    document.close()
