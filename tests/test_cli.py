"""Tests for the command-line interface."""

from typer.testing import CliRunner

from epub_model.cli import app
from tests.builders import epub3_files, make_epub

runner = CliRunner()


def test_info(epub3_path):
    result = runner.invoke(app, ["info", str(epub3_path)])
    assert result.exit_code == 0
    assert "Test Book" in result.output
    assert "Publication" in result.output


def test_toc(epub2_path):
    result = runner.invoke(app, ["toc", str(epub2_path)])
    assert result.exit_code == 0
    assert "Chapter One" in result.output
    assert "Part A" in result.output


def test_toc_landmarks(epub2_path):
    result = runner.invoke(app, ["toc", str(epub2_path), "--landmarks"])
    assert result.exit_code == 0
    assert "Table of Contents" in result.output


def test_toc_empty_page_list(tmp_path):
    files = epub3_files()
    files["OEBPS/nav.xhtml"] = files["OEBPS/nav.xhtml"].split('  <nav epub:type="landmarks">')[0] + "</body></html>"
    path = tmp_path / "book.epub"
    path.write_bytes(make_epub(files))
    result = runner.invoke(app, ["toc", str(path), "--page-list"])
    assert result.exit_code == 0
    assert "No page-list entries" in result.output


def test_spine(epub3_path):
    result = runner.invoke(app, ["spine", str(epub3_path)])
    assert result.exit_code == 0
    assert "chap1" in result.output
    assert "chap2" in result.output


def test_manifest(epub3_path):
    result = runner.invoke(app, ["manifest", str(epub3_path)])
    assert result.exit_code == 0
    assert "cover-image" in result.output


def test_show_markdown(epub3_path):
    result = runner.invoke(app, ["show", str(epub3_path), "chap1"])
    assert result.exit_code == 0
    assert "# Chapter One" in result.output


def test_show_text(epub3_path):
    result = runner.invoke(app, ["show", str(epub3_path), "chap2", "--format", "text"])
    assert result.exit_code == 0
    assert "The second chapter." in result.output


def test_show_binary(epub3_path):
    result = runner.invoke(app, ["show", str(epub3_path), "cover"])
    assert result.exit_code == 0
    assert "image/png" in result.output


def test_show_unknown_item(epub3_path):
    result = runner.invoke(app, ["show", str(epub3_path), "nope"])
    assert result.exit_code == 1
    assert "No manifest item" in result.output


def test_show_invalid_format(epub3_path):
    result = runner.invoke(app, ["show", str(epub3_path), "chap1", "-f", "pdf"])
    assert result.exit_code == 1
    assert "Invalid format" in result.output


def test_validate_ok(epub3_path):
    result = runner.invoke(app, ["validate", str(epub3_path)])
    assert result.exit_code == 0
    assert "Valid" in result.output


def test_validate_missing_resource(tmp_path):
    files = epub3_files()
    del files["OEBPS/styles/main.css"]
    path = tmp_path / "book.epub"
    path.write_bytes(make_epub(files))
    result = runner.invoke(app, ["validate", str(path)])
    assert result.exit_code == 1
    assert "main.css" in result.output


def test_validate_not_an_epub(tmp_path):
    path = tmp_path / "book.epub"
    path.write_bytes(make_epub(epub3_files(), mimetype=b"application/zip"))
    result = runner.invoke(app, ["validate", str(path)])
    assert result.exit_code == 1
    assert "NotAnEpubError" in result.output


def test_unreadable_file(tmp_path):
    path = tmp_path / "book.epub"
    path.write_text("plain text")
    result = runner.invoke(app, ["info", str(path)])
    assert result.exit_code == 1
    assert "SourceUnreadableError" in result.output
