"""Show command implementation."""

from typing import Literal

from lxml import etree
from rich.console import Console
from rich.syntax import Syntax

from epub_model.models.document import Document


def execute_show(
    document: Document,
    item_id: str,
    output_format: Literal["markdown", "text", "html", "raw"],
    console: Console,
) -> None:
    """Print one manifest resource of the default rendition.

    Raises:
        ValueError: If item_id is not in the manifest
        ResourceNotFoundError: If the item's entry is missing from the archive
    """
    item = document.package.item(item_id)
    if item is None:
        raise ValueError(f"No manifest item '{item_id}'")

    if item.is_xhtml and output_format != "raw":
        _print_content(document, item, output_format, console)
    elif item.is_xml or item.media_type == "text/html":
        tree = document.open(item)
        markup = etree.tostring(tree, encoding="unicode", pretty_print=True)
        console.print(Syntax(markup, "xml", word_wrap=True))
    else:
        data = document.read(item)
        console.print(f"[dim]{item.href}: {item.media_type}, {len(data):,} bytes[/]")


def _print_content(document, item, output_format, console) -> None:
    content = document.content_document(item)
    if output_format == "markdown":
        console.print(content.to_markdown(), markup=False)
    elif output_format == "text":
        console.print(content.to_text(), markup=False)
    else:
        body = content.soup.body or content.soup
        console.print(Syntax(str(body), "html", word_wrap=True))
