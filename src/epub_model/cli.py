"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from epub_model.commands.info import execute_info, execute_manifest, execute_spine
from epub_model.commands.show import execute_show
from epub_model.commands.toc import execute_toc
from epub_model.commands.validate import execute_validate
from epub_model.core.parser import parse
from epub_model.errors import EpubError
from epub_model.models.document import Document
from epub_model.models.options import ParseOptions

app = typer.Typer(
    name="epub-model",
    help="Inspect and validate EPUB archives.",
    add_completion=False,
)

console = Console()

BookPath = Annotated[
    Path,
    typer.Argument(
        help="Path to the EPUB file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log parser warnings and progress"),
    ] = False,
) -> None:
    """Inspect and validate EPUB archives."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


def _load(book_path: Path, options: ParseOptions | None = None) -> Document:
    try:
        return parse(book_path, options=options)
    except EpubError as e:
        console.print(f"[red]Error reading file ({type(e).__name__}): {e}[/]")
        raise typer.Exit(1)


@app.command()
def info(book_path: BookPath) -> None:
    """Display publication metadata and structure counts."""
    with _load(book_path) as document:
        execute_info(document, console)


@app.command()
def toc(
    book_path: BookPath,
    landmarks: Annotated[
        bool,
        typer.Option("--landmarks", help="Show landmarks instead of the table of contents"),
    ] = False,
    page_list: Annotated[
        bool,
        typer.Option("--page-list", help="Show the page list instead of the table of contents"),
    ] = False,
) -> None:
    """Display the table of contents."""
    with _load(book_path) as document:
        if landmarks:
            tree = document.landmarks
        elif page_list:
            tree = document.page_list
        else:
            tree = document.navigation
        execute_toc(tree, console)


@app.command()
def spine(book_path: BookPath) -> None:
    """Display the reading order."""
    with _load(book_path) as document:
        execute_spine(document, console)


@app.command()
def manifest(book_path: BookPath) -> None:
    """List every resource declared in the manifest."""
    with _load(book_path) as document:
        execute_manifest(document, console)


@app.command()
def show(
    book_path: BookPath,
    item_id: Annotated[str, typer.Argument(help="Manifest id of the resource")],
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format: markdown, text, html or raw",
        ),
    ] = "markdown",
) -> None:
    """Print a single resource of the publication."""
    if output_format not in ("markdown", "text", "html", "raw"):
        console.print(
            f"[red]Invalid format: {output_format}. Use markdown, text, html or raw.[/]"
        )
        raise typer.Exit(1)

    with _load(book_path, ParseOptions(validate_resources="lazy")) as document:
        try:
            execute_show(document, item_id, output_format, console)  # type: ignore
        except (EpubError, ValueError) as e:
            console.print(f"[red]Error: {e}[/]")
            raise typer.Exit(1)


@app.command()
def validate(
    book_path: BookPath,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Fail when navigation is missing or unreadable"),
    ] = False,
) -> None:
    """Check container, package and navigation integrity."""
    options = ParseOptions(require_navigation=strict)
    if not execute_validate(book_path, options, console):
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
