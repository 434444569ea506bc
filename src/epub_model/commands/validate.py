"""Validate command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from epub_model.core.parser import parse
from epub_model.errors import EpubError
from epub_model.models.options import ParseOptions


def execute_validate(book_path: Path, options: ParseOptions, console: Console) -> bool:
    """Parse book_path and report problems.

    Returns True when the archive parses and every declared resource exists.
    """
    try:
        document = parse(book_path, options=options)
    except EpubError as e:
        details = [f"[red]{type(e).__name__}[/]: {e}"]
        if e.path:
            details.append(f"[dim]Path:[/] {e.path}")
        if e.identifier:
            details.append(f"[dim]Id:[/] {e.identifier}")
        console.print(Panel("\n".join(details), title="Invalid", border_style="red"))
        return False

    with document:
        lines = [
            f"[dim]Renditions:[/] {len(document.packages)}",
            f"[dim]Manifest items:[/] {sum(len(p.manifest) for p in document.packages)}",
        ]
        for warning in document.warnings:
            lines.append(f"[yellow]! {warning}[/]")

        valid = document.is_valid
        console.print(
            Panel(
                "\n".join(lines),
                title="Valid" if valid else "Invalid",
                border_style="green" if valid else "red",
            )
        )
    return valid
