"""Info, manifest and spine command implementations."""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from epub_model.models.document import Document


def execute_info(document: Document, console: Console) -> None:
    """Display publication metadata and structure counts."""
    package = document.package
    metadata = package.metadata

    info_lines = [
        f"[bold]{metadata.title or 'Untitled'}[/]",
        "",
        f"[dim]Author(s):[/] {', '.join(metadata.creators) or 'Unknown'}",
        f"[dim]Language:[/] {metadata.language or 'Unknown'}",
        f"[dim]Identifier:[/] {metadata.unique_identifier or 'Unknown'}",
        f"[dim]EPUB version:[/] {package.version or 'Unknown'}",
        f"[dim]Renditions:[/] {len(document.packages)}",
        f"[dim]Manifest items:[/] {len(package.manifest)}",
        f"[dim]Spine items:[/] {len(package.spine)}",
        f"[dim]TOC entries:[/] {document.navigation.node_count}",
    ]
    if metadata.modified:
        info_lines.append(f"[dim]Modified:[/] {metadata.modified}")
    if package.navigation_source is not None:
        info_lines.append(
            f"[dim]Navigation:[/] {package.navigation_source.kind} "
            f"({package.navigation_source.path})"
        )
    cover = package.cover_image
    if cover is not None:
        info_lines.append(f"[dim]Cover:[/] {cover.href}")

    if document.warnings:
        info_lines.append("")
        for warning in document.warnings:
            info_lines.append(f"[yellow]! {warning}[/]")

    console.print()
    console.print(
        Panel("\n".join(info_lines), title="Publication", border_style="green")
    )
    console.print()


def execute_manifest(document: Document, console: Console) -> None:
    """List every manifest item of the default rendition."""
    package = document.package
    missing = set(package.missing_resources)

    table = Table(title="Manifest", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="white")
    table.add_column("Path", style="white")
    table.add_column("Media type", style="dim")
    table.add_column("Properties", style="green")

    for item in package.manifest.values():
        path = f"[red]{item.href}[/]" if item.href in missing else str(item.href)
        table.add_row(item.id, path, item.media_type, " ".join(sorted(item.properties)))

    console.print(table)


def execute_spine(document: Document, console: Console) -> None:
    """List the reading order of the default rendition."""
    package = document.package

    table = Table(title="Reading Order", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("ID", style="white")
    table.add_column("Path", style="white")
    table.add_column("Linear", justify="center")

    for i, ref in enumerate(package.spine):
        item = package.manifest[ref.idref]
        table.add_row(
            str(i + 1),
            item.id,
            str(item.href),
            "yes" if ref.linear else "[dim]no[/]",
        )

    console.print(table)
