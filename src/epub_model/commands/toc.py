"""Navigation display command."""

from rich.console import Console
from rich.table import Table

from epub_model.models.navigation import NavigationTree


def execute_toc(tree: NavigationTree, console: Console) -> None:
    """Display a navigation tree as an indented table."""
    if tree.is_empty:
        console.print(f"[dim]No {tree.kind} entries[/]")
        return

    title = tree.kind.replace("-", " ").title()
    if tree.source:
        title = f"{title} (from {tree.source})"

    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Label", style="white")
    table.add_column("Target", style="green")

    for i, (depth, point) in enumerate(tree.walk()):
        label = f"{'  ' * depth}{point.label}"
        if point.types:
            label = f"{label} [dim]({' '.join(sorted(point.types))})[/]"
        table.add_row(str(i + 1), label, point.href or "-")

    console.print(table)
