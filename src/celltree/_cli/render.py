"""Rich rendering utilities for resolved documents."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.tree import Tree

from celltree._static import Static, StaticBlock, StaticError

if TYPE_CHECKING:
    from rich.console import Console


def format_static_leaf(value: Static) -> str:
    """Format a non-block Static value as Rich markup.

    Args:
        value: Blank, a primitive or an error.

    Returns:
        Rich markup string.

    """
    match value:
        case None:
            return "[dim]blank[/dim]"
        case StaticError(message=message):
            return f"[red]error:[/red] {escape(message)}"
        case True:
            return "[green]true[/green]"
        case str():
            return f"[yellow]{escape(repr(value))}[/yellow]"
        case StaticBlock():
            return f"[bold]block[/bold] [dim]({len(value.values)} values, {len(value.items)} items)[/dim]"
        case _:
            return f"[cyan]{value}[/cyan]"


def render_static(value: Static, console: Console) -> None:
    """Render a Static tree using Rich Tree.

    Args:
        value: The resolved value to render.
        console: Rich Console to output to.

    """
    if not isinstance(value, StaticBlock):
        console.print(format_static_leaf(value))
        return
    rich_tree = Tree(format_static_leaf(value))
    _add_block_children(rich_tree, value)
    console.print(rich_tree)


def _add_block_children(parent: Tree, block: StaticBlock) -> None:
    """Recursively add the values and items of a block to a Rich Tree.

    Args:
        parent: Parent Tree node to add children to.
        block: The block whose children are added.

    """
    labelled = [(f"[bold]{escape(key)}[/bold]", child) for key, child in block.values.items()]
    labelled += [(f"[dim]{position}[/dim]", child) for position, child in enumerate(block.items, start=1)]
    for label, child in labelled:
        child_tree = parent.add(f"{label}: {format_static_leaf(child)}")
        if isinstance(child, StaticBlock):
            _add_block_children(child_tree, child)
