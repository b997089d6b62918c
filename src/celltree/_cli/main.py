import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from celltree._errors import EvalError
from celltree._eval_engine import resolve_deep
from celltree._nodes import CodeNode, LiteralNode, Primitive
from celltree._reactive import Cell, Signal, constant
from celltree._scope import make_block_cell
from celltree._static import static_to_json

from .config import ConfigError, get_config
from .render import render_static

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Celltree CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def parse_binding_value(raw: str) -> Primitive:
    """Parse the value part of a `--let` option.

    `true` becomes the boolean literal, integer and float spellings become
    numbers, and anything else is kept as text.
    """
    if raw == "true":
        return True
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


def parse_binding(option: str) -> tuple[str, Primitive]:
    """Split a `name=value` option.

    Raises:
        typer.BadParameter: If the option has no `=` or an empty name.

    """
    name, sep, raw = option.partition("=")
    name = name.strip()
    if not sep or not name:
        msg = f"Expected name=value, got {option!r}"
        raise typer.BadParameter(msg, param_hint="--let")
    return name, parse_binding_value(raw)


@app.command(name="eval")
def eval_command(
    expression: Annotated[
        str,
        typer.Argument(help="Code to evaluate, e.g. 'price * (1 + rate)'"),
    ],
    bindings: Annotated[
        list[str] | None,
        typer.Option("--let", help="Bind a root value as name=value (repeatable)"),
    ] = None,
    *,
    case_insensitive: Annotated[
        bool,
        typer.Option("--case-insensitive", help="Look up identifiers in the root scope ignoring case"),
    ] = False,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the resolved value as JSON"),
    ] = False,
) -> None:
    """Evaluate an expression in a root scope built from config and --let bindings."""
    try:
        config = get_config()
    except ConfigError as e:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    values: dict[str, Primitive] = dict(config.bindings)
    for option in bindings or []:
        name, value = parse_binding(option)
        values[name] = value
    logger.debug("Root bindings: %s", values)

    code_cell = Signal(CodeNode(expression))
    value_cells: dict[str, Cell] = {name: constant(LiteralNode(value)) for name, value in values.items()}
    make_block_cell(
        value_cells,
        [code_cell],
        case_insensitive=case_insensitive or config.case_insensitive,
    )

    try:
        result = resolve_deep(code_cell)
    except EvalError as e:
        err_console.print(f"[red]✗ {escape(e.message)}[/red] [dim]({e.kind})[/dim]")
        raise typer.Exit(code=1) from e

    if as_json:
        out_console.print_json(static_to_json(result))
    else:
        render_static(result, out_console)


def main() -> None:
    app()
