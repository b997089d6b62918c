"""Constructors and extraction helpers for implementing builtin functions.

Builtin functions receive argument cells and return cells. The helpers here
resolve an argument and check its kind, raising typed `EvalError`s, so a
function body reads as plain Python over numbers and texts.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._errors import ErrorKind, EvalError
from ._eval_engine import resolve_shallow
from ._nodes import (
    BLANK,
    BlockNode,
    FunctionNode,
    LiteralNode,
    Primitive,
    ResolvedNode,
    is_blank,
    is_literal,
    is_number,
    is_text,
    is_true,
)
from ._reactive import Cell, Signal, constant
from ._scope import make_block_cell

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

logger = logging.getLogger(__name__)


# Constructors


def blank() -> Cell[ResolvedNode]:
    return constant(BLANK)


def lit(value: Primitive) -> Cell[ResolvedNode]:
    return constant(LiteralNode(value))


def truth(flag: bool) -> Cell[ResolvedNode]:  # noqa: FBT001
    """`True` as a literal, anything false as Blank."""
    return lit(True) if flag else blank()  # noqa: FBT003


def fn(impl: Callable[..., Cell], name: str | None = None) -> Cell[ResolvedNode]:
    """Wrap a Python callable as a Function node cell."""
    return constant(FunctionNode(impl, name or getattr(impl, "__name__", "<function>")))


# Conversions


def to_bool(cell: Cell) -> bool:
    """Blank is false, `True` is true, anything else is an error."""
    node = resolve_shallow(cell)
    if is_blank(node):
        return False
    if is_true(node):
        return True
    raise EvalError.expected(ErrorKind.EXPECTED_BOOLEAN)


def req_prim(cell: Cell) -> Primitive:
    node = resolve_shallow(cell)
    if is_literal(node):
        return node.value
    raise EvalError.expected(ErrorKind.EXPECTED_LITERAL)


def req_num(cell: Cell) -> int | float:
    node = resolve_shallow(cell)
    if is_number(node):
        return node.value  # ty: ignore[invalid-return-type] # Narrowed by is_number
    raise EvalError.expected(ErrorKind.EXPECTED_NUMBER)


def req_text(cell: Cell) -> str:
    node = resolve_shallow(cell)
    if is_text(node):
        return node.value  # ty: ignore[invalid-return-type] # Narrowed by is_text
    raise EvalError.expected(ErrorKind.EXPECTED_TEXT)


def req_block(cell: Cell) -> BlockNode:
    node = resolve_shallow(cell)
    if isinstance(node, BlockNode):
        return node
    raise EvalError.expected(ErrorKind.EXPECTED_BLOCK)


def req_function(cell: Cell) -> FunctionNode:
    node = resolve_shallow(cell)
    if isinstance(node, FunctionNode):
        return node
    raise EvalError.expected(ErrorKind.EXPECTED_FUNCTION)


def maybe_num(cell: Cell) -> int | float | None:
    """A number, or None for Blank."""
    node = resolve_shallow(cell)
    if is_blank(node):
        return None
    if is_number(node):
        return node.value  # ty: ignore[invalid-return-type] # Narrowed by is_number
    raise EvalError.expected(ErrorKind.EXPECTED_NUMBER_OR_BLANK)


def maybe_text(cell: Cell) -> str | None:
    """A text, or None for Blank."""
    node = resolve_shallow(cell)
    if is_blank(node):
        return None
    if is_text(node):
        return node.value  # ty: ignore[invalid-return-type] # Narrowed by is_text
    raise EvalError.expected(ErrorKind.EXPECTED_TEXT_OR_BLANK)


def opt_num(cell: Cell, default: float) -> int | float:
    value = maybe_num(cell)
    return default if value is None else value


def opt_text(cell: Cell, default: str) -> str:
    value = maybe_text(cell)
    return default if value is None else value


def map_nums(impl: Callable[..., Primitive]) -> Callable[..., Cell]:
    """Lift a function over numbers into one over cells.

    If any argument is Blank the result is Blank.
    """

    def lifted(*args: Cell) -> Cell:
        numbers = [maybe_num(arg) for arg in args]
        if any(number is None for number in numbers):
            return blank()
        return lit(impl(*numbers))

    return lifted


def _one_level(cell: Cell) -> list[ResolvedNode]:
    """The resolved items of a block argument, or the argument itself."""
    node = resolve_shallow(cell)
    if isinstance(node, BlockNode):
        return [resolve_shallow(item) for item in node.items]
    return [node]


def numbers_flat_or_blank(cell: Cell) -> list[int | float]:
    """Numbers of an argument or of a flat block's items, skipping Blank."""
    numbers: list[int | float] = []
    for node in _one_level(cell):
        if is_blank(node):
            continue
        if not is_number(node):
            raise EvalError.expected(ErrorKind.EXPECTED_NUMBERS_OR_BLANKS)
        numbers.append(node.value)  # ty: ignore[invalid-argument-type] # Narrowed by is_number
    return numbers


def texts_flat_required(cell: Cell) -> list[str]:
    """Texts of an argument or of a flat block's items; Blank is an error."""
    texts: list[str] = []
    for node in _one_level(cell):
        if not is_text(node):
            raise EvalError.expected(ErrorKind.EXPECTED_TEXTS)
        texts.append(node.value)  # ty: ignore[invalid-argument-type] # Narrowed by is_text
    return texts


# Root scope


def with_library(
    document: Cell,
    library: Mapping[str, Cell],
    *,
    case_insensitive: bool = False,
) -> Signal[BlockNode]:
    """Build the well-known root scope block.

    The library entries become value entries visible to every identifier
    lookup in the document, and the document becomes the root's sole item.

    Args:
        document: The document's top cell.
        library: Function (or any other) cells keyed by identifier.
        case_insensitive: Mark the root scope case-insensitive.

    Returns:
        The root scope cell.

    """
    logger.debug("Building root scope with %d library entries", len(library))
    return make_block_cell(library, [document], case_insensitive=case_insensitive)
