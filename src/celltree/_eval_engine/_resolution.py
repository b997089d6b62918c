"""Shallow and deep resolution of cells."""

from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, assert_never

from celltree._errors import ErrorKind, EvalError
from celltree._nodes import (
    BLANK,
    BlankNode,
    BlockNode,
    CodeNode,
    ConditionalNode,
    FunctionNode,
    LiteralNode,
    ResolvedNode,
)
from celltree._reactive import Cell, Computed
from celltree._scope import lookup_in_scope
from celltree._static import Static, StaticBlock, StaticError

from ._expr import CodeEvaluator

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

logger = logging.getLogger(__name__)

# Cells whose resolution is in progress on the current call stack.
_resolving_var: ContextVar[frozenset[Cell]] = ContextVar("resolving", default=frozenset())


@contextmanager
def _entering(cell: Cell) -> Generator[None]:
    """Mark `cell` as being resolved, raising CYCLE if it already is."""
    resolving = _resolving_var.get()
    if cell in resolving:
        msg = "Cycle detected while resolving a cell that refers back to itself"
        raise EvalError(ErrorKind.CYCLE, msg)
    token = _resolving_var.set(resolving | {cell})
    try:
        yield
    finally:
        _resolving_var.reset(token)


def is_truthy(value: Static) -> bool:
    """Truthiness of a Static value.

    Blank, errors and empty blocks are false; a nonzero number, nonempty text,
    `True` or a nonempty block is true.
    """
    match value:
        case None | StaticError():
            return False
        case StaticBlock():
            return len(value) > 0
        case True:
            return True
        case str():
            return value != ""
        case int() | float():
            return value != 0 and not math.isnan(value)
        case _:
            return False


def evaluate_code(source: str, scope: Callable[[str], Cell]) -> ResolvedNode:
    """Evaluate code text against a scope-lookup function.

    Args:
        source: The code text.
        scope: Maps an identifier to its bound cell; raises for unbound names.

    Returns:
        The concrete node the code evaluates to.

    """
    return CodeEvaluator(scope, resolve_shallow).evaluate(source)


def resolve_shallow(cell: Cell) -> ResolvedNode:
    """Resolve one level of Code/Conditional evaluation.

    A Conditional resolves its condition deeply, then shallow-resolves the
    chosen branch (a missing else branch yields Blank). Code is evaluated
    against the scope of the cell's position. Concrete nodes pass through.

    This call is not memoized; wrap it in a `Computed` (see `resolved_view`)
    to cache the result until an identifier it read changes.

    Raises:
        EvalError: On any evaluation failure.

    """
    return _resolve_at(cell, cell)


def _resolve_at(cell: Cell, position: Cell) -> ResolvedNode:
    with _entering(cell):
        return _resolve_node(cell, position)


def _resolve_node(cell: Cell, position: Cell) -> ResolvedNode:
    # Branch and condition cells of a conditional resolve in the conditional's scope.
    node = cell.get()
    match node:
        case ConditionalNode(condition=condition, then=then, otherwise=otherwise):
            chosen = then if is_truthy(_resolve_deep_at(condition, position)) else otherwise
            if chosen is None:
                return BLANK
            return _resolve_at(chosen, position)
        case CodeNode(source=source):
            return CodeEvaluator(lambda name: lookup_in_scope(name, position), resolve_shallow).evaluate(source)
        case BlankNode() | LiteralNode() | BlockNode() | FunctionNode():
            return node
        case _:
            assert_never(node)


def resolve_deep(cell: Cell) -> Static:
    """Resolve a cell fully into a Static tree.

    Each child of a block is resolved independently: an error raised while
    resolving one child becomes a `StaticError` at that position, and its
    siblings and ancestors resolve normally. Errors at the top level propagate.

    Raises:
        EvalError: If the cell itself fails to resolve, or resolves to a function.

    """
    return _resolve_deep_at(cell, cell)


def _resolve_deep_at(cell: Cell, position: Cell) -> Static:
    # The cell stays marked while its children resolve, so a block reached
    # again through its own code is reported as a cycle.
    with _entering(cell):
        return _to_static(_resolve_node(cell, position))


def _to_static(node: ResolvedNode) -> Static:
    match node:
        case BlankNode():
            return None
        case LiteralNode(value=value):
            return value
        case BlockNode():
            return StaticBlock(
                values={entry.key: _resolve_child(entry.child) for entry in node.values},
                items=[_resolve_child(child) for child in node.items],
            )
        case FunctionNode():
            raise EvalError.function_not_resolvable()
        case _:
            assert_never(node)


def _resolve_child(child: Cell) -> Static:
    try:
        return resolve_deep(child)
    except Exception as e:  # noqa: BLE001 - Any failure is localized to this child
        logger.debug("Captured resolution error: %s", e)
        if isinstance(e, EvalError):
            return StaticError(message=e.message, error_kind=e.kind)
        return StaticError(message=str(e) or type(e).__name__)


def resolved_view(cell: Cell) -> Computed[ResolvedNode]:
    """A derived cell memoizing `resolve_shallow(cell)` until a dependency changes."""
    return Computed(lambda: resolve_shallow(cell))


def static_view(cell: Cell) -> Computed[Static]:
    """A derived cell memoizing `resolve_deep(cell)` until a dependency changes."""
    return Computed(lambda: resolve_deep(cell))
