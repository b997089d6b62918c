"""Parent/scope index kept outside the node model.

Blocks are immutable snapshots that may be shared across time, so a child
cannot carry a back-pointer to its owner. Instead the owner of every child
cell is recorded here, keyed weakly by cell identity. Case-insensitive scope
marking is also a property of the cell identity and survives node replacement.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from weakref import WeakKeyDictionary, WeakSet

from ._errors import EvalError
from ._nodes import BlockNode
from ._reactive import Cell, Signal

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

logger = logging.getLogger(__name__)

_parents: WeakKeyDictionary[Cell, Signal[BlockNode]] = WeakKeyDictionary()
_case_insensitive: WeakSet[Cell] = WeakSet()


def get_parent(child: Cell) -> Signal[BlockNode] | None:
    """Get the block cell that currently owns `child`, or None for a root."""
    return _parents.get(child)


def set_parent(child: Cell, parent: Signal[BlockNode]) -> None:
    """Record `parent` as the owner of `child`, replacing any previous owner."""
    _parents[child] = parent


def clear_parent(child: Cell) -> None:
    """Forget the owner of `child`. Clearing a root is a no-op."""
    _parents.pop(child, None)


def adopt_children(block_cell: Signal[BlockNode]) -> None:
    """Point the parent association of every child of `block_cell` at it."""
    node = block_cell.peek()
    if not isinstance(node, BlockNode):
        msg = f"Expected a block cell, got a cell holding {type(node).__name__}"
        raise TypeError(msg)
    for child in node.children():
        set_parent(child, block_cell)


def make_block_cell(
    values: Mapping[str, Cell] | None = None,
    items: Sequence[Cell] = (),
    *,
    case_insensitive: bool = False,
) -> Signal[BlockNode]:
    """Create a writable block cell and adopt its children.

    Args:
        values: Keyed children, in declaration order.
        items: Positional children.
        case_insensitive: Mark the new cell's scope case-insensitive for lookups.

    Returns:
        The new block cell.

    """
    block_cell: Signal[BlockNode] = Signal(BlockNode.of(values, list(items)))
    adopt_children(block_cell)
    if case_insensitive:
        mark_case_insensitive(block_cell)
    return block_cell


def mark_case_insensitive(cell: Cell, *, enabled: bool = True) -> None:
    """Flag (or unflag) a block cell's scope as case-insensitive for identifier lookup."""
    if enabled:
        _case_insensitive.add(cell)
    else:
        _case_insensitive.discard(cell)


def is_case_insensitive(cell: Cell) -> bool:
    return cell in _case_insensitive


def iter_ancestors(cell: Cell) -> Iterator[Signal[BlockNode]]:
    """Iterate over the owners of `cell`, nearest first, up to the root."""
    current = get_parent(cell)
    seen: set[int] = set()
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = get_parent(current)


def lookup_in_scope(name: str, start: Cell) -> Cell:
    """Find the cell bound to `name` in the scope of `start`.

    Walks from the owner of `start` upward. At each ancestor block the value
    entries are scanned in declaration order; an entry matches when its key
    equals `name`, or, in a block marked case-insensitive, when the keys are
    equal ignoring case. The first match wins.

    Reading an ancestor block registers it as a dependency of the active
    observer, so a cached evaluation is invalidated when a binding changes.

    Args:
        name: The identifier to resolve.
        start: The cell whose position defines the scope.

    Returns:
        The bound child cell.

    Raises:
        EvalError: UNBOUND_IDENTIFIER if no ancestor binds `name`.

    """
    folded = name.casefold()
    for ancestor in iter_ancestors(start):
        node = ancestor.get()
        if not isinstance(node, BlockNode):
            continue
        insensitive = is_case_insensitive(ancestor)
        for entry in node.values:
            if entry.key == name or (insensitive and entry.key.casefold() == folded):
                return entry.child
    logger.debug("Identifier %r is unbound", name)
    raise EvalError.unbound(name)
