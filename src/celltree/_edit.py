"""Structural edits on block trees.

Every edit locates a child cell in its parent block by identity, computes a
new parent block and writes it back through the parent cell. Block arrays are
never mutated in place, so readers always see a complete snapshot. An edit on
a root (a cell without parent) is a no-op.

Each operation returns the cell that should receive focus next. Key
collisions and unwrapping a block that does not hold exactly one item are
silent no-ops; callers compare the returned cell with the input to detect them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ._context import get_document_root
from ._nodes import BLANK, BlockNode
from ._reactive import Cell, Signal, batch
from ._scope import clear_parent, get_parent, iter_ancestors, set_parent
from ._transforms import BlockEntry, EntryKind, block_from_entries, enumerate_entries, iter_entries

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

logger = logging.getLogger(__name__)

type PathPart = str | int


@dataclass(frozen=True, slots=True)
class _Location:
    """Where a child sits in its parent block."""

    parent: Signal[BlockNode]
    entries: list[BlockEntry]
    index: int

    @property
    def entry(self) -> BlockEntry:
        return self.entries[self.index]


def _locate(child: Cell) -> _Location | None:
    parent = get_parent(child)
    if parent is None:
        return None
    node = parent.peek()
    if not isinstance(node, BlockNode):
        return None
    entries = list(iter_entries(node))
    for index, entry in enumerate(entries):
        if entry.child is child:
            return _Location(parent, entries, index)
    return None


def _write(location: _Location, entries: list[BlockEntry]) -> None:
    location.parent.set(block_from_entries(entries))


def _first_item_index(entries: list[BlockEntry]) -> int:
    for index, entry in enumerate(entries):
        if entry.kind is EntryKind.ITEM:
            return index
    return len(entries)


def _edit(child: Cell, apply: Callable[[_Location], Cell], moving: Cell | None = None) -> Cell:
    location = _locate(child)
    if location is None:
        logger.debug("Edit on a cell without parent is a no-op")
        return child
    with batch():
        if moving is not None and get_parent(moving) is not None:
            # A cell has one owner: take `moving` out of its old block first.
            _detach(moving)
            location = _locate(child)
            if location is None:
                return child
        return apply(location)


def _detach(cell: Cell) -> None:
    location = _locate(cell)
    if location is not None:
        entries = location.entries.copy()
        del entries[location.index]
        _write(location, entries)
    clear_parent(cell)


def _can_move(cell: Cell, target: Cell) -> bool:
    """Whether `cell` may take a place next to or instead of `target`."""
    return cell is not target and not any(ancestor is cell for ancestor in iter_ancestors(target))


def _insert(ref: Cell, new_child: Cell | None, offset: int) -> Cell:
    item = new_child if new_child is not None else Signal(BLANK)
    if not _can_move(item, ref):
        logger.debug("Cannot insert a cell next to itself or inside its own subtree")
        return ref

    def apply(location: _Location) -> Cell:
        # Values and items are separate orderings: next to a value means the front of the items.
        if location.entry.kind is EntryKind.VALUE:
            at = _first_item_index(location.entries)
        else:
            at = location.index + offset
        entries = location.entries.copy()
        entries.insert(at, BlockEntry(EntryKind.ITEM, item))
        set_parent(item, location.parent)
        _write(location, entries)
        logger.debug("Inserted item at canonical index %d", at)
        return item

    return _edit(ref, apply, item)


def insert_before(ref: Cell, new_child: Cell | None = None) -> Cell:
    """Insert an item just before `ref` (a new Blank cell if `new_child` is None).

    If `ref` is a value entry the new item goes to the front of the items.
    A `new_child` that already belongs to a block is moved out of it.

    Returns:
        The inserted cell, or `ref` if it has no parent.

    """
    return _insert(ref, new_child, 0)


def insert_after(ref: Cell, new_child: Cell | None = None) -> Cell:
    """Insert an item just after `ref` (a new Blank cell if `new_child` is None).

    If `ref` is a value entry the new item goes to the front of the items.
    A `new_child` that already belongs to a block is moved out of it.

    Returns:
        The inserted cell, or `ref` if it has no parent.

    """
    return _insert(ref, new_child, 1)


def assign_key(child: Cell, key: str) -> Cell:
    """Give `child` the value key `key`, converting an item into a value entry.

    A renamed value keeps its position; a converted item is appended to the
    values. If any sibling value (or `child` itself) already uses `key` this is
    a no-op. The child cell keeps its identity and its own children.
    """

    def apply(location: _Location) -> Cell:
        if any(entry.kind is EntryKind.VALUE and entry.key == key for entry in location.entries):
            return child
        entry = location.entry
        entries = location.entries.copy()
        if entry.kind is EntryKind.VALUE:
            entries[location.index] = BlockEntry(EntryKind.VALUE, child, key)
        else:
            del entries[location.index]
            entries.insert(_first_item_index(entries), BlockEntry(EntryKind.VALUE, child, key))
        _write(location, entries)
        logger.debug("Assigned key %r", key)
        return child

    return _edit(child, apply)


def remove_key(child: Cell) -> Cell:
    """Turn a value entry into an item at the front of the items.

    No-op if `child` is already an item.
    """

    def apply(location: _Location) -> Cell:
        if location.entry.kind is not EntryKind.VALUE:
            return child
        entries = location.entries.copy()
        del entries[location.index]
        entries.insert(_first_item_index(entries), BlockEntry(EntryKind.ITEM, child))
        _write(location, entries)
        logger.debug("Removed key %r", location.entry.key)
        return child

    return _edit(child, apply)


def replace_child(old: Cell, new: Cell) -> Cell:
    """Put `new` in the position (and key) of `old`; `old` becomes detached.

    A `new` that belongs to another block is moved out of it first. Replacing a
    cell with itself or with one of its own ancestors is a no-op.

    Returns:
        `new`, or `old` if it has no parent.

    """
    if not _can_move(new, old):
        return old

    def apply(location: _Location) -> Cell:
        entries = location.entries.copy()
        entries[location.index] = BlockEntry(location.entry.kind, new, location.entry.key)
        set_parent(new, location.parent)
        clear_parent(old)
        _write(location, entries)
        return new

    return _edit(old, apply, new)


def wrap_with_block(child: Cell) -> Cell:
    """Replace `child` with a new block cell whose sole item is `child`.

    Returns:
        `child`, now owned by the wrapper.

    """

    def apply(location: _Location) -> Cell:
        wrapper: Signal[BlockNode] = Signal(BlockNode(items=(child,)))
        entries = location.entries.copy()
        entries[location.index] = BlockEntry(location.entry.kind, wrapper, location.entry.key)
        set_parent(wrapper, location.parent)
        set_parent(child, wrapper)
        _write(location, entries)
        logger.debug("Wrapped child in a new block")
        return child

    return _edit(child, apply)


def unwrap_block_if_single_child(wrapper: Cell) -> Cell:
    """Replace `wrapper` in its parent by its sole item.

    Applies only when `wrapper` holds a block with no values and exactly one
    item; otherwise (or for a root wrapper) it is a no-op returning `wrapper`.

    Returns:
        The sole item, now owned by the wrapper's former parent.

    """
    node = wrapper.peek()
    if not isinstance(node, BlockNode) or node.values or len(node.items) != 1:
        return wrapper
    (only_child,) = node.items

    def apply(location: _Location) -> Cell:
        entries = location.entries.copy()
        entries[location.index] = BlockEntry(location.entry.kind, only_child, location.entry.key)
        set_parent(only_child, location.parent)
        clear_parent(wrapper)
        _write(location, entries)
        logger.debug("Unwrapped single-item block")
        return only_child

    return _edit(wrapper, apply)


def remove_child(child: Cell) -> Cell:
    """Remove `child` from its parent block and clear its parent association.

    Returns:
        The previous sibling in canonical order, else the next sibling, else
        the parent cell.

    """

    def apply(location: _Location) -> Cell:
        before = location.entries
        if location.index > 0:
            focus: Cell = before[location.index - 1].child
        elif location.index + 1 < len(before):
            focus = before[location.index + 1].child
        else:
            focus = location.parent
        entries = before.copy()
        del entries[location.index]
        clear_parent(child)
        _write(location, entries)
        logger.debug("Removed child at canonical index %d", location.index)
        return focus

    return _edit(child, apply)


def parent_of(cell: Cell) -> Cell | None:
    return get_parent(cell)


def previous_sibling(cell: Cell) -> Cell | None:
    """The sibling before `cell` in canonical order, if any."""
    location = _locate(cell)
    if location is None or location.index == 0:
        return None
    return location.entries[location.index - 1].child


def next_sibling(cell: Cell) -> Cell | None:
    """The sibling after `cell` in canonical order, if any."""
    location = _locate(cell)
    if location is None or location.index + 1 >= len(location.entries):
        return None
    return location.entries[location.index + 1].child


def first_child(cell: Cell) -> Cell | None:
    """The first child of a block cell in canonical order, if any."""
    node = cell.peek()
    if not isinstance(node, BlockNode):
        return None
    return next(node.children(), None)


def cell_path(cell: Cell) -> tuple[PathPart, ...]:
    """Canonical ids from the current document root down to `cell`.

    Raises:
        LookupError: If no document root is set.
        ValueError: If `cell` is not attached below the document root.

    """
    root = get_document_root()
    parts: list[PathPart] = []
    current = cell
    while current is not root:
        location = _locate(current)
        if location is None:
            msg = "Cell is not attached to the current document root"
            raise ValueError(msg)
        node = location.parent.peek()
        view = next(view for view in enumerate_entries(node) if view.index == location.index)
        parts.append(view.id)
        current = location.parent
    return tuple(reversed(parts))


def resolve_path(path: Sequence[PathPart]) -> Cell | None:
    """Find the cell at `path` below the current document root.

    Text parts select value entries by key; integer parts select items by
    1-based position. Returns None if any step does not exist.

    Raises:
        LookupError: If no document root is set.

    """
    current: Cell = get_document_root()
    for part in path:
        node = current.peek()
        if not isinstance(node, BlockNode):
            return None
        if isinstance(part, str):
            child = node.get_value(part)
        elif 1 <= part <= len(node.items):
            child = node.items[part - 1]
        else:
            child = None
        if child is None:
            return None
        current = child
    return current
