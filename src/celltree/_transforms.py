"""Canonical-order block transforms: map, filter, reduce and sort.

Entries are enumerated in canonical order (all values, then all items). A
value entry's id is its key; an item's id is its 1-based position among the
items only. Callbacks receive `(value_cell, id_cell)`.
"""

from __future__ import annotations

import locale
import logging
import math
import unicodedata
from dataclasses import dataclass
from enum import StrEnum, auto
from typing import TYPE_CHECKING

from ._errors import ErrorKind, EvalError
from ._eval_engine import resolve_shallow, resolved_view
from ._nodes import BLANK, BlankNode, BlockNode, LiteralNode, ResolvedNode, ValueEntry, is_blank, is_number, is_text
from ._reactive import Cell, Computed, constant

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

logger = logging.getLogger(__name__)

type EntryCallback = Callable[[Cell, Cell], Cell]


class EntryKind(StrEnum):
    VALUE = auto()
    ITEM = auto()


@dataclass(frozen=True, slots=True)
class BlockEntry:
    """One child of a block with its kind and, for values, its key."""

    kind: EntryKind
    child: Cell
    key: str | None = None


@dataclass(frozen=True, slots=True)
class EntryView:
    """A block entry with its canonical id and canonical index.

    Attributes:
        entry: The underlying entry.
        id: The key for values, the 1-based item position for items.
        index: Position in canonical order (0-based, across values and items).

    """

    entry: BlockEntry
    id: str | int
    index: int

    @property
    def child(self) -> Cell:
        return self.entry.child

    def cells(self) -> tuple[Cell, Cell]:
        """Cells passed to callbacks: a derived view of the value, and the id."""
        return resolved_view(self.entry.child), constant(LiteralNode(self.id))


def iter_entries(block: BlockNode) -> Iterator[BlockEntry]:
    """Iterate over entries in canonical order."""
    for value in block.values:
        yield BlockEntry(EntryKind.VALUE, value.child, value.key)
    for item in block.items:
        yield BlockEntry(EntryKind.ITEM, item)


def enumerate_entries(block: BlockNode) -> Iterator[EntryView]:
    item_position = 0
    for index, entry in enumerate(iter_entries(block)):
        if entry.kind is EntryKind.VALUE:
            entry_id: str | int = entry.key  # ty: ignore[invalid-assignment] # Values always carry a key
        else:
            item_position += 1
            entry_id = item_position
        yield EntryView(entry, entry_id, index)


def canonical_ids(block: BlockNode) -> list[str | int]:
    return [view.id for view in enumerate_entries(block)]


def block_from_entries(entries: Iterable[BlockEntry]) -> BlockNode:
    """Build a block, routing each entry to the values or items by its kind."""
    values: list[ValueEntry] = []
    items: list[Cell] = []
    for entry in entries:
        if entry.kind is EntryKind.VALUE:
            values.append(ValueEntry(entry.key, entry.child))  # ty: ignore[invalid-argument-type]
        else:
            items.append(entry.child)
    return BlockNode(values=tuple(values), items=tuple(items))


def block_map(block: BlockNode, f: EntryCallback) -> BlockNode:
    """Map every entry through `f`, keeping keys and kinds.

    Each new child is a derived cell that invokes `f` lazily on read, so the
    result keeps tracking the source cells instead of being materialized.
    """

    def mapped(view: EntryView) -> Cell:
        value_cell, id_cell = view.cells()
        return Computed(lambda: resolve_shallow(f(value_cell, id_cell)))

    return block_from_entries(
        BlockEntry(view.entry.kind, mapped(view), view.entry.key) for view in enumerate_entries(block)
    )


def block_filter(block: BlockNode, pred: Callable[[Cell, Cell], bool]) -> BlockNode:
    """Keep the entries for which `pred` holds, evaluated once now.

    The result is a point-in-time snapshot sharing the source's child cells,
    in their original relative order and kind.
    """
    kept = [view.entry for view in enumerate_entries(block) if pred(*view.cells())]
    logger.debug("Filter kept %d of %d entries", len(kept), len(block))
    return block_from_entries(kept)


def block_reduce(
    block: BlockNode,
    rf: Callable[[Cell, Cell, Cell], Cell],
    init: Cell | None = None,
) -> Cell:
    """Left fold over canonical order.

    If `init` is omitted or Blank, the first entry seeds the accumulator and
    folding starts at the second entry. An empty block yields `init`, or Blank
    without one. A single entry with no `init` is returned as its own cell
    without calling `rf`; otherwise `rf` always receives resolved views, the
    seed included.

    Args:
        block: The block to fold.
        rf: Called as `rf(accumulator, value_cell, id_cell)`; returns the next accumulator.
        init: Optional initial accumulator.

    Returns:
        The final accumulator cell.

    """
    views = list(enumerate_entries(block))
    if not views:
        return init if init is not None else constant(BLANK)

    if init is not None and not is_blank(resolve_shallow(init)):
        accumulator = init
        rest = views
    else:
        if len(views) == 1:
            return views[0].child
        accumulator, _ = views[0].cells()
        rest = views[1:]

    for view in rest:
        accumulator = rf(accumulator, *view.cells())
    return accumulator


class _Rank:
    NUMBER = 0
    TEXT = 1
    TRUE = 2
    OTHER = 3
    BLANK = 4


def collation_key(text: str) -> str:
    """Locale-aware, case- and accent-insensitive collation key."""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return locale.strxfrm(base.casefold())


def sort_key(node: ResolvedNode, index: int) -> tuple[int, float | str, int]:
    """Rank, comparable value, then canonical index as the final tie-break.

    Ranks: number < text < true < any other concrete value < Blank.
    NaN sorts with infinity after the finite numbers, tied by index.
    """
    match node:
        case BlankNode():
            return (_Rank.BLANK, 0, index)
        case LiteralNode(value=True):
            return (_Rank.TRUE, 0, index)
        case LiteralNode(value=str() as text):
            return (_Rank.TEXT, collation_key(text), index)
        case LiteralNode(value=float() as number) if math.isnan(number):
            return (_Rank.NUMBER, math.inf, index)
        case LiteralNode(value=number):
            return (_Rank.NUMBER, number, index)  # ty: ignore[invalid-return-type] # Only numbers remain
        case _:
            return (_Rank.OTHER, 0, index)


def block_sort(block: BlockNode, key_selector: EntryCallback | None = None) -> BlockNode:
    """Stable sort of a block's entries.

    The sort key is the entry's own resolved node, or the resolved value of
    `key_selector(value_cell, id_cell)`. Entries keep their kind, so values
    stay before items in the result.
    """
    rows: list[tuple[tuple[int, float | str, int], BlockEntry]] = []
    for view in enumerate_entries(block):
        if key_selector is None:
            node = resolve_shallow(view.child)
        else:
            node = resolve_shallow(key_selector(*view.cells()))
        rows.append((sort_key(node, view.index), view.entry))
    rows.sort(key=lambda row: row[0])
    return block_from_entries(entry for _, entry in rows)


def block_numbers_opt(block: BlockNode) -> list[int | float]:
    """Collect the numbers of a block, skipping Blank entries.

    Raises:
        EvalError: EXPECTED_NUMBER_OR_BLANK for any other entry.

    """
    numbers: list[int | float] = []
    for entry in iter_entries(block):
        node = resolve_shallow(entry.child)
        if is_blank(node):
            continue
        if not is_number(node):
            raise EvalError.expected(ErrorKind.EXPECTED_NUMBER_OR_BLANK)
        numbers.append(node.value)  # ty: ignore[invalid-argument-type] # Narrowed by is_number
    return numbers


def block_texts_opt(block: BlockNode) -> list[str]:
    """Collect the texts of a block, skipping Blank entries.

    Raises:
        EvalError: EXPECTED_TEXT_OR_BLANK for any other entry.

    """
    texts: list[str] = []
    for entry in iter_entries(block):
        node = resolve_shallow(entry.child)
        if is_blank(node):
            continue
        if not is_text(node):
            raise EvalError.expected(ErrorKind.EXPECTED_TEXT_OR_BLANK)
        texts.append(node.value)  # ty: ignore[invalid-argument-type] # Narrowed by is_text
    return texts
