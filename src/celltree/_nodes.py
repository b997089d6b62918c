"""Node model: the closed set of values a cell can hold.

Concrete nodes are `BlankNode`, `LiteralNode`, `BlockNode` and `FunctionNode`.
`CodeNode` and `ConditionalNode` are unevaluated forms that shallow resolution
turns into a concrete node. All nodes are immutable; edits build new nodes and
write them into cells.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum, auto
from typing import TYPE_CHECKING, ClassVar, Final, Literal, TypeGuard, TypeIs

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

    from celltree._reactive import Cell

type Primitive = Literal[True] | int | float | str


class NodeKind(StrEnum):
    """The tag of a node."""

    BLANK = auto()
    LITERAL = auto()
    BLOCK = auto()
    FUNCTION = auto()
    CODE = auto()
    CONDITIONAL = auto()


def is_primitive(value: object) -> TypeIs[Primitive]:
    """Check if a Python value is a valid primitive (`True`, a number or text).

    There is no `False`; absence of truth is represented by Blank.
    """
    if isinstance(value, bool):
        return value is True
    return isinstance(value, (int, float, str))


@dataclass(frozen=True, slots=True)
class BlankNode:
    """The unit "no value" node, distinct from empty text or zero."""

    kind: ClassVar[NodeKind] = NodeKind.BLANK

    def __repr__(self) -> str:
        return "BLANK"


BLANK: Final = BlankNode()


@dataclass(frozen=True, slots=True)
class LiteralNode:
    """A node wrapping exactly one primitive."""

    value: Primitive
    kind: ClassVar[NodeKind] = NodeKind.LITERAL

    def __post_init__(self) -> None:
        if not is_primitive(self.value):
            msg = f"Literal value must be True, a number or text. Got: {self.value!r}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ValueEntry:
    """A keyed child of a block."""

    key: str
    child: Cell


@dataclass(frozen=True, slots=True)
class BlockNode:
    """Ordered keyed values plus ordered positional items.

    Value keys are unique and keep insertion order. Canonical order is all
    values in stored order, then all items in stored order.

    Attributes:
        values: Keyed children.
        items: Positional children (1-based for external addressing).

    """

    values: tuple[ValueEntry, ...] = ()
    items: tuple[Cell, ...] = ()
    kind: ClassVar[NodeKind] = NodeKind.BLOCK

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for entry in self.values:
            if entry.key in seen:
                msg = f"Duplicate value key in block: {entry.key!r}"
                raise ValueError(msg)
            seen.add(entry.key)

    @classmethod
    def of(cls, values: Mapping[str, Cell] | None = None, items: tuple[Cell, ...] | list[Cell] = ()) -> BlockNode:
        """Build a block from a key-to-cell mapping and a sequence of item cells."""
        entries = tuple(ValueEntry(key, child) for key, child in (values or {}).items())
        return cls(values=entries, items=tuple(items))

    def __len__(self) -> int:
        return len(self.values) + len(self.items)

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(entry.key for entry in self.values)

    def get_value(self, key: str) -> Cell | None:
        """Get the child stored under `key`, or None."""
        for entry in self.values:
            if entry.key == key:
                return entry.child
        return None

    def children(self) -> Iterator[Cell]:
        """Iterate over every child cell in canonical order."""
        for entry in self.values:
            yield entry.child
        yield from self.items


@dataclass(frozen=True, slots=True)
class FunctionNode:
    """An opaque callable taking argument cells and returning a cell."""

    impl: Callable[..., Cell]
    name: str = field(default="<function>", compare=False)
    kind: ClassVar[NodeKind] = NodeKind.FUNCTION

    def __call__(self, *args: Cell) -> Cell:
        return self.impl(*args)


@dataclass(frozen=True, slots=True)
class CodeNode:
    """Unevaluated source text, evaluated against the scope of its cell."""

    source: str
    kind: ClassVar[NodeKind] = NodeKind.CODE


@dataclass(frozen=True, slots=True)
class ConditionalNode:
    """Unevaluated if/then/else; a missing else branch means Blank."""

    condition: Cell
    then: Cell
    otherwise: Cell | None = None
    kind: ClassVar[NodeKind] = NodeKind.CONDITIONAL


type ResolvedNode = BlankNode | LiteralNode | BlockNode | FunctionNode
type Node = ResolvedNode | CodeNode | ConditionalNode


def is_blank(node: Node) -> TypeIs[BlankNode]:
    return isinstance(node, BlankNode)


def is_literal(node: Node) -> TypeIs[LiteralNode]:
    return isinstance(node, LiteralNode)


def is_number(node: Node) -> TypeGuard[LiteralNode]:
    """Check if the node is a literal holding a number (never `True`)."""
    return isinstance(node, LiteralNode) and not isinstance(node.value, (bool, str))


def is_text(node: Node) -> TypeGuard[LiteralNode]:
    return isinstance(node, LiteralNode) and isinstance(node.value, str)


def is_true(node: Node) -> TypeGuard[LiteralNode]:
    return isinstance(node, LiteralNode) and node.value is True


def is_block(node: Node) -> TypeIs[BlockNode]:
    return isinstance(node, BlockNode)


def is_function(node: Node) -> TypeIs[FunctionNode]:
    return isinstance(node, FunctionNode)


def is_code(node: Node) -> TypeIs[CodeNode]:
    return isinstance(node, CodeNode)


def is_conditional(node: Node) -> TypeIs[ConditionalNode]:
    return isinstance(node, ConditionalNode)


def is_resolved(node: Node) -> TypeIs[ResolvedNode]:
    """Check if the node is concrete (not Code or Conditional)."""
    return isinstance(node, (BlankNode, LiteralNode, BlockNode, FunctionNode))


def make_literal(value: Primitive | bool | None) -> BlankNode | LiteralNode:  # noqa: FBT001
    """Wrap a Python value, mapping `None` and `False` to Blank."""
    if value is None or value is False:
        return BLANK
    return LiteralNode(value)
