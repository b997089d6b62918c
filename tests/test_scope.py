"""Tests for the parent/scope index and identifier lookup."""

import pytest

from celltree import (
    BLANK,
    BlockNode,
    ErrorKind,
    EvalError,
    LiteralNode,
    Signal,
    adopt_children,
    clear_parent,
    constant,
    get_parent,
    is_case_insensitive,
    iter_ancestors,
    lookup_in_scope,
    make_block_cell,
    mark_case_insensitive,
    set_parent,
)


class TestParentIndex:
    """Tests for the parent side table."""

    def test_make_block_cell_adopts_children(self) -> None:
        value = Signal(LiteralNode(1))
        item = Signal(BLANK)
        block = make_block_cell({"v": value}, [item])

        assert get_parent(value) is block
        assert get_parent(item) is block
        assert get_parent(block) is None

    def test_set_and_clear_parent(self) -> None:
        child = Signal(BLANK)
        parent: Signal[BlockNode] = Signal(BlockNode(items=(child,)))

        set_parent(child, parent)
        assert get_parent(child) is parent

        clear_parent(child)
        assert get_parent(child) is None

    def test_adopt_children_requires_block(self) -> None:
        with pytest.raises(TypeError, match="Expected a block cell"):
            adopt_children(Signal(LiteralNode(1)))  # ty: ignore[invalid-argument-type]

    def test_iter_ancestors_nearest_first(self) -> None:
        leaf = Signal(BLANK)
        middle = make_block_cell(items=[leaf])
        root = make_block_cell(items=[middle])

        assert list(iter_ancestors(leaf)) == [middle, root]
        assert list(iter_ancestors(root)) == []


class TestCaseInsensitiveMarking:
    """Tests for case-insensitive scope flags."""

    def test_mark_and_unmark(self) -> None:
        block = make_block_cell()
        assert not is_case_insensitive(block)

        mark_case_insensitive(block)
        assert is_case_insensitive(block)

        mark_case_insensitive(block, enabled=False)
        assert not is_case_insensitive(block)

    def test_marking_survives_node_replacement(self) -> None:
        block = make_block_cell(case_insensitive=True)
        block.set(BlockNode())

        assert is_case_insensitive(block)


class TestLookupInScope:
    """Tests for identifier resolution through ancestors."""

    def test_finds_binding_in_nearest_ancestor(self) -> None:
        outer_x = constant(LiteralNode("outer"))
        inner_x = constant(LiteralNode("inner"))
        leaf = Signal(BLANK)
        inner = make_block_cell({"x": inner_x}, [leaf])
        make_block_cell({"x": outer_x}, [inner])

        assert lookup_in_scope("x", leaf) is inner_x
        assert lookup_in_scope("x", inner) is outer_x

    def test_siblings_are_visible(self) -> None:
        x = constant(LiteralNode(1))
        y = Signal(BLANK)
        make_block_cell({"x": x, "y": y})

        assert lookup_in_scope("x", y) is x

    def test_unbound_identifier(self) -> None:
        leaf = Signal(BLANK)
        make_block_cell(items=[leaf])

        with pytest.raises(EvalError) as exc_info:
            lookup_in_scope("missing", leaf)

        assert exc_info.value.kind is ErrorKind.UNBOUND_IDENTIFIER
        assert exc_info.value.identifier == "missing"
        assert exc_info.value.message == "Unbound identifier: missing"

    def test_case_sensitive_by_default(self) -> None:
        leaf = Signal(BLANK)
        make_block_cell({"Price": constant(LiteralNode(1))}, [leaf])

        with pytest.raises(EvalError):
            lookup_in_scope("price", leaf)

    def test_case_insensitive_two_levels_up(self) -> None:
        price = constant(LiteralNode(10))
        leaf = Signal(BLANK)
        middle = make_block_cell(items=[leaf])
        make_block_cell({"Price": price}, [middle], case_insensitive=True)

        assert lookup_in_scope("PRICE", leaf) is price
        assert lookup_in_scope("price", leaf) is price

    def test_case_insensitive_first_match_in_declaration_order(self) -> None:
        first = constant(LiteralNode(1))
        second = constant(LiteralNode(2))
        leaf = Signal(BLANK)
        make_block_cell({"ab": first, "AB": second}, [leaf], case_insensitive=True)

        assert lookup_in_scope("AB", leaf) is first

    def test_case_insensitive_only_applies_to_marked_block(self) -> None:
        leaf = Signal(BLANK)
        inner = make_block_cell({"Rate": constant(LiteralNode(1))}, [leaf])
        outer_rate = constant(LiteralNode(2))
        make_block_cell({"rate": outer_rate}, [inner], case_insensitive=True)

        assert lookup_in_scope("rate", leaf) is outer_rate
