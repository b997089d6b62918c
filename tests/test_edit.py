"""Tests for structural edits and navigation."""

import pytest

from celltree import (
    BLANK,
    BlockNode,
    Cell,
    CodeNode,
    Effect,
    EvalError,
    LiteralNode,
    Signal,
    assign_key,
    canonical_ids,
    cell_path,
    document_root,
    first_child,
    get_parent,
    insert_after,
    insert_before,
    lit,
    make_block_cell,
    next_sibling,
    parent_of,
    previous_sibling,
    remove_child,
    remove_key,
    replace_child,
    resolve_deep,
    resolve_path,
    unwrap_block_if_single_child,
    wrap_with_block,
)


def _block(cell: Cell) -> BlockNode:
    node = cell.peek()
    assert isinstance(node, BlockNode)
    return node


def _block_tracked(cell: Cell) -> BlockNode:
    node = cell.get()
    assert isinstance(node, BlockNode)
    return node


@pytest.fixture
def tree() -> tuple[Signal[BlockNode], Cell, Cell, Cell, Cell]:
    """A root block {a: 1, b: 2} with items [x, y]."""
    a, b, x, y = lit(1), lit(2), lit("x"), lit("y")
    root = make_block_cell({"a": a, "b": b}, [x, y])
    return root, a, b, x, y


class TestInsert:
    """Tests for insert_before and insert_after."""

    def test_insert_after_item(self, tree: tuple) -> None:
        root, _a, _b, x, y = tree

        new = insert_after(x)

        assert _block(root).items == (x, new, y)
        assert new.peek() is BLANK
        assert get_parent(new) is root

    def test_insert_before_item(self, tree: tuple) -> None:
        root, _a, _b, x, y = tree
        new = Signal(LiteralNode("n"))

        result = insert_before(y, new)

        assert result is new
        assert _block(root).items == (x, new, y)

    def test_insert_next_to_value_goes_to_front_of_items(self, tree: tuple) -> None:
        root, a, b, x, y = tree

        after = insert_after(b)
        before = insert_before(a)

        assert _block(root).items == (before, after, x, y)
        assert _block(root).keys == ("a", "b")

    def test_insert_on_root_is_noop(self) -> None:
        root = make_block_cell()
        assert insert_after(root) is root
        assert insert_before(root) is root

    def test_previous_block_snapshot_is_unchanged(self, tree: tuple) -> None:
        root, _a, _b, x, y = tree
        snapshot = root.peek()

        insert_after(x)

        assert snapshot.items == (x, y)
        assert root.peek() is not snapshot


class TestKeys:
    """Tests for assign_key and remove_key."""

    def test_assign_key_to_item_appends_value(self, tree: tuple) -> None:
        root, a, b, x, y = tree

        result = assign_key(x, "c")

        assert result is x
        node = _block(root)
        assert node.keys == ("a", "b", "c")
        assert node.get_value("c") is x
        assert node.items == (y,)
        assert get_parent(x) is root

    def test_rename_keeps_position(self, tree: tuple) -> None:
        root, a, b, _x, _y = tree

        assign_key(a, "z")

        assert _block(root).keys == ("z", "b")
        assert _block(root).get_value("z") is a

    def test_assign_existing_key_is_noop(self, tree: tuple) -> None:
        root, _a, _b, x, _y = tree
        snapshot = root.peek()

        assign_key(x, "a")

        assert root.peek() is snapshot

    def test_assign_own_key_is_noop(self, tree: tuple) -> None:
        root, a, _b, _x, _y = tree
        snapshot = root.peek()

        assign_key(a, "a")

        assert root.peek() is snapshot

    def test_remove_key_moves_value_to_front_of_items(self, tree: tuple) -> None:
        root, _a, b, x, y = tree

        result = remove_key(b)

        assert result is b
        assert _block(root).keys == ("a",)
        assert _block(root).items == (b, x, y)

    def test_remove_key_on_item_is_noop(self, tree: tuple) -> None:
        root, _a, _b, x, _y = tree
        snapshot = root.peek()

        remove_key(x)

        assert root.peek() is snapshot

    def test_assign_then_remove_key_round_trip(self) -> None:
        x = lit(1)
        root = make_block_cell(items=[x])

        assign_key(x, "k")
        remove_key(x)

        assert _block(root).keys == ()
        assert _block(root).items == (x,)

    def test_key_change_rebinds_identifiers(self) -> None:
        x = lit(5)
        code = Signal(CodeNode("rate * 2"))
        make_block_cell(items=[x, code])
        with pytest.raises(EvalError):
            resolve_deep(code)

        assign_key(x, "rate")

        assert resolve_deep(code) == 10


class TestWrapUnwrap:
    """Tests for wrap_with_block and unwrap_block_if_single_child."""

    def test_wrap_keeps_key_and_position(self, tree: tuple) -> None:
        root, a, _b, _x, _y = tree

        result = wrap_with_block(a)

        assert result is a
        wrapper = _block(root).get_value("a")
        assert wrapper is not None
        assert _block(wrapper).items == (a,)
        assert get_parent(a) is wrapper
        assert get_parent(wrapper) is root
        assert _block(root).keys == ("a", "b")

    def test_wrap_then_unwrap_round_trip(self, tree: tuple) -> None:
        root, _a, _b, x, y = tree
        before = resolve_deep(root)

        wrap_with_block(x)
        wrapper = get_parent(x)
        assert wrapper is not None
        assert wrapper is not root
        result = unwrap_block_if_single_child(wrapper)

        assert result is x
        assert _block(root).items == (x, y)
        assert get_parent(x) is root
        assert get_parent(wrapper) is None
        assert resolve_deep(root) == before

    def test_unwrap_requires_exactly_one_item(self) -> None:
        two = make_block_cell(items=[lit(1), lit(2)])
        keyed = make_block_cell({"k": lit(1)})
        leaf = lit(1)
        holder = make_block_cell({"two": two, "keyed": keyed}, [leaf])

        assert unwrap_block_if_single_child(two) is two
        assert unwrap_block_if_single_child(keyed) is keyed
        assert unwrap_block_if_single_child(leaf) is leaf
        assert _block(holder).keys == ("two", "keyed")

    def test_unwrap_root_is_noop(self) -> None:
        child = lit(1)
        root = make_block_cell(items=[child])

        assert unwrap_block_if_single_child(root) is root
        assert get_parent(child) is root

    def test_wrapping_keeps_scope_visible(self) -> None:
        code = Signal(CodeNode("rate + 1"))
        make_block_cell({"rate": lit(1)}, [code])

        wrap_with_block(code)

        assert resolve_deep(code) == 2


class TestRemoveAndReplace:
    """Tests for remove_child and replace_child."""

    def test_remove_focuses_previous_sibling(self, tree: tuple) -> None:
        root, _a, b, x, y = tree

        focus = remove_child(x)

        assert focus is b
        assert _block(root).items == (y,)
        assert get_parent(x) is None

    def test_remove_first_focuses_next_sibling(self, tree: tuple) -> None:
        root, a, b, _x, _y = tree

        focus = remove_child(a)

        assert focus is b
        assert _block(root).keys == ("b",)

    def test_remove_only_child_focuses_parent(self) -> None:
        only = lit(1)
        root = make_block_cell(items=[only])

        assert remove_child(only) is root
        assert len(_block(root)) == 0

    def test_remove_root_is_noop(self) -> None:
        root = make_block_cell()
        assert remove_child(root) is root

    def test_replace_child_keeps_key(self, tree: tuple) -> None:
        root, a, _b, _x, _y = tree
        new = lit("new")

        assert replace_child(a, new) is new

        assert _block(root).get_value("a") is new
        assert get_parent(new) is root
        assert get_parent(a) is None

    def test_insert_moves_cell_out_of_its_old_block(self) -> None:
        shared, x = lit("shared"), lit("x")
        source = make_block_cell(items=[shared])
        target = make_block_cell(items=[x])

        assert insert_after(x, shared) is shared

        assert _block(target).items == (x, shared)
        assert _block(source).items == ()
        assert get_parent(shared) is target

    def test_insert_moves_cell_within_its_block(self, tree: tuple) -> None:
        root, _a, _b, x, y = tree

        insert_before(x, y)

        assert _block(root).items == (y, x)
        assert get_parent(y) is root

    def test_insert_into_own_subtree_is_noop(self) -> None:
        leaf = lit(1)
        inner = make_block_cell(items=[leaf])
        root = make_block_cell(items=[inner])
        snapshot = root.peek()

        assert insert_after(leaf, inner) is leaf
        assert insert_after(inner, inner) is inner

        assert root.peek() is snapshot
        assert get_parent(inner) is root

    def test_replace_moves_cell_out_of_its_old_block(self, tree: tuple) -> None:
        root, a, _b, _x, _y = tree
        moved = lit("moved")
        source = make_block_cell({"m": moved})

        replace_child(a, moved)

        assert _block(root).get_value("a") is moved
        assert _block(source).keys == ()
        assert get_parent(moved) is root

    def test_replace_with_sibling_keeps_one_copy(self, tree: tuple) -> None:
        root, a, _b, x, y = tree

        replace_child(a, y)

        assert _block(root).get_value("a") is y
        assert _block(root).items == (x,)
        assert get_parent(a) is None

    def test_replace_with_ancestor_is_noop(self) -> None:
        leaf = lit(1)
        inner = make_block_cell(items=[leaf])
        make_block_cell(items=[inner])

        assert replace_child(leaf, inner) is leaf
        assert _block(inner).items == (leaf,)


class TestNotifications:
    """Tests for edit notifications."""

    def test_edit_notifies_observers_once(self, tree: tuple) -> None:
        root, _a, _b, x, _y = tree
        seen: list[int] = []
        effect = Effect(lambda: seen.append(len(_block_tracked(root))))

        wrap_with_block(x)

        assert seen == [4, 4]
        effect.dispose()

    def test_children_outlive_edits(self, tree: tuple) -> None:
        root, a, _b, x, _y = tree

        wrap_with_block(x)
        assign_key(a, "renamed")

        assert _block(root).get_value("renamed") is a
        assert x.peek() == LiteralNode("x")


class TestNavigation:
    """Tests for sibling, child and path navigation."""

    def test_siblings_follow_canonical_order(self, tree: tuple) -> None:
        root, a, b, x, y = tree

        assert next_sibling(b) is x
        assert previous_sibling(x) is b
        assert previous_sibling(a) is None
        assert next_sibling(y) is None
        assert first_child(root) is a
        assert first_child(a) is None
        assert parent_of(x) is root
        assert parent_of(root) is None

    def test_cell_path_uses_canonical_ids(self, tree: tuple) -> None:
        root, a, _b, _x, y = tree
        inner_child = lit(0)
        inner = make_block_cell(items=[inner_child])
        replace_child(y, inner)

        with document_root(root):
            assert cell_path(a) == ("a",)
            assert cell_path(inner) == (2,)
            assert cell_path(inner_child) == (2, 1)
            assert cell_path(root) == ()
            assert resolve_path(("a",)) is a
            assert resolve_path((2, 1)) is inner_child
            assert resolve_path(("missing",)) is None
            assert resolve_path((3,)) is None
            assert resolve_path(("a", 1)) is None

        assert canonical_ids(_block(root)) == ["a", "b", 1, 2]

    def test_cell_path_outside_root(self, tree: tuple) -> None:
        root, _a, _b, _x, _y = tree

        with document_root(root), pytest.raises(ValueError, match="not attached"):
            cell_path(lit(1))

    def test_paths_require_document_root(self) -> None:
        with pytest.raises(LookupError):
            resolve_path(())
