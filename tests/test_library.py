"""Tests for builtin-function helpers and the library root scope."""

import pytest

from celltree import (
    BLANK,
    BlockNode,
    Cell,
    CodeNode,
    ErrorKind,
    EvalError,
    FunctionNode,
    LiteralNode,
    Signal,
    StaticBlock,
    blank,
    block_numbers_opt,
    fn,
    get_parent,
    is_case_insensitive,
    lit,
    make_block_cell,
    map_nums,
    maybe_num,
    maybe_text,
    numbers_flat_or_blank,
    opt_num,
    opt_text,
    req_block,
    req_function,
    req_num,
    req_prim,
    req_text,
    resolve_deep,
    resolve_shallow,
    texts_flat_required,
    to_bool,
    truth,
    with_library,
)


def _kind(call: object) -> ErrorKind:
    with pytest.raises(EvalError) as exc_info:
        call()  # ty: ignore[call-non-callable]
    return exc_info.value.kind


class TestConstructors:
    """Tests for cell constructors."""

    def test_blank_and_lit(self) -> None:
        assert blank().peek() is BLANK
        assert lit(3).peek() == LiteralNode(3)

    def test_truth(self) -> None:
        assert truth(True).peek() == LiteralNode(True)  # noqa: FBT003
        assert truth(False).peek() is BLANK  # noqa: FBT003

    def test_fn_uses_callable_name(self) -> None:
        def total(*args: Cell) -> Cell:
            return lit(len(args))

        node = fn(total).peek()

        assert isinstance(node, FunctionNode)
        assert node.name == "total"
        assert fn(total, "sum").peek().name == "sum"  # ty: ignore[unresolved-attribute]


class TestConversions:
    """Tests for required, optional and defaulted extraction."""

    def test_to_bool(self) -> None:
        assert to_bool(lit(True)) is True  # noqa: FBT003
        assert to_bool(blank()) is False
        assert _kind(lambda: to_bool(lit(1))) is ErrorKind.EXPECTED_BOOLEAN

    def test_required(self) -> None:
        block = BlockNode()
        function = fn(lambda: blank())

        assert req_prim(lit("x")) == "x"
        assert req_num(lit(2.5)) == 2.5
        assert req_text(lit("t")) == "t"
        assert req_block(Signal(block)) is block
        assert req_function(function) is function.peek()

    @pytest.mark.parametrize(
        ("extract", "cell", "kind"),
        [
            (req_prim, blank(), ErrorKind.EXPECTED_LITERAL),
            (req_num, lit("2"), ErrorKind.EXPECTED_NUMBER),
            (req_num, lit(True), ErrorKind.EXPECTED_NUMBER),  # noqa: FBT003
            (req_text, lit(2), ErrorKind.EXPECTED_TEXT),
            (req_block, lit(2), ErrorKind.EXPECTED_BLOCK),
            (req_function, lit(2), ErrorKind.EXPECTED_FUNCTION),
            (maybe_num, lit("x"), ErrorKind.EXPECTED_NUMBER_OR_BLANK),
            (maybe_text, lit(1), ErrorKind.EXPECTED_TEXT_OR_BLANK),
        ],
    )
    def test_mismatches(self, extract: object, cell: Cell, kind: ErrorKind) -> None:
        assert _kind(lambda: extract(cell)) is kind  # ty: ignore[call-non-callable]

    def test_optional(self) -> None:
        assert maybe_num(blank()) is None
        assert maybe_num(lit(4)) == 4
        assert maybe_text(blank()) is None
        assert maybe_text(lit("a")) == "a"
        assert opt_num(blank(), 7) == 7
        assert opt_num(lit(1), 7) == 1
        assert opt_text(blank(), "d") == "d"
        assert opt_text(lit("v"), "d") == "v"

    def test_resolves_code_arguments(self) -> None:
        code = Signal(CodeNode("2 * 21"))
        make_block_cell(items=[code])

        assert req_num(code) == 42


class TestCombinators:
    """Tests for lifted and flattening helpers."""

    def test_map_nums(self) -> None:
        add = map_nums(lambda a, b: a + b)

        assert add(lit(1), lit(2)).peek() == LiteralNode(3)
        assert add(lit(1), blank()).peek() is BLANK
        assert _kind(lambda: add(lit(1), lit("x"))) is ErrorKind.EXPECTED_NUMBER_OR_BLANK

    def test_numbers_flat_or_blank(self) -> None:
        flat = make_block_cell(items=[lit(1), blank(), lit(3)])

        assert numbers_flat_or_blank(flat) == [1, 3]
        assert numbers_flat_or_blank(lit(5)) == [5]
        assert numbers_flat_or_blank(blank()) == []

    def test_numbers_flat_rejects_nested_blocks(self) -> None:
        nested = make_block_cell(items=[make_block_cell(items=[lit(1)])])

        assert _kind(lambda: numbers_flat_or_blank(nested)) is ErrorKind.EXPECTED_NUMBERS_OR_BLANKS

    def test_texts_flat_required(self) -> None:
        flat = make_block_cell(items=[lit("a"), lit("b")])

        assert texts_flat_required(flat) == ["a", "b"]
        assert texts_flat_required(lit("c")) == ["c"]
        assert _kind(lambda: texts_flat_required(blank())) is ErrorKind.EXPECTED_TEXTS


class TestWithLibrary:
    """Tests for the library root scope."""

    @pytest.fixture
    def library(self) -> dict[str, Cell]:
        def total(arg: Cell) -> Cell:
            node = resolve_shallow(arg)
            if isinstance(node, BlockNode):
                return lit(sum(block_numbers_opt(node)))
            return lit(sum(numbers_flat_or_blank(arg)))

        def upper(arg: Cell) -> Cell:
            return lit(req_text(arg).upper())

        return {"SUM": fn(total), "upper": fn(upper)}

    def test_document_is_sole_item(self, library: dict[str, Cell]) -> None:
        document = make_block_cell()
        root = with_library(document, library)

        assert root.peek().items == (document,)
        assert root.peek().keys == ("SUM", "upper")
        assert get_parent(document) is root

    def test_functions_visible_from_document(self, library: dict[str, Cell]) -> None:
        doc_total = Signal(CodeNode("SUM(prices)"))
        doc_name = Signal(CodeNode("upper(name)"))
        document = make_block_cell(
            {
                "prices": make_block_cell(items=[lit(2), blank(), lit(3)]),
                "name": lit("ada"),
                "total": doc_total,
                "label": doc_name,
            },
        )
        with_library(document, library)

        result = resolve_deep(document)

        assert isinstance(result, StaticBlock)
        assert result.values["total"] == 5
        assert result.values["label"] == "ADA"

    def test_case_insensitive_root(self, library: dict[str, Cell]) -> None:
        code = Signal(CodeNode("sum([1, 2, 3])"))
        document = make_block_cell(items=[code])
        root = with_library(document, library, case_insensitive=True)

        assert is_case_insensitive(root)
        assert resolve_deep(code) == 6
