"""Reactive block-tree documents with lazily evaluated embedded code."""

__all__ = [
    "BLANK",
    "BlankNode",
    "BlockEntry",
    "BlockNode",
    "Cell",
    "CodeNode",
    "Computed",
    "ConditionalNode",
    "Constant",
    "Effect",
    "EntryKind",
    "EntryView",
    "ErrorKind",
    "EvalError",
    "FunctionNode",
    "LiteralNode",
    "Node",
    "NodeKind",
    "Primitive",
    "ResolvedNode",
    "Signal",
    "Static",
    "StaticBlock",
    "StaticError",
    "ValueEntry",
    "adopt_children",
    "assign_key",
    "batch",
    "blank",
    "block_filter",
    "block_from_entries",
    "block_map",
    "block_numbers_opt",
    "block_reduce",
    "block_sort",
    "block_texts_opt",
    "canonical_ids",
    "cell_path",
    "clear_parent",
    "collation_key",
    "constant",
    "document_root",
    "enumerate_entries",
    "evaluate_code",
    "first_child",
    "fn",
    "get_document_root",
    "get_parent",
    "insert_after",
    "insert_before",
    "is_blank",
    "is_block",
    "is_case_insensitive",
    "is_code",
    "is_conditional",
    "is_function",
    "is_literal",
    "is_number",
    "is_primitive",
    "is_resolved",
    "is_static_error",
    "is_text",
    "is_true",
    "is_truthy",
    "iter_ancestors",
    "iter_entries",
    "lit",
    "lookup_in_scope",
    "make_block_cell",
    "make_literal",
    "map_nums",
    "mark_case_insensitive",
    "maybe_num",
    "maybe_text",
    "next_sibling",
    "numbers_flat_or_blank",
    "opt_num",
    "opt_text",
    "parent_of",
    "previous_sibling",
    "remove_child",
    "remove_key",
    "replace_child",
    "req_block",
    "req_function",
    "req_num",
    "req_prim",
    "req_text",
    "reset_document_root",
    "resolve_deep",
    "resolve_path",
    "resolve_shallow",
    "resolved_view",
    "set_document_root",
    "set_parent",
    "sort_key",
    "static_to_json",
    "static_to_python",
    "static_view",
    "texts_flat_required",
    "to_bool",
    "truth",
    "unwrap_block_if_single_child",
    "untracked",
    "with_library",
    "wrap_with_block",
]

from ._context import document_root, get_document_root, reset_document_root, set_document_root
from ._edit import (
    assign_key,
    cell_path,
    first_child,
    insert_after,
    insert_before,
    next_sibling,
    parent_of,
    previous_sibling,
    remove_child,
    remove_key,
    replace_child,
    resolve_path,
    unwrap_block_if_single_child,
    wrap_with_block,
)
from ._errors import ErrorKind, EvalError
from ._eval_engine import evaluate_code, is_truthy, resolve_deep, resolve_shallow, resolved_view, static_view
from ._library import (
    blank,
    fn,
    lit,
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
    texts_flat_required,
    to_bool,
    truth,
    with_library,
)
from ._nodes import (
    BLANK,
    BlankNode,
    BlockNode,
    CodeNode,
    ConditionalNode,
    FunctionNode,
    LiteralNode,
    Node,
    NodeKind,
    Primitive,
    ResolvedNode,
    ValueEntry,
    is_blank,
    is_block,
    is_code,
    is_conditional,
    is_function,
    is_literal,
    is_number,
    is_primitive,
    is_resolved,
    is_text,
    is_true,
    make_literal,
)
from ._reactive import Cell, Computed, Constant, Effect, Signal, batch, constant, untracked
from ._scope import (
    adopt_children,
    clear_parent,
    get_parent,
    is_case_insensitive,
    iter_ancestors,
    lookup_in_scope,
    make_block_cell,
    mark_case_insensitive,
    set_parent,
)
from ._static import Static, StaticBlock, StaticError, is_static_error, static_to_json, static_to_python
from ._transforms import (
    BlockEntry,
    EntryKind,
    EntryView,
    block_filter,
    block_from_entries,
    block_map,
    block_numbers_opt,
    block_reduce,
    block_sort,
    block_texts_opt,
    canonical_ids,
    collation_key,
    enumerate_entries,
    iter_entries,
    sort_key,
)
