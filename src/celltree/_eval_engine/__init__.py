"""Resolution engine module for celltree.

This module turns cells into concrete nodes and Static trees. Shallow
resolution evaluates one level of Code or Conditional; deep resolution
recurses into blocks and captures failures per child.

Key functions:
- resolve_shallow: Cell to concrete node (Blank, Literal, Block or Function)
- resolve_deep: Cell to Static tree with localized StaticError entries
- evaluate_code: Evaluate code text against a scope-lookup function
- is_truthy: Truthiness of a Static value
- resolved_view / static_view: Memoizing derived cells over the above
"""

from ._expr import CodeEvaluator, node_truthy, parse_expression
from ._resolution import (
    evaluate_code,
    is_truthy,
    resolve_deep,
    resolve_shallow,
    resolved_view,
    static_view,
)

__all__ = [
    "CodeEvaluator",
    "evaluate_code",
    "is_truthy",
    "node_truthy",
    "parse_expression",
    "resolve_deep",
    "resolve_shallow",
    "resolved_view",
    "static_view",
]
