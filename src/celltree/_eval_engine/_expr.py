"""Evaluation of embedded code.

Code is written in the Python expression grammar and parsed with the standard
`ast` module; only the constructs handled below are accepted. Identifiers are
resolved through a scope-lookup callable bound to the code's position, so the
evaluator itself never touches the tree.
"""

from __future__ import annotations

import ast
import logging
import math
import operator
from functools import lru_cache
from typing import TYPE_CHECKING

from celltree._errors import ErrorKind, EvalError
from celltree._nodes import (
    BLANK,
    BlankNode,
    BlockNode,
    FunctionNode,
    LiteralNode,
    ResolvedNode,
    ValueEntry,
    is_number,
    is_text,
    make_literal,
)
from celltree._reactive import Cell, Computed, constant

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

type Lookup = Callable[[str], Cell]
type Resolver = Callable[[Cell], ResolvedNode]

_ARITHMETIC: dict[type[ast.operator], Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_ORDERING: dict[type[ast.cmpop], Callable[[object, object], bool]] = {
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
}


@lru_cache(maxsize=1024)
def parse_expression(source: str) -> ast.expr:
    """Parse code text into an expression tree.

    Raises:
        EvalError: SYNTAX if the text is not a single expression.

    """
    try:
        tree = ast.parse(source.strip(), mode="eval")
    except SyntaxError as e:
        msg = f"Syntax error in code {source!r}: {e.msg}"
        raise EvalError(ErrorKind.SYNTAX, msg) from e
    return tree.body


def node_truthy(node: ResolvedNode) -> bool:
    """Truthiness of a concrete node: Blank and empty blocks are false."""
    match node:
        case BlankNode():
            return False
        case LiteralNode(value=value):
            if isinstance(value, str):
                return value != ""
            if value is True:
                return True
            return value != 0 and not math.isnan(value)
        case BlockNode():
            return len(node) > 0
        case FunctionNode():
            return True


def _number(node: ResolvedNode) -> int | float:
    if not is_number(node):
        raise EvalError.expected(ErrorKind.EXPECTED_NUMBER)
    return node.value  # ty: ignore[invalid-return-type] # Narrowed by is_number


def _whole_number(node: ResolvedNode) -> int:
    value = _number(node)
    if not math.isfinite(value) or value != int(value):
        raise EvalError.invalid_index(value)
    return int(value)


def _index(node: ResolvedNode, length: int) -> int:
    """Convert a 1-based index node into a 0-based position."""
    value = _number(node)
    if not math.isfinite(value) or value < 1 or value != int(value):
        raise EvalError.invalid_index(value)
    position = int(value)
    if position > length:
        raise EvalError.index_out_of_range(position, length)
    return position - 1


def _same_value(left: ResolvedNode, right: ResolvedNode) -> bool:
    """Equality of concrete nodes. `True` never equals the number 1; blocks and functions compare by identity."""
    match left, right:
        case BlankNode(), BlankNode():
            return True
        case LiteralNode(value=a), LiteralNode(value=b):
            return (a is True) == (b is True) and a == b
        case _:
            return left is right


def _slice_positions(length: int, lower: int | None, upper: int | None, step: int) -> range:
    """Positions (0-based) selected by a 1-based, inclusive slice."""
    if step > 0:
        start = max(lower if lower is not None else 1, 1)
        stop = min(upper if upper is not None else length, length)
        return range(start - 1, stop, step)
    start = min(lower if lower is not None else length, length)
    stop = max(upper if upper is not None else 1, 1)
    return range(start - 1, stop - 2, step)


class CodeEvaluator:
    """Evaluate one expression against a scope.

    Args:
        lookup: Maps an identifier to the cell bound to it.
        resolve: Shallow-resolves a cell into a concrete node.

    """

    def __init__(self, lookup: Lookup, resolve: Resolver) -> None:
        self._lookup = lookup
        self._resolve = resolve

    def evaluate(self, source: str) -> ResolvedNode:
        return self.eval_expr(parse_expression(source))

    def eval_expr(self, expr: ast.expr) -> ResolvedNode:  # noqa: C901, PLR0911
        match expr:
            case ast.Constant(value=value):
                return self._constant(value)
            case ast.Name(id=name):
                return self._resolve(self._lookup(name))
            case ast.BinOp(left=left, op=op, right=right):
                return self._binary(op, self.eval_expr(left), self.eval_expr(right))
            case ast.UnaryOp(op=op, operand=operand):
                return self._unary(op, self.eval_expr(operand))
            case ast.BoolOp(op=op, values=values):
                return self._boolean(op, values)
            case ast.Compare(left=left, ops=ops, comparators=comparators):
                return self._compare(left, ops, comparators)
            case ast.IfExp(test=test, body=body, orelse=orelse):
                chosen = body if node_truthy(self.eval_expr(test)) else orelse
                return self.eval_expr(chosen)
            case ast.Attribute(value=value, attr=attr):
                return self._property(self.eval_expr(value), attr)
            case ast.Subscript(value=value, slice=ast.Slice() as slice_):
                return self._slice(self.eval_expr(value), slice_)
            case ast.Subscript(value=value, slice=index):
                return self._subscript(self.eval_expr(value), self.eval_expr(index))
            case ast.Call(func=func, args=args, keywords=keywords):
                return self._call(func, args, keywords)
            case ast.List(elts=elts) | ast.Tuple(elts=elts):
                return BlockNode(items=tuple(self._lazy(elt) for elt in elts))
            case ast.Dict(keys=keys, values=values):
                return self._dict(keys, values)
            case _:
                msg = f"Unsupported expression: {type(expr).__name__}"
                raise EvalError(ErrorKind.SYNTAX, msg)

    def _constant(self, value: object) -> ResolvedNode:
        if value is None or isinstance(value, (bool, int, float, str)):
            return make_literal(value)
        msg = f"Unsupported constant: {value!r}"
        raise EvalError(ErrorKind.SYNTAX, msg)

    def _lazy(self, expr: ast.expr) -> Cell:
        """Turn an argument expression into a cell, reusing bound cells for plain names."""
        if isinstance(expr, ast.Name):
            try:
                return self._lookup(expr.id)
            except EvalError:
                # An unbound name only fails if the argument is actually read.
                return Computed(lambda: self.eval_expr(expr))
        if isinstance(expr, ast.Constant):
            return constant(self._constant(expr.value))
        return Computed(lambda: self.eval_expr(expr))

    def _binary(self, op: ast.operator, left: ResolvedNode, right: ResolvedNode) -> ResolvedNode:
        if isinstance(op, ast.Add) and is_text(left) and is_text(right):
            return LiteralNode(f"{left.value}{right.value}")
        impl = _ARITHMETIC.get(type(op))
        if impl is None:
            msg = f"Unsupported operator: {type(op).__name__}"
            raise EvalError(ErrorKind.SYNTAX, msg)
        a, b = _number(left), _number(right)
        try:
            result = impl(a, b)
        except ZeroDivisionError as e:
            msg = "Division by zero"
            raise EvalError(ErrorKind.DIVISION_BY_ZERO, msg) from e
        except OverflowError as e:
            msg = "Numeric result out of range"
            raise EvalError(ErrorKind.NUMERIC_RESULT, msg) from e
        # `**` with a negative base and fractional exponent yields a complex number.
        if isinstance(result, complex):
            msg = "Numeric result is not a real number"
            raise EvalError(ErrorKind.NUMERIC_RESULT, msg)
        return LiteralNode(result)

    def _unary(self, op: ast.unaryop, operand: ResolvedNode) -> ResolvedNode:
        match op:
            case ast.Not():
                return make_literal(not node_truthy(operand))
            case ast.USub():
                return LiteralNode(-_number(operand))
            case ast.UAdd():
                return LiteralNode(_number(operand))
            case _:
                msg = f"Unsupported operator: {type(op).__name__}"
                raise EvalError(ErrorKind.SYNTAX, msg)

    def _boolean(self, op: ast.boolop, values: list[ast.expr]) -> ResolvedNode:
        # Short-circuits and yields the deciding operand, like Python.
        result: ResolvedNode = BLANK
        for expr in values:
            result = self.eval_expr(expr)
            truthy = node_truthy(result)
            if isinstance(op, ast.And) and not truthy:
                return result
            if isinstance(op, ast.Or) and truthy:
                return result
        return result

    def _compare(self, left: ast.expr, ops: list[ast.cmpop], comparators: list[ast.expr]) -> ResolvedNode:
        current = self.eval_expr(left)
        for op, right_expr in zip(ops, comparators, strict=True):
            right = self.eval_expr(right_expr)
            if not self._compare_pair(op, current, right):
                return BLANK
            current = right
        return LiteralNode(True)  # noqa: FBT003

    def _compare_pair(self, op: ast.cmpop, left: ResolvedNode, right: ResolvedNode) -> bool:
        if isinstance(op, (ast.Eq, ast.NotEq)):
            equal = _same_value(left, right)
            return equal if isinstance(op, ast.Eq) else not equal
        impl = _ORDERING.get(type(op))
        if impl is None:
            msg = f"Unsupported comparison: {type(op).__name__}"
            raise EvalError(ErrorKind.SYNTAX, msg)
        if is_text(left) and is_text(right):
            return impl(left.value, right.value)
        return impl(_number(left), _number(right))

    def _property(self, base: ResolvedNode, name: str) -> ResolvedNode:
        if not isinstance(base, BlockNode):
            raise EvalError.expected(ErrorKind.EXPECTED_BLOCK)
        child = base.get_value(name)
        if child is None:
            raise EvalError.unknown_property(name)
        return self._resolve(child)

    def _subscript(self, base: ResolvedNode, index: ResolvedNode) -> ResolvedNode:
        if isinstance(base, BlockNode):
            if is_text(index):
                return self._property(base, index.value)  # ty: ignore[invalid-argument-type] # Narrowed by is_text
            return self._resolve(base.items[_index(index, len(base.items))])
        if is_text(base):
            text: str = base.value  # ty: ignore[invalid-assignment] # Narrowed by is_text
            return LiteralNode(text[_index(index, len(text))])
        raise EvalError.expected(ErrorKind.EXPECTED_BLOCK)

    def _slice(self, base: ResolvedNode, slice_: ast.Slice) -> ResolvedNode:
        lower, upper, step = (self._slice_bound(bound) for bound in (slice_.lower, slice_.upper, slice_.step))
        if step == 0:
            msg = "Slice step cannot be zero"
            raise EvalError(ErrorKind.ZERO_SLICE_STEP, msg)
        step = 1 if step is None else step
        if isinstance(base, BlockNode):
            positions = _slice_positions(len(base.items), lower, upper, step)
            return BlockNode(items=tuple(self._view(base.items[i]) for i in positions))
        if is_text(base):
            text: str = base.value  # ty: ignore[invalid-assignment] # Narrowed by is_text
            positions = _slice_positions(len(text), lower, upper, step)
            return LiteralNode("".join(text[i] for i in positions))
        raise EvalError.expected(ErrorKind.EXPECTED_BLOCK)

    def _slice_bound(self, bound: ast.expr | None) -> int | None:
        if bound is None:
            return None
        node = self.eval_expr(bound)
        if isinstance(node, BlankNode):
            return None
        return _whole_number(node)

    def _view(self, child: Cell) -> Cell:
        return Computed(lambda: self._resolve(child))

    def _call(self, func: ast.expr, args: list[ast.expr], keywords: list[ast.keyword]) -> ResolvedNode:
        callee = self.eval_expr(func)
        if not isinstance(callee, FunctionNode):
            raise EvalError.expected(ErrorKind.EXPECTED_FUNCTION)
        if keywords or any(isinstance(arg, ast.Starred) for arg in args):
            msg = "Only positional arguments are supported"
            raise EvalError(ErrorKind.SYNTAX, msg)
        logger.debug("Calling %s with %d argument(s)", callee.name, len(args))
        return self._resolve(callee(*(self._lazy(arg) for arg in args)))

    def _dict(self, keys: list[ast.expr | None], values: list[ast.expr]) -> ResolvedNode:
        entries: list[ValueEntry] = []
        for key, value in zip(keys, values, strict=True):
            if not isinstance(key, ast.Constant) or not isinstance(key.value, str):
                msg = "Block keys must be text constants"
                raise EvalError(ErrorKind.SYNTAX, msg)
            entries.append(ValueEntry(key.value, self._lazy(value)))
        try:
            return BlockNode(values=tuple(entries))
        except ValueError as e:
            raise EvalError(ErrorKind.SYNTAX, str(e)) from e
