"""Typed evaluation errors.

Errors are distinguished by their `ErrorKind`, not by exception class, so a
single `EvalError` travels through shallow resolution and is captured per
child by deep resolution.
"""

from __future__ import annotations

from enum import StrEnum, auto
from typing import Self


class ErrorKind(StrEnum):
    """The condition an `EvalError` reports."""

    EXPECTED_BOOLEAN = auto()
    EXPECTED_LITERAL = auto()
    EXPECTED_NUMBER = auto()
    EXPECTED_TEXT = auto()
    EXPECTED_BLOCK = auto()
    EXPECTED_FUNCTION = auto()
    EXPECTED_NUMBER_OR_BLANK = auto()
    EXPECTED_TEXT_OR_BLANK = auto()
    EXPECTED_NUMBERS_OR_BLANKS = auto()
    EXPECTED_TEXTS = auto()
    UNBOUND_IDENTIFIER = auto()
    UNKNOWN_PROPERTY = auto()
    INDEX_OUT_OF_RANGE = auto()
    INVALID_INDEX = auto()  # Non-finite, fractional or below one
    ZERO_SLICE_STEP = auto()
    DIVISION_BY_ZERO = auto()
    NUMERIC_RESULT = auto()  # Overflowing or non-real arithmetic result
    FUNCTION_NOT_RESOLVABLE = auto()
    SYNTAX = auto()
    CYCLE = auto()


EXPECTED_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.EXPECTED_BOOLEAN: "Expected boolean (true or blank)",
    ErrorKind.EXPECTED_LITERAL: "Expected literal value",
    ErrorKind.EXPECTED_NUMBER: "Expected number",
    ErrorKind.EXPECTED_TEXT: "Expected text",
    ErrorKind.EXPECTED_BLOCK: "Expected block",
    ErrorKind.EXPECTED_FUNCTION: "Expected function",
    ErrorKind.EXPECTED_NUMBER_OR_BLANK: "Expected number or blank",
    ErrorKind.EXPECTED_TEXT_OR_BLANK: "Expected text or blank",
    ErrorKind.EXPECTED_NUMBERS_OR_BLANKS: "Expected numbers or blanks (including flat blocks)",
    ErrorKind.EXPECTED_TEXTS: "Expected texts (including flat blocks)",
}


class EvalError(Exception):
    """Error raised while resolving, evaluating or extracting a value.

    Attributes:
        kind: The condition that failed.
        message: Human readable description, also used as the `StaticError` message.
        identifier: The missing name for `UNBOUND_IDENTIFIER` and `UNKNOWN_PROPERTY`.

    """

    def __init__(self, kind: ErrorKind, message: str, *, identifier: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.identifier = identifier

    def __repr__(self) -> str:
        return f"EvalError({self.kind!s}, {self.message!r})"

    @classmethod
    def expected(cls, kind: ErrorKind) -> Self:
        """Create a type-mismatch error with its standard message."""
        return cls(kind, EXPECTED_MESSAGES[kind])

    @classmethod
    def unbound(cls, name: str) -> Self:
        return cls(ErrorKind.UNBOUND_IDENTIFIER, f"Unbound identifier: {name}", identifier=name)

    @classmethod
    def unknown_property(cls, name: str) -> Self:
        return cls(ErrorKind.UNKNOWN_PROPERTY, f"Unknown property: {name}", identifier=name)

    @classmethod
    def index_out_of_range(cls, index: int, length: int) -> Self:
        return cls(ErrorKind.INDEX_OUT_OF_RANGE, f"Index {index} out of range (1..{length})")

    @classmethod
    def invalid_index(cls, index: object) -> Self:
        return cls(ErrorKind.INVALID_INDEX, f"Index must be a finite whole number >= 1, got {index}")

    @classmethod
    def function_not_resolvable(cls) -> Self:
        return cls(ErrorKind.FUNCTION_NOT_RESOLVABLE, "Cannot statically resolve a function node")
