"""Static tree: the fully resolved, error-tolerant mirror of a document.

A Static value is one of:
- None (Blank)
- a primitive (`True`, a number or text)
- StaticBlock (resolved values and items)
- StaticError (resolution failed at this position only)
"""

from __future__ import annotations

from typing import Any, Literal, TypeIs

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from ._errors import ErrorKind  # noqa: TC001 - Used at runtime by pydantic


class StaticError(BaseModel):
    """Marker for a position whose resolution failed.

    Attributes:
        message: The error message.
        error_kind: The typed condition, when the failure was an `EvalError`.

    """

    model_config = ConfigDict(frozen=True)

    type: Literal["error"] = "error"
    message: str
    error_kind: ErrorKind | None = None


class StaticBlock(BaseModel):
    """A resolved block. `values` keeps the block's key order."""

    model_config = ConfigDict(frozen=True)

    type: Literal["block"] = "block"
    values: dict[str, Static] = Field(default_factory=dict)
    items: list[Static] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values) + len(self.items)

    def iter_errors(self) -> list[StaticError]:
        """Collect every StaticError in this subtree, in canonical order."""
        errors: list[StaticError] = []
        for child in (*self.values.values(), *self.items):
            if isinstance(child, StaticError):
                errors.append(child)
            elif isinstance(child, StaticBlock):
                errors.extend(child.iter_errors())
        return errors


type Static = None | bool | int | float | str | StaticBlock | StaticError

StaticBlock.model_rebuild()

_static_adapter: TypeAdapter[Static] = TypeAdapter(Static)


def is_static_error(value: Static) -> TypeIs[StaticError]:
    return isinstance(value, StaticError)


def static_to_python(value: Static) -> Any:
    """Dump a Static value to plain JSON-compatible Python data."""
    return _static_adapter.dump_python(value, mode="json")


def static_to_json(value: Static, *, indent: int | None = None) -> str:
    return _static_adapter.dump_json(value, indent=indent).decode()
