"""Context variables for celltree.

This module holds the current document root used for path addressing.
It is kept separate to avoid circular imports.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

    from ._reactive import Cell

# Root cell of the document being edited. Paths are addressed relative to it.
_document_root_var: ContextVar[Cell | None] = ContextVar("document_root", default=None)


def get_document_root() -> Cell:
    """Get the current document root.

    Raises:
        LookupError: If no document root is set.

    """
    root = _document_root_var.get()
    if root is None:
        msg = "Document root not set"
        raise LookupError(msg)
    return root


def set_document_root(root: Cell | None) -> Token[Cell | None]:
    """Set the document root in context.

    Returns a token that can be used to reset the value.
    """
    return _document_root_var.set(root)


def reset_document_root(token: Token[Cell | None]) -> None:
    """Reset the document root using a token from set_document_root."""
    _document_root_var.reset(token)


@contextmanager
def document_root(root: Cell) -> Generator[Cell]:
    """Use `root` as the document root within the block."""
    token = set_document_root(root)
    try:
        yield root
    finally:
        reset_document_root(token)
