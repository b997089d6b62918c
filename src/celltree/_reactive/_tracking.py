"""Observer tracking and batching state for the reactive layer.

This module contains the context variable naming the observer that is
currently computing, plus the batch bookkeeping used to defer effects.
It is kept separate from the cell classes to avoid circular imports.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from ._cell import Cell


class Observer(Protocol):
    """Anything that records the cells it reads and can be invalidated."""

    def track(self, source: Cell) -> None: ...

    def invalidate(self) -> None: ...


class Runnable(Protocol):
    def run(self) -> None: ...


_observer_var: ContextVar[Observer | None] = ContextVar("observer", default=None)


def current_observer() -> Observer | None:
    """Get the observer whose reads are currently being recorded."""
    return _observer_var.get()


@contextmanager
def observing(observer: Observer | None) -> Generator[None]:
    """Record reads against `observer` (or nothing, if None) within the block."""
    token = _observer_var.set(observer)
    try:
        yield
    finally:
        _observer_var.reset(token)


def untracked[T](fn: Callable[[], T]) -> T:
    """Evaluate `fn` without recording any dependency for the current observer."""
    with observing(None):
        return fn()


@dataclass(slots=True)
class _BatchState:
    depth: int = 0
    pending: dict[Runnable, None] = field(default_factory=dict)


_batch_state = _BatchState()


def schedule(runnable: Runnable) -> None:
    """Run `runnable` now, or at the end of the outermost open batch."""
    if _batch_state.depth > 0:
        _batch_state.pending[runnable] = None
        return
    runnable.run()


@contextmanager
def batch() -> Generator[None]:
    """Defer effect re-runs until the outermost batch exits.

    Effects invalidated several times inside one batch run once.
    """
    _batch_state.depth += 1
    try:
        yield
    finally:
        _batch_state.depth -= 1
        if _batch_state.depth == 0:
            _flush()


def _flush() -> None:
    # Effects may write cells and schedule more effects; keep draining.
    _batch_state.depth += 1
    try:
        while _batch_state.pending:
            runnable = next(iter(_batch_state.pending))
            del _batch_state.pending[runnable]
            runnable.run()
    finally:
        _batch_state.depth -= 1
