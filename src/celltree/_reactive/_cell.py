"""Reactive cells: writable signals, lazy computed cells and effects."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
from weakref import WeakSet

from celltree._errors import ErrorKind, EvalError

from ._tracking import batch, current_observer, observing, schedule

if TYPE_CHECKING:
    from collections.abc import Callable

    from ._tracking import Observer

logger = logging.getLogger(__name__)


class Cell[T](ABC):
    """Identity-stable holder of a value.

    A cell, never the value it currently holds, is the unit of identity used
    for parenthood, focus and mutation. Cells hash and compare by identity.
    """

    __slots__ = ("__weakref__", "_dependents")

    def __init__(self) -> None:
        self._dependents: WeakSet[Observer] = WeakSet()

    def get(self) -> T:
        """Read the current value and register it as a dependency of the active observer."""
        observer = current_observer()
        if observer is not None:
            observer.track(self)
        return self._read()

    def peek(self) -> T:
        """Read the current value without creating a dependency."""
        with observing(None):
            return self._read()

    @property
    def writable(self) -> bool:
        return False

    @abstractmethod
    def _read(self) -> T: ...

    def _subscribe(self, observer: Observer) -> None:
        self._dependents.add(observer)

    def _unsubscribe(self, observer: Observer) -> None:
        self._dependents.discard(observer)

    def _notify(self) -> None:
        for dependent in list(self._dependents):
            dependent.invalidate()


class Signal[T](Cell[T]):
    """A writable cell."""

    __slots__ = ("_value",)

    def __init__(self, value: T) -> None:
        super().__init__()
        self._value = value

    def __repr__(self) -> str:
        return f"Signal({self._value!r})"

    @property
    def writable(self) -> bool:
        return True

    def _read(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        """Replace the held value and invalidate every dependent.

        Setting the identical object again is a no-op.
        """
        if value is self._value:
            return
        self._value = value
        with batch():
            self._notify()


class Constant[T](Cell[T]):
    """A read-only cell whose value never changes."""

    __slots__ = ("_value",)

    def __init__(self, value: T) -> None:
        super().__init__()
        self._value = value

    def __repr__(self) -> str:
        return f"Constant({self._value!r})"

    def _read(self) -> T:
        return self._value


def constant[T](value: T) -> Constant[T]:
    return Constant(value)


class Computed[T](Cell[T]):
    """A read-only cell derived from other cells.

    The value is computed lazily on first read and memoized until one of the
    cells read during the last computation changes. Invalidation is pushed
    eagerly to dependents, recomputation is pulled on the next read.
    A computation that raises is not memoized; the next read retries it.
    """

    __slots__ = ("_computing", "_dirty", "_failed", "_fn", "_sources", "_value")

    def __init__(self, fn: Callable[[], T]) -> None:
        super().__init__()
        self._fn = fn
        self._value: T | None = None
        self._dirty = True
        self._failed = False
        self._computing = False
        self._sources: dict[Cell, None] = {}

    def __repr__(self) -> str:
        state = "dirty" if self._dirty else repr(self._value)
        return f"Computed({state})"

    @property
    def dirty(self) -> bool:
        """Whether the next read will recompute."""
        return self._dirty

    def _read(self) -> T:
        if self._computing:
            msg = "Cycle detected while computing a derived cell"
            raise EvalError(ErrorKind.CYCLE, msg)
        if self._dirty:
            self._recompute()
        return self._value  # ty: ignore[invalid-return-type] # Set by _recompute

    def _recompute(self) -> None:
        self._release_sources()
        self._computing = True
        self._failed = True
        try:
            with observing(self):
                value = self._fn()
        finally:
            self._computing = False
        self._failed = False
        logger.debug("Recomputed %r from %d source(s)", value, len(self._sources))
        self._value = value
        self._dirty = False

    def _release_sources(self) -> None:
        for source in self._sources:
            source._unsubscribe(self)  # noqa: SLF001
        self._sources.clear()

    def track(self, source: Cell) -> None:
        if source not in self._sources:
            self._sources[source] = None
            source._subscribe(self)  # noqa: SLF001

    def invalidate(self) -> None:
        # A failed computation stays dirty, but readers that caught its error still need notifying.
        if self._dirty and not self._failed:
            return
        self._dirty = True
        self._notify()


class Effect:
    """Run a callback now and again whenever a cell it read changes.

    Re-runs are synchronous, or deferred to the end of the enclosing `batch`.
    Dependents are held weakly, so keep a reference to the effect for as long
    as it should stay subscribed, or call `dispose`.
    """

    __slots__ = ("__weakref__", "_disposed", "_fn", "_sources")

    def __init__(self, fn: Callable[[], object]) -> None:
        self._fn = fn
        self._sources: dict[Cell, None] = {}
        self._disposed = False
        self.run()

    @property
    def disposed(self) -> bool:
        return self._disposed

    def run(self) -> None:
        if self._disposed:
            return
        self._release_sources()
        with observing(self):
            self._fn()

    def track(self, source: Cell) -> None:
        if source not in self._sources:
            self._sources[source] = None
            source._subscribe(self)  # noqa: SLF001

    def invalidate(self) -> None:
        if not self._disposed:
            schedule(self)

    def dispose(self) -> None:
        """Stop reacting to changes."""
        self._disposed = True
        self._release_sources()

    def _release_sources(self) -> None:
        for source in self._sources:
            source._unsubscribe(self)  # noqa: SLF001
        self._sources.clear()
