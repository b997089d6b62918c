"""Reactive cell module for celltree.

This module provides the dependency-tracking primitive every document child
lives in. Writes push invalidation to dependents; derived cells recompute
lazily on their next read and memoize until invalidated again.

Key types:
- Cell: Abstract identity-stable holder with get (tracked) and peek (untracked)
- Signal: Writable cell
- Constant: Read-only cell with a fixed value
- Computed: Lazy, memoized derived cell
- Effect: Callback re-run whenever a cell it read changes
- batch: Context manager deferring effects until the outermost batch exits
"""

from ._cell import Cell, Computed, Constant, Effect, Signal, constant
from ._tracking import batch, untracked

__all__ = [
    "Cell",
    "Computed",
    "Constant",
    "Effect",
    "Signal",
    "batch",
    "constant",
    "untracked",
]
