"""elastodg.core.scratch
Bump allocator handing out views into one preallocated float buffer.

One arena per worker.  Every local-operator call opens ``scope()`` and the
arena falls back to its previous mark when the call returns, so no view may
be kept beyond the call that allocated it.
"""
from contextlib import contextmanager
from math import prod

import numpy as np


class LinearAllocator:
    def __init__(self, capacity: int, dtype=np.float64):
        self._buffer = np.empty(int(capacity), dtype=dtype)
        self._top = 0

    @property
    def capacity(self) -> int:
        return self._buffer.size

    @property
    def used(self) -> int:
        return self._top

    def allocate(self, *shape) -> np.ndarray:
        """Uninitialised C-contiguous view of the requested shape."""
        n = prod(shape)
        if self._top + n > self._buffer.size:
            raise MemoryError(f"Scratch arena exhausted: requested {n}, "
                              f"{self._buffer.size - self._top} of {self._buffer.size} left.")
        view = self._buffer[self._top:self._top + n].reshape(shape)
        self._top += n
        return view

    @contextmanager
    def scope(self):
        mark = self._top
        try:
            yield self
        finally:
            self._top = mark
