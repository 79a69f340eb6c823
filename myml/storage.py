"""Flat float32 buffer shared between tensors."""

from __future__ import annotations

import operator

import numpy as np


class Storage:
    """A fixed-size, zero-initialised block of float32 values."""

    __slots__ = ("data",)

    def __init__(self, size: int) -> None:
        size = operator.index(size)
        if size < 0:
            raise ValueError(f"storage size must be non-negative, got {size}")
        self.data = np.zeros(size, dtype=np.float32)

    def __len__(self) -> int:
        return int(self.data.size)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return self.data[index]
        return float(self.data[index])

    def __setitem__(self, index, value) -> None:
        self.data[index] = value

    def at(self, index: int) -> float:
        """Bounds-checked read; raises IndexError outside ``[0, len)``."""
        index = operator.index(index)
        if not 0 <= index < len(self):
            raise IndexError("Index out of range")
        return float(self.data[index])

    def fill(self, value: float) -> None:
        """Set every element to ``value``."""
        self.data.fill(value)