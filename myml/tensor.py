"""Strided float32 tensor with optional autograd metadata."""

from __future__ import annotations

import copy
import math
import operator
from collections.abc import Iterable

import numpy as np

from myml.autograd import AutogradMeta
from myml.storage import Storage

MAX_DIM = 8


def _normalize_shape(shape: Iterable[int]) -> tuple[int, ...]:
    dims = tuple(operator.index(d) for d in shape)
    if not 1 <= len(dims) <= MAX_DIM:
        raise ValueError(f"tensor rank must be between 1 and {MAX_DIM}, got {len(dims)}")
    if any(d < 0 for d in dims):
        raise ValueError(f"shape dimensions must be non-negative, got {dims}")
    return dims


class Tensor:
    """A view of a Storage described by shape, strides and offset."""

    storage: Storage
    autograd_meta: AutogradMeta | None
    shape: tuple[int, ...]
    strides: tuple[int, ...]
    offset: int

    def __init__(self, shape: Iterable[int], requires_grad: bool = False) -> None:
        dims = _normalize_shape(shape)
        self._attach(Storage(math.prod(dims)), dims, requires_grad)

    def _attach(self, storage: Storage, shape: tuple[int, ...], requires_grad: bool) -> None:
        self.storage = storage
        self.shape = shape
        self.strides = self.strides_from_shape(shape)
        self.offset = 0
        self.autograd_meta = AutogradMeta(requires_grad=True) if requires_grad else None

    @classmethod
    def zeros(cls, shape: Iterable[int], requires_grad: bool = False) -> "Tensor":
        """A new tensor filled with zeros."""
        t = cls(shape, requires_grad)
        t.storage.fill(0.0)
        return t

    @classmethod
    def ones(cls, shape: Iterable[int], requires_grad: bool = False) -> "Tensor":
        """A new tensor filled with ones."""
        t = cls(shape, requires_grad)
        t.storage.fill(1.0)
        return t

    @classmethod
    def from_storage(cls, storage: Storage, shape: Iterable[int]) -> "Tensor":
        """Wrap an existing storage as a contiguous tensor without copying."""
        dims = _normalize_shape(shape)
        needed = math.prod(dims)
        if len(storage) < needed:
            raise ValueError(f"storage holds {len(storage)} values but shape {dims} needs {needed}")
        t = cls.__new__(cls)
        t._attach(storage, dims, False)
        return t

    @property
    def ndim(self) -> int:
        return len(self.shape)

    @property
    def numel(self) -> int:
        return math.prod(self.shape)

    def _flat_index(self, index) -> int:
        indices = index if isinstance(index, tuple) else (index,)
        if len(indices) != self.ndim:
            raise IndexError(f"expected {self.ndim} indices, got {len(indices)}")
        flat = self.offset
        for dim, (i, size, stride) in enumerate(zip(indices, self.shape, self.strides)):
            i = operator.index(i)
            if not 0 <= i < size:
                raise IndexError(f"index {i} out of range for dim {dim} of size {size}")
            flat += i * stride
        return flat

    def __getitem__(self, index) -> float:
        return float(self.storage.data[self._flat_index(index)])

    def __setitem__(self, index, value: float) -> None:
        self.storage.data[self._flat_index(index)] = value

    def shape_at(self, dim: int) -> int:
        """Size of dimension ``dim``; raises IndexError if it does not exist."""
        if not 0 <= dim < self.ndim:
            raise IndexError(f"shape_at: dim {dim} out of range for ndim {self.ndim}")
        return self.shape[dim]

    def stride_at(self, dim: int) -> int:
        """Stride of dimension ``dim``; raises IndexError if it does not exist."""
        if not 0 <= dim < self.ndim:
            raise IndexError(f"stride_at: dim {dim} out of range for ndim {self.ndim}")
        return self.strides[dim]

    def is_contiguous(self) -> bool:
        return self.strides == self.strides_from_shape(self.shape)

    def T(self) -> "Tensor":
        """A transposed 2-D view sharing storage, detached from the graph."""
        if self.ndim != 2:
            raise ValueError(f"T() requires a 2-D tensor, got ndim={self.ndim}")
        out = copy.copy(self)
        out.autograd_meta = None
        out.shape = (self.shape[1], self.shape[0])
        out.strides = (self.strides[1], self.strides[0])
        return out

    def requires_grad(self) -> bool:
        return self.autograd_meta is not None and self.autograd_meta.requires_grad

    def has_grad(self) -> bool:
        return self.autograd_meta is not None and self.autograd_meta.grad is not None

    def grad(self) -> "Tensor":
        """The accumulated gradient; raises RuntimeError if there is none."""
        if not self.has_grad():
            raise RuntimeError(
                "grad(): tensor has no gradient. "
                "Did you call backward() and set requires_grad=true?"
            )
        return self.autograd_meta.grad

    def to_numpy(self) -> np.ndarray:
        """A contiguous numpy copy of the tensor's logical values."""
        base = self.storage.data[self.offset:]
        itemsize = base.itemsize
        view = np.lib.stride_tricks.as_strided(
            base,
            shape=self.shape,
            strides=tuple(s * itemsize for s in self.strides),
            writeable=False,
        )
        return np.array(view, dtype=np.float32, copy=True)

    def clone(self) -> "Tensor":
        """A contiguous deep copy with fresh storage and no autograd metadata."""
        out = Tensor(self.shape)
        out.storage.data[: out.numel] = self.to_numpy().reshape(-1)
        return out

    @staticmethod
    def strides_from_shape(shape: Iterable[int]) -> tuple[int, ...]:
        """Row-major element strides for ``shape``."""
        dims = tuple(shape)
        strides = [1] * len(dims)
        for i in range(len(dims) - 2, -1, -1):
            strides[i] = strides[i + 1] * dims[i + 1]
        return tuple(strides)

    @staticmethod
    def shape_from_strides(strides: Iterable[int], numel: int) -> tuple[int, ...]:
        """Recover a row-major shape from its strides and element count."""
        st = tuple(strides)
        leading = [outer // inner for outer, inner in zip(st, st[1:])]
        rest = math.prod(leading)
        return (*leading, numel // rest)

    def __str__(self) -> str:
        header = (
            f"Tensor(shape=[{', '.join(map(str, self.shape))}], "
            f"strides=[{', '.join(map(str, self.strides))}], offset={self.offset})"
        )
        lines = [header]
        if self.ndim <= 2:
            values = self.to_numpy()
            rows = values if self.ndim == 2 else values[:, None]
            lines.extend(" ".join(f"{float(v):g}" for v in row) for row in rows)
        else:
            lines.append(f"(values omitted for ndim={self.ndim})")
        return "\n".join(lines)

    __repr__ = __str__