"""Element-wise addition with broadcasting over dimensions of size one."""

from __future__ import annotations

import numpy as np

from myml.autograd import is_grad_enabled, make_grad_meta
from myml.tensor import Tensor


def _from_array(values: np.ndarray) -> Tensor:
    out = Tensor(values.shape)
    out.storage.data[: out.numel] = np.asarray(values, dtype=np.float32).reshape(-1)
    return out


def _broadcast_shape(a: Tensor, b: Tensor) -> tuple[int, ...]:
    if a.ndim != b.ndim:
        raise ValueError(f"add: rank mismatch ({a.ndim} vs {b.ndim})")
    out = []
    for dim, (sa, sb) in enumerate(zip(a.shape, b.shape)):
        if sa != sb and sa != 1 and sb != 1:
            raise ValueError(f"add: shapes {a.shape} and {b.shape} cannot broadcast at dim {dim}")
        out.append(max(sa, sb))
    return tuple(out)


def _reduce_to(grad: np.ndarray, shape: tuple[int, ...]) -> np.ndarray:
    axes = tuple(d for d, size in enumerate(shape) if size == 1 and grad.shape[d] != 1)
    reduced = grad.sum(axis=axes, keepdims=True, dtype=np.float32) if axes else grad
    return reduced.reshape(shape)


def add_forward(a: Tensor, b: Tensor) -> Tensor:
    """Return a fresh contiguous tensor holding ``a + b`` with broadcasting."""
    out_shape = _broadcast_shape(a, b)
    values = np.broadcast_to(a.to_numpy(), out_shape) + np.broadcast_to(b.to_numpy(), out_shape)
    return _from_array(values)


def add_backward(grad: Tensor, a: Tensor, b: Tensor) -> list[Tensor]:
    """Gradients for both inputs, summed over the dimensions each was broadcast along."""
    g = grad.to_numpy()
    return [_from_array(_reduce_to(g, a.shape)), _from_array(_reduce_to(g, b.shape))]


def add(a: Tensor, b: Tensor) -> Tensor:
    """Differentiable broadcasting addition."""
    out = add_forward(a, b)
    if is_grad_enabled() and (a.requires_grad() or b.requires_grad()):
        out.autograd_meta = make_grad_meta(
            "AddOp",
            [a.autograd_meta, b.autograd_meta],
            lambda grad: add_backward(grad, a, b),
        )
    return out