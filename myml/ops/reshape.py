"""Zero-copy reshape of contiguous tensors."""

from __future__ import annotations

import math
from collections.abc import Iterable

from myml.autograd import is_grad_enabled, make_grad_meta
from myml.tensor import Tensor


def reshape_forward(x: Tensor, new_shape: Iterable[int]) -> Tensor:
    """A view of ``x`` with ``new_shape``, sharing its storage and detached from the graph."""
    dims = tuple(new_shape)
    if not x.is_contiguous() or x.offset != 0:
        raise ValueError("reshape: input must be contiguous with zero offset")
    if math.prod(dims) != x.numel:
        raise ValueError(f"reshape: cannot view {x.shape} ({x.numel} values) as {dims}")
    return Tensor.from_storage(x.storage, dims)


def reshape_backward(grad: Tensor, old_shape: Iterable[int]) -> list[Tensor]:
    """The upstream gradient viewed back in the input's shape."""
    return [reshape_forward(grad, old_shape)]


def reshape(x: Tensor, new_shape: Iterable[int]) -> Tensor:
    """Differentiable zero-copy reshape."""
    out = reshape_forward(x, new_shape)
    if is_grad_enabled() and x.requires_grad():
        old_shape = x.shape
        out.autograd_meta = make_grad_meta(
            "reshape",
            [x.autograd_meta],
            lambda grad: reshape_backward(grad, old_shape),
        )
    return out