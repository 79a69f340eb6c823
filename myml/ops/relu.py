"""Rectified linear unit activation."""

from __future__ import annotations

import numpy as np

from myml.autograd import is_grad_enabled, make_grad_meta
from myml.tensor import Tensor


def _from_array(values: np.ndarray) -> Tensor:
    out = Tensor(values.shape)
    out.storage.data[: out.numel] = np.asarray(values, dtype=np.float32).reshape(-1)
    return out


def relu_forward(x: Tensor) -> Tensor:
    """Return a fresh contiguous tensor holding ``max(0, x)`` element-wise."""
    values = x.to_numpy()
    return _from_array(np.where(values > 0.0, values, np.float32(0.0)))


def relu_backward(grad: Tensor, x: Tensor) -> Tensor:
    """Pass the upstream gradient through where ``x > 0`` and zero it elsewhere."""
    if grad.shape != x.shape:
        raise ValueError(f"relu: gradient shape {grad.shape} does not match input {x.shape}")
    mask = (x.to_numpy() > 0.0).astype(np.float32)
    return _from_array(grad.to_numpy() * mask)


def relu(x: Tensor) -> Tensor:
    """Differentiable ReLU."""
    out = relu_forward(x)
    if is_grad_enabled() and x.requires_grad():
        out.autograd_meta = make_grad_meta(
            "ReLUOp",
            [x.autograd_meta],
            lambda grad: [relu_backward(grad, x)],
        )
    return out