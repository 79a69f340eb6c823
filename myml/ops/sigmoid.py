"""Logistic sigmoid activation."""

from __future__ import annotations

import numpy as np

from myml.autograd import is_grad_enabled, make_grad_meta
from myml.tensor import Tensor


def _from_array(values: np.ndarray) -> Tensor:
    out = Tensor(values.shape)
    out.storage.data[: out.numel] = np.asarray(values, dtype=np.float32).reshape(-1)
    return out


def sigmoid_forward(x: Tensor) -> Tensor:
    """Return a fresh contiguous tensor holding ``1 / (1 + exp(-x))``."""
    values = x.to_numpy()
    with np.errstate(over="ignore"):
        result = np.float32(1.0) / (np.float32(1.0) + np.exp(-values))
    return _from_array(result)


def sigmoid_backward(grad: Tensor, out: Tensor) -> Tensor:
    """Input gradient ``grad * out * (1 - out)`` from the saved forward output."""
    if grad.shape != out.shape:
        raise ValueError(f"sigmoid: gradient shape {grad.shape} does not match output {out.shape}")
    o = out.to_numpy()
    return _from_array(grad.to_numpy() * o * (np.float32(1.0) - o))


def sigmoid(x: Tensor) -> Tensor:
    """Differentiable sigmoid."""
    out = sigmoid_forward(x)
    if is_grad_enabled() and x.requires_grad():
        saved = Tensor.from_storage(out.storage, out.shape)
        out.autograd_meta = make_grad_meta(
            "SigmoidOp",
            [x.autograd_meta],
            lambda grad: [sigmoid_backward(grad, saved)],
        )
    return out