"""Element-wise multiplication of same-shaped tensors."""

from __future__ import annotations

import numpy as np

from myml.autograd import is_grad_enabled, make_grad_meta
from myml.tensor import Tensor


def _from_array(values: np.ndarray) -> Tensor:
    out = Tensor(values.shape)
    out.storage.data[: out.numel] = np.asarray(values, dtype=np.float32).reshape(-1)
    return out


def _check_same_shape(a: Tensor, b: Tensor) -> None:
    if a.shape != b.shape:
        raise ValueError(f"mul: shapes {a.shape} and {b.shape} differ")


def mul_forward(a: Tensor, b: Tensor) -> Tensor:
    """Return a fresh contiguous tensor holding ``a * b``."""
    _check_same_shape(a, b)
    return _from_array(a.to_numpy() * b.to_numpy())


def mul_backward(grad: Tensor, a: Tensor, b: Tensor) -> list[Tensor]:
    """Gradients ``grad * b`` for ``a`` and ``grad * a`` for ``b``."""
    _check_same_shape(a, b)
    g = grad.to_numpy()
    return [_from_array(g * b.to_numpy()), _from_array(g * a.to_numpy())]


def mul(a: Tensor, b: Tensor) -> Tensor:
    """Differentiable element-wise multiplication."""
    out = mul_forward(a, b)
    if is_grad_enabled() and (a.requires_grad() or b.requires_grad()):
        out.autograd_meta = make_grad_meta(
            "MulOp",
            [a.autograd_meta, b.autograd_meta],
            lambda grad: mul_backward(grad, a, b),
        )
    return out