"""Two-dimensional matrix multiplication."""

from __future__ import annotations

import numpy as np

from myml.autograd import is_grad_enabled, make_grad_meta
from myml.tensor import Tensor


def _check_operands(a: Tensor, b: Tensor) -> None:
    if a.ndim != 2 or b.ndim != 2:
        raise ValueError(f"matmul: both operands must be 2-D, got ndim {a.ndim} and {b.ndim}")
    if a.shape[1] != b.shape[0]:
        raise ValueError(f"matmul: inner dimensions differ, {a.shape} @ {b.shape}")


def matmul_forward(a: Tensor, b: Tensor) -> Tensor:
    """Return a fresh contiguous ``[M, N]`` tensor holding ``a @ b``; views are fine."""
    _check_operands(a, b)
    values = np.matmul(a.to_numpy(), b.to_numpy(), dtype=np.float32)
    out = Tensor(values.shape)
    out.storage.data[: out.numel] = values.reshape(-1)
    return out


def matmul_backward(grad: Tensor, a: Tensor, b: Tensor) -> list[Tensor]:
    """Gradients ``grad @ b.T`` for ``a`` and ``a.T @ grad`` for ``b``."""
    return [matmul_forward(grad, b.T()), matmul_forward(a.T(), grad)]


def matmul(a: Tensor, b: Tensor) -> Tensor:
    """Differentiable matrix multiplication."""
    out = matmul_forward(a, b)
    needs_a = a.requires_grad()
    needs_b = b.requires_grad()
    if is_grad_enabled() and (needs_a or needs_b):
        metas = []
        if needs_a:
            metas.append(a.autograd_meta)
        if needs_b:
            metas.append(b.autograd_meta)

        def backward_fn(grad: Tensor) -> list[Tensor]:
            grads = []
            if needs_a:
                grads.append(matmul_forward(grad, b.T()))
            if needs_b:
                grads.append(matmul_forward(a.T(), grad))
            return grads

        out.autograd_meta = make_grad_meta("matmul", metas, backward_fn)
    return out