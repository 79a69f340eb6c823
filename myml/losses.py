"""Mean categorical cross-entropy computed from raw logits."""

from __future__ import annotations

import numpy as np

from myml.autograd import is_grad_enabled, make_grad_meta
from myml.tensor import Tensor


def _from_array(values: np.ndarray) -> Tensor:
    out = Tensor(values.shape)
    out.storage.data[: out.numel] = np.asarray(values, dtype=np.float32).reshape(-1)
    return out


def _check_operands(logits: Tensor, targets: Tensor) -> None:
    if logits.ndim != 2 or targets.ndim != 2:
        raise ValueError(
            f"cross_entropy: logits and targets must be 2-D, got ndim {logits.ndim} and {targets.ndim}"
        )
    if logits.shape != targets.shape:
        raise ValueError(f"cross_entropy: shapes {logits.shape} and {targets.shape} differ")


def _shifted_exp(logits: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Row-max-shifted logits and the per-row sum of their exponentials."""
    shifted = logits - logits.max(axis=1, keepdims=True)
    sum_exp = np.exp(shifted).sum(axis=1, keepdims=True, dtype=np.float32)
    return shifted, sum_exp


def cross_entropy_forward(logits: Tensor, targets: Tensor) -> Tensor:
    """Mean over rows of ``-sum(targets * log_softmax(logits))`` as a ``[1]`` tensor."""
    _check_operands(logits, targets)
    shifted, sum_exp = _shifted_exp(logits.to_numpy())
    log_probs = shifted - np.log(sum_exp)
    total = -(targets.to_numpy() * log_probs).sum(dtype=np.float32)
    return _from_array(np.array([total / np.float32(logits.shape[0])], dtype=np.float32))


def cross_entropy_backward(grad: Tensor, logits: Tensor, targets: Tensor) -> list[Tensor]:
    """Gradient for the logits: ``upstream * (softmax(logits) - targets) / N``."""
    _check_operands(logits, targets)
    upstream = grad.to_numpy().reshape(-1)[0]
    shifted, sum_exp = _shifted_exp(logits.to_numpy())
    softmax = np.exp(shifted) / sum_exp
    scale = upstream / np.float32(logits.shape[0])
    return [_from_array(scale * (softmax - targets.to_numpy()))]


def cross_entropy(logits: Tensor, targets: Tensor) -> Tensor:
    """Differentiable cross-entropy; only ``logits`` receives a gradient."""
    out = cross_entropy_forward(logits, targets)
    if is_grad_enabled() and logits.requires_grad():
        out.autograd_meta = make_grad_meta(
            "CrossEntropyOp",
            [logits.autograd_meta],
            lambda grad: cross_entropy_backward(grad, logits, targets),
        )
    return out