"""Plain stochastic gradient descent."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np

from myml.tensor import Tensor


class SGD:
    """Update each parameter in place by ``-learning_rate * grad``."""

    def __init__(self, params: Iterable[Tensor | None], learning_rate: float) -> None:
        if not learning_rate > 0.0:
            raise ValueError(f"SGD: learning rate must be positive, got {learning_rate}")
        self.params = list(params)
        self.learning_rate = float(learning_rate)

    def zero_grad(self) -> None:
        """Drop the accumulated gradient of every parameter."""
        for p in self.params:
            if p is not None and p.autograd_meta is not None:
                p.autograd_meta.grad = None

    def step(self) -> None:
        """Apply one update to every parameter that has a gradient."""
        lr = np.float32(self.learning_rate)
        for p in self.params:
            if p is None or p.autograd_meta is None or p.autograd_meta.grad is None:
                continue
            g = p.autograd_meta.grad
            if g.shape != p.shape:
                raise ValueError(f"SGD: gradient shape {g.shape} does not match parameter {p.shape}")
            positions = p.offset + sum(
                axis * stride for axis, stride in zip(np.indices(p.shape), p.strides)
            )
            p.storage.data[positions] -= lr * g.to_numpy()