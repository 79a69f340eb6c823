"""Fully connected layer."""

from __future__ import annotations

import math

import numpy as np

from myml.ops.add import add
from myml.ops.matmul import matmul
from myml.tensor import Tensor


class Linear:
    """Affine map ``x @ weight + bias`` with Glorot-uniform initial weights."""

    def __init__(
        self,
        in_features: int,
        out_features: int,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        if in_features <= 0 or out_features <= 0:
            raise ValueError(
                f"Linear: feature counts must be positive, got {in_features} and {out_features}"
            )
        self.in_features = in_features
        self.out_features = out_features

        limit = math.sqrt(6.0 / (in_features + out_features))
        generator = np.random.default_rng(rng)
        self.weight = Tensor((in_features, out_features), requires_grad=True)
        self.weight.storage.data[:] = generator.uniform(
            -limit, limit, in_features * out_features
        ).astype(np.float32)
        self.bias = Tensor.zeros((1, out_features), requires_grad=True)

    def forward(self, x: Tensor) -> Tensor:
        """Apply the layer to a ``[B, in_features]`` batch."""
        if x.ndim != 2 or x.shape[1] != self.in_features:
            raise ValueError(
                f"Linear: expected input of shape (B, {self.in_features}), got {x.shape}"
            )
        return add(matmul(x, self.weight), self.bias)

    def __call__(self, x: Tensor) -> Tensor:
        return self.forward(x)

    def parameters(self) -> list[Tensor]:
        """The trainable tensors: weight, then bias."""
        return [self.weight, self.bias]