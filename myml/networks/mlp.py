"""Multi-layer perceptron built from fully connected layers."""

from __future__ import annotations

from collections.abc import Callable, Iterable

import numpy as np

from myml.layers.linear import Linear
from myml.tensor import Tensor

ActivationFn = Callable[[Tensor], Tensor]


class MLP:
    """A stack of Linear layers with an activation between consecutive layers."""

    def __init__(
        self,
        input_features: int,
        hidden_layer_features: Iterable[int],
        activation: ActivationFn,
        output_features: int,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        if input_features <= 0:
            raise ValueError(f"MLP: input_features must be positive, got {input_features}")
        if output_features <= 0:
            raise ValueError(f"MLP: output_features must be positive, got {output_features}")
        if not callable(activation):
            raise TypeError("MLP: activation must be callable")

        hidden = list(hidden_layer_features)
        if any(size <= 0 for size in hidden):
            raise ValueError(f"MLP: hidden layer sizes must be positive, got {hidden}")

        dims = [input_features, *hidden, output_features]
        generator = np.random.default_rng(rng)
        self.layers = [
            Linear(fan_in, fan_out, rng=generator) for fan_in, fan_out in zip(dims, dims[1:])
        ]
        self.activation = activation

    def forward(self, x: Tensor) -> Tensor:
        """Run a ``[B, input_features]`` batch through every layer."""
        *hidden, last = self.layers
        out = x
        for layer in hidden:
            out = self.activation(layer.forward(out))
        return last.forward(out)

    def __call__(self, x: Tensor) -> Tensor:
        return self.forward(x)

    def parameters(self) -> list[Tensor]:
        """Weights and biases of every layer, in layer order."""
        return [p for layer in self.layers for p in layer.parameters()]