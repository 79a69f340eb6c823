"""Small convolutional classifier: one convolution, an activation, then a linear head."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np

from myml.layers.conv2d import Conv2d
from myml.layers.linear import Linear
from myml.ops.reshape import reshape
from myml.tensor import Tensor

ActivationFn = Callable[[Tensor], Tensor]


def _conv_out_dim(size: int, kernel: int, stride: int, pad: int) -> int:
    if stride <= 0:
        raise ValueError(f"CNN: stride must be positive, got {stride}")
    span = size + 2 * pad - kernel
    if span < 0:
        raise ValueError(f"CNN: kernel {kernel} exceeds padded input {size + 2 * pad}")
    if span % stride:
        raise ValueError(f"CNN: stride {stride} does not evenly tile the padded input")
    return span // stride + 1


class CNN:
    """Conv2d, activation, flatten, Linear."""

    def __init__(
        self,
        input_channels: int,
        input_height: int,
        input_width: int,
        conv_out_channels: int,
        kernel_h: int,
        kernel_w: int,
        activation: ActivationFn,
        output_features: int,
        stride_h: int = 1,
        stride_w: int = 1,
        padding_h: int = 0,
        padding_w: int = 0,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        if input_channels <= 0:
            raise ValueError(f"CNN: input_channels must be positive, got {input_channels}")
        if output_features <= 0:
            raise ValueError(f"CNN: output_features must be positive, got {output_features}")
        if not callable(activation):
            raise TypeError("CNN: activation must be callable")

        out_h = _conv_out_dim(input_height, kernel_h, stride_h, padding_h)
        out_w = _conv_out_dim(input_width, kernel_w, stride_w, padding_w)
        self.flattened_features = conv_out_channels * out_h * out_w
        if self.flattened_features <= 0:
            raise ValueError("CNN: convolution produces no features")

        generator = np.random.default_rng(rng)
        self.conv1 = Conv2d(
            input_channels,
            conv_out_channels,
            kernel_h,
            kernel_w,
            stride_h,
            stride_w,
            padding_h,
            padding_w,
            rng=generator,
        )
        self.classifier = Linear(self.flattened_features, output_features, rng=generator)
        self.activation = activation

    def forward(self, x: Tensor) -> Tensor:
        """Classify an ``[N, C, H, W]`` batch, returning ``[N, output_features]`` logits."""
        if x.ndim != 4:
            raise ValueError(f"CNN: input must be 4-D (N, C, H, W), got ndim={x.ndim}")
        h = self.activation(self.conv1.forward(x))
        flat = reshape(h, (h.shape[0], self.flattened_features))
        return self.classifier.forward(flat)

    def __call__(self, x: Tensor) -> Tensor:
        return self.forward(x)

    def parameters(self) -> list[Tensor]:
        """Convolution weight and bias, then classifier weight and bias."""
        return [*self.conv1.parameters(), *self.classifier.parameters()]