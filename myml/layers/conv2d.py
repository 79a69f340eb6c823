"""Two-dimensional convolution layer."""

from __future__ import annotations

import math

import numpy as np

from myml.ops.conv2d import conv2d
from myml.tensor import Tensor


class Conv2d:
    """Convolution with a ``[OC, C, KH, KW]`` kernel and a ``[1, OC]`` bias."""

    def __init__(
        self,
        in_channels: int,
        out_channels: int,
        kernel_h: int,
        kernel_w: int,
        stride_h: int = 1,
        stride_w: int = 1,
        padding_h: int = 0,
        padding_w: int = 0,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        if in_channels <= 0 or out_channels <= 0:
            raise ValueError("Conv2d: channel counts must be positive")
        if kernel_h <= 0 or kernel_w <= 0:
            raise ValueError("Conv2d: kernel sizes must be positive")
        if stride_h <= 0 or stride_w <= 0:
            raise ValueError("Conv2d: strides must be positive")
        if padding_h < 0 or padding_w < 0:
            raise ValueError("Conv2d: padding must be non-negative")

        self.in_channels = in_channels
        self.out_channels = out_channels
        self.kernel_h = kernel_h
        self.kernel_w = kernel_w
        self.stride_h = stride_h
        self.stride_w = stride_w
        self.padding_h = padding_h
        self.padding_w = padding_w

        fan_in = in_channels * kernel_h * kernel_w
        fan_out = out_channels * kernel_h * kernel_w
        limit = math.sqrt(6.0 / (fan_in + fan_out))
        generator = np.random.default_rng(rng)

        shape = (out_channels, in_channels, kernel_h, kernel_w)
        self.weight = Tensor(shape, requires_grad=True)
        self.weight.storage.data[:] = generator.uniform(
            -limit, limit, self.weight.numel
        ).astype(np.float32)
        self.bias = Tensor.zeros((1, out_channels), requires_grad=True)

    def forward(self, x: Tensor) -> Tensor:
        """Convolve an ``[N, in_channels, H, W]`` batch."""
        if x.ndim != 4 or x.shape[1] != self.in_channels:
            raise ValueError(
                f"Conv2d: expected input of shape (N, {self.in_channels}, H, W), got {x.shape}"
            )
        return conv2d(
            x,
            self.weight,
            self.bias,
            self.stride_h,
            self.stride_w,
            self.padding_h,
            self.padding_w,
        )

    def __call__(self, x: Tensor) -> Tensor:
        return self.forward(x)

    def parameters(self) -> list[Tensor]:
        """The trainable tensors: weight, then bias."""
        return [self.weight, self.bias]