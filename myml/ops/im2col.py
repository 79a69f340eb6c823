"""Patch extraction turning an NCHW image batch into a 2-D matrix."""

from __future__ import annotations

import numpy as np

from myml.tensor import Tensor


def im2col(
    x: Tensor,
    kernel_h: int,
    kernel_w: int,
    stride_h: int = 1,
    stride_w: int = 1,
    pad_h: int = 0,
    pad_w: int = 0,
) -> Tensor:
    """Unfold ``x`` of shape ``[N, C, H, W]`` into ``[N*out_h*out_w, C*kernel_h*kernel_w]``.

    Rows run over (n, oh, ow) and columns over (c, kh, kw), both row-major;
    positions that fall in the zero padding read as zero.
    """
    if x.ndim != 4:
        raise ValueError(f"im2col: input must be 4-D (N, C, H, W), got ndim={x.ndim}")
    if kernel_h <= 0 or kernel_w <= 0:
        raise ValueError("im2col: kernel sizes must be positive")
    if stride_h <= 0 or stride_w <= 0:
        raise ValueError("im2col: strides must be positive")
    if pad_h < 0 or pad_w < 0:
        raise ValueError("im2col: padding must be non-negative")

    n, c, h, w = x.shape
    span_h = h + 2 * pad_h - kernel_h
    span_w = w + 2 * pad_w - kernel_w
    if span_h < 0 or span_w < 0:
        raise ValueError("im2col: kernel is larger than the padded input")
    if span_h % stride_h or span_w % stride_w:
        raise ValueError("im2col: stride does not evenly tile the padded input")

    out_h = span_h // stride_h + 1
    out_w = span_w // stride_w + 1

    padded = np.pad(x.to_numpy(), ((0, 0), (0, 0), (pad_h, pad_h), (pad_w, pad_w)))
    windows = np.lib.stride_tricks.sliding_window_view(padded, (kernel_h, kernel_w), axis=(2, 3))
    windows = windows[:, :, ::stride_h, ::stride_w]
    cols = windows.transpose(0, 2, 3, 1, 4, 5).reshape(n * out_h * out_w, c * kernel_h * kernel_w)

    out = Tensor(cols.shape)
    out.storage.data[: out.numel] = cols.reshape(-1)
    return out