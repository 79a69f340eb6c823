"""Two-dimensional convolution over NCHW batches, built on im2col and matmul."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np

from myml.autograd import is_grad_enabled, make_grad_meta
from myml.ops.im2col import im2col
from myml.tensor import Tensor


def _from_array(values: np.ndarray) -> Tensor:
    out = Tensor(values.shape)
    out.storage.data[: out.numel] = np.asarray(values, dtype=np.float32).reshape(-1)
    return out


def _output_size(size: int, kernel: int, stride: int, pad: int, axis: str) -> int:
    if stride <= 0:
        raise ValueError(f"conv2d: {axis} stride must be positive, got {stride}")
    if pad < 0:
        raise ValueError(f"conv2d: {axis} padding must be non-negative, got {pad}")
    span = size + 2 * pad - kernel
    if span < 0:
        raise ValueError(f"conv2d: kernel {axis} {kernel} exceeds padded input {size + 2 * pad}")
    if span % stride:
        raise ValueError(f"conv2d: {axis} stride {stride} does not evenly tile the padded input")
    return span // stride + 1


def _check_operands(x: Tensor, weight: Tensor, bias: Tensor) -> None:
    if x.ndim != 4:
        raise ValueError(f"conv2d: input must be 4-D (N, C, H, W), got ndim={x.ndim}")
    if weight.ndim != 4:
        raise ValueError(f"conv2d: weight must be 4-D (OC, C, KH, KW), got ndim={weight.ndim}")
    if bias.ndim != 2:
        raise ValueError(f"conv2d: bias must be 2-D (1, OC), got ndim={bias.ndim}")
    if weight.shape[1] != x.shape[1]:
        raise ValueError(
            f"conv2d: weight expects {weight.shape[1]} input channels, input has {x.shape[1]}"
        )
    if bias.shape != (1, weight.shape[0]):
        raise ValueError(f"conv2d: bias shape {bias.shape} must be (1, {weight.shape[0]})")


def col2im(
    grad_cols: Tensor,
    input_shape: Iterable[int],
    kernel_h: int,
    kernel_w: int,
    stride_h: int = 1,
    stride_w: int = 1,
    pad_h: int = 0,
    pad_w: int = 0,
) -> Tensor:
    """Fold a patch matrix back into an ``[N, C, H, W]`` tensor, summing overlaps.

    This is the adjoint of :func:`im2col`; entries that map into the padding are dropped.
    """
    dims = tuple(int(d) for d in input_shape)
    if len(dims) != 4:
        raise ValueError(f"col2im: input_shape must have 4 dimensions, got {dims}")
    n, c, h, w = dims
    out_h = _output_size(h, kernel_h, stride_h, pad_h, "height")
    out_w = _output_size(w, kernel_w, stride_w, pad_w, "width")

    expected = (n * out_h * out_w, c * kernel_h * kernel_w)
    if grad_cols.shape != expected:
        raise ValueError(f"col2im: patch matrix shape {grad_cols.shape} must be {expected}")

    cols = grad_cols.to_numpy().reshape(n, out_h, out_w, c, kernel_h, kernel_w)
    padded = np.zeros((n, c, h + 2 * pad_h, w + 2 * pad_w), dtype=np.float32)
    for kh in range(kernel_h):
        rows = slice(kh, kh + stride_h * out_h, stride_h)
        for kw in range(kernel_w):
            columns = slice(kw, kw + stride_w * out_w, stride_w)
            padded[:, :, rows, columns] += cols[:, :, :, :, kh, kw].transpose(0, 3, 1, 2)

    return _from_array(padded[:, :, pad_h : pad_h + h, pad_w : pad_w + w])


def conv2d_forward(
    x: Tensor,
    weight: Tensor,
    bias: Tensor,
    stride_h: int = 1,
    stride_w: int = 1,
    pad_h: int = 0,
    pad_w: int = 0,
) -> Tensor:
    """Convolve ``x`` with ``weight`` and add ``bias``; returns ``[N, OC, out_h, out_w]``."""
    _check_operands(x, weight, bias)
    n, _, h, w = x.shape
    out_channels, _, kernel_h, kernel_w = weight.shape
    out_h = _output_size(h, kernel_h, stride_h, pad_h, "height")
    out_w = _output_size(w, kernel_w, stride_w, pad_w, "width")

    cols = im2col(x, kernel_h, kernel_w, stride_h, stride_w, pad_h, pad_w).to_numpy()
    weight_2d = weight.to_numpy().reshape(out_channels, -1)
    out_2d = cols @ weight_2d.T + bias.to_numpy()
    out = out_2d.reshape(n, out_h, out_w, out_channels).transpose(0, 3, 1, 2)
    return _from_array(out)


def conv2d_backward(
    grad: Tensor,
    x: Tensor,
    weight: Tensor,
    bias: Tensor,
    stride_h: int = 1,
    stride_w: int = 1,
    pad_h: int = 0,
    pad_w: int = 0,
) -> list[Tensor]:
    """Gradients ``[grad_x, grad_weight, grad_bias]`` for an upstream ``grad``."""
    _check_operands(x, weight, bias)
    n, in_channels, h, w = x.shape
    out_channels, _, kernel_h, kernel_w = weight.shape
    out_h = _output_size(h, kernel_h, stride_h, pad_h, "height")
    out_w = _output_size(w, kernel_w, stride_w, pad_w, "width")
    if grad.shape != (n, out_channels, out_h, out_w):
        raise ValueError(
            f"conv2d: gradient shape {grad.shape} must be {(n, out_channels, out_h, out_w)}"
        )

    cols = im2col(x, kernel_h, kernel_w, stride_h, stride_w, pad_h, pad_w).to_numpy()
    grad_2d = grad.to_numpy().transpose(0, 2, 3, 1).reshape(-1, out_channels)
    weight_2d = weight.to_numpy().reshape(out_channels, -1)

    grad_weight = (cols.T @ grad_2d).T.reshape(weight.shape)
    grad_bias = grad_2d.sum(axis=0, dtype=np.float32).reshape(1, out_channels)
    grad_cols = _from_array(grad_2d @ weight_2d)
    grad_x = col2im(
        grad_cols, (n, in_channels, h, w), kernel_h, kernel_w, stride_h, stride_w, pad_h, pad_w
    )
    return [grad_x, _from_array(grad_weight), _from_array(grad_bias)]


def conv2d(
    x: Tensor,
    weight: Tensor,
    bias: Tensor,
    stride_h: int = 1,
    stride_w: int = 1,
    pad_h: int = 0,
    pad_w: int = 0,
) -> Tensor:
    """Differentiable convolution; only inputs that require a gradient get one."""
    out = conv2d_forward(x, weight, bias, stride_h, stride_w, pad_h, pad_w)
    needs = [x.requires_grad(), weight.requires_grad(), bias.requires_grad()]
    if is_grad_enabled() and any(needs):
        inputs = [x, weight, bias]
        metas = [t.autograd_meta for t, needed in zip(inputs, needs) if needed]

        def backward_fn(grad: Tensor) -> list[Tensor]:
            grads = conv2d_backward(grad, x, weight, bias, stride_h, stride_w, pad_h, pad_w)
            return [g for g, needed in zip(grads, needs) if needed]

        out.autograd_meta = make_grad_meta("conv2d", metas, backward_fn)
    return out