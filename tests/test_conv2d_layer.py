import math

import numpy as np
import pytest

from myml.autograd import backward
from myml.layers.conv2d import Conv2d
from myml.ops.conv2d import conv2d_forward
from myml.tensor import Tensor


def _tensor(values, requires_grad=False):
    arr = np.asarray(values, dtype=np.float32)
    t = Tensor(arr.shape, requires_grad)
    t.storage.data[:] = arr.reshape(-1)
    return t


def test_parameter_shapes():
    layer = Conv2d(2, 4, 3, 5, rng=0)
    assert layer.weight.shape == (4, 2, 3, 5)
    assert layer.bias.shape == (1, 4)
    assert np.array_equal(layer.bias.to_numpy(), np.zeros((1, 4), dtype=np.float32))
    assert layer.weight.requires_grad() and layer.bias.requires_grad()


def test_weights_within_limit():
    layer = Conv2d(3, 6, 3, 3, rng=1)
    limit = math.sqrt(6.0 / (3 * 9 + 6 * 9))
    w = layer.weight.to_numpy()
    assert np.all(np.abs(w) <= limit)
    assert np.std(w) > 0


def test_seeded_rng_is_reproducible():
    a = Conv2d(1, 2, 3, 3, rng=7)
    b = Conv2d(1, 2, 3, 3, rng=np.random.default_rng(7))
    assert np.array_equal(a.weight.to_numpy(), b.weight.to_numpy())


def test_forward_uses_configured_stride_and_padding():
    layer = Conv2d(1, 3, 3, 3, 2, 2, 1, 1, rng=2)
    x = _tensor(np.random.default_rng(2).standard_normal((2, 1, 5, 5)))
    out = layer(x)
    expected = conv2d_forward(x, layer.weight, layer.bias, 2, 2, 1, 1)
    assert np.array_equal(out.to_numpy(), expected.to_numpy())


def test_unit_kernel_reproduces_input():
    layer = Conv2d(1, 1, 1, 1, rng=0)
    layer.weight.storage.data[:] = 1.0
    x = np.random.default_rng(3).standard_normal((2, 1, 3, 4)).astype(np.float32)
    out = layer.forward(_tensor(x))
    assert np.array_equal(out.to_numpy(), x)


def test_backward_reaches_parameters():
    layer = Conv2d(1, 2, 3, 3, padding_h=1, padding_w=1, rng=4)
    x = _tensor(np.random.default_rng(4).standard_normal((2, 1, 4, 4)))
    backward(layer(x))
    assert layer.weight.grad().shape == layer.weight.shape
    assert np.allclose(layer.bias.grad().to_numpy(), np.full((1, 2), 2 * 4 * 4))


def test_parameters_are_the_layer_tensors():
    layer = Conv2d(1, 1, 2, 2, rng=0)
    params = layer.parameters()
    assert len(params) == 2
    assert params[0] is layer.weight
    assert params[1] is layer.bias


@pytest.mark.parametrize("shape", [(1, 2, 4, 4), (1, 4, 4)])
def test_rejects_mismatched_input(shape):
    layer = Conv2d(1, 1, 3, 3, rng=0)
    with pytest.raises(ValueError):
        layer(Tensor.zeros(shape))


@pytest.mark.parametrize(
    "args",
    [(0, 1, 3, 3), (1, 0, 3, 3), (1, 1, 0, 3), (1, 1, 3, 3, 0, 1), (1, 1, 3, 3, 1, 1, -1, 0)],
)
def test_rejects_invalid_configuration(args):
    with pytest.raises(ValueError):
        Conv2d(*args)