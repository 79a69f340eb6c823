import math

import numpy as np
import pytest

from myml.autograd import backward
from myml.layers.linear import Linear
from myml.tensor import Tensor


def _tensor(values, requires_grad=False):
    arr = np.asarray(values, dtype=np.float32)
    t = Tensor(arr.shape, requires_grad)
    t.storage.data[:] = arr.reshape(-1)
    return t


def test_parameter_shapes_and_initial_bias():
    layer = Linear(5, 3, rng=0)
    assert layer.weight.shape == (5, 3)
    assert layer.bias.shape == (1, 3)
    assert np.array_equal(layer.bias.to_numpy(), np.zeros((1, 3), dtype=np.float32))
    assert layer.weight.requires_grad() and layer.bias.requires_grad()


def test_weights_lie_within_glorot_limit():
    layer = Linear(20, 12, rng=1)
    limit = math.sqrt(6.0 / (20 + 12))
    w = layer.weight.to_numpy()
    assert np.all(np.abs(w) <= limit)
    assert np.std(w) > 0


def test_seeded_rng_is_reproducible():
    a = Linear(4, 6, rng=42)
    b = Linear(4, 6, rng=np.random.default_rng(42))
    assert np.array_equal(a.weight.to_numpy(), b.weight.to_numpy())


def test_identity_weight_adds_bias():
    layer = Linear(3, 3, rng=0)
    layer.weight.storage.data[:] = np.eye(3, dtype=np.float32).reshape(-1)
    bias = np.array([[1.0, -2.0, 0.5]], dtype=np.float32)
    layer.bias.storage.data[:] = bias.reshape(-1)
    x = np.arange(6, dtype=np.float32).reshape(2, 3)
    out = layer(_tensor(x))
    assert out.shape == (2, 3)
    assert np.allclose(out.to_numpy(), x + bias)


def test_call_matches_forward():
    layer = Linear(4, 2, rng=3)
    x = _tensor(np.random.default_rng(3).standard_normal((5, 4)))
    assert np.array_equal(layer(x).to_numpy(), layer.forward(x).to_numpy())


def test_backward_reaches_weight_and_bias():
    layer = Linear(3, 2, rng=4)
    x_arr = np.random.default_rng(4).standard_normal((4, 3)).astype(np.float32)
    out = layer(_tensor(x_arr))
    backward(out)
    assert np.allclose(layer.bias.grad().to_numpy(), np.full((1, 2), x_arr.shape[0]))
    col_sums = x_arr.sum(axis=0).reshape(3, 1)
    assert np.allclose(layer.weight.grad().to_numpy(), np.repeat(col_sums, 2, axis=1), atol=1e-5)


def test_parameters_are_the_layer_tensors():
    layer = Linear(2, 2, rng=0)
    params = layer.parameters()
    assert len(params) == 2
    assert params[0] is layer.weight
    assert params[1] is layer.bias


@pytest.mark.parametrize("shape", [(2, 4), (3,), (1, 2, 3)])
def test_rejects_mismatched_input(shape):
    layer = Linear(3, 2, rng=0)
    with pytest.raises(ValueError):
        layer(Tensor.zeros(shape))


@pytest.mark.parametrize("dims", [(0, 3), (3, 0)])
def test_rejects_empty_layer(dims):
    with pytest.raises(ValueError):
        Linear(*dims)