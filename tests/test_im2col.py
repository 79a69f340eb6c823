import numpy as np
import pytest

from myml.ops.im2col import im2col
from myml.tensor import Tensor


def _tensor(values):
    arr = np.asarray(values, dtype=np.float32)
    t = Tensor(arr.shape)
    t.storage.data[:] = arr.reshape(-1)
    return t


def _ramp(shape):
    return _tensor(np.arange(1, np.prod(shape) + 1, dtype=np.float32).reshape(shape))


def test_output_shape():
    cols = im2col(_ramp((2, 3, 5, 5)), 3, 3)
    assert cols.shape == (18, 27)
    assert cols.is_contiguous()


def test_one_by_one_kernel_lists_pixels_in_row_major_order():
    x = _ramp((2, 3, 2, 4))
    cols = im2col(x, 1, 1)
    n_, c_, h_, w_ = x.shape
    for n in range(n_):
        for h in range(h_):
            for w in range(w_):
                row = (n * h_ + h) * w_ + w
                for c in range(c_):
                    assert cols[row, c] == x[n, c, h, w]


def test_full_size_kernel_flattens_each_sample():
    x = _ramp((3, 2, 3, 3))
    cols = im2col(x, 3, 3)
    np.testing.assert_array_equal(cols.to_numpy(), x.to_numpy().reshape(3, -1))


def test_padding_reads_as_zero():
    x = _tensor([[[[1.0, 2.0], [3.0, 4.0]]]])
    cols = im2col(x, 3, 3, 1, 1, 1, 1).to_numpy()
    first = cols[0]
    assert first[0] == 0.0
    assert sorted(first[first != 0].tolist()) == [1.0, 2.0, 3.0, 4.0]


def test_non_overlapping_stride_visits_each_pixel_once():
    x = _ramp((1, 1, 4, 4))
    cols = im2col(x, 2, 2, 2, 2)
    assert sorted(cols.to_numpy().reshape(-1).tolist()) == sorted(x.to_numpy().reshape(-1).tolist())


def test_transposed_reshape_input_is_read_logically():
    base = _ramp((1, 1, 3, 3))
    copy = base.clone()
    np.testing.assert_array_equal(im2col(base, 2, 2).to_numpy(), im2col(copy, 2, 2).to_numpy())


@pytest.mark.parametrize(
    "shape, args",
    [
        ((1, 1, 4), (2, 2)),
        ((1, 1, 2, 2), (3, 3)),
        ((1, 1, 4, 4), (3, 3, 2, 2)),
        ((1, 1, 4, 4), (0, 2)),
        ((1, 1, 4, 4), (2, 2, 0, 1)),
    ],
)
def test_invalid_arguments_raise(shape, args):
    x = Tensor.zeros(shape)
    with pytest.raises(ValueError):
        im2col(x, *args)