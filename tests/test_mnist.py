import struct

import numpy as np
import pytest

from myml.data.dataloader import DataLoader
from myml.data.mnist import MNISTDataset, MNISTFormatError


def _write_mnist(directory, labels, rows, cols, seed=0, split="train"):
    rng = np.random.default_rng(seed)
    n = len(labels)
    images = rng.integers(0, 256, size=(n, rows, cols), dtype=np.uint8)
    image_path = directory / f"{split}-images-idx3-ubyte"
    label_path = directory / f"{split}-labels-idx1-ubyte"
    image_path.write_bytes(struct.pack(">IIII", 2051, n, rows, cols) + images.tobytes())
    label_path.write_bytes(struct.pack(">II", 2049, n) + bytes(labels))
    return image_path, label_path, images


def _argmax_row(t, row):
    return int(np.argmax(t.to_numpy()[row]))


@pytest.mark.parametrize(
    "split, rows, cols, n",
    [
        ("train", 28, 28, 150),
        ("t10k", 28, 28, 40),
        ("train", 14, 14, 100),
        ("t10k", 14, 14, 30),
    ],
)
def test_split_stats(tmp_path, split, rows, cols, n):
    labels = [(i * 7) % 10 for i in range(n)]
    image_path, label_path, _ = _write_mnist(tmp_path, labels, rows, cols, split=split)

    ds = MNISTDataset(image_path, label_path)
    assert len(ds) > 0
    assert ds.image_rows() == rows
    assert ds.image_cols() == cols

    loader = DataLoader(ds, 128, shuffle=False)
    assert loader.has_next()
    probe_x, probe_y = loader.next_batch()
    assert probe_x.ndim == 2
    assert probe_y.ndim == 2
    input_features = probe_x.shape_at(1)
    assert input_features == rows * cols
    assert probe_y.shape_at(1) == 10

    loader.reset()
    class_counts = [0] * 10
    seen = 0
    while loader.has_next():
        inputs, targets = loader.next_batch()
        assert inputs.shape_at(1) == input_features
        assert targets.shape_at(1) == 10
        for b in range(inputs.shape_at(0)):
            seen += 1
            class_counts[_argmax_row(targets, b)] += 1

    assert seen == len(ds)
    assert sum(class_counts) == seen
    assert class_counts == [labels.count(c) for c in range(10)]


def test_pixels_scaled_to_unit_interval(tmp_path):
    image_path, label_path, images = _write_mnist(tmp_path, [3, 1], 4, 4)
    ds = MNISTDataset(image_path, label_path)
    inputs, _ = ds.features(1)
    np.testing.assert_allclose(inputs, images[1].reshape(-1) / 255.0, rtol=1e-6)
    assert inputs.min() >= 0.0 and inputs.max() <= 1.0


def test_get_is_one_hot(tmp_path):
    image_path, label_path, _ = _write_mnist(tmp_path, [3, 9], 4, 5)
    ds = MNISTDataset(image_path, label_path)
    sample = ds.get(1)
    assert sample.input.shape == (1, 20)
    assert sample.target.shape == (1, 10)
    assert _argmax_row(sample.target, 0) == 9
    assert sample.target.to_numpy().sum() == 1.0
    assert ds.input_dim() == 20
    assert ds.target_dim() == 10


@pytest.mark.parametrize("index", [2, -1])
def test_index_out_of_range(tmp_path, index):
    image_path, label_path, _ = _write_mnist(tmp_path, [0, 1], 3, 3)
    ds = MNISTDataset(image_path, label_path)
    with pytest.raises(IndexError):
        ds.get(index)
    with pytest.raises(IndexError):
        ds.features(index)


def test_bad_image_magic(tmp_path):
    image_path, label_path, _ = _write_mnist(tmp_path, [0], 2, 2)
    image_path.write_bytes(struct.pack(">IIII", 2049, 1, 2, 2) + bytes(4))
    with pytest.raises(MNISTFormatError):
        MNISTDataset(image_path, label_path)


def test_bad_label_magic(tmp_path):
    image_path, label_path, _ = _write_mnist(tmp_path, [0], 2, 2)
    label_path.write_bytes(struct.pack(">II", 2051, 1) + bytes([0]))
    with pytest.raises(MNISTFormatError):
        MNISTDataset(image_path, label_path)


def test_count_mismatch(tmp_path):
    image_path, label_path, _ = _write_mnist(tmp_path, [0, 1], 2, 2)
    label_path.write_bytes(struct.pack(">II", 2049, 1) + bytes([0]))
    with pytest.raises(MNISTFormatError):
        MNISTDataset(image_path, label_path)


def test_truncated_images(tmp_path):
    image_path, label_path, _ = _write_mnist(tmp_path, [0, 1], 2, 2)
    image_path.write_bytes(image_path.read_bytes()[:-1])
    with pytest.raises(MNISTFormatError):
        MNISTDataset(image_path, label_path)


def test_truncated_header(tmp_path):
    image_path, label_path, _ = _write_mnist(tmp_path, [0], 2, 2)
    label_path.write_bytes(struct.pack(">I", 2049))
    with pytest.raises(MNISTFormatError):
        MNISTDataset(image_path, label_path)


def test_label_out_of_range(tmp_path):
    image_path, label_path, _ = _write_mnist(tmp_path, [0, 10], 2, 2)
    with pytest.raises(MNISTFormatError):
        MNISTDataset(image_path, label_path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        MNISTDataset(tmp_path / "nope-images", tmp_path / "nope-labels")