"""Reader for the IDX image and label files of the MNIST digit set."""

from __future__ import annotations

import math
import operator
import struct
from os import PathLike
from pathlib import Path

import numpy as np

from myml.data.dataset import Dataset, Sample

IMAGE_MAGIC = 2051
LABEL_MAGIC = 2049
NUM_CLASSES = 10


class MNISTFormatError(ValueError):
    """An IDX file is malformed, truncated or inconsistent with its partner."""


def _read_idx(path: str | PathLike, magic: int, ndims: int) -> tuple[tuple[int, ...], np.ndarray]:
    raw = Path(path).read_bytes()
    header = struct.Struct(f">{ndims + 1}I")
    if len(raw) < header.size:
        raise MNISTFormatError(f"{path}: too short for an IDX header")
    found, *dims = header.unpack_from(raw)
    if found != magic:
        raise MNISTFormatError(f"{path}: magic number {found}, expected {magic}")
    count = math.prod(dims)
    body = np.frombuffer(raw, dtype=np.uint8, offset=header.size)
    if body.size < count:
        raise MNISTFormatError(f"{path}: holds {body.size} values, header promises {count}")
    return tuple(dims), body[:count]


class MNISTDataset(Dataset):
    """Images scaled to [0, 1] with one-hot targets over ten classes."""

    def __init__(self, image_file: str | PathLike, label_file: str | PathLike) -> None:
        (img_count, rows, cols), pixels = _read_idx(image_file, IMAGE_MAGIC, 3)
        (lbl_count,), labels = _read_idx(label_file, LABEL_MAGIC, 1)
        if img_count != lbl_count:
            raise MNISTFormatError(f"{img_count} images but {lbl_count} labels")
        if labels.size and int(labels.max()) >= NUM_CLASSES:
            raise MNISTFormatError(f"label {int(labels.max())} is not a digit")

        self._rows = rows
        self._cols = cols
        self._images = pixels.reshape(img_count, rows * cols).astype(np.float32) / np.float32(255.0)
        self._labels = labels.copy()

    def _check_index(self, index: int) -> int:
        index = operator.index(index)
        if not 0 <= index < len(self):
            raise IndexError(f"sample {index} out of range for {len(self)} samples")
        return index

    def __len__(self) -> int:
        return len(self._labels)

    def get(self, index: int) -> Sample:
        """Sample ``index`` as ``[1, rows*cols]`` pixels and a ``[1, 10]`` one-hot target."""
        return super().get(self._check_index(index))

    def input_dim(self) -> int:
        return self._rows * self._cols

    def target_dim(self) -> int:
        return NUM_CLASSES

    def features(self, index: int) -> tuple[np.ndarray, np.ndarray]:
        """Flat pixels and one-hot label for sample ``index``."""
        index = self._check_index(index)
        target = np.zeros(NUM_CLASSES, dtype=np.float32)
        target[self._labels[index]] = 1.0
        return self._images[index].copy(), target

    def image_rows(self) -> int:
        return self._rows

    def image_cols(self) -> int:
        return self._cols