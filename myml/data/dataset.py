"""Supervised dataset interface and the sample type it yields."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from myml.tensor import Tensor


@dataclass
class Sample:
    """One example; both tensors have a leading sample dimension of 1."""

    input: Tensor
    target: Tensor


def _row_tensor(values: np.ndarray) -> Tensor:
    flat = np.asarray(values, dtype=np.float32).reshape(-1)
    t = Tensor.zeros((1, flat.size))
    t.storage.data[:] = flat
    return t


class Dataset(ABC):
    """An indexable collection of (input, target) feature vectors."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of samples."""

    @abstractmethod
    def input_dim(self) -> int:
        """Length of each flat input vector."""

    @abstractmethod
    def target_dim(self) -> int:
        """Length of each flat target vector."""

    @abstractmethod
    def features(self, index: int) -> tuple[np.ndarray, np.ndarray]:
        """Flat float32 input and target vectors for sample ``index``."""

    def get(self, index: int) -> Sample:
        """Sample ``index`` as ``[1, input_dim]`` and ``[1, target_dim]`` tensors."""
        inputs, targets = self.features(index)
        return Sample(_row_tensor(inputs), _row_tensor(targets))