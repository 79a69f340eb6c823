"""Mini-batch iteration over a Dataset."""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np

from myml.data.dataset import Dataset
from myml.tensor import Tensor


def _to_tensor(values: np.ndarray) -> Tensor:
    t = Tensor.zeros(values.shape)
    t.storage.data[:] = values.reshape(-1)
    return t


class DataLoader:
    """Yields ``(inputs, targets)`` batches of shape ``[B, input_dim]`` and ``[B, target_dim]``.

    The last batch of an epoch may be smaller than ``batch_size``.
    """

    def __init__(
        self,
        dataset: Dataset,
        batch_size: int,
        shuffle: bool = True,
        seed: int = 1337,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"DataLoader: batch_size must be positive, got {batch_size}")
        self.dataset = dataset
        self.batch_size = batch_size
        self.shuffle = shuffle
        self._rng = np.random.default_rng(seed)
        self._input_dim = dataset.input_dim()
        self._target_dim = dataset.target_dim()
        self._indices = np.arange(len(dataset))
        self._position = 0
        if shuffle:
            self._rng.shuffle(self._indices)

    def has_next(self) -> bool:
        """Whether the current epoch has batches left."""
        return self._position < len(self._indices)

    def reset(self) -> None:
        """Start a new epoch, reshuffling if enabled."""
        self._position = 0
        if self.shuffle:
            self._rng.shuffle(self._indices)

    def next_batch(self) -> tuple[Tensor, Tensor]:
        """The next batch of the epoch; raises RuntimeError once the epoch is exhausted."""
        if not self.has_next():
            raise RuntimeError("DataLoader: no batches left in this epoch; call reset()")
        chosen = self._indices[self._position : self._position + self.batch_size]
        inputs = np.zeros((len(chosen), self._input_dim), dtype=np.float32)
        targets = np.zeros((len(chosen), self._target_dim), dtype=np.float32)
        for row, index in enumerate(chosen):
            inputs[row], targets[row] = self.dataset.features(int(index))
        self._position += len(chosen)
        return _to_tensor(inputs), _to_tensor(targets)

    def __iter__(self) -> Iterator[tuple[Tensor, Tensor]]:
        """Reset and yield every batch of one epoch."""
        self.reset()
        while self.has_next():
            yield self.next_batch()