"""Classification metrics."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class Metrics:
    """Summary scores for a set of predictions."""

    accuracy: float = 0.0


def compute_metrics(predicted: Iterable[int], ground_truth: Iterable[int]) -> Metrics:
    """Accuracy of ``predicted`` against ``ground_truth``; zero when both are empty."""
    preds = list(predicted)
    truth = list(ground_truth)
    if len(preds) != len(truth):
        raise ValueError(
            f"compute_metrics: {len(preds)} predictions but {len(truth)} ground-truth labels"
        )
    if not preds:
        return Metrics()
    correct = sum(p == t for p, t in zip(preds, truth))
    return Metrics(accuracy=correct / len(preds))