"""Reverse-mode automatic differentiation: graph nodes, grad mode and backward."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from myml.tensor import Tensor

BackwardFn = Callable[["Tensor"], Sequence["Tensor"]]

_grad_enabled = True


def is_grad_enabled() -> bool:
    """Return whether operations currently record graph nodes."""
    return _grad_enabled


@contextmanager
def no_grad() -> Iterator[None]:
    """Disable graph construction inside the block, restoring the previous mode after."""
    global _grad_enabled
    previous = _grad_enabled
    _grad_enabled = False
    try:
        yield
    finally:
        _grad_enabled = previous


@dataclass(eq=False)
class Node:
    """A recorded operation: its inputs' metadata and how to map an output gradient back."""

    name: str
    input_metas: list[Optional["AutogradMeta"]]
    backward_fn: BackwardFn


@dataclass(eq=False)
class AutogradMeta:
    """Autograd state attached to a tensor that takes part in the graph."""

    grad_fn: Optional[Node] = None
    grad: Optional["Tensor"] = None
    requires_grad: bool = False
    _unused: None = field(default=None, repr=False, compare=False)


def make_grad_meta(
    name: str,
    input_metas: Sequence[Optional[AutogradMeta]],
    backward_fn: BackwardFn,
) -> AutogradMeta:
    """Build the metadata for an op output whose gradient flows to ``input_metas``."""
    node = Node(name=name, input_metas=list(input_metas), backward_fn=backward_fn)
    return AutogradMeta(grad_fn=node, requires_grad=True)


def _inputs(meta: AutogradMeta) -> list[Optional[AutogradMeta]]:
    return meta.grad_fn.input_metas if meta.grad_fn is not None else []


def _post_order(root: AutogradMeta) -> list[AutogradMeta]:
    """Return the graph's metas with every input before the nodes that use it."""
    order: list[AutogradMeta] = []
    visited = {root}
    stack = [(root, iter(_inputs(root)))]
    while stack:
        meta, pending = stack[-1]
        for child in pending:
            if child is not None and child not in visited:
                visited.add(child)
                stack.append((child, iter(_inputs(child))))
                break
        else:
            stack.pop()
            order.append(meta)
    return order


def backward(output: "Tensor") -> None:
    """Propagate gradients from ``output`` (seeded with ones) back to every leaf."""
    if not output.requires_grad():
        raise ValueError("backward(): output does not require a gradient")

    root = output.autograd_meta
    order = _post_order(root)
    root.grad = type(output).ones(output.shape)

    for meta in reversed(order):
        if meta.grad is None or meta.grad_fn is None:
            continue

        with no_grad():
            input_grads = meta.grad_fn.backward_fn(meta.grad)

        for input_meta, incoming in zip(meta.grad_fn.input_metas, input_grads, strict=True):
            if input_meta is None or not input_meta.requires_grad:
                continue
            if input_meta.grad is None:
                input_meta.grad = incoming.clone()
            else:
                accumulated = input_meta.grad
                accumulated.storage.data[: accumulated.numel] += incoming.to_numpy().reshape(-1)