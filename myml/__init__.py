"""Strided tensors with reverse-mode autograd, layers, networks, SGD and MNIST loading."""

__version__ = "0.1.0"