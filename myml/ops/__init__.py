"""Tensor operations: addition, multiplication, matmul, reshape, activations and convolution."""