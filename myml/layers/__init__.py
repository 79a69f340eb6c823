"""Trainable layers: fully connected and two-dimensional convolution."""