"""Ready-made networks: a multi-layer perceptron and a small convolutional classifier."""