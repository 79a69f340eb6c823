"""The dataset interface, the MNIST IDX reader and the batching data loader."""