# myml

A compact machine-learning library built on numpy: strided float32 tensors,
reverse-mode automatic differentiation, a handful of differentiable
operations, `Linear` and `Conv2d` layers, `MLP` and `CNN` networks, an `SGD`
optimiser, and a reader for the MNIST IDX file format with a batching
`DataLoader`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Tensors

`myml.tensor.Tensor` is a view of a flat `myml.storage.Storage` described by
a shape, strides and an offset (rank 1 to 8).

```python
from myml.tensor import Tensor

t = Tensor.zeros((2, 3))
t[0, 1] = 5.0
print(t[0, 1])           # 5.0
print(t.shape, t.strides, t.numel, t.ndim)

v = t.T()                # transposed view sharing storage, no copy
print(v.is_contiguous()) # False
c = v.clone()            # contiguous deep copy
a = t.to_numpy()         # numpy copy of the logical values
```

`Tensor.ones`, `Tensor.from_storage`, `shape_at` / `stride_at` (raising
`IndexError` for a missing dimension) and the static helpers
`strides_from_shape` and `shape_from_strides` are also available. Indexing
checks the number of indices and their bounds and raises `IndexError`.

## Autograd

```python
from myml.tensor import Tensor
from myml.ops.matmul import matmul
from myml.ops.add import add
from myml.ops.relu import relu
from myml.autograd import backward, no_grad, is_grad_enabled

x = Tensor.ones((2, 3), requires_grad=True)
w = Tensor.ones((3, 4), requires_grad=True)
b = Tensor.zeros((1, 4), requires_grad=True)

y = relu(add(matmul(x, w), b))
backward(y)              # seeds the output gradient with ones

print(w.grad())          # gradient of sum(y) with respect to w

with no_grad():
    z = matmul(x, w)     # no graph is recorded here
```

`backward` raises `ValueError` if the output does not require a gradient;
gradients arriving at the same tensor along several paths are summed.
`Tensor.grad()` raises `RuntimeError` when no gradient has been computed.

Available operations:

- `myml.ops.add.add`: element-wise addition, broadcasting over dimensions of size 1 (both tensors must have the same rank)
- `myml.ops.mul.mul`: element-wise multiplication of same-shaped tensors
- `myml.ops.matmul.matmul`: 2-D matrix product `a @ b`
- `myml.ops.reshape.reshape`: zero-copy reshape of a contiguous tensor with zero offset
- `myml.ops.relu.relu`, `myml.ops.sigmoid.sigmoid`
- `myml.ops.im2col.im2col`: unfolds `[N, C, H, W]` into a patch matrix
- `myml.ops.conv2d.conv2d` (and its adjoint helper `col2im`)
- `myml.losses.cross_entropy`: mean cross-entropy from raw logits and (typically one-hot) targets; only the logits receive a gradient

Each operation also exposes its plain forward and backward functions
(`add_forward`, `add_backward`, `matmul_forward`, `conv2d_backward`,
`cross_entropy_forward`, ...) that do not touch the graph. Shape mismatches
raise `ValueError`.

## Layers, networks and optimiser

- `myml.layers.linear.Linear(in_features, out_features, rng=None)`: `x @ weight + bias` with Glorot-uniform weights and zero bias.
- `myml.layers.conv2d.Conv2d(in_channels, out_channels, kernel_h, kernel_w, stride_h=1, stride_w=1, padding_h=0, padding_w=0, rng=None)`.
- `myml.networks.mlp.MLP(input_features, hidden_layer_features, activation, output_features, rng=None)`: Linear layers with the activation between consecutive layers.
- `myml.networks.cnn.CNN(input_channels, input_height, input_width, conv_out_channels, kernel_h, kernel_w, activation, output_features, stride_h=1, stride_w=1, padding_h=0, padding_w=0, rng=None)`: one convolution, the activation, a flatten and a Linear head.
- `myml.optim.SGD(params, learning_rate)` with `step()` and `zero_grad()`.

`rng` may be a `numpy.random.Generator`, an integer seed or `None`. Every
layer and network is callable and has `forward()` and `parameters()`.

## Training a network on MNIST

```python
from myml.data.mnist import MNISTDataset
from myml.data.dataloader import DataLoader
from myml.networks.mlp import MLP
from myml.ops.relu import relu
from myml.losses import cross_entropy
from myml.optim import SGD
from myml.autograd import backward

dataset = MNISTDataset("data/MNIST/train-images-idx3-ubyte",
                       "data/MNIST/train-labels-idx1-ubyte")
loader = DataLoader(dataset, batch_size=32, shuffle=True, seed=2026)

model = MLP(dataset.input_dim(), [64], relu, dataset.target_dim(), rng=0)
optim = SGD(model.parameters(), learning_rate=0.1)

for epoch in range(10):
    total, batches = 0.0, 0
    for inputs, targets in loader:      # resets and reshuffles each epoch
        loss = cross_entropy(model(inputs), targets)
        total += loss[0]
        batches += 1
        backward(loss)
        optim.step()
        optim.zero_grad()
    print(f"epoch {epoch + 1}: loss {total / batches:.4f}")
```

`MNISTDataset` scales pixels to `[0, 1]`, one-hot encodes labels over ten
classes and raises `MNISTFormatError` (a `ValueError`) for a bad magic number,
a truncated file, mismatched counts or a label outside 0–9. `DataLoader` can
also be driven by hand with `has_next()`, `next_batch()` and `reset()`;
`next_batch()` raises `RuntimeError` once the epoch is exhausted, and the
final batch may be smaller than `batch_size`.

Other datasets can subclass `myml.data.dataset.Dataset` by implementing
`__len__`, `input_dim`, `target_dim` and `features`; `get` then returns a
`Sample` with `[1, dim]` tensors.

For convolutional models, reshape each flat batch to `[B, 1, rows, cols]` with
`myml.ops.reshape.reshape` and use `myml.networks.cnn.CNN`.

Accuracy can be computed with
`myml.metrics.compute_metrics(predicted, ground_truth)`, which returns a
`Metrics` with an `accuracy` field.

## What it does not do

- There is no command-line program: training, evaluation and benchmarking are
  done by writing Python against the library.
- The MNIST files are not included or downloaded; point `MNISTDataset` at IDX
  files you already have.
- Models cannot be saved or loaded, and everything runs on the CPU in float32.