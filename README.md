# quantflow

Quantized (integer) neural-network inference operators for small models.
Tensors hold integer values, stored in NumPy arrays, together with their
quantization scale and zero point. Every operator takes quantized inputs and
returns quantized outputs. The caller supplies the constants each operator
needs, already computed.

## Installation

```
pip install quantflow
```

NumPy is the only dependency.

## Modules

### `quantflow.quantize`

- `quantize(value, scale, zero_point)` computes `value / scale + zero_point` in
  single precision and rounds it half away from zero. The result is saturated
  to the integer type of the zero point. A plain Python integer zero point
  gives `int8`. Scalars and arrays are both accepted.
- `dequantize(value, scale, zero_point)` returns
  `scale * (value - zero_point)` as `float32`.

### `quantflow.activation`

- `relu(value, zero_point)` and `relu6(value, scale, zero_point)`. `relu6`
  also clamps from above at the quantized value of 6.
- `softmax(value, total, scale, zero_point)` quantizes one term,
  `exp(value) / total`.
- `FusedActivation` has the members `NONE`, `RELU` and `RELU6`. Its
  `apply(value, scale, zero_point)` method is applied at the end of each
  operator.

### `quantflow.tensor`

- `Tensor2D(buffer, scale, zero_point)` is a quantized matrix.
  `Tensor4D(buffer, scale, zero_point)` is a quantized array of shape
  `(batches, rows, cols, chans)`.
  - Buffers must hold integers. A plain list is taken as `int8`.
  - `scale` and `zero_point` are sequences of equal, non-zero length. Give one
    element for per-tensor quantization, or several for per-channel.
  - Two tensors are equal when their buffers, scales and zero points match.
- `quantize(values, scale, zero_point)` is a class method that builds a tensor
  from floats. `dequantize()` returns the `float32` array. Both need a single
  quantization.
- `Tensor4D.to_2d()` flattens each batch into one row, with channels varying
  fastest.
- `Tensor2D.to_4d(rows, cols, chans)` does the reverse. If a row is longer
  than needed, only its leading values are used.
- `Tensor4D.view(focus, batch, padding, strides, shape)` extracts a window and
  returns a `TensorView` with `buffer`, `mask` and `len`.
  - With `TensorViewPadding.SAME`, the window is centred on the focus.
    Positions outside the tensor read as zero and are masked out.
  - With `TensorViewPadding.VALID`, the window starts at the focus. A window
    that leaves the tensor raises `IndexError`.

### `quantflow.ops`

Each operator lives in its own module:

- `quantflow.ops.average_pool_2d.average_pool_2d(input, filter_shape, output_scale, output_zero_point, options, constants, output_shape)`
  with `AveragePool2DOptions`.
- `quantflow.ops.conv_2d.conv_2d(input, filters, output_scale, output_zero_point, options, constants, output_shape)`
  with `Conv2DOptions`.
- `quantflow.ops.depthwise_conv_2d.depthwise_conv_2d(input, weights, output_scale, output_zero_point, options, constants, output_shape)`
  with `DepthwiseConv2DOptions`.
- `quantflow.ops.fully_connected.fully_connected(input, weights, output_scale, output_zero_point, options, constants)`
  with `FullyConnectedOptions`.
- `quantflow.ops.reshape.reshape(tensor, shape)` reshapes while keeping the
  batches. A shape `(rows, cols, chans)` gives a `Tensor4D`. A column count
  gives a `Tensor2D`.
- `quantflow.ops.softmax.softmax(input, output_scale, output_zero_point)`
  applies softmax across every value of a `Tensor2D`.

The option classes are frozen dataclasses:

- `fused_activation` defaults to `FusedActivation.NONE`.
- The pooling and convolution options also have `view_padding`, which defaults
  to `TensorViewPadding.SAME`, and `strides`, which defaults to `(1, 1)`.

The pooling and convolution operators take a single-batch input. They return a
single-batch `Tensor4D` with `output_shape` rows and columns.

## Example

```python
from quantflow.quantize import quantize
from quantflow.tensor import Tensor2D
from quantflow.ops.softmax import softmax

assert quantize(1.0, 0.2, 3) == 8

tensor = Tensor2D.quantize([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]], [0.7], [8])
restored = tensor.dequantize()

probabilities = softmax(tensor, [0.9], [10])
```

## What it does not do

- It does not read trained model files.
- It does not compute the per-layer constants that the operators take.
- It has no command-line program.

Building a model means calling the operators in order, passing constants
prepared elsewhere.

## Running the tests

```
pip install -e .[test]
pytest
```