"""Softmax as an operator on quantized matrices."""

from __future__ import annotations

import numpy as np

from quantflow import activation
from quantflow.tensor import Tensor2D


def _single(parameter):
    if isinstance(parameter, (list, tuple, np.ndarray)):
        if len(parameter) != 1:
            raise ValueError("expected a single quantization parameter")
        return parameter[0]
    return parameter


def softmax(input, output_scale, output_zero_point):
    """Apply softmax across every value of a quantized matrix.

    The inputs are scaled (their zero point is not subtracted), exponentiated
    in single precision, and each term is quantized with the output
    parameters.
    """
    if len(input.scale) != 1:
        raise ValueError("the input must have a single quantization")
    dtype = input.buffer.dtype
    scale = float(np.float32(_single(output_scale)))
    zero_point = dtype.type(_single(output_zero_point))

    scaled = input.buffer.astype(np.float32) * np.float32(input.scale[0])
    exponents = np.exp(scaled).ravel(order="F")
    # Summed in order, column by column, in single precision.
    total = np.cumsum(exponents, dtype=np.float32)[-1] if exponents.size else np.float32(0)

    output = np.asarray(activation.softmax(scaled, total, scale, zero_point), dtype=dtype)
    return Tensor2D(output.reshape(input.shape), (scale,), (zero_point,))