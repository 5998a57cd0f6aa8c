"""Quantized 2-D average pooling."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from quantflow.activation import FusedActivation
from quantflow.quantize import _round_half_away, _saturating_cast
from quantflow.tensor import Tensor4D, TensorViewPadding


@dataclass(frozen=True)
class AveragePool2DOptions:
    """Options of the AveragePool2D operator."""

    fused_activation: FusedActivation = FusedActivation.NONE
    view_padding: TensorViewPadding = TensorViewPadding.SAME
    strides: tuple[int, int] = (1, 1)


def _single(parameter):
    if isinstance(parameter, (list, tuple, np.ndarray)):
        if len(parameter) != 1:
            raise ValueError("expected a single quantization parameter")
        return parameter[0]
    return parameter


def average_pool_2d(
    input, filter_shape, output_scale, output_zero_point, options, constants, output_shape
):
    """Average-pool a single-batch tensor into a tensor of ``output_shape`` rows and columns.

    ``constants`` is the pair ``(multiplier, offset)`` that maps the mean of each
    pooled region onto the output quantization.
    """
    if input.shape[0] != 1 or len(input.scale) != 1:
        raise ValueError("the input must have one batch and a single quantization")
    dtype = input.buffer.dtype
    scale = float(np.float32(_single(output_scale)))
    zero_point = dtype.type(_single(output_zero_point))
    multiplier, offset = (np.float32(value) for value in constants)
    rows, cols = output_shape
    filter_rows, filter_cols = filter_shape

    output = np.empty((1, rows, cols, input.shape[3]), dtype=dtype)
    for i, j in np.ndindex(rows, cols):
        view = input.view(
            (i, j), 0, options.view_padding, options.strides, (filter_rows, filter_cols)
        )
        sums = view.buffer.astype(np.int64).sum(axis=(0, 1))
        with np.errstate(divide="ignore", invalid="ignore"):
            mean = np.float32(1.0) / np.float32(view.len) * sums.astype(np.float32)
            result = multiplier * mean + offset
        quantized = _saturating_cast(_round_half_away(result.astype(np.float64)), dtype)
        output[0, i, j] = options.fused_activation.apply(quantized, scale, zero_point)
    return Tensor4D(output, (scale,), (zero_point,))