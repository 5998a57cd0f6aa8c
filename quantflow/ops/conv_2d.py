"""Quantized 2-D convolution."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from quantflow.activation import FusedActivation
from quantflow.quantize import _round_half_away, _saturating_cast
from quantflow.tensor import Tensor4D, TensorViewPadding


@dataclass(frozen=True)
class Conv2DOptions:
    """Options of the Conv2D operator."""

    fused_activation: FusedActivation = FusedActivation.NONE
    view_padding: TensorViewPadding = TensorViewPadding.SAME
    strides: tuple[int, int] = (1, 1)


def _single(parameter):
    if isinstance(parameter, (list, tuple, np.ndarray)):
        if len(parameter) != 1:
            raise ValueError("expected a single quantization parameter")
        return parameter[0]
    return parameter


def _per_channel(values: np.ndarray, count: int) -> np.ndarray:
    """Pick one value per channel, falling back to the first where there are fewer."""
    values = values.reshape(-1)
    if values.size == 0:
        raise ValueError("expected at least one value")
    index = np.arange(count)
    return values[np.where(index < values.size, index, 0)]


def conv_2d(input, filters, output_scale, output_zero_point, options, constants, output_shape):
    """Convolve a single-batch tensor with one filter per output channel.

    ``constants`` holds the per-filter bias terms and the per-quantization
    multipliers precomputed for the output scale.
    """
    if input.shape[0] != 1 or len(input.scale) != 1:
        raise ValueError("the input must have one batch and a single quantization")
    batches, filter_rows, filter_cols, filter_chans = filters.shape
    chans = input.shape[3]
    if filter_chans != chans:
        raise ValueError(f"filters have {filter_chans} channels, the input has {chans}")

    dtype = input.buffer.dtype
    scale = float(np.float32(_single(output_scale)))
    zero_point = dtype.type(_single(output_zero_point))
    input_zero_point = int(input.zero_point[0])
    filters_zero_point = _per_channel(
        np.array([int(z) for z in filters.zero_point], dtype=np.int64), batches
    )
    biases = np.asarray(constants[0], dtype=np.float32).reshape(-1)
    if biases.size < batches:
        raise ValueError(f"expected {batches} bias constants, got {biases.size}")
    multipliers = _per_channel(np.asarray(constants[1], dtype=np.float32), batches)
    base = np.float32(zero_point) + biases[:batches]
    weights = filters.buffer.astype(np.int64)

    rows, cols = output_shape
    output = np.empty((1, rows, cols, batches), dtype=dtype)
    for i, j in np.ndindex(rows, cols):
        view = input.view(
            (i, j), 0, options.view_padding, options.strides, (filter_rows, filter_cols)
        )
        region = view.buffer.astype(np.int64)
        dot = (weights * region).sum(axis=(1, 2, 3))
        region_sum = region.sum() * filters_zero_point
        masked = input_zero_point * weights[:, view.mask].sum(axis=(1, 2))
        offset = view.len * chans * input_zero_point * filters_zero_point
        accumulated = (dot - region_sum - masked + offset).astype(np.float32)
        result = base + multipliers * accumulated
        quantized = _saturating_cast(_round_half_away(result.astype(np.float64)), dtype)
        output[0, i, j] = options.fused_activation.apply(quantized, scale, zero_point)
    return Tensor4D(output, (scale,), (zero_point,))