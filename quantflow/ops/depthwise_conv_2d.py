"""Quantized depthwise 2-D convolution."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from quantflow.activation import FusedActivation
from quantflow.quantize import _round_half_away, _saturating_cast
from quantflow.tensor import Tensor4D, TensorViewPadding


@dataclass(frozen=True)
class DepthwiseConv2DOptions:
    """Options of the DepthwiseConv2D operator."""

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


def depthwise_conv_2d(
    input, weights, output_scale, output_zero_point, options, constants, output_shape
):
    """Convolve each channel of a single-batch tensor with its own weights.

    Output channels beyond the input's channels read the input's first channel.
    ``constants`` holds the per-channel bias terms and the per-quantization
    multipliers precomputed for the output scale.
    """
    if input.shape[0] != 1 or len(input.scale) != 1:
        raise ValueError("the input must have one batch and a single quantization")
    if weights.shape[0] != 1:
        raise ValueError("depthwise weights must have a single batch")
    _, weight_rows, weight_cols, weight_chans = weights.shape
    chans = input.shape[3]

    dtype = input.buffer.dtype
    scale = float(np.float32(_single(output_scale)))
    zero_point = dtype.type(_single(output_zero_point))
    input_zero_point = int(input.zero_point[0])
    weights_zero_point = _per_channel(
        np.array([int(z) for z in weights.zero_point], dtype=np.int64), weight_chans
    )
    biases = np.asarray(constants[0], dtype=np.float32).reshape(-1)
    if biases.size < weight_chans:
        raise ValueError(f"expected {weight_chans} bias constants, got {biases.size}")
    multipliers = _per_channel(np.asarray(constants[1], dtype=np.float32), weight_chans)
    base = np.float32(zero_point) + biases[:weight_chans]
    kernel = weights.buffer[0].astype(np.int64)
    channel_index = np.where(np.arange(weight_chans) < chans, np.arange(weight_chans), 0)

    rows, cols = output_shape
    output = np.empty((1, rows, cols, weight_chans), dtype=dtype)
    for i, j in np.ndindex(rows, cols):
        view = input.view(
            (i, j), 0, options.view_padding, options.strides, (weight_rows, weight_cols)
        )
        region = view.buffer.astype(np.int64)[..., channel_index]
        dot = (region * kernel).sum(axis=(0, 1))
        region_sum = region.sum(axis=(0, 1)) * weights_zero_point
        masked = input_zero_point * kernel[view.mask].sum(axis=0)
        offset = view.len * input_zero_point * weights_zero_point
        accumulated = (dot - region_sum - masked + offset).astype(np.float32)
        result = base + multipliers * accumulated
        quantized = _saturating_cast(_round_half_away(result.astype(np.float64)), dtype)
        output[0, i, j] = options.fused_activation.apply(quantized, scale, zero_point)
    return Tensor4D(output, (scale,), (zero_point,))