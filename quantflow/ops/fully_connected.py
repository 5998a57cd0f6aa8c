"""Quantized fully connected (dense) layer."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from quantflow.activation import FusedActivation
from quantflow.quantize import _round_half_away, _saturating_cast
from quantflow.tensor import Tensor2D


@dataclass(frozen=True)
class FullyConnectedOptions:
    """Options of the FullyConnected operator."""

    fused_activation: FusedActivation = FusedActivation.NONE


def _single(parameter):
    if isinstance(parameter, (list, tuple, np.ndarray)):
        if len(parameter) != 1:
            raise ValueError("expected a single quantization parameter")
        return parameter[0]
    return parameter


def fully_connected(input, weights, output_scale, output_zero_point, options, constants):
    """Multiply a quantized matrix by quantized weights.

    ``constants`` is the 4-tuple precomputed for the layer: the per-column bias
    terms, the output multiplier, the per-column weight sums scaled by the
    input zero point, and the constant zero-point product term.
    """
    if len(input.scale) != 1 or len(weights.scale) != 1:
        raise ValueError("input and weights must have a single quantization")
    input_rows, input_cols = input.shape
    weight_rows, weight_cols = weights.shape
    if weight_rows != input_cols:
        raise ValueError(
            f"weights have {weight_rows} rows, the input has {input_cols} columns"
        )

    biases, multiplier, column_sums, offset = constants
    biases = np.asarray(biases, dtype=np.float32).reshape(-1)
    column_sums = np.asarray(column_sums, dtype=np.int64).reshape(-1)
    if biases.size < weight_cols or column_sums.size < weight_cols:
        raise ValueError(f"expected {weight_cols} per-column constants")
    multiplier = np.float32(multiplier)
    offset = int(offset)

    dtype = input.buffer.dtype
    scale = float(np.float32(_single(output_scale)))
    zero_point = dtype.type(_single(output_zero_point))

    values = input.buffer.astype(np.int64)
    dot = values @ weights.buffer.astype(np.int64)
    row_sums = values.sum(axis=1, keepdims=True) * int(weights.zero_point[0])
    accumulated = (dot - row_sums - column_sums[:weight_cols] + offset).astype(np.float32)

    base = np.float32(zero_point) + biases[:weight_cols]
    result = base + multiplier * accumulated
    quantized = _saturating_cast(_round_half_away(result.astype(np.float64)), dtype)
    output = np.asarray(options.fused_activation.apply(quantized, scale, zero_point), dtype=dtype)
    return Tensor2D(output.reshape(input_rows, weight_cols), (scale,), (zero_point,))