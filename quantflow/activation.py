"""Activation functions on quantized values."""

from __future__ import annotations

import enum

import numpy as np

from quantflow.quantize import quantize


def _zero_point_like(value, zero_point):
    """Give the zero point the integer type of ``value`` when it has one."""
    if isinstance(value, (np.ndarray, np.generic)):
        dtype = np.asarray(value).dtype
        if dtype.kind in "iu":
            return dtype.type(zero_point)
    return zero_point


def relu(value, zero_point):
    """Rectified linear unit: values below the zero point are clamped to it."""
    return np.maximum(value, _zero_point_like(value, zero_point))


def relu6(value, scale, zero_point):
    """ReLU additionally clamped from above at the quantized value of 6."""
    zero_point = _zero_point_like(value, zero_point)
    return np.minimum(relu(value, zero_point), quantize(6.0, scale, zero_point))


def softmax(value, total, scale, zero_point):
    """Quantize ``exp(value) / total``, one term of a softmax distribution."""
    exponent = np.exp(np.asarray(value, dtype=np.float32))
    return quantize(exponent / np.float32(total), scale, zero_point)


class FusedActivation(enum.Enum):
    """Activation function fused into an operator's output."""

    NONE = "none"
    RELU = "relu"
    RELU6 = "relu6"

    def apply(self, value, scale, zero_point):
        """Apply this activation to quantized ``value``."""
        if self is FusedActivation.RELU:
            return relu(value, zero_point)
        if self is FusedActivation.RELU6:
            return relu6(value, scale, zero_point)
        return value