"""Affine quantization between floating-point and integer values."""

from __future__ import annotations

from typing import Any

import numpy as np

DEFAULT_DTYPE = np.dtype(np.int8)


def _integer_dtype(zero_point: Any) -> np.dtype:
    """Return the integer type that quantized values take for a zero point."""
    if isinstance(zero_point, (np.ndarray, np.generic)):
        dtype = np.asarray(zero_point).dtype
        if dtype.kind in "iu":
            return dtype
    return DEFAULT_DTYPE


def _round_half_away(values: np.ndarray) -> np.ndarray:
    truncated = np.trunc(values)
    return np.where(np.abs(values - truncated) >= 0.5, truncated + np.sign(values), truncated)


def _saturating_cast(values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    info = np.iinfo(dtype)
    values = np.nan_to_num(values, nan=0.0, posinf=np.inf, neginf=-np.inf)
    high = values >= float(info.max)
    low = values <= float(info.min)
    result = np.where(high | low, 0.0, values).astype(dtype)
    result = np.where(high, info.max, result)
    result = np.where(low, info.min, result)
    return np.asarray(result).astype(dtype)


def quantize(value, scale, zero_point):
    """Quantize a float (or array of floats) with the given scale and zero point.

    The arithmetic is carried out in single precision, rounded half away from
    zero and saturated to the range of the zero point's integer type (``int8``
    for plain Python integers).
    """
    dtype = _integer_dtype(zero_point)
    scaled = np.asarray(value, dtype=np.float32) / np.float32(scale) + np.asarray(
        zero_point
    ).astype(np.float32)
    rounded = _round_half_away(scaled.astype(np.float64))
    result = _saturating_cast(rounded, dtype)
    return result[()] if result.ndim == 0 else result


def dequantize(value, scale, zero_point):
    """Map a quantized integer (or array of them) back to single-precision floats."""
    result = np.float32(scale) * (
        np.asarray(value).astype(np.float32) - np.asarray(zero_point).astype(np.float32)
    )
    result = np.asarray(result, dtype=np.float32)
    return result[()] if result.ndim == 0 else result