"""Quantized 2-D and 4-D tensors and the views operators take of them."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from quantflow.quantize import dequantize, quantize


class TensorViewPadding(enum.Enum):
    """How a view treats positions outside the tensor."""

    SAME = "same"
    """The view may exceed the tensor; positions outside it read as zeros."""
    VALID = "valid"
    """The view must stay inside the tensor."""


@dataclass(frozen=True, eq=False)
class TensorView:
    """A region extracted from one batch of a 4-D tensor.

    ``buffer`` has shape ``(rows, cols, chans)``; ``mask`` marks the positions
    that lie inside the tensor and ``len`` counts them.
    """

    buffer: np.ndarray
    mask: np.ndarray
    len: int


def _as_integer_buffer(buffer, ndim: int) -> np.ndarray:
    if not isinstance(buffer, np.ndarray):
        buffer = np.array(buffer, dtype=np.int8)
    if buffer.ndim != ndim:
        raise ValueError(f"expected a {ndim}-dimensional buffer, got {buffer.ndim} dimensions")
    if buffer.dtype.kind not in "iu":
        raise TypeError(f"quantized buffers hold integers, not {buffer.dtype}")
    return buffer


def _quantization(buffer: np.ndarray, scale, zero_point):
    scale = tuple(float(np.float32(s)) for s in scale)
    zero_point = tuple(buffer.dtype.type(z) for z in zero_point)
    if not scale or len(scale) != len(zero_point):
        raise ValueError("scale and zero point must be non-empty and of equal length")
    return scale, zero_point


def _single(parameter) -> object:
    if isinstance(parameter, (Sequence, np.ndarray)):
        if len(parameter) != 1:
            raise ValueError("expected a single quantization parameter")
        return parameter[0]
    return parameter


def _single_quantization(tensor) -> tuple[float, object]:
    if len(tensor.scale) != 1:
        raise ValueError("only tensors with a single quantization can be dequantized")
    return tensor.scale[0], tensor.zero_point[0]


@dataclass(eq=False)
class Tensor2D:
    """A quantized matrix with per-tensor or per-column quantization parameters."""

    buffer: np.ndarray
    scale: tuple
    zero_point: tuple

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        self.buffer = _as_integer_buffer(self.buffer, 2)
        self.scale, self.zero_point = _quantization(self.buffer, self.scale, self.zero_point)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tensor2D):
            return NotImplemented
        return (
            self.buffer.shape == other.buffer.shape
            and bool(np.array_equal(self.buffer, other.buffer))
            and self.scale == other.scale
            and self.zero_point == other.zero_point
        )

    @property
    def shape(self) -> tuple[int, int]:
        return self.buffer.shape

    @classmethod
    def quantize(cls, values, scale, zero_point) -> "Tensor2D":
        """Quantize a float matrix with a single scale and zero point."""
        scale, zero_point = _single(scale), _single(zero_point)
        values = np.asarray(values, dtype=np.float32)
        if values.ndim != 2:
            raise ValueError("expected a 2-dimensional array of values")
        buffer = np.asarray(quantize(values, scale, zero_point))
        return cls(buffer, (scale,), (zero_point,))

    def dequantize(self) -> np.ndarray:
        """Return the float32 matrix this tensor represents."""
        scale, zero_point = _single_quantization(self)
        return np.asarray(dequantize(self.buffer, scale, zero_point))

    def to_4d(self, rows: int, cols: int, chans: int) -> "Tensor4D":
        """Spread each row into a ``(rows, cols, chans)`` block, one batch per row."""
        needed = rows * cols * chans
        if self.buffer.shape[1] < needed:
            raise ValueError(
                f"a row of {self.buffer.shape[1]} values cannot fill {rows}x{cols}x{chans}"
            )
        batches = self.buffer.shape[0]
        buffer = self.buffer[:, :needed].reshape(batches, rows, cols, chans).copy()
        return Tensor4D(buffer, self.scale, self.zero_point)


@dataclass(eq=False)
class Tensor4D:
    """A quantized tensor of shape ``(batches, rows, cols, chans)``."""

    buffer: np.ndarray
    scale: tuple
    zero_point: tuple

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        self.buffer = _as_integer_buffer(self.buffer, 4)
        self.scale, self.zero_point = _quantization(self.buffer, self.scale, self.zero_point)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tensor4D):
            return NotImplemented
        return (
            self.buffer.shape == other.buffer.shape
            and bool(np.array_equal(self.buffer, other.buffer))
            and self.scale == other.scale
            and self.zero_point == other.zero_point
        )

    @property
    def shape(self) -> tuple[int, int, int, int]:
        return self.buffer.shape

    @classmethod
    def quantize(cls, values, scale, zero_point) -> "Tensor4D":
        """Quantize a 4-D float array with a single scale and zero point."""
        scale, zero_point = _single(scale), _single(zero_point)
        values = np.asarray(values, dtype=np.float32)
        if values.ndim != 4:
            raise ValueError("expected a 4-dimensional array of values")
        buffer = np.asarray(quantize(values, scale, zero_point))
        return cls(buffer, (scale,), (zero_point,))

    def dequantize(self) -> np.ndarray:
        """Return the float32 array this tensor represents."""
        scale, zero_point = _single_quantization(self)
        return np.asarray(dequantize(self.buffer, scale, zero_point))

    def to_2d(self) -> Tensor2D:
        """Flatten each batch into one row, channels varying fastest."""
        batches = self.buffer.shape[0]
        return Tensor2D(self.buffer.reshape(batches, -1).copy(), self.scale, self.zero_point)

    def view(self, focus, batch, padding, strides, shape) -> TensorView:
        """Extract a ``shape``-sized region of ``batch`` around ``focus``.

        With SAME padding the view is shifted back by half its size and the
        positions outside the tensor read as zeros; with VALID padding the view
        starts at the focus and must lie inside the tensor.
        """
        batches, rows, cols, chans = self.buffer.shape
        if not 0 <= batch < batches:
            raise IndexError(f"batch {batch} out of range for {batches} batches")
        view_rows, view_cols = shape
        row_start = strides[0] * focus[0]
        col_start = strides[1] * focus[1]
        row_index = row_start + np.arange(view_rows)
        col_index = col_start + np.arange(view_cols)
        source = self.buffer[batch]

        if padding is TensorViewPadding.VALID:
            if view_rows and view_cols and (row_index[-1] >= rows or col_index[-1] >= cols):
                raise IndexError("view exceeds the tensor bounds with valid padding")
            buffer = source[np.ix_(row_index, col_index)].copy()
            mask = np.ones((view_rows, view_cols), dtype=bool)
            return TensorView(buffer, mask, view_rows * view_cols)

        row_index = row_index - (view_rows - 1) // 2
        col_index = col_index - (view_cols - 1) // 2
        mask = np.outer((row_index >= 0) & (row_index < rows), (col_index >= 0) & (col_index < cols))
        buffer = np.zeros((view_rows, view_cols, chans), dtype=self.buffer.dtype)
        if mask.any():
            gathered = source[
                np.ix_(np.clip(row_index, 0, rows - 1), np.clip(col_index, 0, cols - 1))
            ]
            buffer[mask] = gathered[mask]
        return TensorView(buffer, mask, int(mask.sum()))