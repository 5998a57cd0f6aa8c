"""Reshaping between 2-D and 4-D quantized tensors."""

from __future__ import annotations

from quantflow.tensor import Tensor2D, Tensor4D


def reshape(tensor, shape):
    """Reshape ``tensor``, keeping its batches (the rows of a 2-D tensor).

    ``shape`` gives the dimensions after the batch: ``(rows, cols, chans)``
    yields a :class:`Tensor4D`, a single column count (an int or a 1-tuple)
    yields a :class:`Tensor2D`. Each batch is read with channels varying
    fastest; a target smaller than a batch keeps its leading values.
    """
    if isinstance(shape, int):
        shape = (shape,)
    shape = tuple(int(dim) for dim in shape)
    if isinstance(tensor, Tensor4D):
        flat = tensor.to_2d()
    elif isinstance(tensor, Tensor2D):
        flat = tensor
    else:
        raise TypeError(f"cannot reshape {type(tensor).__name__}")

    if len(shape) == 3:
        return flat.to_4d(*shape)
    if len(shape) == 1:
        (cols,) = shape
        if cols > flat.shape[1]:
            raise ValueError(f"a row of {flat.shape[1]} values cannot fill {cols} columns")
        return Tensor2D(flat.buffer[:, :cols].copy(), flat.scale, flat.zero_point)
    raise ValueError(f"unsupported target shape {shape}")