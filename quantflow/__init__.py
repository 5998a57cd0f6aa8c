"""Quantized tensors, quantization, activations and inference operators."""

__version__ = "0.1.0"