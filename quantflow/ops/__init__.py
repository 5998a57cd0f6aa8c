"""Quantized operators: average pooling, convolutions, fully connected, reshape and softmax."""