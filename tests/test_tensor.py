import numpy as np
import pytest

from quantflow.tensor import Tensor2D, Tensor4D, TensorView, TensorViewPadding

TENSOR_2D_BUFFER = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]], dtype=np.float32)
TENSOR_2D_SCALE = (0.7,)
TENSOR_2D_ZERO_POINT = (8,)
TENSOR_2D_BUFFER_QUANTIZED = np.array([[9, 11, 12], [14, 15, 17]], dtype=np.int8)
TENSOR_2D_BUFFER_DEQUANTIZED = np.array(
    [[0.7, 2.1, 2.8], [4.2, 4.9, 6.2999997]], dtype=np.float32
)

TENSOR_4D_BUFFER = np.array(
    [
        [[[1, 2], [3, 4], [5, 6]], [[7, 8], [9, 10], [11, 12]]],
        [[[13, 14], [15, 16], [17, 18]], [[19, 20], [21, 22], [23, 24]]],
    ],
    dtype=np.float32,
)
TENSOR_4D_SCALE = (0.25,)
TENSOR_4D_ZERO_POINT = (26,)
TENSOR_4D_BUFFER_QUANTIZED = np.array(
    [
        [[[30, 34], [38, 42], [46, 50]], [[54, 58], [62, 66], [70, 74]]],
        [[[78, 82], [86, 90], [94, 98]], [[102, 106], [110, 114], [118, 122]]],
    ],
    dtype=np.int8,
)
TENSOR_4D_VIEW_BUFFER = np.array(
    [[[54, 58], [62, 66], [70, 74]], [[0, 0], [0, 0], [0, 0]]], dtype=np.int8
)
TENSOR_4D_VIEW_MASK = np.array([[True, True, True], [False, False, False]])
TENSOR_4D_VIEW_LEN = 3

TENSOR_4D_TO_TENSOR_2D_BUFFER = np.array(
    [
        [30, 34, 38, 42, 46, 50, 54, 58, 62, 66, 70, 74],
        [78, 82, 86, 90, 94, 98, 102, 106, 110, 114, 118, 122],
    ],
    dtype=np.int8,
)


@pytest.fixture
def tensor_4d():
    return Tensor4D(TENSOR_4D_BUFFER_QUANTIZED, TENSOR_4D_SCALE, TENSOR_4D_ZERO_POINT)


def test_tensor_2d_new():
    tensor = Tensor2D(TENSOR_2D_BUFFER_QUANTIZED, TENSOR_2D_SCALE, TENSOR_2D_ZERO_POINT)
    np.testing.assert_array_equal(tensor.buffer, TENSOR_2D_BUFFER_QUANTIZED)
    assert tensor.scale == (float(np.float32(0.7)),)
    assert tensor.zero_point == (8,)


def test_tensor_2d_quantize():
    tensor = Tensor2D.quantize(TENSOR_2D_BUFFER, TENSOR_2D_SCALE, TENSOR_2D_ZERO_POINT)
    np.testing.assert_array_equal(tensor.buffer, TENSOR_2D_BUFFER_QUANTIZED)
    assert tensor.buffer.dtype == np.int8


def test_tensor_2d_dequantize():
    tensor = Tensor2D(TENSOR_2D_BUFFER_QUANTIZED, TENSOR_2D_SCALE, TENSOR_2D_ZERO_POINT)
    np.testing.assert_array_equal(tensor.dequantize(), TENSOR_2D_BUFFER_DEQUANTIZED)


def test_tensor_2d_to_tensor_4d():
    tensor_2d = Tensor2D(TENSOR_4D_TO_TENSOR_2D_BUFFER, TENSOR_4D_SCALE, TENSOR_4D_ZERO_POINT)
    tensor_4d = tensor_2d.to_4d(2, 3, 2)
    np.testing.assert_array_equal(tensor_4d.buffer, TENSOR_4D_BUFFER_QUANTIZED)


def test_tensor_4d_new(tensor_4d):
    np.testing.assert_array_equal(tensor_4d.buffer, TENSOR_4D_BUFFER_QUANTIZED)
    assert tensor_4d.scale == (0.25,)
    assert tensor_4d.zero_point == (26,)


def test_tensor_4d_quantize():
    tensor = Tensor4D.quantize(TENSOR_4D_BUFFER, TENSOR_4D_SCALE, TENSOR_4D_ZERO_POINT)
    np.testing.assert_array_equal(tensor.buffer, TENSOR_4D_BUFFER_QUANTIZED)


def test_tensor_4d_dequantize(tensor_4d):
    np.testing.assert_array_equal(tensor_4d.dequantize(), TENSOR_4D_BUFFER)


def test_tensor_4d_view(tensor_4d):
    view = tensor_4d.view((1, 1), 0, TensorViewPadding.SAME, (1, 1), (2, 3))
    assert isinstance(view, TensorView)
    np.testing.assert_array_equal(view.buffer, TENSOR_4D_VIEW_BUFFER)
    np.testing.assert_array_equal(view.mask, TENSOR_4D_VIEW_MASK)
    assert view.len == TENSOR_4D_VIEW_LEN


def test_tensor_4d_to_tensor_2d(tensor_4d):
    tensor_2d = tensor_4d.to_2d()
    np.testing.assert_array_equal(tensor_2d.buffer, TENSOR_4D_TO_TENSOR_2D_BUFFER)


def test_round_trip_4d_2d_4d(tensor_4d):
    assert tensor_4d.to_2d().to_4d(2, 3, 2) == tensor_4d


def test_view_valid_padding(tensor_4d):
    view = tensor_4d.view((0, 1), 1, TensorViewPadding.VALID, (1, 1), (2, 2))
    expected = np.array([[[86, 90], [94, 98]], [[110, 114], [118, 122]]], dtype=np.int8)
    np.testing.assert_array_equal(view.buffer, expected)
    assert view.mask.all()
    assert view.len == 4


def test_view_valid_padding_out_of_bounds(tensor_4d):
    with pytest.raises(IndexError):
        tensor_4d.view((1, 1), 0, TensorViewPadding.VALID, (1, 1), (2, 3))


def test_view_same_padding_leading_edge(tensor_4d):
    view = tensor_4d.view((0, 0), 0, TensorViewPadding.SAME, (1, 1), (3, 3))
    expected_mask = np.array(
        [[False, False, False], [False, True, True], [False, True, True]]
    )
    np.testing.assert_array_equal(view.mask, expected_mask)
    assert view.len == 4
    np.testing.assert_array_equal(view.buffer[1, 1], np.array([30, 34], dtype=np.int8))
    np.testing.assert_array_equal(view.buffer[0, 0], np.array([0, 0], dtype=np.int8))


def test_view_bad_batch(tensor_4d):
    with pytest.raises(IndexError):
        tensor_4d.view((0, 0), 2, TensorViewPadding.SAME, (1, 1), (1, 1))


def test_mismatched_quantization_raises():
    with pytest.raises(ValueError):
        Tensor2D(TENSOR_2D_BUFFER_QUANTIZED, (0.1, 0.2), (1,))


def test_dequantize_per_channel_raises():
    tensor = Tensor2D(TENSOR_2D_BUFFER_QUANTIZED, (0.1, 0.2), (1, 2))
    with pytest.raises(ValueError):
        tensor.dequantize()


def test_to_4d_too_small_raises():
    tensor = Tensor2D(TENSOR_2D_BUFFER_QUANTIZED, TENSOR_2D_SCALE, TENSOR_2D_ZERO_POINT)
    with pytest.raises(ValueError):
        tensor.to_4d(2, 2, 1)


def test_wrong_dimensions_raise():
    with pytest.raises(ValueError):
        Tensor4D(TENSOR_2D_BUFFER_QUANTIZED, TENSOR_2D_SCALE, TENSOR_2D_ZERO_POINT)


def test_float_buffer_rejected():
    with pytest.raises(TypeError):
        Tensor2D(TENSOR_2D_BUFFER, TENSOR_2D_SCALE, TENSOR_2D_ZERO_POINT)


def test_equality_depends_on_contents():
    first = Tensor2D([[1, 2]], (0.5,), (0,))
    second = Tensor2D([[1, 2]], (0.5,), (0,))
    third = Tensor2D([[1, 3]], (0.5,), (0,))
    assert first == second
    assert not first == third