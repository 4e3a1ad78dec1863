import numpy as np
import pytest

from yoloseg.detection.preprocess import pad_to_square, preprocess


@pytest.mark.parametrize("width,height", [(640, 480), (480, 640), (300, 300), (1280, 720)])
def test_ratios_follow_padded_size(width, height):
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    result = preprocess(frame, 320, 320)

    size = max(width, height)
    assert result.padded_size == size
    assert result.x_ratio == size / width
    assert result.y_ratio == size / height


def test_tensor_is_batched_and_normalized():
    frame = np.full((100, 200, 3), 255, dtype=np.uint8)
    result = preprocess(frame, 64, 64)

    assert result.tensor.shape == (1, 64, 64, 3)
    assert result.tensor.dtype == np.float32
    assert result.tensor.min() >= 0.0
    assert result.tensor.max() <= 1.0


def test_padding_is_bottom_right_only():
    frame = np.full((100, 200, 3), 255, dtype=np.uint8)
    padded = pad_to_square(frame)

    assert padded.shape == (200, 200, 3)
    assert (padded[:100] == 255).all()
    assert (padded[100:] == 0).all()

    result = preprocess(frame, 64, 64)
    # top-left keeps the image, bottom rows are padding
    assert result.tensor[0, 0, 0, 0] == pytest.approx(1.0)
    assert result.tensor[0, 63, 0, 0] == 0.0


def test_grayscale_and_rgba_frames_are_converted():
    gray = np.zeros((50, 50), dtype=np.uint8)
    rgba = np.zeros((50, 50, 4), dtype=np.uint8)

    assert preprocess(gray, 32, 32).tensor.shape == (1, 32, 32, 3)
    assert preprocess(rgba, 32, 32).tensor.shape == (1, 32, 32, 3)


@pytest.mark.parametrize(
    "frame",
    [None, np.zeros((0, 0, 3), dtype=np.uint8), np.zeros((10, 10, 7), dtype=np.uint8)],
)
def test_frames_without_pixels_raise(frame):
    with pytest.raises(ValueError):
        preprocess(frame, 64, 64)
