import numpy as np
import pytest

from yoloseg.core.utils import alpha_over, hex_to_rgba
from yoloseg.detection.base import Detection
from yoloseg.render import Canvas, Colors, compose, render_boxes, render_overlay


class TestCanvas:
    def test_starts_transparent(self):
        canvas = Canvas(64, 32)
        assert canvas.shape == (32, 64, 4)
        assert canvas.width == 64 and canvas.height == 32
        assert not canvas.buffer.any()

    def test_rejects_empty_size(self):
        with pytest.raises(ValueError):
            Canvas(0, 10)

    def test_put_image_clips_at_edges(self):
        canvas = Canvas(10, 10)
        image = np.full((4, 4, 4), 9, dtype=np.uint8)

        canvas.put_image(image, x=8, y=-2)

        assert canvas.buffer.sum() == 2 * 2 * 4 * 9
        assert canvas.buffer[0:2, 8:10].all()

    def test_put_image_requires_rgba(self):
        with pytest.raises(ValueError):
            Canvas(10, 10).put_image(np.zeros((4, 4, 3), dtype=np.uint8))

    def test_clear_counts(self):
        canvas = Canvas(4, 4)
        canvas.fill_rect(0, 0, 3, 3, (1, 2, 3))
        canvas.clear()
        assert canvas.clear_count == 1
        assert not canvas.buffer.any()


def test_render_overlay_replaces_previous_content():
    canvas = Canvas(8, 8)
    canvas.fill_rect(0, 0, 8, 8, (255, 0, 0))
    overlay = np.zeros((8, 8, 4), dtype=np.uint8)
    overlay[2, 3] = (0, 255, 0, 150)

    render_overlay(canvas, overlay)

    np.testing.assert_array_equal(canvas.buffer[2, 3], [0, 255, 0, 150])
    assert canvas.buffer[0, 0].sum() == 0


def test_render_boxes_draws_outline_and_tag():
    canvas = Canvas(640, 640)
    detection = Detection(
        box=(100, 200, 150, 120), score=0.873, label="dog", class_id=16,
        color=(203, 56, 255, 150),
    )

    render_boxes(canvas, [detection])

    # left edge of the outline, opaque class colour
    np.testing.assert_array_equal(canvas.buffer[175, 200], [203, 56, 255, 255])
    # tag above the box
    assert canvas.buffer[85:100, 200:260, 3].all()
    # box interior untouched
    assert canvas.buffer[175, 260].sum() == 0


def test_render_boxes_tag_clamped_to_top():
    canvas = Canvas(640, 640)
    detection = Detection(box=(0, 10, 50, 50), score=0.5, label="cat", class_id=15)

    render_boxes(canvas, [detection])

    assert canvas.buffer[5, 20, 3] == 255


def test_compose_with_empty_canvas_returns_frame():
    frame = np.random.default_rng(1).integers(0, 256, (48, 64, 3), dtype=np.uint8)

    np.testing.assert_array_equal(compose(frame, Canvas(32, 32)), frame)


def test_compose_stretches_opaque_canvas_over_frame():
    frame = np.zeros((48, 64, 3), dtype=np.uint8)
    canvas = Canvas(32, 32)
    canvas.fill_rect(0, 0, 32, 32, (10, 20, 30))

    out = compose(frame, canvas)

    assert out.shape == (48, 64, 3)
    np.testing.assert_array_equal(out[24, 32], [10, 20, 30])


def test_alpha_over_mixes_by_layer_alpha():
    background = np.full((1, 2, 3), 100, dtype=np.uint8)
    layer = np.array([[[200, 0, 0, 0], [200, 0, 0, 255]]], dtype=np.uint8)

    out = alpha_over(background, layer)

    np.testing.assert_array_equal(out[0, 0], [100, 100, 100])
    np.testing.assert_array_equal(out[0, 1], [200, 0, 0])


def test_alpha_over_rejects_bad_layers():
    with pytest.raises(ValueError):
        alpha_over(np.zeros((2, 2, 3)), np.zeros((3, 3, 4)))
    with pytest.raises(ValueError):
        alpha_over(np.zeros((2, 2, 3)), np.zeros((2, 2, 3)))


def test_colors_cycle_through_palette():
    colors = Colors()
    assert colors.get(0) == "#FF3838"
    assert colors.get(20) == colors.get(0)
    assert colors.rgba(1, 150) == (255, 157, 151, 150)
    assert hex_to_rgba("#00C2FF") == (0, 194, 255, 255)
    with pytest.raises(ValueError):
        hex_to_rgba("#FFF")
