"""Overlay, box and label rendering."""

from typing import Iterable

import cv2
import numpy as np

from ..core.utils import alpha_over
from ..detection.base import Detection
from .canvas import Canvas
from .colors import Colors


WHITE = (255, 255, 255, 255)

_colors = Colors()


def render_overlay(canvas: Canvas, overlay: np.ndarray) -> None:
    """Clear the canvas and draw the mask overlay on it."""
    canvas.clear()
    canvas.put_image(np.clip(overlay, 0, 255).astype(np.uint8))


def render_boxes(canvas: Canvas, detections: Iterable[Detection]) -> None:
    """Draw box outlines and "<label> - <score>%" tags for each detection.

    Tags sit above their box, or at the top edge when there is no room.
    """
    font_size = max(round(max(canvas.width, canvas.height) / 40), 14)
    line_width = max(int(round(max(min(canvas.width, canvas.height) / 200, 2.5))), 1)

    for detection in detections:
        color = detection.color or _colors.rgba(detection.class_id)
        color = (*color[:3], 255)
        y, x, height, width = detection.box

        canvas.stroke_rect(x, y, width, height, color, line_width)

        text = f"{detection.label} - {detection.score * 100:.1f}%"
        text_width, text_height = canvas.measure_text(text, font_size)
        y_text = max(y - (text_height + line_width), 0)
        canvas.fill_rect(
            x - 1, y_text, text_width + line_width, text_height + line_width, color
        )
        canvas.fill_text(text, x - 1, y_text, WHITE, font_size)


def compose(frame: np.ndarray, canvas: Canvas) -> np.ndarray:
    """Stretch the canvas over the frame and alpha-blend it.

    Args:
        frame: RGB frame (H, W, 3).
        canvas: Canvas of any size.

    Returns:
        RGB uint8 image the size of the frame.
    """
    height, width = frame.shape[:2]
    pixels = canvas.buffer
    if pixels.shape[:2] != (height, width):
        pixels = cv2.resize(pixels, (width, height), interpolation=cv2.INTER_LINEAR)
    return alpha_over(frame, pixels)
