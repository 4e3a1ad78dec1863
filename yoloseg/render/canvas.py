"""In-memory RGBA drawing surface."""

from typing import Sequence, Tuple

import cv2
import numpy as np


FONT = cv2.FONT_HERSHEY_SIMPLEX
# Pixel height of FONT at scale 1.0
FONT_BASE_HEIGHT = 22


def _rgba(color: Sequence[int]) -> Tuple[int, int, int, int]:
    if len(color) == 3:
        return (int(color[0]), int(color[1]), int(color[2]), 255)
    return tuple(int(c) for c in color[:4])


class Canvas:
    """RGBA pixel buffer with a small 2-D drawing API.

    Attributes:
        buffer: (height, width, 4) uint8 pixels.
        clear_count: Number of times the canvas has been cleared.
    """

    def __init__(self, width: int, height: int):
        """Initialize a transparent canvas.

        Args:
            width: Canvas width in pixels.
            height: Canvas height in pixels.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid canvas size {width}x{height}")
        self.buffer = np.zeros((height, width, 4), dtype=np.uint8)
        self.clear_count = 0

    @property
    def width(self) -> int:
        return self.buffer.shape[1]

    @property
    def height(self) -> int:
        return self.buffer.shape[0]

    @property
    def shape(self) -> tuple:
        return self.buffer.shape

    def clear(self) -> None:
        """Make every pixel transparent."""
        self.buffer[:] = 0
        self.clear_count += 1

    def put_image(self, image: np.ndarray, x: int = 0, y: int = 0) -> None:
        """Copy RGBA pixels onto the canvas at (x, y), clipping at the edges.

        Raises:
            ValueError: If the image is not RGBA.
        """
        if image.ndim != 3 or image.shape[2] != 4:
            raise ValueError(f"Expected an RGBA image, got shape {image.shape}")
        h, w = image.shape[:2]
        top, left = max(y, 0), max(x, 0)
        bottom, right = min(y + h, self.height), min(x + w, self.width)
        if bottom <= top or right <= left:
            return
        self.buffer[top:bottom, left:right] = image[
            top - y : bottom - y, left - x : right - x
        ].astype(np.uint8)

    def stroke_rect(
        self, x: int, y: int, width: int, height: int, color, line_width: int = 2
    ) -> None:
        """Draw a rectangle outline."""
        cv2.rectangle(
            self.buffer,
            (int(x), int(y)),
            (int(x + width), int(y + height)),
            _rgba(color),
            max(int(line_width), 1),
        )

    def fill_rect(self, x: int, y: int, width: int, height: int, color) -> None:
        """Draw a filled rectangle."""
        cv2.rectangle(
            self.buffer,
            (int(x), int(y)),
            (int(x + width), int(y + height)),
            _rgba(color),
            cv2.FILLED,
        )

    def measure_text(self, text: str, font_size: int) -> Tuple[int, int]:
        """Return (width, height) of text rendered at ``font_size`` pixels."""
        scale = font_size / FONT_BASE_HEIGHT
        thickness = max(int(round(scale)), 1)
        (width, height), baseline = cv2.getTextSize(text, FONT, scale, thickness)
        return width, height + baseline

    def fill_text(self, text: str, x: int, y: int, color, font_size: int) -> None:
        """Draw text with its top-left corner at (x, y)."""
        scale = font_size / FONT_BASE_HEIGHT
        thickness = max(int(round(scale)), 1)
        (_, height), _ = cv2.getTextSize(text, FONT, scale, thickness)
        cv2.putText(
            self.buffer,
            text,
            (int(x), int(y + height)),
            FONT,
            scale,
            _rgba(color),
            thickness,
            cv2.LINE_AA,
        )
