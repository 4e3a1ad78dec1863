"""Canvas rendering for detections and mask overlays."""

from .boxes import compose, render_boxes, render_overlay
from .canvas import Canvas
from .colors import Colors

__all__ = [
    "Canvas",
    "Colors",
    "compose",
    "render_boxes",
    "render_overlay",
]
