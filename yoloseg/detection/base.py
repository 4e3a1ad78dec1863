"""Base detection protocols and data structures."""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Detection:
    """Standardized detection result.

    Attributes:
        box: Bounding box as (y, x, h, w) in draw-space (canvas) pixels.
        score: Confidence score (0.0 to 1.0).
        label: Class label name.
        class_id: Class integer ID.
        color: RGBA colour used for the mask and the box.
    """

    box: Tuple[int, int, int, int]
    score: float
    label: str
    class_id: int
    color: Optional[Tuple[int, int, int, int]] = field(default=None, compare=False)

    def source_box(
        self, frame_shape: Sequence[int], canvas_shape: Sequence[int]
    ) -> Tuple[float, float, float, float]:
        """Map the draw-space box back onto the source frame.

        The canvas is stretched over the frame, so each axis scales by
        frame size over canvas size. The result is clipped to the frame.

        Args:
            frame_shape: Source frame shape (height, width, ...).
            canvas_shape: Canvas shape (height, width, ...).

        Returns:
            (y, x, h, w) in source-frame pixels.
        """
        frame_h, frame_w = frame_shape[:2]
        canvas_h, canvas_w = canvas_shape[:2]
        sy = frame_h / canvas_h
        sx = frame_w / canvas_w
        y, x, h, w = self.box
        y1 = min(max(y * sy, 0.0), frame_h)
        x1 = min(max(x * sx, 0.0), frame_w)
        y2 = min(max((y + h) * sy, 0.0), frame_h)
        x2 = min(max((x + w) * sx, 0.0), frame_w)
        return (y1, x1, y2 - y1, x2 - x1)


class Detector(Protocol):
    """Protocol for object detectors."""

    def detect(self, frame: np.ndarray) -> List[Detection]:
        """Detect objects in a frame.

        Args:
            frame: Input frame (RGB).

        Returns:
            List of Detection objects.
        """
        ...


class SegmentationModel(Protocol):
    """Protocol for a loaded segmentation network.

    Attributes:
        input_shape: (batch, height, width, channels).
        output_shapes: [detections, prototypes] raw output shapes.
    """

    input_shape: tuple
    output_shapes: list

    def execute(self, tensor: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Run the network on a channel-last [1, H, W, 3] tensor.

        Returns:
            (detections [1, 4 + C + M, N], prototypes) raw outputs.
        """
        ...
