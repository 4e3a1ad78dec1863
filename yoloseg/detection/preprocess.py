"""Frame preprocessing for the segmentation model."""

from typing import NamedTuple

import cv2
import numpy as np


class PreprocessResult(NamedTuple):
    """Model input plus the ratios that map model space back to the frame.

    Attributes:
        tensor: float32 array [1, model_height, model_width, 3] in [0, 1].
        x_ratio: padded_size / frame width.
        y_ratio: padded_size / frame height.
        padded_size: Side of the square the frame was padded to.
    """

    tensor: np.ndarray
    x_ratio: float
    y_ratio: float
    padded_size: int


def validate_frame(frame) -> np.ndarray:
    """Check that a frame holds pixels.

    Raises:
        ValueError: If the frame is missing, empty or not an image array.
    """
    if frame is None:
        raise ValueError("Frame is None; the source produced no pixels")
    frame = np.asarray(frame)
    if frame.ndim not in (2, 3) or frame.size == 0:
        raise ValueError(f"Frame has no pixels (shape {frame.shape})")
    if frame.ndim == 3 and frame.shape[2] not in (1, 3, 4):
        raise ValueError(f"Unsupported channel count {frame.shape[2]}")
    return frame


def pad_to_square(frame: np.ndarray) -> np.ndarray:
    """Zero-pad the bottom and right edges so the frame becomes square."""
    height, width = frame.shape[:2]
    size = max(height, width)
    return cv2.copyMakeBorder(
        frame, 0, size - height, 0, size - width, cv2.BORDER_CONSTANT, value=0
    )


def preprocess(frame: np.ndarray, model_width: int, model_height: int) -> PreprocessResult:
    """Prepare a frame for inference.

    Args:
        frame: RGB frame (H, W, 3).
        model_width: Model input width.
        model_height: Model input height.

    Returns:
        PreprocessResult with the batched tensor and ratios.

    Raises:
        ValueError: If the frame holds no pixels.
    """
    frame = validate_frame(frame)
    if frame.ndim == 2:
        frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGB)
    elif frame.shape[2] == 4:
        frame = cv2.cvtColor(frame, cv2.COLOR_RGBA2RGB)
    elif frame.shape[2] == 1:
        frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGB)

    height, width = frame.shape[:2]
    padded = pad_to_square(frame)
    padded_size = padded.shape[0]

    resized = cv2.resize(
        padded, (model_width, model_height), interpolation=cv2.INTER_LINEAR
    )
    tensor = (resized.astype(np.float32) / 255.0)[np.newaxis, ...]

    return PreprocessResult(
        tensor=tensor,
        x_ratio=padded_size / width,
        y_ratio=padded_size / height,
        padded_size=padded_size,
    )
