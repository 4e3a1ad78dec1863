"""Decoding of raw YOLOv8-seg detection rows."""

from dataclasses import dataclass

import numpy as np


@dataclass
class DecodedPredictions:
    """Column-split detection rows.

    Attributes:
        boxes: (N, 4) boxes as y1, x1, y2, x2 in model space.
        scores: (N,) best class score per row.
        classes: (N,) arg-max class index per row.
        mask_coeffs: (N, M) mask coefficients.
    """

    boxes: np.ndarray
    scores: np.ndarray
    classes: np.ndarray
    mask_coeffs: np.ndarray

    def __len__(self) -> int:
        return len(self.scores)

    def gather(self, indices: np.ndarray) -> "DecodedPredictions":
        """Select the same rows from every array."""
        indices = np.asarray(indices, dtype=np.int64)
        return DecodedPredictions(
            boxes=self.boxes[indices],
            scores=self.scores[indices],
            classes=self.classes[indices],
            mask_coeffs=self.mask_coeffs[indices],
        )


def transpose_detections(raw: np.ndarray) -> np.ndarray:
    """Turn a [1, D, N] model output into [N, D] rows."""
    if raw.ndim != 3 or raw.shape[0] != 1:
        raise ValueError(f"Expected detections shaped [1, D, N], got {raw.shape}")
    return np.ascontiguousarray(raw[0].T, dtype=np.float32)


def decode_boxes(rows: np.ndarray) -> np.ndarray:
    """Convert (cx, cy, w, h) columns into (y1, x1, y2, x2) boxes."""
    if rows.ndim != 2 or rows.shape[1] < 4:
        raise ValueError(f"Expected rows shaped [N, >=4], got {rows.shape}")
    cx, cy, w, h = rows[:, 0], rows[:, 1], rows[:, 2], rows[:, 3]
    y1 = cy - h / 2
    x1 = cx - w / 2
    return np.stack([y1, x1, y1 + h, x1 + w], axis=1)


def decode_scores(rows: np.ndarray, num_classes: int):
    """Best score and class index per row.

    Scores are used as produced by the network, without softmax.

    Returns:
        Tuple of (scores (N,), classes (N,) int64).
    """
    if rows.ndim != 2 or rows.shape[1] < 4 + num_classes:
        raise ValueError(
            f"Rows shaped {rows.shape} cannot hold {num_classes} class scores"
        )
    class_scores = rows[:, 4 : 4 + num_classes]
    if class_scores.shape[0] == 0:
        return np.zeros(0, dtype=np.float32), np.zeros(0, dtype=np.int64)
    return class_scores.max(axis=1), class_scores.argmax(axis=1).astype(np.int64)


def decode_predictions(
    rows: np.ndarray, num_classes: int, mask_channels: int
) -> DecodedPredictions:
    """Split transposed rows into boxes, scores, classes and mask coefficients.

    Args:
        rows: (N, 4 + num_classes + mask_channels) array.
        num_classes: Number of class score columns.
        mask_channels: Number of mask coefficient columns.

    Raises:
        ValueError: If the row width does not match the layout.
    """
    expected = 4 + num_classes + mask_channels
    if rows.ndim != 2 or rows.shape[1] != expected:
        raise ValueError(f"Expected rows shaped [N, {expected}], got {rows.shape}")
    scores, classes = decode_scores(rows, num_classes)
    return DecodedPredictions(
        boxes=decode_boxes(rows),
        scores=scores,
        classes=classes,
        mask_coeffs=rows[:, 4 + num_classes :],
    )
