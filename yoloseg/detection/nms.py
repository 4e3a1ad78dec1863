"""Non-max suppression backed by torchvision."""

import numpy as np
import torch
from torchvision.ops import nms


def non_max_suppression(
    boxes: np.ndarray,
    scores: np.ndarray,
    max_output: int = 500,
    iou_threshold: float = 0.45,
    score_threshold: float = 0.2,
) -> np.ndarray:
    """Greedy NMS over (y1, x1, y2, x2) boxes.

    Args:
        boxes: (N, 4) boxes as y1, x1, y2, x2.
        scores: (N,) scores.
        max_output: Maximum number of indices to keep.
        iou_threshold: Boxes overlapping a kept box by more than this are dropped.
        score_threshold: Boxes scoring at or below this are dropped first.

    Returns:
        int64 array of surviving row indices, highest score first.
    """
    if len(boxes) != len(scores):
        raise ValueError(f"{len(boxes)} boxes but {len(scores)} scores")
    candidates = np.flatnonzero(scores > score_threshold)
    if candidates.size == 0 or max_output <= 0:
        return np.zeros(0, dtype=np.int64)

    # torchvision wants x1, y1, x2, y2
    xyxy = torch.from_numpy(
        np.ascontiguousarray(boxes[candidates][:, [1, 0, 3, 2]], dtype=np.float32)
    )
    kept = nms(xyxy, torch.from_numpy(scores[candidates].astype(np.float32)), iou_threshold)
    return candidates[kept[:max_output].numpy()].astype(np.int64)
