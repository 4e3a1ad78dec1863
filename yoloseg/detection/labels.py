"""Class label lists."""

import json
from typing import List, Optional


COCO_LABELS = [
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train", "truck",
    "boat", "traffic light", "fire hydrant", "stop sign", "parking meter", "bench",
    "bird", "cat", "dog", "horse", "sheep", "cow", "elephant", "bear", "zebra",
    "giraffe", "backpack", "umbrella", "handbag", "tie", "suitcase", "frisbee",
    "skis", "snowboard", "sports ball", "kite", "baseball bat", "baseball glove",
    "skateboard", "surfboard", "tennis racket", "bottle", "wine glass", "cup",
    "fork", "knife", "spoon", "bowl", "banana", "apple", "sandwich", "orange",
    "broccoli", "carrot", "hot dog", "pizza", "donut", "cake", "chair", "couch",
    "potted plant", "bed", "dining table", "toilet", "tv", "laptop", "mouse",
    "remote", "keyboard", "cell phone", "microwave", "oven", "toaster", "sink",
    "refrigerator", "book", "clock", "vase", "scissors", "teddy bear",
    "hair drier", "toothbrush",
]


def load_labels(path: Optional[str] = None) -> List[str]:
    """Load class names indexed by class id.

    Args:
        path: JSON file holding an array of names. Defaults to COCO.

    Returns:
        List of class names.

    Raises:
        ValueError: If the file does not hold a non-empty list of strings.
    """
    if path is None:
        return list(COCO_LABELS)

    with open(path, encoding="utf-8") as f:
        labels = json.load(f)

    if not isinstance(labels, list) or not labels or not all(
        isinstance(label, str) for label in labels
    ):
        raise ValueError(f"{path} must contain a JSON array of class names")
    return labels
