import numpy as np
import pytest

from yoloseg.detection.yolo_seg import YOLOSegDetector

LABELS = ["person", "car"]
MASK_CHANNELS = 32


class FakeSegModel:
    """Stands in for OnnxSegmentationModel with fixed raw outputs."""

    def __init__(self, detections, prototypes, input_size=640):
        self.input_shape = (1, input_size, input_size, 3)
        self.output_shapes = [list(detections.shape), list(prototypes.shape)]
        self.detections = detections
        self.prototypes = prototypes
        self.calls = 0
        self.error = None

    def execute(self, tensor):
        self.calls += 1
        if self.error is not None:
            raise self.error
        assert tensor.shape == self.input_shape
        return self.detections.copy(), self.prototypes.copy()


def make_outputs(
    rows,
    num_classes=len(LABELS),
    num_predictions=20,
    proto_size=160,
    channels_last=True,
):
    """Build raw model outputs.

    Args:
        rows: List of (cx, cy, w, h, class_id, score, coeffs) tuples.

    Returns:
        (detections [1, 4 + C + M, N], prototypes) with prototype channel 0
        all ones, so a coefficient of 1.0 on channel 0 gives a solid mask.
    """
    width = 4 + num_classes + MASK_CHANNELS
    table = np.zeros((num_predictions, width), dtype=np.float32)
    for i, (cx, cy, w, h, class_id, score, coeffs) in enumerate(rows):
        table[i, :4] = (cx, cy, w, h)
        table[i, 4 + class_id] = score
        table[i, 4 + num_classes :] = coeffs
    detections = table.T[np.newaxis].copy()

    prototypes = np.zeros((MASK_CHANNELS, proto_size, proto_size), dtype=np.float32)
    prototypes[0] = 1.0
    if channels_last:
        prototypes = np.transpose(prototypes, (1, 2, 0))
    return detections, prototypes[np.newaxis].copy()


def solid_coeffs():
    coeffs = np.zeros(MASK_CHANNELS, dtype=np.float32)
    coeffs[0] = 1.0
    return coeffs


@pytest.fixture
def single_object_model():
    detections, prototypes = make_outputs(
        [(320, 320, 100, 100, 0, 0.9, solid_coeffs())]
    )
    return FakeSegModel(detections, prototypes)


@pytest.fixture
def detector(single_object_model):
    return YOLOSegDetector(single_object_model, LABELS)


@pytest.fixture
def frame():
    # 640 wide, 480 high
    rng = np.random.default_rng(0)
    return rng.integers(0, 256, size=(480, 640, 3), dtype=np.uint8)
