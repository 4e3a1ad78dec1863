"""Detection module for YOLOv8 instance segmentation."""

from .base import Detection, Detector, SegmentationModel

# Lazy imports for torch/onnxruntime-dependent parts
def __getattr__(name):
    if name in ("YOLOSegDetector", "SegmentationResult", "detect_frame"):
        from . import yolo_seg
        return getattr(yolo_seg, name)
    if name in ("OnnxSegmentationModel", "load_model", "resolve_model_path"):
        from . import model
        return getattr(model, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    "Detection",
    "Detector",
    "SegmentationModel",
    "SegmentationResult",
    "YOLOSegDetector",
    "OnnxSegmentationModel",
    "detect_frame",
    "load_model",
    "resolve_model_path",
]
