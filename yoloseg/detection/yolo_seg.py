"""YOLOv8-seg instance segmentation."""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import numpy as np
import torch

from ..config import ProcessingConfig
from ..core.scope import TensorScope
from ..core.shapes import DetectionShape, PrototypeShape
from ..render import Canvas, Colors, render_boxes, render_overlay
from .base import Detection, SegmentationModel
from .decode import decode_predictions, transpose_detections
from .labels import load_labels
from .masks import MaskReconstructor, clip_region, upsample_box
from .nms import non_max_suppression
from .preprocess import preprocess


@dataclass
class SegmentationResult:
    """Detections for one frame plus their composited mask overlay.

    Attributes:
        detections: Surviving detections, highest score first.
        overlay: (model_h, model_w, 4) uint8 RGBA mask overlay.
    """

    detections: List[Detection]
    overlay: np.ndarray


class YOLOSegDetector:
    """YOLOv8-seg detector implementing the Detector protocol.

    Attributes:
        model: Loaded segmentation model.
        labels: Class names indexed by class id.
        max_output: Maximum detections kept by NMS.
        iou_threshold: IOU threshold for NMS.
        score_threshold: Minimum score for NMS candidates.
        mask_threshold: Soft-mask threshold.
        mask_alpha: Alpha of mask pixels in the overlay.
    """

    def __init__(
        self,
        model: SegmentationModel,
        labels: Sequence[str],
        max_output: int = 500,
        iou_threshold: float = 0.45,
        score_threshold: float = 0.2,
        mask_threshold: float = 0.5,
        mask_alpha: int = 150,
        verbose: bool = False,
    ):
        """Initialize YOLOSegDetector.

        Args:
            model: Model exposing ``input_shape`` and ``execute``.
            labels: Class names; their count fixes the class-score columns.
            max_output: Maximum detections kept per frame.
            iou_threshold: IOU threshold for non-max suppression.
            score_threshold: Scores at or below this are discarded.
            mask_threshold: Soft-mask threshold (0.0 to 1.0).
            mask_alpha: Overlay alpha for mask pixels (0 to 255).
            verbose: Print a summary line per frame.
        """
        if not labels:
            raise ValueError("At least one class label is required")
        self.model = model
        self.labels = list(labels)
        self.max_output = max_output
        self.iou_threshold = iou_threshold
        self.score_threshold = score_threshold
        self.mask_threshold = mask_threshold
        self.mask_alpha = mask_alpha
        self.verbose = verbose
        self.colors = Colors()
        _, self.model_height, self.model_width, _ = model.input_shape

    @classmethod
    def from_config(
        cls,
        config: ProcessingConfig,
        model: Optional[SegmentationModel] = None,
        verbose: bool = False,
    ) -> "YOLOSegDetector":
        """Create YOLOSegDetector from ProcessingConfig.

        Args:
            config: Processing configuration.
            model: Already loaded model; loaded from ``config.model`` if omitted.
            verbose: Print a summary line per frame.

        Returns:
            Configured YOLOSegDetector instance.
        """
        if model is None:
            from .model import load_model
            model = load_model(config.model)
        return cls(
            model,
            load_labels(config.model.labels_path),
            max_output=config.nms.max_output,
            iou_threshold=config.nms.iou_threshold,
            score_threshold=config.nms.score_threshold,
            mask_threshold=config.mask.threshold,
            mask_alpha=config.mask.alpha,
            verbose=verbose,
        )

    def create_canvas(self) -> Canvas:
        """Canvas matching the model resolution, the space boxes are drawn in."""
        return Canvas(self.model_width, self.model_height)

    def _draw_box(self, box, x_ratio: float, y_ratio: float) -> tuple:
        top, left, bottom, right = clip_region(
            upsample_box(box, x_ratio, y_ratio), self.model_height, self.model_width
        )
        return (top, left, bottom - top, right - left)

    def segment(self, frame: np.ndarray) -> SegmentationResult:
        """Run the full pipeline on one frame.

        Args:
            frame: Input frame as RGB numpy array (H, W, 3).

        Returns:
            SegmentationResult with detections and the mask overlay.

        Raises:
            ValueError: If the frame holds no pixels or the model outputs
                do not match the label count.
        """
        with TensorScope() as scope, torch.no_grad():
            prepared = preprocess(frame, self.model_width, self.model_height)
            scope.track(prepared.tensor)

            raw_detections, raw_prototypes = scope.track(
                *self.model.execute(prepared.tensor)
            )
            layout = DetectionShape.from_output(raw_detections, len(self.labels))
            rows = scope.track(layout.check(transpose_detections(raw_detections)))

            proto_layout = PrototypeShape.from_output(raw_prototypes, layout.mask_channels)
            protos = scope.track(torch.from_numpy(proto_layout.normalize(raw_prototypes)))

            decoded = decode_predictions(rows, layout.num_classes, layout.mask_channels)
            scope.track(decoded)
            keep = scope.track(
                non_max_suppression(
                    decoded.boxes,
                    decoded.scores,
                    max_output=self.max_output,
                    iou_threshold=self.iou_threshold,
                    score_threshold=self.score_threshold,
                )
            )
            survivors = decoded.gather(keep)

            reconstructor = MaskReconstructor(
                (self.model_height, self.model_width),
                (proto_layout.height, proto_layout.width),
                threshold=self.mask_threshold,
                alpha=self.mask_alpha,
            )
            overlay = scope.track(reconstructor.new_overlay())
            detections = []
            for box, score, class_id, coeffs in zip(
                survivors.boxes, survivors.scores, survivors.classes, survivors.mask_coeffs
            ):
                color = self.colors.rgba(class_id, self.mask_alpha)
                overlay = reconstructor.add(
                    overlay, box, coeffs, protos, prepared.x_ratio, prepared.y_ratio, color
                )
                detections.append(
                    Detection(
                        box=self._draw_box(box, prepared.x_ratio, prepared.y_ratio),
                        score=float(score),
                        label=self.labels[int(class_id)],
                        class_id=int(class_id),
                        color=color,
                    )
                )

            if detections and self.verbose:
                labels = ", ".join(sorted(set(d.label for d in detections)))
                print(f"Detected {len(detections)} objects: {labels}")

            return SegmentationResult(detections=detections, overlay=overlay.astype(np.uint8))

    def detect(self, frame: np.ndarray) -> List[Detection]:
        """Detect objects in a frame.

        Args:
            frame: Input frame as RGB numpy array (H, W, 3).

        Returns:
            List of Detection objects, sorted by confidence.
        """
        return self.segment(frame).detections


def detect_frame(
    frame: np.ndarray,
    detector: YOLOSegDetector,
    canvas: Canvas,
    callback: Optional[Callable[[], None]] = None,
) -> List[Detection]:
    """Detect one frame and render masks, boxes and labels onto the canvas.

    Args:
        frame: Input frame (RGB).
        detector: Segmentation detector.
        canvas: Canvas at model resolution.
        callback: Called once after the frame has been drawn.

    Returns:
        Detections drawn on the canvas.
    """
    result = detector.segment(frame)
    render_overlay(canvas, result.overlay)
    render_boxes(canvas, result.detections)
    if callback is not None:
        callback()
    return result.detections
