"""Configuration dataclasses for yoloseg."""

from dataclasses import dataclass, field
from typing import List, Optional


DEFAULT_MODEL = "yolov8n-seg.onnx"
DEFAULT_PROVIDERS = ["CPUExecutionProvider"]


@dataclass
class ModelConfig:
    """Configuration for the segmentation model."""

    path: str = DEFAULT_MODEL
    hf_repo: Optional[str] = None
    providers: List[str] = field(default_factory=lambda: list(DEFAULT_PROVIDERS))
    warmup: bool = True
    labels_path: Optional[str] = None


@dataclass
class NMSConfig:
    """Configuration for non-max suppression."""

    max_output: int = 500
    iou_threshold: float = 0.45
    score_threshold: float = 0.2


@dataclass
class MaskConfig:
    """Configuration for instance mask reconstruction."""

    threshold: float = 0.5
    alpha: int = 150


@dataclass
class OutputConfig:
    """Configuration for output files."""

    fps: float = 30.0
    max_frames: int = 0


@dataclass
class DisplayConfig:
    """Configuration for the live preview window."""

    enabled: bool = False
    fps: int = 30


@dataclass
class ProcessingConfig:
    """Combined configuration for processing."""

    input_path: str
    output_path: Optional[str]
    model: ModelConfig
    nms: NMSConfig
    mask: MaskConfig
    output: OutputConfig
    display: DisplayConfig

    @classmethod
    def from_args(
        cls,
        input_path: str,
        output_path: Optional[str] = None,
        # Model config
        model_path: str = DEFAULT_MODEL,
        hf_repo: Optional[str] = None,
        providers: Optional[List[str]] = None,
        warmup: bool = True,
        labels_path: Optional[str] = None,
        # NMS config
        max_detections: int = 500,
        iou_threshold: float = 0.45,
        score_threshold: float = 0.2,
        # Mask config
        mask_threshold: float = 0.5,
        mask_alpha: int = 150,
        # Output config
        fps: float = 30.0,
        max_frames: int = 0,
        # Display config
        show: bool = False,
    ) -> "ProcessingConfig":
        """Create ProcessingConfig from CLI arguments."""
        return cls(
            input_path=input_path,
            output_path=output_path,
            model=ModelConfig(
                path=model_path,
                hf_repo=hf_repo,
                providers=providers or list(DEFAULT_PROVIDERS),
                warmup=warmup,
                labels_path=labels_path,
            ),
            nms=NMSConfig(
                max_output=max_detections,
                iou_threshold=iou_threshold,
                score_threshold=score_threshold,
            ),
            mask=MaskConfig(threshold=mask_threshold, alpha=mask_alpha),
            output=OutputConfig(fps=fps, max_frames=max_frames),
            display=DisplayConfig(enabled=show, fps=int(fps)),
        )
