"""ONNX Runtime wrapper for YOLOv8-seg models."""

import os
from typing import List, Optional, Tuple

import numpy as np
from huggingface_hub import hf_hub_download
from onnxruntime import InferenceSession

from ..config import ModelConfig
from ..core.shapes import DEFAULT_INPUT_SIZE, InputShape


def resolve_model_path(path: str, hf_repo: Optional[str] = None) -> str:
    """Get a local path to the model, downloading it if needed.

    Args:
        path: Local file path, or the file name inside ``hf_repo``.
        hf_repo: Hugging Face Hub repository holding the model.

    Returns:
        Path to the .onnx file.

    Raises:
        FileNotFoundError: If the file is missing and no repository was given.
        RuntimeError: If the download fails.
    """
    if os.path.exists(path):
        return path
    if not hf_repo:
        raise FileNotFoundError(f"Model file not found: {path}")

    print(f"'{path}' not found. Downloading from Hugging Face Hub ({hf_repo})...")
    try:
        model_path = hf_hub_download(repo_id=hf_repo, filename=path)
    except Exception as e:
        raise RuntimeError(f"Failed to download {path} from {hf_repo}: {e}") from e
    print(f"Downloaded model to {model_path}")
    return model_path


class OnnxSegmentationModel:
    """YOLOv8-seg network run through ONNX Runtime.

    Attributes:
        path: Model file path.
        session: ONNX Runtime inference session.
        input_shape: (batch, height, width, channels) of the model input.
        output_shapes: Raw shapes of [detections, prototypes].
    """

    def __init__(
        self,
        path: str,
        providers: Optional[List[str]] = None,
        default_size: int = DEFAULT_INPUT_SIZE,
    ):
        """Load the model.

        Args:
            path: Path to the .onnx file.
            providers: ONNX Runtime execution providers.
            default_size: Input size used when the graph has dynamic axes.
        """
        self.path = path
        self.providers = providers or ["CPUExecutionProvider"]
        self.session = self._load_session()

        model_input = self.session.get_inputs()[0]
        self.input_name = model_input.name
        self._input = InputShape.from_model_shape(model_input.shape, default_size)
        self.input_shape = self._input.as_tuple()

        outputs = self.session.get_outputs()
        if len(outputs) < 2:
            raise ValueError(
                f"{path} has {len(outputs)} output(s); a segmentation model needs "
                "detections and prototypes"
            )
        # detections are 3-D, prototypes 4-D, whatever order the export uses
        self._output_order = sorted(range(2), key=lambda i: len(outputs[i].shape))
        self.output_shapes = [list(outputs[i].shape) for i in self._output_order]

    @classmethod
    def from_config(cls, config: ModelConfig) -> "OnnxSegmentationModel":
        """Create the model from ModelConfig, resolving remote files."""
        return cls(
            resolve_model_path(config.path, config.hf_repo),
            providers=config.providers,
        )

    def _load_session(self) -> InferenceSession:
        """Create the ONNX Runtime session.

        Raises:
            RuntimeError: If the model cannot be loaded.
        """
        print(f"Loading ONNX model: {self.path}")
        try:
            return InferenceSession(self.path, providers=self.providers)
        except Exception as e:
            raise RuntimeError(f"Failed to load ONNX model {self.path}: {e}") from e

    @property
    def input_height(self) -> int:
        return self._input.height

    @property
    def input_width(self) -> int:
        return self._input.width

    def execute(self, tensor: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Run inference.

        Args:
            tensor: float32 [1, H, W, 3] channel-last input.

        Returns:
            (detections, prototypes) raw outputs.
        """
        self._input.check(tensor)
        feed = np.transpose(tensor, (0, 3, 1, 2)) if self._input.channels_first else tensor
        outputs = self.session.run(None, {self.input_name: np.ascontiguousarray(feed)})
        detections, prototypes = (outputs[i] for i in self._output_order)
        return detections, prototypes

    def warmup(self) -> None:
        """Run one throwaway inference so the first real frame is not slow."""
        dummy = np.ones(self.input_shape, dtype=np.float32)
        self.execute(dummy)
        print("Model warmed up.")


def load_model(config: ModelConfig) -> OnnxSegmentationModel:
    """Load and optionally warm up the model described by ``config``."""
    model = OnnxSegmentationModel.from_config(config)
    if config.warmup:
        model.warmup()
    return model
