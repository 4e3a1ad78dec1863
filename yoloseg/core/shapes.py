"""Named tensor shapes for the segmentation pipeline.

Each stage boundary checks the arrays it receives against one of these
structs instead of relying on implicit broadcasting.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np


DEFAULT_INPUT_SIZE = 640


def _static_dim(value, default: int) -> int:
    """Return a concrete dimension, replacing dynamic axes with a default."""
    if isinstance(value, (int, np.integer)) and value > 0:
        return int(value)
    return default


@dataclass(frozen=True)
class InputShape:
    """Model input shape in channel-last order.

    Attributes:
        batch: Batch size (always 1 here).
        height: Model input height.
        width: Model input width.
        channels: Colour channels (3).
        channels_first: Whether the underlying graph expects NCHW input.
    """

    batch: int
    height: int
    width: int
    channels: int = 3
    channels_first: bool = False

    @classmethod
    def from_model_shape(
        cls, shape: Sequence, default_size: int = DEFAULT_INPUT_SIZE
    ) -> "InputShape":
        """Build an InputShape from an NCHW or NHWC model shape.

        Args:
            shape: 4-D shape as reported by the model (may hold dynamic axes).
            default_size: Size used for dynamic spatial axes.

        Returns:
            InputShape in channel-last order.

        Raises:
            ValueError: If the shape is not 4-D.
        """
        if len(shape) != 4:
            raise ValueError(f"Expected a 4-D input shape, got {list(shape)}")
        if shape[1] == 3 and shape[3] != 3:
            return cls(
                batch=1,
                height=_static_dim(shape[2], default_size),
                width=_static_dim(shape[3], default_size),
                channels=3,
                channels_first=True,
            )
        return cls(
            batch=1,
            height=_static_dim(shape[1], default_size),
            width=_static_dim(shape[2], default_size),
            channels=_static_dim(shape[3], 3),
        )

    def as_tuple(self) -> tuple:
        """Return (batch, height, width, channels)."""
        return (self.batch, self.height, self.width, self.channels)

    def check(self, tensor: np.ndarray) -> np.ndarray:
        """Validate a channel-last input tensor against this shape."""
        if tensor.shape != self.as_tuple():
            raise ValueError(
                f"Input tensor shape {tensor.shape} does not match {self.as_tuple()}"
            )
        return tensor


@dataclass(frozen=True)
class DetectionShape:
    """Layout of the transposed detection tensor [N, 4 + C + M]."""

    num_predictions: int
    num_classes: int
    mask_channels: int

    @property
    def row_length(self) -> int:
        return 4 + self.num_classes + self.mask_channels

    @classmethod
    def from_output(cls, raw: np.ndarray, num_classes: int) -> "DetectionShape":
        """Derive the layout from a raw [1, 4 + C + M, N] model output.

        Raises:
            ValueError: If the output cannot hold boxes, C scores and coefficients.
        """
        if raw.ndim != 3 or raw.shape[0] != 1:
            raise ValueError(f"Expected detections shaped [1, D, N], got {raw.shape}")
        mask_channels = raw.shape[1] - 4 - num_classes
        if mask_channels <= 0:
            raise ValueError(
                f"Detection tensor with {raw.shape[1]} channels cannot hold "
                f"4 box values, {num_classes} class scores and mask coefficients"
            )
        return cls(
            num_predictions=raw.shape[2],
            num_classes=num_classes,
            mask_channels=mask_channels,
        )

    def check(self, rows: np.ndarray) -> np.ndarray:
        """Validate transposed detection rows."""
        if rows.shape != (self.num_predictions, self.row_length):
            raise ValueError(
                f"Detection rows shape {rows.shape} does not match "
                f"({self.num_predictions}, {self.row_length})"
            )
        return rows


@dataclass(frozen=True)
class PrototypeShape:
    """Prototype mask shape as [channels, height, width]."""

    channels: int
    height: int
    width: int
    channels_last: bool = False

    @classmethod
    def from_output(cls, raw: np.ndarray, mask_channels: int) -> "PrototypeShape":
        """Work out the layout of a raw prototype output.

        ONNX exports produce [1, M, H, W]; tensorflow.js style graphs produce
        [1, H, W, M].

        Raises:
            ValueError: If neither layout matches the mask channel count.
        """
        if raw.ndim != 4 or raw.shape[0] != 1:
            raise ValueError(f"Expected prototypes shaped [1, ., ., .], got {raw.shape}")
        _, d1, d2, d3 = raw.shape
        if d3 == mask_channels and d1 != mask_channels:
            return cls(channels=d3, height=d1, width=d2, channels_last=True)
        if d1 == mask_channels:
            return cls(channels=d1, height=d2, width=d3)
        raise ValueError(
            f"Prototype shape {raw.shape} has no axis with {mask_channels} mask channels"
        )

    def normalize(self, raw: np.ndarray) -> np.ndarray:
        """Return the prototypes as a contiguous [M, H, W] array."""
        protos = raw[0]
        if self.channels_last:
            protos = np.transpose(protos, (2, 0, 1))
        return np.ascontiguousarray(protos, dtype=np.float32)
