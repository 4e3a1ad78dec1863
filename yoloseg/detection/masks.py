"""Instance mask reconstruction from prototype masks.

Each detection carries M mask coefficients. Its mask is the linear
combination of the M prototype masks over the detection's box, computed
at prototype resolution, upsampled to the box's size on the canvas and
thresholded. Masks accumulate into one RGBA overlay per frame.
"""

import math
from typing import Optional, Sequence, Tuple

import numpy as np
import torch
import torch.nn.functional as F

from ..core.utils import add_weighted


Box = Tuple[int, int, int, int]

WHITE = (255, 255, 255)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves rounded up."""
    return int(math.floor(value + 0.5))


def downsample_box(
    box: Sequence[float],
    model_size: Tuple[int, int],
    proto_size: Tuple[int, int],
) -> Box:
    """Scale a model-space (y1, x1, y2, x2) box to prototype resolution.

    Args:
        box: Box in model-input pixels.
        model_size: (model_height, model_width).
        proto_size: (proto_height, proto_width).

    Returns:
        (y, x, h, w) at prototype resolution, not yet clipped.
    """
    y1, x1, y2, x2 = (float(v) for v in box)
    model_h, model_w = model_size
    proto_h, proto_w = proto_size
    return (
        math.floor(y1 * proto_h / model_h),
        math.floor(x1 * proto_w / model_w),
        round_half_up((y2 - y1) * proto_h / model_h),
        round_half_up((x2 - x1) * proto_w / model_w),
    )


def upsample_box(box: Sequence[float], x_ratio: float, y_ratio: float) -> Box:
    """Map a model-space (y1, x1, y2, x2) box into draw space as (y, x, h, w)."""
    y1, x1, y2, x2 = (float(v) for v in box)
    return (
        math.floor(y1 * y_ratio),
        math.floor(x1 * x_ratio),
        round_half_up((y2 - y1) * y_ratio),
        round_half_up((x2 - x1) * x_ratio),
    )


def clip_region(box: Box, height: int, width: int) -> Tuple[int, int, int, int]:
    """Clip a (y, x, h, w) box to [0, height) x [0, width).

    Returns:
        (top, left, bottom, right) slice bounds with bottom >= top and
        right >= left. An empty region has bottom == top or right == left.
    """
    y, x, h, w = box
    top = min(max(y, 0), height)
    left = min(max(x, 0), width)
    bottom = min(max(y + h, top), height)
    right = min(max(x + w, left), width)
    return top, left, bottom, right


def region_is_empty(region: Tuple[int, int, int, int]) -> bool:
    top, left, bottom, right = region
    return bottom <= top or right <= left


def clipped_footprint(
    proto_box: Box, region: Tuple[int, int, int, int], target: Box
) -> Box:
    """Part of the draw-space target covered by a clipped prototype region.

    Args:
        proto_box: Unclipped (y, x, h, w) box at prototype resolution.
        region: (top, left, bottom, right) of ``proto_box`` after clipping.
        target: (y, x, h, w) of the whole box in draw space.

    Returns:
        (y, x, h, w) in draw space. Equals ``target`` when nothing was clipped.
    """
    proto_y, proto_x, proto_h, proto_w = proto_box
    top, left, bottom, right = region
    y, x, h, w = target
    scale_y = h / proto_h
    scale_x = w / proto_w
    y1 = y + round_half_up((top - proto_y) * scale_y)
    x1 = x + round_half_up((left - proto_x) * scale_x)
    y2 = y + round_half_up((bottom - proto_y) * scale_y)
    x2 = x + round_half_up((right - proto_x) * scale_x)
    return (y1, x1, y2 - y1, x2 - x1)


def instance_mask(
    coeffs: torch.Tensor, protos: torch.Tensor, region: Tuple[int, int, int, int]
) -> torch.Tensor:
    """Combine prototypes over a region with one detection's coefficients.

    Args:
        coeffs: (M,) mask coefficients.
        protos: (M, H, W) prototype masks.
        region: (top, left, bottom, right) inside the prototype bounds.

    Returns:
        (region_h, region_w) soft mask.
    """
    top, left, bottom, right = region
    channels = protos.shape[0]
    if coeffs.shape != (channels,):
        raise ValueError(
            f"Expected {channels} mask coefficients, got {tuple(coeffs.shape)}"
        )
    cut = protos[:, top:bottom, left:right].reshape(channels, -1)
    return (coeffs.reshape(1, channels) @ cut).reshape(bottom - top, right - left)


def upsample_mask(soft: torch.Tensor, height: int, width: int) -> np.ndarray:
    """Bilinearly resize a soft mask to (height, width)."""
    resized = F.interpolate(
        soft[None, None], size=(height, width), mode="bilinear", align_corners=False
    )
    return resized[0, 0].numpy()


def paint_mask(
    soft: np.ndarray, color: Sequence[int], alpha: int, threshold: float = 0.5
) -> np.ndarray:
    """Threshold a soft mask into an RGBA layer.

    Cells at or above the threshold take ``color`` with ``alpha``; others are
    fully transparent.
    """
    rgba = np.array([*color[:3], alpha], dtype=np.float32)
    layer = np.zeros((*soft.shape, 4), dtype=np.float32)
    layer[soft >= threshold] = rgba
    return layer


def paste_layer(
    layer: np.ndarray, offset: Tuple[int, int], canvas_size: Tuple[int, int]
) -> np.ndarray:
    """Place a layer at (y, x) on a transparent canvas, dropping what falls outside."""
    canvas_h, canvas_w = canvas_size
    full = np.zeros((canvas_h, canvas_w, 4), dtype=np.float32)
    y, x = offset
    h, w = layer.shape[:2]
    top, left, bottom, right = clip_region((y, x, h, w), canvas_h, canvas_w)
    if region_is_empty((top, left, bottom, right)):
        return full
    full[top:bottom, left:right] = layer[top - y : bottom - y, left - x : right - x]
    return full


class MaskReconstructor:
    """Accumulate per-detection masks into one RGBA overlay.

    Attributes:
        model_size: (height, width) of the model input, also the canvas size.
        proto_size: (height, width) of the prototype masks.
        threshold: Soft-mask threshold.
        alpha: Alpha given to mask pixels.
    """

    def __init__(
        self,
        model_size: Tuple[int, int],
        proto_size: Tuple[int, int],
        threshold: float = 0.5,
        alpha: int = 150,
    ):
        self.model_size = tuple(model_size)
        self.proto_size = tuple(proto_size)
        self.threshold = threshold
        self.alpha = alpha

    def new_overlay(self) -> np.ndarray:
        """Blank float32 overlay of canvas size."""
        return np.zeros((*self.model_size, 4), dtype=np.float32)

    def add(
        self,
        overlay: np.ndarray,
        box: Sequence[float],
        coeffs: np.ndarray,
        protos: torch.Tensor,
        x_ratio: float,
        y_ratio: float,
        color: Optional[Sequence[int]] = None,
    ) -> np.ndarray:
        """Composite one detection's mask into the overlay.

        Args:
            overlay: Running overlay (model_h, model_w, 4).
            box: Model-space (y1, x1, y2, x2) box.
            coeffs: (M,) mask coefficients for the box.
            protos: (M, proto_h, proto_w) prototype tensor.
            x_ratio: Frame-to-model ratio along x.
            y_ratio: Frame-to-model ratio along y.
            color: RGB(A) colour for mask pixels.

        Returns:
            The updated overlay. Boxes whose region is empty leave it unchanged.
        """
        proto_box = downsample_box(box, self.model_size, self.proto_size)
        region = clip_region(proto_box, *self.proto_size)
        if region_is_empty(region):
            return overlay
        # only the clipped part of the box is painted, at its own position
        target = clipped_footprint(proto_box, region, upsample_box(box, x_ratio, y_ratio))
        if target[2] <= 0 or target[3] <= 0:
            return overlay

        coeffs = torch.from_numpy(np.ascontiguousarray(coeffs, dtype=np.float32))
        soft = instance_mask(coeffs, protos, region)
        upsampled = upsample_mask(soft, target[2], target[3])
        layer = paint_mask(upsampled, color or WHITE, self.alpha, self.threshold)
        placed = paste_layer(layer, (target[0], target[1]), self.model_size)
        return add_weighted(overlay, placed, 1, 1)
