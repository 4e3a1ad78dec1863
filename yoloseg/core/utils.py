"""Pixel buffer helpers."""

import numpy as np


def alpha_over(background: np.ndarray, rgba: np.ndarray) -> np.ndarray:
    """Paint an RGBA layer over an RGB image of the same size.

    Raises:
        ValueError: If the layer is not RGBA or the sizes differ.
    """
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"Expected an RGBA layer, got shape {rgba.shape}")
    if background.shape[:2] != rgba.shape[:2]:
        raise ValueError(f"Size mismatch: {background.shape[:2]} vs {rgba.shape[:2]}")

    alpha = rgba[:, :, 3:].astype(np.float32) / 255.0
    painted = background.astype(np.float32) * (1 - alpha) + rgba[:, :, :3] * alpha
    return np.clip(painted, 0, 255).astype(np.uint8)


def add_weighted(
    a: np.ndarray, b: np.ndarray, alpha: float = 1.0, beta: float = 1.0
) -> np.ndarray:
    """Weighted sum of two pixel buffers, saturated at 255.

    Args:
        a: Accumulator buffer.
        b: Buffer to add.
        alpha: Weight of ``a``.
        beta: Weight of ``b``.

    Returns:
        float32 buffer with values in [0, 255].

    Raises:
        ValueError: If buffer shapes don't match.
    """
    if a.shape != b.shape:
        raise ValueError(f"Shape mismatch: {a.shape} vs {b.shape}")
    combined = a.astype(np.float32) * alpha + b.astype(np.float32) * beta
    return np.clip(combined, 0, 255)


def hex_to_rgba(color: str, alpha: int = 255) -> tuple:
    """Convert '#RRGGBB' to an (r, g, b, a) tuple of ints."""
    value = color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Invalid hex colour: {color}")
    r, g, b = (int(value[i : i + 2], 16) for i in (0, 2, 4))
    return (r, g, b, int(alpha))
