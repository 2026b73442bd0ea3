"""
Texture analyzer: pixel smoothness from grayscale variance.

Synthetic-face generators tend to under-produce high-frequency detail (pores,
fine skin texture), so an over-smoothed region has low variance and a high
smoothness score. Fusion uses the complement (1 - score) as "realism".
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np

logger = logging.getLogger(__name__)


def to_grayscale(pixels: Any) -> Optional[np.ndarray]:
    """Mean of the color channels per pixel, as a float64 ``(H, W)`` array.

    Accepts ``H x W`` (already gray), ``H x W x 3`` or ``H x W x 4``; the
    alpha channel is ignored. Returns None for empty or unusable samples.
    """
    if pixels is None:
        return None
    try:
        arr = np.asarray(pixels, dtype=np.float64)
    except (TypeError, ValueError):
        return None

    if arr.ndim == 2:
        gray = arr
    elif arr.ndim == 3 and arr.shape[2] >= 1:
        channels = arr[..., :3] if arr.shape[2] >= 3 else arr
        gray = channels.mean(axis=2)
    else:
        return None

    if gray.shape[0] == 0 or gray.shape[1] == 0:
        return None
    if not np.all(np.isfinite(gray)):
        return None
    return gray


def grayscale_variance(pixels: Any) -> Optional[float]:
    """Population variance of grayscale values, or None if not sampleable."""
    gray = to_grayscale(pixels)
    if gray is None:
        return None
    with np.errstate(over="ignore", invalid="ignore"):
        return float(np.var(gray))


def compute_region_score(pixels: Any, variance_ceiling: float) -> float:
    """Smoothness of one region: ``1 - min(variance / ceiling, 1)``.

    Zero-area or unsampleable regions score 0.
    """
    variance = grayscale_variance(pixels)
    if variance is None or not np.isfinite(variance):
        logger.debug("Texture region could not be sampled; region score degraded to 0")
        return 0.0
    return 1.0 - min(variance / variance_ceiling, 1.0)


def compute_texture_score(
    face_pixels: Any,
    frame_pixels: Any,
    *,
    face_variance_ceiling: float = 1000.0,
    frame_variance_ceiling: float = 2000.0,
    face_weight: float = 0.7,
) -> float:
    """Blend face and frame smoothness, favouring the face region."""
    face = compute_region_score(face_pixels, face_variance_ceiling)
    frame = compute_region_score(frame_pixels, frame_variance_ceiling)
    blended = frame + face_weight * (face - frame)
    return float(np.clip(blended, 0.0, 1.0))


__all__ = [
    "to_grayscale",
    "grayscale_variance",
    "compute_region_score",
    "compute_texture_score",
]
