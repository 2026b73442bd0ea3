"""
Structural analyzer: instantaneous jaw-contour symmetry of one landmark set.

Higher score = more mirror-symmetric = more structurally stable.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import numpy as np

from .landmarks import (
    JAW_LEFT,
    JAW_PAIRS,
    JAW_RIGHT,
    NUM_LANDMARKS,
    as_landmark_array,
    is_finite_point_set,
)

logger = logging.getLogger(__name__)


def compute_asymmetry(points: np.ndarray) -> float:
    """Mean mirrored deviation of the jaw pairs, in pixels.

    The mirror axis is the vertical line through the midpoint of the jaw
    extremes. Each pair contributes its horizontal deviation from the mirror
    image plus its vertical offset.
    """
    axis_x = (points[JAW_LEFT, 0] + points[JAW_RIGHT, 0]) / 2.0
    total = 0.0
    for left_idx, right_idx in JAW_PAIRS:
        left = points[left_idx]
        right = points[right_idx]
        mirrored_right_x = 2.0 * axis_x - right[0]
        total += abs(left[0] - mirrored_right_x)
        total += abs(left[1] - right[1])
    return float(total / len(JAW_PAIRS))


def compute_structural_score(
    landmarks: Any,
    *,
    sensitivity: float = 2.0,
    min_landmarks: int = NUM_LANDMARKS,
) -> float:
    """
    Score facial symmetry in [0, 1].

    - Fewer than ``min_landmarks`` points, zero or overflowing face width,
      or non-finite coordinates return 0.
    - Otherwise: 1 - clamp(asymmetry / face_width * sensitivity).
    """
    points = as_landmark_array(landmarks)
    if points is None or points.shape[0] < max(min_landmarks, JAW_RIGHT + 1):
        return 0.0

    jaw = points[: JAW_RIGHT + 1]
    if not is_finite_point_set(jaw):
        logger.debug("Non-finite jaw landmarks; structural score degraded to 0")
        return 0.0

    with np.errstate(over="ignore", invalid="ignore"):
        face_width = abs(float(points[JAW_RIGHT, 0] - points[JAW_LEFT, 0]))
        if not math.isfinite(face_width) or face_width <= 0.0:
            return 0.0
        normalized = compute_asymmetry(jaw) / face_width
    if not math.isfinite(normalized):
        logger.debug("Jaw asymmetry overflowed; structural score degraded to 0")
        return 0.0
    asymmetry = float(np.clip(normalized * sensitivity, 0.0, 1.0))
    return 1.0 - asymmetry


__all__ = ["compute_asymmetry", "compute_structural_score"]
