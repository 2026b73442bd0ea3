"""
68-point landmark topology and input normalization.

Landmark indices follow the iBUG 300-W layout produced by dlib / face-api.js
68-point models:
- 0..16 jaw contour (0 and 16 are the jaw extremes)
- 30 nose tip
- 36 / 45 outer eye corners
- 62 / 66 inner lip (top / bottom)
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np


NUM_LANDMARKS = 68

JAW_LEFT = 0
JAW_RIGHT = 16
INNER_LIP_TOP = 62
INNER_LIP_BOTTOM = 66

# Mirrored jaw-contour pairs (1, 15) .. (7, 9); the extremes define the axis.
JAW_PAIRS = tuple((i, JAW_RIGHT - i) for i in range(1, 8))


def as_landmark_array(landmarks: Any) -> Optional[np.ndarray]:
    """Convert a landmark set into a read-only ``(N, 2)`` float array.

    Supports numpy arrays (extra columns such as z are dropped), sequences of
    ``(x, y)`` pairs and sequences of objects with ``.x`` / ``.y`` attributes.
    Returns None when the input cannot be interpreted as 2-D points.
    """
    if landmarks is None:
        return None
    # face-api.js style wrapper exposing .positions
    positions = getattr(landmarks, "positions", None)
    if positions is not None:
        landmarks = positions

    try:
        if isinstance(landmarks, np.ndarray):
            arr = np.asarray(landmarks, dtype=np.float64)
        else:
            pts = []
            for lm in landmarks:
                if hasattr(lm, "x") and hasattr(lm, "y"):
                    pts.append((float(lm.x), float(lm.y)))
                else:
                    pts.append((float(lm[0]), float(lm[1])))
            arr = np.asarray(pts, dtype=np.float64)
    except (TypeError, ValueError, IndexError):
        return None

    if arr.ndim != 2 or arr.shape[0] == 0 or arr.shape[1] < 2:
        return None
    arr = arr[:, :2].copy()
    arr.setflags(write=False)
    return arr


def is_finite_point_set(points: np.ndarray) -> bool:
    """True when every coordinate is finite."""
    return bool(np.all(np.isfinite(points)))


__all__ = [
    "NUM_LANDMARKS",
    "JAW_LEFT",
    "JAW_RIGHT",
    "INNER_LIP_TOP",
    "INNER_LIP_BOTTOM",
    "JAW_PAIRS",
    "as_landmark_array",
    "is_finite_point_set",
]
