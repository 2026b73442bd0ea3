"""
Pixel sampling helpers that turn a decoded frame into the two texture
regions the engine consumes: the face crop and a fixed-size frame sample.
"""

from __future__ import annotations

from typing import Optional, Sequence

import cv2
import numpy as np


def _empty_like(frame: np.ndarray) -> np.ndarray:
    channels = frame.shape[2:] if frame.ndim == 3 else ()
    return np.zeros((0, 0) + tuple(channels), dtype=frame.dtype)


def clamp_bbox(
    bbox: Sequence[float], frame_shape: Sequence[int]
) -> Optional[tuple]:
    """Clamp an ``(x, y, w, h)`` box to the frame; None when nothing remains."""
    try:
        x, y, w, h = (float(v) for v in bbox)
    except (TypeError, ValueError):
        return None
    if not all(np.isfinite([x, y, w, h])):
        return None
    height, width = int(frame_shape[0]), int(frame_shape[1])
    x0 = int(max(0, np.floor(x)))
    y0 = int(max(0, np.floor(y)))
    x1 = int(min(width, np.ceil(x + w)))
    y1 = int(min(height, np.ceil(y + h)))
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1 - x0, y1 - y0


def crop_face_region(frame: np.ndarray, bbox: Optional[Sequence[float]]) -> np.ndarray:
    """Return the face crop for a detection box (a copy, possibly empty)."""
    if frame is None or frame.ndim < 2:
        return np.zeros((0, 0), dtype=np.uint8)
    if bbox is None:
        return _empty_like(frame)
    clamped = clamp_bbox(bbox, frame.shape)
    if clamped is None:
        return _empty_like(frame)
    x, y, w, h = clamped
    return frame[y:y + h, x:x + w].copy()


def sample_frame_region(frame: np.ndarray, size: int = 160) -> np.ndarray:
    """Resample the whole frame to ``size x size`` with area interpolation.

    Zero-area frames yield an empty sample, which the texture analyzer scores 0.
    """
    if frame is None or frame.ndim < 2 or frame.shape[0] == 0 or frame.shape[1] == 0:
        return np.zeros((0, 0), dtype=np.uint8)
    if size < 1:
        raise ValueError("size must be >= 1")
    return cv2.resize(frame, (int(size), int(size)), interpolation=cv2.INTER_AREA)


__all__ = ["clamp_bbox", "crop_face_region", "sample_frame_region"]
