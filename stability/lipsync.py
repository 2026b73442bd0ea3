"""
Lip-sync analyzer: agreement between mouth opening and audio loudness.

An auxiliary signal, reported next to the index and not fused into it.
Audio arrives as a magnitude spectrum (e.g. 8-bit FFT bins from a browser
analyser node or ``np.abs(np.fft.rfft(...))`` scaled to ``full_scale``).
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np

from .config import LipSyncConfig
from .landmarks import INNER_LIP_BOTTOM, INNER_LIP_TOP, as_landmark_array, is_finite_point_set

logger = logging.getLogger(__name__)


def _unit(x: float) -> float:
    x = float(x)
    if not np.isfinite(x):
        return 0.0
    return min(max(x, 0.0), 1.0)


def compute_mouth_open(landmarks: Any, *, ceiling: float = 30.0) -> float:
    """Inner-lip gap (bottom y - top y) over ``ceiling`` pixels, in [0, 1].

    Missing inner-lip points or non-finite coordinates give 0.
    """
    points = as_landmark_array(landmarks)
    if points is None or points.shape[0] <= INNER_LIP_BOTTOM:
        return 0.0
    lips = points[[INNER_LIP_TOP, INNER_LIP_BOTTOM]]
    if not is_finite_point_set(lips):
        return 0.0
    with np.errstate(over="ignore", invalid="ignore"):
        gap = float(lips[1, 1] - lips[0, 1]) / ceiling
    if not np.isfinite(gap):
        return 0.0
    return _unit(gap)


def compute_audio_level(spectrum: Any, *, full_scale: float = 255.0) -> float:
    """Mean spectrum magnitude over ``full_scale``, in [0, 1]. Silence or no data is 0."""
    if spectrum is None:
        return 0.0
    try:
        values = np.asarray(spectrum, dtype=np.float64).ravel()
    except (TypeError, ValueError):
        return 0.0
    if values.size == 0 or not np.all(np.isfinite(values)):
        return 0.0
    return _unit(values.mean() / full_scale)


def compute_lip_sync_mismatch(mouth_open: float, audio_level: float) -> float:
    """``|mouth_open - audio_level|`` on unit-clamped inputs."""
    return abs(_unit(mouth_open) - _unit(audio_level))


def score_lip_sync(
    landmarks: Any,
    spectrum: Any,
    config: Optional[LipSyncConfig] = None,
) -> float:
    """Mismatch for one frame and its audio window, using configured scales."""
    config = config or LipSyncConfig()
    mouth = compute_mouth_open(landmarks, ceiling=config.mouth_open_ceiling)
    level = compute_audio_level(spectrum, full_scale=config.audio_full_scale)
    mismatch = compute_lip_sync_mismatch(mouth, level)
    logger.debug(f"Lip sync: mouth={mouth:.2f} audio={level:.2f} mismatch={mismatch:.2f}")
    return mismatch


__all__ = [
    "compute_mouth_open",
    "compute_audio_level",
    "compute_lip_sync_mismatch",
    "score_lip_sync",
]
