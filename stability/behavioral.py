"""
Behavioral analyzer: landmark motion between consecutive sampled frames.

The previous landmark set lives in the session's FusionState so that two
sessions never share a motion baseline.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np

from .landmarks import as_landmark_array, is_finite_point_set

if TYPE_CHECKING:  # pragma: no cover
    from .fusion import FusionState

logger = logging.getLogger(__name__)


def compute_behavioral_score(
    landmarks: Any,
    state: "FusionState",
    *,
    displacement_ceiling: float = 20.0,
) -> float:
    """
    Mean per-landmark L1 displacement since the previous frame, in [0, 1].

    State handling:
    - The stored previous set is always replaced by the current one.
    - No previous set (first frame) or a change in landmark count seeds a new
      baseline and returns 0.
    - Unusable input clears the baseline and returns 0.
    """
    current = as_landmark_array(landmarks)
    previous = state.previous_landmarks

    if current is None or not is_finite_point_set(current):
        state.previous_landmarks = None
        return 0.0

    state.previous_landmarks = current

    if previous is None:
        return 0.0
    if previous.shape != current.shape:
        logger.debug(
            f"Landmark count changed ({previous.shape[0]} -> {current.shape[0]}); new baseline"
        )
        return 0.0

    movement = float(np.abs(current - previous).sum())
    avg_movement = movement / current.shape[0]
    return float(np.clip(avg_movement / displacement_ceiling, 0.0, 1.0))


__all__ = ["compute_behavioral_score"]
