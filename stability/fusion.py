from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional, Tuple

import numpy as np

from .config import POLICY_MULTIPLICATIVE, POLICY_WEIGHTED, FusionConfig


@dataclass
class FusionState:
    """
    Per-session mutable state shared by the behavioral analyzer and fusion.

    - previous_landmarks: last landmark set seen (motion baseline), or None.
    - history: FIFO of the last ``window_size`` raw fusion values.

    One instance belongs to exactly one detection session (camera, file or
    image). Give independent sessions independent instances.
    """

    window_size: int = 10
    previous_landmarks: Optional[np.ndarray] = None
    history: Deque[float] = field(init=False)

    def __post_init__(self) -> None:
        self.window_size = int(self.window_size)
        if self.window_size < 1:
            raise ValueError("window_size must be >= 1")
        self.history = deque(maxlen=self.window_size)

    def reset(self) -> None:
        """Forget the motion baseline and empty the smoothing buffer."""
        self.previous_landmarks = None
        self.history.clear()

    @property
    def is_fresh(self) -> bool:
        return self.previous_landmarks is None and not self.history


class StabilityFusion:
    """
    Combine structural, behavioral and texture scores into the Identity
    Stability Index (ISI) and smooth it over time.

    Polarity: the index is a *stability* index, higher = more likely a
    genuine face. Behavioral (motion) and texture (smoothness) carry
    risk-increasing polarity, so their complements enter the fusion:

    - stability = 1 - behavioral
    - realism   = 1 - texture

    Policies:
    - multiplicative (default): structural * stability * realism. Any single
      factor collapsing to 0 collapses the index.
    - weighted: normalized weighted sum of the same three factors.

    Smoothing: the raw value is pushed into the state's bounded FIFO and the
    arithmetic mean of the buffer is returned.
    """

    def __init__(self, config: Optional[FusionConfig] = None) -> None:
        self.config = config or FusionConfig()
        self.policy = self.config.policy
        weights = self.config.weights
        self.structural_weight = float(weights["structural"])
        self.stability_weight = float(weights["stability"])
        self.realism_weight = float(weights["realism"])

    def new_state(self) -> FusionState:
        return FusionState(window_size=self.config.window_size)

    # ---- Public API ----
    def raw_index(self, structural: float, behavioral: float, texture: float) -> float:
        """Unsmoothed fusion of the three sub-scores, clamped to [0, 1]."""
        structural = self._unit(structural)
        stability = 1.0 - self._unit(behavioral)
        realism = 1.0 - self._unit(texture)

        if self.policy == POLICY_WEIGHTED:
            total = self.structural_weight + self.stability_weight + self.realism_weight
            raw = (
                self.structural_weight * structural
                + self.stability_weight * stability
                + self.realism_weight * realism
            ) / total
        else:
            raw = structural * stability * realism
        return float(np.clip(raw, 0.0, 1.0))

    def smooth(self, raw: float, state: FusionState) -> float:
        """Push ``raw`` into the FIFO and return the moving average."""
        state.history.append(self._unit(raw))
        values = list(state.history)
        mean = sum(values) / len(values)
        # Keep the average inside the buffer range despite float rounding
        return float(min(max(mean, min(values)), max(values)))

    def fuse(
        self,
        structural: float,
        behavioral: float,
        texture: float,
        state: FusionState,
    ) -> Tuple[float, float]:
        """Return ``(raw_index, smoothed_index)`` and update the buffer."""
        raw = self.raw_index(structural, behavioral, texture)
        return raw, self.smooth(raw, state)

    # ---- Internals ----
    @staticmethod
    def _unit(x: float) -> float:
        """Clamp to [0, 1]; non-finite values count as 0."""
        try:
            x = float(x)
        except (TypeError, ValueError):
            return 0.0
        if not math.isfinite(x):
            return 0.0
        return min(max(x, 0.0), 1.0)


__all__ = [
    "POLICY_MULTIPLICATIVE",
    "POLICY_WEIGHTED",
    "FusionState",
    "StabilityFusion",
]
