"""
Risk classifier: maps the smoothed stability index to an ordinal label.

Boundaries are strict: an index exactly equal to a threshold falls into the
lower category (0.75 -> MODERATE, 0.45 -> UNSTABLE).
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Tuple

from .config import RiskConfig


class RiskLabel(Enum):
    """Ordinal risk categories, lowest stability first."""

    UNSTABLE = "unstable"
    MODERATE = "moderate"
    STABLE = "stable"

    @property
    def rank(self) -> int:
        return _RANK[self]

    @property
    def display(self) -> str:
        return _DISPLAY[self]

    @property
    def color_bgr(self) -> Tuple[int, int, int]:
        return _COLORS_BGR[self]


_RANK = {RiskLabel.UNSTABLE: 0, RiskLabel.MODERATE: 1, RiskLabel.STABLE: 2}

_DISPLAY = {
    RiskLabel.STABLE: "Stable Identity (Likely Human)",
    RiskLabel.MODERATE: "Moderate Stability",
    RiskLabel.UNSTABLE: "Unstable Identity (Likely Synthetic)",
}

# green / amber / red, OpenCV channel order
_COLORS_BGR = {
    RiskLabel.STABLE: (102, 204, 0),
    RiskLabel.MODERATE: (0, 170, 255),
    RiskLabel.UNSTABLE: (59, 59, 255),
}


def classify_risk(index: float, config: Optional[RiskConfig] = None) -> RiskLabel:
    """Threshold the stability index into a RiskLabel. NaN maps to UNSTABLE."""
    config = config or RiskConfig()
    index = float(index)
    if math.isnan(index):
        return RiskLabel.UNSTABLE
    if index > config.stable_threshold:
        return RiskLabel.STABLE
    if index > config.moderate_threshold:
        return RiskLabel.MODERATE
    return RiskLabel.UNSTABLE


def risk_display(
    index: float, config: Optional[RiskConfig] = None
) -> Tuple[float, Tuple[int, int, int], RiskLabel]:
    """Progress-bar rendering hints: ``(percent, color_bgr, label)``.

    Percent is the index scaled to 0..100 and clamped.
    """
    label = classify_risk(index, config)
    value = float(index)
    percent = 0.0 if math.isnan(value) else min(100.0, max(0.0, value * 100.0))
    return percent, label.color_bgr, label


__all__ = ["RiskLabel", "classify_risk", "risk_display"]
