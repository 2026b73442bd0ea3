"""
Per-session entry point for the Identity Stability Index (ISI).

Usage:
    engine = IdentityStabilityEngine()
    result = engine.score_frame(landmarks, face_pixels, frame_pixels)
    ...
    engine.reset_state()  # when switching to a new image / video / camera
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .behavioral import compute_behavioral_score
from .config import StabilityConfig
from .fusion import FusionState, StabilityFusion
from .risk import RiskLabel, classify_risk
from .structural import compute_structural_score
from .texture import compute_texture_score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameScore:
    """All outputs for one scored frame. Every field is always populated."""

    structural: float
    behavioral: float
    texture: float
    raw_index: float
    fused_index: float
    label: RiskLabel

    def to_dict(self) -> Dict[str, Any]:
        return {
            "structural": self.structural,
            "behavioral": self.behavioral,
            "texture": self.texture,
            "raw_index": self.raw_index,
            "fused_index": self.fused_index,
            "label": self.label.value,
        }


class IdentityStabilityEngine:
    """
    Scores one detection session frame by frame.

    The engine is synchronous and single-threaded: call ``score_frame`` once
    per sampled frame in causal order. The session state (motion baseline and
    smoothing buffer) may be injected, which lets tests and callers control
    it; otherwise the engine creates its own.
    """

    def __init__(
        self,
        config: Optional[StabilityConfig] = None,
        state: Optional[FusionState] = None,
    ) -> None:
        self.config = config or StabilityConfig()
        self._fusion = StabilityFusion(self.config.fusion)
        if state is None:
            state = self._fusion.new_state()
        elif state.window_size != self.config.fusion.window_size:
            raise ValueError(
                f"state window_size {state.window_size} does not match "
                f"config fusion.window_size {self.config.fusion.window_size}"
            )
        self._state = state
        self._frames = 0

    @property
    def state(self) -> FusionState:
        return self._state

    @property
    def frames_scored(self) -> int:
        return self._frames

    def reset_state(self) -> None:
        """Clear the motion baseline and smoothing history for a new source."""
        self._state.reset()
        self._frames = 0
        logger.debug("Session state reset")

    def score_frame(self, landmarks: Any, face_pixels: Any, frame_pixels: Any) -> FrameScore:
        """
        Score one frame.

        Degenerate inputs (too few landmarks, zero-area regions) degrade the
        affected sub-score to 0 instead of raising.
        """
        cfg = self.config
        structural = compute_structural_score(
            landmarks,
            sensitivity=cfg.structural.sensitivity,
            min_landmarks=cfg.structural.min_landmarks,
        )
        behavioral = compute_behavioral_score(
            landmarks,
            self._state,
            displacement_ceiling=cfg.behavioral.displacement_ceiling,
        )
        texture = compute_texture_score(
            face_pixels,
            frame_pixels,
            face_variance_ceiling=cfg.texture.face_variance_ceiling,
            frame_variance_ceiling=cfg.texture.frame_variance_ceiling,
            face_weight=cfg.texture.face_weight,
        )
        raw, fused = self._fusion.fuse(structural, behavioral, texture, self._state)
        label = classify_risk(fused, cfg.risk)
        self._frames += 1

        return FrameScore(
            structural=structural,
            behavioral=behavioral,
            texture=texture,
            raw_index=raw,
            fused_index=fused,
            label=label,
        )


__all__ = ["FrameScore", "IdentityStabilityEngine"]
