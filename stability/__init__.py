"""Identity stability engine.

Exports the session engine and its building blocks for convenience:

from stability import IdentityStabilityEngine, FrameScore, RiskLabel
"""

from .config import StabilityConfig, load_config
from .engine import FrameScore, IdentityStabilityEngine
from .fusion import FusionState, StabilityFusion
from .lipsync import score_lip_sync
from .risk import RiskLabel, classify_risk, risk_display

__version__ = "0.1.0"

__all__ = [
    "StabilityConfig",
    "load_config",
    "FrameScore",
    "IdentityStabilityEngine",
    "FusionState",
    "StabilityFusion",
    "RiskLabel",
    "classify_risk",
    "risk_display",
    "score_lip_sync",
]
