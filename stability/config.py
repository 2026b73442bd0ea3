"""
Configuration for the identity stability engine.

All calibration constants (normalization ceilings, blend weights, fusion
policy, smoothing window, classification thresholds) live here as typed,
validated dataclasses. Values can come from code defaults, a YAML file (with
``base:`` inheritance) and dotted overrides such as ``fusion.window_size``.

Invalid values raise ValueError when the config is built, never while a
frame is being scored.
"""

from __future__ import annotations

import logging
import math
from copy import deepcopy
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "configs" / "stability_default.yaml"

POLICY_MULTIPLICATIVE = "multiplicative"
POLICY_WEIGHTED = "weighted"
FUSION_POLICIES = (POLICY_MULTIPLICATIVE, POLICY_WEIGHTED)


def _require_positive(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value <= 0.0:
        raise ValueError(f"{name} must be a positive finite number, got {value}")
    return value


def _require_unit(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value < 0.0 or value > 1.0:
        raise ValueError(f"{name} must lie in [0, 1], got {value}")
    return value


@dataclass
class StructuralConfig:
    """Jaw-symmetry scoring.

    - sensitivity: multiplier applied to width-normalized asymmetry before
      clamping. Larger values punish small asymmetries harder.
    - min_landmarks: minimum number of points required to score.
    """

    sensitivity: float = 2.0
    min_landmarks: int = 68

    def __post_init__(self) -> None:
        self.sensitivity = _require_positive("structural.sensitivity", self.sensitivity)
        self.min_landmarks = int(self.min_landmarks)
        if self.min_landmarks < 17:
            raise ValueError("structural.min_landmarks must cover the jaw contour (>= 17)")


@dataclass
class BehavioralConfig:
    """Frame-to-frame motion scoring.

    - displacement_ceiling: mean per-landmark L1 displacement (pixels) that
      maps to a behavioral score of 1.
    """

    displacement_ceiling: float = 20.0

    def __post_init__(self) -> None:
        self.displacement_ceiling = _require_positive(
            "behavioral.displacement_ceiling", self.displacement_ceiling
        )


@dataclass
class TextureConfig:
    """Grayscale-variance smoothness scoring.

    Faces are naturally smoother than backgrounds, so the face ceiling is
    tighter than the frame ceiling.
    """

    face_variance_ceiling: float = 1000.0
    frame_variance_ceiling: float = 2000.0
    face_weight: float = 0.7
    # Side length of the square resample used by the runtime frame sampler
    sample_size: int = 160

    def __post_init__(self) -> None:
        self.face_variance_ceiling = _require_positive(
            "texture.face_variance_ceiling", self.face_variance_ceiling
        )
        self.frame_variance_ceiling = _require_positive(
            "texture.frame_variance_ceiling", self.frame_variance_ceiling
        )
        self.face_weight = _require_unit("texture.face_weight", self.face_weight)
        self.sample_size = int(self.sample_size)
        if self.sample_size < 1:
            raise ValueError("texture.sample_size must be >= 1")

    @property
    def frame_weight(self) -> float:
        return 1.0 - self.face_weight


@dataclass
class FusionConfig:
    """Raw fusion policy and temporal smoothing.

    - policy: "multiplicative" (structural x stability x realism) or
      "weighted" (normalized weighted sum of the same three factors).
    - weights: only used by the weighted policy; keys are structural,
      stability (1 - behavioral) and realism (1 - texture).
    - window_size: capacity of the moving-average buffer.
    """

    policy: str = POLICY_MULTIPLICATIVE
    weights: Dict[str, float] = field(
        default_factory=lambda: {"structural": 0.4, "stability": 0.3, "realism": 0.3}
    )
    window_size: int = 10

    def __post_init__(self) -> None:
        self.policy = str(self.policy).strip().lower()
        if self.policy not in FUSION_POLICIES:
            raise ValueError(
                f"fusion.policy must be one of {FUSION_POLICIES}, got {self.policy!r}"
            )
        expected = {"structural", "stability", "realism"}
        weights = dict(self.weights or {})
        unknown = set(weights) - expected
        if unknown:
            raise ValueError(f"Unknown fusion weight keys: {sorted(unknown)}")
        merged = {"structural": 0.4, "stability": 0.3, "realism": 0.3}
        merged.update(weights)
        for key, value in merged.items():
            value = float(value)
            if not math.isfinite(value) or value < 0.0:
                raise ValueError(f"fusion.weights.{key} must be a non-negative number, got {value}")
            merged[key] = value
        if sum(merged.values()) <= 0.0:
            raise ValueError("fusion.weights must not all be zero")
        self.weights = merged
        self.window_size = int(self.window_size)
        if self.window_size < 1:
            raise ValueError("fusion.window_size must be >= 1")


@dataclass
class RiskConfig:
    """Thresholds on the stability index (higher = more likely genuine).

    index > stable_threshold is STABLE, index > moderate_threshold is
    MODERATE, anything else is UNSTABLE.
    """

    stable_threshold: float = 0.75
    moderate_threshold: float = 0.45

    def __post_init__(self) -> None:
        self.stable_threshold = _require_unit("risk.stable_threshold", self.stable_threshold)
        self.moderate_threshold = _require_unit("risk.moderate_threshold", self.moderate_threshold)
        if self.moderate_threshold >= self.stable_threshold:
            raise ValueError(
                "risk.moderate_threshold must be below risk.stable_threshold "
                f"({self.moderate_threshold} >= {self.stable_threshold})"
            )


@dataclass
class LipSyncConfig:
    """Mouth-opening vs audio-loudness agreement.

    - mouth_open_ceiling: inner-lip gap (pixels) that counts as fully open.
    - audio_full_scale: spectrum magnitude that counts as full loudness
      (255 for 8-bit analyser bins).
    """

    mouth_open_ceiling: float = 30.0
    audio_full_scale: float = 255.0

    def __post_init__(self) -> None:
        self.mouth_open_ceiling = _require_positive(
            "lipsync.mouth_open_ceiling", self.mouth_open_ceiling
        )
        self.audio_full_scale = _require_positive("lipsync.audio_full_scale", self.audio_full_scale)


_SECTIONS = {
    "structural": StructuralConfig,
    "behavioral": BehavioralConfig,
    "texture": TextureConfig,
    "fusion": FusionConfig,
    "risk": RiskConfig,
    "lipsync": LipSyncConfig,
}


@dataclass
class StabilityConfig:
    """All engine tunables, grouped by component."""

    structural: StructuralConfig = field(default_factory=StructuralConfig)
    behavioral: BehavioralConfig = field(default_factory=BehavioralConfig)
    texture: TextureConfig = field(default_factory=TextureConfig)
    fusion: FusionConfig = field(default_factory=FusionConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    lipsync: LipSyncConfig = field(default_factory=LipSyncConfig)

    @classmethod
    def from_dict(cls, config_dict: Optional[Mapping[str, Any]]) -> "StabilityConfig":
        """Build a config from a nested mapping; missing keys keep defaults."""
        config_dict = dict(config_dict or {})
        unknown = set(config_dict) - set(_SECTIONS)
        if unknown:
            raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")
        sections = {}
        for name, section_cls in _SECTIONS.items():
            values = config_dict.get(name) or {}
            if not isinstance(values, Mapping):
                raise ValueError(f"Configuration section '{name}' must be a mapping")
            try:
                sections[name] = section_cls(**values)
            except TypeError as e:
                raise ValueError(f"Invalid keys in section '{name}': {e}") from e
        return cls(**sections)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_yaml_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML configuration, resolving ``base:`` inheritance.

    The base path is relative to the including file; keys in the including
    file override the base recursively.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Configuration root must be a mapping: {config_path}")

    if "base" in config:
        base_config_name = config.pop("base")
        base_config_path = config_path.parent / base_config_name

        if not base_config_path.exists():
            raise FileNotFoundError(f"Base configuration not found: {base_config_path}")

        base_config = load_yaml_config(base_config_path)
        merged_config = deepcopy(base_config)
        _merge_configs(merged_config, config)
        config = merged_config

    logger.info(f"📋 Configuration loaded from: {config_path}")
    return config


def _merge_configs(base: Dict[str, Any], override: Mapping[str, Any]) -> None:
    """Recursively merge configuration dictionaries."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, Mapping):
            _merge_configs(base[key], value)
        else:
            base[key] = deepcopy(value)


def apply_overrides(config_dict: Dict[str, Any], overrides: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Apply dotted-key overrides, e.g. ``{"fusion.window_size": 5}``.

    Returns a new dictionary; the input is left untouched.
    """
    result = deepcopy(config_dict)
    if not overrides:
        return result

    for dotted_key, value in overrides.items():
        keys = str(dotted_key).split(".")
        current = result
        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]
        current[keys[-1]] = value

    logger.info(f"🔧 Applied config overrides: {dict(overrides)}")
    return result


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> StabilityConfig:
    """
    Load a StabilityConfig from YAML (default: configs/stability_default.yaml)
    with optional dotted overrides. Falls back to code defaults when no path
    is given and the bundled file is absent.
    """
    if config_path is None and not DEFAULT_CONFIG_PATH.exists():
        logger.debug("Default config file missing; using built-in defaults")
        config_dict: Dict[str, Any] = {}
    else:
        config_dict = load_yaml_config(config_path or DEFAULT_CONFIG_PATH)

    config_dict = apply_overrides(config_dict, overrides)
    config = StabilityConfig.from_dict(config_dict)
    logger.info("✅ Configuration validation passed")
    return config


__all__ = [
    "POLICY_MULTIPLICATIVE",
    "POLICY_WEIGHTED",
    "FUSION_POLICIES",
    "StructuralConfig",
    "BehavioralConfig",
    "TextureConfig",
    "FusionConfig",
    "RiskConfig",
    "LipSyncConfig",
    "StabilityConfig",
    "DEFAULT_CONFIG_PATH",
    "load_yaml_config",
    "apply_overrides",
    "load_config",
]
