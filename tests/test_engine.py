"""
Tests for the per-session IdentityStabilityEngine.

What this suite covers:
- Every call returns a fully populated FrameScore, even for degenerate input.
- First-frame behavior, reset idempotence and session isolation.
- End-to-end convergence on a run of identical frames.
- Dependency injection of FusionState.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from stability.config import FusionConfig, StabilityConfig
from stability.engine import FrameScore, IdentityStabilityEngine
from stability.fusion import FusionState
from stability.risk import RiskLabel


def _fields(score: FrameScore):
    return (
        score.structural,
        score.behavioral,
        score.texture,
        score.raw_index,
        score.fused_index,
        score.label,
    )


def test_score_frame_populates_all_fields(symmetric_face, textured_face, textured_frame):
    engine = IdentityStabilityEngine()
    score = engine.score_frame(symmetric_face, textured_face, textured_frame)
    for value in (score.structural, score.behavioral, score.texture, score.raw_index, score.fused_index):
        assert isinstance(value, float)
        assert 0.0 <= value <= 1.0
    assert isinstance(score.label, RiskLabel)
    assert set(score.to_dict()) == {
        "structural", "behavioral", "texture", "raw_index", "fused_index", "label"
    }


def test_first_frame_behavioral_is_zero_for_any_input(textured_face, textured_frame):
    rng = np.random.default_rng(5)
    for _ in range(5):
        engine = IdentityStabilityEngine()
        lm = rng.uniform(0, 500, size=(68, 2))
        assert engine.score_frame(lm, textured_face, textured_frame).behavioral == 0.0


def test_expected_sub_scores_for_known_inputs(symmetric_face, textured_face, textured_frame):
    engine = IdentityStabilityEngine()
    score = engine.score_frame(symmetric_face, textured_face, textured_frame)
    # face variance 100 / 1000 -> 0.9, frame 100 / 2000 -> 0.95
    expected_texture = 0.7 * 0.9 + 0.3 * 0.95
    assert score.texture == pytest.approx(expected_texture)
    assert score.raw_index == pytest.approx(score.structural * (1.0 - expected_texture))
    assert score.fused_index == pytest.approx(score.raw_index)


@pytest.mark.parametrize(
    "landmarks, face, frame",
    [
        (None, None, None),
        ([], np.zeros((0, 0, 3)), np.zeros((0, 0, 3))),
        (np.zeros((10, 2)), np.zeros((5, 5, 3)), "junk"),
        (np.full((68, 2), np.nan), np.full((4, 4, 3), np.inf), np.ones((4, 4, 3))),
        ("junk", 42, [[1, 2], [3]]),
    ],
)
def test_degenerate_input_never_raises(landmarks, face, frame):
    engine = IdentityStabilityEngine()
    score = engine.score_frame(landmarks, face, frame)
    assert score.structural == 0.0
    assert score.behavioral == 0.0
    assert 0.0 <= score.fused_index <= 1.0
    assert not math.isnan(score.fused_index)
    assert score.label is RiskLabel.UNSTABLE


def test_twelve_identical_frames_converge(symmetric_face, textured_face, textured_frame):
    engine = IdentityStabilityEngine()
    scores = [
        engine.score_frame(symmetric_face.copy(), textured_face.copy(), textured_frame.copy())
        for _ in range(12)
    ]

    assert all(s.behavioral == 0.0 for s in scores)
    assert len({s.structural for s in scores}) == 1
    assert len({s.texture for s in scores}) == 1

    raw = scores[0].raw_index
    for s in scores[9:]:
        assert s.fused_index == pytest.approx(raw)
    assert len(engine.state.history) == 10


def test_reset_reproduces_fresh_session(symmetric_face, textured_face, textured_frame):
    engine = IdentityStabilityEngine()
    fresh = IdentityStabilityEngine().score_frame(symmetric_face, textured_face, textured_frame)

    # Pollute the session with unrelated history
    for k in range(6):
        engine.score_frame(symmetric_face + 7.0 * k, np.full((8, 8, 3), 10.0), textured_frame)
    engine.reset_state()
    assert engine.state.is_fresh
    assert engine.frames_scored == 0

    again = engine.score_frame(symmetric_face, textured_face, textured_frame)
    assert _fields(again) == _fields(fresh)


def test_independent_sessions_do_not_share_state(symmetric_face, textured_face, textured_frame):
    live = IdentityStabilityEngine()
    image = IdentityStabilityEngine()

    live.score_frame(symmetric_face, textured_face, textured_frame)
    moved = live.score_frame(symmetric_face + 4.0, textured_face, textured_frame)
    still = image.score_frame(symmetric_face + 4.0, textured_face, textured_frame)

    assert moved.behavioral > 0.0
    assert still.behavioral == 0.0
    assert live.state is not image.state


def test_motion_lowers_the_index(symmetric_face, textured_face, textured_frame):
    calm = IdentityStabilityEngine()
    jittery = IdentityStabilityEngine()
    for k in range(5):
        calm_score = calm.score_frame(symmetric_face, textured_face, textured_frame)
        offset = 6.0 if k % 2 else 0.0
        jitter_score = jittery.score_frame(symmetric_face + offset, textured_face, textured_frame)
    assert jitter_score.fused_index < calm_score.fused_index


def test_injected_state_is_used(symmetric_face, textured_face, textured_frame):
    state = FusionState(window_size=10)
    engine = IdentityStabilityEngine(state=state)
    engine.score_frame(symmetric_face, textured_face, textured_frame)
    assert engine.state is state
    assert len(state.history) == 1
    assert state.previous_landmarks is not None


def test_injected_state_window_must_match_config():
    cfg = StabilityConfig(fusion=FusionConfig(window_size=5))
    with pytest.raises(ValueError):
        IdentityStabilityEngine(cfg, state=FusionState(window_size=10))


def test_weighted_policy_end_to_end(symmetric_face, textured_face, textured_frame):
    cfg = StabilityConfig(fusion=FusionConfig(policy="weighted"))
    score = IdentityStabilityEngine(cfg).score_frame(symmetric_face, textured_face, textured_frame)
    expected = 0.4 * score.structural + 0.3 * 1.0 + 0.3 * (1.0 - score.texture)
    assert score.raw_index == pytest.approx(expected)
    assert score.label is RiskLabel.MODERATE


def test_uniform_pixels_collapse_multiplicative_index(symmetric_face):
    flat = np.full((32, 32, 3), 128, dtype=np.uint8)
    score = IdentityStabilityEngine().score_frame(symmetric_face, flat, flat)
    assert score.texture == 1.0
    assert score.fused_index == 0.0
    assert score.label is RiskLabel.UNSTABLE


def test_realistic_texture_reaches_stable(symmetric_face):
    rng = np.random.default_rng(0)
    noisy = rng.integers(0, 256, size=(64, 64, 3), dtype=np.uint8)
    engine = IdentityStabilityEngine()
    for _ in range(3):
        score = engine.score_frame(symmetric_face, noisy, noisy)
    assert score.label is RiskLabel.STABLE


def test_extreme_but_finite_landmarks_keep_scores_in_range(symmetric_face):
    lm = symmetric_face.copy()
    lm[:17, 0] = 1e308
    lm[0, 0] = -1e308
    flat = np.full((16, 16, 3), 90, dtype=np.uint8)
    score = IdentityStabilityEngine().score_frame(lm, flat, flat)
    assert not math.isnan(score.structural)
    assert score.structural == 0.0
    assert 0.0 <= score.fused_index <= 1.0
