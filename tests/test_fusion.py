"""
Tests for StabilityFusion and FusionState.

What this suite covers (high level):
- Raw fusion math for the multiplicative and weighted policies, including
  the complement of the risk-polarity scores.
- Safety clamps: inputs and outputs live in [0, 1]; non-finite inputs count
  as 0.
- Temporal smoothing: arithmetic mean over a bounded FIFO, eviction of the
  oldest value, boundedness by the buffer range.
- Session state: reset empties the buffer and the motion baseline.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from stability.config import FusionConfig
from stability.fusion import FusionState, StabilityFusion


# ---- Unit tests: raw fusion ---------------------------------------------

def test_multiplicative_fusion_uses_complements():
    fusion = StabilityFusion()
    raw = fusion.raw_index(structural=0.9, behavioral=0.2, texture=0.5)
    assert raw == pytest.approx(0.9 * 0.8 * 0.5)


def test_multiplicative_fusion_collapses_on_any_zero_factor():
    fusion = StabilityFusion()
    assert fusion.raw_index(0.0, 0.1, 0.1) == 0.0
    assert fusion.raw_index(1.0, 1.0, 0.1) == 0.0
    assert fusion.raw_index(1.0, 0.1, 1.0) == 0.0


def test_weighted_fusion_matches_normalized_sum():
    fusion = StabilityFusion(FusionConfig(policy="weighted"))
    raw = fusion.raw_index(structural=0.9, behavioral=0.2, texture=0.5)
    expected = 0.4 * 0.9 + 0.3 * 0.8 + 0.3 * 0.5
    assert raw == pytest.approx(expected)


def test_weighted_fusion_normalizes_custom_weights():
    fusion = StabilityFusion(
        FusionConfig(policy="weighted", weights={"structural": 2.0, "stability": 1.0, "realism": 1.0})
    )
    raw = fusion.raw_index(structural=1.0, behavioral=1.0, texture=1.0)
    assert raw == pytest.approx(0.5)


def test_weighted_fusion_is_softer_than_multiplicative():
    mult = StabilityFusion()
    weighted = StabilityFusion(FusionConfig(policy="weighted"))
    # One collapsed dimension zeroes the product but not the weighted sum
    assert mult.raw_index(1.0, 1.0, 0.0) == 0.0
    assert weighted.raw_index(1.0, 1.0, 0.0) == pytest.approx(0.7)


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf, None, "x"])
def test_non_finite_inputs_are_treated_as_zero(bad):
    fusion = StabilityFusion()
    assert fusion.raw_index(bad, 0.0, 0.0) == 0.0
    assert fusion.raw_index(1.0, bad, 0.0) == 1.0


def test_out_of_range_inputs_are_clamped():
    fusion = StabilityFusion()
    assert fusion.raw_index(2.0, -1.0, -5.0) == 1.0


# ---- Unit tests: smoothing ----------------------------------------------

def test_smoothing_returns_running_mean():
    fusion = StabilityFusion()
    state = fusion.new_state()
    assert fusion.smooth(0.2, state) == pytest.approx(0.2)
    assert fusion.smooth(0.4, state) == pytest.approx(0.3)
    assert fusion.smooth(0.9, state) == pytest.approx(0.5)


def test_buffer_never_exceeds_capacity_and_evicts_oldest():
    fusion = StabilityFusion(FusionConfig(window_size=3))
    state = fusion.new_state()
    for value in (0.9, 0.1, 0.1, 0.1):
        fusion.smooth(value, state)
        assert len(state.history) <= 3
    assert list(state.history) == [0.1, 0.1, 0.1]
    assert fusion.smooth(0.1, state) == pytest.approx(0.1)


def test_smoothed_value_is_bounded_by_recent_raw_values():
    rng = np.random.default_rng(11)
    fusion = StabilityFusion(FusionConfig(window_size=10))
    state = fusion.new_state()
    raws = []
    for _ in range(200):
        raw = fusion.raw_index(*rng.uniform(0, 1, size=3))
        raws.append(raw)
        smoothed = fusion.smooth(raw, state)
        recent = raws[-10:]
        assert min(recent) <= smoothed <= max(recent)


def test_constant_input_converges_exactly():
    fusion = StabilityFusion()
    state = fusion.new_state()
    value = 0.1 + 0.2  # not exactly representable
    for _ in range(25):
        out = fusion.smooth(value, state)
    assert out == value


def test_fuse_returns_raw_and_smoothed():
    fusion = StabilityFusion()
    state = fusion.new_state()
    raw, smoothed = fusion.fuse(1.0, 0.0, 0.5, state)
    assert raw == pytest.approx(0.5)
    assert smoothed == pytest.approx(0.5)
    raw, smoothed = fusion.fuse(1.0, 0.0, 0.9, state)
    assert raw == pytest.approx(0.1)
    assert smoothed == pytest.approx(0.3)


# ---- Session state -------------------------------------------------------

def test_state_reset_clears_everything(symmetric_face):
    state = FusionState(window_size=4)
    state.previous_landmarks = symmetric_face
    state.history.extend([0.1, 0.2])
    assert not state.is_fresh
    state.reset()
    assert state.previous_landmarks is None
    assert len(state.history) == 0
    assert state.is_fresh
    assert state.history.maxlen == 4


def test_state_rejects_invalid_window():
    with pytest.raises(ValueError):
        FusionState(window_size=0)


def test_new_state_uses_configured_window():
    fusion = StabilityFusion(FusionConfig(window_size=7))
    assert fusion.new_state().history.maxlen == 7
