"""Pytest configuration and path setup for local imports.

Ensures the repository root is on `sys.path` so tests can import the
top-level packages `stability` and `runtime` without installing the project,
and exposes the synthetic inputs from `synthetic_faces` as fixtures.
"""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


ROOT = Path(__file__).resolve().parents[1]
TESTS = Path(__file__).resolve().parent
for path in (ROOT, TESTS):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from synthetic_faces import make_symmetric_face, make_two_tone  # noqa: E402


@pytest.fixture
def symmetric_face() -> np.ndarray:
    return make_symmetric_face()


@pytest.fixture
def textured_face() -> np.ndarray:
    return make_two_tone((40, 40, 3))


@pytest.fixture
def textured_frame() -> np.ndarray:
    return make_two_tone((120, 160, 3))
