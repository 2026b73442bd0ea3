"""
StabilityDriver: thin runtime orchestrator over stability.engine.

Purpose:
- Coordinate one sampled frame: landmark detection (injected collaborator),
  pixel sampling of the face and frame regions, then ISI scoring.
- Provide a small, UI-agnostic API that any frontend can call.

Notes:
- Scoring logic lives in stability.IdentityStabilityEngine; this module only
  prepares inputs and manages throttling and video iteration.
- The landmark detector is any object with
  ``detect(frame) -> Optional[FaceDetection]``.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

import cv2
import numpy as np

from stability.config import StabilityConfig
from stability.engine import FrameScore, IdentityStabilityEngine
from stability.risk import RiskLabel

from .logging_utils import FrameProgressLogger
from .pixel_sampling import crop_face_region, sample_frame_region
from .stability_overlay import draw_stability_overlay

logger = logging.getLogger(__name__)


@dataclass
class FaceDetection:
    """One detected face: 68 landmarks in frame pixels plus its box.

    - bbox: ``(x, y, w, h)`` in pixels.
    - score: detector confidence, informational only.
    """

    landmarks: Any
    bbox: Optional[Tuple[float, float, float, float]] = None
    score: float = 0.0


@dataclass
class StabilityResult:
    """Outputs of the driver for one frame.

    - scores: engine output, or None when no face was detected.
    - fused_index / label: always present; 0 and UNSTABLE without a face.
    """

    face_detected: bool
    fused_index: float
    label: RiskLabel
    scores: Optional[FrameScore] = None
    face_bbox: Optional[Tuple[float, float, float, float]] = None
    face_score: float = 0.0

    @classmethod
    def no_face(cls) -> "StabilityResult":
        return cls(face_detected=False, fused_index=0.0, label=RiskLabel.UNSTABLE)


class StabilityDriver:
    """Thin wrapper that owns one IdentityStabilityEngine session.

    - step(frame): detect, sample, score; returns StabilityResult.
    - overlay(frame, result): draws the debug overlay.
    - reset(): clears session state and throttling (call on source switch).

    Frames without a face leave the session state untouched, so motion and
    smoothing resume from the last scored face.
    """

    def __init__(
        self,
        detector: Optional[Any] = None,
        config: Optional[StabilityConfig] = None,
        *,
        max_hz: float = 0.0,
        log_every_n_frames: int = 0,
    ) -> None:
        self.detector = detector
        self.config = config or StabilityConfig()
        self.engine = IdentityStabilityEngine(self.config)
        self._interval = 0.0 if max_hz <= 0 else (1.0 / float(max_hz))
        self._last_ts = 0.0
        self._last_res: Optional[StabilityResult] = None
        self._frame_index = 0
        self._progress = FrameProgressLogger(logger, log_every_n_frames)

    def detect(self, frame: np.ndarray) -> Optional[FaceDetection]:
        """Run the injected detector; failures count as "no face"."""
        if self.detector is None:
            return None
        try:
            return self.detector.detect(frame)
        except Exception as e:
            logger.warning(f"Landmark detector failed: {e}")
            return None

    def score(self, frame: np.ndarray, detection: Optional[FaceDetection]) -> StabilityResult:
        """Score a frame for an already-computed detection (no throttling)."""
        if detection is None or detection.landmarks is None:
            return StabilityResult.no_face()

        face_pixels = crop_face_region(frame, detection.bbox)
        frame_pixels = sample_frame_region(frame, self.config.texture.sample_size)
        scores = self.engine.score_frame(detection.landmarks, face_pixels, frame_pixels)
        return StabilityResult(
            face_detected=True,
            fused_index=scores.fused_index,
            label=scores.label,
            scores=scores,
            face_bbox=detection.bbox,
            face_score=float(detection.score or 0.0),
        )

    def step(self, frame: np.ndarray) -> StabilityResult:
        """Detect and score one frame.

        Respects basic throttling via max_hz by returning the last result if
        called too frequently.
        """
        now = time.monotonic()
        if self._interval > 0 and (now - self._last_ts) < self._interval and self._last_res is not None:
            return self._last_res

        res = self.score(frame, self.detect(frame))
        self._progress.log_frame(self._frame_index, res)
        self._frame_index += 1
        self._last_res = res
        self._last_ts = now
        return res

    def overlay(self, frame: np.ndarray, result: StabilityResult) -> np.ndarray:
        """Return a copy of frame with the stability overlay."""
        return draw_stability_overlay(frame, result)

    def reset(self) -> None:
        """Reset the session state and throttling."""
        self.engine.reset_state()
        self._last_ts = 0.0
        self._last_res = None
        self._frame_index = 0


@dataclass
class VideoStabilityResult:
    """Container for per-frame stability series extracted from a video."""

    video_path: Path
    frame_indices: List[int]
    fused_index: List[float]
    structural: List[float]
    behavioral: List[float]
    texture: List[float]
    labels: List[RiskLabel]
    fps: float
    width: int
    height: int
    frame_count: Optional[int]
    processed_frames: int
    first_overlay: Optional[np.ndarray] = None
    last_overlay: Optional[np.ndarray] = None
    results: Optional[List[StabilityResult]] = None
    overlay_path: Optional[Path] = None

    @property
    def final_index(self) -> float:
        return self.fused_index[-1] if self.fused_index else 0.0

    @property
    def final_label(self) -> RiskLabel:
        return self.labels[-1] if self.labels else RiskLabel.UNSTABLE


def score_image(
    frame: np.ndarray,
    detector: Any,
    config: Optional[StabilityConfig] = None,
) -> StabilityResult:
    """
    Score a still image in a fresh session.

    A single observation has no motion baseline, so behavioral is 0 and the
    fused index equals the raw fusion value.
    """
    driver = StabilityDriver(detector, config)
    return driver.step(frame)


def score_video(
    video_path: Union[str, Path],
    detector: Any,
    *,
    config: Optional[StabilityConfig] = None,
    frame_stride: int = 1,
    max_frames: Optional[int] = None,
    start_frame: int = 0,
    capture_overlays: bool = False,
    save_overlay_to: Optional[Union[str, Path]] = None,
    overlay_codec: str = "mp4v",
    return_results: bool = False,
    log_every_n_frames: int = 0,
) -> VideoStabilityResult:
    """Score a full video file in one session and collect the per-frame series.

    Frames without a face contribute index 0 and UNSTABLE to the series but
    do not disturb the session state. Set ``save_overlay_to`` to export an
    annotated copy of the video.
    """

    if frame_stride < 1:
        raise ValueError("frame_stride must be >= 1")
    if start_frame < 0:
        raise ValueError("start_frame must be >= 0")
    if max_frames is not None and max_frames <= 0:
        raise ValueError("max_frames must be positive when provided")

    src = Path(video_path)
    if not src.exists():
        raise FileNotFoundError(f"video not found: {src}")

    cap = cv2.VideoCapture(str(src))
    if not cap.isOpened():
        raise RuntimeError(f"cannot open video: {src}")

    width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
    height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
    fps = float(cap.get(cv2.CAP_PROP_FPS) or 0.0)
    frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
    if not math.isfinite(fps) or fps <= 0:
        fps = 25.0

    driver = StabilityDriver(detector, config, log_every_n_frames=log_every_n_frames)

    writer = None
    out_path: Optional[Path] = None
    if save_overlay_to is not None:
        out_path = Path(save_overlay_to)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        fourcc = cv2.VideoWriter_fourcc(*overlay_codec)
        writer = cv2.VideoWriter(str(out_path), fourcc, max(fps, 1.0), (width, height))
        if not writer.isOpened():
            logger.warning(f"Overlay writer could not be opened: {out_path}")
            writer.release()
            writer = None

    frame_indices: List[int] = []
    fused: List[float] = []
    structural: List[float] = []
    behavioral: List[float] = []
    texture: List[float] = []
    labels: List[RiskLabel] = []
    results: Optional[List[StabilityResult]] = [] if return_results else None

    first_overlay = None
    last_overlay = None

    processed = 0
    idx = 0

    try:
        while True:
            ok, frame = cap.read()
            if not ok:
                break

            if idx < start_frame or ((idx - start_frame) % frame_stride) != 0:
                idx += 1
                continue

            res = driver.step(frame)

            frame_indices.append(idx)
            fused.append(float(res.fused_index))
            labels.append(res.label)
            if res.scores is not None:
                structural.append(res.scores.structural)
                behavioral.append(res.scores.behavioral)
                texture.append(res.scores.texture)
            else:
                structural.append(math.nan)
                behavioral.append(math.nan)
                texture.append(math.nan)

            if results is not None:
                results.append(res)

            if capture_overlays or writer is not None:
                overlay_frame = driver.overlay(frame, res)
                if capture_overlays:
                    if first_overlay is None:
                        first_overlay = overlay_frame.copy()
                    last_overlay = overlay_frame
                if writer is not None:
                    writer.write(overlay_frame)

            processed += 1
            idx += 1

            if max_frames is not None and processed >= int(max_frames):
                break
    finally:
        cap.release()
        if writer is not None:
            writer.release()

    logger.info(f"🎬 Scored {processed} frames from {src.name}")

    return VideoStabilityResult(
        video_path=src,
        frame_indices=frame_indices,
        fused_index=fused,
        structural=structural,
        behavioral=behavioral,
        texture=texture,
        labels=labels,
        fps=fps,
        width=width,
        height=height,
        frame_count=frame_count if frame_count > 0 else None,
        processed_frames=processed,
        first_overlay=first_overlay,
        last_overlay=last_overlay,
        results=results,
        overlay_path=out_path if writer is not None else None,
    )


__all__ = [
    "FaceDetection",
    "StabilityResult",
    "StabilityDriver",
    "VideoStabilityResult",
    "score_image",
    "score_video",
]
