"""Runtime layer around the stability engine.

Pixel sampling, the per-frame driver, video scoring and the debug overlay:

from runtime import StabilityDriver, FaceDetection, score_image, score_video
"""

from .logging_utils import FrameProgressLogger, LoggingConfig, setup_logging
from .pixel_sampling import crop_face_region, sample_frame_region
from .runtime_driver import (
    FaceDetection,
    StabilityDriver,
    StabilityResult,
    VideoStabilityResult,
    score_image,
    score_video,
)
from .stability_overlay import draw_stability_overlay

__all__ = [
    "FrameProgressLogger",
    "LoggingConfig",
    "setup_logging",
    "crop_face_region",
    "sample_frame_region",
    "FaceDetection",
    "StabilityDriver",
    "StabilityResult",
    "VideoStabilityResult",
    "score_image",
    "score_video",
    "draw_stability_overlay",
]
