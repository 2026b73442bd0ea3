"""
Logging utilities for the stability runtime.
Supports console output, optional file logging and periodic per-frame
progress summaries.
"""

import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union


@dataclass
class LoggingConfig:
    """Configuration for logging setup."""
    level: str = "INFO"
    log_dir: Optional[str] = None
    log_file: str = "stability.log"
    log_every_n_frames: int = 30


def setup_logging(
    config: Union[LoggingConfig, Dict[str, Any], None] = None,
    name: Optional[str] = None,
) -> logging.Logger:
    """
    Configure a logger (the root logger by default, so both the ``stability``
    and ``runtime`` packages are covered) with a console handler and, when
    ``log_dir`` is set, a file handler that records everything at DEBUG.

    Calling it twice for the same name replaces the handlers instead of
    stacking them.
    """
    if config is None:
        config = LoggingConfig()
    elif isinstance(config, dict):
        config = LoggingConfig(**config)

    logger = logging.getLogger(name)
    level = getattr(logging, str(config.level).upper(), logging.INFO)
    logger.setLevel(logging.DEBUG if config.log_dir else level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter('%(asctime)s | %(levelname)s | %(message)s', datefmt='%H:%M:%S')
    )
    logger.addHandler(console_handler)

    if config.log_dir:
        log_dir = Path(config.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / config.log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        )
        logger.addHandler(file_handler)

    return logger


class FrameProgressLogger:
    """Logs a one-line score summary every N scored frames."""

    def __init__(self, logger: logging.Logger, log_every_n_frames: int = 30):
        """
        Args:
            logger: Destination logger
            log_every_n_frames: How often to log; values below 1 disable logging
        """
        self.logger = logger
        self.log_every_n_frames = int(log_every_n_frames)
        self.frames_seen = 0
        self.last_log_time = time.time()

    def log_frame(self, frame_index: int, result: Any) -> bool:
        """
        Record one frame; return True when a summary line was emitted.

        ``result`` is a StabilityResult from the runtime driver.
        """
        self.frames_seen += 1
        if self.log_every_n_frames < 1 or self.frames_seen % self.log_every_n_frames != 0:
            return False

        now = time.time()
        elapsed = max(now - self.last_log_time, 1e-9)
        fps = self.log_every_n_frames / elapsed
        self.last_log_time = now

        scores = getattr(result, "scores", None)
        if scores is None:
            self.logger.info(f"🎞️ Frame {frame_index:5d} | no face | {fps:.1f} frames/s")
        else:
            self.logger.info(
                f"🎞️ Frame {frame_index:5d} | S={scores.structural:.2f} "
                f"B={scores.behavioral:.2f} T={scores.texture:.2f} "
                f"ISI={scores.fused_index:.2f} ({scores.label.value}) | {fps:.1f} frames/s"
            )
        return True


__all__ = ["LoggingConfig", "setup_logging", "FrameProgressLogger"]
