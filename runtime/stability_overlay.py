from __future__ import annotations

import math
from typing import TYPE_CHECKING, List

import cv2
import numpy as np

from stability.risk import RiskLabel

if TYPE_CHECKING:  # pragma: no cover - type only
    from .runtime_driver import StabilityResult


def draw_stability_overlay(img: np.ndarray, result: "StabilityResult") -> np.ndarray:
    """
    Draw a lightweight overlay of the per-metric scores and the ISI bar on a
    BGR image.

    - Does not perform scoring; expects a StabilityResult from the driver.
    - Draws the face bbox if present, a text panel with the sub-scores and
      label, and a horizontal bar filled to the index and coloured by label.
    - Returns a new image; the original is not modified.
    """
    if img is None or img.ndim != 3 or img.shape[2] != 3:
        return img

    out = img.copy()
    overlay = img.copy()
    label: RiskLabel = result.label
    color = label.color_bgr

    if result.face_bbox is not None and all(math.isfinite(float(v)) for v in result.face_bbox):
        x, y, bw, bh = (int(round(v)) for v in result.face_bbox)
        cv2.rectangle(overlay, (x, y), (x + bw, y + bh), color, 2)

    lines: List[str] = []
    scores = result.scores
    if scores is None:
        lines.append("No face detected")
    else:
        lines.append(f"Structural: {scores.structural:.2f}")
        lines.append(f"Behavioral: {scores.behavioral:.2f}")
        lines.append(f"Texture: {scores.texture:.2f}")
    lines.append(f"ISI: {result.fused_index:.2f}")
    lines.append(label.display)

    # Backdrop rectangle sized to the widest line, plus room for the bar
    pad = 6
    line_h = 22
    bar_h = 10
    box_w = max(240, max(cv2.getTextSize(l, cv2.FONT_HERSHEY_SIMPLEX, 0.6, 1)[0][0] for l in lines) + 2 * pad)
    box_h = line_h * len(lines) + bar_h + 3 * pad
    x0, y0 = 10, 10
    cv2.rectangle(overlay, (x0, y0), (x0 + box_w, y0 + box_h), (0, 0, 0), -1)
    alpha = 0.5
    out = cv2.addWeighted(overlay, alpha, out, 1 - alpha, 0)

    y = y0 + pad + 16
    for l in lines:
        cv2.putText(out, l, (x0 + pad, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1, cv2.LINE_AA)
        y += line_h

    bar_x0 = x0 + pad
    bar_y0 = y0 + box_h - pad - bar_h
    bar_w = box_w - 2 * pad
    fill = int(round(bar_w * min(max(float(result.fused_index), 0.0), 1.0)))
    cv2.rectangle(out, (bar_x0, bar_y0), (bar_x0 + bar_w, bar_y0 + bar_h), (80, 80, 80), 1)
    if fill > 0:
        cv2.rectangle(out, (bar_x0, bar_y0), (bar_x0 + fill, bar_y0 + bar_h), color, -1)
    return out


__all__ = ["draw_stability_overlay"]
