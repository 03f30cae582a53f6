"""Vision debugging helpers: draw detected QR boxes onto captures."""

from __future__ import annotations

import os
from typing import Optional

import cv2  # type: ignore
import numpy as np

from ..core.config import config
from ..utils.file_utils import ensure_directory, get_timestamp
from .models import Rectangle, ScanResult


def draw_results(image: np.ndarray, results: list[ScanResult], origin: Rectangle | None = None) -> np.ndarray:
    """Return a copy of *image* with every result's box and text drawn.

    *origin* is the desktop rectangle the image was captured from; boxes
    already translated to desktop-absolute coordinates are shifted back by
    its top-left corner.
    """
    canvas = image.copy()
    dx = origin.x if origin is not None else 0
    dy = origin.y if origin is not None else 0

    for res in results:
        if not res.has_bounding_box:
            continue
        color = (0, 0, 255, 255)  # Red in BGRA
        box = res.bounding_box.translate(-dx, -dy)
        x1, y1 = box.x, box.y
        x2, y2 = box.right, box.bottom

        cv2.rectangle(canvas, (x1, y1), (x2, y2), color, thickness=3)

        label = res.text if len(res.text) <= 40 else res.text[:37] + "..."
        font_scale = 0.5
        font = cv2.FONT_HERSHEY_SIMPLEX
        (text_w, text_h), _ = cv2.getTextSize(label, font, font_scale, 1)

        # White background behind the label for legibility
        text_bg_tl = (x1, max(0, y1 - text_h - 4))
        text_bg_br = (x1 + text_w + 4, max(0, y1))
        cv2.rectangle(canvas, text_bg_tl, text_bg_br, (255, 255, 255, 255), thickness=cv2.FILLED)

        text_org = (x1 + 2, max(10, y1 - 2))
        cv2.putText(canvas, label, text_org, font, font_scale, color, thickness=1, lineType=cv2.LINE_AA)

    return canvas


def save_debug_overlay(
    image: np.ndarray,
    results: list[ScanResult],
    origin: Rectangle | None = None,
    name: str = "scan",
) -> Optional[str]:
    """Save an annotated copy of *image* under the vision debug directory."""
    if not config.save_vision_debug:
        return None

    debug_dir = ensure_directory(config.vision_debug_dir)
    path = os.path.join(debug_dir, f"{name}_{get_timestamp()}_debug.png")
    cv2.imwrite(path, draw_results(image, results, origin))
    return path
