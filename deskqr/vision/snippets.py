"""Persist cropped QR symbols as PNG snippet files."""

from __future__ import annotations

import os
import uuid
from typing import Optional

import cv2  # type: ignore
import numpy as np

from ..core.config import config
from ..core.logger import log
from ..utils.file_utils import ensure_directory
from .models import ScanResult


def save_snippet(image: np.ndarray, directory: Optional[str] = None) -> str:
    """Write *image* to ``<directory>/<uuid>.png`` and return the path.

    *directory* defaults to ``config.snippet_dir`` or the system temp dir.

    Raises:
        OSError: If the image could not be encoded or written.

    """
    target_dir = ensure_directory(directory or config.get_snippet_path())
    path = os.path.join(target_dir, f"{uuid.uuid4()}.png")
    if not cv2.imwrite(path, image):
        raise OSError(f"Failed to write snippet {path}")
    log.debug(f"Snippet saved to {path}")
    return path


def save_result_snippet(result: ScanResult, directory: Optional[str] = None) -> Optional[str]:
    """Save the cropped symbol of *result*, if it has one."""
    if result.cropped_image is None:
        return None
    return save_snippet(result.cropped_image, directory)
