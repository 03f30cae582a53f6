"""Screenshot capture utilities.

Regions are grabbed with ``mss`` into BGRA ``numpy`` arrays. The grabber owns
the native resources (device contexts, X11 images, bitmaps) and is always
opened in a ``with`` block so they are released on every exit path.
"""

from __future__ import annotations

import time

import cv2  # type: ignore
import mss
import mss.exception
import numpy as np

from ..core.logger import log as root_log
from .models import Rectangle, ScreenInfo
from .screens import CaptureError, GrabberFactory, ScreenEnumerator

log = root_log.child("capture")


class ScreenCapturer:
    """Capture screen regions into packed BGRA arrays."""

    def __init__(
        self,
        enumerator: ScreenEnumerator | None = None,
        grabber_factory: GrabberFactory = mss.mss,
    ) -> None:
        self._grabber_factory = grabber_factory
        self.enumerator = enumerator or ScreenEnumerator(grabber_factory)

    def capture(self, region: Rectangle) -> np.ndarray:
        """Capture exactly *region* of the desktop.

        Args:
            region: Desktop-absolute rectangle to grab.

        Returns:
            ``(region.height, region.width, 4)`` uint8 array, BGRA order.

        Raises:
            CaptureError: If the region is empty, the grab fails or the
                grabber returns something other than BGRA pixels.

        Grabs taken at a different pixel density are resized to *region*.

        """
        if region.is_empty():
            raise CaptureError(f"Cannot capture empty region {region.as_tuple()}")

        start = time.perf_counter()
        try:
            with self._grabber_factory() as sct:
                shot = sct.grab(region.as_monitor())
                image = np.array(shot, dtype=np.uint8)
        except mss.exception.ScreenShotError as exc:
            log.error(f"Screen capture of {region.as_tuple()} failed: {exc}")
            raise CaptureError(f"Screen capture of {region.as_tuple()} failed") from exc

        if image.ndim != 3 or image.shape[2] != 4:
            raise CaptureError(f"Grabber returned {image.shape}, expected BGRA pixels")
        if image.shape[:2] != (region.height, region.width):
            # HiDPI grabs come back in physical pixels; boxes stay in logical ones
            log.debug(f"Scaling {image.shape[1]}x{image.shape[0]} grab to {region.width}x{region.height}")
            image = cv2.resize(image, (region.width, region.height), interpolation=cv2.INTER_AREA)

        log.log_performance(f"capture {region.as_tuple()}", (time.perf_counter() - start) * 1000)
        return np.ascontiguousarray(image)

    # ------------------------------------------------------------------
    # Convenience compositions
    # ------------------------------------------------------------------
    def capture_all_screens(self) -> np.ndarray:
        """Capture the whole virtual desktop in one image."""
        return self.capture(self.enumerator.virtual_desktop_bounds())

    def capture_primary_screen(self) -> np.ndarray:
        _, screen = self.enumerator.primary_screen()
        return self.capture(screen.bounds)

    def capture_screen(self, index: int) -> np.ndarray:
        """Capture one display; raises ``ScreenIndexError`` for a bad *index*."""
        return self.capture(self.enumerator.screen(index).bounds)

    def capture_each_screen_separately(self) -> list[tuple[ScreenInfo, np.ndarray]]:
        """Capture every display into its own image."""
        return [(screen, self.capture(screen.bounds)) for screen in self.enumerator.list_screens()]
