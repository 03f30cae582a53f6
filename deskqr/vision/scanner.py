"""Multi-screen QR code scanner.

Drives capture, decode and bounding-box reconstruction over the whole
virtual desktop, a single display, every display separately, or a
caller-supplied bitmap.

Coordinate spaces:

* Boxes are always reconstructed in image-local coordinates.
* ``scan_all_screens`` boxes are relative to the virtual desktop's top-left.
* ``scan_primary_screen``/``scan_screen`` boxes are relative to that screen.
* ``scan_each_screen_separately`` boxes are translated to desktop-absolute
  coordinates by the owning screen's origin.

"No QR code visible" is reported as ``None`` or ``[]``; only capture
failures and bad screen indexes raise.
"""

from __future__ import annotations

import dataclasses
import time
from typing import Callable, Optional

import numpy as np
from PIL import Image

from ..core.config import config
from ..core.logger import log as root_log
from .debug import save_debug_overlay
from .decoder import QrDecoder, create_decoder
from .geometry import BoundingBoxReconstructor, crop_image
from .models import DecodeResult, Rectangle, ScanResult, as_bgra, image_size
from .screencap import ScreenCapturer
from .screens import ScreenEnumerator

log = root_log.child("scanner")

DecoderFactory = Callable[[], QrDecoder]


class MultiScreenQrScanner:
    """Locate and decode QR codes on the desktop or in bitmaps."""

    def __init__(
        self,
        capturer: ScreenCapturer | None = None,
        decoder: QrDecoder | None = None,
        decoder_factory: DecoderFactory | None = None,
        quiet_zone_factor: float | None = None,
        crop_padding: int | None = None,
    ) -> None:
        """Initialize the scanner.

        Parameters
        ----------
        capturer : ScreenCapturer, optional
            Screen capturer; also provides the screen enumerator.
        decoder : QrDecoder, optional
            Decoder reused by the single-result scans.
        decoder_factory : callable, optional
            Builds a fresh decoder for each multi-result scan.
        quiet_zone_factor : float, optional
            Growth applied around the finder triangle (config default 0.20).
        crop_padding : int, optional
            Pixels kept around cropped symbols (config default 32).

        """
        self.capturer = capturer or ScreenCapturer()
        self._decoder_factory = decoder_factory or create_decoder
        self._decoder = decoder or self._decoder_factory()
        self.reconstructor = BoundingBoxReconstructor(
            config.quiet_zone_factor if quiet_zone_factor is None else quiet_zone_factor
        )
        self.crop_padding = config.crop_padding if crop_padding is None else crop_padding
        if self.crop_padding < 0:
            raise ValueError("crop_padding must not be negative")

    @property
    def enumerator(self) -> ScreenEnumerator:
        return self.capturer.enumerator

    # ------------------------------------------------------------------
    # Screen scans
    # ------------------------------------------------------------------
    def scan_all_screens(self) -> Optional[ScanResult]:
        """Decode one QR code from a capture of the whole virtual desktop."""
        return self._scan_one_region(self.enumerator.virtual_desktop_bounds(), -1, "all_screens")

    def scan_primary_screen(self) -> Optional[ScanResult]:
        """Decode one QR code from the primary display."""
        index, screen = self.enumerator.primary_screen()
        return self._scan_one_region(screen.bounds, index, "primary_screen")

    def scan_screen(self, index: int) -> Optional[ScanResult]:
        """Decode one QR code from the display at *index*."""
        screen = self.enumerator.screen(index)
        return self._scan_one_region(screen.bounds, index, f"screen{index}")

    def scan_each_screen_separately(self) -> list[ScanResult]:
        """Decode every QR code on every display, one decode per display.

        Bounding boxes are returned in desktop-absolute coordinates.
        """
        results: list[ScanResult] = []
        for index, screen in enumerate(self.enumerator.list_screens()):
            screenshot = self.capturer.capture(screen.bounds)
            first = len(results)

            for result in self.scan_multiple_from_bitmap(screenshot):
                box = result.bounding_box
                if not box.is_empty():
                    # Image-local -> desktop-absolute
                    box = box.translate(screen.bounds.x, screen.bounds.y)
                results.append(
                    dataclasses.replace(
                        result,
                        bounding_box=box,
                        screen_index=index,
                        screen_bounds=screen.bounds,
                    )
                )
            # Boxes are desktop-absolute here, so the overlay is drawn relative to the screen
            save_debug_overlay(screenshot, results[first:], origin=screen.bounds, name=f"screen{index}")
        log.debug(f"Found {len(results)} QR code(s) across all screens")
        return results

    # ------------------------------------------------------------------
    # Bitmap scans
    # ------------------------------------------------------------------
    def scan_bitmap(self, image: np.ndarray | Image.Image) -> Optional[ScanResult]:
        """Decode a single QR code from a caller-supplied image.

        The bounding box stays in image-local coordinates.
        """
        bitmap = as_bgra(image)
        start = time.perf_counter()
        decoded = self._decoder.decode_one(bitmap)
        log.log_performance("decode_one", (time.perf_counter() - start) * 1000)

        if decoded is None:
            log.debug("No QR code found")
            return None
        return self._build_result(bitmap, decoded)

    def scan_multiple_from_bitmap(self, image: np.ndarray | Image.Image) -> list[ScanResult]:
        """Decode every QR code in a caller-supplied image."""
        bitmap = as_bgra(image)
        decoder = self._decoder_factory()
        start = time.perf_counter()
        decoded = decoder.decode_many(bitmap)
        log.log_performance("decode_many", (time.perf_counter() - start) * 1000)

        return [self._build_result(bitmap, item) for item in decoded]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _build_result(self, bitmap: np.ndarray, decoded: DecodeResult) -> ScanResult:
        box = self.reconstructor.reconstruct(decoded.points, image_size(bitmap))
        if box.is_empty():
            log.debug(f"Decoded {len(decoded.text)} chars but could not localize the symbol")
        cropped = crop_image(bitmap, box, self.crop_padding)
        log.log_vision_detection(decoded.text, box.as_tuple(), None)
        return ScanResult(
            text=decoded.text,
            bounding_box=box,
            points=decoded.points,
            cropped_image=cropped,
        )

    def _scan_one_region(self, bounds: Rectangle, index: int, name: str) -> Optional[ScanResult]:
        screenshot = self.capturer.capture(bounds)
        result = self.scan_bitmap(screenshot)
        save_debug_overlay(screenshot, [result] if result is not None else [], name=name)
        if result is None:
            return None
        return self._tag(result, index, bounds)

    @staticmethod
    def _tag(result: ScanResult, index: int, bounds: Rectangle) -> ScanResult:
        return dataclasses.replace(result, screen_index=index, screen_bounds=bounds)
