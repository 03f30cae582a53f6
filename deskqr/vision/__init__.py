"""QR localization for deskqr.

This sub-package enumerates displays, captures them, decodes QR codes and
reconstructs each symbol's on-screen rectangle.
"""

from .decoder import OpenCVQrDecoder, PyzbarQrDecoder, QrDecoder, create_decoder
from .geometry import BoundingBoxReconstructor, reconstruct_bounding_box
from .models import DecodeResult, FinderPoint, Rectangle, ScanResult, ScreenInfo, Size
from .scanner import MultiScreenQrScanner
from .screencap import CaptureError, ScreenCapturer
from .screens import ScreenEnumerator, ScreenIndexError

__all__ = [
    "BoundingBoxReconstructor",
    "CaptureError",
    "DecodeResult",
    "FinderPoint",
    "MultiScreenQrScanner",
    "OpenCVQrDecoder",
    "PyzbarQrDecoder",
    "QrDecoder",
    "Rectangle",
    "ScanResult",
    "ScreenCapturer",
    "ScreenEnumerator",
    "ScreenIndexError",
    "ScreenInfo",
    "Size",
    "create_decoder",
    "reconstruct_bounding_box",
]
