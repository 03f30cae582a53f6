"""deskqr: find QR codes on the desktop and recover their on-screen rectangles."""

from .vision import (
    BoundingBoxReconstructor,
    CaptureError,
    MultiScreenQrScanner,
    Rectangle,
    ScanResult,
    ScreenCapturer,
    ScreenEnumerator,
    ScreenIndexError,
)

__version__ = "0.1.0"

__all__ = [
    "BoundingBoxReconstructor",
    "CaptureError",
    "MultiScreenQrScanner",
    "Rectangle",
    "ScanResult",
    "ScreenCapturer",
    "ScreenEnumerator",
    "ScreenIndexError",
]
