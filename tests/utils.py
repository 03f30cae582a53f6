import numpy as np
import cv2
import mss.exception

from deskqr.vision.models import DecodeResult, FinderPoint


def monitor(left, top, width, height):
    return {"left": left, "top": top, "width": width, "height": height}


class FakeGrabber:
    """Stand-in for ``mss.mss()`` that records grabs and closes."""

    def __init__(self, monitors, fail=False, open_error=None, scale=1):
        self.monitors = monitors
        self.fail = fail
        self.open_error = open_error
        self.scale = scale
        self.grabbed = []
        self.entered = 0
        self.exited = 0

    def __call__(self):
        if self.open_error is not None:
            raise mss.exception.ScreenShotError(self.open_error)
        return self

    def __enter__(self):
        self.entered += 1
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exited += 1
        return False

    def grab(self, mon):
        self.grabbed.append(dict(mon))
        if self.fail:
            raise mss.exception.ScreenShotError("grab failed")
        img = np.zeros((mon["height"] * self.scale, mon["width"] * self.scale, 4), dtype=np.uint8)
        img[:, :, 3] = 255
        return img


class FakeDecoder:
    """Decoder returning canned results."""

    def __init__(self, results=None):
        self.results = list(results or [])
        self.calls = 0

    def decode_many(self, image):
        self.calls += 1
        return list(self.results)

    def decode_one(self, image):
        self.calls += 1
        return self.results[0] if self.results else None


class DecoderSequence:
    """Factory handing out one ``FakeDecoder`` per call, in order."""

    def __init__(self, *result_lists):
        self._queue = [FakeDecoder(r) for r in result_lists]
        self.created = 0

    def __call__(self):
        decoder = self._queue[self.created] if self.created < len(self._queue) else FakeDecoder()
        self.created += 1
        return decoder


def finder_result(text, points):
    return DecodeResult(text=text, points=tuple(FinderPoint(float(x), float(y)) for x, y in points))


def make_qr_image(text, scale=8, border=40):
    """Render *text* as a QR code with OpenCV's encoder, BGRA, white border."""
    encoder = cv2.QRCodeEncoder.create()
    symbol = encoder.encode(text)
    if symbol.ndim == 3:
        symbol = cv2.cvtColor(symbol, cv2.COLOR_BGR2GRAY)
    h, w = symbol.shape[:2]
    symbol = cv2.resize(symbol, (w * scale, h * scale), interpolation=cv2.INTER_NEAREST)
    symbol = cv2.copyMakeBorder(symbol, border, border, border, border, cv2.BORDER_CONSTANT, value=255)
    return cv2.cvtColor(symbol, cv2.COLOR_GRAY2BGRA)


def has_qr_encoder():
    return hasattr(cv2, "QRCodeEncoder")
