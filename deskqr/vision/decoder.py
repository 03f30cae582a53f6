"""QR decoder adapters.

The scanner only needs ``decode_one`` and ``decode_many``; any barcode
library can sit behind ``QrDecoder``. Two backends ship here:

* ``OpenCVQrDecoder`` built on ``cv2.QRCodeDetector`` (default)
* ``PyzbarQrDecoder`` built on ``pyzbar``/zbar

Both report the symbol's corner points. Decoder instances may be reused
sequentially but are not safe for concurrent calls from several threads.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

import cv2  # type: ignore
import numpy as np
from loguru import logger

from ..core.config import DECODER_BACKENDS, config
from .models import DecodeResult, FinderPoint


def _to_gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def _points_from_array(pts: Optional[np.ndarray]) -> tuple[FinderPoint, ...]:
    if pts is None:
        return ()
    flat = np.asarray(pts, dtype=np.float64).reshape(-1, 2)
    return tuple(FinderPoint(float(x), float(y)) for x, y in flat)


class QrDecoder(ABC):
    """Base class for QR decoders working on BGRA/BGR/grayscale arrays."""

    def __init__(self, try_inverted: bool = True) -> None:
        self.try_inverted = try_inverted

    @abstractmethod
    def _decode(self, gray: np.ndarray) -> list[DecodeResult]:
        """Decode every QR symbol found in a grayscale image."""

    def decode_many(self, image: np.ndarray) -> list[DecodeResult]:
        """Return all QR codes found in *image* (empty list when none)."""
        gray = _to_gray(image)
        results = self._decode(gray)
        if not results and self.try_inverted:
            results = self._decode(cv2.bitwise_not(gray))
        return results

    def decode_one(self, image: np.ndarray) -> Optional[DecodeResult]:
        """Return the first QR code found in *image*, or ``None``."""
        results = self.decode_many(image)
        return results[0] if results else None


class OpenCVQrDecoder(QrDecoder):
    """Decoder backed by ``cv2.QRCodeDetector``."""

    def __init__(self, try_inverted: bool = True) -> None:
        super().__init__(try_inverted)
        self._detector = cv2.QRCodeDetector()

    def _decode(self, gray: np.ndarray) -> list[DecodeResult]:
        results: list[DecodeResult] = []

        # Try multi first
        try:
            ret, data, points, _ = self._detector.detectAndDecodeMulti(gray)
        except cv2.error as exc:
            logger.debug("detectAndDecodeMulti failed: {}", exc)
            ret, data, points = False, None, None

        if ret and data and points is not None:
            for text, pts in zip(data, points):
                if not text:
                    continue
                results.append(DecodeResult(text=text, points=_points_from_array(pts)))
            if results:
                return results

        # Single fallback
        try:
            text, pts, _ = self._detector.detectAndDecode(gray)
        except cv2.error as exc:
            logger.debug("detectAndDecode failed: {}", exc)
            return results

        if text:
            results.append(DecodeResult(text=text, points=_points_from_array(pts)))
        return results


class PyzbarQrDecoder(QrDecoder):
    """Decoder backed by the zbar library through ``pyzbar``."""

    def __init__(self, try_inverted: bool = True) -> None:
        super().__init__(try_inverted)
        # pyzbar loads the native zbar library on import
        from pyzbar.pyzbar import ZBarSymbol, decode

        self._decode_zbar = decode
        self._symbols = [ZBarSymbol.QRCODE]

    def _decode(self, gray: np.ndarray) -> list[DecodeResult]:
        results: list[DecodeResult] = []
        for obj in self._decode_zbar(gray, symbols=self._symbols):
            text = obj.data.decode("utf-8", errors="replace")
            if not text:
                continue
            points = tuple(FinderPoint(float(p.x), float(p.y)) for p in obj.polygon)
            results.append(DecodeResult(text=text, points=points))
        return results


_BACKENDS = {
    "opencv": OpenCVQrDecoder,
    "pyzbar": PyzbarQrDecoder,
}


def create_decoder(backend: Optional[str] = None, try_inverted: Optional[bool] = None) -> QrDecoder:
    """Build a decoder for *backend* (defaults come from configuration)."""
    name = (backend or config.decoder_backend).lower()
    if name not in _BACKENDS:
        raise ValueError(f"Unknown decoder backend {name!r}, expected one of {DECODER_BACKENDS}")
    inverted = config.try_inverted if try_inverted is None else try_inverted
    return _BACKENDS[name](try_inverted=inverted)


def available_backends() -> Sequence[str]:
    return tuple(_BACKENDS)
