"""Data models for the QR localization subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import numpy as np
from PIL import Image


@dataclass(frozen=True, slots=True)
class Rectangle:
    """Axis-aligned integer rectangle ``(x, y, width, height)``."""

    x: int
    y: int
    width: int
    height: int

    @classmethod
    def empty(cls) -> Rectangle:
        return cls(0, 0, 0, 0)

    @classmethod
    def union(cls, rects: Iterable[Rectangle]) -> Rectangle:
        """Smallest rectangle containing every rectangle in *rects*."""
        rects = list(rects)
        if not rects:
            return cls.empty()
        left = min(r.x for r in rects)
        top = min(r.y for r in rects)
        right = max(r.right for r in rects)
        bottom = max(r.bottom for r in rects)
        return cls(left, top, right - left, bottom - top)

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return max(self.width, 0) * max(self.height, 0)

    def is_empty(self) -> bool:
        """True when the rectangle covers no pixels."""
        return self.width <= 0 or self.height <= 0

    def translate(self, dx: int, dy: int) -> Rectangle:
        """Return a copy moved by ``(dx, dy)``."""
        return Rectangle(self.x + dx, self.y + dy, self.width, self.height)

    def contains_point(self, px: float, py: float) -> bool:
        return self.x <= px <= self.right and self.y <= py <= self.bottom

    def as_tuple(self) -> tuple[int, int, int, int]:
        """Return rectangle as ``(x, y, width, height)`` tuple."""
        return self.x, self.y, self.width, self.height

    def as_monitor(self) -> dict[str, int]:
        """Return the ``mss`` monitor dict describing this rectangle."""
        return {"left": self.x, "top": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True, slots=True)
class Size:
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class ScreenInfo:
    """Snapshot of one display taken during a single enumeration."""

    bounds: Rectangle
    is_primary: bool
    handle: int  # monitor index in the grabber's monitor list


@dataclass(frozen=True, slots=True)
class FinderPoint:
    """Finder-pattern point in image-local coordinates."""

    x: float
    y: float


@dataclass(frozen=True, slots=True)
class DecodeResult:
    """Text and raw locator points returned by a decoder for one symbol."""

    text: str
    points: tuple[FinderPoint, ...] = ()


@dataclass(frozen=True, slots=True)
class ScanResult:
    """A decoded QR code together with where it was found.

    ``screen_index`` is ``-1`` for the all-screens composite and ``None`` for
    caller-supplied bitmaps. ``bounding_box`` is empty when the decoder did
    not provide enough geometry to localize the symbol.
    """

    text: str
    bounding_box: Rectangle
    screen_index: Optional[int] = None
    screen_bounds: Rectangle = field(default_factory=Rectangle.empty)
    points: tuple[FinderPoint, ...] = ()
    cropped_image: Optional[np.ndarray] = field(default=None, compare=False, repr=False)

    @property
    def has_bounding_box(self) -> bool:
        return not self.bounding_box.is_empty()

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation (the cropped image is omitted)."""
        return {
            "text": self.text,
            "bounding_box": list(self.bounding_box.as_tuple()),
            "screen_index": self.screen_index,
            "screen_bounds": list(self.screen_bounds.as_tuple()),
            "points": [[p.x, p.y] for p in self.points],
        }


# ---------------------------------------------------------------------------
# Captured image helpers
# ---------------------------------------------------------------------------

def as_bgra(image: np.ndarray | Image.Image) -> np.ndarray:
    """Normalise *image* to a contiguous ``(H, W, 4)`` uint8 BGRA array.

    Accepts PIL images (any mode) and numpy arrays that are grayscale
    ``(H, W)``, BGR ``(H, W, 3)`` or already BGRA ``(H, W, 4)``.
    """
    if isinstance(image, Image.Image):
        rgba = np.asarray(image.convert("RGBA"), dtype=np.uint8)
        return np.ascontiguousarray(rgba[:, :, [2, 1, 0, 3]])

    arr = np.asarray(image)
    if arr.dtype != np.uint8:
        raise TypeError(f"Expected uint8 pixel data, got {arr.dtype}")

    if arr.ndim == 2:
        alpha = np.full(arr.shape, 255, dtype=np.uint8)
        return np.ascontiguousarray(np.dstack([arr, arr, arr, alpha]))
    if arr.ndim == 3 and arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2], 255, dtype=np.uint8)
        return np.ascontiguousarray(np.dstack([arr, alpha]))
    if arr.ndim == 3 and arr.shape[2] == 4:
        return np.ascontiguousarray(arr)

    raise ValueError(f"Unsupported image shape {arr.shape}")


def image_size(image: np.ndarray) -> Size:
    """Return the ``Size`` of a captured image array."""
    return Size(width=int(image.shape[1]), height=int(image.shape[0]))
