"""Bounding box reconstruction from QR locator points.

A decoder reports the three finder-pattern centres of a QR symbol (sometimes
with an extra alignment point). From those we rebuild the symbol's
parallelogram, grow it to cover the finder patterns and the quiet zone, and
return an axis-aligned rectangle clipped to the image.
"""

from __future__ import annotations

import itertools
import math
from typing import Optional, Sequence

import numpy as np

from .models import FinderPoint, Rectangle, Size

DEFAULT_QUIET_ZONE_FACTOR = 0.20


def _distance(p: FinderPoint, q: FinderPoint) -> float:
    return math.hypot(p.x - q.x, p.y - q.y)


def _squared_distance(p: FinderPoint, q: FinderPoint) -> float:
    dx = p.x - q.x
    dy = p.y - q.y
    return dx * dx + dy * dy


def pick_best_finder_triplet(
    points: Sequence[FinderPoint],
) -> tuple[FinderPoint, FinderPoint, FinderPoint]:
    """Return the three points spanning the largest perimeter.

    A spurious alignment point always lies inside the finder triangle, so
    any triangle using it has a smaller perimeter than the true one.
    """
    if len(points) < 3:
        raise ValueError("At least three points are required")
    if len(points) == 3:
        return points[0], points[1], points[2]

    best_score = -1.0
    best = (points[0], points[1], points[2])
    for a, b, c in itertools.combinations(points, 3):
        perimeter = _distance(a, b) + _distance(b, c) + _distance(c, a)
        if perimeter > best_score:
            best_score = perimeter
            best = (a, b, c)
    return best


def order_best_patterns(
    a: FinderPoint, b: FinderPoint, c: FinderPoint
) -> tuple[FinderPoint, FinderPoint, FinderPoint]:
    """Order three finder centres as ``(top_left, top_right, bottom_left)``.

    The vertex opposite the longest side is the top-left corner. The other
    two are told apart by the sign of the cross product, matching ZXing's
    ``ResultPoint.orderBestPatterns`` so crops are never mirrored.
    """
    d_ab = _squared_distance(a, b)
    d_bc = _squared_distance(b, c)
    d_ac = _squared_distance(a, c)

    if d_bc >= d_ab and d_bc >= d_ac:
        top_left, p1, p2 = a, b, c
    elif d_ac >= d_ab and d_ac >= d_bc:
        top_left, p1, p2 = b, a, c
    else:
        top_left, p1, p2 = c, a, b

    cross = (p2.x - top_left.x) * (p1.y - top_left.y) - (p2.y - top_left.y) * (p1.x - top_left.x)
    if cross < 0:
        return top_left, p1, p2
    return top_left, p2, p1


def clamp_rectangle(rect: Rectangle, size: Size) -> Rectangle:
    """Clip *rect* so it lies within ``[0, width] x [0, height]``."""
    x = max(0, min(rect.x, size.width))
    y = max(0, min(rect.y, size.height))
    w = max(0, min(rect.width, size.width - x))
    h = max(0, min(rect.height, size.height - y))
    return Rectangle(x, y, w, h)


def reconstruct_bounding_box(
    points: Optional[Sequence[FinderPoint]],
    size: Size,
    quiet_zone_factor: float = DEFAULT_QUIET_ZONE_FACTOR,
) -> Rectangle:
    """Axis-aligned box around the symbol plus its quiet zone.

    Returns an empty rectangle when there are fewer than three points or the
    finder triangle is degenerate; never raises for bad geometry.
    """
    if not points or len(points) < 3:
        return Rectangle.empty()

    a, b, c = order_best_patterns(*pick_best_finder_triplet(points))

    ab_x, ab_y = b.x - a.x, b.y - a.y
    ac_x, ac_y = c.x - a.x, c.y - a.y
    len_ab = math.hypot(ab_x, ab_y)
    len_ac = math.hypot(ac_x, ac_y)
    if len_ab < 1 or len_ac < 1:
        return Rectangle.empty()
    # Collinear finders: the spanned parallelogram covers under one pixel
    if abs(ab_x * ac_y - ab_y * ac_x) < 1:
        return Rectangle.empty()

    # Unit vectors along both symbol axes, scaled by the growth distance
    grow_ab = len_ab * quiet_zone_factor
    grow_ac = len_ac * quiet_zone_factor
    grow_ab_x, grow_ab_y = ab_x / len_ab * grow_ab, ab_y / len_ab * grow_ab
    grow_ac_x, grow_ac_y = ac_x / len_ac * grow_ac, ac_y / len_ac * grow_ac

    # Fourth corner of the parallelogram (bottom-right)
    d_x, d_y = b.x + ac_x, b.y + ac_y

    corners = (
        (a.x - grow_ab_x - grow_ac_x, a.y - grow_ab_y - grow_ac_y),
        (b.x + grow_ab_x - grow_ac_x, b.y + grow_ab_y - grow_ac_y),
        (c.x - grow_ab_x + grow_ac_x, c.y - grow_ab_y + grow_ac_y),
        (d_x + grow_ab_x + grow_ac_x, d_y + grow_ab_y + grow_ac_y),
    )
    min_x = min(x for x, _ in corners)
    min_y = min(y for _, y in corners)
    max_x = max(x for x, _ in corners)
    max_y = max(y for _, y in corners)

    rect = Rectangle(
        math.floor(min_x),
        math.floor(min_y),
        math.ceil(max_x - min_x),
        math.ceil(max_y - min_y),
    )
    return clamp_rectangle(rect, size)


class BoundingBoxReconstructor:
    """``reconstruct_bounding_box`` with a tunable quiet-zone factor."""

    def __init__(self, quiet_zone_factor: float = DEFAULT_QUIET_ZONE_FACTOR) -> None:
        if quiet_zone_factor < 0:
            raise ValueError("quiet_zone_factor must not be negative")
        self.quiet_zone_factor = quiet_zone_factor

    def reconstruct(self, points: Optional[Sequence[FinderPoint]], size: Size) -> Rectangle:
        return reconstruct_bounding_box(points, size, self.quiet_zone_factor)


# ------------------------------------------------------------------
# Cropping helpers
# ------------------------------------------------------------------

def crop_rectangle(box: Rectangle, padding: int, size: Size) -> Rectangle:
    """Grow *box* by *padding* on every side and clip it to the image."""
    x = max(0, box.x - padding)
    y = max(0, box.y - padding)
    w = min(size.width - x, box.width + padding * 2)
    h = min(size.height - y, box.height + padding * 2)
    return Rectangle(x, y, max(0, w), max(0, h))


def crop_image(image: np.ndarray, box: Rectangle, padding: int = 0) -> Optional[np.ndarray]:
    """Copy the padded *box* out of *image*; ``None`` when nothing is left."""
    if box.is_empty():
        return None
    size = Size(width=int(image.shape[1]), height=int(image.shape[0]))
    rect = crop_rectangle(box, padding, size)
    if rect.is_empty():
        return None
    return image[rect.y:rect.bottom, rect.x:rect.right].copy()
