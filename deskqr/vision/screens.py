"""Display enumeration.

Screens are re-enumerated on every call so monitor hot-plug is always
reflected; nothing here caches topology.
"""

from __future__ import annotations

from typing import Any, Callable

import mss
import mss.exception

from ..core.logger import log as root_log
from .models import Rectangle, ScreenInfo

log = root_log.child("screens")

GrabberFactory = Callable[[], Any]


class CaptureError(RuntimeError):
    """Raised when the display capture primitive fails."""


class ScreenIndexError(IndexError):
    """Raised when a screen index does not match an enumerated display."""


def _monitor_to_rectangle(monitor: dict[str, Any]) -> Rectangle:
    return Rectangle(
        int(monitor["left"]),
        int(monitor["top"]),
        int(monitor["width"]),
        int(monitor["height"]),
    )


class ScreenEnumerator:
    """Query the attached displays through an ``mss`` grabber."""

    def __init__(self, grabber_factory: GrabberFactory = mss.mss) -> None:
        self._grabber_factory = grabber_factory

    def _read_monitors(self) -> list[dict[str, Any]]:
        try:
            with self._grabber_factory() as sct:
                return list(sct.monitors)
        except mss.exception.ScreenShotError as exc:
            log.error(f"Display enumeration failed: {exc}")
            raise CaptureError("Display enumeration failed") from exc

    def list_screens(self) -> list[ScreenInfo]:
        """Return every display that could be queried.

        Entry 0 of the grabber's monitor list is the combined virtual screen,
        so physical displays start at index 1. Displays with unreadable or
        empty geometry are skipped. The display positioned at the desktop
        origin is reported as primary.
        """
        screens: list[ScreenInfo] = []
        for handle, monitor in enumerate(self._read_monitors()[1:], start=1):
            try:
                bounds = _monitor_to_rectangle(monitor)
            except (KeyError, TypeError, ValueError) as exc:
                log.debug(f"Skipping monitor {handle}: {exc}")
                continue
            if bounds.is_empty():
                log.debug(f"Skipping monitor {handle}: empty bounds {bounds.as_tuple()}")
                continue
            screens.append(
                ScreenInfo(
                    bounds=bounds,
                    is_primary=bounds.x == 0 and bounds.y == 0,
                    handle=handle,
                )
            )
        return screens

    def virtual_desktop_bounds(self) -> Rectangle:
        """Bounding rectangle of the whole virtual desktop.

        Uses the grabber's own all-monitors entry; falls back to the union
        of the individual displays when that entry is missing.
        """
        monitors = self._read_monitors()
        if monitors:
            try:
                bounds = _monitor_to_rectangle(monitors[0])
            except (KeyError, TypeError, ValueError) as exc:
                log.debug(f"Virtual screen entry unreadable ({exc}); using display union")
            else:
                if not bounds.is_empty():
                    return bounds

        screens = []
        for monitor in monitors[1:]:
            try:
                screens.append(_monitor_to_rectangle(monitor))
            except (KeyError, TypeError, ValueError):
                continue
        return Rectangle.union(r for r in screens if not r.is_empty())

    def primary_screen(self) -> tuple[int, ScreenInfo]:
        """Return ``(index, screen)`` of the primary display.

        When no display is flagged primary, the first one is used.

        Raises:
            ScreenIndexError: If no display could be enumerated.
        """
        screens = self.list_screens()
        if not screens:
            raise ScreenIndexError("No displays available")
        for index, screen in enumerate(screens):
            if screen.is_primary:
                return index, screen
        return 0, screens[0]

    def screen(self, index: int) -> ScreenInfo:
        """Return the display at *index* in ``list_screens()`` order."""
        screens = self.list_screens()
        if index < 0 or index >= len(screens):
            raise ScreenIndexError(f"Screen index {index} out of range (0..{len(screens) - 1})")
        return screens[index]
