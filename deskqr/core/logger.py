"""Logging for deskqr, built on loguru.

stdout belongs to the CLI, so the console sink writes to stderr. File sinks
are only added when ``config.log_to_file`` is set.
"""

from __future__ import annotations

from pathlib import Path
import sys
from typing import Any

from loguru import logger

from .config import config

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level:<8}</level> | "
    "<cyan>{extra[component]}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {extra[component]} | {name}:{line} | {message}"


class Logger:
    """Thin wrapper that tags every record with a component name."""

    def __init__(self, component: str = "deskqr") -> None:
        self.component = component
        self._logger = logger.bind(component=component)
        self._configure()

    def _configure(self) -> None:
        logger.remove()
        logger.configure(extra={"component": self.component})
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=config.log_level.upper(), colorize=True)

        if not config.log_to_file:
            return

        log_dir = Path(config.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        # Full debug trace, one file per day
        logger.add(
            log_dir / "deskqr_{time:YYYY-MM-DD}.log",
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="00:00",
            retention="14 days",
            compression="zip",
        )
        logger.add(
            log_dir / "deskqr_errors.log",
            format=FILE_FORMAT,
            level="ERROR",
            rotation="5 MB",
            retention=5,
        )

    def child(self, component: str) -> "Logger":
        """Return a logger for a sub-component without touching the sinks."""
        child = Logger.__new__(Logger)
        child.component = component
        child._logger = logger.bind(component=component)
        return child

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.opt(depth=1).info(message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.opt(depth=1).debug(message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.opt(depth=1).warning(message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.opt(depth=1).error(message, **kwargs)

    def success(self, message: str, **kwargs: Any) -> None:
        self._logger.opt(depth=1).success(message, **kwargs)

    def log_vision_detection(self, text: str, bbox: tuple[int, int, int, int], screen_index: int | None) -> None:
        """Record a decoded symbol; long payloads are shortened."""
        preview = text if len(text) <= 60 else text[:57] + "..."
        where = "bitmap" if screen_index is None else f"screen {screen_index}"
        self._logger.opt(depth=1).debug(f"QR {preview!r} at {bbox} ({where})")

    def log_performance(self, operation: str, duration_ms: float) -> None:
        self._logger.opt(depth=1).debug(f"{operation} took {duration_ms:.1f}ms")


log = Logger()
