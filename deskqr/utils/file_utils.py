"""Filesystem helpers shared by the CLI, snippets and debug overlays."""

from __future__ import annotations

from datetime import datetime
import json
from pathlib import Path
from typing import Any, Iterable

from ..core.logger import log


def ensure_directory(directory_path: str | Path) -> str:
    """Create *directory_path* if needed and return it as an absolute path."""
    path = Path(directory_path).expanduser().resolve()
    path.mkdir(parents=True, exist_ok=True)
    return str(path)


def get_timestamp() -> str:
    """Filename-safe local timestamp with millisecond resolution."""
    return datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]


def save_json(records: Iterable[dict[str, Any]], filepath: str | Path) -> bool:
    """Write scan records to *filepath* as a JSON report.

    The report wraps the records with the time it was written and their
    count. Failures are logged and reported as ``False``; the CLI has
    already printed the results by the time the report is written.
    """
    records = list(records)
    report = {
        "generated_at": datetime.now().isoformat(timespec="seconds"),
        "count": len(records),
        "results": records,
    }
    target = Path(filepath)
    try:
        if target.parent != Path("."):
            ensure_directory(target.parent)
        target.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        log.error(f"Failed to save JSON report to {target}: {exc}")
        return False

    log.debug(f"Wrote {len(records)} record(s) to {target}")
    return True
