"""Command line entry point.

Examples::

    python -m deskqr screen              # whole virtual desktop
    python -m deskqr screen --each       # every display, all codes
    python -m deskqr image code.png --all --json
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional, Sequence

from PIL import Image

from .core.config import config
from .core.logger import log
from .utils.file_utils import save_json
from .vision.debug import save_debug_overlay
from .vision.decoder import available_backends, create_decoder
from .vision.models import ScanResult, as_bgra
from .vision.scanner import MultiScreenQrScanner
from .vision.screencap import CaptureError
from .vision.screens import ScreenIndexError
from .vision.snippets import save_result_snippet

EXIT_FOUND = 0
EXIT_NOT_FOUND = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="deskqr", description="Find and decode QR codes on screen or in images")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--output", "-o", help="Also write JSON results to this file")
    parser.add_argument("--snippets-dir", help="Save cropped QR codes as PNG files in this directory")
    parser.add_argument("--backend", choices=available_backends(), default=None,
                        help=f"Decoder backend (default: {config.decoder_backend})")

    sub = parser.add_subparsers(dest="command", required=True)

    screen = sub.add_parser("screen", help="Scan the desktop")
    target = screen.add_mutually_exclusive_group()
    target.add_argument("--primary", action="store_true", help="Scan only the primary display")
    target.add_argument("--screen", type=int, metavar="N", help="Scan only display N")
    target.add_argument("--each", action="store_true", help="Scan every display separately, report all codes")

    image = sub.add_parser("image", help="Scan an image file")
    image.add_argument("path", help="Path to the image file")
    image.add_argument("--all", action="store_true", help="Report every QR code, not just the first")

    return parser


def _scan(scanner: MultiScreenQrScanner, args: argparse.Namespace) -> list[ScanResult]:
    if args.command == "image":
        with Image.open(args.path) as img:
            bitmap = as_bgra(img)
        if args.all:
            results = scanner.scan_multiple_from_bitmap(bitmap)
        else:
            single = scanner.scan_bitmap(bitmap)
            results = [single] if single is not None else []
        save_debug_overlay(bitmap, results, name="image")
        return results

    if args.each:
        return scanner.scan_each_screen_separately()
    if args.primary:
        single = scanner.scan_primary_screen()
    elif args.screen is not None:
        single = scanner.scan_screen(args.screen)
    else:
        single = scanner.scan_all_screens()
    return [single] if single is not None else []


def _print_results(results: list[ScanResult], records: list[dict], as_json: bool) -> None:
    if as_json:
        print(json.dumps(records, indent=2, ensure_ascii=False))
        return
    for r, record in zip(results, records):
        where = "no bounding box" if not r.has_bounding_box else f"at {r.bounding_box.as_tuple()}"
        screen = "" if r.screen_index is None else f" (screen {r.screen_index})"
        snippet = f" -> {record['snippet']}" if record.get("snippet") else ""
        print(f"{r.text}\t{where}{screen}{snippet}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config.validate_config()
    except ValueError as exc:
        log.error(f"Invalid configuration: {exc}")
        return EXIT_ERROR

    decoder_factory = (lambda: create_decoder(args.backend)) if args.backend else None
    scanner = MultiScreenQrScanner(decoder_factory=decoder_factory)

    try:
        results = _scan(scanner, args)
    except (CaptureError, ScreenIndexError) as exc:
        log.error(str(exc))
        return EXIT_ERROR
    except OSError as exc:
        log.error(f"Could not read image {getattr(args, 'path', '')}: {exc}")
        return EXIT_ERROR

    records = []
    for r in results:
        record = r.to_dict()
        if args.snippets_dir:
            try:
                record["snippet"] = save_result_snippet(r, args.snippets_dir)
            except OSError as exc:
                log.warning(f"Could not save snippet: {exc}")
                record["snippet"] = None
        records.append(record)

    _print_results(results, records, args.json)
    if args.output:
        save_json(records, args.output)

    if not results:
        log.info("QR code not found")
        return EXIT_NOT_FOUND

    log.success(f"Found {len(results)} QR code(s)")
    return EXIT_FOUND


if __name__ == "__main__":
    sys.exit(main())
