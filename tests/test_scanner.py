import os
import shutil
import tempfile
import unittest
from unittest import mock

import cv2
import numpy as np

from deskqr.core.config import config
from deskqr.vision.models import Rectangle
from deskqr.vision.scanner import MultiScreenQrScanner
from deskqr.vision.screencap import CaptureError, ScreenCapturer
from deskqr.vision.screens import ScreenIndexError
from tests.utils import DecoderSequence, FakeDecoder, FakeGrabber, finder_result, monitor

SIDE_BY_SIDE = [
    monitor(0, 0, 3840, 1080),
    monitor(0, 0, 1920, 1080),
    monitor(1920, 0, 1920, 1080),
]

# Finder centres that reconstruct to (10, 10, 50, 50) with no quiet zone
LOCAL_BOX_POINTS = [(10, 10), (60, 10), (10, 60)]


def make_scanner(decoder=None, decoder_factory=None, monitors=SIDE_BY_SIDE, fail=False, **kwargs):
    grabber = FakeGrabber(monitors, fail=fail)
    capturer = ScreenCapturer(grabber_factory=grabber)
    scanner = MultiScreenQrScanner(
        capturer=capturer,
        decoder=decoder or FakeDecoder(),
        decoder_factory=decoder_factory or DecoderSequence(),
        **kwargs,
    )
    return scanner, grabber


class TestNothingFound(unittest.TestCase):

    def test_every_scan_reports_not_found(self):
        scanner, _ = make_scanner()
        blank = np.zeros((40, 40, 4), dtype=np.uint8)

        self.assertIsNone(scanner.scan_all_screens())
        self.assertIsNone(scanner.scan_primary_screen())
        self.assertIsNone(scanner.scan_screen(1))
        self.assertEqual(scanner.scan_each_screen_separately(), [])
        self.assertIsNone(scanner.scan_bitmap(blank))
        self.assertEqual(scanner.scan_multiple_from_bitmap(blank), [])


class TestScreenScans(unittest.TestCase):

    def test_scan_all_screens_tags_composite(self):
        decoder = FakeDecoder([finder_result("all", [(100, 100), (200, 100), (100, 200)])])
        scanner, grabber = make_scanner(decoder=decoder)

        result = scanner.scan_all_screens()
        self.assertEqual(result.text, "all")
        self.assertEqual(result.screen_index, -1)
        self.assertEqual(result.screen_bounds, Rectangle(0, 0, 3840, 1080))
        self.assertEqual(result.bounding_box, Rectangle(80, 80, 140, 140))
        self.assertEqual(grabber.grabbed[-1]["width"], 3840)

    def test_scan_primary_screen(self):
        monitors = [
            monitor(-1920, 0, 3840, 1080),
            monitor(-1920, 0, 1920, 1080),
            monitor(0, 0, 1920, 1080),
        ]
        decoder = FakeDecoder([finder_result("primary", LOCAL_BOX_POINTS)])
        scanner, grabber = make_scanner(decoder=decoder, monitors=monitors, quiet_zone_factor=0.0)

        result = scanner.scan_primary_screen()
        self.assertEqual(result.screen_index, 1)
        self.assertEqual(result.screen_bounds, Rectangle(0, 0, 1920, 1080))
        # stays screen-local
        self.assertEqual(result.bounding_box, Rectangle(10, 10, 50, 50))
        self.assertEqual(grabber.grabbed[-1]["left"], 0)

    def test_scan_screen(self):
        decoder = FakeDecoder([finder_result("second", LOCAL_BOX_POINTS)])
        scanner, grabber = make_scanner(decoder=decoder, quiet_zone_factor=0.0)

        result = scanner.scan_screen(1)
        self.assertEqual(result.screen_index, 1)
        self.assertEqual(result.screen_bounds, Rectangle(1920, 0, 1920, 1080))
        self.assertEqual(grabber.grabbed[-1]["left"], 1920)

    def test_scan_screen_bad_index(self):
        scanner, _ = make_scanner()
        with self.assertRaises(ScreenIndexError):
            scanner.scan_screen(2)

    def test_capture_error_propagates(self):
        scanner, _ = make_scanner(fail=True)
        with self.assertRaises(CaptureError):
            scanner.scan_all_screens()
        with self.assertRaises(CaptureError):
            scanner.scan_each_screen_separately()

    def test_unavailable_display(self):
        grabber = FakeGrabber(SIDE_BY_SIDE, open_error="XOpenDisplay() failed")
        scanner = MultiScreenQrScanner(capturer=ScreenCapturer(grabber_factory=grabber), decoder=FakeDecoder())
        for scan in (scanner.scan_all_screens, scanner.scan_primary_screen, scanner.scan_each_screen_separately):
            with self.assertRaises(CaptureError):
                scan()
        with self.assertRaises(CaptureError):
            scanner.scan_screen(0)


class TestEachScreenSeparately(unittest.TestCase):

    def test_boxes_are_translated_to_desktop(self):
        factory = DecoderSequence([], [finder_result("right", LOCAL_BOX_POINTS)])
        scanner, grabber = make_scanner(decoder_factory=factory, quiet_zone_factor=0.0)

        results = scanner.scan_each_screen_separately()
        self.assertEqual(len(results), 1)
        result = results[0]
        self.assertEqual(result.text, "right")
        self.assertEqual(result.screen_index, 1)
        self.assertEqual(result.screen_bounds, Rectangle(1920, 0, 1920, 1080))
        self.assertEqual(result.bounding_box, Rectangle(1930, 10, 50, 50))
        # one decode per display
        self.assertEqual(factory.created, 2)
        self.assertEqual(len(grabber.grabbed), 2)

    def test_codes_on_several_screens(self):
        factory = DecoderSequence(
            [finder_result("a", LOCAL_BOX_POINTS), finder_result("b", [(500, 500), (600, 500), (500, 600)])],
            [finder_result("c", LOCAL_BOX_POINTS)],
        )
        scanner, _ = make_scanner(decoder_factory=factory, quiet_zone_factor=0.0)

        results = scanner.scan_each_screen_separately()
        self.assertEqual([r.text for r in results], ["a", "b", "c"])
        self.assertEqual([r.screen_index for r in results], [0, 0, 1])
        self.assertEqual(results[1].bounding_box, Rectangle(500, 500, 100, 100))
        self.assertEqual(results[2].bounding_box, Rectangle(1930, 10, 50, 50))

    def test_unlocalized_code_keeps_empty_box(self):
        factory = DecoderSequence([], [finder_result("text only", [(10, 10), (20, 20)])])
        scanner, _ = make_scanner(decoder_factory=factory)

        results = scanner.scan_each_screen_separately()
        self.assertEqual(results[0].text, "text only")
        self.assertTrue(results[0].bounding_box.is_empty())
        self.assertIsNone(results[0].cropped_image)


class TestDebugOverlays(unittest.TestCase):

    def test_each_screen_overlay_uses_screen_origin(self):
        factory = DecoderSequence([], [finder_result("right", LOCAL_BOX_POINTS)])
        scanner, _ = make_scanner(decoder_factory=factory, quiet_zone_factor=0.0)

        with mock.patch("deskqr.vision.scanner.save_debug_overlay") as overlay:
            scanner.scan_each_screen_separately()

        self.assertEqual(overlay.call_count, 2)
        image, results = overlay.call_args.args
        self.assertEqual(image.shape, (1080, 1920, 4))
        self.assertEqual(overlay.call_args.kwargs["origin"], Rectangle(1920, 0, 1920, 1080))
        self.assertEqual([r.bounding_box for r in results], [Rectangle(1930, 10, 50, 50)])

    def test_single_scans_save_overlay(self):
        decoder = FakeDecoder([finder_result("all", LOCAL_BOX_POINTS)])
        scanner, _ = make_scanner(decoder=decoder)

        with mock.patch("deskqr.vision.scanner.save_debug_overlay") as overlay:
            scanner.scan_all_screens()
            scanner.scan_screen(1)

        self.assertEqual([c.kwargs["name"] for c in overlay.call_args_list], ["all_screens", "screen1"])
        for c in overlay.call_args_list:
            self.assertEqual(len(c.args[1]), 1)

    def test_overlay_file_written_when_enabled(self):
        tmp = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, tmp, True)
        factory = DecoderSequence([], [finder_result("right", LOCAL_BOX_POINTS)])
        scanner, _ = make_scanner(decoder_factory=factory, quiet_zone_factor=0.0)

        with mock.patch.object(config, "save_vision_debug", True), \
                mock.patch.object(config, "vision_debug_dir", tmp):
            scanner.scan_each_screen_separately()

        written = sorted(os.listdir(tmp))
        self.assertEqual(len(written), 2)
        overlay = cv2.imread(os.path.join(tmp, written[-1]), cv2.IMREAD_UNCHANGED)
        # left edge of the (10, 10, 50, 50) box, back in screen coordinates
        self.assertEqual(tuple(overlay[35, 10]), (0, 0, 255, 255))


class TestBitmapScans(unittest.TestCase):

    def setUp(self):
        self.image = np.zeros((400, 500, 4), dtype=np.uint8)

    def test_scan_bitmap_crops_symbol(self):
        decoder = FakeDecoder([finder_result("bitmap", [(100, 100), (200, 100), (100, 200)])])
        scanner, grabber = make_scanner(decoder=decoder)

        result = scanner.scan_bitmap(self.image)
        self.assertEqual(result.bounding_box, Rectangle(80, 80, 140, 140))
        self.assertIsNone(result.screen_index)
        # 140 + 2 * 32 padding
        self.assertEqual(result.cropped_image.shape, (204, 204, 4))
        self.assertEqual(grabber.grabbed, [])

    def test_scan_bitmap_reuses_decoder(self):
        decoder = FakeDecoder([finder_result("again", LOCAL_BOX_POINTS)])
        scanner, _ = make_scanner(decoder=decoder)
        scanner.scan_bitmap(self.image)
        scanner.scan_bitmap(self.image)
        self.assertEqual(decoder.calls, 2)

    def test_scan_bitmap_accepts_gray(self):
        decoder = FakeDecoder([finder_result("gray", LOCAL_BOX_POINTS)])
        scanner, _ = make_scanner(decoder=decoder)
        result = scanner.scan_bitmap(np.zeros((100, 100), dtype=np.uint8))
        self.assertEqual(result.text, "gray")

    def test_text_without_geometry(self):
        decoder = FakeDecoder([finder_result("no box", [(10, 10)])])
        scanner, _ = make_scanner(decoder=decoder)

        result = scanner.scan_bitmap(self.image)
        self.assertEqual(result.text, "no box")
        self.assertFalse(result.has_bounding_box)
        self.assertIsNone(result.cropped_image)

    def test_scan_multiple_from_bitmap(self):
        factory = DecoderSequence([
            finder_result("one", [(10, 10), (60, 10), (10, 60)]),
            finder_result("two", [(300, 200), (400, 200), (300, 300)]),
        ])
        scanner, _ = make_scanner(decoder_factory=factory, crop_padding=5)

        results = scanner.scan_multiple_from_bitmap(self.image)
        self.assertEqual([r.text for r in results], ["one", "two"])
        self.assertEqual(results[1].bounding_box, Rectangle(280, 180, 140, 140))
        self.assertEqual(results[1].cropped_image.shape, (150, 150, 4))
        for r in results:
            self.assertIsNone(r.screen_index)

    def test_negative_padding_rejected(self):
        with self.assertRaises(ValueError):
            make_scanner(crop_padding=-1)


if __name__ == '__main__':
    unittest.main()
