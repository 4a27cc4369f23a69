"""Tests for image backend sizing and payload encoding."""

from __future__ import annotations

import unittest
from unittest import mock

from PIL import Image

from vfm.image.protocol import (
    FALLBACK_CELL_SIZE,
    KITTY_CHUNK_SIZE,
    HalfBlockProtocol,
    ImagePicker,
    KittyProtocol,
    Rect,
    ResizeMode,
    query_cell_size,
    target_pixels,
)


class TargetPixelsTests(unittest.TestCase):
    def test_fit_scales_down_preserving_aspect(self) -> None:
        size = target_pixels((1000, 500), (10, 20), Rect(0, 0, 50, 50), ResizeMode.FIT)
        self.assertEqual(size, (500, 250))

    def test_fit_never_upscales(self) -> None:
        size = target_pixels((20, 10), (10, 20), Rect(0, 0, 50, 50), ResizeMode.FIT)
        self.assertEqual(size, (20, 10))

    def test_crop_cuts_to_area(self) -> None:
        size = target_pixels((1000, 500), (10, 20), Rect(0, 0, 10, 10), ResizeMode.CROP)
        self.assertEqual(size, (100, 200))


class HalfBlockProtocolTests(unittest.TestCase):
    def test_encode_produces_one_line_per_two_pixel_rows(self) -> None:
        image = Image.new("RGB", (4, 4), (10, 20, 30))
        protocol = HalfBlockProtocol(image)
        area = Rect(5, 2, 10, 10)

        self.assertTrue(protocol.needs_resize(ResizeMode.FIT, area))
        protocol.resize_encode(ResizeMode.FIT, area)
        self.assertFalse(protocol.needs_resize(ResizeMode.FIT, area))

        payload = protocol.render(area)
        self.assertEqual(protocol.cells, (4, 2))
        self.assertIn("\x1b[3;6H", payload)
        self.assertIn("\x1b[4;6H", payload)
        self.assertIn("38;2;10;20;30", payload)
        self.assertEqual(payload.count("▀"), 8)

    def test_area_change_requires_new_encode(self) -> None:
        protocol = HalfBlockProtocol(Image.new("RGB", (4, 4)))
        protocol.resize_encode(ResizeMode.FIT, Rect(0, 0, 10, 10))
        self.assertTrue(protocol.needs_resize(ResizeMode.FIT, Rect(0, 0, 11, 10)))
        self.assertTrue(protocol.needs_resize(ResizeMode.CROP, Rect(0, 0, 10, 10)))


class KittyProtocolTests(unittest.TestCase):
    def test_payload_is_chunked_with_continuation_flags(self) -> None:
        image = Image.effect_noise((200, 200), 64).convert("RGB")
        protocol = KittyProtocol(image, (8, 16))
        area = Rect(0, 0, 40, 20)
        protocol.resize_encode(ResizeMode.FIT, area)

        payload = protocol.render(area)

        self.assertTrue(payload.startswith("\x1b7\x1b[1;1H\x1b_Ga=T,f=100,t=d"))
        self.assertIn("\x1b_Gm=0;", payload)
        self.assertTrue(payload.endswith("\x1b\\\x1b8"))
        first_chunk = payload.split("m=1;", 1)[1].split("\x1b\\")[0]
        self.assertEqual(len(first_chunk), KITTY_CHUNK_SIZE)

    def test_render_before_encode_is_empty(self) -> None:
        protocol = KittyProtocol(Image.new("RGB", (2, 2)), (8, 16))
        self.assertEqual(protocol.render(Rect(0, 0, 4, 4)), "")


class ImagePickerTests(unittest.TestCase):
    def test_halfblocks_without_kitty(self) -> None:
        picker = ImagePicker.from_terminal(False)
        self.assertIsInstance(picker.new_protocol(Image.new("RGB", (1, 1))), HalfBlockProtocol)

    def test_kitty_uses_queried_cell_size(self) -> None:
        with mock.patch("vfm.image.protocol.query_cell_size", return_value=(9, 18)):
            picker = ImagePicker.from_terminal(True, fd=1)
        protocol = picker.new_protocol(Image.new("RGB", (1, 1)))
        self.assertIsInstance(protocol, KittyProtocol)
        self.assertEqual(protocol.cell_size, (9, 18))

    def test_cell_size_falls_back_when_ioctl_fails(self) -> None:
        with mock.patch("vfm.image.protocol.fcntl.ioctl", side_effect=OSError("not a tty")):
            self.assertEqual(query_cell_size(1), FALLBACK_CELL_SIZE)


if __name__ == "__main__":
    unittest.main()
