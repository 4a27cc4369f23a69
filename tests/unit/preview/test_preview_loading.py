"""Tests for preview classification.

Exercises the empty/image/text/binary decision order, the prefix cap and the
optional extension mismatch check.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from PIL import Image

from vfm.preview import (
    PREVIEW_LIMIT,
    BinaryContent,
    EmptyContent,
    ImageContent,
    TextContent,
    decode_text,
    load_preview,
)


class LoadPreviewTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_text_file_with_mismatch_check_is_unknown(self) -> None:
        target = self.root / "a.txt"
        target.write_text("hello", encoding="utf-8")

        preview = load_preview(target, check_mismatch=True)

        self.assertEqual(preview.content, TextContent("hello"))
        self.assertEqual(preview.mismatch.kind, "unknown")
        self.assertIsNotNone(preview.metadata)
        self.assertEqual(len(preview.metadata.permissions), 9)

    def test_mismatch_is_skipped_when_disabled(self) -> None:
        target = self.root / "a.txt"
        target.write_text("hello", encoding="utf-8")

        self.assertIsNone(load_preview(target).mismatch)

    def test_empty_file(self) -> None:
        target = self.root / "empty"
        target.touch()
        self.assertEqual(load_preview(target).content, EmptyContent())

    def test_directory_is_empty_content(self) -> None:
        self.assertEqual(load_preview(self.root).content, EmptyContent())

    def test_binary_reports_full_size(self) -> None:
        target = self.root / "blob.bin"
        payload = b"\xff\xfe\x00\x01" * 40000
        target.write_bytes(payload)

        preview = load_preview(target)

        self.assertEqual(preview.content, BinaryContent(len(payload)))

    def test_text_is_capped_at_prefix_limit(self) -> None:
        target = self.root / "big.txt"
        target.write_text("a" * (PREVIEW_LIMIT + 100), encoding="utf-8")

        content = load_preview(target).content

        self.assertIsInstance(content, TextContent)
        self.assertEqual(len(content.text), PREVIEW_LIMIT)

    def test_multibyte_character_cut_by_limit_is_still_text(self) -> None:
        target = self.root / "utf8.txt"
        body = "a" * (PREVIEW_LIMIT - 1) + "é"
        target.write_text(body, encoding="utf-8")

        content = load_preview(target).content

        self.assertIsInstance(content, TextContent)
        self.assertEqual(content.text, "a" * (PREVIEW_LIMIT - 1))

    def test_png_is_decoded_into_image_preview(self) -> None:
        target = self.root / "pic.png"
        Image.new("RGB", (12, 7), (255, 0, 0)).save(target)

        preview = load_preview(target, check_mismatch=True)

        self.assertEqual(preview.content, ImageContent(12, 7))
        self.assertEqual(preview.mismatch.kind, "match")
        image = preview.take_image()
        self.assertEqual(image.size, (12, 7))
        self.assertIsNone(preview.take_image())

    def test_corrupt_image_falls_back_to_binary(self) -> None:
        target = self.root / "broken.png"
        target.write_bytes(b"\x89PNG\r\n\x1a\n\xff\xff\xff\xff")

        preview = load_preview(target)

        self.assertIsInstance(preview.content, BinaryContent)
        self.assertIsNone(preview.image)

    def test_missing_file_raises(self) -> None:
        with self.assertRaises(OSError):
            load_preview(self.root / "gone.txt")


class DecodeTextTests(unittest.TestCase):
    def test_invalid_utf8_in_middle_is_binary(self) -> None:
        self.assertIsNone(decode_text(b"ab\xffcd"))

    def test_truncated_tail_is_trimmed(self) -> None:
        self.assertEqual(decode_text("xé".encode("utf-8")[:-1]), "x")


if __name__ == "__main__":
    unittest.main()
