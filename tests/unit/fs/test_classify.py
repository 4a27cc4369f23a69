"""Tests for magic-byte detection and extension mismatch checks."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from vfm.classify import check_buffer_mismatch, check_file_mismatch, detect_type, normalize_extension

PNG_HEADER = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG_HEADER = b"\xff\xd8\xff\xe0" + b"\x00" * 16


class DetectTypeTests(unittest.TestCase):
    def test_detects_common_signatures(self) -> None:
        self.assertEqual(detect_type(PNG_HEADER).mime, "image/png")
        self.assertEqual(detect_type(JPEG_HEADER).extension, "jpg")
        self.assertEqual(detect_type(b"%PDF-1.7\n").extension, "pdf")
        self.assertEqual(detect_type(b"RIFF\x00\x00\x00\x00WEBPVP8 ").mime, "image/webp")

    def test_plain_text_is_not_detected(self) -> None:
        self.assertIsNone(detect_type(b"hello"))

    def test_extension_aliases_normalize(self) -> None:
        self.assertEqual(normalize_extension(".JPEG"), "jpg")
        self.assertEqual(normalize_extension("yml"), "yaml")
        self.assertEqual(normalize_extension("ogv"), "ogg")


class MismatchTests(unittest.TestCase):
    def test_matching_extension(self) -> None:
        status = check_buffer_mismatch(Path("pic.png"), PNG_HEADER)
        self.assertEqual(status.kind, "match")

    def test_alias_extension_matches(self) -> None:
        status = check_buffer_mismatch(Path("photo.JPEG"), JPEG_HEADER)
        self.assertEqual(status.kind, "match")

    def test_mismatch_reports_detected_type_and_extension(self) -> None:
        status = check_buffer_mismatch(Path("report.jpg"), PNG_HEADER)

        self.assertTrue(status.is_mismatch)
        self.assertEqual(status.detected.mime, "image/png")
        self.assertEqual(status.extension, "jpg")

    def test_unknown_cases(self) -> None:
        self.assertEqual(check_buffer_mismatch(Path("a.png"), b"").kind, "unknown")
        self.assertEqual(check_buffer_mismatch(Path("a.txt"), b"hello").kind, "unknown")
        self.assertEqual(check_buffer_mismatch(Path("noext"), PNG_HEADER).kind, "unknown")

    def test_zip_container_formats_match(self) -> None:
        status = check_buffer_mismatch(Path("doc.docx"), b"PK\x03\x04" + b"\x00" * 20)
        self.assertEqual(status.kind, "match")

    def test_file_probe_of_missing_file_is_unknown(self) -> None:
        self.assertEqual(check_file_mismatch(Path("/no/such/file.png")).kind, "unknown")

    def test_file_probe_reads_prefix(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "fake.gif"
            target.write_bytes(PNG_HEADER)
            self.assertTrue(check_file_mismatch(target).is_mismatch)


if __name__ == "__main__":
    unittest.main()
