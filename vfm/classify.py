"""Magic-byte content sniffing and extension mismatch checks.

The preview pipeline uses ``detect_type`` to decide whether a file should go
through the image decoder, and ``check_buffer_mismatch`` to warn when a
file's extension disagrees with what its leading bytes say it is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

MISMATCH_PROBE_BYTES = 8192


@dataclass(frozen=True)
class DetectedType:
    mime: str
    extension: str

    @property
    def is_image(self) -> bool:
        return self.mime.startswith("image/")


@dataclass(frozen=True)
class MismatchStatus:
    """Result of comparing a file's extension with its sniffed content type."""

    kind: Literal["match", "mismatch", "unknown"]
    detected: DetectedType | None = None
    extension: str | None = None

    @property
    def is_mismatch(self) -> bool:
        return self.kind == "mismatch"


UNKNOWN = MismatchStatus("unknown")

# (offset, signature, mime, canonical extension); first match wins.
_SIGNATURES: tuple[tuple[int, bytes, str, str], ...] = (
    (0, b"\x89PNG\r\n\x1a\n", "image/png", "png"),
    (0, b"\xff\xd8\xff", "image/jpeg", "jpg"),
    (0, b"GIF87a", "image/gif", "gif"),
    (0, b"GIF89a", "image/gif", "gif"),
    (0, b"BM", "image/bmp", "bmp"),
    (0, b"II*\x00", "image/tiff", "tif"),
    (0, b"MM\x00*", "image/tiff", "tif"),
    (0, b"\x00\x00\x01\x00", "image/x-icon", "ico"),
    (0, b"%PDF-", "application/pdf", "pdf"),
    (0, b"PK\x03\x04", "application/zip", "zip"),
    (0, b"\x1f\x8b", "application/gzip", "gz"),
    (0, b"BZh", "application/x-bzip2", "bz2"),
    (0, b"\xfd7zXZ\x00", "application/x-xz", "xz"),
    (0, b"7z\xbc\xaf\x27\x1c", "application/x-7z-compressed", "7z"),
    (0, b"Rar!\x1a\x07", "application/vnd.rar", "rar"),
    (0, b"\x7fELF", "application/x-executable", "elf"),
    (0, b"OggS", "audio/ogg", "ogg"),
    (0, b"fLaC", "audio/x-flac", "flac"),
    (0, b"ID3", "audio/mpeg", "mp3"),
    (0, b"\x1aE\xdf\xa3", "video/x-matroska", "mkv"),
    (0, b"SQLite format 3\x00", "application/vnd.sqlite3", "sqlite"),
    (257, b"ustar", "application/x-tar", "tar"),
)

_EXTENSION_ALIASES = {
    "jpeg": "jpg",
    "jpe": "jpg",
    "tiff": "tif",
    "htm": "html",
    "yml": "yaml",
    "oga": "ogg",
    "ogv": "ogg",
    "ogm": "ogg",
}

# Formats that are legitimately stored inside a more generic container.
_CONTAINER_EXTENSIONS = {
    "zip": frozenset({"docx", "xlsx", "pptx", "odt", "ods", "odp", "epub", "jar", "apk", "whl"}),
    "gz": frozenset({"tgz"}),
    "mp4": frozenset({"m4v", "mov", "3gp"}),
    "elf": frozenset({"so", "o"}),
}


def normalize_extension(ext: str) -> str:
    ext = ext.lower().lstrip(".")
    return _EXTENSION_ALIASES.get(ext, ext)


def _detect_riff(buf: bytes) -> DetectedType | None:
    if len(buf) < 12 or buf[:4] != b"RIFF":
        return None
    kind = buf[8:12]
    if kind == b"WEBP":
        return DetectedType("image/webp", "webp")
    if kind == b"WAVE":
        return DetectedType("audio/x-wav", "wav")
    if kind == b"AVI ":
        return DetectedType("video/x-msvideo", "avi")
    return None


def _detect_iso_media(buf: bytes) -> DetectedType | None:
    if len(buf) < 12 or buf[4:8] != b"ftyp":
        return None
    brand = buf[8:12]
    if brand in {b"avif", b"avis"}:
        return DetectedType("image/avif", "avif")
    if brand in {b"heic", b"heix", b"mif1"}:
        return DetectedType("image/heif", "heic")
    if brand.startswith(b"M4A"):
        return DetectedType("audio/mp4", "m4a")
    return DetectedType("video/mp4", "mp4")


def detect_type(buf: bytes) -> DetectedType | None:
    """Identify ``buf`` by its leading magic bytes, or return ``None``."""
    for offset, signature, mime, extension in _SIGNATURES:
        if buf[offset : offset + len(signature)] == signature:
            return DetectedType(mime, extension)
    return _detect_riff(buf) or _detect_iso_media(buf)


def check_buffer_mismatch(path: Path, buf: bytes) -> MismatchStatus:
    """Compare ``path``'s extension against the sniffed type of ``buf``.

    Empty buffers, undetectable content and extension-less names yield
    ``unknown``; there is nothing to contradict in those cases.
    """
    if not buf:
        return UNKNOWN
    detected = detect_type(buf)
    if detected is None:
        return UNKNOWN
    suffix = path.suffix
    if not suffix:
        return UNKNOWN
    extension = normalize_extension(suffix)
    canonical = normalize_extension(detected.extension)
    if canonical == extension or extension in _CONTAINER_EXTENSIONS.get(canonical, ()):
        return MismatchStatus("match", detected, extension)
    return MismatchStatus("mismatch", detected, extension)


def check_file_mismatch(path: Path) -> MismatchStatus:
    try:
        with path.open("rb") as handle:
            buf = handle.read(MISMATCH_PROBE_BYTES)
    except OSError as exc:
        logger.debug("mismatch probe failed for %s: %s", path, exc)
        return UNKNOWN
    return check_buffer_mismatch(path, buf)
