"""Preview construction for the selected file.

``load_preview`` is blocking and runs on a background job. It reads at most
``PREVIEW_LIMIT`` bytes, classifies the content, decodes images fully through
Pillow, and attaches stat metadata for the metadata bar.
"""

from __future__ import annotations

import logging
import stat
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image

from .classify import MismatchStatus, check_buffer_mismatch, detect_type
from .filesystem import FileMetadata, file_metadata, read_prefix

logger = logging.getLogger(__name__)

PREVIEW_LIMIT = 65536
# Longest UTF-8 sequence; a prefix cut inside one is still text.
_UTF8_MAX_TAIL = 3


@dataclass(frozen=True)
class TextContent:
    text: str


@dataclass(frozen=True)
class ImageContent:
    width: int
    height: int


@dataclass(frozen=True)
class BinaryContent:
    size: int


@dataclass(frozen=True)
class EmptyContent:
    pass


PreviewContent = TextContent | ImageContent | BinaryContent | EmptyContent


@dataclass
class Preview:
    """Classified preview of one path.

    ``image`` carries the decoded bitmap only until the session moves it into
    an image protocol object.
    """

    path: Path
    content: PreviewContent
    mismatch: MismatchStatus | None = None
    metadata: FileMetadata | None = None
    image: Image.Image | None = field(default=None, repr=False)

    def take_image(self) -> Image.Image | None:
        image, self.image = self.image, None
        return image


def decode_text(buf: bytes) -> str | None:
    """Decode ``buf`` as UTF-8, tolerating one truncated trailing sequence."""
    try:
        return buf.decode("utf-8")
    except UnicodeDecodeError as exc:
        if exc.reason != "unexpected end of data" or len(buf) - exc.start > _UTF8_MAX_TAIL:
            return None
        try:
            return buf[: exc.start].decode("utf-8")
        except UnicodeDecodeError:
            return None


def decode_image(path: Path) -> Image.Image | None:
    try:
        with Image.open(path) as image:
            image.load()
            return image.copy()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        logger.debug("image decode failed for %s: %s", path, exc)
        return None


def classify_buffer(buf: bytes, size: int) -> PreviewContent:
    if not buf:
        return EmptyContent()
    text = decode_text(buf)
    if text is not None:
        return TextContent(text)
    return BinaryContent(size)


def load_preview(path: Path, *, check_mismatch: bool = False) -> Preview:
    """Build a ``Preview`` for ``path``.

    Raises ``OSError`` when the file cannot be stat'ed or read.
    """
    st = path.stat()
    metadata = file_metadata(st)
    if not stat.S_ISREG(st.st_mode):
        return Preview(path, EmptyContent(), metadata=metadata)

    buf = read_prefix(path, PREVIEW_LIMIT)
    mismatch = check_buffer_mismatch(path, buf) if check_mismatch else None

    detected = detect_type(buf)
    if detected is not None and detected.is_image:
        image = decode_image(path)
        if image is not None:
            width, height = image.size
            return Preview(path, ImageContent(width, height), mismatch, metadata, image)

    return Preview(path, classify_buffer(buf, st.st_size), mismatch, metadata)
