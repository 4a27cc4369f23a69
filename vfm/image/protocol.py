"""Terminal image backends.

Each backend wraps one decoded bitmap. ``resize_encode`` does the expensive
work (Pillow resampling plus payload encoding) and is only ever called on the
image worker thread; ``render`` just positions the cached payload and is cheap
enough for the event loop.
"""

from __future__ import annotations

import base64
import fcntl
import io
import logging
import struct
import sys
import termios
from dataclasses import dataclass
from enum import Enum

from PIL import Image

logger = logging.getLogger(__name__)

FALLBACK_CELL_SIZE = (8, 12)
KITTY_CHUNK_SIZE = 4096
HALF_BLOCK = "▀"


@dataclass(frozen=True)
class Rect:
    """Cell rectangle with a 0-based origin."""

    x: int
    y: int
    width: int
    height: int

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


class ResizeMode(Enum):
    FIT = "fit"
    CROP = "crop"


def target_pixels(
    image_size: tuple[int, int],
    cell_size: tuple[int, int],
    area: Rect,
    resize: ResizeMode,
) -> tuple[int, int]:
    """Return the pixel size the image occupies inside ``area``.

    ``FIT`` scales down preserving aspect ratio and never upscales. ``CROP``
    keeps the original scale and cuts whatever falls outside the area.
    """
    image_w, image_h = image_size
    cell_w, cell_h = cell_size
    max_w = max(1, area.width * cell_w)
    max_h = max(1, area.height * cell_h)
    if resize is ResizeMode.CROP:
        return (min(image_w, max_w), min(image_h, max_h))
    scale = min(max_w / max(1, image_w), max_h / max(1, image_h), 1.0)
    return (max(1, int(image_w * scale)), max(1, int(image_h * scale)))


def _ceil_div(value: int, divisor: int) -> int:
    return -(-value // max(1, divisor))


class ImageProtocol:
    """Base class for one image bound to one terminal graphics backend."""

    def __init__(self, image: Image.Image, cell_size: tuple[int, int]) -> None:
        self.image = image
        self.cell_size = cell_size
        self._encoded_key: tuple[ResizeMode, int, int] | None = None
        self.cells = (0, 0)

    def needs_resize(self, resize: ResizeMode, area: Rect) -> bool:
        return self._encoded_key != (resize, area.width, area.height)

    def resize_encode(self, resize: ResizeMode, area: Rect) -> None:
        width, height = target_pixels(self.image.size, self.cell_size, area, resize)
        if resize is ResizeMode.CROP:
            scaled = self.image.crop((0, 0, width, height))
        elif (width, height) == self.image.size:
            scaled = self.image
        else:
            scaled = self.image.resize((width, height), Image.Resampling.LANCZOS)
        cols = min(area.width, _ceil_div(width, self.cell_size[0]))
        rows = min(area.height, _ceil_div(height, self.cell_size[1]))
        self._encode(scaled, cols, rows)
        self.cells = (cols, rows)
        self._encoded_key = (resize, area.width, area.height)

    def _encode(self, scaled: Image.Image, cols: int, rows: int) -> None:
        raise NotImplementedError

    def render(self, area: Rect) -> str:
        """Return escape sequences drawing the cached payload at ``area``."""
        raise NotImplementedError


class KittyProtocol(ImageProtocol):
    """PNG payload sent through the kitty graphics protocol."""

    name = "kitty"

    def __init__(self, image: Image.Image, cell_size: tuple[int, int]) -> None:
        super().__init__(image, cell_size)
        self._payload = ""

    def _encode(self, scaled: Image.Image, cols: int, rows: int) -> None:
        buffer = io.BytesIO()
        scaled.convert("RGBA").save(buffer, format="PNG")
        self._payload = base64.b64encode(buffer.getvalue()).decode("ascii")

    def render(self, area: Rect) -> str:
        if not self._payload:
            return ""
        cols, rows = self.cells
        chunks = [
            self._payload[i : i + KITTY_CHUNK_SIZE]
            for i in range(0, len(self._payload), KITTY_CHUNK_SIZE)
        ]
        out = [f"\x1b7\x1b[{area.y + 1};{area.x + 1}H"]
        for index, chunk in enumerate(chunks):
            more = 1 if index < len(chunks) - 1 else 0
            if index == 0:
                out.append(f"\x1b_Ga=T,f=100,t=d,q=2,c={cols},r={rows},m={more};{chunk}\x1b\\")
            else:
                out.append(f"\x1b_Gm={more};{chunk}\x1b\\")
        out.append("\x1b8")
        return "".join(out)


class HalfBlockProtocol(ImageProtocol):
    """Truecolor upper-half-block cells, two pixel rows per terminal row."""

    name = "halfblocks"

    def __init__(self, image: Image.Image, cell_size: tuple[int, int] = (1, 2)) -> None:
        super().__init__(image, cell_size)
        self._lines: list[str] = []

    def _encode(self, scaled: Image.Image, cols: int, rows: int) -> None:
        rgb = scaled.convert("RGB").resize((cols, rows * 2), Image.Resampling.BOX)
        pixels = rgb.load()
        lines: list[str] = []
        for row in range(rows):
            cells: list[str] = []
            for col in range(cols):
                tr, tg, tb = pixels[col, row * 2]
                br, bg, bb = pixels[col, row * 2 + 1]
                cells.append(f"\x1b[38;2;{tr};{tg};{tb}m\x1b[48;2;{br};{bg};{bb}m{HALF_BLOCK}")
            lines.append("".join(cells) + "\x1b[0m")
        self._lines = lines

    def render(self, area: Rect) -> str:
        out: list[str] = []
        for offset, line in enumerate(self._lines[: max(0, area.height)]):
            out.append(f"\x1b[{area.y + offset + 1};{area.x + 1}H{line}")
        return "".join(out)


def query_cell_size(fd: int) -> tuple[int, int]:
    """Return the terminal cell size in pixels, or the fallback size."""
    try:
        packed = fcntl.ioctl(fd, termios.TIOCGWINSZ, b"\x00" * 8)
        rows, cols, x_pixels, y_pixels = struct.unpack("HHHH", packed)
    except OSError:
        return FALLBACK_CELL_SIZE
    if rows == 0 or cols == 0 or x_pixels == 0 or y_pixels == 0:
        return FALLBACK_CELL_SIZE
    return (x_pixels // cols, y_pixels // rows)


class ImagePicker:
    """Chooses the image backend once per session."""

    def __init__(self, backend: str, cell_size: tuple[int, int]) -> None:
        self.backend = backend
        self.cell_size = cell_size

    @classmethod
    def from_terminal(cls, kitty_supported: bool, fd: int | None = None) -> ImagePicker:
        if kitty_supported:
            cell_size = query_cell_size(fd if fd is not None else sys.stdout.fileno())
            logger.debug("image backend kitty, cell size %s", cell_size)
            return cls(KittyProtocol.name, cell_size)
        logger.debug("image backend halfblocks")
        return cls(HalfBlockProtocol.name, (1, 2))

    def new_protocol(self, image: Image.Image) -> ImageProtocol:
        if self.backend == KittyProtocol.name:
            return KittyProtocol(image, self.cell_size)
        return HalfBlockProtocol(image, self.cell_size)
