"""Low-level terminal input decoding and the input reader thread.

``read_key`` turns raw stdin bytes into normalized key tokens. ``InputReader``
polls it on a dedicated thread and posts ``KeyPressed`` events; it can be
paused (with acknowledgment) while an external program owns the terminal.
"""

from __future__ import annotations

import logging
import os
import select
import threading
from collections.abc import Callable

from ..runtime.events import Event, KeyPressed

logger = logging.getLogger(__name__)

ESC_SEQUENCE_TIMEOUT_MS = 25
POLL_TIMEOUT_MS = 100
_PENDING_BYTES: list[bytes] = []

_CSI_FINAL = {
    b"A": "UP",
    b"B": "DOWN",
    b"C": "RIGHT",
    b"D": "LEFT",
    b"H": "HOME",
    b"F": "END",
}
_CSI_TILDE = {
    b"1": "HOME",
    b"3": "DELETE",
    b"4": "END",
    b"7": "HOME",
    b"8": "END",
}
_CSI_MODIFIED = {
    (b"2", b"C"): "SHIFT_RIGHT",
    (b"2", b"D"): "SHIFT_LEFT",
    (b"3", b"C"): "ALT_RIGHT",
    (b"3", b"D"): "ALT_LEFT",
}


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _decode_text(fd: int, ch: bytes) -> str:
    data = ch
    for _ in range(_utf8_length(ch[0]) - 1):
        nxt = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if nxt is None:
            break
        data += nxt
    return data.decode("utf-8", errors="replace")


def _read_csi(fd: int) -> str:
    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "ESC"
    if seq in _CSI_FINAL:
        return _CSI_FINAL[seq]
    if not seq.isdigit():
        return "ESC"
    params = [seq]
    while True:
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            return "ESC"
        if part == b"~":
            return _CSI_TILDE.get(params[0], "ESC")
        if part == b";":
            modifier = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
            final = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
            if modifier is None or final is None:
                return "ESC"
            return _CSI_MODIFIED.get((modifier, final), _CSI_FINAL.get(final, "ESC"))
        params.append(part)
        if len(params) > 8:
            return "ESC"


def read_key(fd: int, timeout_ms: int | None = None) -> str:
    """Read one key token; ``""`` when ``timeout_ms`` elapses or on EOF."""
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return ""
        ch = os.read(fd, 1)
        if not ch:
            return ""

    if ch == b"\t":
        return "TAB"
    if ch in {b"\r", b"\n"}:
        return "ENTER"
    if ch in {b"\x08", b"\x7f"}:
        return "BACKSPACE"
    if b"\x01" <= ch <= b"\x1a":
        return f"CTRL_{chr(ord(ch) + 64)}"
    if ch != b"\x1b":
        return _decode_text(fd, ch)

    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "ESC"
    if seq in {b"b", b"B"}:
        return "ALT_LEFT"
    if seq in {b"f", b"F"}:
        return "ALT_RIGHT"
    if seq == b"O":
        final = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        return _CSI_FINAL.get(final, "ESC") if final is not None else "ESC"
    if seq != b"[":
        _PENDING_BYTES.append(seq)
        return "ESC"
    return _read_csi(fd)


class InputReader:
    """Background thread forwarding key presses to the session loop."""

    def __init__(
        self,
        fd: int,
        post: Callable[[Event], None],
        poll_timeout_ms: int = POLL_TIMEOUT_MS,
        read: Callable[[int, int | None], str] = read_key,
    ) -> None:
        self._fd = fd
        self._post = post
        self._poll_timeout_ms = poll_timeout_ms
        self._read = read
        self._stop = threading.Event()
        self._pause_requested = threading.Event()
        self._paused = threading.Event()
        self._resume = threading.Event()
        self._thread = threading.Thread(target=self._run, name="vfm-input", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def pause(self, timeout: float = 1.0) -> bool:
        """Stop reading stdin; returns once the thread acknowledges."""
        self._resume.clear()
        self._pause_requested.set()
        acknowledged = self._paused.wait(timeout)
        if not acknowledged:
            logger.warning("input reader did not acknowledge pause")
        return acknowledged

    def resume(self) -> None:
        self._pause_requested.clear()
        self._paused.clear()
        self._resume.set()

    def stop(self, timeout: float = 1.0) -> None:
        self._stop.set()
        self._resume.set()
        if self._thread.is_alive():
            self._thread.join(timeout)

    def _run(self) -> None:
        while not self._stop.is_set():
            if self._pause_requested.is_set():
                self._paused.set()
                self._resume.wait()
                continue
            try:
                key = self._read(self._fd, self._poll_timeout_ms)
            except OSError as exc:
                logger.warning("stdin read failed: %s", exc)
                return
            if key:
                self._post(KeyPressed(key))
