"""Terminal control for the session.

Owns the raw-mode and alternate-screen lifecycle and exposes the small
write/size surface the renderer needs. Kitty capability detection lives here
so the image picker can be chosen once at startup.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty


class TerminalController:
    """Manage terminal mode transitions for one TUI session."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        """Capture tty state and bind stdin/stdout file descriptors."""
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode with the cursor hidden."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, b"\x1b[?1049h\x1b[?25l\x1b[2J")

    def disable_tui_mode(self) -> None:
        """Show the cursor, leave the alternate screen and restore tty state."""
        if self.supports_kitty_graphics():
            self.kitty_clear_images()
        os.write(self.stdout_fd, b"\x1b[0m\x1b[?25h\x1b[?1049l")
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def write(self, text: str) -> None:
        data = text.encode("utf-8", errors="replace")
        while data:
            written = os.write(self.stdout_fd, data)
            data = data[written:]

    def size(self) -> tuple[int, int]:
        """Return ``(columns, rows)``."""
        size = shutil.get_terminal_size((80, 24))
        return size.columns, size.lines

    def supports_kitty_graphics(self) -> bool:
        """Return whether environment appears to support kitty graphics protocol."""
        term = os.environ.get("TERM", "")
        if term in {"xterm-kitty", "xterm-ghostty"}:
            return True
        return bool(os.environ.get("KITTY_WINDOW_ID"))

    def kitty_clear_images(self) -> None:
        """Delete all kitty images and placements from the screen."""
        os.write(self.stdout_fd, b"\x1b_Ga=d,d=A,q=2;\x1b\\")

    @contextlib.contextmanager
    def raw_mode(self):
        """Bracket the session with TUI enter/exit; exit runs on every path."""
        try:
            self.enable_tui_mode()
            yield self
        finally:
            self.disable_tui_mode()
