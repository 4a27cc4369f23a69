"""Run interactive external programs in the foreground.

The input reader is paused and the TUI is left before the program starts;
both are restored in ``finally`` whatever the outcome. Failures come back as
a status-line message instead of an exception.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Protocol

from .effects import OpenWithAction, ShellAction, SuspendAction

logger = logging.getLogger(__name__)

DEFAULT_SHELL = "/bin/sh"


class Suspendable(Protocol):
    def disable_tui_mode(self) -> None: ...

    def enable_tui_mode(self) -> None: ...


class Pausable(Protocol):
    def pause(self, timeout: float = ...) -> bool: ...

    def resume(self) -> None: ...


def command_for(action: SuspendAction) -> list[str]:
    if isinstance(action, ShellAction):
        return [os.environ.get("SHELL", "").strip() or DEFAULT_SHELL]
    if isinstance(action, OpenWithAction):
        return [str(action.program), str(action.target)]
    raise TypeError(f"unsupported suspend action {action!r}")


class ProcessLauncher:
    def __init__(self, terminal: Suspendable, reader: Pausable) -> None:
        self.terminal = terminal
        self.reader = reader

    def run(self, action: SuspendAction) -> str | None:
        """Run ``action`` to completion; return an error message or ``None``."""
        cmd = command_for(action)
        logger.debug("suspending for %s", cmd)
        self.reader.pause()
        self.terminal.disable_tui_mode()
        try:
            subprocess.run(cmd, cwd=action.cwd, check=False)
        except OSError as exc:
            logger.debug("launch failed: %s", exc)
            return f"Failed to launch {action.describe()}: {exc.strerror or exc}"
        finally:
            self.terminal.enable_tui_mode()
            self.reader.resume()
        return None
