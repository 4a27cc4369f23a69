"""Results of handling one event, applied by the loop after dispatch."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path


@dataclass(frozen=True)
class ShellAction:
    """Run an interactive shell in ``cwd``."""

    cwd: Path

    def describe(self) -> str:
        return "shell"


@dataclass(frozen=True)
class OpenWithAction:
    program: Path
    target: Path
    cwd: Path

    def describe(self) -> str:
        return self.program.name


SuspendAction = ShellAction | OpenWithAction


@dataclass(frozen=True)
class Effect:
    exit: bool = False
    redraw: bool = False
    request_preview: bool = False
    suspend: SuspendAction | None = None

    def merge(self, other: Effect) -> Effect:
        return replace(
            self,
            exit=self.exit or other.exit,
            redraw=self.redraw or other.redraw,
            request_preview=self.request_preview or other.request_preview,
            suspend=other.suspend if other.suspend is not None else self.suspend,
        )


NONE = Effect()
REDRAW = Effect(redraw=True)
EXIT = Effect(exit=True)
PREVIEW = Effect(redraw=True, request_preview=True)
