"""Discover executables on ``PATH`` for the "open with" popup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgramEntry:
    name: str
    path: Path


def _is_executable(path: Path) -> bool:
    try:
        return path.is_file() and os.access(path, os.X_OK)
    except OSError:
        return False


def scan_programs(search_path: str | None = None) -> list[ProgramEntry]:
    """Return executables from ``search_path`` (default ``$PATH``).

    The first occurrence of each name wins, mirroring shell lookup order.
    The result is sorted case-insensitively by name.
    """
    raw = os.environ.get("PATH", "") if search_path is None else search_path
    seen: dict[str, ProgramEntry] = {}
    for directory in raw.split(os.pathsep):
        if not directory:
            continue
        try:
            children = sorted(Path(directory).iterdir())
        except OSError:
            continue
        for child in children:
            if child.name in seen or not _is_executable(child):
                continue
            seen[child.name] = ProgramEntry(child.name, child)
    programs = sorted(seen.values(), key=lambda entry: entry.name.lower())
    logger.debug("found %d programs on PATH", len(programs))
    return programs
