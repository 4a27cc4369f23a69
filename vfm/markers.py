"""Named directory bookmarks ("markers") with detached persistence.

The store is mutated synchronously from the event loop. Persisting goes
through ``save_task()``, which captures a full snapshot at call time and
returns a callable that can run on any worker thread; later mutations never
leak into a snapshot that was already taken.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "vfm"
MARKERS_FILENAME = "markers.json"
MARKERS_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / MARKERS_FILENAME


def _parse_markers(data: object) -> dict[str, Path]:
    if not isinstance(data, dict):
        return {}
    raw = data.get("markers")
    if not isinstance(raw, dict):
        return {}
    markers: dict[str, Path] = {}
    for name, path in raw.items():
        if not isinstance(name, str) or not isinstance(path, str):
            continue
        name = name.strip()
        if not name or not path:
            continue
        markers[name] = Path(path)
    return markers


def write_markers(path: Path, markers: dict[str, Path]) -> None:
    """Atomically replace ``path`` with a JSON dump of ``markers``."""
    payload = {"markers": {name: str(target) for name, target in sorted(markers.items())}}
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=path.parent, prefix=path.name + ".", suffix=".tmp", delete=False
        ) as handle:
            tmp_path = Path(handle.name)
            handle.write(json.dumps(payload, indent=2) + "\n")
        os.replace(tmp_path, path)
    except OSError:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise


class MarkerStore:
    """In-memory marker map bound to one persistence file."""

    def __init__(self, path: Path | None = None, markers: dict[str, Path] | None = None) -> None:
        self.path = path if path is not None else MARKERS_PATH
        self._markers: dict[str, Path] = dict(markers or {})
        self._save_lock = threading.Lock()
        self._snapshot_seq = 0
        self._written_seq = 0

    @classmethod
    def load(cls, path: Path | None = None) -> MarkerStore:
        """Read markers from disk.

        A missing, unreadable or malformed file yields an empty store.
        """
        store_path = path if path is not None else MARKERS_PATH
        try:
            data = json.loads(store_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return cls(store_path)
        except (OSError, ValueError) as exc:
            logger.warning("ignoring unreadable markers file %s: %s", store_path, exc)
            return cls(store_path)
        return cls(store_path, _parse_markers(data))

    def __len__(self) -> int:
        return len(self._markers)

    def __contains__(self, name: object) -> bool:
        return name in self._markers

    def get(self, name: str) -> Path | None:
        return self._markers.get(name)

    def set(self, name: str, path: Path) -> None:
        self._markers[name] = path

    def remove(self, name: str) -> bool:
        return self._markers.pop(name, None) is not None

    def rename(self, old: str, new: str) -> bool:
        """Move ``old``'s path under ``new``, overwriting any existing ``new``.

        Returns ``False`` without touching the store when the names are equal
        or ``old`` does not exist.
        """
        if old == new or old not in self._markers:
            return False
        self._markers[new] = self._markers.pop(old)
        return True

    def entries(self) -> list[tuple[str, Path]]:
        return sorted(self._markers.items(), key=lambda item: item[0].lower())

    def snapshot(self) -> dict[str, Path]:
        return dict(self._markers)

    def save_task(self) -> Callable[[], None]:
        """Snapshot the markers now and return a callable that writes them.

        Tasks may run out of order on different threads. Writes are
        serialized and a snapshot older than one already on disk is skipped.
        """
        self._snapshot_seq += 1
        seq = self._snapshot_seq
        snapshot = self.snapshot()
        path = self.path

        def persist() -> None:
            with self._save_lock:
                if seq <= self._written_seq:
                    logger.debug("skipping stale marker snapshot %d (written %d)", seq, self._written_seq)
                    return
                try:
                    write_markers(path, snapshot)
                except OSError as exc:
                    logger.warning("failed to persist markers to %s: %s", path, exc)
                    return
                self._written_seq = seq

        return persist
