"""Session bootstrap: wire services together and run the event loop.

Markers are loaded and ``PATH`` is scanned concurrently before the loop
starts. All threads and the terminal are released in ``finally`` blocks.
"""

from __future__ import annotations

import logging
import signal
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from ..config import AppConfig
from ..image.protocol import ImagePicker
from ..image.worker import ImageRenderWorker
from ..input.dispatch import KeyDispatcher
from ..input.keys import KeyMap
from ..input.reader import InputReader
from ..markers import MarkerStore
from ..programs import scan_programs
from ..render import Renderer
from .events import EventChannel, TerminalResized
from .launcher import ProcessLauncher
from .loop import run_event_loop
from .session import Session
from .tasks import TaskRunner
from .terminal import TerminalController

logger = logging.getLogger(__name__)


def _load_startup_data(markers_path: Path | None) -> tuple[MarkerStore, list]:
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="vfm-startup") as pool:
        markers = pool.submit(MarkerStore.load, markers_path)
        programs = pool.submit(scan_programs)
        return markers.result(), programs.result()


def run_app(start_dir: Path, config: AppConfig, markers_path: Path | None = None) -> int:
    """Run an interactive session rooted at ``start_dir``; return an exit code."""
    if not sys.stdin.isatty() or not sys.stdout.isatty():
        print("vfm: stdin and stdout must be a terminal", file=sys.stderr)
        return 2

    markers, programs = _load_startup_data(markers_path)
    logger.debug("loaded %d markers and %d programs", len(markers), len(programs))

    channel = EventChannel()
    terminal = TerminalController(sys.stdin.fileno(), sys.stdout.fileno())
    kitty = terminal.supports_kitty_graphics()
    picker = ImagePicker.from_terminal(kitty, sys.stdout.fileno())
    tasks = TaskRunner(channel)
    image_worker = ImageRenderWorker(channel.post)
    reader = InputReader(sys.stdin.fileno(), channel.post)
    session = Session.create(
        start_dir,
        config=config,
        markers=markers,
        tasks=tasks,
        image_worker=image_worker,
        picker=picker,
        programs=programs,
    )
    keys = KeyDispatcher(session, KeyMap.from_config(config.keys))
    renderer = Renderer(terminal, style=config.style, kitty_images=kitty)
    launcher = ProcessLauncher(terminal, reader)

    previous_handler = signal.signal(signal.SIGWINCH, lambda _signum, _frame: channel.post(TerminalResized()))

    def start() -> None:
        image_worker.start()
        reader.start()
        session.start_listing()

    try:
        run_event_loop(session, keys, channel, terminal, renderer, launcher, on_start=start)
    finally:
        signal.signal(signal.SIGWINCH, previous_handler)
        reader.stop()
        image_worker.stop()
        tasks.shutdown()
    return 0
