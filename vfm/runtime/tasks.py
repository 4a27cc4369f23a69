"""Thread-pool runner for detached background jobs.

Jobs receive a ``post`` callable for reporting results to the session loop.
Nothing is ever joined from the loop: results arrive as events and stale ones
are discarded on arrival.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

from .events import Event, EventChannel

logger = logging.getLogger(__name__)

Post = Callable[[Event], None]
Job = Callable[[Post], None]

DEFAULT_MAX_WORKERS = 4


class TaskRunner:
    """Submit jobs that post their outcome onto an ``EventChannel``."""

    def __init__(self, channel: EventChannel, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        self._channel = channel
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="vfm-task")

    def spawn(self, job: Job, name: str = "job") -> Future[None]:
        return self._executor.submit(self._run, job, name)

    def spawn_detached(self, task: Callable[[], None], name: str = "task") -> Future[None]:
        """Run a callable that reports nothing back (e.g. marker persistence)."""
        return self._executor.submit(self._run, lambda _post: task(), name)

    def _run(self, job: Job, name: str) -> None:
        logger.debug("start %s", name)
        try:
            job(self._channel.post)
        except Exception:
            logger.exception("background %s failed", name)
        else:
            logger.debug("done %s", name)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
