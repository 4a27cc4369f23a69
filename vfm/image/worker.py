"""Background image resize/encode worker and the session-side handle.

An ``ImageProtocol`` object is owned by exactly one party at a time: the
session (inside an ``ImageHandle``), the job queue, or the worker thread.
The worker always hands the object back through an ``ImageRendered`` event,
even when encoding fails, so the handle can never be left permanently empty
by a worker error.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass

from ..runtime.events import Event, ImageRendered
from .protocol import ImageProtocol, Rect, ResizeMode

logger = logging.getLogger(__name__)

IMAGE_QUEUE_SIZE = 8
_STOP = object()


@dataclass(frozen=True)
class ImageJob:
    version: int
    protocol: ImageProtocol
    resize: ResizeMode
    area: Rect


class ImageRenderWorker:
    """Single thread processing image jobs in FIFO order."""

    def __init__(self, post: Callable[[Event], None], maxsize: int = IMAGE_QUEUE_SIZE) -> None:
        self._post = post
        self._jobs: queue.Queue[object] = queue.Queue(maxsize=maxsize)
        self._thread = threading.Thread(target=self._run, name="vfm-image-worker", daemon=True)
        self._started = False

    def start(self) -> None:
        if not self._started:
            self._started = True
            self._thread.start()

    def submit(self, job: ImageJob) -> bool:
        """Queue ``job`` without blocking; ``False`` means the caller keeps ownership."""
        try:
            self._jobs.put_nowait(job)
        except queue.Full:
            logger.debug("image queue full, deferring version %d", job.version)
            return False
        return True

    def stop(self, timeout: float = 1.0) -> None:
        if not self._started:
            return
        try:
            self._jobs.put(_STOP, timeout=timeout)
        except queue.Full:
            logger.warning("image worker did not accept stop request")
            return
        self._thread.join(timeout=timeout)

    def _run(self) -> None:
        while True:
            job = self._jobs.get()
            if job is _STOP:
                return
            assert isinstance(job, ImageJob)
            try:
                job.protocol.resize_encode(job.resize, job.area)
            except Exception:
                logger.exception("image encode failed for version %d", job.version)
            finally:
                self._post(ImageRendered(job.version, job.protocol))


class ImageHandle:
    """Session-owned slot for one image protocol object.

    ``inner`` is ``None`` exactly while the object is in flight to or inside
    the worker.
    """

    def __init__(self, protocol: ImageProtocol, version: int) -> None:
        self._inner: ImageProtocol | None = protocol
        self.version = version

    @property
    def inner(self) -> ImageProtocol | None:
        return self._inner

    @property
    def in_flight(self) -> bool:
        return self._inner is None

    def render(self, area: Rect, resize: ResizeMode, worker: ImageRenderWorker) -> str | None:
        """Return the escape payload for ``area``, or ``None`` when not ready.

        When the cached encoding does not fit ``area`` the protocol object is
        moved into a worker job; the next ``ImageRendered`` brings it back.
        """
        protocol = self._inner
        if protocol is None or area.is_empty:
            return None
        if not protocol.needs_resize(resize, area):
            return protocol.render(area)
        self._inner = None
        if not worker.submit(ImageJob(self.version, protocol, resize, area)):
            self._inner = protocol
        return None

    def set_inner(self, protocol: ImageProtocol) -> None:
        if self._inner is not None:
            raise RuntimeError("image handle already owns a protocol object")
        self._inner = protocol
