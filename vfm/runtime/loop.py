"""The session event loop.

One event per turn: dispatch it, then apply the resulting ``Effect`` in a
fixed order (suspend, exit, preview request, redraw). The loop is the only
consumer of the channel and the only caller of ``Session`` methods.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable
from typing import Protocol

from . import effects
from .effects import Effect, SuspendAction
from .events import (
    ActionCompleted,
    DirEntriesLoaded,
    Event,
    EventChannel,
    ImageRendered,
    KeyPressed,
    Notice,
    PreviewLoaded,
    TerminalResized,
)
from .session import Session

logger = logging.getLogger(__name__)


class KeyHandler(Protocol):
    def handle(self, key: str) -> Effect: ...


class Renderer(Protocol):
    def draw(self, session: Session) -> None: ...


class Launcher(Protocol):
    def run(self, action: SuspendAction) -> str | None: ...


class RawModeTerminal(Protocol):
    def raw_mode(self) -> contextlib.AbstractContextManager: ...


_SESSION_HANDLERS: dict[type, Callable[[Session, Event], Effect]] = {
    TerminalResized: Session.handle_resize,
    DirEntriesLoaded: Session.apply_dir_entries,
    PreviewLoaded: Session.apply_preview,
    ImageRendered: Session.install_image,
    ActionCompleted: Session.apply_action_completed,
    Notice: Session.apply_notice,
}


def process_event(session: Session, keys: KeyHandler, event: Event) -> Effect:
    if isinstance(event, KeyPressed):
        return keys.handle(event.key)
    handler = _SESSION_HANDLERS.get(type(event))
    if handler is None:
        logger.warning("unhandled event %r", event)
        return effects.NONE
    return handler(session, event)


def apply_effect(session: Session, effect: Effect, renderer: Renderer, launcher: Launcher) -> bool:
    """Apply ``effect``; return ``False`` when the session should end."""
    if effect.suspend is not None:
        error = launcher.run(effect.suspend)
        effect = effect.merge(session.after_suspend(error))
    if effect.exit:
        return False
    if effect.request_preview:
        session.request_preview()
    if effect.redraw:
        renderer.draw(session)
    return True


def run_event_loop(
    session: Session,
    keys: KeyHandler,
    channel: EventChannel,
    terminal: RawModeTerminal,
    renderer: Renderer,
    launcher: Launcher,
    on_start: Callable[[], None] | None = None,
) -> None:
    """Run until an ``exit`` effect; the terminal is restored on every path."""
    with terminal.raw_mode():
        if on_start is not None:
            on_start()
        renderer.draw(session)
        while True:
            event = channel.get()
            if event is None:
                continue
            effect = process_event(session, keys, event)
            if not apply_effect(session, effect, renderer, launcher):
                return
