"""Route key presses to the handler for the current mode."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from ..runtime.effects import Effect
from .key_input import InputKeyHandler
from .key_lists import MarkerListKeyHandler, ProgramListKeyHandler
from .key_normal import NormalKeyHandler
from .keys import KeyMap
from .modes import InputMode, MarkerListMode, NormalMode, ProgramListMode

if TYPE_CHECKING:
    from ..runtime.session import Session


class KeyDispatcher:
    """One handler per mode; the active mode receives every key exclusively."""

    def __init__(self, session: Session, keymap: KeyMap) -> None:
        self.session = session
        self._handlers: dict[type, Callable[[str], Effect]] = {
            NormalMode: NormalKeyHandler(session, keymap).handle,
            InputMode: InputKeyHandler(session, keymap).handle,
            MarkerListMode: MarkerListKeyHandler(session, keymap).handle,
            ProgramListMode: ProgramListKeyHandler(session, keymap).handle,
        }

    def handle(self, key: str) -> Effect:
        state = self.session.state
        had_status = state.status_message is not None
        state.status_message = None
        effect = self._handlers[type(state.mode)](key)
        if had_status and not effect.redraw:
            effect = Effect(redraw=True).merge(effect)
        return effect
