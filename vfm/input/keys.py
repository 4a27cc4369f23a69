"""Key binding parsing and the per-section key map.

Bindings are written as strings such as ``"q"``, ``"enter"``, ``"ctrl+p"``
or ``"shift+m"`` and resolved once at startup into the key tokens produced by
``vfm.input.reader.read_key``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

R = TypeVar("R")

_NAMED_KEYS = {
    "enter": "ENTER",
    "return": "ENTER",
    "esc": "ESC",
    "escape": "ESC",
    "backspace": "BACKSPACE",
    "tab": "TAB",
    "up": "UP",
    "down": "DOWN",
    "left": "LEFT",
    "right": "RIGHT",
    "home": "HOME",
    "end": "END",
    "delete": "DELETE",
    "space": " ",
}

DEFAULT_BINDINGS: dict[str, dict[str, tuple[str, ...]]] = {
    "normal": {
        "quit": ("q",),
        "up": ("k", "up"),
        "down": ("j", "down"),
        "parent": ("h", "left", "backspace"),
        "open": ("l", "right", "enter"),
        "search": ("/",),
        "clear_filter": ("esc",),
        "add": ("a",),
        "rename": ("r",),
        "delete": ("d",),
        "marker_set": ("m",),
        "marker_jump": ("'",),
        "marker_list": ("shift+m",),
        "settings": ("s",),
        "view": ("v",),
        "copy": ("y",),
        "cut": ("x",),
        "paste": ("p",),
        "open_shell": ("shift+s",),
        "open_with_picker": ("o",),
        "open_with_quick": ("shift+o",),
    },
    "add": {"dir": ("d",)},
    "delete": {"confirm": ("d",)},
    "copy": {"path": ("p",)},
    "settings": {
        "permissions": ("p",),
        "dates": ("d",),
        "owner": ("o",),
        "metadata": ("m",),
        "hidden": ("h",),
    },
    "view": {
        "permissions": ("p",),
        "owner": ("o",),
    },
    "input": {
        "submit": ("enter",),
        "cancel": ("esc",),
        "backspace": ("backspace",),
    },
    "confirm": {
        "yes": ("y", "shift+y"),
        "no": ("n", "shift+n", "esc"),
    },
    "marker_list": {
        "close": ("esc", "q"),
        "up": ("k", "up"),
        "down": ("j", "down"),
        "open": ("enter", "l"),
        "rename": ("r",),
        "edit_path": ("e",),
        "delete": ("d",),
        "add": ("a",),
        "search": ("/",),
    },
    "program_list": {
        "close": ("esc",),
        "up": ("up", "ctrl+p"),
        "down": ("down", "ctrl+n"),
        "open": ("enter",),
        "backspace": ("backspace",),
    },
}


def is_text_key(key: str) -> bool:
    """Return whether ``key`` is a printable character rather than a token."""
    return len(key) == 1 and key.isprintable()


def parse_key_binding(binding: str) -> str | None:
    """Translate one binding string into a key token, or ``None`` if invalid."""
    if len(binding) == 1:
        return binding
    text = binding.strip()
    if not text:
        return None
    if len(text) == 1:
        return text
    *modifiers, base = text.split("+")
    modifiers = [modifier.strip().lower() for modifier in modifiers]
    if not modifiers:
        return _NAMED_KEYS.get(base.lower())
    if modifiers == ["ctrl"] and len(base) == 1 and base.isalpha():
        return f"CTRL_{base.upper()}"
    if modifiers == ["shift"] and len(base) == 1:
        return base.upper()
    return None


class KeyMap:
    """Resolved key tokens per section and action."""

    def __init__(self, sections: Mapping[str, Mapping[str, Sequence[str]]]) -> None:
        self._sections = {
            section: {action: tuple(tokens) for action, tokens in actions.items()}
            for section, actions in sections.items()
        }

    @classmethod
    def from_config(cls, overrides: Mapping[str, Mapping[str, Sequence[str]]] | None = None) -> KeyMap:
        """Build the default key map with user overrides applied per action.

        Unknown sections/actions and unparsable binding strings are logged
        and ignored; an action whose overrides all fail keeps its defaults.
        """
        raw: dict[str, dict[str, Sequence[str]]] = {
            section: dict(actions) for section, actions in DEFAULT_BINDINGS.items()
        }
        for section, actions in (overrides or {}).items():
            if section not in raw:
                logger.warning("unknown key section %r", section)
                continue
            for action, bindings in actions.items():
                if action not in raw[section]:
                    logger.warning("unknown key action %s.%s", section, action)
                    continue
                raw[section][action] = tuple(bindings)

        sections: dict[str, dict[str, list[str]]] = {}
        for section, actions in raw.items():
            resolved: dict[str, list[str]] = {}
            for action, bindings in actions.items():
                tokens: list[str] = []
                for binding in bindings:
                    token = parse_key_binding(binding)
                    if token is None:
                        logger.warning("invalid key binding %r for %s.%s", binding, section, action)
                        continue
                    tokens.append(token)
                if not tokens:
                    tokens = [t for t in map(parse_key_binding, DEFAULT_BINDINGS[section][action]) if t]
                resolved[action] = tokens
            sections[section] = resolved
        return cls(sections)

    def combos(self, section: str, action: str) -> tuple[str, ...]:
        return self._sections.get(section, {}).get(action, ())

    def dispatcher(self, section: str, handlers: Mapping[str, Callable[[], R]]) -> KeyDispatcher[R]:
        """Bind every token of each handled action in ``section`` to its handler.

        When two handled actions share a token the later one wins.
        """
        table: dict[str, Callable[[], R]] = {}
        for action, handler in handlers.items():
            for token in self.combos(section, action):
                if token in table:
                    logger.debug("key %r in section %s rebound to %s", token, section, action)
                table[token] = handler
        return KeyDispatcher(table)


class KeyDispatcher(Generic[R]):
    """Key token -> handler table for one section of a ``KeyMap``."""

    def __init__(self, table: Mapping[str, Callable[[], R]]) -> None:
        self._table = dict(table)

    def dispatch(self, key: str) -> R | None:
        """Invoke the handler bound to ``key``; ``None`` when unbound."""
        handler = self._table.get(key)
        if handler is None:
            return None
        return handler()
