"""Keyboard input: raw key decoding, bindings and per-mode key handlers."""

from __future__ import annotations

from .keys import KeyDispatcher, KeyMap, parse_key_binding
from .modes import (
    InputAction,
    InputActionKind,
    InputMode,
    MarkerListMode,
    Mode,
    NormalMode,
    PendingPrefix,
    ProgramListMode,
)

__all__ = [
    "InputAction",
    "InputActionKind",
    "InputMode",
    "KeyDispatcher",
    "KeyMap",
    "MarkerListMode",
    "Mode",
    "NormalMode",
    "PendingPrefix",
    "ProgramListMode",
    "parse_key_binding",
]
