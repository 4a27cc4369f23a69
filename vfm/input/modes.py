"""Interaction modes, text-input actions and two-key prefixes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union


class InputActionKind(Enum):
    SEARCH = "search"
    MARKER_SEARCH = "marker_search"
    ADD_FILE = "add_file"
    ADD_DIR = "add_dir"
    RENAME = "rename"
    SET_MARKER = "set_marker"
    JUMP_MARKER = "jump_marker"
    RENAME_MARKER = "rename_marker"
    EDIT_MARKER_PATH = "edit_marker_path"
    CREATE_MARKER_NAME = "create_marker_name"
    CREATE_MARKER_PATH = "create_marker_path"
    CONFIRM_DELETE = "confirm_delete"


PROMPTS = {
    InputActionKind.SEARCH: "/",
    InputActionKind.MARKER_SEARCH: "Filter markers: ",
    InputActionKind.ADD_FILE: "New file: ",
    InputActionKind.ADD_DIR: "New directory: ",
    InputActionKind.RENAME: "Rename: ",
    InputActionKind.SET_MARKER: "Set marker: ",
    InputActionKind.JUMP_MARKER: "Jump to marker: ",
    InputActionKind.RENAME_MARKER: "Rename marker: ",
    InputActionKind.EDIT_MARKER_PATH: "Marker path: ",
    InputActionKind.CREATE_MARKER_NAME: "New marker name: ",
    InputActionKind.CREATE_MARKER_PATH: "New marker path: ",
    InputActionKind.CONFIRM_DELETE: "Delete {target}? (y/n) ",
}


@dataclass(frozen=True)
class InputAction:
    """What a text input does on commit.

    ``marker_name`` names the marker being edited; ``target`` is the path a
    rename or delete was started on.
    """

    kind: InputActionKind
    marker_name: str | None = None
    target: Path | None = None

    def prompt(self) -> str:
        template = PROMPTS[self.kind]
        if self.kind is InputActionKind.CONFIRM_DELETE:
            name = self.target.name if self.target is not None else ""
            return template.format(target=name)
        return template


class PendingPrefix(Enum):
    ADD = "add"
    SETTINGS = "settings"
    COPY = "copy"
    VIEW = "view"
    DELETE = "delete"
    OPEN_WITH = "open_with"


@dataclass(frozen=True)
class NormalMode:
    pass


@dataclass
class InputMode:
    action: InputAction
    buffer: str = ""


@dataclass(frozen=True)
class MarkerListMode:
    pass


@dataclass(frozen=True)
class ProgramListMode:
    pass


Mode = Union[NormalMode, InputMode, MarkerListMode, ProgramListMode]
