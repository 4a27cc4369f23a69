"""User configuration loading.

Reads ``config.json`` from the platform config directory (or the file named
by ``$VFM_CONFIG`` / ``--config``; ``.toml`` files are accepted too). All
access is defensive: missing, unreadable or malformed config, and wrongly
typed values, fall back to defaults with a logged warning.
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "vfm"
CONFIG_FILENAME = "config.json"
CONFIG_DIR = Path(user_config_dir(APP_NAME, appauthor=False))
CONFIG_PATH = CONFIG_DIR / CONFIG_FILENAME
CONFIG_ENV_VAR = "VFM_CONFIG"


@dataclass(frozen=True)
class MetadataBarConfig:
    enabled: bool = False
    show_permissions: bool = True
    show_dates: bool = True
    show_owner: bool = True


@dataclass(frozen=True)
class AppConfig:
    check_mismatch: bool = False
    show_hidden: bool = True
    style: str = "monokai"
    metadata_bar: MetadataBarConfig = field(default_factory=MetadataBarConfig)
    # section -> action -> list of binding strings, e.g. {"normal": {"quit": ["q"]}}
    keys: dict[str, dict[str, list[str]]] = field(default_factory=dict)
    # digit -> program name resolved against the scanned PATH programs
    open_with_quick: dict[str, str] = field(default_factory=dict)


def resolve_config_path(explicit: Path | None = None) -> Path:
    if explicit is not None:
        return explicit
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return CONFIG_PATH


def read_config_data(path: Path) -> dict[str, object]:
    """Return the top-level mapping stored at ``path``, or ``{}``."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        logger.warning("cannot read config %s: %s", path, exc)
        return {}
    try:
        data = tomllib.loads(raw) if path.suffix == ".toml" else json.loads(raw)
    except (ValueError, tomllib.TOMLDecodeError) as exc:
        logger.warning("ignoring malformed config %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: top level is not a mapping", path)
        return {}
    return data


def _bool(data: dict[str, object], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if isinstance(value, bool):
        return value
    logger.warning("config value %r must be a boolean", key)
    return default


def _parse_metadata_bar(value: object) -> MetadataBarConfig:
    if not isinstance(value, dict):
        return MetadataBarConfig()
    return MetadataBarConfig(
        enabled=_bool(value, "enabled", False),
        show_permissions=_bool(value, "show_permissions", True),
        show_dates=_bool(value, "show_dates", True),
        show_owner=_bool(value, "show_owner", True),
    )


def _parse_keys(value: object) -> dict[str, dict[str, list[str]]]:
    if not isinstance(value, dict):
        return {}
    sections: dict[str, dict[str, list[str]]] = {}
    for section, actions in value.items():
        if not isinstance(section, str) or not isinstance(actions, dict):
            continue
        parsed: dict[str, list[str]] = {}
        for action, bindings in actions.items():
            if isinstance(bindings, str):
                bindings = [bindings]
            if not isinstance(bindings, list) or not all(isinstance(b, str) for b in bindings):
                logger.warning("ignoring key binding %s.%s", section, action)
                continue
            parsed[str(action)] = list(bindings)
        sections[section] = parsed
    return sections


def _parse_open_with_quick(value: object) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {
        str(slot): program
        for slot, program in value.items()
        if str(slot).isdigit() and len(str(slot)) == 1 and isinstance(program, str) and program
    }


def parse_config(data: dict[str, object]) -> AppConfig:
    style = data.get("style")
    return AppConfig(
        check_mismatch=_bool(data, "check_mismatch", False),
        show_hidden=_bool(data, "show_hidden", True),
        style=style if isinstance(style, str) and style else "monokai",
        metadata_bar=_parse_metadata_bar(data.get("metadata_bar")),
        keys=_parse_keys(data.get("keys")),
        open_with_quick=_parse_open_with_quick(data.get("open_with_quick")),
    )


def load_config(path: Path | None = None) -> AppConfig:
    config_path = resolve_config_path(path)
    config = parse_config(read_config_data(config_path))
    logger.debug("loaded config from %s", config_path)
    return config
