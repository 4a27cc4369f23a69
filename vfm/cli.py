"""Command-line front door for vfm.

Parses options, configures logging and loads config, then hands over to the
interactive session runtime.
"""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from .config import CONFIG_DIR, AppConfig, load_config

LOG_FILENAME = "debug.log"


def configure_logging(debug: bool, log_dir: Path = CONFIG_DIR) -> None:
    """Log to a rotating file with ``--debug``; otherwise disable logging.

    The TUI owns the terminal, so nothing may be written to stderr while it
    runs.
    """
    if not debug:
        logging.disable(logging.CRITICAL)
        return

    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_dir / LOG_FILENAME,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vfm", description="Keyboard-driven terminal file manager")
    parser.add_argument("path", nargs="?", type=Path, default=None, help="directory to start in (default: cwd)")
    parser.add_argument("--config", type=Path, default=None, help="config file (JSON or TOML)")
    parser.add_argument("--debug", action="store_true", help="write a debug log to the config directory")
    return parser


def resolve_start_dir(path: Path | None) -> Path | None:
    """Return the directory to open; a file argument opens its parent."""
    target = (path if path is not None else Path.cwd()).expanduser().resolve()
    if target.is_dir():
        return target
    if target.exists():
        return target.parent
    return None


def main(
    argv: Sequence[str] | None = None,
    *,
    run_app_fn: Callable[[Path, AppConfig], int] | None = None,
    configure_logging_fn: Callable[[bool], None] = configure_logging,
) -> int:
    args = build_parser().parse_args(argv)
    configure_logging_fn(args.debug)

    start_dir = resolve_start_dir(args.path)
    if start_dir is None:
        print(f"vfm: no such directory: {args.path}", file=sys.stderr)
        return 2

    config = load_config(args.config)
    if run_app_fn is None:
        from .runtime import run_app

        run_app_fn = run_app
    return run_app_fn(start_dir, config)


if __name__ == "__main__":
    raise SystemExit(main())
