"""Module entrypoint for ``python -m vfm``.

Argument parsing, logging setup and session bootstrap live in ``vfm.cli``.
"""

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
