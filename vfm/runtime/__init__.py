"""Session runtime: event channel, background jobs, loop and bootstrap.

``run_app`` is imported lazily so that lightweight modules (events, tasks)
can be used by the image worker and tests without pulling in the terminal
bootstrap.
"""

from __future__ import annotations


def run_app(*args, **kwargs):
    """Lazily import the session bootstrap to avoid package-import cycles."""
    from .app import run_app as _run_app

    return _run_app(*args, **kwargs)


__all__ = ["run_app"]
