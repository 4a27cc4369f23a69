"""ANSI palette used by the renderer.

Syntax highlighting style for text previews is a separate setting.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    reset: str
    reverse: str
    dim: str
    header: str
    directory: str
    file: str
    hidden: str
    selected: str
    filter_query: str
    status: str
    prompt: str
    warning: str
    metadata: str
    popup_border: str
    popup_title: str


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    reverse="\033[7m",
    dim="\033[2m",
    header="\033[1;38;5;44m",
    directory="\033[1;34m",
    file="\033[38;5;252m",
    hidden="\033[38;5;244m",
    selected="\033[7m",
    filter_query="\033[38;5;214m",
    status="\033[38;5;250m",
    prompt="\033[1;38;5;220m",
    warning="\033[1;38;5;203m",
    metadata="\033[38;5;110m",
    popup_border="\033[38;5;244m",
    popup_title="\033[1;38;5;81m",
)
