"""Full-screen frame rendering.

Draws three columns (parent listing, current listing, preview), an optional
metadata bar, the prompt/status line and popups. Every frame is rebuilt from
a ``UiState`` snapshot; only syntax highlighting is cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from .ansi import fit_ansi_line
from .filesystem import FileEntry
from .highlight import colorize_source, sanitize_terminal_text
from .image.protocol import Rect
from .preview import BinaryContent, EmptyContent, ImageContent, TextContent
from .ui_state import PopupState, UiState
from .ui_theme import DEFAULT_THEME, UITheme

if TYPE_CHECKING:
    from .runtime.session import Session

logger = logging.getLogger(__name__)

DIVIDER = "│"
MIN_PANE_WIDTH = 8


class Screen(Protocol):
    def write(self, text: str) -> None: ...

    def size(self) -> tuple[int, int]: ...

    def kitty_clear_images(self) -> None: ...


@dataclass(frozen=True)
class Layout:
    columns: int
    rows: int
    parent_width: int
    current_width: int
    preview_width: int
    body_top: int
    body_height: int
    footer_rows: int

    @property
    def preview_x(self) -> int:
        return self.parent_width + self.current_width + 2


def compute_layout(columns: int, rows: int, footer_rows: int) -> Layout:
    parent_width = max(MIN_PANE_WIDTH, columns * 2 // 10)
    current_width = max(MIN_PANE_WIDTH, columns * 3 // 10)
    preview_width = max(0, columns - parent_width - current_width - 2)
    body_height = max(0, rows - 1 - footer_rows)
    return Layout(columns, rows, parent_width, current_width, preview_width, 1, body_height, footer_rows)


def scroll_offset(selected: int, count: int, height: int) -> int:
    """First visible row so that ``selected`` stays on screen."""
    if height <= 0 or count <= height:
        return 0
    return max(0, min(selected - height // 2, count - height))


def format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024 or unit == "GiB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


class Renderer:
    def __init__(
        self,
        screen: Screen,
        theme: UITheme = DEFAULT_THEME,
        style: str = "monokai",
        kitty_images: bool = False,
    ) -> None:
        self.screen = screen
        self.theme = theme
        self.style = style
        self.kitty_images = kitty_images
        self._highlight_key: tuple[object, ...] | None = None
        self._highlight_lines: list[str] = []

    # Columns

    def _entry_label(self, entry: FileEntry, ui: UiState | None = None) -> str:
        theme = self.theme
        color = theme.directory if entry.is_dir else theme.file
        if entry.name.startswith(".") and not entry.is_dir:
            color = theme.hidden
        prefix = ""
        if ui is not None and ui.show_list_permissions:
            prefix += f"{theme.dim}{entry.permissions or '---------'}{theme.reset} "
        if ui is not None and ui.show_list_owner:
            prefix += f"{theme.dim}{entry.owner or '?'}{theme.reset} "
        suffix = "/" if entry.is_dir else ""
        return f"{prefix}{color}{sanitize_terminal_text(entry.name)}{suffix}{theme.reset}"

    def _list_lines(
        self,
        entries: tuple[FileEntry, ...],
        selected: int | None,
        width: int,
        height: int,
        ui: UiState | None = None,
        empty_text: str = "",
    ) -> list[str]:
        theme = self.theme
        if not entries:
            lines = [fit_ansi_line(f"{theme.dim}{empty_text}{theme.reset}", width)] if empty_text else []
            return lines + [" " * width] * (height - len(lines))
        offset = scroll_offset(selected or 0, len(entries), height)
        lines: list[str] = []
        for index in range(offset, min(len(entries), offset + height)):
            label = fit_ansi_line(" " + self._entry_label(entries[index], ui), width)
            if index == selected:
                label = theme.selected + label.replace(theme.reset, theme.reset + theme.selected) + theme.reset
            lines.append(label)
        return lines + [" " * width] * (height - len(lines))

    def _highlighted(self, ui: UiState, text: str, height: int) -> list[str]:
        key = (ui.preview_path, ui.preview_content, height, self.style)
        if key != self._highlight_key:
            visible = "\n".join(text.splitlines()[:height])
            if ui.preview_path is not None:
                rendered = colorize_source(visible, ui.preview_path, self.style)
            else:
                rendered = sanitize_terminal_text(visible)
            self._highlight_lines = rendered.splitlines()
            self._highlight_key = key
        return self._highlight_lines

    def _preview_lines(self, ui: UiState, width: int, height: int) -> list[str]:
        theme = self.theme
        lines: list[str] = []
        if ui.mismatch is not None and ui.mismatch.is_mismatch and ui.mismatch.detected is not None:
            lines.append(
                f"{theme.warning}! content is {ui.mismatch.detected.mime}"
                f" but extension is .{ui.mismatch.extension}{theme.reset}"
            )
        content = ui.preview_content
        if ui.preview_error is not None:
            lines.append(f"{theme.warning}{sanitize_terminal_text(ui.preview_error)}{theme.reset}")
        elif content is None:
            if ui.preview_pending:
                lines.append(f"{theme.dim}Loading...{theme.reset}")
        elif isinstance(content, TextContent):
            lines.extend(self._highlighted(ui, content.text, height - len(lines)))
        elif isinstance(content, BinaryContent):
            lines.append(f"{theme.dim}Binary file, {format_size(content.size)}{theme.reset}")
        elif isinstance(content, ImageContent):
            if not ui.has_image:
                lines.append(f"{theme.dim}Image {content.width}x{content.height}{theme.reset}")
        elif isinstance(content, EmptyContent):
            lines.append(f"{theme.dim}Empty{theme.reset}")
        lines = [fit_ansi_line(line, width) for line in lines[:height]]
        return lines + [" " * width] * (height - len(lines))

    # Footer

    def _metadata_bar(self, ui: UiState) -> str | None:
        if not ui.show_metadata or ui.metadata is None:
            return None
        meta = ui.metadata
        parts: list[str] = []
        if ui.show_permissions:
            parts.append(meta.permissions)
        if ui.show_owner:
            parts.append(meta.owner)
        if ui.show_dates:
            if meta.created:
                parts.append(f"created {meta.created}")
            if meta.modified:
                parts.append(f"modified {meta.modified}")
            if meta.accessed:
                parts.append(f"accessed {meta.accessed}")
        return f"{self.theme.metadata}{'  '.join(parts)}{self.theme.reset}"

    def _status_line(self, ui: UiState) -> str:
        theme = self.theme
        if ui.prompt is not None:
            return f"{theme.prompt}{sanitize_terminal_text(ui.prompt)}{theme.reset}█"
        if ui.status:
            return f"{theme.status}{sanitize_terminal_text(ui.status)}{theme.reset}"
        parts = [f"{len(ui.entries)} items"]
        if ui.filter:
            parts.append(f"filter: {theme.filter_query}{ui.filter}{theme.reset}")
        if ui.clipboard:
            parts.append(ui.clipboard)
        if ui.pending_prefix:
            parts.append(f"{ui.pending_prefix}-")
        return f"{theme.dim}{'  '.join(parts)}{theme.reset}"

    # Popup

    def _popup(self, popup: PopupState, layout: Layout) -> str:
        theme = self.theme
        width = max(20, min(layout.columns - 4, 72))
        inner_height = max(1, min(layout.rows - 6, max(len(popup.rows), 1)))
        left = max(0, (layout.columns - width) // 2)
        top = max(0, (layout.rows - inner_height - 3) // 2)
        title = f" {popup.title} "
        if popup.filter:
            title += f"[{popup.filter}] "
        out: list[str] = []

        def put(row: int, text: str) -> None:
            out.append(f"\x1b[{row + 1};{left + 1}H{text}{theme.reset}")

        put(top, f"{theme.popup_border}┌{theme.popup_title}{fit_ansi_line(title, width - 2)}{theme.popup_border}┐")
        offset = scroll_offset(popup.selected, len(popup.rows), inner_height)
        for row in range(inner_height):
            index = offset + row
            text = ""
            if index < len(popup.rows):
                name, detail = popup.rows[index]
                text = f" {sanitize_terminal_text(name)}  {theme.dim}{sanitize_terminal_text(detail)}{theme.reset}"
                if index == popup.selected:
                    text = theme.selected + fit_ansi_line(text, width - 2).replace(theme.reset, theme.reset + theme.selected)
            elif not popup.rows and row == 0:
                text = f" {theme.dim}(none){theme.reset}"
            put(top + 1 + row, f"{theme.popup_border}│{theme.reset}{fit_ansi_line(text, width - 2)}{theme.reset}{theme.popup_border}│")
        put(top + 1 + inner_height, f"{theme.popup_border}└{'─' * (width - 2)}┘")
        return "".join(out)

    # Frame

    def draw(self, session: Session) -> None:
        ui = session.ui_state()
        columns, rows = self.screen.size()
        metadata = self._metadata_bar(ui)
        layout = compute_layout(columns, rows, 1 + (1 if metadata is not None else 0))
        theme = self.theme

        header = f"{theme.header}{sanitize_terminal_text(str(ui.current_dir))}{theme.reset}"
        if ui.loading:
            header += f" {theme.dim}(loading){theme.reset}"
        frame: list[str] = ["\x1b[H", fit_ansi_line(header, columns)]

        parent = self._list_lines(ui.parent_entries, ui.parent_selected, layout.parent_width, layout.body_height)
        current = self._list_lines(
            ui.entries, ui.selected, layout.current_width, layout.body_height, ui,
            empty_text="" if ui.loading else "(empty)",
        )
        preview = self._preview_lines(ui, layout.preview_width, layout.body_height)
        divider = f"{theme.dim}{DIVIDER}{theme.reset}"
        for row in range(layout.body_height):
            frame.append(f"\x1b[{layout.body_top + row + 1};1H")
            frame.append(parent[row] + divider + current[row] + divider + preview[row])

        footer_row = layout.body_top + layout.body_height
        if metadata is not None:
            frame.append(f"\x1b[{footer_row + 1};1H{fit_ansi_line(metadata, columns)}")
            footer_row += 1
        frame.append(f"\x1b[{footer_row + 1};1H{fit_ansi_line(self._status_line(ui), columns)}")

        if self.kitty_images:
            self.screen.kitty_clear_images()
        if ui.popup is not None:
            frame.append(self._popup(ui.popup, layout))
        elif ui.has_image and layout.preview_width > 0:
            area = Rect(layout.preview_x, layout.body_top, layout.preview_width, layout.body_height)
            payload = session.render_image(area)
            if payload:
                frame.append(payload)
        frame.append(theme.reset)
        self.screen.write("".join(frame))
