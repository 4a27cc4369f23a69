"""Frame rendering tests for columns, preview pane, footer and popups."""

from __future__ import annotations

import unittest
from dataclasses import replace
from pathlib import Path

from vfm.ansi import ANSI_ESCAPE_RE
from vfm.classify import DetectedType, MismatchStatus
from vfm.filesystem import FileEntry, FileMetadata
from vfm.preview import BinaryContent, ImageContent, TextContent
from vfm.render import Renderer, compute_layout, format_size, scroll_offset
from vfm.ui_state import PopupState, UiState

WORK = Path("/work")


def make_ui(**overrides) -> UiState:
    base = UiState(
        current_dir=WORK,
        parent_entries=(FileEntry("work", WORK, True),),
        parent_selected=0,
        entries=(FileEntry("src", WORK / "src", True), FileEntry("main.py", WORK / "main.py", False, "rw-r--r--", "1000:1000")),
        selected=1,
        filter="",
        loading=False,
        preview_path=None,
        preview_content=None,
        preview_error=None,
        preview_pending=False,
        mismatch=None,
        metadata=None,
        has_image=False,
        prompt=None,
        status=None,
        pending_prefix=None,
        clipboard=None,
        popup=None,
        show_metadata=False,
        show_permissions=True,
        show_dates=True,
        show_owner=True,
        show_list_permissions=False,
        show_list_owner=False,
    )
    return replace(base, **overrides)


class FakeScreen:
    def __init__(self, columns: int = 100, rows: int = 12) -> None:
        self.columns = columns
        self.rows = rows
        self.writes: list[str] = []
        self.clears = 0

    def write(self, text: str) -> None:
        self.writes.append(text)

    def size(self) -> tuple[int, int]:
        return self.columns, self.rows

    def kitty_clear_images(self) -> None:
        self.clears += 1


class StubSession:
    def __init__(self, ui: UiState, image_payload: str | None = None) -> None:
        self.ui = ui
        self.image_payload = image_payload
        self.image_areas: list = []

    def ui_state(self) -> UiState:
        return self.ui

    def render_image(self, area):
        self.image_areas.append(area)
        return self.image_payload


def plain(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


class RendererTests(unittest.TestCase):
    def draw(self, ui: UiState, screen: FakeScreen | None = None, **kwargs) -> str:
        screen = screen or FakeScreen()
        Renderer(screen, **kwargs).draw(StubSession(ui))
        return plain(screen.writes[-1])

    def test_columns_and_status_line(self) -> None:
        frame = self.draw(make_ui(filter="ma", clipboard="copy: a.txt", pending_prefix="add"))

        self.assertIn("/work", frame)
        self.assertIn("src/", frame)
        self.assertIn("main.py", frame)
        self.assertIn("2 items", frame)
        self.assertIn("filter: ma", frame)
        self.assertIn("copy: a.txt", frame)
        self.assertIn("add-", frame)

    def test_prompt_replaces_status(self) -> None:
        frame = self.draw(make_ui(prompt="Rename: main.py", status="ignored"))
        self.assertIn("Rename: main.py█", frame)
        self.assertNotIn("ignored", frame)

    def test_loading_and_empty_listing(self) -> None:
        self.assertIn("(loading)", self.draw(make_ui(loading=True, entries=())))
        self.assertIn("(empty)", self.draw(make_ui(entries=())))

    def test_list_columns_show_permissions_and_owner(self) -> None:
        frame = self.draw(make_ui(show_list_permissions=True, show_list_owner=True), FakeScreen(columns=160))
        self.assertIn("rw-r--r-- 1000:1000 main.py", frame)

    def test_text_preview_and_mismatch_warning(self) -> None:
        mismatch = MismatchStatus("mismatch", DetectedType("image/png", "png"), "txt")
        frame = self.draw(
            make_ui(
                preview_path=WORK / "main.py",
                preview_content=TextContent("print('hi')\n"),
                mismatch=mismatch,
            )
        )
        self.assertIn("content is image/png but extension is .txt", frame)
        self.assertIn("print('hi')", frame)

    def test_binary_and_error_previews(self) -> None:
        self.assertIn("Binary file, 2.0 KiB", self.draw(make_ui(preview_content=BinaryContent(2048))))
        self.assertIn("Cannot preview x", self.draw(make_ui(preview_error="Cannot preview x")))
        self.assertIn("Loading...", self.draw(make_ui(preview_pending=True)))

    def test_metadata_bar_respects_toggles(self) -> None:
        meta = FileMetadata("rwxr-xr-x", "501:20", None, "2024-01-02T03:04:05+00:00", None)
        frame = self.draw(make_ui(show_metadata=True, show_owner=False, metadata=meta))
        self.assertIn("rwxr-xr-x", frame)
        self.assertIn("modified 2024-01-02", frame)
        self.assertNotIn("501:20", frame)

    def test_popup_lists_rows_and_filter(self) -> None:
        popup = PopupState("Markers", (("home", "/home/me"), ("work", "/work")), 1, "wo")
        frame = self.draw(make_ui(popup=popup))
        self.assertIn("Markers [wo]", frame)
        self.assertIn("home  /home/me", frame)

    def test_image_payload_is_drawn_in_preview_area(self) -> None:
        screen = FakeScreen()
        session = StubSession(
            make_ui(preview_content=ImageContent(4, 4), has_image=True),
            image_payload="<img>",
        )

        Renderer(screen, kitty_images=True).draw(session)

        self.assertIn("<img>", screen.writes[-1])
        self.assertEqual(screen.clears, 1)
        area = session.image_areas[0]
        layout = compute_layout(100, 12, 1)
        self.assertEqual((area.x, area.width), (layout.preview_x, layout.preview_width))

    def test_popup_hides_image(self) -> None:
        session = StubSession(
            make_ui(has_image=True, popup=PopupState("Open with", (), 0, "")),
            image_payload="<img>",
        )
        screen = FakeScreen()
        Renderer(screen).draw(session)
        self.assertEqual(session.image_areas, [])
        self.assertIn("(none)", plain(screen.writes[-1]))


class LayoutHelperTests(unittest.TestCase):
    def test_compute_layout_splits_columns(self) -> None:
        layout = compute_layout(100, 30, 2)
        self.assertEqual((layout.parent_width, layout.current_width, layout.preview_width), (20, 30, 48))
        self.assertEqual(layout.body_height, 27)

    def test_scroll_offset_keeps_selection_visible(self) -> None:
        self.assertEqual(scroll_offset(0, 5, 10), 0)
        self.assertEqual(scroll_offset(50, 100, 10), 45)
        self.assertEqual(scroll_offset(99, 100, 10), 90)

    def test_format_size(self) -> None:
        self.assertEqual(format_size(512), "512 B")
        self.assertEqual(format_size(3 * 1024 * 1024), "3.0 MiB")


if __name__ == "__main__":
    unittest.main()
