"""Foreground program launch tests: terminal and reader are always restored."""

from __future__ import annotations

import os
import unittest
from pathlib import Path
from unittest import mock

from vfm.runtime.effects import OpenWithAction, ShellAction
from vfm.runtime.launcher import DEFAULT_SHELL, ProcessLauncher, command_for


class RecordingTerminal:
    def __init__(self, calls: list[str]) -> None:
        self.calls = calls

    def disable_tui_mode(self) -> None:
        self.calls.append("disable")

    def enable_tui_mode(self) -> None:
        self.calls.append("enable")


class RecordingReader:
    def __init__(self, calls: list[str]) -> None:
        self.calls = calls

    def pause(self, timeout: float = 1.0) -> bool:
        self.calls.append("pause")
        return True

    def resume(self) -> None:
        self.calls.append("resume")


class CommandForTests(unittest.TestCase):
    def test_shell_uses_environment(self) -> None:
        with mock.patch.dict(os.environ, {"SHELL": "/bin/zsh"}):
            self.assertEqual(command_for(ShellAction(Path("/work"))), ["/bin/zsh"])

    def test_shell_fallback(self) -> None:
        with mock.patch.dict(os.environ, {"SHELL": ""}):
            self.assertEqual(command_for(ShellAction(Path("/work"))), [DEFAULT_SHELL])

    def test_open_with_passes_target(self) -> None:
        action = OpenWithAction(Path("/usr/bin/vim"), Path("/work/a.txt"), Path("/work"))
        self.assertEqual(command_for(action), ["/usr/bin/vim", "/work/a.txt"])


class ProcessLauncherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.calls: list[str] = []
        self.launcher = ProcessLauncher(RecordingTerminal(self.calls), RecordingReader(self.calls))

    def test_run_brackets_process_with_pause_and_restore(self) -> None:
        def fake_run(cmd, cwd, check):
            self.calls.append("run")

        with mock.patch("vfm.runtime.launcher.subprocess.run", side_effect=fake_run) as run_mock:
            error = self.launcher.run(ShellAction(Path("/work")))

        self.assertIsNone(error)
        self.assertEqual(self.calls, ["pause", "disable", "run", "enable", "resume"])
        self.assertEqual(run_mock.call_args.kwargs["cwd"], Path("/work"))

    def test_launch_failure_is_reported_and_terminal_restored(self) -> None:
        action = OpenWithAction(Path("/nope/editor"), Path("/work/a.txt"), Path("/work"))
        with mock.patch(
            "vfm.runtime.launcher.subprocess.run",
            side_effect=FileNotFoundError(2, "No such file or directory"),
        ):
            error = self.launcher.run(action)

        self.assertEqual(error, "Failed to launch editor: No such file or directory")
        self.assertEqual(self.calls, ["pause", "disable", "enable", "resume"])

    def test_unexpected_error_propagates_after_restore(self) -> None:
        with mock.patch("vfm.runtime.launcher.subprocess.run", side_effect=KeyboardInterrupt):
            with self.assertRaises(KeyboardInterrupt):
                self.launcher.run(ShellAction(Path("/work")))

        self.assertEqual(self.calls[-2:], ["enable", "resume"])


if __name__ == "__main__":
    unittest.main()
