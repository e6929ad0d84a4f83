from __future__ import annotations

from pathlib import Path
import unittest
from unittest.mock import patch

from gocar.core.command_runner import (
    CommandError,
    CommandResult,
    RecordingCommandRunner,
    SubprocessCommandRunner,
)


class RecordingRunnerTests(unittest.TestCase):
    def test_formats_note_cwd_env_and_command(self) -> None:
        runner = RecordingCommandRunner()
        runner.run(
            ["go", "build", "-ldflags=-s -w", "-o", "bin/app", "."],
            cwd=Path("/work/app"),
            env={"GOOS": "linux", "GOARCH": "amd64"},
            note="Build project",
        )
        runner.run(["go", "mod", "tidy"])
        lines = list(runner.iter_formatted(workspace=Path("/work")))
        self.assertEqual(
            lines[0],
            "[dry-run] Build project (cwd=/work/app) GOOS=linux GOARCH=amd64 "
            "go build '-ldflags=-s -w' -o bin/app .",
        )
        self.assertEqual(lines[1], "[dry-run] (cwd=/work) go mod tidy")


class SubprocessRunnerTests(unittest.TestCase):
    def test_missing_executable_maps_to_127(self) -> None:
        runner = SubprocessCommandRunner()
        with patch("gocar.core.command_runner.subprocess.run", side_effect=FileNotFoundError("go")):
            with self.assertRaises(CommandError) as ctx:
                runner.run(["go", "version"])
        self.assertEqual(ctx.exception.returncode, 127)

    def test_env_is_an_overlay(self) -> None:
        runner = SubprocessCommandRunner()
        completed = type("Completed", (), {"returncode": 0, "stdout": "", "stderr": ""})()
        with patch.dict("os.environ", {"KEEP": "1"}), patch(
            "gocar.core.command_runner.subprocess.run", return_value=completed
        ) as run:
            runner.run(["go", "env"], env={"GOOS": "windows"})
        env = run.call_args.kwargs["env"]
        self.assertEqual(env["KEEP"], "1")
        self.assertEqual(env["GOOS"], "windows")

    def test_streamed_error_omits_output(self) -> None:
        error = CommandError(CommandResult(["go"], 2, "out", "err", streamed=True))
        self.assertNotIn("stdout", str(error))
        error = CommandError(CommandResult(["go"], 2, "out", "err"))
        self.assertIn("stderr: err", str(error))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
