from __future__ import annotations

from pathlib import Path
import tempfile
import textwrap
import unittest
from unittest.mock import patch

from gocar import config as config_module
from gocar.actions import (
    clean_artifacts,
    plan_add,
    plan_custom,
    plan_run,
    plan_tidy,
    plan_update,
    shell_command,
)
from gocar.project import ProjectError, ProjectInfo


class RunPlanTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_simple_mode_runs_module_root(self) -> None:
        info = ProjectInfo(root=self.root, name="demo", mode="simple")
        plan = plan_run(info, config_module.default_config(), ["--port", "8080"])
        self.assertEqual(plan.command, ["go", "run", ".", "--port", "8080"])
        self.assertEqual(plan.cwd, self.root)

    def test_configured_entry_and_default_args(self) -> None:
        (self.root / ".gocar.toml").write_text(
            textwrap.dedent(
                """
                [run]
                entry = "cmd/worker"
                args = ["-v"]
                """
            )
        )
        info = ProjectInfo(root=self.root, name="demo", mode="project")
        plan = plan_run(info, config_module.load(self.root), ["extra"])
        self.assertEqual(plan.command, ["go", "run", "./cmd/worker", "-v", "extra"])

    def test_project_mode_defaults_to_server(self) -> None:
        info = ProjectInfo(root=self.root, name="demo", mode="project")
        plan = plan_run(info, config_module.default_config(), [])
        self.assertEqual(plan.command, ["go", "run", "./cmd/server"])


class DependencyPlanTests(unittest.TestCase):
    def test_add_requires_packages(self) -> None:
        with self.assertRaises(ProjectError):
            plan_add(Path("."), [])
        plan = plan_add(Path("."), ["github.com/gin-gonic/gin@v1.9.1"])
        self.assertEqual(plan.command, ["go", "get", "github.com/gin-gonic/gin@v1.9.1"])

    def test_update_defaults_to_all_packages(self) -> None:
        self.assertEqual(plan_update(Path("."), []).command, ["go", "get", "-u", "./..."])
        self.assertEqual(plan_update(Path("."), ["golang.org/x/net"]).command, ["go", "get", "-u", "golang.org/x/net"])

    def test_tidy(self) -> None:
        self.assertEqual(plan_tidy(Path(".")).command, ["go", "mod", "tidy"])


class CustomCommandTests(unittest.TestCase):
    def test_posix_shell_quotes_extra_args(self) -> None:
        with patch("gocar.actions.os.name", "posix"):
            command = shell_command("go test ./...", ["-run", "Test Foo"])
        self.assertEqual(command, ["sh", "-c", "go test ./... -run 'Test Foo'"])

    def test_windows_shell(self) -> None:
        with patch("gocar.actions.os.name", "nt"):
            self.assertEqual(shell_command("go vet ./...", []), ["cmd", "/C", "go vet ./..."])

    def test_plan_custom_runs_in_project_root(self) -> None:
        with patch("gocar.actions.os.name", "posix"):
            plan = plan_custom(Path("/work/demo"), "fmt", "go fmt ./...", [])
        self.assertEqual(plan.cwd, Path("/work/demo"))
        self.assertEqual(plan.command, ["sh", "-c", "go fmt ./..."])
        self.assertIn("fmt", plan.note)


class CleanTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.output = Path(self.temp_dir.name) / "bin"

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_missing_directory(self) -> None:
        self.assertEqual(clean_artifacts(self.output), [])

    def test_removes_contents_but_keeps_directory(self) -> None:
        (self.output / "release" / "linux-amd64").mkdir(parents=True)
        (self.output / "release" / "linux-amd64" / "demo").write_text("binary")
        (self.output / "stray").write_text("x")

        removed = clean_artifacts(self.output)
        self.assertEqual(removed, [self.output / "release", self.output / "stray"])
        self.assertTrue(self.output.is_dir())
        self.assertEqual(list(self.output.iterdir()), [])

    def test_dry_run_keeps_files(self) -> None:
        (self.output / "debug").mkdir(parents=True)
        removed = clean_artifacts(self.output, dry_run=True)
        self.assertEqual(removed, [self.output / "debug"])
        self.assertTrue((self.output / "debug").is_dir())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
