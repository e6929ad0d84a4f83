from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

import pygit2

from gocar.core.command_runner import RecordingCommandRunner
from gocar.vcs import find_enclosing_repository, init_repository


class GitDiscoveryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name).resolve()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_finds_enclosing_work_tree(self) -> None:
        repo_dir = self.root / "repo"
        pygit2.init_repository(str(repo_dir))
        nested = repo_dir / "services" / "api"
        nested.mkdir(parents=True)
        self.assertEqual(find_enclosing_repository(nested), repo_dir)

    def test_outside_any_repository(self) -> None:
        plain = self.root / "plain"
        plain.mkdir()
        self.assertIsNone(find_enclosing_repository(plain))

    def test_bare_repository_is_ignored(self) -> None:
        bare = self.root / "bare.git"
        pygit2.init_repository(str(bare), bare=True)
        self.assertIsNone(find_enclosing_repository(bare))

    def test_init_repository_goes_through_runner(self) -> None:
        runner = RecordingCommandRunner()
        init_repository(self.root, runner)
        self.assertEqual(
            [record.command for record in runner.iter_commands()],
            [["git", "init", "-b", "main"], ["git", "add", "."]],
        )
        self.assertTrue(all(record.cwd == str(self.root) for record in runner.iter_commands()))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
