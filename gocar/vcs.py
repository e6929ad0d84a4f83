"""Git integration: pygit2 for repository discovery, the git CLI for writes."""
from __future__ import annotations

from pathlib import Path

import pygit2

from .core.command_runner import CommandRunner


def find_enclosing_repository(path: Path) -> Path | None:
    """Return the work tree of the git repository containing ``path``, if any."""

    discovered = pygit2.discover_repository(str(path))
    if not discovered:
        return None
    repo = pygit2.Repository(discovered)
    if repo.is_bare or repo.workdir is None:
        return None
    return Path(repo.workdir).resolve()


def init_repository(path: Path, runner: CommandRunner, *, branch: str = "main") -> None:
    """Create a repository at ``path`` and stage the scaffolded files."""

    runner.run(["git", "init", "-b", branch], cwd=path, note="Initialize git repository")
    runner.run(["git", "add", "."], cwd=path, note="Stage project files")


__all__ = ["find_enclosing_repository", "init_repository"]
