"""Go project discovery, name validation and scaffolding."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List
import re

from . import config, templates, vcs
from .core.command_runner import CommandError, CommandRunner


MODES = ("simple", "project")
RESERVED_NAMES = frozenset({"test", "main", "init", "internal", "vendor"})
_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*$")


class ProjectError(RuntimeError):
    """Raised when a project cannot be detected, validated or created."""


@dataclass(frozen=True, slots=True)
class ProjectInfo:
    root: Path
    name: str
    mode: str


def find_root(start: Path) -> Path:
    """Walk upward from ``start`` to the nearest directory holding ``go.mod``."""

    current = start.resolve()
    for candidate in (current, *current.parents):
        if (candidate / "go.mod").is_file():
            return candidate
    raise ProjectError("not in a Go module (go.mod not found)")


def detect_mode(root: Path) -> str | None:
    if (root / "cmd" / "server").is_dir():
        return "project"
    if any((root / "cmd").glob("*/main.go")):
        return "project"
    if (root / "main.go").is_file():
        return "simple"
    return None


def detect(start: Path) -> ProjectInfo:
    root = find_root(start)
    mode = detect_mode(root)
    if mode is None:
        raise ProjectError(
            "cannot detect project mode: no main.go found and neither cmd/server nor cmd/*/main.go exist"
        )
    return ProjectInfo(root=root, name=root.name, mode=mode)


def validate_project_name(name: str) -> None:
    if not name:
        raise ProjectError("project name cannot be empty")
    if name.startswith(("-", ".")):
        raise ProjectError("project name cannot start with '-' or '.'")
    if not _NAME_PATTERN.match(name):
        raise ProjectError(
            "project name must start with a letter and contain only letters, numbers, dashes, or underscores"
        )
    if name.lower() in RESERVED_NAMES:
        raise ProjectError(f"'{name}' is a reserved name in Go")


class ProjectCreator:
    """Scaffolds a new simple or project-mode Go module under ``parent``."""

    def __init__(
        self,
        name: str,
        mode: str,
        *,
        parent: Path,
        runner: CommandRunner,
        init_vcs: bool = True,
        warn: Callable[[str], None] = print,
    ) -> None:
        if mode not in MODES:
            raise ProjectError(f"Unknown mode '{mode}' (available modes: {', '.join(MODES)})")
        self.name = name
        self.mode = mode
        self.root = parent / name
        self._runner = runner
        self._init_vcs = init_vcs
        self._warn = warn

    def create(self) -> Path:
        validate_project_name(self.name)
        if self.root.exists():
            raise ProjectError(f"directory '{self.name}' already exists")

        for directory in self._directories():
            directory.mkdir(parents=True, exist_ok=True)

        try:
            self._runner.run(
                ["go", "mod", "init", self.name],
                cwd=self.root,
                note="Initialize go.mod",
            )
        except CommandError as exc:
            raise ProjectError(f"failed to initialize go.mod: {exc}") from exc

        if self.mode == "simple":
            self._write(self.root / "main.go", templates.MAIN_GO)
            self._write(self.root / "README.md", templates.simple_readme(self.name))
        else:
            self._write(self.root / "cmd" / "server" / "main.go", templates.MAIN_GO)
            for keep_dir in ("internal", "pkg", "test"):
                self._write(self.root / keep_dir / ".gitkeep", "")
            self._write(self.root / "README.md", templates.project_readme(self.name))

        self._write(self.root / ".gitignore", templates.gitignore(self.name))
        config.save(self.root, self.name, self.mode)

        if self._init_vcs:
            self._initialize_git()
        return self.root

    def _directories(self) -> List[Path]:
        directories = [self.root, self.root / "bin"]
        if self.mode == "project":
            directories.extend(
                [
                    self.root / "cmd" / "server",
                    self.root / "internal",
                    self.root / "pkg",
                    self.root / "test",
                ]
            )
        return directories

    def _initialize_git(self) -> None:
        enclosing = vcs.find_enclosing_repository(self.root)
        if enclosing is not None:
            self._warn(f"Skipping git init: '{self.name}' is inside the git repository at {enclosing}")
            return
        try:
            vcs.init_repository(self.root, self._runner)
        except CommandError as exc:
            self._warn(f"Warning: Failed to initialize git: {exc}")

    @staticmethod
    def _write(path: Path, content: str) -> None:
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise ProjectError(f"failed to write file {path}: {exc}") from exc


__all__ = [
    "MODES",
    "ProjectCreator",
    "ProjectError",
    "ProjectInfo",
    "RESERVED_NAMES",
    "detect",
    "detect_mode",
    "find_root",
    "validate_project_name",
]
