"""Command planning for run, clean, dependency management and custom commands."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence
import os
import shlex
import shutil

from .build import normalize_entry
from .config import GocarConfig
from .project import ProjectError, ProjectInfo


@dataclass(slots=True)
class CommandPlan:
    command: List[str]
    cwd: Path
    note: str


def plan_run(project: ProjectInfo, config: GocarConfig, args: Sequence[str]) -> CommandPlan:
    entry = normalize_entry(config.run_entry(project.mode))
    return CommandPlan(
        command=["go", "run", entry, *config.run.args, *args],
        cwd=project.root,
        note=f"Run {config.project_name(project.name)}",
    )


def plan_add(project_root: Path, packages: Sequence[str]) -> CommandPlan:
    if not packages:
        raise ProjectError("add requires at least one package")
    return CommandPlan(command=["go", "get", *packages], cwd=project_root, note="Add dependencies")


def plan_update(project_root: Path, packages: Sequence[str]) -> CommandPlan:
    targets = list(packages) or ["./..."]
    return CommandPlan(command=["go", "get", "-u", *targets], cwd=project_root, note="Update dependencies")


def plan_tidy(project_root: Path) -> CommandPlan:
    return CommandPlan(command=["go", "mod", "tidy"], cwd=project_root, note="Tidy go.mod and go.sum")


def shell_command(command: str, extra_args: Sequence[str]) -> List[str]:
    """Wrap a custom command string for the platform shell, appending quoted ``extra_args``."""

    if extra_args:
        command = f"{command} {' '.join(shlex.quote(arg) for arg in extra_args)}"
    if os.name == "nt":
        return ["cmd", "/C", command]
    return ["sh", "-c", command]


def plan_custom(project_root: Path, name: str, command: str, extra_args: Sequence[str]) -> CommandPlan:
    return CommandPlan(
        command=shell_command(command, extra_args),
        cwd=project_root,
        note=f"Custom command '{name}'",
    )


def clean_artifacts(output_dir: Path, *, dry_run: bool = False) -> List[Path]:
    """Remove every entry below ``output_dir`` and return what was (or would be) removed."""

    if not output_dir.is_dir():
        return []
    entries = sorted(output_dir.iterdir())
    if dry_run:
        return entries
    for entry in entries:
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
    return entries


__all__ = [
    "CommandPlan",
    "clean_artifacts",
    "plan_add",
    "plan_custom",
    "plan_run",
    "plan_tidy",
    "plan_update",
    "shell_command",
]
