"""Build plan resolution and execution.

A plan is assembled from four layers, lowest precedence first:

1. built-in defaults (the ``debug``/``release`` profiles and the host target),
2. the persisted ``[profile.<name>]`` section,
3. the persisted top-level ``[build]`` section,
4. command line flags.

Scalar settings take the value of the highest layer that sets them.
``ldflags``/``gcflags`` are concatenated and tags, extra flags and the
environment overlay accumulate in layer order, so a later layer can only
add to (or, for environment keys, override) what an earlier one set.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Mapping

from .config import GocarConfig, parse_env_entries, validate_tags
from .core.command_runner import CommandResult, CommandRunner
from .profiles import Profile, ProfileRegistry
from .project import ProjectInfo
from .targets import Target, TargetError, host_target, parse_target


@dataclass(slots=True)
class BuildOptions:
    release: bool = False
    profile: str | None = None
    target: str | None = None
    with_cgo: bool = False
    ldflags: List[str] = field(default_factory=list)
    gcflags: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    env: List[str] = field(default_factory=list)
    flags: List[str] = field(default_factory=list)
    output: str | None = None


@dataclass(slots=True)
class BuildPlan:
    project: ProjectInfo
    app_name: str
    mode: str
    profile: Profile
    target: Target
    cross: bool
    cgo_forced: bool
    entry: str
    output_path: Path
    command: List[str]
    environment: Dict[str, str]

    @property
    def cwd(self) -> Path:
        return self.project.root

    @property
    def relative_output(self) -> Path:
        return self.output_path.relative_to(self.project.root)

    def describe(self) -> str:
        message = f"Building in {self.profile.name} mode"
        if self.cross:
            message += f" for {self.target}"
        if self.cgo_forced:
            message += " with CGO enabled"
        return message + "..."


def normalize_entry(entry: str) -> str:
    """Make a package path explicit for ``go build``/``go run`` (``cmd/x`` -> ``./cmd/x``)."""

    entry = entry.strip() or "."
    if entry == "." or entry.startswith(".") or Path(entry).is_absolute():
        return entry
    return f"./{PurePosixPath(entry)}"


def join_flags(*values: str) -> str:
    return " ".join(value.strip() for value in values if value and value.strip())


def split_tags(values: Iterable[str]) -> List[str]:
    tags: List[str] = []
    for value in values:
        tags.extend(part.strip() for part in value.split(",") if part.strip())
    return tags


def _extend_unique(target: List[str], values: Iterable[str]) -> None:
    existing = set(target)
    for value in values:
        if value not in existing:
            target.append(value)
            existing.add(value)


class BuildEngine:
    def __init__(self, *, command_runner: CommandRunner, host: Target | None = None) -> None:
        self._command_runner = command_runner
        self._host = host

    @property
    def host(self) -> Target:
        if self._host is None:
            self._host = host_target()
        return self._host

    @staticmethod
    def select_profile(options: BuildOptions) -> str:
        if options.profile:
            profile = options.profile.strip()
            if options.release and profile != "release":
                raise ValueError(f"--release conflicts with --profile {profile}")
            return profile
        return "release" if options.release else "debug"

    def _resolve_target(self, options: BuildOptions) -> Target:
        if options.target:
            return parse_target(options.target)
        return self.host

    def _is_cross(self, target: Target) -> bool:
        try:
            return target != self.host
        except TargetError:
            return True

    @staticmethod
    def _resolve_cgo(options: BuildOptions, config: GocarConfig, profile: Profile) -> bool | None:
        if options.with_cgo:
            return True
        if config.build.cgo is not None:
            return config.build.cgo
        return profile.cgo

    @staticmethod
    def _resolve_environment(
        *,
        target: Target,
        cgo: bool | None,
        layers: Iterable[Mapping[str, str]],
    ) -> Dict[str, str]:
        environment: Dict[str, str] = {"GOOS": target.os, "GOARCH": target.arch}
        if cgo is not None:
            environment["CGO_ENABLED"] = "1" if cgo else "0"
        for layer in layers:
            environment.update(layer)
        return environment

    def plan(self, project: ProjectInfo, config: GocarConfig, options: BuildOptions) -> BuildPlan:
        profile_name = self.select_profile(options)
        profile = ProfileRegistry(config.profiles).resolve(profile_name)
        target = self._resolve_target(options)
        build = config.build

        mode = config.project_mode(project.mode)
        app_name = config.project_name(project.name)
        output_dir = (options.output or build.output).strip() or "bin"
        output_path = (
            project.root / output_dir / profile.name / target.slug / f"{app_name}{target.exe_suffix}"
        )

        ldflags = join_flags(profile.ldflags, build.ldflags, *options.ldflags)
        gcflags = join_flags(profile.gcflags, build.gcflags, *options.gcflags)
        trimpath = build.trimpath if build.trimpath is not None else profile.trimpath

        tags: List[str] = []
        _extend_unique(tags, profile.tags)
        _extend_unique(tags, build.tags)
        _extend_unique(tags, validate_tags(split_tags(options.tags), "--tags"))

        extra_flags: List[str] = []
        _extend_unique(extra_flags, profile.flags)
        _extend_unique(extra_flags, build.flags)
        _extend_unique(extra_flags, options.flags)

        command: List[str] = ["go", "build"]
        if ldflags:
            command.append(f"-ldflags={ldflags}")
        if gcflags:
            command.append(f"-gcflags={gcflags}")
        if trimpath:
            command.append("-trimpath")
        if tags:
            command.append(f"-tags={','.join(tags)}")
        command.extend(extra_flags)
        entry = normalize_entry(config.build_entry(project.mode))
        command.extend(["-o", str(output_path), entry])

        cgo = self._resolve_cgo(options, config, profile)
        environment = self._resolve_environment(
            target=target,
            cgo=cgo,
            layers=(
                profile.extra_env,
                build.extra_env,
                parse_env_entries(options.env, "--env"),
            ),
        )

        return BuildPlan(
            project=project,
            app_name=app_name,
            mode=mode,
            profile=profile,
            target=target,
            cross=self._is_cross(target),
            cgo_forced=options.with_cgo,
            entry=entry,
            output_path=output_path,
            command=command,
            environment=environment,
        )

    def execute(self, plan: BuildPlan, *, dry_run: bool = False) -> CommandResult:
        if not dry_run:
            plan.output_path.parent.mkdir(parents=True, exist_ok=True)
        return self._command_runner.run(
            plan.command,
            cwd=plan.cwd,
            env=plan.environment,
            note="Build project",
            stream=True,
        )


__all__ = [
    "BuildEngine",
    "BuildOptions",
    "BuildPlan",
    "join_flags",
    "normalize_entry",
    "split_tags",
]
