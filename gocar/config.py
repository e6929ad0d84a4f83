"""Loading and validation of the persisted project configuration (``.gocar.toml``)."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping

from .core.config_loader import (
    find_config_file,
    load_config_file,
    merge_mappings,
    normalize_string_list,
)
from .templates import config_template


CONFIG_FILE_NAME = ".gocar.toml"
CONFIG_FILE_NAMES = (CONFIG_FILE_NAME, ".gocar.json", ".gocar.yaml", ".gocar.yml")

VALID_MODES = ("simple", "project")
BUILTIN_PROFILES = ("debug", "release")
DEFAULT_OUTPUT = "bin"
DEFAULT_COMMANDS: Dict[str, str] = {
    "vet": "go vet ./...",
    "fmt": "go fmt ./...",
    "test": "go test -v ./...",
}


class ConfigError(ValueError):
    """Raised when the persisted configuration is malformed."""


def default_mapping() -> Dict[str, Any]:
    return {
        "project": {"mode": "", "name": ""},
        "build": {
            "entry": "",
            "output": DEFAULT_OUTPUT,
            "ldflags": "",
            "gcflags": "",
            "tags": [],
            "extra_env": [],
            "flags": [],
        },
        "run": {"entry": "", "args": []},
        "profile": {},
        "commands": dict(DEFAULT_COMMANDS),
    }


def _section(data: Mapping[str, Any], key: str, label: str) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"[{label}] must be a table")
    return value


def _optional_string(section: Mapping[str, Any], key: str, field_name: str) -> str | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{field_name} must be a string")
    return value.strip()


def _string(section: Mapping[str, Any], key: str, field_name: str, default: str = "") -> str:
    value = _optional_string(section, key, field_name)
    return default if value is None else value


def _optional_bool(section: Mapping[str, Any], key: str, field_name: str) -> bool | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ConfigError(f"{field_name} must be a boolean")
    return value


def _optional_string_list(section: Mapping[str, Any], key: str, field_name: str) -> List[str] | None:
    value = section.get(key)
    if value is None:
        return None
    try:
        return normalize_string_list(value, field_name=field_name)
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc


def _string_list(section: Mapping[str, Any], key: str, field_name: str) -> List[str]:
    return _optional_string_list(section, key, field_name) or []


def parse_env_entries(entries: Any, field_name: str) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` strings (or a table) into an ordered mapping.

    A repeated key keeps its last value but its first position.
    """

    if entries is None:
        return {}
    if isinstance(entries, Mapping):
        pairs = [(str(key).strip(), "" if value is None else str(value)) for key, value in entries.items()]
    else:
        try:
            raw_entries = normalize_string_list(entries, field_name=field_name)
        except TypeError as exc:
            raise ConfigError(str(exc)) from exc
        pairs = []
        for entry in raw_entries:
            key, sep, value = entry.partition("=")
            if not sep:
                raise ConfigError(f"{field_name} entry '{entry}' must have the form KEY=VALUE")
            pairs.append((key.strip(), value))

    environment: Dict[str, str] = {}
    for key, value in pairs:
        if not key:
            raise ConfigError(f"{field_name} contains an entry with an empty variable name")
        environment[key] = value
    return environment


def validate_tags(tags: List[str], field_name: str) -> List[str]:
    for tag in tags:
        if "," in tag or any(char.isspace() for char in tag):
            raise ConfigError(f"{field_name} entry '{tag}' must be a single tag without commas or spaces")
    return tags


@dataclass(slots=True)
class ProjectSection:
    mode: str = ""
    name: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProjectSection":
        mode = _string(data, "mode", "project.mode").lower()
        if mode and mode not in VALID_MODES:
            raise ConfigError(f"project.mode '{mode}' is invalid (expected 'simple' or 'project')")
        return cls(mode=mode, name=_string(data, "name", "project.name"))


@dataclass(slots=True)
class BuildSection:
    entry: str = ""
    output: str = DEFAULT_OUTPUT
    ldflags: str = ""
    gcflags: str = ""
    tags: List[str] = field(default_factory=list)
    extra_env: Dict[str, str] = field(default_factory=dict)
    flags: List[str] = field(default_factory=list)
    trimpath: bool | None = None
    cgo: bool | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BuildSection":
        output = _string(data, "output", "build.output") or DEFAULT_OUTPUT
        return cls(
            entry=_string(data, "entry", "build.entry"),
            output=output,
            ldflags=_string(data, "ldflags", "build.ldflags"),
            gcflags=_string(data, "gcflags", "build.gcflags"),
            tags=validate_tags(_string_list(data, "tags", "build.tags"), "build.tags"),
            extra_env=parse_env_entries(data.get("extra_env"), "build.extra_env"),
            flags=_string_list(data, "flags", "build.flags"),
            trimpath=_optional_bool(data, "trimpath", "build.trimpath"),
            cgo=_optional_bool(data, "cgo", "build.cgo"),
        )


@dataclass(slots=True)
class RunSection:
    entry: str = ""
    args: List[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RunSection":
        return cls(
            entry=_string(data, "entry", "run.entry"),
            args=_string_list(data, "args", "run.args"),
        )


@dataclass(slots=True)
class ProfileSection:
    """A persisted ``[profile.<name>]`` table; ``None`` marks an unset field."""

    name: str
    inherits: str | None = None
    ldflags: str | None = None
    gcflags: str | None = None
    trimpath: bool | None = None
    cgo: bool | None = None
    tags: List[str] | None = None
    flags: List[str] | None = None
    extra_env: Dict[str, str] | None = None

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> "ProfileSection":
        prefix = f"profile.{name}"
        allowed = {"inherits", "ldflags", "gcflags", "trimpath", "cgo", "tags", "flags", "extra_env"}
        unknown = {str(key) for key in data.keys() if str(key) not in allowed}
        if unknown:
            raise ConfigError(f"[{prefix}] contains unknown keys: {', '.join(sorted(unknown))}")
        tags = _optional_string_list(data, "tags", f"{prefix}.tags")
        extra_env = None
        if data.get("extra_env") is not None:
            extra_env = parse_env_entries(data.get("extra_env"), f"{prefix}.extra_env")
        return cls(
            name=name,
            inherits=_optional_string(data, "inherits", f"{prefix}.inherits") or None,
            ldflags=_optional_string(data, "ldflags", f"{prefix}.ldflags"),
            gcflags=_optional_string(data, "gcflags", f"{prefix}.gcflags"),
            trimpath=_optional_bool(data, "trimpath", f"{prefix}.trimpath"),
            cgo=_optional_bool(data, "cgo", f"{prefix}.cgo"),
            tags=validate_tags(tags, f"{prefix}.tags") if tags is not None else None,
            flags=_optional_string_list(data, "flags", f"{prefix}.flags"),
            extra_env=extra_env,
        )


@dataclass(slots=True)
class GocarConfig:
    project: ProjectSection = field(default_factory=ProjectSection)
    build: BuildSection = field(default_factory=BuildSection)
    run: RunSection = field(default_factory=RunSection)
    profiles: Dict[str, ProfileSection] = field(default_factory=dict)
    commands: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COMMANDS))
    path: Path | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, path: Path | None = None) -> "GocarConfig":
        profiles: Dict[str, ProfileSection] = {}
        for raw_name, raw_profile in _section(data, "profile", "profile").items():
            name = str(raw_name).strip()
            if not isinstance(raw_profile, Mapping):
                raise ConfigError(f"[profile.{name}] must be a table")
            profiles[name] = ProfileSection.from_mapping(name, raw_profile)

        for name, profile in profiles.items():
            if name in BUILTIN_PROFILES:
                if profile.inherits is not None:
                    raise ConfigError(f"profile.{name}.inherits is not allowed on a built-in profile")
                continue
            if profile.inherits is None:
                raise ConfigError(f"profile.{name}.inherits is required for custom profiles")
            if profile.inherits not in BUILTIN_PROFILES and profile.inherits not in profiles:
                raise ConfigError(f"profile.{name}.inherits refers to unknown profile '{profile.inherits}'")

        commands: Dict[str, str] = dict(DEFAULT_COMMANDS)
        for raw_name, raw_command in _section(data, "commands", "commands").items():
            if not isinstance(raw_command, str) or not raw_command.strip():
                raise ConfigError(f"commands.{raw_name} must be a non-empty string")
            commands[str(raw_name)] = raw_command.strip()

        return cls(
            project=ProjectSection.from_mapping(_section(data, "project", "project")),
            build=BuildSection.from_mapping(_section(data, "build", "build")),
            run=RunSection.from_mapping(_section(data, "run", "run")),
            profiles=profiles,
            commands=commands,
            path=path,
        )

    def project_mode(self, detected_mode: str) -> str:
        return self.project.mode or detected_mode

    def project_name(self, default_name: str) -> str:
        return self.project.name or default_name

    def build_entry(self, detected_mode: str) -> str:
        if self.build.entry:
            return self.build.entry
        if self.project_mode(detected_mode) == "project":
            return "cmd/server"
        return "."

    def run_entry(self, detected_mode: str) -> str:
        if self.run.entry:
            return self.run.entry
        return self.build_entry(detected_mode)

    def command(self, name: str) -> str | None:
        return self.commands.get(name)


def default_config() -> GocarConfig:
    return GocarConfig.from_mapping(default_mapping())


def locate(project_root: Path) -> Path | None:
    try:
        return find_config_file(project_root, CONFIG_FILE_NAMES)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def existing_files(project_root: Path) -> List[Path]:
    return [project_root / name for name in CONFIG_FILE_NAMES if (project_root / name).is_file()]


def exists(project_root: Path) -> bool:
    return bool(existing_files(project_root))


def load(project_root: Path) -> GocarConfig:
    """Load the project configuration, layered over the built-in defaults."""

    path = locate(project_root)
    if path is None:
        return default_config()

    try:
        data = load_config_file(path)
    except (OSError, TypeError, ValueError) as exc:
        raise ConfigError(str(exc)) from exc

    return GocarConfig.from_mapping(merge_mappings(default_mapping(), data), path=path)


def save(project_root: Path, project_name: str, project_mode: str) -> Path:
    path = project_root / CONFIG_FILE_NAME
    path.write_text(config_template(project_name, project_mode), encoding="utf-8")
    return path


__all__ = [
    "BUILTIN_PROFILES",
    "BuildSection",
    "CONFIG_FILE_NAME",
    "CONFIG_FILE_NAMES",
    "ConfigError",
    "DEFAULT_COMMANDS",
    "GocarConfig",
    "ProfileSection",
    "ProjectSection",
    "RunSection",
    "VALID_MODES",
    "default_config",
    "default_mapping",
    "existing_files",
    "exists",
    "load",
    "locate",
    "parse_env_entries",
    "save",
    "validate_tags",
]
