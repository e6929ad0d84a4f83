"""Build profile resolution with built-in defaults and inheritance."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, MutableMapping

from .config import BUILTIN_PROFILES, ConfigError, ProfileSection


@dataclass(slots=True)
class Profile:
    name: str
    ldflags: str = ""
    gcflags: str = ""
    trimpath: bool = False
    cgo: bool | None = None
    tags: List[str] = field(default_factory=list)
    flags: List[str] = field(default_factory=list)
    extra_env: Dict[str, str] = field(default_factory=dict)

    def clone(self, name: str | None = None) -> "Profile":
        return replace(
            self,
            name=name or self.name,
            tags=list(self.tags),
            flags=list(self.flags),
            extra_env=dict(self.extra_env),
        )

    def apply(self, section: ProfileSection) -> None:
        """Overlay the fields ``section`` sets; unset fields are inherited."""

        if section.ldflags is not None:
            self.ldflags = section.ldflags
        if section.gcflags is not None:
            self.gcflags = section.gcflags
        if section.trimpath is not None:
            self.trimpath = section.trimpath
        if section.cgo is not None:
            self.cgo = section.cgo
        if section.tags is not None:
            self.tags = list(section.tags)
        if section.flags is not None:
            self.flags = list(section.flags)
        if section.extra_env is not None:
            self.extra_env = dict(section.extra_env)


def builtin_profiles() -> Dict[str, Profile]:
    return {
        "debug": Profile(name="debug"),
        "release": Profile(name="release", ldflags="-s -w", trimpath=True, cgo=False),
    }


class ProfileRegistry:
    def __init__(self, sections: Mapping[str, ProfileSection] | None = None) -> None:
        self._builtins = builtin_profiles()
        self._sections: Dict[str, ProfileSection] = dict(sections or {})

    def available(self) -> Iterable[str]:
        names: List[str] = list(BUILTIN_PROFILES)
        names.extend(sorted(name for name in self._sections if name not in BUILTIN_PROFILES))
        return names

    def resolve(self, name: str) -> Profile:
        return self._resolve(name.strip(), seen=(), cache={})

    def _resolve(
        self,
        name: str,
        *,
        seen: tuple[str, ...],
        cache: MutableMapping[str, Profile],
    ) -> Profile:
        if name in seen:
            raise ConfigError(f"Circular profile inheritance detected: {' -> '.join(seen + (name,))}")
        if name in cache:
            return cache[name].clone()

        section = self._sections.get(name)
        builtin = self._builtins.get(name)
        if builtin is not None:
            resolved = builtin.clone()
        elif section is None:
            available = ", ".join(self.available())
            raise ConfigError(f"Profile '{name}' not found. Available: {available}")
        elif not section.inherits:
            raise ConfigError(f"profile.{name}.inherits is required for custom profiles")
        else:
            parent = self._resolve(section.inherits, seen=seen + (name,), cache=cache)
            resolved = parent.clone(name=name)

        if section is not None:
            resolved.apply(section)

        cache[name] = resolved.clone()
        return resolved


__all__ = ["Profile", "ProfileRegistry", "builtin_profiles"]
