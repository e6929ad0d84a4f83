"""Cross-compilation target parsing and host platform mapping."""
from __future__ import annotations

from dataclasses import dataclass
import platform


KNOWN_OS = frozenset(
    {
        "aix",
        "android",
        "darwin",
        "dragonfly",
        "freebsd",
        "illumos",
        "ios",
        "js",
        "linux",
        "netbsd",
        "openbsd",
        "plan9",
        "solaris",
        "wasip1",
        "windows",
    }
)

KNOWN_ARCH = frozenset(
    {
        "386",
        "amd64",
        "arm",
        "arm64",
        "loong64",
        "mips",
        "mipsle",
        "mips64",
        "mips64le",
        "ppc64",
        "ppc64le",
        "riscv64",
        "s390x",
        "wasm",
    }
)

_MACHINE_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv6l": "arm",
    "armv7l": "arm",
    "armv8l": "arm",
    "ppc64le": "ppc64le",
    "ppc64": "ppc64",
    "s390x": "s390x",
    "riscv64": "riscv64",
    "loongarch64": "loong64",
    "mips64": "mips64",
}

_SYSTEM_ALIASES = {
    "linux": "linux",
    "darwin": "darwin",
    "windows": "windows",
    "freebsd": "freebsd",
    "openbsd": "openbsd",
    "netbsd": "netbsd",
    "dragonfly": "dragonfly",
    "sunos": "solaris",
    "aix": "aix",
}


class TargetError(ValueError):
    """Raised when a target platform cannot be parsed or mapped."""


@dataclass(frozen=True, slots=True)
class Target:
    os: str
    arch: str

    @property
    def slug(self) -> str:
        return f"{self.os}-{self.arch}"

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self.os == "windows" else ""

    def __str__(self) -> str:
        return f"{self.os}/{self.arch}"


def parse_target(value: str) -> Target:
    """Parse an ``os/arch`` pair such as ``linux/amd64``."""

    text = value.strip()
    os_name, sep, arch = text.partition("/")
    os_name = os_name.strip().lower()
    arch = arch.strip().lower()
    if not sep or not os_name or not arch or "/" in arch:
        raise TargetError(f"invalid target '{value}': expected format <os>/<arch>, e.g. linux/amd64")
    if os_name not in KNOWN_OS:
        raise TargetError(f"unsupported target OS '{os_name}' (known: {', '.join(sorted(KNOWN_OS))})")
    if arch not in KNOWN_ARCH:
        raise TargetError(f"unsupported target architecture '{arch}' (known: {', '.join(sorted(KNOWN_ARCH))})")
    return Target(os=os_name, arch=arch)


def host_target() -> Target:
    """Map the running interpreter's platform onto Go's GOOS/GOARCH names."""

    system = platform.system().lower()
    machine = platform.machine().lower()
    os_name = _SYSTEM_ALIASES.get(system)
    arch = _MACHINE_ALIASES.get(machine)
    if os_name is None or arch is None:
        raise TargetError(
            f"cannot map host platform '{system}/{machine}' to a Go target; pass --target <os>/<arch>"
        )
    return Target(os=os_name, arch=arch)


__all__ = ["KNOWN_ARCH", "KNOWN_OS", "Target", "TargetError", "host_target", "parse_target"]
