"""Command line interface for gocar."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Tuple
import sys

from . import __version__
from . import config as config_module
from . import project as project_module
from .actions import CommandPlan, clean_artifacts, plan_add, plan_custom, plan_run, plan_tidy, plan_update
from .build import BuildEngine, BuildOptions
from .config import ConfigError, GocarConfig
from .console import Console
from .core.command_runner import (
    CommandError,
    CommandRunner,
    RecordingCommandRunner,
    SubprocessCommandRunner,
    format_command,
)
from .project import ProjectCreator, ProjectError
from .targets import TargetError


PROTECTED_COMMANDS = frozenset({"new", "init"})

HELP_TEXT = """\
gocar - A cargo-like tool for Go projects

USAGE:
    gocar [--log LEVEL] [--verbose] <COMMAND> [OPTIONS]

COMMANDS:
    new <name> [--mode simple|project]     Create a new Go project
    init                                   Initialize .gocar.toml in current project
    build [--release] [--target os/arch]   Build the project
    run [args...]                          Run the project
    clean                                  Clean build artifacts
    add <package>...                       Add dependencies to go.mod
    update [package]...                    Update dependencies
    tidy                                   Tidy up go.mod and go.sum
    help                                   Print this help message
    version                                Print version info

CUSTOM COMMANDS:
    Define custom commands in the .gocar.toml [commands] section.
    Custom commands can override built-in commands (except: new, init).
    Example: gocar vet, gocar fmt, gocar test

EXAMPLES:
    gocar new myapp                        Create a simple project
    gocar new myapp --mode project         Create a project-mode project
    gocar init                             Create .gocar.toml config file
    gocar build                            Build in debug mode
    gocar build --release                  Build in release mode
    gocar build --profile bench            Build with a custom profile
    gocar build --target linux/arm64       Cross-compile for Linux ARM64
    gocar run                              Build and run the project
    gocar add github.com/gin-gonic/gin     Add a dependency
    gocar vet                              Run custom vet command
"""


def _make_runner(dry_run: bool) -> CommandRunner:
    return RecordingCommandRunner() if dry_run else SubprocessCommandRunner()


def _emit_dry_run_output(runner: CommandRunner, *, workspace: Path) -> None:
    if isinstance(runner, RecordingCommandRunner):
        for line in runner.iter_formatted(workspace=workspace):
            print(line)


def _load_config(project_root: Path) -> GocarConfig:
    try:
        return config_module.load(project_root)
    except ConfigError as exc:
        print(f"Warning: {exc}")
        return config_module.default_config()


def _non_empty(values: Iterable[str]) -> List[str]:
    return [value for value in values if value.strip()]


def _run_plan(plan: CommandPlan, runner: CommandRunner) -> None:
    runner.run(plan.command, cwd=plan.cwd, note=plan.note, stream=True)


def _report_command_error(console: Console, exc: CommandError) -> None:
    console.error(f"{format_command(exc.result.command)} exited with status {exc.returncode}")


# -----------------------------------------------------------------------------
# Parsers
# -----------------------------------------------------------------------------


def _add_dry_run(parser: ArgumentParser) -> None:
    parser.add_argument("-n", "--dry-run", action="store_true", help="Print commands without executing them")


def _new_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="gocar new", description="Create a new Go project")
    parser.add_argument("name", help="Project (and directory) name")
    parser.add_argument(
        "--mode",
        choices=list(project_module.MODES),
        default="simple",
        help="Project layout (default: simple)",
    )
    parser.add_argument(
        "--vcs",
        choices=["git", "none"],
        default="git",
        help="Initialize a git repository (default: git)",
    )
    return parser


def _init_parser() -> ArgumentParser:
    return ArgumentParser(
        prog="gocar init",
        description=f"Create a {config_module.CONFIG_FILE_NAME} configuration file in the current project",
    )


def _build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="gocar build", description="Build the project")
    parser.add_argument("--release", action="store_true", help="Build with the release profile")
    parser.add_argument("-p", "--profile", help="Build profile to use (debug, release, or a [profile.*] section)")
    parser.add_argument("-t", "--target", metavar="OS/ARCH", help="Cross-compile for the target platform")
    parser.add_argument("--with-cgo", action="store_true", help="Force CGO_ENABLED=1")
    parser.add_argument(
        "--ldflags",
        action="append",
        default=[],
        metavar="FLAGS",
        help="Linker flags appended after the configured ldflags, e.g. --ldflags=-s (repeatable)",
    )
    parser.add_argument(
        "--gcflags",
        action="append",
        default=[],
        metavar="FLAGS",
        help="Compiler flags appended after the configured gcflags, e.g. --gcflags=all=-N (repeatable)",
    )
    parser.add_argument("--tags", action="append", default=[], metavar="TAGS", help="Build tags (comma-separated, repeatable)")
    parser.add_argument("-e", "--env", action="append", default=[], metavar="KEY=VALUE", help="Extra build environment variable")
    parser.add_argument(
        "--flag",
        dest="flags",
        action="append",
        default=[],
        metavar="FLAG",
        help="Extra go build flag, e.g. --flag=-race (repeatable)",
    )
    parser.add_argument("-o", "--output", metavar="DIR", help="Output directory (overrides build.output)")
    _add_dry_run(parser)
    return parser


def _clean_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="gocar clean", description="Clean build artifacts")
    _add_dry_run(parser)
    return parser


def _add_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="gocar add", description="Add dependencies to go.mod")
    parser.add_argument("packages", nargs="+", metavar="PACKAGE", help="Module path, optionally with @version")
    _add_dry_run(parser)
    return parser


def _update_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="gocar update", description="Update dependencies")
    parser.add_argument("packages", nargs="*", metavar="PACKAGE", help="Packages to update; omit to update all")
    _add_dry_run(parser)
    return parser


def _tidy_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="gocar tidy", description="Tidy up go.mod and go.sum")
    _add_dry_run(parser)
    return parser


def _parse_run_arguments(argv: List[str]) -> Namespace:
    """``run`` forwards everything to the program, except a leading dry-run switch and ``--``."""

    dry_run = False
    remaining = list(argv)
    if remaining and remaining[0] in ("-n", "--dry-run"):
        dry_run = True
        remaining = remaining[1:]
    if remaining and remaining[0] == "--":
        remaining = remaining[1:]
    return Namespace(dry_run=dry_run, program_args=remaining)


def _split_global_options(argv: List[str]) -> Tuple[Namespace, List[str]]:
    index = 0
    while index < len(argv):
        token = argv[index]
        if token in ("--log", "-l"):
            index += 2
        elif token.startswith("--log=") or token == "--verbose":
            index += 1
        else:
            break

    parser = ArgumentParser(prog="gocar", add_help=False)
    parser.add_argument(
        "--log",
        "-l",
        choices=list(Console.LEVELS),
        default="error",
        help="Set diagnostic log level (default: error)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug diagnostics")
    return parser.parse_args(argv[:index]), argv[index:]


# -----------------------------------------------------------------------------
# Handlers
# -----------------------------------------------------------------------------


def _handle_new(args: Namespace, workspace: Path, console: Console) -> int:
    try:
        project_module.validate_project_name(args.name)
    except ProjectError as exc:
        print(f"Error: {exc}")
        return 1

    print(f"Creating new {args.mode} project: {args.name}")
    creator = ProjectCreator(
        args.name,
        args.mode,
        parent=workspace,
        runner=_make_runner(False),
        init_vcs=args.vcs == "git",
    )
    try:
        root = creator.create()
    except (ProjectError, OSError) as exc:
        print(f"Error creating project: {exc}")
        return 1
    console.debug(f"Project created at {root}")

    print(f"\nSuccessfully created project '{args.name}'")
    print("\nTo get started:")
    print(f"    cd {args.name}")
    print("    gocar build")
    print("    gocar run")
    return 0


def _handle_init(args: Namespace, workspace: Path, console: Console) -> int:
    try:
        info = project_module.detect(workspace)
    except ProjectError as exc:
        print(f"Error: {exc}")
        print("Please run this command in a Go project directory (where go.mod exists)")
        return 1

    existing = config_module.existing_files(info.root)
    if existing:
        print(f"{', '.join(path.name for path in existing)} already exists in this project")
        print("Use a text editor to modify it if needed")
        return 0

    try:
        path = config_module.save(info.root, info.name, info.mode)
    except OSError as exc:
        print(f"Error creating {config_module.CONFIG_FILE_NAME}: {exc}")
        return 1
    console.debug(f"Wrote {path}")

    print(f"Created {config_module.CONFIG_FILE_NAME} in {info.root}")
    print("\nYou can now customize:")
    print("  - [project] section: project mode and name")
    print("  - [build] section: build entry path and options")
    print("  - [run] section: run entry path and default args")
    print("  - [profile.*] sections: build profiles")
    print("  - [commands] section: custom commands like vet, fmt, test")
    return 0


def _handle_build(args: Namespace, workspace: Path, console: Console) -> int:
    try:
        info = project_module.detect(workspace)
    except ProjectError as exc:
        print(f"Error: {exc}")
        return 1
    config = _load_config(info.root)

    options = BuildOptions(
        release=args.release,
        profile=args.profile,
        target=args.target,
        with_cgo=args.with_cgo,
        ldflags=_non_empty(args.ldflags),
        gcflags=_non_empty(args.gcflags),
        tags=list(args.tags),
        env=list(args.env),
        flags=list(args.flags),
        output=args.output,
    )
    runner = _make_runner(args.dry_run)
    engine = BuildEngine(command_runner=runner)
    try:
        plan = engine.plan(info, config, options)
    except (ConfigError, TargetError) as exc:
        print(f"Error: {exc}")
        return 1
    except ValueError as exc:
        print(f"Error: {exc}")
        return 2

    console.debug(f"Profile: {plan.profile}")
    console.debug(f"Command: {format_command(plan.command)}")
    console.debug(f"Environment overlay: {plan.environment}")

    print(plan.describe())
    try:
        engine.execute(plan, dry_run=args.dry_run)
    except CommandError as exc:
        _report_command_error(console, exc)
        print(f"\nBuild failed: {exc}")
        return 1
    except OSError as exc:
        print(f"Error creating output directory: {exc}")
        return 1

    if args.dry_run:
        _emit_dry_run_output(runner, workspace=info.root)
        return 0
    print(f"Build successful: {plan.relative_output}")
    return 0


def _handle_run(args: Namespace, workspace: Path, console: Console) -> int:
    try:
        info = project_module.detect(workspace)
    except ProjectError as exc:
        print(f"Error: {exc}")
        return 1
    config = _load_config(info.root)

    plan = plan_run(info, config, args.program_args)
    runner = _make_runner(args.dry_run)
    print(f"Running {config.project_name(info.name)}...\n")
    try:
        _run_plan(plan, runner)
    except CommandError as exc:
        _report_command_error(console, exc)
        if not exc.result.streamed:
            print(f"Run failed: {exc}")
        return exc.returncode or 1
    _emit_dry_run_output(runner, workspace=info.root)
    return 0


def _handle_clean(args: Namespace, workspace: Path, console: Console) -> int:
    try:
        info = project_module.detect(workspace)
    except ProjectError as exc:
        print(f"Error: {exc}")
        return 1
    config = _load_config(info.root)

    output_dir = info.root / config.build.output
    try:
        removed = clean_artifacts(output_dir, dry_run=args.dry_run)
    except OSError as exc:
        print(f"Error cleaning {output_dir}: {exc}")
        return 1

    if not removed:
        print("Nothing to clean.")
        return 0
    if args.dry_run:
        for path in removed:
            print(f"[dry-run] remove {path}")
        return 0
    for path in removed:
        console.debug(f"Removed {path}")
    print(f"Cleaned build artifacts for '{config.project_name(info.name)}'")
    return 0


def _handle_dependencies(build_plan: Callable[[Path, Namespace], CommandPlan]):
    def handler(args: Namespace, workspace: Path, console: Console) -> int:
        try:
            root = project_module.find_root(workspace)
            plan = build_plan(root, args)
        except ProjectError as exc:
            print(f"Error: {exc}")
            return 1
        runner = _make_runner(args.dry_run)
        console.info(plan.note)
        try:
            _run_plan(plan, runner)
        except CommandError as exc:
            _report_command_error(console, exc)
            print(f"Error: {exc}")
            return 1
        _emit_dry_run_output(runner, workspace=root)
        return 0

    return handler


_Handler = Callable[[Namespace, Path, Console], int]

_COMMANDS: Dict[str, Tuple[Callable[[List[str]], Namespace], _Handler]] = {
    "new": (lambda argv: _new_parser().parse_args(argv), _handle_new),
    "init": (lambda argv: _init_parser().parse_args(argv), _handle_init),
    "build": (lambda argv: _build_parser().parse_args(argv), _handle_build),
    "run": (_parse_run_arguments, _handle_run),
    "clean": (lambda argv: _clean_parser().parse_args(argv), _handle_clean),
    "add": (
        lambda argv: _add_parser().parse_args(argv),
        _handle_dependencies(lambda root, args: plan_add(root, args.packages)),
    ),
    "update": (
        lambda argv: _update_parser().parse_args(argv),
        _handle_dependencies(lambda root, args: plan_update(root, args.packages)),
    ),
    "tidy": (
        lambda argv: _tidy_parser().parse_args(argv),
        _handle_dependencies(lambda root, args: plan_tidy(root)),
    ),
}


def _try_custom_command(name: str, args: List[str], workspace: Path, console: Console) -> int | None:
    """Run the ``[commands]`` entry called ``name``; ``None`` means no such command."""

    try:
        root = project_module.find_root(workspace)
        config = config_module.load(root)
    except (ProjectError, ConfigError) as exc:
        console.debug(f"No custom command lookup for '{name}': {exc}")
        return None

    command = config.command(name)
    if command is None:
        return None

    print(f"Running custom command: {name}\n")
    plan = plan_custom(root, name, command, args)
    try:
        _run_plan(plan, _make_runner(False))
    except CommandError as exc:
        _report_command_error(console, exc)
        print(f"Command failed: exit status {exc.returncode}")
        return 1
    return 0


def dispatch(command: str, args: List[str], workspace: Path, console: Console) -> int:
    entry = _COMMANDS.get(command)
    if entry is None:
        result = _try_custom_command(command, args, workspace, console)
        if result is not None:
            return result
        print(f"Unknown command: {command}")
        print(HELP_TEXT, end="")
        return 1

    if command not in PROTECTED_COMMANDS:
        result = _try_custom_command(command, args, workspace, console)
        if result is not None:
            return result

    parse, handler = entry
    return handler(parse(args), workspace, console)


def main(argv: Iterable[str] | None = None) -> int:
    arguments = list(sys.argv[1:] if argv is None else argv)
    global_args, rest = _split_global_options(arguments)
    console = Console("debug" if global_args.verbose else global_args.log)

    if not rest or rest[0] in ("help", "-h", "--help"):
        print(HELP_TEXT, end="")
        return 0
    if rest[0] in ("version", "-v", "-V", "--version"):
        print(f"gocar {__version__}")
        return 0

    return dispatch(rest[0], rest[1:], Path.cwd(), console)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
