from __future__ import annotations

from pathlib import Path
import tempfile
import textwrap
import unittest

from gocar import config as config_module
from gocar.config import ConfigError, DEFAULT_COMMANDS, parse_env_entries
from gocar.core.config_loader import (
    find_config_file,
    load_config_file,
    merge_mappings,
    normalize_string_list,
)


class SharedLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_loads_toml_json_and_yaml(self) -> None:
        (self.root / "a.toml").write_text('[build]\noutput = "dist"\n')
        (self.root / "b.json").write_text('{"build": {"output": "dist"}}')
        (self.root / "c.yaml").write_text("build:\n  output: dist\n")
        for name in ("a.toml", "b.json", "c.yaml"):
            data = load_config_file(self.root / name)
            self.assertEqual(data["build"]["output"], "dist")

    def test_rejects_unknown_suffix(self) -> None:
        path = self.root / "config.ini"
        path.write_text("[build]\n")
        with self.assertRaises(ValueError):
            load_config_file(path)

    def test_rejects_non_mapping_root(self) -> None:
        path = self.root / "list.json"
        path.write_text("[1, 2]")
        with self.assertRaises(TypeError):
            load_config_file(path)

    def test_decode_error_is_value_error(self) -> None:
        path = self.root / "broken.toml"
        path.write_text("[build\n")
        with self.assertRaises(ValueError) as ctx:
            load_config_file(path)
        self.assertIn("broken.toml", str(ctx.exception))

    def test_find_config_file_rejects_duplicates(self) -> None:
        (self.root / ".gocar.toml").write_text("")
        self.assertEqual(find_config_file(self.root, [".gocar.toml", ".gocar.json"]), self.root / ".gocar.toml")
        (self.root / ".gocar.json").write_text("{}")
        with self.assertRaises(ValueError):
            find_config_file(self.root, [".gocar.toml", ".gocar.json"])

    def test_merge_mappings_is_deep(self) -> None:
        merged = merge_mappings(
            {"build": {"output": "bin", "tags": []}, "commands": {"vet": "go vet ./..."}},
            {"build": {"tags": ["x"]}, "commands": {"lint": "golangci-lint run"}},
        )
        self.assertEqual(merged["build"], {"output": "bin", "tags": ["x"]})
        self.assertEqual(set(merged["commands"]), {"vet", "lint"})

    def test_normalize_string_list(self) -> None:
        self.assertEqual(normalize_string_list(None), [])
        self.assertEqual(normalize_string_list("  one "), ["one"])
        self.assertEqual(normalize_string_list(["a", " ", "b "]), ["a", "b"])
        with self.assertRaises(TypeError):
            normalize_string_list([1], field_name="build.tags")


class ProjectConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _write(self, text: str, name: str = ".gocar.toml") -> None:
        (self.root / name).write_text(textwrap.dedent(text))

    def test_missing_file_returns_defaults(self) -> None:
        config = config_module.load(self.root)
        self.assertIsNone(config.path)
        self.assertEqual(config.build.output, "bin")
        self.assertEqual(config.commands, DEFAULT_COMMANDS)
        self.assertEqual(config.build_entry("simple"), ".")
        self.assertEqual(config.build_entry("project"), "cmd/server")
        self.assertFalse(config_module.exists(self.root))

    def test_user_commands_merge_with_defaults(self) -> None:
        self._write(
            """
            [commands]
            lint = "golangci-lint run"
            test = "go test ./..."
            """
        )
        config = config_module.load(self.root)
        self.assertEqual(config.command("lint"), "golangci-lint run")
        self.assertEqual(config.command("test"), "go test ./...")
        self.assertEqual(config.command("vet"), "go vet ./...")
        self.assertIsNone(config.command("missing"))

    def test_entries_and_overrides(self) -> None:
        self._write(
            """
            [project]
            mode = "project"
            name = "api"

            [build]
            entry = "cmd/api"

            [run]
            args = ["-config", "dev.yaml"]
            """
        )
        config = config_module.load(self.root)
        self.assertEqual(config.project_mode("simple"), "project")
        self.assertEqual(config.project_name("dir"), "api")
        self.assertEqual(config.build_entry("simple"), "cmd/api")
        self.assertEqual(config.run_entry("simple"), "cmd/api")
        self.assertEqual(config.run.args, ["-config", "dev.yaml"])

    def test_run_entry_falls_back_to_mode(self) -> None:
        self._write(
            """
            [project]
            mode = "project"

            [run]
            entry = "cmd/worker"
            """
        )
        config = config_module.load(self.root)
        self.assertEqual(config.run_entry("simple"), "cmd/worker")
        self.assertEqual(config.build_entry("simple"), "cmd/server")

    def test_invalid_mode(self) -> None:
        self._write(
            """
            [project]
            mode = "library"
            """
        )
        with self.assertRaises(ConfigError):
            config_module.load(self.root)

    def test_type_errors_name_the_field(self) -> None:
        self._write(
            """
            [build]
            trimpath = "yes"
            """
        )
        with self.assertRaises(ConfigError) as ctx:
            config_module.load(self.root)
        self.assertIn("build.trimpath", str(ctx.exception))

    def test_malformed_toml(self) -> None:
        self._write("[build\n")
        with self.assertRaises(ConfigError):
            config_module.load(self.root)

    def test_extra_env_list_and_table(self) -> None:
        self._write(
            """
            [build]
            extra_env = ["GOPROXY=https://goproxy.cn", "GOFLAGS=-mod=mod"]

            [profile.release.extra_env]
            GOAMD64 = "v3"
            """
        )
        config = config_module.load(self.root)
        self.assertEqual(
            config.build.extra_env,
            {"GOPROXY": "https://goproxy.cn", "GOFLAGS": "-mod=mod"},
        )
        self.assertEqual(config.profiles["release"].extra_env, {"GOAMD64": "v3"})

    def test_parse_env_entries_rejects_malformed(self) -> None:
        with self.assertRaises(ConfigError):
            parse_env_entries(["NOEQUALS"], "build.extra_env")
        with self.assertRaises(ConfigError):
            parse_env_entries(["=value"], "build.extra_env")
        self.assertEqual(parse_env_entries(["A=x=y"], "build.extra_env"), {"A": "x=y"})

    def test_tags_reject_commas(self) -> None:
        self._write(
            """
            [build]
            tags = ["a,b"]
            """
        )
        with self.assertRaises(ConfigError):
            config_module.load(self.root)

    def test_custom_profile_requires_known_parent(self) -> None:
        self._write(
            """
            [profile.bench]
            gcflags = "-m"
            """
        )
        with self.assertRaises(ConfigError):
            config_module.load(self.root)

        self._write(
            """
            [profile.bench]
            inherits = "missing"
            """
        )
        with self.assertRaises(ConfigError):
            config_module.load(self.root)

    def test_builtin_profile_cannot_inherit(self) -> None:
        self._write(
            """
            [profile.release]
            inherits = "debug"
            """
        )
        with self.assertRaises(ConfigError):
            config_module.load(self.root)

    def test_profile_unknown_keys(self) -> None:
        self._write(
            """
            [profile.release]
            optimize = true
            """
        )
        with self.assertRaises(ConfigError):
            config_module.load(self.root)

    def test_json_config_is_supported(self) -> None:
        self._write('{"project": {"name": "jsonapp"}}', name=".gocar.json")
        config = config_module.load(self.root)
        self.assertEqual(config.project_name("dir"), "jsonapp")
        self.assertEqual(config.path, self.root / ".gocar.json")

    def test_multiple_config_files_are_rejected(self) -> None:
        self._write("")
        self._write("project:\n  name: x\n", name=".gocar.yaml")
        with self.assertRaises(ConfigError):
            config_module.load(self.root)

    def test_empty_commands_table_keeps_defaults(self) -> None:
        self._write("commands:\n", name=".gocar.yaml")
        self.assertEqual(config_module.load(self.root).commands, DEFAULT_COMMANDS)

        (self.root / ".gocar.yaml").unlink()
        self._write('{"commands": null}', name=".gocar.json")
        self.assertEqual(config_module.load(self.root).commands, DEFAULT_COMMANDS)

    def test_saved_template_escapes_project_name(self) -> None:
        name = 'we"ird\\name'
        config_module.save(self.root, name, "simple")
        self.assertEqual(config_module.load(self.root).project.name, name)

    def test_saved_template_round_trips(self) -> None:
        path = config_module.save(self.root, "demo", "project")
        self.assertEqual(path.name, ".gocar.toml")
        self.assertTrue(config_module.exists(self.root))
        config = config_module.load(self.root)
        self.assertEqual(config.project.mode, "project")
        self.assertEqual(config.project.name, "demo")
        self.assertEqual(config.build.entry, "cmd/server")
        self.assertEqual(config.commands, DEFAULT_COMMANDS)
        self.assertEqual(config.profiles, {})


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
