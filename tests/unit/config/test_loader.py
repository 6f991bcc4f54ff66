# pyright: reportAny=false, reportUnknownArgumentType=false
from __future__ import annotations

import copy
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from repolens.config import (
    deep_merge,
    parse_env_value,
    parse_env_vars,
    read_toml_file,
    set_nested_key,
)
from repolens.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


class TestReadTomlFile:
    def test_parses_valid_toml(self, fs: FakeFilesystem) -> None:
        content = """
context_lines = 5

[logging]
level = "debug"
"""
        path = Path("/test/repolens.toml")
        fs.create_file(path, contents=content)

        result = read_toml_file(path)

        assert result == {"context_lines": 5, "logging": {"level": "debug"}}

    def test_raises_file_not_found_for_missing_file(self, fs: FakeFilesystem) -> None:
        with pytest.raises(FileNotFoundError):
            _ = read_toml_file(Path("/test/missing.toml"))

    def test_raises_config_load_error_with_location(self, fs: FakeFilesystem) -> None:
        path = Path("/test/invalid.toml")
        fs.create_file(path, contents='\n[logging\nlevel = "debug"\n')

        with pytest.raises(ConfigLoadError) as exc_info:
            _ = read_toml_file(path)

        assert exc_info.value.path == path
        assert exc_info.value.line is not None


class TestDeepMerge:
    def test_nested_dicts_are_merged(self) -> None:
        base = {"logging": {"level": "info", "format": "json"}, "context_lines": 3}
        override = {"logging": {"level": "debug"}}

        result = deep_merge(base, override)

        assert result == {
            "logging": {"level": "debug", "format": "json"},
            "context_lines": 3,
        }

    def test_lists_are_replaced(self) -> None:
        assert deep_merge({"a": [1, 2]}, {"a": [3]}) == {"a": [3]}

    def test_inputs_are_not_modified(self) -> None:
        base = {"logging": {"level": "info"}}
        override = {"logging": {"file": "/tmp/x.log"}}
        base_copy = copy.deepcopy(base)
        override_copy = copy.deepcopy(override)

        result = deep_merge(base, override)
        result["logging"]["level"] = "error"

        assert base == base_copy
        assert override == override_copy


class TestParseEnvValue:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("true", True),
            ("FALSE", False),
            ("42", 42),
            ("[1, 2]", [1, 2]),
            ('{"a": 1}', {"a": 1}),
            ("[not json", "[not json"),
            ("git", "git"),
        ],
    )
    def test_type_inference(self, raw: str, expected: object) -> None:
        assert parse_env_value(raw) == expected


class TestParseEnvVars:
    def test_maps_double_underscore_to_nesting(self) -> None:
        environ = {
            "REPOLENS_LOGGING__LEVEL": "debug",
            "REPOLENS_CONTEXT_LINES": "7",
            "OTHER_VAR": "ignored",
        }

        result = parse_env_vars(environ=environ)

        assert result == {"logging": {"level": "debug"}, "context_lines": 7}

    def test_bare_prefix_is_ignored(self) -> None:
        assert parse_env_vars(environ={"REPOLENS_": "x"}) == {}

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REPOLENS_GIT_BINARY", "/usr/local/bin/git")

        assert parse_env_vars()["git_binary"] == "/usr/local/bin/git"


class TestSetNestedKey:
    def test_creates_intermediate_dicts(self) -> None:
        d: dict[str, object] = {}

        set_nested_key(d, "logging.level", "debug")

        assert d == {"logging": {"level": "debug"}}

    def test_replaces_scalar_in_the_way(self) -> None:
        d: dict[str, object] = {"logging": "verbose"}

        set_nested_key(d, "logging.level", "debug")

        assert d == {"logging": {"level": "debug"}}
