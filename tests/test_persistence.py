"""Tests for snapshot persistence (save/load as JSON).

Snapshots are written as ``{"vars": {...}}`` with sorted keys, so the
same snapshot always produces the same text.
"""

import json
from pathlib import Path

import pytest

from py_env.env import empty_env, env_from, env_of
from py_env.persistence import EnvFormatError, dump_env, dumps_env, load_env, loads_env


class TestRoundTrip:
    """Verify that snapshots survive save/load cycles."""

    def test_empty_env(self, tmp_path: Path) -> None:
        """An empty snapshot should round-trip correctly."""
        path = tmp_path / "env.json"
        dump_env(empty_env(), path)
        assert load_env(path) == empty_env()

    def test_vars_persist(self, tmp_path: Path) -> None:
        """Variables saved should be present after load."""
        env = env_from({"HOME": "/root", "PATH": "/usr/bin:/bin", "EMPTY": ""})
        path = tmp_path / "env.json"
        dump_env(env, path)
        assert load_env(path) == env

    def test_unicode_values_persist(self, tmp_path: Path) -> None:
        """Non-ASCII values should survive the file round trip."""
        env = env_of("GREETING", "héllo wörld")
        path = tmp_path / "env.json"
        dump_env(env, path)
        assert load_env(path).get("GREETING") == "héllo wörld"


class TestFormat:
    """Verify the JSON layout."""

    def test_dumps_shape(self) -> None:
        """Output should be an object with a 'vars' field."""
        data = json.loads(dumps_env(env_from({"B": "2", "A": "1"})))
        assert data == {"vars": {"A": "1", "B": "2"}}

    def test_dumps_is_deterministic(self) -> None:
        """Equal snapshots should serialize to identical text."""
        first = env_from({"B": "2", "A": "1"})
        second = env_from({"A": "1", "B": "2"})
        assert dumps_env(first) == dumps_env(second)
        assert dumps_env(first).index('"A"') < dumps_env(first).index('"B"')


class TestErrors:
    """Verify that bad input is rejected."""

    def test_invalid_json_raises(self) -> None:
        """Text that isn't JSON should raise EnvFormatError."""
        with pytest.raises(EnvFormatError):
            loads_env("{not json")

    def test_missing_vars_field_raises(self) -> None:
        """An object without 'vars' should raise EnvFormatError."""
        with pytest.raises(EnvFormatError, match="vars"):
            loads_env('{"other": {}}')

    def test_vars_not_object_raises(self) -> None:
        """A non-object 'vars' field should raise EnvFormatError."""
        with pytest.raises(EnvFormatError):
            loads_env('{"vars": ["A", "1"]}')

    def test_non_string_value_raises(self) -> None:
        """Non-string values should raise EnvFormatError."""
        with pytest.raises(EnvFormatError):
            loads_env('{"vars": {"A": 1}}')

    def test_format_error_is_value_error(self) -> None:
        """EnvFormatError should be catchable as ValueError."""
        with pytest.raises(ValueError):
            loads_env("[]")

    def test_load_nonexistent_raises(self, tmp_path: Path) -> None:
        """Loading a missing file should raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_env(tmp_path / "nope.json")
