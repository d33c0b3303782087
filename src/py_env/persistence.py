"""Snapshot persistence — save and load environments as JSON.

A snapshot is often computed in one place and used in another: a build
step records the environment it ran with, a launcher replays it later.
This module gives snapshots a stable interchange format::

    {"vars": {"HOME": "/root", "PATH": "/usr/bin"}}

Keys are written in sorted order so the same snapshot always produces the
same text (handy for diffs and checksums).

    - ``dumps_env`` / ``loads_env`` — to and from a JSON string.
    - ``dump_env`` / ``load_env`` — to and from a file.

Anything that isn't a ``{"vars": {str: str}}`` object is rejected with
``EnvFormatError``.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from py_env.env import Env, env_from
from py_env.logging import LogLevel

if TYPE_CHECKING:
    from pathlib import Path

    from py_env.logging import Logger


class EnvFormatError(ValueError):
    """Raise when serialized data does not describe a snapshot."""


def _to_payload(env: Env) -> dict[str, Any]:
    return {"vars": env.to_dict()}


def _from_payload(data: Any) -> Env:
    if not isinstance(data, dict) or "vars" not in data:
        msg = "Expected a JSON object with a 'vars' field"
        raise EnvFormatError(msg)
    vars_ = data["vars"]
    if not isinstance(vars_, dict):
        msg = "Field 'vars' must be a JSON object"
        raise EnvFormatError(msg)
    try:
        return env_from(vars_)
    except TypeError as e:
        raise EnvFormatError(str(e)) from e


def dumps_env(env: Env) -> str:
    """Serialize a snapshot to a JSON string."""
    return json.dumps(_to_payload(env), indent=2, sort_keys=True)


def loads_env(text: str) -> Env:
    """Deserialize a snapshot from a JSON string.

    Raises:
        EnvFormatError: If *text* is not valid JSON or not a snapshot.

    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Cannot decode snapshot: {e}"
        raise EnvFormatError(msg) from e
    return _from_payload(data)


def dump_env(env: Env, path: Path, *, logger: Logger | None = None) -> None:
    """Save a snapshot to a JSON file.

    Args:
        env: The snapshot to save.
        path: The file path to write to.
        logger: If given, receives one INFO entry for the write.

    """
    path.write_text(dumps_env(env), encoding="utf-8")
    if logger is not None:
        logger.log(LogLevel.INFO, f"Saved {len(env)} variables to {path}", source="persistence")


def load_env(path: Path, *, logger: Logger | None = None) -> Env:
    """Load a snapshot from a JSON file.

    Args:
        path: The file path to read from.
        logger: If given, receives one INFO entry for the read.

    Returns:
        The reconstructed snapshot.

    Raises:
        FileNotFoundError: If the path does not exist.
        EnvFormatError: If the file does not hold a snapshot.

    """
    env = loads_env(path.read_text(encoding="utf-8"))
    if logger is not None:
        logger.log(LogLevel.INFO, f"Loaded {len(env)} variables from {path}", source="persistence")
    return env
