"""Immutable environment-variable snapshots.

Re-exports public symbols so callers can write::

    from py_env import Env, process_env, env_of
"""

from py_env.config import (
    ESSENTIAL_VARS,
    CaptureConfig,
    ConfigError,
    load_capture_config,
)
from py_env.env import (
    Env,
    EnvEdit,
    MissingVariableError,
    OddVarCountError,
    build_env,
    empty_env,
    env_from,
    env_from_pairs,
    env_of,
    env_of_flat,
    process_env,
)
from py_env.logging import LogEntry, Logger, LogLevel
from py_env.persistence import (
    EnvFormatError,
    dump_env,
    dumps_env,
    load_env,
    loads_env,
)

__all__ = [
    "ESSENTIAL_VARS",
    "CaptureConfig",
    "ConfigError",
    "Env",
    "EnvEdit",
    "EnvFormatError",
    "LogEntry",
    "LogLevel",
    "Logger",
    "MissingVariableError",
    "OddVarCountError",
    "build_env",
    "dump_env",
    "dumps_env",
    "empty_env",
    "env_from",
    "env_from_pairs",
    "env_of",
    "env_of_flat",
    "load_capture_config",
    "load_env",
    "loads_env",
    "process_env",
]
