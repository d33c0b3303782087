"""Capture configuration — which process variables a snapshot keeps.

A child process rarely needs the whole parent environment.  Shells and
sandboxes usually forward an *allow-list* of essential variables (``PATH``,
``HOME``, locale settings, temp dirs) and drop everything else, so that
secrets in the parent environment don't leak by accident.

``CaptureConfig`` describes that filter.  It is applied by
``py_env.env.process_env`` while copying ``os.environ``:

    - ``include`` — if set, only these names are captured.
    - ``exclude`` — these names are never captured (wins over ``include``).
    - ``ignore_case`` — compare names upper-cased, as Windows does.

Configs can be written by hand or loaded from a JSON file::

    {"include": ["PATH", "HOME"], "exclude": [], "ignore_case": false}
"""

from __future__ import annotations

import json
import platform
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

UNIVERSAL_ESSENTIAL_VARS = frozenset(
    {
        "PATH",
        "TEMP",
        "TMP",
        "TMPDIR",
        "LANG",
        "LC_ALL",
        "LC_CTYPE",
        "SSL_CERT_FILE",
        "SSL_CERT_DIR",
    }
)

UNIX_ESSENTIAL_VARS = frozenset(
    {
        "HOME",
        "USER",
        "LOGNAME",
        "SHELL",
        "TERM",
        "PWD",
        "XDG_RUNTIME_DIR",
        "XDG_CONFIG_HOME",
    }
)

MACOS_ESSENTIAL_VARS = UNIX_ESSENTIAL_VARS | {
    "DYLD_LIBRARY_PATH",
    "DYLD_FRAMEWORK_PATH",
    "SSH_AUTH_SOCK",
    "TERM_PROGRAM",
}

WINDOWS_ESSENTIAL_VARS = frozenset(
    {
        "SYSTEMROOT",
        "SYSTEMDRIVE",
        "PATHEXT",
        "COMSPEC",
        "WINDIR",
        "USERPROFILE",
        "USERNAME",
        "APPDATA",
        "LOCALAPPDATA",
    }
)


def _platform_essential_vars() -> frozenset[str]:
    """Return the essential variable names for the running platform."""
    system = platform.system()
    if system == "Windows":
        return UNIVERSAL_ESSENTIAL_VARS | WINDOWS_ESSENTIAL_VARS
    if system == "Darwin":
        return UNIVERSAL_ESSENTIAL_VARS | MACOS_ESSENTIAL_VARS
    return UNIVERSAL_ESSENTIAL_VARS | UNIX_ESSENTIAL_VARS


ESSENTIAL_VARS = _platform_essential_vars()


class ConfigError(ValueError):
    """Raise when a capture configuration cannot be loaded."""


@dataclass(frozen=True)
class CaptureConfig:
    """Describe which process variables ``process_env`` keeps.

    The default config captures everything.
    """

    include: frozenset[str] | None = None
    exclude: frozenset[str] = frozenset()
    ignore_case: bool = False

    @classmethod
    def essential(cls) -> CaptureConfig:
        """Return a config that keeps only the platform's essential variables."""
        return cls(include=ESSENTIAL_VARS, ignore_case=True)

    def matches(self, name: str) -> bool:
        """Return True if the variable *name* should be captured."""
        if self.ignore_case:
            key = name.upper()
            include = None if self.include is None else {n.upper() for n in self.include}
            exclude = {n.upper() for n in self.exclude}
        else:
            key = name
            include = self.include
            exclude = self.exclude
        if include is not None and key not in include:
            return False
        return key not in exclude


def _names(data: dict[str, Any], field_name: str) -> frozenset[str] | None:
    """Read an optional list of variable names from a config object."""
    value = data.get(field_name)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(n, str) for n in value):
        msg = f"Field '{field_name}' must be a list of strings"
        raise ConfigError(msg)
    return frozenset(value)


def load_capture_config(path: Path) -> CaptureConfig:
    """Load a capture config from a JSON file.

    Args:
        path: The file path to read from.

    Returns:
        The parsed configuration.  Missing fields take their defaults.

    Raises:
        ConfigError: If the file cannot be read or is not a valid config.

    """
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Cannot load capture config: {e}"
        raise ConfigError(msg) from e

    if not isinstance(data, dict):
        msg = "Capture config must be a JSON object"
        raise ConfigError(msg)

    ignore_case = data.get("ignore_case", False)
    if not isinstance(ignore_case, bool):
        msg = "Field 'ignore_case' must be a boolean"
        raise ConfigError(msg)

    return CaptureConfig(
        include=_names(data, "include"),
        exclude=_names(data, "exclude") or frozenset(),
        ignore_case=ignore_case,
    )
