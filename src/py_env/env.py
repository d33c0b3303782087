"""Environment snapshots — immutable sets of ``KEY=VALUE`` pairs.

In Unix, every process has an environment: a set of ``KEY=VALUE`` string
pairs inherited from its parent.  Code that launches subprocesses or reads
configuration usually wants to *compute* an environment (take the parent's,
add a few variables, strip a few secrets) without disturbing anybody else's
view of it.

``Env`` is an immutable snapshot built for exactly that:

    - **Immutable** — once built, the variables never change.  Every
      "modifying" operation (``union``, ``difference``, ``copy``) returns a
      new ``Env`` and leaves the original alone.
    - **Strings only** — both keys and values must be ``str``; anything else
      is rejected with ``TypeError`` at construction time.
    - **Set-like** — ``union`` overlays variables (the right-hand side wins)
      and ``difference`` removes names.  ``|`` and ``-`` are shorthands.

Snapshots are created with small factory functions rather than an
overloaded constructor::

    base = process_env()                         # copy of os.environ
    env = base.union("DEBUG", "1").difference(["AWS_SECRET_ACCESS_KEY"])
    env = env_of_flat("A", "1", "B", "2")        # pairwise arguments
    env = build_env(lambda vars: vars.update(A="1"))

Builders hand a scratch ``dict`` to a callback and freeze a *copy* of it
afterwards, so a scratch dict that escapes the callback can't reach into
the snapshot.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, NoReturn, overload

from py_env.logging import LogLevel

if TYPE_CHECKING:
    from collections.abc import ItemsView, KeysView

    from py_env.config import CaptureConfig
    from py_env.logging import Logger

EnvEdit = Callable[[dict[str, str]], object]
"""Callback that fills or edits a scratch dict during construction."""

MISSING_VARIABLE_MESSAGE = "Missing required environment variable {key}"


class MissingVariableError(KeyError):
    """Raise when a required variable is not in the environment.

    Subclasses ``KeyError`` so it can be caught like any other missing
    mapping key.  The offending name is kept on ``.key``.
    """

    def __init__(self, key: str, message: str | None = None) -> None:
        """Create the error for *key*, with an optional custom message."""
        self.key = key
        self.message = (
            message if message is not None else MISSING_VARIABLE_MESSAGE.format(key=key)
        )
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return the message without ``KeyError``'s extra quoting."""
        return self.message


class OddVarCountError(ValueError):
    """Raise when a flat ``key, value, ...`` sequence has a dangling key."""

    def __init__(self, count: int) -> None:
        """Create the error for a sequence of *count* items."""
        self.count = count
        super().__init__(f"Var count must be even, got: {count}")


def _validated(vars_: dict[str, str]) -> dict[str, str]:
    """Return *vars_* unchanged after checking every key and value is a str.

    Raises:
        TypeError: If any key or value is not a string.

    """
    for key, value in vars_.items():
        if not isinstance(key, str) or not isinstance(value, str):
            msg = (
                "Environment variables must map str to str, "
                f"got {type(key).__name__} -> {type(value).__name__}"
            )
            raise TypeError(msg)
    return vars_


class Env:
    """An immutable snapshot of environment variables.

    The variables live in a private dict that is never handed out; callers
    see it through ``vars``, a read-only ``MappingProxyType``.  Attribute
    assignment is blocked too, so an ``Env`` is safe to share between
    threads without locking.
    """

    __slots__ = ("_hash", "_vars")

    _vars: dict[str, str]
    _hash: int | None

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        """Create a snapshot holding a copy of *initial*.

        Args:
            initial: Starting variables (copied, not referenced).

        Raises:
            TypeError: If a key or value is not a string.

        """
        vars_ = _validated(dict(initial)) if initial else {}
        object.__setattr__(self, "_vars", vars_)
        object.__setattr__(self, "_hash", None)

    @classmethod
    def _wrap(cls, vars_: dict[str, str]) -> Env:
        """Adopt an already-validated dict that nobody else references."""
        env = object.__new__(cls)
        object.__setattr__(env, "_vars", vars_)
        object.__setattr__(env, "_hash", None)
        return env

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> Env:
        """Deserialize a snapshot from a plain ``{key: value}`` mapping."""
        return env_from(data)

    def to_dict(self) -> dict[str, str]:
        """Return the variables as a new, independent dict."""
        return dict(self._vars)

    @property
    def vars(self) -> Mapping[str, str]:
        """Return a read-only view of the variables."""
        return MappingProxyType(self._vars)

    def contains(self, key: str) -> bool:
        """Return True if *key* is set."""
        return key in self._vars

    def get(self, key: str, lazy_message: Callable[[str], str] | None = None) -> str:
        """Return the value of the required variable *key*.

        Args:
            key: The variable name.
            lazy_message: Builds the error message from the key.  Only
                called when the variable is missing.

        Raises:
            MissingVariableError: If *key* is not set.

        """
        try:
            return self._vars[key]
        except KeyError:
            message = lazy_message(key) if lazy_message is not None else None
            raise MissingVariableError(key, message) from None

    def get_or_default(self, key: str, fallback: str) -> str:
        """Return the value of *key*, or *fallback* if not set."""
        return self._vars.get(key, fallback)

    def get_or_none(self, key: str) -> str | None:
        """Return the value of *key*, or None if not set."""
        return self._vars.get(key)

    @overload
    def union(self, other: Env | Mapping[str, str], /) -> Env: ...

    @overload
    def union(self, key: str, value: str, /) -> Env: ...

    def union(self, other: Env | Mapping[str, str] | str, value: str | None = None, /) -> Env:
        """Return a new snapshot with *other* laid over this one.

        ``union(other)`` merges an ``Env`` or a mapping; on a name clash the
        value from *other* wins.  ``union(key, value)`` sets one variable.

        If either side is empty, the other side is returned as is.
        """
        if isinstance(other, str):
            if value is None:
                msg = "union(key, value) requires a value"
                raise TypeError(msg)
            return self._with(other, value)
        if value is not None:
            msg = "union() takes a value only together with a key"
            raise TypeError(msg)

        that = other._vars if isinstance(other, Env) else _validated(dict(other))
        if not that:
            return self
        if not self._vars:
            return other if isinstance(other, Env) else Env._wrap(that)
        return Env._wrap({**self._vars, **that})

    def _with(self, key: str, value: str) -> Env:
        """Return a copy of this snapshot with *key* set to *value*."""
        if not self._vars:
            return env_of(key, value)
        vars_ = dict(self._vars)
        vars_[key] = value
        return Env._wrap(_validated(vars_))

    def difference(self, keys: Env | Iterable[str]) -> Env:
        """Return a new snapshot without the variables named in *keys*.

        *keys* may be another ``Env`` or mapping (its keys are used), any
        collection, a one-shot iterator or a generator of names, or a
        single name.  Names that aren't set are ignored.  If nothing would
        be removed, this snapshot is returned as is.
        """
        names: Iterable[str] = [keys] if isinstance(keys, str) else keys
        removed = {name for name in names if name in self._vars}
        if not removed:
            return self
        return Env._wrap({k: v for k, v in self._vars.items() if k not in removed})

    def copy(self, edit: EnvEdit) -> Env:
        """Return a new snapshot made by editing a scratch copy of this one.

        Args:
            edit: Called once with a mutable dict holding all current
                variables; it may add, overwrite or delete entries.

        """
        scratch = dict(self._vars)
        edit(scratch)
        return Env(scratch)

    def keys(self) -> KeysView[str]:
        """Return a view of the variable names."""
        return self.vars.keys()

    def items(self) -> ItemsView[str, str]:
        """Return a view of all (key, value) pairs."""
        return self.vars.items()

    def __contains__(self, key: object) -> bool:
        """Return True if *key* is set (``key in env``)."""
        return key in self._vars

    def __getitem__(self, key: str) -> str:
        """Return the value of *key* (``env[key]``), like ``get``."""
        return self.get(key)

    def __iter__(self) -> Iterator[str]:
        """Iterate over the variable names."""
        return iter(self._vars)

    def __len__(self) -> int:
        """Return the number of variables."""
        return len(self._vars)

    def __or__(self, other: object) -> Env:
        """Return ``self.union(other)`` (``env | other``)."""
        if not isinstance(other, Env | Mapping):
            return NotImplemented
        return self.union(other)

    def __sub__(self, keys: object) -> Env:
        """Return ``self.difference(keys)`` (``env - keys``)."""
        if not isinstance(keys, Env | Iterable):
            return NotImplemented
        return self.difference(keys)

    def __eq__(self, other: object) -> bool:
        """Return True if *other* is an Env with the same variables."""
        if self is other:
            return True
        if not isinstance(other, Env):
            return NotImplemented
        return self._vars == other._vars

    def __hash__(self) -> int:
        """Hash the variables; equal snapshots hash equal."""
        if self._hash is None:
            object.__setattr__(self, "_hash", hash(frozenset(self._vars.items())))
        assert self._hash is not None  # noqa: S101
        return self._hash

    def __repr__(self) -> str:
        """Return ``Env({...})`` with the names in sorted order."""
        return f"Env({dict(sorted(self._vars.items()))!r})"

    def __reduce__(self) -> tuple[Any, ...]:
        """Pickle as a plain dict passed back through the constructor."""
        return (Env, (dict(self._vars),))

    def __setattr__(self, name: str, value: object) -> NoReturn:
        """Refuse attribute assignment; snapshots are immutable."""
        msg = f"Env is immutable, cannot set '{name}'"
        raise AttributeError(msg)

    def __delattr__(self, name: str) -> NoReturn:
        """Refuse attribute deletion; snapshots are immutable."""
        msg = f"Env is immutable, cannot delete '{name}'"
        raise AttributeError(msg)


_EMPTY = Env._wrap({})  # pyright: ignore[reportPrivateUsage]


def empty_env() -> Env:
    """Return a snapshot without any variables."""
    return _EMPTY


def process_env(config: CaptureConfig | None = None, *, logger: Logger | None = None) -> Env:
    """Capture the current process environment.

    This is the one impure factory: it reads ``os.environ`` at call time.
    The snapshot holds a copy, so later changes to the process environment
    are not reflected in it.

    Args:
        config: Which variables to keep.  ``None`` keeps all of them.
        logger: If given, receives one INFO entry describing the capture.

    """
    captured: dict[str, str] = {}
    skipped = 0
    for key, value in dict(os.environ).items():
        if config is None or config.matches(key):
            captured[key] = value
        else:
            skipped += 1
    if logger is not None:
        logger.log(
            LogLevel.INFO,
            f"Captured {len(captured)} process variables ({skipped} skipped)",
            source="env",
        )
    return Env._wrap(captured)  # pyright: ignore[reportPrivateUsage]


def env_of(key: str, value: str) -> Env:
    """Return a snapshot holding the single variable *key*."""
    return Env._wrap(_validated({key: value}))  # pyright: ignore[reportPrivateUsage]


def env_from(vars_: Mapping[str, str]) -> Env:
    """Return a snapshot holding a copy of every entry in *vars_*.

    An ``Env`` argument is already immutable and is returned as is.
    """
    if isinstance(vars_, Env):
        return vars_
    if not vars_:
        return empty_env()
    return Env(vars_)


def env_from_pairs(pairs: Iterable[tuple[str, str]]) -> Env:
    """Return a snapshot from ``(key, value)`` pairs; later pairs win."""
    vars_: dict[str, str] = {}
    for key, value in pairs:
        vars_[key] = value
    if not vars_:
        return empty_env()
    return Env._wrap(_validated(vars_))  # pyright: ignore[reportPrivateUsage]


def env_of_flat(*kvs: str) -> Env:
    """Return a snapshot from a flat ``key1, value1, key2, value2, ...`` list.

    Raises:
        OddVarCountError: If a key is left without a value.

    """
    count = len(kvs)
    if count % 2 != 0:
        raise OddVarCountError(count)
    return env_from_pairs(zip(kvs[::2], kvs[1::2], strict=True))


def build_env(
    edit: EnvEdit,
    *,
    capacity: int | None = None,
    load_factor: float | None = None,
) -> Env:
    """Return a snapshot filled in by *edit*.

    *edit* receives an empty scratch dict.  Once it returns, a copy of the
    dict is frozen into the snapshot.

    Args:
        edit: Populates the scratch dict.
        capacity: Expected number of variables.  Must not be negative.
        load_factor: Expected fill ratio, in ``(0, 1]``.

    Raises:
        ValueError: If a sizing hint is out of range.

    """
    if capacity is not None and capacity < 0:
        msg = f"Capacity must not be negative, got: {capacity}"
        raise ValueError(msg)
    if load_factor is not None and not 0 < load_factor <= 1:
        msg = f"Load factor must be in (0, 1], got: {load_factor}"
        raise ValueError(msg)
    scratch: dict[str, str] = {}
    edit(scratch)
    return Env(scratch)
