"""Environment lookups used by ``BounceSettings.from_env``.

Every getter takes an optional ``env`` mapping so tests can pass a plain
dict instead of patching ``os.environ``. Unparseable numbers and booleans
fall back to the given default.
"""

from __future__ import annotations

import os
from typing import Callable, Mapping, Optional, TypeVar

EnvMapping = Mapping[str, str]

T = TypeVar("T")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _lookup(name: str, env: EnvMapping | None) -> Optional[str]:
    return (os.environ if env is None else env).get(name)


def get_str(name: str, default: str, *, env: EnvMapping | None = None) -> str:
    value = _lookup(name, env)
    return default if value is None else value


def get_optional_str(name: str, *, env: EnvMapping | None = None) -> Optional[str]:
    """Stripped value, or ``None`` when unset or blank."""
    value = _lookup(name, env)
    if value is None:
        return None
    return value.strip() or None


def get_secret(name: str, *, env: EnvMapping | None = None) -> Optional[str]:
    """Value exactly as set, or ``None`` when unset or empty.

    Credentials are never stripped: surrounding whitespace may be part of
    the secret.
    """
    return _lookup(name, env) or None


def get_bool(name: str, default: bool, *, env: EnvMapping | None = None) -> bool:
    value = _lookup(name, env)
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


def _get_number(name: str, default: T, converter: Callable[[str], T], env: EnvMapping | None) -> T:
    value = _lookup(name, env)
    if value is None:
        return default
    try:
        return converter(value)
    except ValueError:
        return default


def get_int(name: str, default: int, *, env: EnvMapping | None = None) -> int:
    return _get_number(name, default, int, env)


def get_float(name: str, default: float, *, env: EnvMapping | None = None) -> float:
    return _get_number(name, default, float, env)


__all__ = [
    "EnvMapping",
    "get_bool",
    "get_float",
    "get_int",
    "get_optional_str",
    "get_secret",
    "get_str",
]
