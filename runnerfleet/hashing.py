"""Deterministic object dumping and FNV-1a based hashing."""

from __future__ import annotations

import dataclasses
import enum
import json
from collections.abc import Mapping, Set
from datetime import date, datetime, timedelta
from typing import Any

_FNV32_OFFSET_BASIS = 0x811C9DC5
_FNV32_PRIME = 0x01000193
_MASK32 = 0xFFFFFFFF

# Characters without vowels, so encoded hashes never spell words.
_SAFE_ALPHANUMS = "bcdfghjklmnpqrstvwxz2456789"


def fnv32a(data: bytes | str) -> int:
    """Return the 32-bit FNV-1a hash of ``data``."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    value = _FNV32_OFFSET_BASIS
    for byte in data:
        value ^= byte
        value = (value * _FNV32_PRIME) & _MASK32
    return value


def safe_encode_string(value: str) -> str:
    """Map every character of ``value`` onto a vowel-free alphabet."""
    return "".join(_SAFE_ALPHANUMS[ord(ch) % len(_SAFE_ALPHANUMS)] for ch in value)


def _dump_key(key: Any) -> str:
    return dump_object(key)


def dump_object(obj: Any) -> str:
    """Render ``obj`` as a stable string that follows nested values.

    Mapping keys and set members are sorted, so the result depends only
    on content, never on insertion order.
    """
    if obj is None:
        return "nil"
    if isinstance(obj, bool):
        return "true" if obj else "false"
    if isinstance(obj, enum.Enum):
        return f"{type(obj).__name__}({dump_object(obj.value)})"
    if isinstance(obj, (int, float)):
        return repr(obj)
    if isinstance(obj, str):
        return json.dumps(obj, ensure_ascii=False)
    if isinstance(obj, (bytes, bytearray)):
        return f"bytes({bytes(obj).hex()})"
    if isinstance(obj, (datetime, date)):
        return f"{type(obj).__name__}({obj.isoformat()})"
    if isinstance(obj, timedelta):
        return f"timedelta({obj.total_seconds()!r})"
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        fields = ", ".join(
            f"{field.name}:{dump_object(getattr(obj, field.name))}"
            for field in dataclasses.fields(obj)
        )
        return f"{type(obj).__name__}{{{fields}}}"
    if isinstance(obj, Mapping):
        items = sorted((_dump_key(k), dump_object(v)) for k, v in obj.items())
        body = ", ".join(f"{k}:{v}" for k, v in items)
        return f"map{{{body}}}"
    if isinstance(obj, (list, tuple)):
        body = ", ".join(dump_object(item) for item in obj)
        return f"{type(obj).__name__}[{body}]"
    if isinstance(obj, Set):
        body = ", ".join(sorted(dump_object(item) for item in obj))
        return f"set[{body}]"
    attributes = getattr(obj, "__dict__", None)
    if attributes is not None:
        body = ", ".join(f"{k}:{dump_object(v)}" for k, v in sorted(attributes.items()))
        return f"{type(obj).__name__}{{{body}}}"
    return repr(obj)


def deep_hash_object(obj: Any) -> int:
    """Hash the full, pointer-independent rendering of ``obj``."""
    return fnv32a(dump_object(obj))


def fnv_hash_string_objects(*args: Any) -> str:
    """Return a safely encoded hash string for the given objects.

    Each object restarts the hasher, so the result is determined by the
    last object alone; with no objects it encodes the empty hash.
    """
    value = _FNV32_OFFSET_BASIS
    for obj in args:
        value = deep_hash_object(obj)
    return safe_encode_string(str(value))