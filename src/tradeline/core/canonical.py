"""Canonical JSON encoding shared by every node validating the same chain.

Keys are sorted, separators are compact and output is ASCII-only so that two
implementations encoding the same value produce identical bytes. Floats are
refused outright: amounts are exact integers.
"""
from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping, Sequence
from typing import Any


def normalize_for_wire(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): normalize_for_wire(value[key]) for key in sorted(value.keys(), key=str)}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [normalize_for_wire(item) for item in value]
    if isinstance(value, float):
        raise TypeError("Floating point values are not allowed on the wire")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if value is None or isinstance(value, (str, int, bool)):
        return value
    raise TypeError(f"Unsupported wire value of type {type(value).__name__}")


def canonical_dumps(value: Any) -> str:
    normalized = normalize_for_wire(value)
    return json.dumps(normalized, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def canonical_bytes(value: Any) -> bytes:
    return canonical_dumps(value).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sha256_of_data(value: Any) -> str:
    return sha256_hex(canonical_bytes(value))


__all__ = [
    "canonical_bytes",
    "canonical_dumps",
    "normalize_for_wire",
    "sha256_hex",
    "sha256_of_data",
]
