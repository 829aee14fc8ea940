"""Canonical hashing helpers for link bodies and artifact contents.

Link bodies are signed over the same canonical JSON encoding used for
content addressing: sorted keys, compact separators, ASCII-only, UTF-8.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

DEFAULT_ALGORITHMS: tuple[str, ...] = ("sha256",)

_CHUNK_SIZE = 64 * 1024


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def _new_hash(algorithm: str) -> Any:
    if algorithm not in hashlib.algorithms_available:
        raise ValueError(f"Unsupported hash algorithm: {algorithm!r}")
    return hashlib.new(algorithm)


def hash_file(
    path: Path | str, algorithms: Iterable[str] = DEFAULT_ALGORITHMS
) -> dict[str, str]:
    """Hash a file's contents with every algorithm in *algorithms*.

    The file is streamed in chunks so large artifacts never sit in memory.
    Returns a mapping of algorithm name to lowercase hex digest.

    Raises
    ------
    ValueError
        If an algorithm is not provided by ``hashlib``.
    OSError
        If the file cannot be read.
    """
    hashers = {name: _new_hash(name) for name in algorithms}
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            for h in hashers.values():
                h.update(chunk)
    return {name: h.hexdigest() for name, h in hashers.items()}
