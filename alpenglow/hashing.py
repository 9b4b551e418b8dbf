"""Cryptographic hash function used throughout the library (SHA-256)."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

HASH_SIZE = 32
SHORT_HASH_SIZE = 16


def hash_bytes(data: bytes) -> bytes:
    """Return the 32-byte SHA-256 digest of ``data``."""
    return hashlib.sha256(data).digest()


def hash_all(parts: Iterable[bytes]) -> bytes:
    """Return the SHA-256 digest of all ``parts`` hashed together in order."""
    hasher = hashlib.sha256()
    for part in parts:
        hasher.update(part)
    return hasher.digest()


def truncate(digest: bytes) -> bytes:
    """Shorten a full 32-byte hash into a 16-byte short hash.

    A short hash only offers 64-bit collision resistance; use it only where
    (second) preimage resistance is all that is needed.
    """
    if len(digest) != HASH_SIZE:
        raise ValueError(f"expected a {HASH_SIZE}-byte hash, got {len(digest)} bytes")
    return digest[:SHORT_HASH_SIZE]