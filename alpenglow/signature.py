"""Ed25519 digital signatures (RFC 8032)."""

from __future__ import annotations

import os

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

SEED_SIZE = 32
PUBLIC_KEY_SIZE = 32
SIGNATURE_SIZE = 64


class PublicKey:
    """An Ed25519 verification key."""

    def __init__(self, key: bytes) -> None:
        key = bytes(key)
        if len(key) != PUBLIC_KEY_SIZE:
            raise ValueError(f"public key must be {PUBLIC_KEY_SIZE} bytes, got {len(key)}")
        self._raw = key
        self._key = Ed25519PublicKey.from_public_bytes(key)

    def to_bytes(self) -> bytes:
        """Return the 32-byte encoding of this key."""
        return self._raw

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    def __repr__(self) -> str:
        return f"PublicKey({self._raw.hex()})"


class Signature:
    """A 64-byte Ed25519 signature."""

    def __init__(self, raw: bytes) -> None:
        raw = bytes(raw)
        if len(raw) != SIGNATURE_SIZE:
            raise ValueError(f"signature must be {SIGNATURE_SIZE} bytes, got {len(raw)}")
        self.raw = raw

    def verify(self, msg: bytes, pk: PublicKey) -> bool:
        """Return True iff this is a valid signature of ``msg`` under ``pk``."""
        try:
            pk._key.verify(self.raw, msg)
        except InvalidSignature:
            return False
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Signature):
            return NotImplemented
        return self.raw == other.raw

    def __hash__(self) -> int:
        return hash(self.raw)

    def __repr__(self) -> str:
        return f"Signature({self.raw.hex()})"


class SecretKey:
    """An Ed25519 signing key built from a 32-byte seed."""

    def __init__(self, seed: bytes) -> None:
        seed = bytes(seed)
        if len(seed) != SEED_SIZE:
            raise ValueError(f"seed must be {SEED_SIZE} bytes, got {len(seed)}")
        self._seed = seed
        self._key = Ed25519PrivateKey.from_private_bytes(seed)

    @classmethod
    def generate(cls) -> SecretKey:
        """Create a new key from fresh operating-system randomness."""
        return cls(os.urandom(SEED_SIZE))

    def to_pk(self) -> PublicKey:
        """Return the matching public key."""
        raw = self._key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        return PublicKey(raw)

    def sign(self, msg: bytes) -> Signature:
        """Sign ``msg`` with this key."""
        return Signature(self._key.sign(msg))

    def as_bytes(self) -> bytes:
        """Return the 32-byte seed of this key."""
        return self._seed

    def __repr__(self) -> str:
        return "SecretKey(...)"