"""Core data types shared by validators: identities, stakes and transactions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from alpenglow.signature import PublicKey

Slot = int
ValidatorId = int
Stake = int

MAX_TRANSACTION_SIZE = 512


@dataclass
class ValidatorInfo:
    """What a validator knows about another validator."""

    id: ValidatorId
    stake: Stake
    pubkey: PublicKey
    voting_pubkey: Any = None
    all2all_address: str = ""
    disseminator_address: str = ""
    repair_address: str = ""


class Transaction:
    """Opaque transaction payload of at most ``MAX_TRANSACTION_SIZE`` bytes."""

    __slots__ = ("payload",)

    def __init__(self, payload: bytes) -> None:
        payload = bytes(payload)
        if len(payload) > MAX_TRANSACTION_SIZE:
            raise ValueError(
                f"transaction of {len(payload)} bytes exceeds {MAX_TRANSACTION_SIZE} bytes"
            )
        self.payload = payload

    def __len__(self) -> int:
        return len(self.payload)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transaction):
            return NotImplemented
        return self.payload == other.payload

    def __hash__(self) -> int:
        return hash(self.payload)

    def __repr__(self) -> str:
        return f"Transaction({len(self.payload)} bytes)"