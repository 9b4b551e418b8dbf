"""Networking abstraction: typed messages, their wire format and the transport interface.

Everything a validator sends is a :class:`NetworkMessage`. A message is
encoded as a variant tag followed by its payload. Tags and lengths use the
compact variable-length integer encoding: values below 251 take one byte.
Larger values take a marker byte (251, 252 or 253) followed by a
little-endian integer of 2, 4 or 8 bytes. Ping and Pong carry no payload.
Every other message carries one length-prefixed byte string.
"""

from __future__ import annotations

import enum
import ipaddress
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from alpenglow.validator import Transaction

# Maximum payload size of a UDP packet.
MTU_BYTES = 1500

_U16_MARKER = 251
_U32_MARKER = 252
_U64_MARKER = 253


class NetworkError(Exception):
    """Base class for errors raised by network operations."""


class UnexpectedMessageTypeError(NetworkError):
    """A message of the wrong type arrived on a socket."""


class MalformedAddressError(NetworkError):
    """An address string could not be parsed."""


class SerializationError(NetworkError):
    """A message could not be encoded."""


class DeserializationError(NetworkError):
    """Bytes could not be decoded into a message."""


class MessageKind(enum.IntEnum):
    """The variants of :class:`NetworkMessage`, with their wire tags."""

    PING = 0
    PONG = 1
    SHRED = 2
    VOTE = 3
    CERT = 4
    REPAIR = 5
    TRANSACTION = 6


_EMPTY_KINDS = frozenset({MessageKind.PING, MessageKind.PONG})


def _encode_varint(value: int) -> bytes:
    if value < 0:
        raise SerializationError(f"cannot encode negative integer {value}")
    if value < _U16_MARKER:
        return bytes([value])
    if value < 1 << 16:
        return bytes([_U16_MARKER]) + value.to_bytes(2, "little")
    if value < 1 << 32:
        return bytes([_U32_MARKER]) + value.to_bytes(4, "little")
    if value < 1 << 64:
        return bytes([_U64_MARKER]) + value.to_bytes(8, "little")
    raise SerializationError(f"integer {value} does not fit in 64 bits")


def _decode_varint(data: bytes, pos: int) -> tuple[int, int]:
    if pos >= len(data):
        raise DeserializationError("unexpected end of input")
    marker = data[pos]
    pos += 1
    if marker < _U16_MARKER:
        return marker, pos
    widths = {_U16_MARKER: 2, _U32_MARKER: 4, _U64_MARKER: 8}
    width = widths.get(marker)
    if width is None:
        raise DeserializationError(f"invalid integer marker {marker}")
    end = pos + width
    if end > len(data):
        raise DeserializationError("unexpected end of input")
    return int.from_bytes(data[pos:end], "little"), end


def _payload_bytes(payload: Any) -> bytes:
    if isinstance(payload, Transaction):
        return payload.payload
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    to_bytes = getattr(payload, "to_bytes", None)
    if to_bytes is None:
        raise SerializationError(f"cannot serialize payload of type {type(payload).__name__}")
    return bytes(to_bytes())


@dataclass(frozen=True)
class NetworkMessage:
    """A message exchanged between validators.

    ``payload`` is ``None`` for ping and pong. A transaction message holds a
    :class:`Transaction`. Any other payload is either raw bytes or an object
    with a ``to_bytes()`` method.
    """

    kind: MessageKind
    payload: Any = None

    def __post_init__(self) -> None:
        if self.kind in _EMPTY_KINDS and self.payload is not None:
            raise ValueError(f"{self.kind.name} messages carry no payload")
        if self.kind not in _EMPTY_KINDS and self.payload is None:
            raise ValueError(f"{self.kind.name} messages need a payload")

    @classmethod
    def ping(cls) -> NetworkMessage:
        return cls(MessageKind.PING)

    @classmethod
    def pong(cls) -> NetworkMessage:
        return cls(MessageKind.PONG)

    @classmethod
    def shred(cls, shred: Any) -> NetworkMessage:
        return cls(MessageKind.SHRED, shred)

    @classmethod
    def vote(cls, vote: Any) -> NetworkMessage:
        return cls(MessageKind.VOTE, vote)

    @classmethod
    def cert(cls, cert: Any) -> NetworkMessage:
        return cls(MessageKind.CERT, cert)

    @classmethod
    def repair(cls, repair: Any) -> NetworkMessage:
        return cls(MessageKind.REPAIR, repair)

    @classmethod
    def transaction(cls, transaction: Transaction) -> NetworkMessage:
        return cls(MessageKind.TRANSACTION, transaction)

    def to_bytes(self) -> bytes:
        """Encode this message; raises :class:`SerializationError` beyond the MTU."""
        encoded = _encode_varint(int(self.kind))
        if self.kind not in _EMPTY_KINDS:
            body = _payload_bytes(self.payload)
            encoded += _encode_varint(len(body)) + body
        if len(encoded) > MTU_BYTES:
            raise SerializationError(
                f"message of {len(encoded)} bytes exceeds the MTU of {MTU_BYTES} bytes"
            )
        return encoded

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        decoders: Mapping[MessageKind, Callable[[bytes], Any]] | None = None,
    ) -> NetworkMessage:
        """Decode a message.

        ``decoders`` turns the raw payload of a message kind into an object;
        kinds without a decoder keep their payload as bytes. Raises
        :class:`DeserializationError` on malformed input or input larger
        than the MTU.
        """
        data = bytes(data)
        if len(data) > MTU_BYTES:
            raise DeserializationError(
                f"input of {len(data)} bytes exceeds the MTU of {MTU_BYTES} bytes"
            )
        tag, pos = _decode_varint(data, 0)
        try:
            kind = MessageKind(tag)
        except ValueError:
            raise DeserializationError(f"unknown message tag {tag}") from None
        if kind in _EMPTY_KINDS:
            return cls(kind)

        length, pos = _decode_varint(data, pos)
        end = pos + length
        if end > len(data):
            raise DeserializationError("unexpected end of input")
        raw = data[pos:end]

        if kind is MessageKind.TRANSACTION:
            try:
                return cls(kind, Transaction(raw))
            except ValueError as exc:
                raise DeserializationError(str(exc)) from exc
        decoder = (decoders or {}).get(kind)
        if decoder is None:
            return cls(kind, raw)
        try:
            return cls(kind, decoder(raw))
        except (ValueError, TypeError, IndexError) as exc:
            raise DeserializationError(f"invalid {kind.name.lower()} payload") from exc


class Network(ABC):
    """A transport that sends and receives :class:`NetworkMessage` values."""

    @abstractmethod
    async def send(self, message: NetworkMessage, to: str) -> None:
        """Send ``message`` to the address ``to``."""

    @abstractmethod
    async def send_serialized(self, data: bytes, to: str) -> None:
        """Send an already encoded message to the address ``to``."""

    @abstractmethod
    async def receive(self) -> NetworkMessage:
        """Wait for and return the next incoming message."""


def parse_addr(text: str) -> tuple[str, int]:
    """Parse ``"ip:port"`` (or ``"[ipv6]:port"``) into a ``(host, port)`` pair.

    Raises :class:`MalformedAddressError` if ``text`` is not a socket address.
    """
    host, sep, port = text.rpartition(":")
    if not sep:
        raise MalformedAddressError(f"missing port in {text!r}")
    bracketed = host.startswith("[") and host.endswith("]")
    if bracketed:
        host = host[1:-1]
    elif ":" in host:
        raise MalformedAddressError(f"IPv6 address must be bracketed in {text!r}")
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        raise MalformedAddressError(f"invalid IP address in {text!r}") from None
    if bracketed != (ip.version == 6):
        raise MalformedAddressError(f"malformed address {text!r}")
    if not (port.isascii() and port.isdigit()) or int(port) > 0xFFFF:
        raise MalformedAddressError(f"invalid port in {text!r}")
    return str(ip), int(port)