import struct
from dataclasses import dataclass

import pytest

from alpenglow.network import (
    MTU_BYTES,
    DeserializationError,
    MalformedAddressError,
    MessageKind,
    Network,
    NetworkError,
    NetworkMessage,
    SerializationError,
    parse_addr,
)
from alpenglow.validator import Transaction


@dataclass(frozen=True)
class FakeShred:
    slot: int
    index_in_slot: int
    data: bytes = b""

    def to_bytes(self) -> bytes:
        return struct.pack(">QQ", self.slot, self.index_in_slot) + self.data

    @classmethod
    def from_bytes(cls, raw: bytes) -> "FakeShred":
        slot, index = struct.unpack_from(">QQ", raw)
        return cls(slot, index, raw[16:])


DECODERS = {MessageKind.SHRED: FakeShred.from_bytes}


@pytest.mark.asyncio
async def test_serialization_ping_pong():
    msg = NetworkMessage.ping()
    deserialized = NetworkMessage.from_bytes(msg.to_bytes())
    assert deserialized.kind is MessageKind.PING

    msg = NetworkMessage.pong()
    deserialized = NetworkMessage.from_bytes(msg.to_bytes())
    assert deserialized.kind is MessageKind.PONG


def test_ping_pong_wire_bytes():
    assert NetworkMessage.ping().to_bytes() == b"\x00"
    assert NetworkMessage.pong().to_bytes() == b"\x01"


def test_transaction_round_trip():
    msg = NetworkMessage.transaction(Transaction(b"abc"))
    data = msg.to_bytes()
    assert data == b"\x06\x03abc"
    assert NetworkMessage.from_bytes(data) == msg


def test_long_transaction_uses_wide_length():
    tx = Transaction(bytes(300))
    data = NetworkMessage.transaction(tx).to_bytes()
    assert data[1] == 251
    assert NetworkMessage.from_bytes(data).payload == tx


def test_shred_round_trip_with_decoder():
    shred = FakeShred(7, 3, b"payload")
    data = NetworkMessage.shred(shred).to_bytes()
    decoded = NetworkMessage.from_bytes(data, DECODERS)
    assert decoded.kind is MessageKind.SHRED
    assert decoded.payload == shred


def test_shred_without_decoder_keeps_bytes():
    shred = FakeShred(1, 2, b"x")
    decoded = NetworkMessage.from_bytes(NetworkMessage.shred(shred).to_bytes())
    assert decoded.payload == shred.to_bytes()


def test_oversized_input_rejected():
    with pytest.raises(DeserializationError):
        NetworkMessage.from_bytes(bytes(MTU_BYTES + 1))


def test_oversized_message_rejected():
    msg = NetworkMessage.shred(FakeShred(0, 0, bytes(MTU_BYTES)))
    with pytest.raises(SerializationError):
        msg.to_bytes()


def test_unknown_tag_rejected():
    with pytest.raises(DeserializationError):
        NetworkMessage.from_bytes(b"\x09")


def test_truncated_payload_rejected():
    with pytest.raises(DeserializationError):
        NetworkMessage.from_bytes(b"\x06\x05ab")


def test_empty_input_rejected():
    with pytest.raises(DeserializationError):
        NetworkMessage.from_bytes(b"")


def test_errors_share_base_class():
    with pytest.raises(NetworkError):
        NetworkMessage.from_bytes(b"\x09")


def test_ping_with_payload_is_invalid():
    with pytest.raises(ValueError):
        NetworkMessage(MessageKind.PING, b"x")


def test_network_is_abstract():
    with pytest.raises(TypeError):
        Network()


def test_parse_addr_ipv4():
    assert parse_addr("127.0.0.1:1337") == ("127.0.0.1", 1337)


def test_parse_addr_ipv6():
    assert parse_addr("[::1]:3000") == ("::1", 3000)


@pytest.mark.parametrize(
    "text",
    ["127.0.0.1", "localhost:80", "127.0.0.1:99999", "::1:80", "1.2.3.4:x", "[1.2.3.4]:80"],
)
def test_parse_addr_malformed(text):
    with pytest.raises(MalformedAddressError):
        parse_addr(text)