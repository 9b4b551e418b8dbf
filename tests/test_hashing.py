import hashlib

import pytest

from alpenglow.hashing import hash_all, hash_bytes, truncate


def test_hash_of_empty_input_is_sha256():
    assert hash_bytes(b"").hex() == (
        "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    )


def test_hash_matches_stdlib_sha256():
    assert hash_bytes(b"alpenglow") == hashlib.sha256(b"alpenglow").digest()


def test_hash_is_32_bytes():
    assert len(hash_bytes(b"some data")) == 32


def test_hash_all_equals_hash_of_concatenation():
    parts = [b"hello", b" ", b"world"]
    assert hash_all(parts) == hash_bytes(b"hello world")


def test_hash_all_accepts_generator():
    assert hash_all(p for p in [b"ab", b"cd"]) == hash_bytes(b"abcd")


def test_hash_all_of_nothing_is_hash_of_empty():
    assert hash_all([]) == hash_bytes(b"")


def test_truncate_keeps_prefix():
    digest = hash_bytes(b"data")
    short = truncate(digest)
    assert len(short) == 16
    assert digest.startswith(short)


@pytest.mark.parametrize("length", [0, 16, 31, 33])
def test_truncate_rejects_wrong_length(length):
    with pytest.raises(ValueError):
        truncate(bytes(length))