import dataclasses

import pytest

from alpenglow.signature import SecretKey
from alpenglow.validator import MAX_TRANSACTION_SIZE, Transaction, ValidatorInfo


def test_transaction_at_limit_is_accepted():
    tx = Transaction(bytes(MAX_TRANSACTION_SIZE))
    assert len(tx) == MAX_TRANSACTION_SIZE


def test_transaction_over_limit_is_rejected():
    with pytest.raises(ValueError):
        Transaction(bytes(MAX_TRANSACTION_SIZE + 1))


def test_transaction_keeps_payload():
    tx = Transaction(bytearray(b"abc"))
    assert tx.payload == b"abc"
    assert tx == Transaction(b"abc")


def test_transactions_with_different_payloads_differ():
    assert Transaction(b"a") != Transaction(b"b")


def test_validator_info_defaults_and_fields():
    pk = SecretKey(bytes(32)).to_pk()
    info = ValidatorInfo(id=3, stake=7, pubkey=pk)
    assert info.id == 3
    assert info.stake == 7
    assert info.pubkey == pk
    assert info.disseminator_address == ""
    assert info.voting_pubkey is None


def test_validator_info_replace_changes_only_stake():
    pk = SecretKey(bytes(32)).to_pk()
    info = ValidatorInfo(id=1, stake=1, pubkey=pk, disseminator_address="127.0.0.1:3001")
    changed = dataclasses.replace(info, stake=50)
    assert changed.stake == 50
    assert info.stake == 1
    assert changed.disseminator_address == info.disseminator_address