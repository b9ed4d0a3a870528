"""
Unit tests for the signature binder.
"""

import dataclasses

import pytest

from sealbid.core.bid import BidRecord, derive_signing_key, sign_bid, verify_bid_signature
from sealbid.core.errors import InvalidParameters


@pytest.fixture
def record():
    return BidRecord(amount="3", bidder="0xABC", timestamp=1000, nonce="abc123")


@pytest.fixture
def signing_key(keypair, record):
    return derive_signing_key(keypair.private_key_bytes, record.nonce)


class TestKeyDerivation:
    """Tests for derive_signing_key."""

    def test_key_size(self, signing_key):
        assert len(signing_key) == 32

    def test_deterministic(self, keypair):
        assert derive_signing_key(keypair.private_key_bytes, "n1") == \
            derive_signing_key(keypair.private_key_bytes, "n1")

    def test_one_key_per_nonce(self, keypair):
        assert derive_signing_key(keypair.private_key_bytes, "n1") != \
            derive_signing_key(keypair.private_key_bytes, "n2")

    def test_one_key_per_private_key(self, keypair, other_keypair):
        assert derive_signing_key(keypair.private_key_bytes, "n1") != \
            derive_signing_key(other_keypair.private_key_bytes, "n1")

    def test_empty_inputs_rejected(self, keypair):
        with pytest.raises(InvalidParameters):
            derive_signing_key(b"", "n1")
        with pytest.raises(InvalidParameters):
            derive_signing_key(keypair.private_key_bytes, "")


class TestSignVerify:
    """Tests for sign_bid / verify_bid_signature."""

    def test_signature_size(self, record, signing_key):
        assert len(sign_bid(record, signing_key)) == 32

    def test_verify_valid(self, record, signing_key):
        sig = sign_bid(record, signing_key)
        assert verify_bid_signature(record, sig, signing_key)

    @pytest.mark.parametrize("field,value", [
        ("amount", "4"),
        ("bidder", "0xABD"),
        ("timestamp", 1001),
        ("nonce", "abc124"),
    ])
    def test_modified_record_fails(self, record, signing_key, field, value):
        sig = sign_bid(record, signing_key)
        assert not verify_bid_signature(dataclasses.replace(record, **{field: value}), sig, signing_key)

    def test_wrong_key_fails(self, record, signing_key, keypair):
        sig = sign_bid(record, signing_key)
        other = derive_signing_key(keypair.private_key_bytes, "different")
        assert not verify_bid_signature(record, sig, other)

    def test_flipped_bit_fails(self, record, signing_key):
        sig = bytearray(sign_bid(record, signing_key))
        sig[0] ^= 0x01
        assert not verify_bid_signature(record, bytes(sig), signing_key)

    def test_wrong_length_fails(self, record, signing_key):
        assert not verify_bid_signature(record, b"\x00" * 31, signing_key)

    def test_bad_key_length_rejected(self, record):
        with pytest.raises(InvalidParameters):
            sign_bid(record, b"short")
