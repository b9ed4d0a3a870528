"""
Unit tests for commitments.
"""

import dataclasses

import pytest

from sealbid.core.bid import compute_commitment, verify_commitment
from sealbid.core.errors import InvalidParameters


FIELDS = dict(encrypted_amount=0xDEADBEEF, encrypted_bidder=0xCAFEBABE, timestamp=1000, nonce="abc123")


class TestCommitment:
    """Tests for compute_commitment."""

    def test_deterministic(self):
        """Same inputs produce same commitment."""
        assert compute_commitment(**FIELDS) == compute_commitment(**FIELDS)

    def test_digest_size(self):
        assert len(compute_commitment(**FIELDS)) == 32

    @pytest.mark.parametrize("field,value", [
        ("encrypted_amount", 0xDEADBEEE),
        ("encrypted_bidder", 0xCAFEBABF),
        ("timestamp", 1001),
        ("nonce", "abc124"),
    ])
    def test_single_field_change(self, field, value):
        """Changing any single field changes the commitment."""
        changed = dict(FIELDS, **{field: value})
        assert compute_commitment(**changed) != compute_commitment(**FIELDS)

    def test_fields_not_interchangeable(self):
        """Swapping the ciphertexts changes the commitment."""
        swapped = dict(FIELDS, encrypted_amount=FIELDS["encrypted_bidder"],
                       encrypted_bidder=FIELDS["encrypted_amount"])
        assert compute_commitment(**swapped) != compute_commitment(**FIELDS)

    def test_no_separator_ambiguity(self):
        """Shifting digits between timestamp and nonce changes the commitment."""
        a = compute_commitment(1, 2, 12, "3")
        b = compute_commitment(1, 2, 1, "23")
        assert a != b

    @pytest.mark.parametrize("field,value", [
        ("encrypted_amount", -1),
        ("encrypted_bidder", True),
        ("timestamp", "1000"),
        ("nonce", ""),
        ("nonce", "Not-A-Nonce"),
    ])
    def test_bad_input_names_field(self, field, value):
        """Caller errors surface as InvalidParameters, not bare ValueError."""
        with pytest.raises(InvalidParameters) as exc:
            compute_commitment(**dict(FIELDS, **{field: value}))
        assert exc.value.field == field


class TestVerifyCommitment:
    """Tests for verify_commitment."""

    def test_valid_payload(self, lifecycle, keypair):
        payload = lifecycle.encrypt_bid(lifecycle.create_bid("3", "0xABC"), keypair)
        assert verify_commitment(payload)

    def test_tampered_payload(self, lifecycle, keypair):
        payload = lifecycle.encrypt_bid(lifecycle.create_bid("3", "0xABC"), keypair)
        tampered = dataclasses.replace(payload, timestamp=payload.timestamp + 1)
        assert not verify_commitment(tampered)
