"""
Unit tests for the bid codec.

Tests cover:
1. BidRecord validation
2. Amount normalization
3. Field encode/decode
4. Nonce generation
"""

from decimal import Decimal

import pytest

from sealbid.core.bid.codec import (
    BidRecord,
    EncodedBid,
    FIELD_MARKER,
    decode_bid,
    decode_field,
    encode_bid,
    encode_field,
    generate_nonce,
    normalize_amount,
    to_base36,
)
from sealbid.core.errors import EncodingError, ValueTooLarge
from sealbid.crypto import DeterministicRandomSource
from sealbid.utils.clock import ManualClock

BLINDING = bytes(range(16))


class TestBidRecord:
    """Tests for BidRecord validation."""

    def test_valid_record(self):
        record = BidRecord(amount="3", bidder="0xABC", timestamp=1000, nonce="abc123")
        assert record.amount == "3"

    @pytest.mark.parametrize("amount", ["", "-1", "1e5", "03", ".5", "1.", " 1", "1\n"])
    def test_bad_amount_rejected(self, amount):
        with pytest.raises(EncodingError) as exc:
            BidRecord(amount=amount, bidder="0xABC", timestamp=1000, nonce="abc")
        assert exc.value.field == "amount"

    @pytest.mark.parametrize("bidder", ["", " 0xABC", "0xABC\n", "a\x00b"])
    def test_bad_bidder_rejected(self, bidder):
        with pytest.raises(EncodingError) as exc:
            BidRecord(amount="1", bidder=bidder, timestamp=1000, nonce="abc")
        assert exc.value.field == "bidder"

    def test_negative_timestamp_rejected(self):
        with pytest.raises(EncodingError) as exc:
            BidRecord(amount="1", bidder="0xABC", timestamp=-1, nonce="abc")
        assert exc.value.field == "timestamp"

    def test_bad_nonce_rejected(self):
        with pytest.raises(EncodingError) as exc:
            BidRecord(amount="1", bidder="0xABC", timestamp=1, nonce="NOT-VALID")
        assert exc.value.field == "nonce"

    def test_canonical_bytes_separates_fields(self):
        """Moving characters between fields changes the signed form."""
        a = BidRecord(amount="12", bidder="3x", timestamp=1, nonce="n")
        b = BidRecord(amount="1", bidder="23x", timestamp=1, nonce="n")
        assert a.canonical_bytes() != b.canonical_bytes()


class TestNormalizeAmount:
    """Tests for normalize_amount."""

    @pytest.mark.parametrize("given,expected", [
        ("3", "3"),
        ("3.50", "3.5"),
        ("2.0", "2"),
        ("0.000", "0"),
        ("10.0", "10"),
        (7, "7"),
        (Decimal("1E+2"), "100"),
        (Decimal("0.250"), "0.25"),
    ])
    def test_canonical_forms(self, given, expected):
        assert normalize_amount(given) == expected

    @pytest.mark.parametrize("given", [-1, True, 1.5, "abc", Decimal("NaN"), Decimal("-2"), None])
    def test_rejected(self, given):
        with pytest.raises(EncodingError):
            normalize_amount(given)

    def test_too_long_rejected(self):
        with pytest.raises(EncodingError):
            normalize_amount("9" * 100, max_length=78)


class TestFieldEncoding:
    """Tests for encode_field / decode_field."""

    def test_layout(self):
        value = encode_field("3", 2**1024, BLINDING, "amount")
        data = value.to_bytes((value.bit_length() + 7) // 8, "big")
        assert data[0] == FIELD_MARKER
        assert data[1:17] == BLINDING
        assert data[17:] == b"3"

    @pytest.mark.parametrize("text", ["3", "0.25", "0xABC", "ünïcødé bidder", ""])
    def test_round_trip(self, text):
        value = encode_field(text, 2**1024, BLINDING, "bidder")
        assert decode_field(value, 16, "bidder") == text

    def test_leading_zero_blinding_preserved(self):
        value = encode_field("5", 2**1024, bytes(16), "amount")
        assert decode_field(value, 16, "amount") == "5"

    def test_different_blinding_changes_value(self):
        a = encode_field("3", 2**1024, BLINDING, "amount")
        b = encode_field("3", 2**1024, bytes(16), "amount")
        assert a != b

    def test_value_too_large(self):
        with pytest.raises(ValueTooLarge) as exc:
            encode_field("x" * 200, 2**512, BLINDING, "bidder")
        assert exc.value.field == "bidder"

    def test_value_too_large_is_encoding_error(self):
        with pytest.raises(EncodingError):
            encode_field("x" * 200, 2**512, BLINDING, "bidder")

    @pytest.mark.parametrize("value", [0, -5, 0x02 << 200, 0x01])
    def test_decode_rejects_foreign_values(self, value):
        with pytest.raises(EncodingError):
            decode_field(value, 16, "amount")

    def test_decode_rejects_invalid_utf8(self):
        value = int.from_bytes(b"\x01" + BLINDING + b"\xff\xfe", "big")
        with pytest.raises(EncodingError):
            decode_field(value, 16, "amount")


class TestBidEncoding:
    """Tests for encode_bid / decode_bid."""

    def test_round_trip(self, config):
        record = BidRecord(amount="3", bidder="0xABC", timestamp=1000, nonce="abc")
        encoded = encode_bid(record, 2**1024, DeterministicRandomSource(b"x"), config)
        assert encoded.amount != encoded.bidder
        assert decode_bid(encoded, 1000, "abc", config) == record

    def test_blinding_differs_per_field(self, config):
        """Same text in both fields still encodes differently."""
        record = BidRecord(amount="1", bidder="1", timestamp=1, nonce="abc")
        encoded = encode_bid(record, 2**1024, DeterministicRandomSource(b"y"), config)
        assert encoded.amount != encoded.bidder

    def test_decode_invalid_amount_text(self, config):
        encoded = EncodedBid(
            amount=encode_field("-3", 2**1024, BLINDING, "amount"),
            bidder=encode_field("0xABC", 2**1024, BLINDING, "bidder"),
        )
        with pytest.raises(EncodingError) as exc:
            decode_bid(encoded, 1, "abc", config)
        assert exc.value.field == "amount"


class TestNonce:
    """Tests for nonce generation."""

    def test_base36(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "z"
        assert to_base36(36) == "10"

    def test_time_prefix_and_random_suffix(self):
        clock = ManualClock(1_700_000_000_000)
        nonce = generate_nonce(clock, DeterministicRandomSource(b"n"), random_bytes=8)
        prefix = to_base36(1_700_000_000_000)
        assert nonce.startswith(prefix)
        assert len(nonce) == len(prefix) + 16

    def test_same_instant_different_nonces(self):
        clock = ManualClock(5000)
        source = DeterministicRandomSource(b"n")
        assert generate_nonce(clock, source) != generate_nonce(clock, source)
