"""
Unit tests for the error taxonomy.
"""

import pytest

from sealbid.core.errors import (
    AuctionClosed,
    DecryptionMismatch,
    DuplicateBid,
    EncodingError,
    EntropyUnavailable,
    InvalidParameters,
    SealedBidError,
    ValueTooLarge,
)


class TestErrors:

    @pytest.mark.parametrize("cls", [
        AuctionClosed, DecryptionMismatch, DuplicateBid, EncodingError,
        EntropyUnavailable, InvalidParameters, ValueTooLarge,
    ])
    def test_common_base(self, cls):
        assert issubclass(cls, SealedBidError)

    def test_value_too_large_is_encoding_error(self):
        assert issubclass(ValueTooLarge, EncodingError)

    def test_kind_and_field(self):
        err = ValueTooLarge("too big", field="bidder")
        assert err.kind == "ValueTooLarge"
        assert err.field == "bidder"
        assert str(err) == "ValueTooLarge(bidder): too big"

    def test_without_field(self):
        assert str(EntropyUnavailable("no entropy")) == "EntropyUnavailable: no entropy"

    def test_to_dict(self):
        assert DuplicateBid("seen", field="nonce").to_dict() == {
            "kind": "DuplicateBid",
            "field": "nonce",
            "message": "seen",
        }
