"""
Integration tests for the sealed-bid flow.

Tests the complete path from drafting a bid to a third-party audit of
its reveal, across the wire format.
"""

import dataclasses

import pytest

from sealbid.core.auction import AuctionWindow
from sealbid.core.bid import (
    BidLifecycle,
    BidState,
    EncryptedPayload,
    RevealProof,
    verify_reveal,
)
from sealbid.core.errors import AuctionStillOpen, DuplicateBid
from sealbid.crypto import DeterministicRandomSource, PublicKey, key_session
from sealbid.utils.clock import ManualClock


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def auction(clock):
    now = clock.now_ms()
    return AuctionWindow(
        land_identifier="parcel-42",
        base_price=1,
        open_timestamp=now,
        close_timestamp=now + 1000,
    )


# =============================================================================
# Full Flow Tests
# =============================================================================


class TestSealedBidFlow:
    """End-to-end bid flow tests."""

    def test_publish_uniqueness(self, lifecycle, keypair, auction):
        """Same nonce twice is rejected; a second draft of the same bid is not."""
        record = lifecycle.create_bid("3", "0xABC")
        payload = lifecycle.encrypt_bid(record, keypair)
        assert len(payload.commitment_hash) == 32

        lifecycle.publish(payload, auction)
        with pytest.raises(DuplicateBid):
            lifecycle.publish(payload, auction)

        again = lifecycle.encrypt_bid(lifecycle.create_bid("3", "0xABC"), keypair)
        assert again.nonce != payload.nonce
        assert again.commitment_hash != payload.commitment_hash
        lifecycle.publish(again, auction)
        assert auction.bid_count == 2

    def test_reveal_after_close(self, lifecycle, keypair, auction, clock):
        """Reveal is refused while open, then succeeds and audits after close."""
        record = lifecycle.create_bid("3", "0xABC")
        payload = lifecycle.encrypt_bid(record, keypair)
        lifecycle.publish(payload, auction)

        with pytest.raises(AuctionStillOpen):
            lifecycle.reveal_bid(payload, keypair, auction.close_timestamp)

        clock.advance(1001)
        revealed, proof = lifecycle.reveal_bid(payload, keypair, auction.close_timestamp)
        assert revealed.amount == "3"
        assert revealed.bidder == "0xABC"
        assert lifecycle.state_of(record.nonce) == BidState.REVEALED

        assert verify_reveal(payload, proof, keypair.public())
        flipped = dataclasses.replace(proof, decrypted_amount=proof.decrypted_amount ^ 1)
        assert not verify_reveal(payload, flipped, keypair.public())

    def test_audit_over_the_wire(self, lifecycle, keypair, auction, clock):
        """An auditor holding only JSON reaches the same verdict."""
        payload = lifecycle.encrypt_bid(lifecycle.create_bid("0.25", "0xDEF"), keypair)
        lifecycle.publish(payload, auction)
        clock.set(auction.close_timestamp)
        _, proof = lifecycle.reveal_from_window(auction, payload.commitment_hash, keypair)

        wire_payload = payload.to_json()
        wire_proof = proof.to_json()
        wire_key = keypair.public().to_dict()

        assert verify_reveal(
            EncryptedPayload.from_json(wire_payload),
            RevealProof.from_json(wire_proof),
            PublicKey.from_dict(wire_key),
        )

    def test_many_bidders(self, config, auction, clock):
        """Several bidders with their own keys reveal independently."""
        bids = []
        for i in range(3):
            lifecycle = BidLifecycle(
                config=config,
                random_source=DeterministicRandomSource(f"bidder-{i}".encode()),
                clock=clock,
            )
            with key_session(config, DeterministicRandomSource(f"key-{i}".encode())) as keypair:
                payload = lifecycle.encrypt_bid(lifecycle.create_bid(str(i + 1), f"0x{i}"), keypair)
                lifecycle.publish(payload, auction)
                clock.advance(10)
                bids.append((lifecycle, keypair, payload))
            assert keypair.wiped

        assert [p.commitment_hash for p in auction.snapshot(auction.close_timestamp)] == \
            [b[2].commitment_hash for b in bids]

    def test_reveal_with_fresh_lifecycle(self, config, keypair, auction):
        """A reveal needs only the payload and the key, not the sealing session."""
        clock = ManualClock(auction.open_timestamp)
        sealer = BidLifecycle(config=config, random_source=DeterministicRandomSource(b"s"), clock=clock)
        payload = sealer.encrypt_bid(sealer.create_bid("12.5", "0xABC"), keypair)
        sealer.publish(payload, auction)

        clock.set(auction.close_timestamp)
        revealer = BidLifecycle(config=config, clock=clock)
        record, proof = revealer.reveal_bid(payload, keypair, auction.close_timestamp)
        assert record.amount == "12.5"
        assert revealer.verify_reveal(payload, proof, keypair.public())
