"""
Shared fixtures: reproducible randomness, a manual clock, and one key pair
per session (prime generation is the slow part of the suite).
"""

import pytest

from sealbid.core.auction import AuctionWindow
from sealbid.core.bid import BidLifecycle
from sealbid.core.config import BidConfig
from sealbid.crypto import DeterministicRandomSource, generate_keypair
from sealbid.utils.clock import ManualClock

START_MS = 1_700_000_000_000


@pytest.fixture(scope="session")
def config():
    return BidConfig()


@pytest.fixture(scope="session")
def keypair(config):
    """Shared key pair. Tests that wipe keys must make their own."""
    return generate_keypair(config=config, random_source=DeterministicRandomSource(b"session-key"))


@pytest.fixture(scope="session")
def other_keypair(config):
    return generate_keypair(config=config, random_source=DeterministicRandomSource(b"other-key"))


@pytest.fixture
def rng():
    return DeterministicRandomSource(b"test-stream")


@pytest.fixture
def clock():
    return ManualClock(START_MS)


@pytest.fixture
def lifecycle(config, rng, clock):
    return BidLifecycle(config=config, random_source=rng, clock=clock)


@pytest.fixture
def window(clock):
    now = clock.now_ms()
    return AuctionWindow(
        land_identifier="parcel-7",
        base_price=1,
        open_timestamp=now,
        close_timestamp=now + 1000,
    )
