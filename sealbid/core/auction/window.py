"""
Auction Window - the ordered, append-only bid list of one land auction.

Bids are accepted in [open_timestamp, close_timestamp). Appends are
serialized under a lock. The window keeps the latest time any caller has
shown it; once that reaches close_timestamp the list is frozen for good,
whatever time later callers pass, and reveal code reads a snapshot.
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from sealbid.core.bid.commitment import verify_commitment
from sealbid.core.bid.payload import EncryptedPayload
from sealbid.core.errors import AuctionClosed, AuctionStillOpen, DuplicateBid, InvalidParameters
from sealbid.utils.logger import get_logger, short_hex

logger = get_logger("window")


@dataclass
class AuctionWindow:
    """
    A single sealed-bid auction for a land parcel.

    Timestamps are milliseconds; base_price is informational and is never
    compared against sealed amounts.
    """
    land_identifier: str
    base_price: int
    open_timestamp: int
    close_timestamp: int

    _bids: List[EncryptedPayload] = field(default_factory=list, repr=False)
    _nonces: Set[str] = field(default_factory=set, repr=False)
    _index: Dict[bytes, int] = field(default_factory=dict, repr=False)
    _latest: int = field(default=0, repr=False, compare=False)
    _frozen: bool = field(default=False, repr=False, compare=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __post_init__(self):
        if not self.land_identifier:
            raise InvalidParameters("land_identifier must not be empty", field="land_identifier")
        if isinstance(self.base_price, bool) or not isinstance(self.base_price, int) or self.base_price < 0:
            raise InvalidParameters(f"base_price must be a non-negative int, got {self.base_price!r}",
                                    field="base_price")
        if self.open_timestamp < 0:
            raise InvalidParameters("open_timestamp must be non-negative", field="open_timestamp")
        if self.close_timestamp <= self.open_timestamp:
            raise InvalidParameters(
                f"close_timestamp {self.close_timestamp} must be after open_timestamp {self.open_timestamp}",
                field="close_timestamp",
            )

    # =========================================================================
    # Phase Queries
    # =========================================================================

    def _observe(self, now: int) -> int:
        """
        Record a caller's time and return the time the window acts on.

        Time never moves backwards for a window: a stale now is raised to
        the latest time seen. Once close has been seen the window is frozen
        for good. Caller must hold _lock.
        """
        if now > self._latest:
            self._latest = now
        if self._latest >= self.close_timestamp:
            self._frozen = True
        return self._latest

    def is_open(self, now: int) -> bool:
        """Whether bids are being accepted."""
        with self._lock:
            now = self._observe(now)
            return not self._frozen and self.open_timestamp <= now

    def is_closed(self, now: int) -> bool:
        """Whether bids may be revealed."""
        with self._lock:
            self._observe(now)
            return self._frozen

    @property
    def frozen(self) -> bool:
        with self._lock:
            return self._frozen

    @property
    def bid_count(self) -> int:
        with self._lock:
            return len(self._bids)

    # =========================================================================
    # Bidding
    # =========================================================================

    def append(self, payload: EncryptedPayload, now: int) -> int:
        """
        Add a published bid.

        Args:
            payload: The encrypted bid
            now: Current time (ms)

        Returns:
            Position of the bid in the window

        Raises:
            AuctionClosed: now is before open, or the window has closed
            InvalidParameters: the payload's commitment does not verify
            DuplicateBid: nonce or commitment already present
        """
        if not verify_commitment(payload):
            raise InvalidParameters("Commitment does not match payload fields", field="commitment_hash")

        with self._lock:
            effective = self._observe(now)
            if self._frozen or effective < self.open_timestamp:
                raise AuctionClosed(
                    f"Auction {self.land_identifier} accepts bids in "
                    f"[{self.open_timestamp}, {self.close_timestamp}), now={effective}",
                    field="timestamp",
                )
            if payload.nonce in self._nonces:
                raise DuplicateBid(f"Nonce {payload.nonce} already published", field="nonce")
            if payload.commitment_hash in self._index:
                raise DuplicateBid("Commitment already published", field="commitment_hash")

            self._bids.append(payload)
            self._nonces.add(payload.nonce)
            position = len(self._bids) - 1
            self._index[payload.commitment_hash] = position

        logger.debug(f"Auction {self.land_identifier}: bid #{position} "
                     f"commitment {short_hex(payload.commitment_hash)}")
        return position

    def has_nonce(self, nonce: str) -> bool:
        with self._lock:
            return nonce in self._nonces

    # =========================================================================
    # Reveal Access
    # =========================================================================

    def snapshot(self, now: int) -> Tuple[EncryptedPayload, ...]:
        """
        Frozen bid list, available only once the auction has closed.

        Raises:
            AuctionStillOpen: the window has not seen close_timestamp yet
        """
        with self._lock:
            effective = self._observe(now)
            if not self._frozen:
                raise AuctionStillOpen(
                    f"Auction {self.land_identifier} closes at {self.close_timestamp}, now={effective}",
                    field="close_timestamp",
                )
            return tuple(self._bids)

    def find(self, commitment_hash: bytes, now: int) -> Optional[EncryptedPayload]:
        """Look up a bid by commitment in the closed snapshot."""
        bids = self.snapshot(now)
        with self._lock:
            position = self._index.get(commitment_hash)
        return bids[position] if position is not None else None
