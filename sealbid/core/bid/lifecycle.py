"""
Bid Lifecycle - orchestrates codec, transform, commitment, signature and
proof into the four protocol phases.

    DRAFTED -> ENCRYPTED -> PUBLISHED -> REVEALED
        \\          \\            \\
         +----------+------------+--> REJECTED

- DRAFTED: BidRecord built from amount/bidder/time with a fresh nonce
- ENCRYPTED: both fields encoded and encrypted, commitment computed, tag signed
- PUBLISHED: payload appended to an AuctionWindow
- REVEALED: after close, payload decrypted, proven and checked; the
  result is cached so repeated reveals return the same proof

Encrypt and reveal are all-or-nothing: either the full result is returned
or an error is raised and nothing is recorded except the REJECTED state.
"""

import threading
from enum import IntEnum
from typing import TYPE_CHECKING, Dict, Optional, Set, Tuple

from sealbid.core.bid.codec import (
    BidRecord,
    EncodedBid,
    decode_bid,
    encode_bid,
    generate_nonce,
    normalize_amount,
)
from sealbid.core.bid.commitment import compute_commitment, verify_commitment
from sealbid.core.bid.payload import EncryptedPayload
from sealbid.core.bid.proof import RevealProof, prove, verify_proof
from sealbid.core.bid.signature import derive_signing_key, sign_bid, verify_bid_signature
from sealbid.core.config import BidConfig
from sealbid.core.errors import (
    AuctionStillOpen,
    DecryptionMismatch,
    DuplicateBid,
    EncodingError,
    InvalidParameters,
    SealedBidError,
)
from sealbid.crypto import constant_time_equal
from sealbid.crypto.keys import KeyPair, PublicKey
from sealbid.crypto.random_source import RandomSource, default_random_source
from sealbid.crypto.transform import decrypt, encrypt
from sealbid.utils.clock import Clock, SystemClock
from sealbid.utils.logger import get_logger, short_hex
from sealbid.utils.validation import validate_bidder

if TYPE_CHECKING:
    from sealbid.core.auction.window import AuctionWindow

logger = get_logger("lifecycle")


class BidState(IntEnum):
    """Protocol phase of a bid, keyed by its nonce."""
    DRAFTED = 0
    ENCRYPTED = 1
    PUBLISHED = 2
    REVEALED = 3    # terminal
    REJECTED = 4    # terminal


class BidLifecycle:
    """
    Entry point for the UI and ledger layers.

    Randomness and time are injected; defaults are the system CSPRNG and
    the wall clock.
    """

    def __init__(
        self,
        config: Optional[BidConfig] = None,
        random_source: Optional[RandomSource] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = (config or BidConfig()).validate()
        self.random_source = random_source or default_random_source()
        self.clock = clock or SystemClock()

        # nonce -> state
        self._states: Dict[str, BidState] = {}
        # nonces handed to a window through this lifecycle
        self._published: Set[str] = set()
        # commitment -> (payload, key fingerprint, record, proof)
        self._reveals: Dict[bytes, Tuple[EncryptedPayload, bytes, BidRecord, RevealProof]] = {}
        self._lock = threading.Lock()

    # =========================================================================
    # State Tracking
    # =========================================================================

    def state_of(self, nonce: str) -> Optional[BidState]:
        with self._lock:
            return self._states.get(nonce)

    def _set_state(self, nonce: str, state: BidState) -> None:
        with self._lock:
            self._states[nonce] = state

    def _reject(self, nonce: str, error: SealedBidError) -> None:
        """Mark a bid REJECTED unless it already reached a settled phase."""
        with self._lock:
            if self._states.get(nonce) in (BidState.PUBLISHED, BidState.REVEALED):
                return
            self._states[nonce] = BidState.REJECTED
        logger.warning(f"Bid {nonce} rejected: {error}")

    # =========================================================================
    # Drafted
    # =========================================================================

    def create_bid(self, amount, bidder: str) -> BidRecord:
        """
        Draft a bid with a fresh nonce.

        Args:
            amount: Decimal amount as str, int or Decimal
            bidder: Bidder identity

        Raises:
            EncodingError: amount or bidder is not acceptable
        """
        normalized = normalize_amount(amount, self.config.max_amount_length)
        valid, err = validate_bidder(bidder, self.config.max_bidder_length)
        if not valid:
            raise EncodingError(err, field="bidder")

        record = BidRecord(
            amount=normalized,
            bidder=bidder,
            timestamp=self.clock.now_ms(),
            nonce=generate_nonce(self.clock, self.random_source, self.config.nonce_random_bytes),
        )
        self._set_state(record.nonce, BidState.DRAFTED)
        logger.debug(f"Drafted bid {record.nonce}")
        return record

    # =========================================================================
    # Encrypted
    # =========================================================================

    def encrypt_bid(self, record: BidRecord, keypair: KeyPair) -> EncryptedPayload:
        """
        Encrypt, commit and sign a drafted bid.

        Raises:
            EncodingError / ValueTooLarge: a field does not fit the key
            InvalidParameters: the bid was already published, or the key was wiped
        """
        current = self.state_of(record.nonce)
        if current in (BidState.PUBLISHED, BidState.REVEALED, BidState.REJECTED):
            raise InvalidParameters(
                f"Bid {record.nonce} is {current.name}; draft a new bid", field="nonce",
            )

        try:
            encoded = encode_bid(record, keypair.modulus_int, self.random_source, self.config)
            encrypted_amount = encrypt(encoded.amount, keypair)
            encrypted_bidder = encrypt(encoded.bidder, keypair)
            commitment = compute_commitment(
                encrypted_amount, encrypted_bidder, record.timestamp, record.nonce,
            )
            signing_key = derive_signing_key(keypair.private_key_bytes, record.nonce)
            signature = sign_bid(record, signing_key)
        except SealedBidError as e:
            self._reject(record.nonce, e)
            raise

        payload = EncryptedPayload(
            encrypted_amount=encrypted_amount,
            encrypted_bidder=encrypted_bidder,
            timestamp=record.timestamp,
            nonce=record.nonce,
            commitment_hash=commitment,
            signature=signature,
        )
        self._set_state(record.nonce, BidState.ENCRYPTED)
        logger.info(f"Bid {record.nonce} sealed: commitment {short_hex(commitment)}")
        return payload

    # =========================================================================
    # Published
    # =========================================================================

    def publish(self, payload: EncryptedPayload, window: "AuctionWindow") -> int:
        """
        Hand a payload to an auction window.

        Returns:
            Position of the bid in the window

        Raises:
            DuplicateBid: the nonce was already published
            AuctionClosed: the window is not accepting bids
            InvalidParameters: the payload's commitment does not verify, or the bid was REJECTED
        """
        # Reserve the nonce before touching the window
        with self._lock:
            if self._states.get(payload.nonce) == BidState.REJECTED:
                raise InvalidParameters(f"Bid {payload.nonce} is REJECTED", field="nonce")
            already = payload.nonce in self._published
            if not already:
                self._published.add(payload.nonce)
        if already:
            error = DuplicateBid(f"Nonce {payload.nonce} already published", field="nonce")
            logger.warning(f"Bid {payload.nonce} rejected: {error}")
            raise error

        try:
            position = window.append(payload, self.clock.now_ms())
        except SealedBidError as e:
            with self._lock:
                self._published.discard(payload.nonce)
            self._reject(payload.nonce, e)
            raise

        with self._lock:
            self._states[payload.nonce] = BidState.PUBLISHED
        logger.info(f"Bid {payload.nonce} published to {window.land_identifier} at #{position}")
        return position

    # =========================================================================
    # Revealed
    # =========================================================================

    def reveal_bid(
        self,
        payload: EncryptedPayload,
        keypair: KeyPair,
        close_timestamp: int,
    ) -> Tuple[BidRecord, RevealProof]:
        """
        Decrypt and prove a published bid after the auction closes.

        Idempotent: a second call for the same payload and key returns the
        cached record and proof. Any other key is checked from scratch.

        Raises:
            AuctionStillOpen: now < close_timestamp
            DecryptionMismatch: the payload does not open to a valid, signed bid
            InvalidParameters: the bid was already REJECTED
        """
        now = self.clock.now_ms()
        if now < close_timestamp:
            raise AuctionStillOpen(
                f"Auction closes at {close_timestamp}, now={now}", field="close_timestamp",
            )

        if self.state_of(payload.nonce) == BidState.REJECTED:
            raise InvalidParameters(f"Bid {payload.nonce} is REJECTED", field="nonce")

        with self._lock:
            cached = self._reveals.get(payload.commitment_hash)
        if (
            cached is not None
            and cached[0] == payload
            and constant_time_equal(cached[1], keypair.public_key)
        ):
            return cached[2], cached[3]

        try:
            record, proof = self._open(payload, keypair)
        except SealedBidError as e:
            self._reject(payload.nonce, e)
            raise

        with self._lock:
            entry = self._reveals.setdefault(
                payload.commitment_hash, (payload, keypair.public_key, record, proof),
            )
            self._states[payload.nonce] = BidState.REVEALED
        logger.info(f"Bid {payload.nonce} revealed: commitment {short_hex(payload.commitment_hash)}")
        return entry[2], entry[3]

    def _open(self, payload: EncryptedPayload, keypair: KeyPair) -> Tuple[BidRecord, RevealProof]:
        if not verify_commitment(payload):
            raise DecryptionMismatch("Commitment does not match payload fields", field="commitment_hash")

        private_key = keypair.private_key_int
        modulus = keypair.modulus_int
        try:
            decrypted_amount = decrypt(payload.encrypted_amount, private_key, modulus)
            decrypted_bidder = decrypt(payload.encrypted_bidder, private_key, modulus)
        except InvalidParameters as e:
            raise DecryptionMismatch(f"Ciphertext does not belong to this key: {e.message}",
                                     field=e.field) from None

        proof = prove(
            payload, decrypted_amount, decrypted_bidder, keypair,
            self.random_source, self.config.proof_token_size,
        )

        try:
            record = decode_bid(
                EncodedBid(amount=decrypted_amount, bidder=decrypted_bidder),
                payload.timestamp, payload.nonce, self.config,
            )
        except EncodingError as e:
            raise DecryptionMismatch(f"Decrypted {e.field} is not a bid field: {e.message}",
                                     field=e.field) from None

        signing_key = derive_signing_key(keypair.private_key_bytes, payload.nonce)
        if not verify_bid_signature(record, payload.signature, signing_key):
            raise DecryptionMismatch("Signature does not match revealed bid", field="signature")

        return record, proof

    def reveal_from_window(
        self,
        window: "AuctionWindow",
        commitment_hash: bytes,
        keypair: KeyPair,
    ) -> Tuple[BidRecord, RevealProof]:
        """Reveal a bid out of a closed window's snapshot."""
        payload = window.find(commitment_hash, self.clock.now_ms())
        if payload is None:
            raise InvalidParameters(
                f"No bid with commitment {short_hex(commitment_hash)} in {window.land_identifier}",
                field="commitment_hash",
            )
        return self.reveal_bid(payload, keypair, window.close_timestamp)

    # =========================================================================
    # Audit
    # =========================================================================

    @staticmethod
    def verify_reveal(payload: EncryptedPayload, proof: RevealProof, public_key: PublicKey) -> bool:
        """Check a reveal with public information only."""
        return verify_proof(payload, proof, public_key)


# =============================================================================
# Module-level Interface
# =============================================================================

_default_lifecycle: Optional[BidLifecycle] = None
_default_lock = threading.Lock()


def default_lifecycle() -> BidLifecycle:
    """Process-wide lifecycle using the system random source and clock."""
    global _default_lifecycle
    with _default_lock:
        if _default_lifecycle is None:
            _default_lifecycle = BidLifecycle()
        return _default_lifecycle


def create_bid(amount, bidder: str) -> BidRecord:
    return default_lifecycle().create_bid(amount, bidder)


def encrypt_bid(record: BidRecord, keypair: KeyPair) -> EncryptedPayload:
    return default_lifecycle().encrypt_bid(record, keypair)


def reveal_bid(
    payload: EncryptedPayload,
    keypair: KeyPair,
    close_timestamp: int,
) -> Tuple[BidRecord, RevealProof]:
    return default_lifecycle().reveal_bid(payload, keypair, close_timestamp)


def verify_reveal(payload: EncryptedPayload, proof: RevealProof, public_key: PublicKey) -> bool:
    return verify_proof(payload, proof, public_key)
