"""
Signature Binder - authenticity tag over the plaintext bid.

NOTE: this is a shared-secret tag (HMAC-SHA256), not a public-key
signature. Anyone holding the derivation key can produce a valid tag,
and only they can check it. At reveal time the bidder re-derives the key
from their private key and the bid nonce; third parties rely on the
reveal proof instead.
"""

from Crypto.Hash import HMAC, SHA256
from Crypto.Protocol.KDF import HKDF

from sealbid.core.bid.codec import BidRecord
from sealbid.core.errors import InvalidParameters

SIGNATURE_SIZE = 32
SIGNING_KEY_SIZE = 32

# HKDF context
SIGNING_KEY_CONTEXT = b"sealbid/signature-key/v1"


def derive_signing_key(private_key: bytes, nonce: str) -> bytes:
    """
    Per-bid symmetric key: HKDF-SHA256(private_key, salt=nonce).

    Args:
        private_key: Bidder's private key bytes
        nonce: Bid nonce (one key per bid)
    """
    if not private_key:
        raise InvalidParameters("private_key must not be empty", field="private_key")
    if not nonce:
        raise InvalidParameters("nonce must not be empty", field="nonce")
    return HKDF(
        master=bytes(private_key),
        key_len=SIGNING_KEY_SIZE,
        salt=nonce.encode("utf-8"),
        hashmod=SHA256,
        context=SIGNING_KEY_CONTEXT,
    )


def sign_bid(record: BidRecord, derivation_key: bytes) -> bytes:
    """
    Produce a 32-byte tag over the canonical bid record.

    Args:
        record: Plaintext bid
        derivation_key: Output of derive_signing_key
    """
    if len(derivation_key) != SIGNING_KEY_SIZE:
        raise InvalidParameters(
            f"derivation key must be {SIGNING_KEY_SIZE} bytes, got {len(derivation_key)}",
            field="derivation_key",
        )
    mac = HMAC.new(derivation_key, digestmod=SHA256)
    mac.update(record.canonical_bytes())
    return mac.digest()


def verify_bid_signature(record: BidRecord, signature: bytes, derivation_key: bytes) -> bool:
    """
    Check a tag produced by sign_bid.

    Comparison is constant-time (HMAC.verify).
    """
    if len(signature) != SIGNATURE_SIZE or len(derivation_key) != SIGNING_KEY_SIZE:
        return False
    mac = HMAC.new(derivation_key, digestmod=SHA256)
    mac.update(record.canonical_bytes())
    try:
        mac.verify(signature)
    except ValueError:
        return False
    return True
