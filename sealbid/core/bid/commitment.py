"""
Commitment - tamper-evident public binding of an encrypted bid.

C = SHA-256(domain | enc_amount | enc_bidder | timestamp | nonce)

Each field is length-prefixed in a fixed order, so no two distinct field
tuples share an encoding. There is no inverse.
"""

from sealbid.core.errors import InvalidParameters
from sealbid.crypto import constant_time_equal, length_prefixed, sha256
from sealbid.utils.validation import validate_integer, validate_nonce, validate_timestamp

# Domain separator
DOMAIN_COMMITMENT = b"sealbid/commitment/v1"

COMMITMENT_SIZE = 32


def compute_commitment(
    encrypted_amount: int,
    encrypted_bidder: int,
    timestamp: int,
    nonce: str,
) -> bytes:
    """
    Commitment hash over the public fields of a payload.

    Args:
        encrypted_amount: Ciphertext of the amount field
        encrypted_bidder: Ciphertext of the bidder field
        timestamp: Bid creation time (ms)
        nonce: Bid nonce

    Returns:
        32-byte digest

    Raises:
        InvalidParameters: a field is not a non-negative int or valid nonce
    """
    for valid, err, name in (
        (*validate_integer(encrypted_amount, "encrypted_amount"), "encrypted_amount"),
        (*validate_integer(encrypted_bidder, "encrypted_bidder"), "encrypted_bidder"),
        (*validate_timestamp(timestamp), "timestamp"),
        (*validate_nonce(nonce), "nonce"),
    ):
        if not valid:
            raise InvalidParameters(err, field=name)

    return sha256(length_prefixed(
        DOMAIN_COMMITMENT,
        [encrypted_amount, encrypted_bidder, str(timestamp), nonce],
    ))


def verify_commitment(payload) -> bool:
    """Recompute a payload's commitment and compare in constant time."""
    try:
        expected = compute_commitment(
            payload.encrypted_amount,
            payload.encrypted_bidder,
            payload.timestamp,
            payload.nonce,
        )
    except InvalidParameters:
        return False
    return constant_time_equal(expected, payload.commitment_hash)
