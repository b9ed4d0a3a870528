"""
Sealed-bid components.

This package provides:
- BidCodec: BidRecord, nonces, field encoding
- Commitment over encrypted fields
- SignatureBinder (shared-secret authenticity tag)
- EncryptedPayload and its versioned wire format
- ProofEngine for reveal proofs
- BidLifecycle, the state machine the outer layers call into
"""

from sealbid.core.bid.codec import (
    BidRecord,
    EncodedBid,
    generate_nonce,
    normalize_amount,
    encode_field,
    decode_field,
    encode_bid,
    decode_bid,
)
from sealbid.core.bid.commitment import (
    compute_commitment,
    verify_commitment,
)
from sealbid.core.bid.signature import (
    derive_signing_key,
    sign_bid,
    verify_bid_signature,
)
from sealbid.core.bid.payload import (
    EncryptedPayload,
    LEDGER_FIELD_ORDER,
    PAYLOAD_VERSION,
)
from sealbid.core.bid.proof import (
    RevealProof,
    compute_verification_hash,
    prove,
    verify_proof,
)
from sealbid.core.bid.lifecycle import (
    BidLifecycle,
    BidState,
    create_bid,
    encrypt_bid,
    reveal_bid,
    verify_reveal,
)

__all__ = [
    # Codec
    "BidRecord",
    "EncodedBid",
    "generate_nonce",
    "normalize_amount",
    "encode_field",
    "decode_field",
    "encode_bid",
    "decode_bid",
    # Commitment
    "compute_commitment",
    "verify_commitment",
    # Signature
    "derive_signing_key",
    "sign_bid",
    "verify_bid_signature",
    # Payload
    "EncryptedPayload",
    "LEDGER_FIELD_ORDER",
    "PAYLOAD_VERSION",
    # Proof
    "RevealProof",
    "compute_verification_hash",
    "prove",
    "verify_proof",
    # Lifecycle
    "BidLifecycle",
    "BidState",
    "create_bid",
    "encrypt_bid",
    "reveal_bid",
    "verify_reveal",
]
