"""
Proof Engine - evidence that a disclosed plaintext opens a published payload.

prove():
    1. Re-encrypt each disclosed value under the public key and require it
       to equal the published ciphertext (otherwise DecryptionMismatch).
    2. Draw a random proof token.
    3. verification_hash = SHA-256(domain | payload fields | disclosed
       values | public key fingerprint | token)

verify_proof() repeats the re-encryption and the hash with only the
public key, so any third party can audit a reveal. The hash binds every
payload field, which makes a proof non-transferable to any other payload.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError, field_validator

from sealbid.core.bid.commitment import verify_commitment
from sealbid.core.bid.payload import (
    EncryptedPayload,
    check_wire_header,
    int_to_hex,
    parse_json,
    wire_error,
    check_digest_hex,
    check_hex_int,
)
from sealbid.core.errors import DecryptionMismatch, SealedBidError
from sealbid.crypto import constant_time_equal, length_prefixed, sha256
from sealbid.crypto.keys import PublicKey
from sealbid.crypto.random_source import RandomSource, default_random_source, read_exact
from sealbid.crypto.transform import encrypt
from sealbid.utils.logger import get_logger, short_hex

logger = get_logger("proof")

# Domain separator
DOMAIN_REVEAL_PROOF = b"sealbid/reveal-proof/v1"

PROOF_KIND = "sealbid.reveal_proof"
PROOF_VERSION = 1
DEFAULT_TOKEN_SIZE = 32


# =============================================================================
# Data Structures
# =============================================================================


class ProofWireV1(BaseModel):
    """Schema of a version 1 reveal proof."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    version: StrictInt
    kind: StrictStr
    proof_token: StrictStr
    decrypted_amount: StrictStr
    decrypted_bidder: StrictStr
    verification_hash: StrictStr

    @field_validator("proof_token")
    @classmethod
    def _token(cls, value: str) -> str:
        if len(value) < 16 or len(value) % 2:
            raise ValueError("proof token must be at least 8 bytes of hex")
        bytes.fromhex(value)
        return value

    @field_validator("decrypted_amount", "decrypted_bidder")
    @classmethod
    def _hex_int(cls, value: str) -> str:
        return check_hex_int(value)

    @field_validator("verification_hash")
    @classmethod
    def _digest(cls, value: str) -> str:
        return check_digest_hex(value)


@dataclass(frozen=True)
class RevealProof:
    """
    Disclosure of a payload's plaintext plus its binding hash.

    The payload holds two ciphertexts, so both decrypted field values
    are disclosed.
    """
    proof_token: bytes
    decrypted_amount: int
    decrypted_bidder: int
    verification_hash: bytes

    def to_wire(self) -> Dict[str, Any]:
        return {
            "version": PROOF_VERSION,
            "kind": PROOF_KIND,
            "proof_token": self.proof_token.hex(),
            "decrypted_amount": int_to_hex(self.decrypted_amount),
            "decrypted_bidder": int_to_hex(self.decrypted_bidder),
            "verification_hash": self.verification_hash.hex(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_wire())

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "RevealProof":
        check_wire_header(data, PROOF_KIND)
        try:
            wire = ProofWireV1.model_validate(data)
        except ValidationError as e:
            raise wire_error("reveal proof", e) from None
        return cls(
            proof_token=bytes.fromhex(wire.proof_token),
            decrypted_amount=int(wire.decrypted_amount, 16),
            decrypted_bidder=int(wire.decrypted_bidder, 16),
            verification_hash=bytes.fromhex(wire.verification_hash),
        )

    @classmethod
    def from_json(cls, text: str) -> "RevealProof":
        return cls.from_wire(parse_json(text, "reveal proof"))


# =============================================================================
# Proof Computation
# =============================================================================


def compute_verification_hash(
    payload: EncryptedPayload,
    decrypted_amount: int,
    decrypted_bidder: int,
    public_key: bytes,
    proof_token: bytes,
) -> bytes:
    """Hash binding a payload, its disclosed plaintext, the key and the token."""
    return sha256(length_prefixed(DOMAIN_REVEAL_PROOF, [
        payload.encrypted_amount,
        payload.encrypted_bidder,
        str(payload.timestamp),
        payload.nonce,
        payload.commitment_hash,
        payload.signature,
        decrypted_amount,
        decrypted_bidder,
        public_key,
        proof_token,
    ]))


def prove(
    payload: EncryptedPayload,
    decrypted_amount: int,
    decrypted_bidder: int,
    key,
    random_source: Optional[RandomSource] = None,
    token_size: int = DEFAULT_TOKEN_SIZE,
) -> RevealProof:
    """
    Produce a reveal proof.

    Args:
        payload: The published payload
        decrypted_amount: Decrypted (still encoded) amount value
        decrypted_bidder: Decrypted (still encoded) bidder value
        key: KeyPair or PublicKey of the bidder
        random_source: Source for the proof token

    Raises:
        DecryptionMismatch: a disclosed value does not re-encrypt to the
            published ciphertext
    """
    for field, disclosed, published in (
        ("encrypted_amount", decrypted_amount, payload.encrypted_amount),
        ("encrypted_bidder", decrypted_bidder, payload.encrypted_bidder),
    ):
        try:
            reencrypted = encrypt(disclosed, key)
        except SealedBidError as e:
            raise DecryptionMismatch(f"Disclosed value cannot be re-encrypted: {e.message}", field=field) from None
        if reencrypted != published:
            logger.warning(f"Reveal mismatch on {field} for commitment {short_hex(payload.commitment_hash)}")
            raise DecryptionMismatch("Decryption did not invert the published ciphertext", field=field)

    token = read_exact(random_source or default_random_source(), token_size)
    verification_hash = compute_verification_hash(
        payload, decrypted_amount, decrypted_bidder, key.public_key, token,
    )
    logger.debug(f"Proof issued for commitment {short_hex(payload.commitment_hash)}")
    return RevealProof(
        proof_token=token,
        decrypted_amount=decrypted_amount,
        decrypted_bidder=decrypted_bidder,
        verification_hash=verification_hash,
    )


def verify_proof(payload: EncryptedPayload, proof: RevealProof, public_key: PublicKey) -> bool:
    """
    Check a reveal proof using only public information.

    Returns False (never raises) for any mismatch or malformed input.
    """
    try:
        if not public_key.fingerprint_matches():
            return False
        if not verify_commitment(payload):
            return False

        expected = compute_verification_hash(
            payload,
            proof.decrypted_amount,
            proof.decrypted_bidder,
            public_key.public_key,
            proof.proof_token,
        )
        if not constant_time_equal(expected, proof.verification_hash):
            return False

        return (
            encrypt(proof.decrypted_amount, public_key) == payload.encrypted_amount
            and encrypt(proof.decrypted_bidder, public_key) == payload.encrypted_bidder
        )
    except (SealedBidError, TypeError, ValueError, AttributeError):
        return False
