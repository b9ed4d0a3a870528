"""
Encrypted Payload - the publish-ready form of a bid.

Wire format (version 1), a flat JSON object:

    {
        "version": 1,
        "kind": "sealbid.payload",
        "encrypted_amount": <hex int>,
        "encrypted_bidder": <hex int>,
        "timestamp": <int ms>,
        "nonce": <str>,
        "commitment_hash": <hex, 32 bytes>,
        "signature": <hex, 32 bytes>
    }

Unknown versions, unknown kinds and extra or missing fields are rejected
rather than guessed at.
"""

import json
import struct
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError, field_validator

from sealbid.core.errors import EncodingError, InvalidParameters
from sealbid.utils.validation import (
    validate_bytes,
    validate_hex_string,
    validate_integer,
    validate_nonce,
)

PAYLOAD_VERSION = 1
PAYLOAD_KIND = "sealbid.payload"
SUPPORTED_VERSIONS = (1,)

DIGEST_SIZE = 32

# Order the ledger collaborator must preserve for downstream commitment checks
LEDGER_FIELD_ORDER = (
    "encrypted_amount",
    "encrypted_bidder",
    "timestamp",
    "nonce",
    "commitment_hash",
)


# =============================================================================
# Wire Helpers
# =============================================================================


def int_to_hex(value: int) -> str:
    return format(value, "x")


def check_wire_header(data: Any, kind: str) -> None:
    """Reject anything that is not a mapping of the expected kind and version."""
    if not isinstance(data, dict):
        raise EncodingError(f"{kind} must be a JSON object, got {type(data).__name__}")
    version = data.get("version")
    if isinstance(version, bool) or version not in SUPPORTED_VERSIONS:
        raise EncodingError(f"Unsupported {kind} version: {version!r}", field="version")
    if data.get("kind") != kind:
        raise EncodingError(f"Expected kind {kind!r}, got {data.get('kind')!r}", field="kind")


def wire_error(kind: str, e: ValidationError) -> EncodingError:
    """First pydantic error as an EncodingError naming the field."""
    first = e.errors()[0]
    loc = ".".join(str(part) for part in first.get("loc", ())) or None
    return EncodingError(f"Malformed {kind}: {first.get('msg')}", field=loc)


def parse_json(text: str, kind: str) -> Dict[str, Any]:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise EncodingError(f"{kind} is not valid JSON: {e}") from None


def check_hex_int(value: str) -> str:
    if not value or any(c not in "0123456789abcdef" for c in value):
        raise ValueError("must be lowercase hex without prefix")
    return value


def check_digest_hex(value: str) -> str:
    valid, err = validate_hex_string(value, "digest", expected_bytes=DIGEST_SIZE)
    if not valid or value.startswith("0x"):
        raise ValueError(err or "must not carry a 0x prefix")
    return value


class PayloadWireV1(BaseModel):
    """Schema of a version 1 payload."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    version: StrictInt
    kind: StrictStr
    encrypted_amount: StrictStr
    encrypted_bidder: StrictStr
    timestamp: StrictInt
    nonce: StrictStr
    commitment_hash: StrictStr
    signature: StrictStr

    @field_validator("encrypted_amount", "encrypted_bidder")
    @classmethod
    def _hex_int(cls, value: str) -> str:
        return check_hex_int(value)

    @field_validator("commitment_hash", "signature")
    @classmethod
    def _digest(cls, value: str) -> str:
        return check_digest_hex(value)

    @field_validator("timestamp")
    @classmethod
    def _timestamp(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be non-negative")
        return value

    @field_validator("nonce")
    @classmethod
    def _nonce(cls, value: str) -> str:
        valid, err = validate_nonce(value)
        if not valid:
            raise ValueError(err)
        return value


# =============================================================================
# Encrypted Payload
# =============================================================================


@dataclass(frozen=True)
class EncryptedPayload:
    """
    Encrypted, committed and tagged bid.

    Immutable once created; the same value is published and later
    handed back for reveal.
    """
    encrypted_amount: int
    encrypted_bidder: int
    timestamp: int
    nonce: str
    commitment_hash: bytes  # 32 bytes
    signature: bytes        # 32 bytes

    def __post_init__(self):
        checks = (
            validate_integer(self.encrypted_amount, "encrypted_amount"),
            validate_integer(self.encrypted_bidder, "encrypted_bidder"),
            validate_integer(self.timestamp, "timestamp"),
            validate_nonce(self.nonce),
            validate_bytes(self.commitment_hash, "commitment_hash", expected_length=DIGEST_SIZE),
            validate_bytes(self.signature, "signature", expected_length=DIGEST_SIZE),
        )
        names = ("encrypted_amount", "encrypted_bidder", "timestamp", "nonce",
                 "commitment_hash", "signature")
        for (valid, err), name in zip(checks, names):
            if not valid:
                raise InvalidParameters(err, field=name)

    # -------------------------------------------------------------------------
    # Ledger form
    # -------------------------------------------------------------------------

    def ledger_fields(self) -> Tuple[bytes, bytes, bytes, bytes, bytes]:
        """
        Byte-array arguments for ledger submission, in LEDGER_FIELD_ORDER.

        Ciphertexts are minimal big-endian, timestamp is 8 bytes, nonce is UTF-8.
        """
        return (
            self.encrypted_amount.to_bytes((self.encrypted_amount.bit_length() + 7) // 8 or 1, "big"),
            self.encrypted_bidder.to_bytes((self.encrypted_bidder.bit_length() + 7) // 8 or 1, "big"),
            struct.pack(">Q", self.timestamp),
            self.nonce.encode("utf-8"),
            self.commitment_hash,
        )

    # -------------------------------------------------------------------------
    # Wire form
    # -------------------------------------------------------------------------

    def to_wire(self) -> Dict[str, Any]:
        return {
            "version": PAYLOAD_VERSION,
            "kind": PAYLOAD_KIND,
            "encrypted_amount": int_to_hex(self.encrypted_amount),
            "encrypted_bidder": int_to_hex(self.encrypted_bidder),
            "timestamp": self.timestamp,
            "nonce": self.nonce,
            "commitment_hash": self.commitment_hash.hex(),
            "signature": self.signature.hex(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_wire())

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "EncryptedPayload":
        """
        Parse a wire dict.

        Raises:
            EncodingError: wrong version/kind, extra or missing fields, bad values
        """
        check_wire_header(data, PAYLOAD_KIND)
        try:
            wire = PayloadWireV1.model_validate(data)
        except ValidationError as e:
            raise wire_error("payload", e) from None
        return cls(
            encrypted_amount=int(wire.encrypted_amount, 16),
            encrypted_bidder=int(wire.encrypted_bidder, 16),
            timestamp=wire.timestamp,
            nonce=wire.nonce,
            commitment_hash=bytes.fromhex(wire.commitment_hash),
            signature=bytes.fromhex(wire.signature),
        )

    @classmethod
    def from_json(cls, text: str) -> "EncryptedPayload":
        return cls.from_wire(parse_json(text, "payload"))
