"""
Bid Codec - maps bid fields into the transform's integer domain and back.

Encoded field layout (read as a big-endian integer):

    0x01 | blinding (blinding_size bytes) | utf8(text)

The leading marker keeps leading zero bytes of the blinding intact.
The random blinding means two bids for the same amount encrypt to
different values, so small amounts cannot be found by encrypting
candidates under the public key.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from sealbid.core.config import BidConfig
from sealbid.core.errors import EncodingError, ValueTooLarge
from sealbid.crypto import length_prefixed
from sealbid.crypto.random_source import RandomSource, default_random_source, read_exact
from sealbid.utils.clock import Clock, SystemClock
from sealbid.utils.validation import (
    validate_amount_string,
    validate_bidder,
    validate_nonce,
    validate_timestamp,
)

FIELD_MARKER = 0x01

# Domain separator for the signed form of a bid
DOMAIN_BID_RECORD = b"sealbid/bid/v1"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


# =============================================================================
# Bid Record
# =============================================================================


@dataclass(frozen=True)
class BidRecord:
    """
    A plaintext bid.

    Owned by the bidder; only its encrypted form is published.
    """
    amount: str      # canonical decimal string
    bidder: str      # bidder identity, e.g. an address
    timestamp: int   # creation time, ms since epoch
    nonce: str       # unique per bid

    def __post_init__(self):
        for valid, err, name in (
            (*validate_amount_string(self.amount), "amount"),
            (*validate_bidder(self.bidder), "bidder"),
            (*validate_timestamp(self.timestamp), "timestamp"),
            (*validate_nonce(self.nonce), "nonce"),
        ):
            if not valid:
                raise EncodingError(err, field=name)

    def canonical_bytes(self) -> bytes:
        """Serialize for signing."""
        return length_prefixed(
            DOMAIN_BID_RECORD,
            [self.amount, self.bidder, str(self.timestamp), self.nonce],
        )


@dataclass(frozen=True)
class EncodedBid:
    """Amount and bidder mapped into [0, modulus)."""
    amount: int
    bidder: int


# =============================================================================
# Nonces and Normalization
# =============================================================================


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError(f"Cannot encode negative value {value}")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_nonce(
    clock: Optional[Clock] = None,
    random_source: Optional[RandomSource] = None,
    random_bytes: int = 8,
) -> str:
    """
    Time-based prefix plus random suffix.

    Uniqueness is probabilistic; duplicates are caught when a bid is published.
    """
    now = (clock or SystemClock()).now_ms()
    suffix = read_exact(random_source or default_random_source(), random_bytes)
    return to_base36(now) + suffix.hex()


def normalize_amount(amount: Union[str, int, Decimal], max_length: int = 78) -> str:
    """
    Canonical decimal string for an amount.

    "3.50" -> "3.5", "2.0" -> "2", Decimal("1E+2") -> "100".

    Raises:
        EncodingError: negative, non-numeric, or non-canonical input
    """
    if isinstance(amount, bool):
        raise EncodingError("amount must not be a bool", field="amount")

    if isinstance(amount, int):
        if amount < 0:
            raise EncodingError(f"amount must be non-negative, got {amount}", field="amount")
        text = str(amount)
    elif isinstance(amount, Decimal):
        if not amount.is_finite() or amount < 0:
            raise EncodingError(f"amount must be finite and non-negative, got {amount}", field="amount")
        text = format(amount, "f")
    elif isinstance(amount, str):
        text = amount
    else:
        raise EncodingError(f"amount must be str, int or Decimal, got {type(amount).__name__}", field="amount")

    valid, err = validate_amount_string(text, max_length=max_length)
    if not valid:
        raise EncodingError(err, field="amount")

    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


# =============================================================================
# Field Encoding
# =============================================================================


def encode_field(text: str, modulus: int, blinding: bytes, field: str) -> int:
    """
    Map a text field to an integer below modulus.

    Raises:
        EncodingError: text is not a string
        ValueTooLarge: encoded value does not fit below modulus
    """
    if not isinstance(text, str):
        raise EncodingError(f"{field} must be str, got {type(text).__name__}", field=field)
    data = bytes([FIELD_MARKER]) + bytes(blinding) + text.encode("utf-8")
    value = int.from_bytes(data, byteorder="big")
    if value >= modulus:
        raise ValueTooLarge(
            f"{field} needs {len(data)} bytes but the key modulus holds at most "
            f"{(modulus.bit_length() - 1) // 8}",
            field=field,
        )
    return value


def decode_field(value: int, blinding_size: int, field: str) -> str:
    """
    Exact inverse of encode_field.

    Raises:
        EncodingError: value was not produced by encode_field
    """
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise EncodingError(f"{field} is not an encoded value", field=field)
    data = value.to_bytes((value.bit_length() + 7) // 8, byteorder="big")
    if data[0] != FIELD_MARKER or len(data) < 1 + blinding_size:
        raise EncodingError(f"{field} has no encoding marker", field=field)
    try:
        return data[1 + blinding_size:].decode("utf-8")
    except UnicodeDecodeError:
        raise EncodingError(f"{field} is not valid UTF-8", field=field) from None


def encode_bid(
    record: BidRecord,
    modulus: int,
    random_source: Optional[RandomSource] = None,
    config: Optional[BidConfig] = None,
) -> EncodedBid:
    """Encode amount and bidder, each with its own fresh blinding."""
    cfg = config or BidConfig()
    source = random_source or default_random_source()
    return EncodedBid(
        amount=encode_field(record.amount, modulus, read_exact(source, cfg.blinding_size), "amount"),
        bidder=encode_field(record.bidder, modulus, read_exact(source, cfg.blinding_size), "bidder"),
    )


def decode_bid(
    encoded: EncodedBid,
    timestamp: int,
    nonce: str,
    config: Optional[BidConfig] = None,
) -> BidRecord:
    """Rebuild a BidRecord from decrypted field values."""
    cfg = config or BidConfig()
    return BidRecord(
        amount=decode_field(encoded.amount, cfg.blinding_size, "amount"),
        bidder=decode_field(encoded.bidder, cfg.blinding_size, "bidder"),
        timestamp=timestamp,
        nonce=nonce,
    )
