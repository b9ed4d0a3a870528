"""
Cryptographic primitives for sealbid.

This module provides:
- Hashing functions (SHA-256, Keccak-256)
- Constant-time comparison
- Canonical length-prefixed encoding used by commitments and signatures
- Secure random sources (re-exported from random_source)
- Key generation and the encrypt/decrypt transform (re-exported)

Design Notes:
-------------
SHA-256 is used for commitments, proofs and key fingerprints.
Keccak-256 is used only to derive EVM-style display addresses.

Every digest comparison goes through constant_time_equal so that
commitment, signature and proof checks do not leak timing information.
"""

import hashlib
import hmac
import struct
from typing import Iterable, Union

from Crypto.Hash import keccak


# =============================================================================
# Hashing
# =============================================================================


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash.

    Used for: commitments, verification hashes, key fingerprints.
    """
    return hashlib.sha256(data).digest()


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: address derivation from key fingerprints.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def constant_time_equal(a: bytes, b: bytes) -> bool:
    """Compare two byte strings without early exit."""
    return hmac.compare_digest(bytes(a), bytes(b))


# =============================================================================
# Canonical Encoding
# =============================================================================

FieldValue = Union[bytes, str, int]


def canonical_field(value: FieldValue) -> bytes:
    """
    Canonical string form of a single field.

    bytes are taken as-is, str as UTF-8, int as lowercase hex
    without prefix. bool is rejected to avoid 1/True ambiguity.
    """
    if isinstance(value, bool):
        raise TypeError("bool is not a canonical field type")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Negative integers have no canonical form: {value}")
        return format(value, "x").encode("ascii")
    raise TypeError(f"Unsupported field type: {type(value).__name__}")


def length_prefixed(domain: bytes, values: Iterable[FieldValue]) -> bytes:
    """
    Domain tag followed by each field as len (4, big-endian) | bytes.

    The length prefix removes any ambiguity about field separators.
    """
    parts = [struct.pack(">I", len(domain)), domain]
    for value in values:
        encoded = canonical_field(value)
        parts.append(struct.pack(">I", len(encoded)))
        parts.append(encoded)
    return b"".join(parts)


# =============================================================================
# Utility Functions
# =============================================================================


def int_to_bytes(value: int, length: int) -> bytes:
    """Fixed-width big-endian encoding."""
    return value.to_bytes(length, byteorder="big")


def bytes_to_int(data: bytes) -> int:
    """Big-endian decoding."""
    return int.from_bytes(data, byteorder="big")


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


# =============================================================================
# Randomness, Keys and Transform
# =============================================================================

from sealbid.crypto.random_source import (
    RandomSource,
    SystemRandomSource,
    DeterministicRandomSource,
    default_random_source,
)
from sealbid.crypto.keys import (
    KeyPair,
    PublicKey,
    generate_keypair,
    key_session,
    fingerprint,
)
from sealbid.crypto.transform import (
    mod_exp,
    encrypt,
    decrypt,
)
