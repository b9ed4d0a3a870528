"""
Input Validation - Checks applied to caller-supplied bid data.

Provides validation for external inputs to prevent:
- Ambiguous amount encodings (signs, exponents, leading zeros)
- Oversized or non-printable identities
- Invalid hex and timestamp values
"""

import re
from typing import Any, Optional, Tuple

# =============================================================================
# Constants
# =============================================================================

MAX_AMOUNT_LENGTH = 78
MAX_BIDDER_LENGTH = 128
MAX_NONCE_LENGTH = 64

MIN_TIMESTAMP = 0
MAX_TIMESTAMP = 2**63 - 1

# Canonical decimal: no sign, no exponent, no leading zeros
AMOUNT_PATTERN = r"^(0|[1-9][0-9]*)(\.[0-9]+)?$"
NONCE_PATTERN = r"^[0-9a-z]+$"


# =============================================================================
# Validation Functions
# =============================================================================


def validate_bytes(
    data: Any,
    name: str,
    expected_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate bytes input.

    Args:
        data: Data to validate
        name: Field name for error messages
        expected_length: Exact expected length
        max_length: Maximum allowed length

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, (bytes, bytearray)):
        return False, f"{name} must be bytes, got {type(data).__name__}"

    if expected_length is not None and len(data) != expected_length:
        return False, f"{name} must be {expected_length} bytes, got {len(data)}"

    if max_length is not None and len(data) > max_length:
        return False, f"{name} exceeds max length {max_length}, got {len(data)}"

    return True, ""


def validate_integer(
    value: Any,
    name: str,
    min_val: int = 0,
    max_val: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Returns:
        (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if max_val is not None and value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_timestamp(value: Any, name: str = "timestamp") -> Tuple[bool, str]:
    """Validate a millisecond timestamp."""
    return validate_integer(value, name, MIN_TIMESTAMP, MAX_TIMESTAMP)


def validate_string(
    value: Any,
    name: str,
    max_length: int = MAX_BIDDER_LENGTH,
    pattern: Optional[str] = None,
) -> Tuple[bool, str]:
    """
    Validate string input.

    Args:
        value: Value to validate
        name: Field name for errors
        max_length: Maximum string length
        pattern: Optional regex pattern

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    if len(value) > max_length:
        return False, f"{name} exceeds max length {max_length}"

    if pattern and not re.fullmatch(pattern, value):
        return False, f"{name} does not match required pattern"

    return True, ""


def validate_amount_string(value: Any, max_length: int = MAX_AMOUNT_LENGTH) -> Tuple[bool, str]:
    """Validate a canonical decimal amount such as "3" or "0.25"."""
    if isinstance(value, str) and not value:
        return False, "amount must not be empty"
    return validate_string(value, "amount", max_length=max_length, pattern=AMOUNT_PATTERN)


def validate_bidder(value: Any, max_length: int = MAX_BIDDER_LENGTH) -> Tuple[bool, str]:
    """Validate a bidder identity: non-empty, printable, no surrounding whitespace."""
    valid, err = validate_string(value, "bidder", max_length=max_length)
    if not valid:
        return False, err
    if not value:
        return False, "bidder must not be empty"
    if value != value.strip():
        return False, "bidder must not have surrounding whitespace"
    if not value.isprintable():
        return False, "bidder contains non-printable characters"
    return True, ""


def validate_nonce(value: Any) -> Tuple[bool, str]:
    """Validate a bid nonce (lowercase base36/hex characters)."""
    if isinstance(value, str) and not value:
        return False, "nonce must not be empty"
    return validate_string(value, "nonce", max_length=MAX_NONCE_LENGTH, pattern=NONCE_PATTERN)


def validate_hex_string(value: Any, name: str, expected_bytes: Optional[int] = None) -> Tuple[bool, str]:
    """
    Validate a hex string (with or without 0x prefix).

    Args:
        value: Value to validate
        name: Field name
        expected_bytes: Expected byte length when decoded

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    hex_str = value[2:] if value.startswith("0x") else value

    if len(hex_str) % 2 != 0:
        return False, f"{name} has odd length, invalid hex"

    try:
        bytes.fromhex(hex_str)
    except ValueError:
        return False, f"{name} contains invalid hex characters"

    if expected_bytes is not None:
        actual_bytes = len(hex_str) // 2
        if actual_bytes != expected_bytes:
            return False, f"{name} must be {expected_bytes} bytes, got {actual_bytes}"

    return True, ""


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_bytes",
    "validate_integer",
    "validate_timestamp",
    "validate_string",
    "validate_amount_string",
    "validate_bidder",
    "validate_nonce",
    "validate_hex_string",
    "MAX_AMOUNT_LENGTH",
    "MAX_BIDDER_LENGTH",
    "MAX_NONCE_LENGTH",
]
