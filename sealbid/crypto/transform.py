"""
Encrypt/decrypt transform - modular exponentiation over key parameters.

encrypt(m) = m^generator mod modulus
decrypt(c) = c^private_key mod modulus

The key generator guarantees generator * private_key = 1 mod lambda(modulus),
so decrypt(encrypt(m)) == m for every 0 <= m < modulus.
"""

from typing import Union

from sealbid.core.errors import InvalidParameters, ValueTooLarge

IntLike = Union[int, bytes, bytearray]


def _as_int(value: IntLike, name: str) -> int:
    if isinstance(value, bool):
        raise InvalidParameters(f"{name} must be an integer or bytes, got bool", field=name)
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, byteorder="big")
    if isinstance(value, int):
        return value
    raise InvalidParameters(
        f"{name} must be an integer or bytes, got {type(value).__name__}", field=name
    )


def mod_exp(base: int, exponent: int, modulus: int) -> int:
    """
    Compute base^exponent mod modulus by square-and-multiply.

    O(log exponent) multiplications on arbitrary-precision integers.

    Raises:
        InvalidParameters: modulus <= 0, or negative base/exponent
    """
    if modulus <= 0:
        raise InvalidParameters(f"Modulus must be positive, got {modulus}", field="modulus")
    if exponent < 0:
        raise InvalidParameters(f"Exponent must be non-negative, got {exponent}", field="exponent")
    if base < 0:
        raise InvalidParameters(f"Base must be non-negative, got {base}", field="base")

    # Degenerate group: everything is 0 mod 1
    if modulus == 1:
        return 0

    result = 1
    base = base % modulus
    while exponent > 0:
        if exponent & 1:
            result = (result * base) % modulus
        exponent >>= 1
        base = (base * base) % modulus
    return result


def encrypt(value: IntLike, key) -> int:
    """
    Encrypt a value under a public key.

    Args:
        value: Encoded field as int or big-endian bytes
        key: PublicKey or KeyPair (only the public part is used)

    Returns:
        Ciphertext integer in [0, modulus)

    Raises:
        ValueTooLarge: value >= modulus (would not survive decryption)
    """
    m = _as_int(value, "value")
    modulus = key.modulus_int
    if m >= modulus:
        raise ValueTooLarge(
            f"Value of {m.bit_length()} bits does not fit below a "
            f"{modulus.bit_length()}-bit modulus",
            field="value",
        )
    return mod_exp(m, key.generator_int, modulus)


def decrypt(value: IntLike, private_key: IntLike, modulus: IntLike) -> int:
    """
    Decrypt a ciphertext.

    Args:
        value: Ciphertext as int or big-endian bytes
        private_key: Private exponent as int or fixed-width bytes
        modulus: Key modulus as int or fixed-width bytes

    Returns:
        Plaintext integer
    """
    c = _as_int(value, "value")
    d = _as_int(private_key, "private_key")
    n = _as_int(modulus, "modulus")
    if n > 1 and c >= n:
        raise InvalidParameters("Ciphertext is not reduced modulo the key modulus", field="value")
    return mod_exp(c, d, n)
