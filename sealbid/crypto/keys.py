"""
Key material for the bid transform.

A KeyPair holds four fixed-width big-endian byte strings:

    public_key   32-byte SHA-256 fingerprint of (modulus, generator)
    private_key  private exponent, same width as the modulus
    modulus      product of two random primes
    generator    public exponent applied by encrypt (8 bytes)

The private exponent is the inverse of the generator modulo
lcm(p - 1, q - 1), which makes encrypt and decrypt exact inverses.
The private key lives in a bytearray so it can be zeroed on release;
it is never part of a PublicKey, a payload, or a proof.
"""

import math
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from Crypto.Util.number import GCD, getPrime, inverse

from sealbid.core.config import BidConfig
from sealbid.core.errors import InvalidParameters
from sealbid.crypto import (
    constant_time_equal,
    hex_to_bytes,
    int_to_bytes,
    keccak256,
    length_prefixed,
    sha256,
)
from sealbid.crypto.random_source import RandomSource, default_random_source, read_exact
from sealbid.utils.logger import get_logger, short_hex

logger = get_logger("keys")

# Domain separator for key fingerprints
DOMAIN_KEY_FINGERPRINT = b"sealbid/key/v1"

PUBLIC_KEY_SIZE = 32


def fingerprint(modulus: bytes, generator: bytes) -> bytes:
    """32-byte identity of a public key."""
    return sha256(length_prefixed(DOMAIN_KEY_FINGERPRINT, [modulus, generator]))


def _check_public_fields(public_key: bytes, modulus: bytes, generator: bytes) -> None:
    if len(public_key) != PUBLIC_KEY_SIZE:
        raise InvalidParameters(
            f"public_key must be {PUBLIC_KEY_SIZE} bytes, got {len(public_key)}",
            field="public_key",
        )
    if int.from_bytes(modulus, "big") <= 1:
        raise InvalidParameters("modulus must be greater than 1", field="modulus")
    g = int.from_bytes(generator, "big")
    if g == 0:
        raise InvalidParameters("generator must be non-zero", field="generator")
    if g >= int.from_bytes(modulus, "big"):
        raise InvalidParameters("generator must be reduced modulo modulus", field="generator")


# =============================================================================
# Public Key
# =============================================================================


@dataclass(frozen=True)
class PublicKey:
    """
    The shareable half of a KeyPair.

    Auditors need this to re-encrypt disclosed values and check proofs.
    """
    public_key: bytes  # 32-byte fingerprint
    modulus: bytes
    generator: bytes

    def __post_init__(self):
        _check_public_fields(self.public_key, self.modulus, self.generator)

    @property
    def modulus_int(self) -> int:
        return int.from_bytes(self.modulus, "big")

    @property
    def generator_int(self) -> int:
        return int.from_bytes(self.generator, "big")

    def fingerprint_matches(self) -> bool:
        """Whether public_key really identifies (modulus, generator)."""
        return constant_time_equal(fingerprint(self.modulus, self.generator), self.public_key)

    def to_dict(self) -> Dict[str, str]:
        return {
            "public_key": self.public_key.hex(),
            "modulus": self.modulus.hex(),
            "generator": self.generator.hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "PublicKey":
        try:
            return cls(
                public_key=hex_to_bytes(data["public_key"]),
                modulus=hex_to_bytes(data["modulus"]),
                generator=hex_to_bytes(data["generator"]),
            )
        except KeyError as e:
            raise InvalidParameters(f"Missing public key field {e}", field=str(e.args[0])) from None
        except (TypeError, ValueError, AttributeError) as e:
            raise InvalidParameters(f"Malformed public key: {e}") from None


# =============================================================================
# Key Pair
# =============================================================================


@dataclass
class KeyPair:
    """
    Bidder key material.

    Use as a context manager (or via key_session) to zero the private
    key when the bidder is done with it.
    """
    public_key: bytes
    private_key: bytearray = field(repr=False)
    modulus: bytes
    generator: bytes
    _wiped: bool = field(default=False, repr=False, compare=False)

    def __post_init__(self):
        self.private_key = bytearray(self.private_key)
        _check_public_fields(self.public_key, self.modulus, self.generator)
        if len(self.private_key) != len(self.modulus):
            raise InvalidParameters(
                f"private_key must be {len(self.modulus)} bytes, got {len(self.private_key)}",
                field="private_key",
            )
        if not any(self.private_key):
            raise InvalidParameters("private_key must be non-zero", field="private_key")

    @property
    def modulus_int(self) -> int:
        return int.from_bytes(self.modulus, "big")

    @property
    def generator_int(self) -> int:
        return int.from_bytes(self.generator, "big")

    @property
    def private_key_int(self) -> int:
        if self._wiped:
            raise InvalidParameters("Key pair has been wiped", field="private_key")
        return int.from_bytes(self.private_key, "big")

    @property
    def private_key_bytes(self) -> bytes:
        """Immutable copy of the private key for key derivation."""
        if self._wiped:
            raise InvalidParameters("Key pair has been wiped", field="private_key")
        return bytes(self.private_key)

    @property
    def wiped(self) -> bool:
        return self._wiped

    @property
    def address(self) -> str:
        """
        EVM-style address for display.

        Address = last 20 bytes of keccak256(public_key), hex-encoded with 0x prefix.
        """
        return "0x" + keccak256(self.public_key)[-20:].hex()

    def public(self) -> PublicKey:
        """Everything an auditor needs, without the private key."""
        return PublicKey(
            public_key=self.public_key,
            modulus=self.modulus,
            generator=self.generator,
        )

    def wipe(self) -> None:
        """Zero the private key in place. Idempotent."""
        for i in range(len(self.private_key)):
            self.private_key[i] = 0
        self._wiped = True

    def __enter__(self) -> "KeyPair":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()


# =============================================================================
# Key Generation
# =============================================================================


def generate_keypair(
    config: Optional[BidConfig] = None,
    random_source: Optional[RandomSource] = None,
) -> KeyPair:
    """
    Generate a new key pair.

    Args:
        config: Key sizing (defaults to BidConfig())
        random_source: Secure random source (defaults to the system CSPRNG)

    Raises:
        EntropyUnavailable: the random source cannot be read
        InvalidParameters: the configuration cannot produce a key
    """
    cfg = (config or BidConfig()).validate()
    source = random_source or default_random_source()

    def randfunc(n: int) -> bytes:
        return read_exact(source, n)

    half = cfg.modulus_bits // 2
    e = cfg.public_exponent

    while True:
        p = getPrime(half, randfunc=randfunc)
        q = getPrime(half, randfunc=randfunc)
        if p == q:
            continue
        n = p * q
        if n.bit_length() != cfg.modulus_bits:
            continue
        lam = math.lcm(p - 1, q - 1)
        if GCD(e, lam) != 1:
            continue
        d = inverse(e, lam)
        break

    modulus = int_to_bytes(n, cfg.modulus_size)
    generator = int_to_bytes(e, cfg.generator_size)
    private_key = bytearray(int_to_bytes(d, cfg.modulus_size))
    del p, q, lam, d

    keypair = KeyPair(
        public_key=fingerprint(modulus, generator),
        private_key=private_key,
        modulus=modulus,
        generator=generator,
    )
    logger.debug(f"Generated {cfg.modulus_bits}-bit key {short_hex(keypair.public_key)}")
    return keypair


@contextmanager
def key_session(
    config: Optional[BidConfig] = None,
    random_source: Optional[RandomSource] = None,
) -> Iterator[KeyPair]:
    """Yield a fresh key pair and wipe its private key on exit."""
    keypair = generate_keypair(config=config, random_source=random_source)
    try:
        yield keypair
    finally:
        keypair.wipe()
