"""
Configuration parameters for the sealed-bid core.

Defines key sizing, blinding and nonce sizes, and input limits.
"""

import os
from dataclasses import dataclass, fields
from typing import Dict, Optional

from dotenv import dotenv_values

from sealbid.core.errors import InvalidParameters

ENV_PREFIX = "SEALBID_"


@dataclass(frozen=True)
class BidConfig:
    """Sizing and limits shared by every component"""

    # Key material
    modulus_bits: int = 1024  # Bit length of the key modulus (two primes of half size)
    public_exponent: int = 65537  # Exponent applied by encrypt; stored as the key generator
    generator_size: int = 8  # Fixed byte width of the generator field

    # Bid encoding
    blinding_size: int = 16  # Random bytes mixed into every encoded field
    nonce_random_bytes: int = 8  # Random suffix of a bid nonce
    max_amount_length: int = 78
    max_bidder_length: int = 128

    # Reveal
    proof_token_size: int = 32

    @property
    def modulus_size(self) -> int:
        """Byte width of the modulus and private key fields."""
        return (self.modulus_bits + 7) // 8

    def validate(self) -> "BidConfig":
        """Raise InvalidParameters if the settings cannot produce working keys."""
        if self.modulus_bits < 512 or self.modulus_bits % 2:
            raise InvalidParameters(
                f"modulus_bits must be an even number >= 512, got {self.modulus_bits}",
                field="modulus_bits",
            )
        if self.public_exponent < 3 or self.public_exponent % 2 == 0:
            raise InvalidParameters(
                f"public_exponent must be odd and >= 3, got {self.public_exponent}",
                field="public_exponent",
            )
        if self.public_exponent >= 1 << (8 * self.generator_size):
            raise InvalidParameters(
                f"public_exponent does not fit in {self.generator_size} bytes",
                field="public_exponent",
            )
        for name in ("blinding_size", "nonce_random_bytes", "proof_token_size"):
            if getattr(self, name) < 8:
                raise InvalidParameters(f"{name} must be at least 8 bytes", field=name)
        for name in ("max_amount_length", "max_bidder_length"):
            if getattr(self, name) < 1:
                raise InvalidParameters(f"{name} must be positive", field=name)
        return self


# Global config instance (can be overridden)
config = BidConfig()


def load_config(env_file: Optional[str] = None) -> BidConfig:
    """
    Load configuration from the environment.

    Values come from SEALBID_* variables, e.g. SEALBID_MODULUS_BITS=2048.
    An optional .env file is read first; the process environment wins.

    Args:
        env_file: Optional path to a .env file

    Returns:
        Validated BidConfig instance
    """
    values: Dict[str, Optional[str]] = {}
    if env_file:
        values.update(dotenv_values(env_file))
    values.update({k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)})

    overrides = {}
    for f in fields(BidConfig):
        raw = values.get(ENV_PREFIX + f.name.upper())
        if raw is None or raw == "":
            continue
        try:
            overrides[f.name] = int(raw)
        except ValueError:
            raise InvalidParameters(
                f"{ENV_PREFIX}{f.name.upper()} must be an integer, got {raw!r}",
                field=f.name,
            ) from None

    return BidConfig(**overrides).validate()
