"""
Random sources for key generation, nonces, blinding and proof tokens.

Components never call a global random generator directly; a RandomSource
is passed in so tests can substitute a reproducible stream.
"""

import secrets
from typing import Protocol

from Crypto.Hash import SHAKE256

from sealbid.core.errors import EntropyUnavailable, InvalidParameters


class RandomSource(Protocol):
    """Anything that can hand out n random bytes."""

    def read(self, n: int) -> bytes:
        ...


class SystemRandomSource:
    """
    Operating system CSPRNG.

    Raises EntropyUnavailable instead of degrading to a weaker source.
    """

    def read(self, n: int) -> bytes:
        if n < 0:
            raise InvalidParameters(f"Cannot read {n} random bytes", field="n")
        try:
            data = secrets.token_bytes(n)
        except (OSError, NotImplementedError) as e:
            raise EntropyUnavailable(f"System random source failed: {e}") from e
        if len(data) != n:
            raise EntropyUnavailable(f"Short random read: wanted {n}, got {len(data)}")
        return data

    def __call__(self, n: int) -> bytes:
        # pycryptodome's getPrime takes a randfunc(n) callable
        return self.read(n)


class DeterministicRandomSource:
    """
    Reproducible byte stream (SHAKE256 of a seed).

    For tests and demos only.
    """

    def __init__(self, seed: bytes = b"sealbid"):
        self._xof = SHAKE256.new(data=seed)
        self.bytes_read = 0

    def read(self, n: int) -> bytes:
        if n < 0:
            raise InvalidParameters(f"Cannot read {n} random bytes", field="n")
        if n == 0:
            return b""
        self.bytes_read += n
        return self._xof.read(n)

    def __call__(self, n: int) -> bytes:
        return self.read(n)


_default = SystemRandomSource()


def default_random_source() -> SystemRandomSource:
    """Process-wide system source."""
    return _default


def read_exact(source: RandomSource, n: int) -> bytes:
    """Read n bytes, converting any short read into EntropyUnavailable."""
    data = source.read(n)
    if not isinstance(data, (bytes, bytearray)) or len(data) != n:
        raise EntropyUnavailable(f"Random source returned an unusable value for {n} bytes")
    return bytes(data)
