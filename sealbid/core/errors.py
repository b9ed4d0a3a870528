"""
Error taxonomy for the sealed-bid core.

Every failure carries a kind (the class name) and, where one applies, the
offending field, so callers can decide whether to retry, redraft, or abandon
a bid:

- EntropyUnavailable: random source unreadable, abort
- InvalidParameters: caller error, rejected as given
- EncodingError / ValueTooLarge: redraft the bid with a smaller or
  normalized field
- DecryptionMismatch: a reveal does not match its published commitment
- AuctionStillOpen: retry after the window closes
- AuctionClosed / DuplicateBid: the window refused the bid

Nothing is retried internally.
"""

from typing import Dict, Optional


class SealedBidError(Exception):
    """Base class for all sealed-bid failures."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Optional[str]]:
        """Structured form for callers that report errors over a boundary."""
        return {"kind": self.kind, "field": self.field, "message": self.message}

    def __str__(self) -> str:
        if self.field:
            return f"{self.kind}({self.field}): {self.message}"
        return f"{self.kind}: {self.message}"


class EntropyUnavailable(SealedBidError):
    """The secure random source could not be read."""


class InvalidParameters(SealedBidError):
    """Malformed key material, numeric arguments or window settings."""


class EncodingError(SealedBidError):
    """A bid field cannot be mapped into (or out of) the transform domain."""


class ValueTooLarge(EncodingError):
    """An encoded field does not fit below the key modulus."""


class DecryptionMismatch(SealedBidError):
    """Disclosed plaintext does not correspond to the published payload."""


class AuctionStillOpen(SealedBidError):
    """Reveal attempted before the auction close timestamp."""


class AuctionClosed(SealedBidError):
    """Bid submitted outside the auction's open interval."""


class DuplicateBid(SealedBidError):
    """A nonce or commitment was already published."""


__all__ = [
    "SealedBidError",
    "EntropyUnavailable",
    "InvalidParameters",
    "EncodingError",
    "ValueTooLarge",
    "DecryptionMismatch",
    "AuctionStillOpen",
    "AuctionClosed",
    "DuplicateBid",
]
