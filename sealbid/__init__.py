"""
sealbid - sealed-bid commitment core

Turns a bid (amount and bidder identity) into a payload that can be
published before an auction closes, and later opened with a proof that
any third party can check:
- Trapdoor key material and the encrypt/decrypt transform
- SHA-256 commitments over encrypted fields
- Per-bid authenticity tags
- Reveal proofs and the bid lifecycle state machine
"""

__version__ = "0.1.0"
