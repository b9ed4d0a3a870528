"""
Core sealed-bid components: bid codec, commitment, signatures, proofs,
the bid lifecycle and auction windows.
"""
