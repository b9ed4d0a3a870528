"""
Auction windows: where published sealed bids accumulate until close.
"""

from sealbid.core.auction.window import AuctionWindow

__all__ = [
    "AuctionWindow",
]
