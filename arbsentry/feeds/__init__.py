"""
Venue data feeds.

Provides event discovery and live odds from on-chain betting venues:
- Azuro: Polygon liquidity-pool bookmaker (subgraph + LP core reads)
- Overtime: Arbitrum sports AMM (The Graph + AMM quotes)
"""

from arbsentry.feeds.base import VenueFeed
from arbsentry.feeds.azuro import AzuroFeed
from arbsentry.feeds.overtime import OvertimeFeed

__all__ = [
    "VenueFeed",
    "AzuroFeed",
    "OvertimeFeed",
]
