"""Utility modules."""

from arbsentry.utils.logging import setup_logging, OpportunityLogger, DiscoveryHistoryLog

__all__ = [
    "setup_logging",
    "OpportunityLogger",
    "DiscoveryHistoryLog",
]
