"""Cross-venue data models and schemas."""

from arbsentry.models.schemas import (
    Venue,
    MarketEvent,
    MatchedPair,
    LiveQuote,
    OpportunityLeg,
    OpportunityResult,
    OpportunityLog,
    OpportunityLegLog,
)

__all__ = [
    "Venue",
    "MarketEvent",
    "MatchedPair",
    "LiveQuote",
    "OpportunityLeg",
    "OpportunityResult",
    "OpportunityLog",
    "OpportunityLegLog",
]
