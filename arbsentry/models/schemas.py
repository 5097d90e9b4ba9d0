"""
Cross-venue arbitrage data models.

Defines the core data structures for:
- Venue events (one tradeable event at one venue)
- Matched event pairs across venues
- Live odds quotes used right before evaluation
- Opportunity results and their journal records

Runtime objects are dataclasses; journal records use Pydantic.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Venue(str, Enum):
    """Supported betting venues."""
    AZURO = "azuro"        # Polygon
    OVERTIME = "overtime"  # Arbitrum


@dataclass(frozen=True)
class MarketEvent:
    """
    A single tradeable event published by one venue.

    `id` is venue-scoped and never parsed outside the venue's feed.
    `odds` holds decimal odds in venue order (e.g. Home, Draw, Away).
    """
    id: str
    venue: Venue
    name: str
    start_time: float  # Unix seconds
    odds: tuple[float, ...] = ()
    sport: str = "unknown"
    market_name: str = "Match Winner"

    # Venue-supplied name, kept when the display name was backfilled
    raw_name: Optional[str] = None

    def with_display_name(self, name: str) -> "MarketEvent":
        """Return a copy carrying `name`, remembering the venue's own name."""
        return replace(
            self,
            name=name,
            raw_name=self.raw_name if self.raw_name is not None else self.name,
        )

    @property
    def start_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.start_time, tz=timezone.utc)


@dataclass(frozen=True)
class MatchedPair:
    """A source-venue event matched to a target-venue event."""
    event_a: MarketEvent
    event_b: MarketEvent
    confidence: float  # Similarity score at acceptance time

    @property
    def dedup_key(self) -> str:
        """Stable composite key of both venue identifiers."""
        return f"{self.event_a.id}_{self.event_b.id}"


@dataclass(frozen=True)
class LiveQuote:
    """Odds read from a venue immediately before evaluation."""
    is_frozen: bool
    odds: tuple[float, ...] = ()

    @property
    def is_usable(self) -> bool:
        return not self.is_frozen and len(self.odds) > 0

    @classmethod
    def frozen(cls) -> "LiveQuote":
        return cls(is_frozen=True, odds=())


@dataclass
class OpportunityLeg:
    """One outcome of a surebet, routed to the venue with the best odds."""
    outcome_index: int
    venue: Venue
    effective_odds: float
    raw_odds: float
    stake: float = 0.0

    @property
    def payout(self) -> float:
        """Amount returned if this outcome occurs."""
        return self.stake * self.effective_odds


@dataclass
class OpportunityResult:
    """
    Result of an arbitrage evaluation.

    `reason` is only set when evaluation was short-circuited on bad input.
    A margin >= 1 result carries the margin but no reason.
    """
    match_id: str
    is_arbitrage: bool
    margin: float
    legs: list[OpportunityLeg] = field(default_factory=list)
    total_investment: float = 0.0
    gas_cost: float = 0.0
    net_profit: float = 0.0
    profit_percentage: float = 0.0
    reason: Optional[str] = None

    @property
    def total_stake(self) -> float:
        return sum(leg.stake for leg in self.legs)

    @property
    def venues(self) -> set[Venue]:
        return {leg.venue for leg in self.legs}

    def to_log(self) -> "OpportunityLog":
        """Convert to journal record."""
        return OpportunityLog(
            match_id=self.match_id,
            is_arbitrage=self.is_arbitrage,
            margin=self.margin,
            total_investment=self.total_investment,
            gas_cost=self.gas_cost,
            net_profit=self.net_profit,
            profit_percentage=self.profit_percentage,
            reason=self.reason,
            legs=[
                OpportunityLegLog(
                    outcome_index=leg.outcome_index,
                    venue=leg.venue.value,
                    effective_odds=leg.effective_odds,
                    raw_odds=leg.raw_odds,
                    stake=leg.stake,
                )
                for leg in self.legs
            ],
        )


# --- Journal Records ---

class OpportunityLegLog(BaseModel):
    """Leg section of an opportunity record."""
    outcome_index: int
    venue: str
    effective_odds: float
    raw_odds: float
    stake: float


class OpportunityLog(BaseModel):
    """Complete opportunity record written to the JSONL journal."""
    logged_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    match_id: str
    is_arbitrage: bool
    margin: float
    total_investment: float
    gas_cost: float
    net_profit: float
    profit_percentage: float
    reason: Optional[str] = None
    legs: list[OpportunityLegLog] = Field(default_factory=list)
