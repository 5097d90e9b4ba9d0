"""
Surebet Opportunity Calculator.

Decides whether a stake split across venues guarantees a profit on every
outcome, after protocol commissions and network gas.

For each outcome the venue with the best effective odds is chosen
(effective = raw * (1 - commission)); legs may span venues. With
margin = sum(1 / effective_odds), a surebet exists iff margin < 1. Stakes
proportional to 1 / effective_odds pay out total / margin whichever outcome
occurs.

Example (two outcomes, no commission):
    Azuro    [2.10, 2.00]
    Overtime [1.80, 2.30]
    best = [Azuro 2.10, Overtime 2.30], margin = 0.911
    stakes = [52.3, 47.7] on 100, payout = 109.8 either way
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import structlog

from arbsentry.models.schemas import LiveQuote, OpportunityLeg, OpportunityResult, Venue

logger = structlog.get_logger()


# Short-circuit reasons
REASON_SUSPENDED = "Market Suspended"
REASON_ODDS_MISSING = "Odds missing"
REASON_LENGTH_MISMATCH = "Odds array length mismatch"
REASON_ZERO_ODDS = "Zero odds on an outcome"
REASON_ZERO_BEST_ODDS = "Zero odds on best outcome"


@dataclass
class VenueBook:
    """Odds and costs offered by one venue for a matched event."""
    venue: Venue
    odds: Optional[Sequence[float]]
    fee: float = 0.0         # Gas cost in USD if any leg routes here
    commission: float = 0.0  # Protocol commission rate (0.05 = 5%)
    frozen: bool = False


def _rejected(match_id: str, reason: str, total_investment: float) -> OpportunityResult:
    return OpportunityResult(
        match_id=match_id,
        is_arbitrage=False,
        margin=0.0,
        total_investment=total_investment,
        reason=reason,
    )


def evaluate_books(
    match_id: str,
    books: Sequence[VenueBook],
    total_investment: float,
) -> OpportunityResult:
    """
    Evaluate an N-venue arbitrage over aligned odds vectors.

    Never raises for bad market data: suspended markets, missing odds,
    mismatched outcome counts and zero odds come back as a non-arbitrage
    result with a reason.
    """
    if any(book.frozen for book in books):
        return _rejected(match_id, REASON_SUSPENDED, total_investment)

    if not books or any(book.odds is None for book in books) or len(books[0].odds) == 0:
        return _rejected(match_id, REASON_ODDS_MISSING, total_investment)

    num_outcomes = len(books[0].odds)

    # Different lengths mean different market types (e.g. 1X2 vs moneyline)
    if any(len(book.odds) != num_outcomes for book in books):
        return _rejected(match_id, REASON_LENGTH_MISMATCH, total_investment)

    for i in range(num_outcomes):
        if all((book.odds[i] or 0) <= 0 for book in books):
            return _rejected(match_id, REASON_ZERO_ODDS, total_investment)

    # 1. Best effective odds per outcome (later venue wins ties)
    legs: list[OpportunityLeg] = []
    used_books: set[int] = set()
    margin = 0.0

    for i in range(num_outcomes):
        best_book: Optional[int] = None
        best_effective = 0.0
        for b, book in enumerate(books):
            raw = book.odds[i] or 0
            effective = raw * (1 - book.commission)
            if best_book is None or effective >= best_effective:
                best_book = b
                best_effective = effective

        if best_effective <= 0:
            return _rejected(match_id, REASON_ZERO_BEST_ODDS, total_investment)

        used_books.add(best_book)
        legs.append(OpportunityLeg(
            outcome_index=i,
            venue=books[best_book].venue,
            effective_odds=best_effective,
            raw_odds=books[best_book].odds[i],
        ))
        margin += 1 / best_effective

    # No stake split can cover every outcome
    if margin >= 1:
        return OpportunityResult(
            match_id=match_id,
            is_arbitrage=False,
            margin=margin,
            total_investment=total_investment,
        )

    # 2. Stakes equalizing the payout across outcomes
    for leg in legs:
        leg.stake = total_investment * (1 / leg.effective_odds) / margin

    # 3. Gas for every venue that carries at least one leg
    gas_cost = sum(books[b].fee for b in used_books)

    payout = total_investment / margin
    net_profit = payout - total_investment - gas_cost

    return OpportunityResult(
        match_id=match_id,
        is_arbitrage=net_profit > 0,
        margin=margin,
        legs=legs,
        total_investment=total_investment,
        gas_cost=gas_cost,
        net_profit=net_profit,
        profit_percentage=(net_profit / total_investment) * 100,
    )


def evaluate(
    match_id: str,
    odds_a: Optional[Sequence[float]],
    odds_b: Optional[Sequence[float]],
    total_investment: float,
    fee_a: float = 0.0,
    fee_b: float = 0.0,
    commission_a: float = 0.0,
    commission_b: float = 0.0,
    frozen_a: bool = False,
    frozen_b: bool = False,
    venue_a: Venue = Venue.AZURO,
    venue_b: Venue = Venue.OVERTIME,
) -> OpportunityResult:
    """Two-venue arbitrage evaluation."""
    return evaluate_books(
        match_id,
        [
            VenueBook(venue_a, odds_a, fee=fee_a, commission=commission_a, frozen=frozen_a),
            VenueBook(venue_b, odds_b, fee=fee_b, commission=commission_b, frozen=frozen_b),
        ],
        total_investment,
    )


class OpportunityCalculator:
    """
    Evaluates matched pairs with the configured stake and commissions.

    Wraps the pure evaluation with logging of every N-way check.
    """

    def __init__(
        self,
        total_investment: float,
        commissions: Optional[dict[Venue, float]] = None,
    ):
        self.total_investment = total_investment
        self.commissions = commissions or {}
        self.logger = logger.bind(component="opportunity_calculator")

        # Stats
        self._evaluations = 0
        self._opportunities = 0
        self._rejections: dict[str, int] = {}

    def evaluate_quotes(
        self,
        match_id: str,
        quote_a: LiveQuote,
        quote_b: LiveQuote,
        venue_a: Venue,
        venue_b: Venue,
        fee_a: float = 0.0,
        fee_b: float = 0.0,
    ) -> OpportunityResult:
        """Evaluate live quotes from two venues."""
        return self.evaluate_books(match_id, [
            VenueBook(
                venue_a,
                quote_a.odds,
                fee=fee_a,
                commission=self.commissions.get(venue_a, 0.0),
                frozen=quote_a.is_frozen,
            ),
            VenueBook(
                venue_b,
                quote_b.odds,
                fee=fee_b,
                commission=self.commissions.get(venue_b, 0.0),
                frozen=quote_b.is_frozen,
            ),
        ])

    def evaluate_books(self, match_id: str, books: Sequence[VenueBook]) -> OpportunityResult:
        """Evaluate any number of venue books."""
        self._evaluations += 1
        result = evaluate_books(match_id, books, self.total_investment)

        if result.reason:
            self._rejections[result.reason] = self._rejections.get(result.reason, 0) + 1
            if result.reason in (REASON_SUSPENDED, REASON_LENGTH_MISMATCH):
                self.logger.warning(
                    "Arbitrage blocked",
                    match_id=match_id,
                    reason=result.reason,
                    outcomes=[len(book.odds or ()) for book in books],
                )
            else:
                self.logger.debug("Arbitrage rejected", match_id=match_id, reason=result.reason)
            return result

        if not result.legs:
            self.logger.debug("No surebet", match_id=match_id, margin=f"{result.margin:.4f}")
            return result

        if result.is_arbitrage:
            self._opportunities += 1

        self.logger.info(
            "N-way arbitrage check",
            match_id=match_id,
            margin=f"{result.margin:.4f}",
            expected_profit=f"${result.net_profit:.2f} ({result.profit_percentage:.2f}%)",
            distribution=[
                f"{leg.venue.value.upper()} [Outcome {leg.outcome_index}]: "
                f"${leg.stake:.2f} @ {leg.raw_odds}"
                for leg in result.legs
            ],
        )
        return result

    def get_metrics(self) -> dict:
        """Get calculator metrics."""
        return {
            "evaluations": self._evaluations,
            "opportunities": self._opportunities,
            "rejections": dict(self._rejections),
        }
