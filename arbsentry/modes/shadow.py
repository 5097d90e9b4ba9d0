"""
Shadow Mode - Record surebets without placing bets.
"""

from typing import Optional

from arbsentry.models.schemas import OpportunityResult
from arbsentry.modes.base import ExecutionMode
from arbsentry.utils.logging import OpportunityLogger


class ShadowMode(ExecutionMode):
    """
    Shadow execution for data collection.

    Purpose:
    - Log the exact stake split of every detected surebet
    - Journal opportunities for later analysis
    - Track would-be profit
    """

    def __init__(self, opportunity_logger: Optional[OpportunityLogger] = None):
        super().__init__("shadow")
        self.opportunity_logger = opportunity_logger

        # Statistics
        self._opportunities_recorded = 0
        self._total_would_be_profit = 0.0
        self._total_would_be_gas = 0.0

    async def evaluate_and_execute(self, result: OpportunityResult) -> bool:
        """Record the opportunity; non-arbitrage results are ignored."""
        if not result.is_arbitrage:
            return False

        self.logger.info(
            "Preparing shadow legs",
            match_id=result.match_id,
            margin=f"{result.margin:.4f}",
        )
        for leg in result.legs:
            self.logger.info(
                "Shadow leg",
                venue=leg.venue.value,
                outcome=leg.outcome_index,
                stake=f"${leg.stake:.2f}",
                odds=leg.raw_odds,
                payout=f"${leg.payout:.2f}",
            )

        if self.opportunity_logger:
            self.opportunity_logger.log_opportunity(result.to_log())

        self._opportunities_recorded += 1
        self._total_would_be_profit += result.net_profit
        self._total_would_be_gas += result.gas_cost
        return True

    async def close(self) -> None:
        if self.opportunity_logger:
            self.opportunity_logger.close()

    def get_stats(self) -> dict:
        """Get shadow mode statistics."""
        return {
            "opportunities_recorded": self._opportunities_recorded,
            "would_be_profit": self._total_would_be_profit,
            "would_be_gas": self._total_would_be_gas,
        }
