"""
Discovery Cycle Coordinator.

One cycle:
1. Fetch active events from both venues concurrently
2. Compare the discovered ids with the previous cycle (observability only)
3. Bucket venue B by sport and fuzzy-match venue A against it
4. Estimate gas for both chains once
5. Per pair: skip duplicates, refresh live odds, evaluate, hand off

Cycles never overlap. A trigger that arrives while a cycle is running is
dropped, not queued.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import structlog

from arbsentry.discovery.matcher import FuzzyMatcher
from arbsentry.discovery.normalizer import build_sport_index
from arbsentry.engine.dedup import DedupGuard
from arbsentry.engine.gas import GasOracle
from arbsentry.engine.opportunity import OpportunityCalculator
from arbsentry.feeds.base import VenueFeed
from arbsentry.models.schemas import LiveQuote, MarketEvent, MatchedPair
from arbsentry.modes.base import ExecutionMode
from arbsentry.utils.logging import DiscoveryHistoryLog

logger = structlog.get_logger()


class CycleStatus(Enum):
    """Coordinator state."""
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class CycleState:
    """State carried from one cycle to the next."""
    dedup: DedupGuard = field(default_factory=DedupGuard)
    previous_ids_a: set[str] = field(default_factory=set)
    previous_ids_b: set[str] = field(default_factory=set)


@dataclass
class CycleReport:
    """Summary of one completed cycle."""
    events_a: int = 0
    events_b: int = 0
    pairs: int = 0
    evaluated: int = 0
    opportunities: int = 0
    executed: int = 0
    skipped_duplicates: int = 0
    discovery_changed: bool = False
    duration_ms: float = 0.0


class CycleCoordinator:
    """
    Drives discovery, matching, evaluation and hand-off.

    Venue A is the source side of the matcher (reliable names); venue B is
    bucketed by sport and receives A's display name on a match.
    """

    def __init__(
        self,
        feed_a: VenueFeed,
        feed_b: VenueFeed,
        matcher: FuzzyMatcher,
        calculator: OpportunityCalculator,
        gas_oracle: GasOracle,
        executor: ExecutionMode,
        state: Optional[CycleState] = None,
        history: Optional[DiscoveryHistoryLog] = None,
        live_refresh_a: Optional[bool] = None,
        live_refresh_b: Optional[bool] = None,
    ):
        self.feed_a = feed_a
        self.feed_b = feed_b
        self.matcher = matcher
        self.calculator = calculator
        self.gas_oracle = gas_oracle
        self.executor = executor
        self.state = state or CycleState()
        self.history = history

        # Live odds are only read where the feed can reach an RPC endpoint;
        # pairs on a venue without one are evaluated as suspended
        self.live_refresh_a = feed_a.supports_live_odds if live_refresh_a is None else live_refresh_a
        self.live_refresh_b = feed_b.supports_live_odds if live_refresh_b is None else live_refresh_b

        self.status = CycleStatus.IDLE
        self.logger = logger.bind(component="cycle_coordinator")

        # Stats
        self._cycles_completed = 0
        self._cycles_skipped = 0
        self._cycles_failed = 0
        self._last_report: Optional[CycleReport] = None

    @property
    def is_running(self) -> bool:
        return self.status == CycleStatus.RUNNING

    async def run_cycle(self) -> Optional[CycleReport]:
        """
        Run one discovery-evaluate pass.

        Returns:
            CycleReport, or None when skipped (already running) or failed
        """
        if self.status == CycleStatus.RUNNING:
            self._cycles_skipped += 1
            self.logger.info("Discovery still running, skipping cycle")
            return None

        self.status = CycleStatus.RUNNING
        started = time.time()
        try:
            report = await self._run()
            report.duration_ms = (time.time() - started) * 1000
            self._cycles_completed += 1
            self._last_report = report
            self.logger.info(
                "Cycle complete",
                pairs=report.pairs,
                opportunities=report.opportunities,
                executed=report.executed,
                duration_ms=f"{report.duration_ms:.0f}",
            )
            return report
        except Exception as e:
            self._cycles_failed += 1
            self.logger.error("Cycle failed", error=str(e), exc_info=True)
            return None
        finally:
            self.status = CycleStatus.IDLE

    # =========================================================================
    # Cycle Steps
    # =========================================================================

    async def _run(self) -> CycleReport:
        report = CycleReport()

        events_a, events_b = await asyncio.gather(
            self.feed_a.fetch_active_events(),
            self.feed_b.fetch_active_events(),
        )
        report.events_a = len(events_a)
        report.events_b = len(events_b)
        report.discovery_changed = self._track_discovery(events_a, events_b)

        if not events_a or not events_b:
            self.logger.debug(
                "Nothing to match",
                events_a=report.events_a,
                events_b=report.events_b,
            )
            return report

        pairs = self.matcher.match(events_a, build_sport_index(events_b))
        report.pairs = len(pairs)
        if not pairs:
            return report

        fee_a, fee_b = await asyncio.gather(
            self.gas_oracle.get_gas_cost_usd(self.feed_a.chain),
            self.gas_oracle.get_gas_cost_usd(self.feed_b.chain),
        )

        for pair in pairs:
            await self._process_pair(pair, fee_a, fee_b, report)

        return report

    def _track_discovery(self, events_a: list[MarketEvent], events_b: list[MarketEvent]) -> bool:
        """Replace the id snapshots; True when either venue's set changed."""
        ids_a = {e.id for e in events_a}
        ids_b = {e.id for e in events_b}
        changed = ids_a != self.state.previous_ids_a or ids_b != self.state.previous_ids_b

        if changed:
            self.logger.info(
                "Discovery changed",
                **{
                    f"{self.feed_a.venue.value}_events": len(ids_a),
                    f"{self.feed_b.venue.value}_events": len(ids_b),
                },
                new_a=len(ids_a - self.state.previous_ids_a),
                new_b=len(ids_b - self.state.previous_ids_b),
            )
            self.state.previous_ids_a = ids_a
            self.state.previous_ids_b = ids_b
        elif self.history and (events_a or events_b):
            lines = [f"No discovery change ({len(ids_a)} / {len(ids_b)} events)"]
            lines += [f"  {self.feed_a.venue.value}: {e.name}" for e in events_a]
            lines += [f"  {self.feed_b.venue.value}: {e.name}" for e in events_b]
            self.history.append("\n".join(lines))

        return changed

    async def _process_pair(
        self,
        pair: MatchedPair,
        fee_a: float,
        fee_b: float,
        report: CycleReport,
    ) -> None:
        key = pair.dedup_key
        if self.state.dedup.seen(key):
            report.skipped_duplicates += 1
            return

        stake_hint = self.calculator.total_investment
        quote_a, quote_b = await asyncio.gather(
            self._refine(self.feed_a, pair.event_a, stake_hint, self.live_refresh_a),
            self._refine(self.feed_b, pair.event_b, stake_hint, self.live_refresh_b),
        )

        result = self.calculator.evaluate_quotes(
            pair.event_a.id,
            quote_a,
            quote_b,
            venue_a=self.feed_a.venue,
            venue_b=self.feed_b.venue,
            fee_a=fee_a,
            fee_b=fee_b,
        )
        report.evaluated += 1

        if not result.is_arbitrage:
            return
        report.opportunities += 1

        self.logger.info(
            "Surebet found",
            match=pair.event_a.name,
            confidence=f"{pair.confidence:.2f}",
            margin=f"{result.margin:.4f}",
            net_profit=f"${result.net_profit:.2f}",
        )

        try:
            await self.executor.evaluate_and_execute(result)
        except Exception as e:
            self.logger.error("Execution hand-off failed", key=key, error=str(e))
            return

        self.state.dedup.mark(key)
        report.executed += 1

    async def _refine(
        self,
        feed: VenueFeed,
        event: MarketEvent,
        stake_hint: float,
        live: bool,
    ) -> LiveQuote:
        """Live odds for an event; any failure reads as a suspended market."""
        # Discovery odds may be stale or placeholders, never evaluate them
        if not live:
            return LiveQuote.frozen()

        try:
            quote = await feed.get_latest_odds(event, stake_hint)
        except Exception as e:
            self.logger.warning(
                "Live odds refresh failed",
                venue=feed.venue.value,
                event_id=event.id,
                error=str(e),
            )
            return LiveQuote.frozen()

        if quote is None or not quote.odds:
            return LiveQuote.frozen()
        return quote

    def get_metrics(self) -> dict:
        """Get coordinator metrics."""
        return {
            "status": self.status.value,
            "cycles_completed": self._cycles_completed,
            "cycles_skipped": self._cycles_skipped,
            "cycles_failed": self._cycles_failed,
            "dedup_size": len(self.state.dedup),
            "last_report": self._last_report,
        }
