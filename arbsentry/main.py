"""
ArbSentry - Main Entry Point.

Runs the cross-venue surebet detection loop:
1. Discover active events on Azuro (Polygon) and Overtime (Arbitrum)
2. Fuzzy-match the same real-world events across venues
3. Refresh live odds and compute the commission and gas adjusted margin
4. Hand surebets to the execution mode (shadow: journal only)

Usage:
    python -m arbsentry.main

Environment Variables:
    AZURO__SUBGRAPH_URL     - Required: Azuro subgraph endpoint
    OVERTIME__API_URL       - Required: Overtime subgraph endpoint
    OVERTIME__API_KEY       - The Graph API key
    AZURO__RPC_URL          - Polygon RPC for live condition reads
    OVERTIME__RPC_URL       - Arbitrum RPC for AMM quotes
    ENGINE__TOTAL_INVESTMENT - Stake per surebet in USD (default: 100)
"""

import asyncio
import signal
import sys
import time
from pathlib import Path
from typing import Optional

import structlog

from config.settings import Settings, get_settings
from arbsentry.discovery.matcher import FuzzyMatcher
from arbsentry.engine.coordinator import CycleCoordinator, CycleState
from arbsentry.engine.gas import GasOracle
from arbsentry.engine.opportunity import OpportunityCalculator
from arbsentry.feeds.azuro import AzuroFeed
from arbsentry.feeds.overtime import OvertimeFeed
from arbsentry.models.schemas import Venue
from arbsentry.modes.shadow import ShadowMode
from arbsentry.utils.logging import DiscoveryHistoryLog, OpportunityLogger, setup_logging

logger = structlog.get_logger()


class ArbSentryBot:
    """
    Cross-venue arbitrage bot.

    Owns the feeds, the engines and the periodic discovery loop.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.logger = logger.bind(component="arbsentry")

        # Validate required settings
        if not self.settings.azuro.subgraph_url:
            self.logger.error("AZURO__SUBGRAPH_URL environment variable required")
            raise ValueError("Missing AZURO__SUBGRAPH_URL")
        if not self.settings.overtime.api_url:
            self.logger.error("OVERTIME__API_URL environment variable required")
            raise ValueError("Missing OVERTIME__API_URL")

        # Feeds
        self.azuro = AzuroFeed(
            subgraph_url=self.settings.azuro.subgraph_url,
            rpc_url=self.settings.azuro.rpc_url,
            lp_contract=self.settings.azuro.lp_contract,
            slippage_factor=self.settings.azuro.slippage_factor,
            conditions_limit=self.settings.azuro.conditions_limit,
        )
        self.overtime = OvertimeFeed(
            api_url=self.settings.overtime.api_url,
            api_key=self.settings.overtime.api_key,
            rpc_url=self.settings.overtime.rpc_url,
            amm_contract=self.settings.overtime.sports_amm_contract,
            markets_limit=self.settings.overtime.markets_limit,
        )

        # Engines
        self.gas_oracle = GasOracle(
            rpc_urls={
                "polygon": self.settings.gas.polygon_rpc_url,
                "arbitrum": self.settings.gas.arbitrum_rpc_url,
            },
            native_token_usd=self.settings.gas.native_token_usd,
            fallback_cost_usd=self.settings.gas.fallback_cost_usd,
            gas_limit=self.settings.gas.estimated_gas_limit,
            cache_seconds=self.settings.gas.cache_seconds,
        )
        self.calculator = OpportunityCalculator(
            total_investment=self.settings.engine.total_investment,
            commissions={
                Venue.AZURO: self.settings.azuro.commission,
                Venue.OVERTIME: self.settings.overtime.commission,
            },
        )
        self.matcher = FuzzyMatcher(
            min_similarity=self.settings.matching.min_similarity,
            max_time_gap_hours=self.settings.matching.max_time_gap_hours,
        )

        # Execution
        self.opportunity_logger = OpportunityLogger(self.settings.log_dir)
        self.mode = ShadowMode(opportunity_logger=self.opportunity_logger)

        self.coordinator = CycleCoordinator(
            feed_a=self.azuro,
            feed_b=self.overtime,
            matcher=self.matcher,
            calculator=self.calculator,
            gas_oracle=self.gas_oracle,
            executor=self.mode,
            state=CycleState(),
            history=DiscoveryHistoryLog(str(Path(self.settings.log_dir) / "discovery_history.log")),
        )

        # Control
        self._running = False
        self._shutdown_event = asyncio.Event()
        self._cycle_tasks: set[asyncio.Task] = set()
        self._start_time = 0.0

    async def start(self) -> None:
        """Start the bot."""
        self.logger.info(
            "Starting ArbSentry",
            mode=self.settings.mode.value,
            investment=f"${self.settings.engine.total_investment:.2f}",
            interval=self.settings.engine.discovery_interval_seconds,
            azuro_live=self.azuro.supports_live_odds,
            overtime_live=self.overtime.supports_live_odds,
        )
        for feed in (self.azuro, self.overtime):
            if not feed.supports_live_odds:
                self.logger.warning(
                    "No live odds source, pairs on this venue read as suspended",
                    venue=feed.venue.value,
                )

        self._running = True
        self._start_time = time.time()

        try:
            await self._discovery_loop()
        except asyncio.CancelledError:
            self.logger.info("Bot cancelled")

        await self.stop()

    async def stop(self) -> None:
        """Stop the bot."""
        self.logger.info("Stopping ArbSentry...")
        self._running = False

        if self._cycle_tasks:
            await asyncio.gather(*self._cycle_tasks, return_exceptions=True)

        await self.azuro.close()
        await self.overtime.close()
        await self.mode.close()

        self.logger.info(
            "ArbSentry stopped",
            runtime_minutes=f"{(time.time() - self._start_time) / 60:.1f}",
            **self.mode.get_stats(),
        )

    def shutdown(self) -> None:
        """Trigger graceful shutdown."""
        self._shutdown_event.set()
        self._running = False

    # =========================================================================
    # Main Loop
    # =========================================================================

    async def _discovery_loop(self) -> None:
        """
        Trigger a cycle every interval.

        Cycles run as tasks so a slow one does not delay the timer; the
        coordinator drops triggers that arrive while a cycle is running.
        """
        interval = self.settings.engine.discovery_interval_seconds

        while self._running:
            task = asyncio.create_task(self.coordinator.run_cycle())
            self._cycle_tasks.add(task)
            task.add_done_callback(self._cycle_tasks.discard)

            try:
                await asyncio.wait_for(self._shutdown_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue


def main():
    """Main entry point."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir, settings.json_logs)

    # Create bot
    try:
        bot = ArbSentryBot(settings)
    except ValueError as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)

    # Setup signal handlers
    def signal_handler(sig, frame):
        print("\n🛑 Shutdown requested...")
        bot.shutdown()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # Run
    try:
        asyncio.run(bot.start())
    except KeyboardInterrupt:
        print("\n⚠️ Interrupted")


if __name__ == "__main__":
    main()
