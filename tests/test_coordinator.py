"""Tests for the discovery cycle coordinator."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog

from arbsentry.discovery.matcher import FuzzyMatcher
from arbsentry.engine.coordinator import CycleCoordinator, CycleState, CycleStatus
from arbsentry.engine.opportunity import REASON_SUSPENDED, OpportunityCalculator
from arbsentry.models.schemas import LiveQuote, Venue


def make_feed(venue: Venue, chain: str, events, quote: LiveQuote):
    feed = MagicMock()
    feed.venue = venue
    feed.chain = chain
    feed.supports_live_odds = True
    feed.fetch_active_events = AsyncMock(return_value=events)
    feed.get_latest_odds = AsyncMock(return_value=quote)
    return feed


@pytest.fixture
def azuro_event(make_event):
    return make_event("a1", "Real Madrid vs Barcelona", odds=(2.10, 1.90))


@pytest.fixture
def overtime_event(make_event):
    return make_event("0xb1", "Real Madrid CF vs Barcelona", venue=Venue.OVERTIME)


@pytest.fixture
def feed_a(azuro_event):
    return make_feed(
        Venue.AZURO, "polygon", [azuro_event], LiveQuote(is_frozen=False, odds=(2.10, 1.90))
    )


@pytest.fixture
def feed_b(overtime_event):
    return make_feed(
        Venue.OVERTIME, "arbitrum", [overtime_event], LiveQuote(is_frozen=False, odds=(1.80, 2.30))
    )


@pytest.fixture
def gas_oracle():
    oracle = MagicMock()
    oracle.get_gas_cost_usd = AsyncMock(return_value=0.0)
    return oracle


@pytest.fixture
def executor():
    mode = MagicMock()
    mode.evaluate_and_execute = AsyncMock(return_value=True)
    return mode


@pytest.fixture
def calculator():
    return OpportunityCalculator(total_investment=100)


@pytest.fixture
def coordinator(feed_a, feed_b, calculator, gas_oracle, executor):
    return CycleCoordinator(
        feed_a=feed_a,
        feed_b=feed_b,
        matcher=FuzzyMatcher(),
        calculator=calculator,
        gas_oracle=gas_oracle,
        executor=executor,
    )


class TestCycle:
    """A single discovery-evaluate pass."""

    @pytest.mark.asyncio
    async def test_surebet_is_handed_off_and_marked(self, coordinator, executor):
        report = await coordinator.run_cycle()

        assert report.events_a == 1
        assert report.events_b == 1
        assert report.pairs == 1
        assert report.opportunities == 1
        assert report.executed == 1
        executor.evaluate_and_execute.assert_awaited_once()
        result = executor.evaluate_and_execute.await_args.args[0]
        assert result.match_id == "a1"
        assert result.is_arbitrage is True
        assert coordinator.state.dedup.seen("a1_0xb1")
        assert coordinator.status == CycleStatus.IDLE

    @pytest.mark.asyncio
    async def test_refined_odds_are_used(self, coordinator, feed_a, feed_b, executor):
        feed_b.get_latest_odds.return_value = LiveQuote(is_frozen=False, odds=(1.80, 1.90))

        report = await coordinator.run_cycle()

        assert report.evaluated == 1
        assert report.opportunities == 0
        executor.evaluate_and_execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_backfilled_event_goes_to_refinement(self, coordinator, feed_b):
        await coordinator.run_cycle()

        refined = feed_b.get_latest_odds.await_args.args[0]
        assert refined.id == "0xb1"
        assert refined.name == "Real Madrid vs Barcelona"
        assert refined.raw_name == "Real Madrid CF vs Barcelona"

    @pytest.mark.asyncio
    async def test_gas_fetched_once_per_chain(self, coordinator, gas_oracle, feed_a, make_event):
        feed_a.fetch_active_events.return_value = [
            make_event("a1", "Real Madrid vs Barcelona"),
            make_event("a2", "Real Madrid vs Barcelona FC"),
        ]

        report = await coordinator.run_cycle()

        assert report.pairs == 2
        chains = sorted(call.args[0] for call in gas_oracle.get_gas_cost_usd.await_args_list)
        assert chains == ["arbitrum", "polygon"]

    @pytest.mark.asyncio
    async def test_no_gas_when_nothing_matches(self, coordinator, feed_b, gas_oracle, make_event):
        feed_b.fetch_active_events.return_value = [
            make_event("0xb9", "Lakers vs Celtics", venue=Venue.OVERTIME),
        ]

        report = await coordinator.run_cycle()

        assert report.pairs == 0
        gas_oracle.get_gas_cost_usd.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_venue_skips_matching(self, coordinator, feed_b, executor):
        feed_b.fetch_active_events.return_value = []

        report = await coordinator.run_cycle()

        assert report.events_b == 0
        assert report.pairs == 0
        executor.evaluate_and_execute.assert_not_awaited()


class TestDedup:
    """Duplicate pairs are never handed off twice."""

    @pytest.mark.asyncio
    async def test_second_cycle_skips_executed_pair(self, coordinator, executor, feed_a):
        await coordinator.run_cycle()
        report = await coordinator.run_cycle()

        assert report.skipped_duplicates == 1
        assert report.executed == 0
        assert executor.evaluate_and_execute.await_count == 1
        # Skipped before refinement
        assert feed_a.get_latest_odds.await_count == 1

    @pytest.mark.asyncio
    async def test_injected_state_is_honoured(
        self, feed_a, feed_b, calculator, gas_oracle, executor
    ):
        state = CycleState()
        state.dedup.mark("a1_0xb1")
        coordinator = CycleCoordinator(
            feed_a, feed_b, FuzzyMatcher(), calculator, gas_oracle, executor, state=state
        )

        report = await coordinator.run_cycle()

        assert report.skipped_duplicates == 1
        executor.evaluate_and_execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_hand_off_not_marked(self, coordinator, executor):
        executor.evaluate_and_execute.side_effect = RuntimeError("rpc down")

        report = await coordinator.run_cycle()

        assert report.opportunities == 1
        assert report.executed == 0
        assert len(coordinator.state.dedup) == 0
        assert coordinator.status == CycleStatus.IDLE

    @pytest.mark.asyncio
    async def test_non_arbitrage_not_marked(self, coordinator, feed_b):
        feed_b.get_latest_odds.return_value = LiveQuote(is_frozen=False, odds=(1.5, 1.5))

        await coordinator.run_cycle()

        assert len(coordinator.state.dedup) == 0


class TestRefinement:
    """Live odds refresh."""

    @pytest.mark.asyncio
    async def test_refresh_error_means_suspended(self, coordinator, feed_b, calculator, executor):
        feed_b.get_latest_odds.side_effect = ConnectionError("rpc timeout")

        report = await coordinator.run_cycle()

        assert report.evaluated == 1
        assert report.opportunities == 0
        assert calculator.get_metrics()["rejections"] == {REASON_SUSPENDED: 1}
        executor.evaluate_and_execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_live_odds_mean_suspended(self, coordinator, feed_a, calculator):
        feed_a.get_latest_odds.return_value = LiveQuote(is_frozen=False, odds=())

        await coordinator.run_cycle()

        assert calculator.get_metrics()["rejections"] == {REASON_SUSPENDED: 1}

    @pytest.mark.asyncio
    async def test_no_live_source_means_suspended(
        self, feed_a, feed_b, calculator, gas_oracle, executor
    ):
        # Placeholder 2.0/2.0 against 2.10/1.90 would look like a surebet
        feed_b.supports_live_odds = False
        coordinator = CycleCoordinator(
            feed_a, feed_b, FuzzyMatcher(), calculator, gas_oracle, executor
        )

        report = await coordinator.run_cycle()

        feed_b.get_latest_odds.assert_not_awaited()
        assert report.evaluated == 1
        assert report.opportunities == 0
        assert calculator.get_metrics()["rejections"] == {REASON_SUSPENDED: 1}
        executor.evaluate_and_execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_quotes_use_full_investment(self, coordinator, feed_a, feed_b):
        await coordinator.run_cycle()

        assert feed_a.get_latest_odds.await_args.args[1] == 100
        assert feed_b.get_latest_odds.await_args.args[1] == 100

    @pytest.mark.asyncio
    async def test_explicit_toggle_overrides_feed(
        self, feed_a, feed_b, calculator, gas_oracle, executor
    ):
        coordinator = CycleCoordinator(
            feed_a,
            feed_b,
            FuzzyMatcher(),
            calculator,
            gas_oracle,
            executor,
            live_refresh_a=False,
        )

        await coordinator.run_cycle()

        feed_a.get_latest_odds.assert_not_awaited()
        feed_b.get_latest_odds.assert_awaited_once()


class TestReentrancy:
    """Cycles never overlap."""

    @pytest.mark.asyncio
    async def test_running_cycle_is_not_reentered(self, coordinator, feed_a, feed_b):
        coordinator.status = CycleStatus.RUNNING

        assert await coordinator.run_cycle() is None
        feed_a.fetch_active_events.assert_not_awaited()
        feed_b.fetch_active_events.assert_not_awaited()
        assert coordinator.get_metrics()["cycles_skipped"] == 1

    @pytest.mark.asyncio
    async def test_overlapping_trigger_is_dropped(self, coordinator, feed_a, azuro_event):
        release = asyncio.Event()

        async def slow_fetch():
            await release.wait()
            return [azuro_event]

        feed_a.fetch_active_events.side_effect = slow_fetch

        first = asyncio.create_task(coordinator.run_cycle())
        await asyncio.sleep(0)
        assert coordinator.is_running

        second = await coordinator.run_cycle()
        release.set()
        report = await first

        assert second is None
        assert report.executed == 1
        assert feed_a.fetch_active_events.await_count == 1
        assert coordinator.status == CycleStatus.IDLE


class TestErrorRecovery:
    """Unexpected errors end the cycle but not the coordinator."""

    @pytest.mark.asyncio
    async def test_fetch_error_returns_to_idle(self, coordinator, feed_a, azuro_event):
        feed_a.fetch_active_events.side_effect = RuntimeError("boom")

        assert await coordinator.run_cycle() is None
        assert coordinator.status == CycleStatus.IDLE
        assert coordinator.get_metrics()["cycles_failed"] == 1

        feed_a.fetch_active_events.side_effect = None
        feed_a.fetch_active_events.return_value = [azuro_event]

        report = await coordinator.run_cycle()
        assert report is not None
        assert report.executed == 1


class TestDiscoveryTracking:
    """Discovery id snapshots."""

    @pytest.mark.asyncio
    async def test_changes_replace_snapshots(self, coordinator):
        report = await coordinator.run_cycle()

        assert report.discovery_changed is True
        assert coordinator.state.previous_ids_a == {"a1"}
        assert coordinator.state.previous_ids_b == {"0xb1"}

    @pytest.mark.asyncio
    async def test_unchanged_discovery_goes_to_history(
        self, feed_a, feed_b, calculator, gas_oracle, executor
    ):
        history = MagicMock()
        coordinator = CycleCoordinator(
            feed_a, feed_b, FuzzyMatcher(), calculator, gas_oracle, executor, history=history
        )

        await coordinator.run_cycle()
        history.append.assert_not_called()

        report = await coordinator.run_cycle()

        assert report.discovery_changed is False
        history.append.assert_called_once()
        assert "Real Madrid vs Barcelona" in history.append.call_args.args[0]

    @pytest.mark.asyncio
    async def test_empty_discovery_not_written_to_history(
        self, feed_a, feed_b, calculator, gas_oracle, executor
    ):
        feed_a.fetch_active_events.return_value = []
        feed_b.fetch_active_events.return_value = []
        history = MagicMock()
        coordinator = CycleCoordinator(
            feed_a, feed_b, FuzzyMatcher(), calculator, gas_oracle, executor, history=history
        )

        await coordinator.run_cycle()
        await coordinator.run_cycle()

        history.append.assert_not_called()


class TestDefaultLogging:
    """Cycles behave the same under structlog's default configuration."""

    @pytest.mark.asyncio
    async def test_surebet_reaches_executor(self, coordinator, executor):
        structlog.reset_defaults()

        report = await coordinator.run_cycle()

        assert report is not None
        assert report.executed == 1
        executor.evaluate_and_execute.assert_awaited_once()
        assert coordinator.get_metrics()["cycles_failed"] == 0
