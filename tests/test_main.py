"""Tests for bot wiring and the discovery loop."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from arbsentry.main import ArbSentryBot
from arbsentry.models.schemas import Venue
from config.settings import AzuroSettings, EngineSettings, OvertimeSettings, Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        log_dir=str(tmp_path),
        azuro=AzuroSettings(subgraph_url="https://azuro.test"),
        overtime=OvertimeSettings(api_url="https://overtime.test"),
        engine=EngineSettings(total_investment=50.0, discovery_interval_seconds=0.01),
    )


class TestArbSentryBot:
    """Tests for ArbSentryBot."""

    def test_requires_azuro_url(self, settings):
        settings.azuro = AzuroSettings(subgraph_url="")

        with pytest.raises(ValueError, match="AZURO__SUBGRAPH_URL"):
            ArbSentryBot(settings)

    def test_requires_overtime_url(self, settings):
        settings.overtime = OvertimeSettings(api_url="")

        with pytest.raises(ValueError, match="OVERTIME__API_URL"):
            ArbSentryBot(settings)

    def test_wiring(self, settings):
        bot = ArbSentryBot(settings)

        assert bot.coordinator.feed_a is bot.azuro
        assert bot.coordinator.feed_b is bot.overtime
        assert bot.coordinator.executor is bot.mode
        assert bot.calculator.total_investment == 50.0
        assert bot.calculator.commissions == {Venue.AZURO: 0.05, Venue.OVERTIME: 0.03}
        # No RPC configured: matched pairs are evaluated as suspended
        assert bot.coordinator.live_refresh_a is False
        assert bot.coordinator.live_refresh_b is False

    @pytest.mark.asyncio
    async def test_loop_triggers_cycles_until_shutdown(self, settings):
        bot = ArbSentryBot(settings)
        bot.coordinator.run_cycle = AsyncMock(return_value=None)

        asyncio.get_running_loop().call_later(0.05, bot.shutdown)
        await bot.start()

        assert bot.coordinator.run_cycle.await_count >= 1
