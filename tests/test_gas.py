"""Tests for the gas oracle."""

from unittest.mock import AsyncMock

import pytest

from arbsentry.engine.gas import GasOracle

GWEI = 10 ** 9


@pytest.fixture
def oracle():
    oracle = GasOracle(
        rpc_urls={"polygon": "https://polygon.test"},
        native_token_usd={"polygon": 1.0},
        fallback_cost_usd={"polygon": 0.10, "bsc": 0.50},
    )
    oracle._fetch_gas_price = AsyncMock(return_value=100 * GWEI)
    return oracle


class TestGasOracle:
    """Tests for GasOracle."""

    @pytest.mark.asyncio
    async def test_cost_in_usd(self, oracle):
        # 100 gwei * 300k gas = 0.03 native
        assert await oracle.get_gas_cost_usd("polygon") == pytest.approx(0.03)

    @pytest.mark.asyncio
    async def test_custom_gas_limit(self, oracle):
        assert await oracle.get_gas_cost_usd("polygon", gas_limit=100_000) == pytest.approx(0.01)

    @pytest.mark.asyncio
    async def test_cached_within_window(self, oracle):
        await oracle.get_gas_cost_usd("polygon")
        await oracle.get_gas_cost_usd("polygon")

        assert oracle._fetch_gas_price.await_count == 1

    @pytest.mark.asyncio
    async def test_refetched_after_window(self, oracle):
        oracle.cache_seconds = 0

        await oracle.get_gas_cost_usd("polygon")
        await oracle.get_gas_cost_usd("polygon")

        assert oracle._fetch_gas_price.await_count == 2

    @pytest.mark.asyncio
    async def test_rpc_failure_uses_fallback(self, oracle):
        oracle._fetch_gas_price.side_effect = ConnectionError("rpc down")

        assert await oracle.get_gas_cost_usd("polygon") == pytest.approx(0.10)
        # Failures are not cached
        assert "polygon" not in oracle._cache

    @pytest.mark.asyncio
    async def test_unconfigured_chain_uses_fallback(self, oracle):
        assert await oracle.get_gas_cost_usd("bsc") == pytest.approx(0.50)
        oracle._fetch_gas_price.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_chain_without_fallback(self, oracle):
        assert await oracle.get_gas_cost_usd("solana") == 0.0
