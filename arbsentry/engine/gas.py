"""
Gas Oracle.

Estimates the USD cost of one bet transaction per chain:
    cost_usd = gas_price (wei) * gas_limit / 1e18 * native_token_usd

Prices are cached per chain for a short window. When the RPC cannot be
reached a fixed per-chain fallback is returned so a cycle never stalls on
gas estimation.
"""

import time
from typing import Optional

import structlog
from web3 import AsyncWeb3

logger = structlog.get_logger()


class GasOracle:
    """Per-chain gas cost estimator with caching and fallbacks."""

    DEFAULT_GAS_LIMIT = 300_000

    def __init__(
        self,
        rpc_urls: dict[str, str],
        native_token_usd: dict[str, float],
        fallback_cost_usd: Optional[dict[str, float]] = None,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        cache_seconds: float = 15.0,
    ):
        self.rpc_urls = rpc_urls
        self.native_token_usd = native_token_usd
        self.fallback_cost_usd = fallback_cost_usd or {}
        self.gas_limit = gas_limit
        self.cache_seconds = cache_seconds

        self.logger = logger.bind(component="gas_oracle")

        self._providers: dict[str, AsyncWeb3] = {}
        self._cache: dict[str, tuple[float, float]] = {}  # chain -> (cost_usd, fetched_at)

    def _get_web3(self, chain: str) -> AsyncWeb3:
        if chain not in self._providers:
            self._providers[chain] = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self.rpc_urls[chain]))
        return self._providers[chain]

    async def _fetch_gas_price(self, chain: str) -> int:
        """Current gas price in wei."""
        return await self._get_web3(chain).eth.gas_price

    def _fallback(self, chain: str) -> float:
        return self.fallback_cost_usd.get(chain, 0.0)

    async def get_gas_cost_usd(self, chain: str, gas_limit: Optional[int] = None) -> float:
        """
        Estimate the USD cost of a transaction on `chain`.

        Args:
            chain: Chain name ("polygon", "arbitrum", ...)
            gas_limit: Gas units for the transaction (defaults to the configured limit)

        Returns:
            Cost in USD (fallback value when the RPC is unavailable)
        """
        now = time.time()
        cached = self._cache.get(chain)
        if cached and now - cached[1] < self.cache_seconds:
            return cached[0]

        if chain not in self.rpc_urls or chain not in self.native_token_usd:
            self.logger.warning("No gas source for chain, using fallback", chain=chain)
            return self._fallback(chain)

        try:
            gas_price_wei = await self._fetch_gas_price(chain)
        except Exception as e:
            self.logger.error(
                "Failed to update gas, using fallback value",
                chain=chain,
                error=str(e),
            )
            return self._fallback(chain)

        limit = gas_limit or self.gas_limit
        cost_native = float(AsyncWeb3.from_wei(gas_price_wei * limit, "ether"))
        cost_usd = cost_native * self.native_token_usd[chain]

        self._cache[chain] = (cost_usd, now)
        self.logger.info("Updated live gas", chain=chain, cost_usd=f"${cost_usd:.3f}")
        return cost_usd
