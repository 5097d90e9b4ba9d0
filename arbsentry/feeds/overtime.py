"""
Overtime Feed (Arbitrum).

Discovery lists open sport markets from The Graph. The subgraph carries
teams, maturity and sport tags but no usable odds, so discovery odds are a
two-way placeholder; the real odds come from the Sports AMM quote.

Live odds:
    buyFromAmmQuote(market, position, amount) -> cost (USDC, 6 decimals)
    odds = stake / cost, per position 0..2
A revert on position 2 just means there is no draw (two-way market).
A revert on position 0 or 1 means the market is paused or exhausted.
"""

from typing import Optional

import httpx
from web3 import AsyncWeb3

from arbsentry.feeds.base import VenueFeed
from arbsentry.models.schemas import LiveQuote, MarketEvent, Venue


SPORTS_AMM_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "market", "type": "address"},
            {"internalType": "uint8", "name": "position", "type": "uint8"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"},
        ],
        "name": "buyFromAmmQuote",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]

USDC_DECIMALS = 6
MAX_POSITIONS = 3  # Home, Away, Draw

# Overtime sport tags (Azuro calls soccer "Football")
TAG_TO_SPORT = {
    9002: "Football",
    9003: "Baseball",
    9004: "Basketball",
    9006: "Hockey",
    9010: "Football",
    9011: "Football",
    9012: "Football",
    9013: "Football",
    9014: "Football",
    9015: "MMA",
    9016: "Motorsport",
    9018: "Football",
    9019: "Football",
    9020: "Boxing",
    109021: "Golf",
    109121: "Golf",
}

SPORT_MARKETS_QUERY = """{
  sportMarkets(first: %d, where: { isOpen: true, isCanceled: false, isPaused: false }, orderBy: maturityDate, orderDirection: asc) {
    address
    maturityDate
    homeTeam
    awayTeam
    tags
  }
}"""

PLACEHOLDER_ODDS = (2.0, 2.0)


class OvertimeFeed(VenueFeed):
    """Overtime venue feed."""

    venue = Venue.OVERTIME
    chain = "arbitrum"

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        rpc_url: str = "",
        amm_contract: str = "",
        markets_limit: int = 150,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(http_client=http_client)
        self.api_url = api_url
        self.api_key = api_key
        self.rpc_url = rpc_url
        self.amm_contract = amm_contract
        self.markets_limit = markets_limit

        self._w3: Optional[AsyncWeb3] = None

    @property
    def supports_live_odds(self) -> bool:
        return bool(self.rpc_url and self.amm_contract)

    # =========================================================================
    # Discovery
    # =========================================================================

    async def fetch_active_events(self) -> list[MarketEvent]:
        """Fetch open sport markets from The Graph."""
        self._fetch_count += 1
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None

        try:
            data = await self._post_graphql(
                self.api_url,
                SPORT_MARKETS_QUERY % self.markets_limit,
                headers=headers,
            )
        except Exception as e:
            self._error_count += 1
            self.logger.error("Overtime API discovery error", error=str(e))
            return []

        markets = (data or {}).get("sportMarkets")
        if not isinstance(markets, list):
            self.logger.warning("Expected sportMarkets array but got missing data")
            return []

        events = []
        for market in markets:
            event = self._parse_market(market)
            if event:
                events.append(event)

        self._last_event_count = len(events)
        self.logger.debug("Fetched Overtime events", count=len(events))
        return events

    @staticmethod
    def sport_from_tags(tags: Optional[list]) -> str:
        """Map the primary tag to a sport name."""
        if not tags:
            return "Unknown"
        primary = int(tags[0])
        return TAG_TO_SPORT.get(primary, f"Unknown ({primary})")

    def _parse_market(self, market: dict) -> Optional[MarketEvent]:
        try:
            home = market.get("homeTeam") or "Team A"
            away = market.get("awayTeam") or "Team B"
            return MarketEvent(
                id=market["address"],
                venue=self.venue,
                name=f"{home} vs {away}",
                sport=self.sport_from_tags(market.get("tags")),
                start_time=int(market["maturityDate"]),
                odds=PLACEHOLDER_ODDS,
            )
        except (KeyError, TypeError, ValueError):
            # Skip malformed entries
            return None

    # =========================================================================
    # Live Odds
    # =========================================================================

    def _get_web3(self) -> AsyncWeb3:
        if self._w3 is None:
            self._w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self.rpc_url))
        return self._w3

    async def _quote(self, market: str, position: int, amount: int) -> int:
        w3 = self._get_web3()
        contract = w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(self.amm_contract),
            abi=SPORTS_AMM_ABI,
        )
        return await contract.functions.buyFromAmmQuote(
            AsyncWeb3.to_checksum_address(market), position, amount
        ).call()

    async def get_latest_odds(self, event: MarketEvent, stake_hint: float) -> LiveQuote:
        """Quote each position on the AMM for the intended stake."""
        is_frozen = False
        odds: list[float] = []

        try:
            amount = int(round(stake_hint * 10 ** USDC_DECIMALS))
            for position in range(MAX_POSITIONS):
                try:
                    quote = await self._quote(event.id, position, amount)
                    cost = quote / 10 ** USDC_DECIMALS
                    odds.append(round(stake_hint / cost, 3))
                except Exception:
                    if position < 2:
                        is_frozen = True
                    break
        except Exception as e:
            self._error_count += 1
            self.logger.error("Overtime AMM quote failed", market=event.id, error=str(e))
            return LiveQuote.frozen()

        return LiveQuote(is_frozen=is_frozen, odds=tuple(odds))
