"""
Azuro Feed (Polygon).

Discovery reads conditions from the Azuro subgraph; each condition becomes
one MarketEvent named after its participants ("Team A vs Team B").

Subgraph odds lag the chain by 5-30 seconds, so right before evaluation
the LP core contract is read directly:
- getCondition(conditionId) -> (payout, virtualFunds, margin, state)
- state 0 = Created (open); anything else is treated as frozen
- odds_i = sum(virtualFunds) / virtualFunds[i]
"""

from dataclasses import replace
from typing import Optional

import httpx
from web3 import AsyncWeb3

from arbsentry.feeds.base import VenueFeed
from arbsentry.models.schemas import LiveQuote, MarketEvent, Venue


# Minimal LP core ABI for reading condition state
AZURO_CORE_ABI = [
    {
        "inputs": [{"internalType": "uint256", "name": "conditionId", "type": "uint256"}],
        "name": "getCondition",
        "outputs": [
            {"internalType": "uint256", "name": "payout", "type": "uint256"},
            {"internalType": "uint256[]", "name": "virtualFunds", "type": "uint256[]"},
            {"internalType": "uint256", "name": "margin", "type": "uint256"},
            {"internalType": "uint8", "name": "state", "type": "uint8"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]

CONDITION_STATE_CREATED = 0
VIRTUAL_FUNDS_DECIMALS = 12

CONDITIONS_QUERY = """{
  conditions(first: %d) {
    id
    status
    game {
      id
      sport { name }
      participants { name }
      startsAt
    }
    outcomes {
      id
      currentOdds
    }
  }
}"""


class AzuroFeed(VenueFeed):
    """
    Azuro venue feed.

    Usage:
        feed = AzuroFeed(subgraph_url="https://...", rpc_url="https://...")
        events = await feed.fetch_active_events()
        quote = await feed.get_latest_odds(events[0], stake_hint=100)
    """

    venue = Venue.AZURO
    chain = "polygon"

    def __init__(
        self,
        subgraph_url: str,
        rpc_url: str = "",
        lp_contract: str = "",
        slippage_factor: float = 1.005,
        conditions_limit: int = 100,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(http_client=http_client)
        self.subgraph_url = subgraph_url
        self.rpc_url = rpc_url
        self.lp_contract = lp_contract
        self.slippage_factor = slippage_factor
        self.conditions_limit = conditions_limit

        self._w3: Optional[AsyncWeb3] = None

    @property
    def supports_live_odds(self) -> bool:
        return bool(self.rpc_url and self.lp_contract)

    # =========================================================================
    # Discovery
    # =========================================================================

    async def fetch_active_events(self) -> list[MarketEvent]:
        """Fetch conditions from the subgraph and apply the slippage haircut."""
        self._fetch_count += 1
        try:
            data = await self._post_graphql(
                self.subgraph_url,
                CONDITIONS_QUERY % self.conditions_limit,
            )
        except Exception as e:
            self._error_count += 1
            self.logger.error("Azuro subgraph fetch failed", error=str(e))
            return []

        if not data or not data.get("conditions"):
            self.logger.error("Failed to fetch or parse Azuro conditions")
            return []

        events = [
            self._apply_slippage(event)
            for event in self._parse_conditions(data["conditions"])
        ]
        events = [e for e in events if e.odds]

        self._last_event_count = len(events)
        self.logger.debug("Fetched Azuro events", count=len(events))
        return events

    def _parse_conditions(self, conditions: list[dict]) -> list[MarketEvent]:
        """Map subgraph conditions to MarketEvents, skipping malformed ones."""
        events = []
        for condition in conditions:
            game = condition.get("game")
            outcomes = condition.get("outcomes") or []
            if not game or not outcomes:
                continue

            try:
                participants = game.get("participants") or []
                if participants:
                    name = " vs ".join(p["name"] for p in participants)
                else:
                    name = f"Game {game.get('id')}"

                sport = (game.get("sport") or {}).get("name") or "Unknown Sport"

                events.append(MarketEvent(
                    id=str(condition["id"]),
                    venue=self.venue,
                    name=name,
                    sport=sport,
                    market_name=condition.get("name") or "Match Winner",
                    start_time=int(game["startsAt"]),
                    odds=tuple(float(o.get("currentOdds") or 0) for o in outcomes),
                ))
            except (KeyError, TypeError, ValueError) as e:
                self.logger.debug("Skipping malformed condition", error=str(e))

        return events

    def _apply_slippage(self, event: MarketEvent) -> MarketEvent:
        return replace(event, odds=tuple(round(o / self.slippage_factor, 3) for o in event.odds))

    # =========================================================================
    # Live Odds
    # =========================================================================

    def _get_web3(self) -> AsyncWeb3:
        if self._w3 is None:
            self._w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self.rpc_url))
        return self._w3

    @staticmethod
    def parse_condition_id(event_id: str) -> int:
        """V3 subgraph ids are composite: `<core address>_<condition id>`."""
        if "_" in event_id:
            event_id = event_id.split("_")[1]
        return int(event_id)

    @staticmethod
    def odds_from_virtual_funds(virtual_funds: list[int]) -> tuple[float, ...]:
        scale = 10 ** VIRTUAL_FUNDS_DECIMALS
        funds = [f / scale for f in virtual_funds]
        total = sum(funds)
        return tuple((total / f) if f > 0 else 0.0 for f in funds)

    async def get_latest_odds(self, event: MarketEvent, stake_hint: float) -> LiveQuote:
        """Read condition state and odds straight from the LP core contract."""
        try:
            w3 = self._get_web3()
            contract = w3.eth.contract(
                address=AsyncWeb3.to_checksum_address(self.lp_contract),
                abi=AZURO_CORE_ABI,
            )
            _payout, virtual_funds, _margin, state = await contract.functions.getCondition(
                self.parse_condition_id(event.id)
            ).call()
        except Exception as e:
            self._error_count += 1
            self.logger.error("Azuro live fetch failed", event_id=event.id, error=str(e))
            return LiveQuote.frozen()

        return LiveQuote(
            is_frozen=int(state) != CONDITION_STATE_CREATED,
            odds=self.odds_from_virtual_funds(list(virtual_funds)),
        )
