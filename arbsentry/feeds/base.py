"""
Base class for venue feeds.

A feed has two phases:
1. Discovery: list active events with indicative odds (subgraph/API)
2. Validation: read live odds for one event right before evaluation (RPC)

Feeds never raise into the discovery cycle. Discovery failures return an
empty list; live-odds failures return a frozen quote.
"""

import ssl
from abc import ABC, abstractmethod
from typing import Optional

import certifi
import httpx
import structlog

from arbsentry.models.schemas import LiveQuote, MarketEvent, Venue

logger = structlog.get_logger()


class VenueFeed(ABC):
    """Abstract base class for venue data feeds."""

    venue: Venue
    chain: str

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
    ):
        self.logger = logger.bind(feed=self.venue.value)
        self._timeout = timeout
        self._http_client = http_client
        self._owns_client = http_client is None

        # Health
        self._fetch_count = 0
        self._error_count = 0
        self._last_event_count = 0

    @property
    def supports_live_odds(self) -> bool:
        """Whether live odds can be read (an RPC endpoint is configured)."""
        return False

    @abstractmethod
    async def fetch_active_events(self) -> list[MarketEvent]:
        """List active events. Returns [] on any failure."""
        pass

    @abstractmethod
    async def get_latest_odds(self, event: MarketEvent, stake_hint: float) -> LiveQuote:
        """Read live odds for one event. Returns a frozen quote on failure."""
        pass

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            self._http_client = httpx.AsyncClient(
                verify=ssl_context,
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        return self._http_client

    async def _post_graphql(
        self,
        url: str,
        query: str,
        headers: Optional[dict] = None,
    ) -> Optional[dict]:
        """POST a GraphQL query and return its `data` object."""
        client = self._get_http_client()
        response = await client.post(url, json={"query": query}, headers=headers)
        response.raise_for_status()

        payload = response.json()
        if payload.get("errors"):
            self.logger.warning("GraphQL errors", errors=payload["errors"])
        return payload.get("data")

    async def close(self) -> None:
        """Close the HTTP client if this feed created it."""
        if self._http_client and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    def get_metrics(self) -> dict:
        """Get feed metrics."""
        return {
            "venue": self.venue.value,
            "fetch_count": self._fetch_count,
            "error_count": self._error_count,
            "last_event_count": self._last_event_count,
        }
