"""Shared fixtures."""

import time

import pytest

from arbsentry.models.schemas import MarketEvent, Venue


@pytest.fixture
def now():
    return float(int(time.time()))


@pytest.fixture
def make_event(now):
    """Factory for venue events with sensible defaults."""
    def _make(
        event_id: str,
        name: str,
        venue: Venue = Venue.AZURO,
        sport: str = "Football",
        start_time: float = None,
        odds: tuple = (2.0, 2.0),
    ) -> MarketEvent:
        return MarketEvent(
            id=event_id,
            venue=venue,
            name=name,
            sport=sport,
            start_time=now if start_time is None else start_time,
            odds=odds,
        )
    return _make
