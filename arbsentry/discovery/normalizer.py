"""
Name normalization and sport bucketing.

Both helpers are pure and rebuilt every discovery cycle.
"""

import re
from typing import Iterable, Optional

from arbsentry.models.schemas import MarketEvent

UNKNOWN_SPORT = "unknown"

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def normalize_name(value) -> str:
    """
    Canonicalize an event name for comparison.

    Lower-cases, drops everything outside [a-z0-9 whitespace], trims.
    Non-string names (missing or malformed fields) normalize to "", which
    is unmatchable.
    "Paris S.G. - Bayern" -> "paris sg  bayern"
    """
    if not isinstance(value, str):
        return ""
    return _NON_ALNUM.sub("", value.lower()).strip()


def sport_key(sport: Optional[str]) -> str:
    """Bucket key for a sport label."""
    return (sport or UNKNOWN_SPORT).lower()


def build_sport_index(events: Iterable[MarketEvent]) -> dict[str, list[MarketEvent]]:
    """Group events by sport key, preserving input order within each bucket."""
    index: dict[str, list[MarketEvent]] = {}
    for event in events:
        index.setdefault(sport_key(event.sport), []).append(event)
    return index
