"""
Cross-Venue Event Matcher.

Pairs events published by one venue with the same real-world events at
another venue. Venues use different ids and slightly different names
("Paris SG - Bayern" vs "Paris Saint-Germain vs Bayern Munich"), so names
are compared with a bigram Dice coefficient.

Strategy:
1. Bucket target events by sport (built once per cycle)
2. For each source event, score every candidate in its sport bucket
3. Keep the first best-scoring candidate
4. Accept only above the similarity floor and within the start-time window

The time window also separates fixtures between the same two teams played
on different dates.
"""

from typing import Iterable, Optional

import structlog

from arbsentry.discovery.normalizer import normalize_name, sport_key
from arbsentry.models.schemas import MarketEvent, MatchedPair

logger = structlog.get_logger()


def _bigram_counts(value: str) -> dict[str, int]:
    counts: dict[str, int] = {}
    for i in range(len(value) - 1):
        bigram = value[i:i + 2]
        counts[bigram] = counts.get(bigram, 0) + 1
    return counts


def dice_coefficient(s1: str, s2: str) -> float:
    """
    Dice's coefficient over character bigrams.

    Returns a score between 0.0 (no shared bigrams) and 1.0 (identical).
    Bigrams are matched as a multiset: each occurrence is consumed once.
    """
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0
    if len(s1) < 2 or len(s2) < 2:
        return 0.0

    remaining = _bigram_counts(s1)
    intersection = 0
    for i in range(len(s2) - 1):
        bigram = s2[i:i + 2]
        count = remaining.get(bigram, 0)
        if count > 0:
            remaining[bigram] = count - 1
            intersection += 1

    return (2.0 * intersection) / ((len(s1) - 1) + (len(s2) - 1))


def find_best_match(main: str, targets: list[str]) -> tuple[int, float]:
    """
    Find the best match for `main` among `targets`.

    Returns (index, score). Ties keep the first candidate; when nothing
    scores above zero the result is (0, 0.0).
    """
    best_index = 0
    best_score = 0.0
    for i, target in enumerate(targets):
        score = dice_coefficient(main, target)
        if score > best_score:
            best_score = score
            best_index = i
    return best_index, best_score


class FuzzyMatcher:
    """
    Matches source-venue events to target-venue events.

    One source event yields at most one pair. A target event may be
    matched by several source events; both pairs are returned.
    """

    MIN_NAME_LENGTH = 2

    def __init__(
        self,
        min_similarity: float = 0.45,
        max_time_gap_hours: float = 36.0,
    ):
        self.min_similarity = min_similarity
        self.max_time_gap_hours = max_time_gap_hours
        self.logger = logger.bind(component="fuzzy_matcher")

        # Stats
        self._matches_total = 0
        self._rejected_time_gap = 0
        self._errors = 0

    def match(
        self,
        source_events: Iterable[MarketEvent],
        target_index: dict[str, list[MarketEvent]],
    ) -> list[MatchedPair]:
        """
        Match source events against a sport-bucketed target index.

        Args:
            source_events: Events from the venue with reliable names
            target_index: Output of build_sport_index() for the other venue

        Returns:
            Matched pairs in source iteration order
        """
        self.logger.debug(
            "Matching events by sport bucket",
            buckets=sorted(target_index.keys()),
        )

        pairs: list[MatchedPair] = []
        for event in source_events:
            try:
                pair = self._match_event(event, target_index)
            except Exception as e:
                self._errors += 1
                self.logger.error(
                    "Fuzzy match error",
                    event_id=getattr(event, "id", None),
                    error=str(e),
                )
                continue

            if pair:
                pairs.append(pair)

        self._matches_total += len(pairs)
        self.logger.debug("Matching complete", matched=len(pairs))
        return pairs

    def _match_event(
        self,
        event: MarketEvent,
        target_index: dict[str, list[MarketEvent]],
    ) -> Optional[MatchedPair]:
        sport = sport_key(event.sport)
        bucket = target_index.get(sport)
        if not bucket:
            return None

        source_name = normalize_name(event.name)
        if len(source_name) < self.MIN_NAME_LENGTH:
            return None

        candidates = []
        for candidate in bucket:
            name = normalize_name(candidate.name)
            if len(name) >= self.MIN_NAME_LENGTH:
                candidates.append((candidate, name))
        if not candidates:
            return None

        best_index, score = find_best_match(source_name, [name for _, name in candidates])
        if score <= self.min_similarity:
            return None

        winner = candidates[best_index][0]
        time_gap_hours = abs(event.start_time - winner.start_time) / 3600
        if time_gap_hours > self.max_time_gap_hours:
            self._rejected_time_gap += 1
            self.logger.debug(
                "Name match high but time gap too large",
                sport=sport,
                source=event.name,
                score=f"{score:.2f}",
                gap_hours=f"{time_gap_hours:.1f}",
            )
            return None

        self.logger.info(
            "Fuzzy matched event",
            sport=sport,
            source=event.name,
            target=winner.name,
            score=f"{score:.2f}",
        )

        return MatchedPair(
            event_a=event,
            event_b=winner.with_display_name(event.name),
            confidence=score,
        )

    def get_metrics(self) -> dict:
        """Get matcher metrics."""
        return {
            "matches_total": self._matches_total,
            "rejected_time_gap": self._rejected_time_gap,
            "errors": self._errors,
        }
