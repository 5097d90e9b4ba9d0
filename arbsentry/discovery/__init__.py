"""
Cross-venue event discovery.

Venues describe the same fixture with their own ids and names:
    Azuro:    "Real Madrid vs FC Barcelona"
    Overtime: "Real Madrid CF vs Barcelona"

Matching strategy:
1. Normalize names and bucket target events by sport
2. Score candidates with a bigram Dice coefficient
3. Gate accepted matches by start-time proximity
"""

from arbsentry.discovery.normalizer import normalize_name, sport_key, build_sport_index
from arbsentry.discovery.matcher import FuzzyMatcher, dice_coefficient, find_best_match

__all__ = [
    "normalize_name",
    "sport_key",
    "build_sport_index",
    "FuzzyMatcher",
    "dice_coefficient",
    "find_best_match",
]
