"""Evaluation engine components."""

from arbsentry.engine.opportunity import (
    OpportunityCalculator,
    VenueBook,
    evaluate,
    evaluate_books,
)
from arbsentry.engine.dedup import DedupGuard
from arbsentry.engine.gas import GasOracle
from arbsentry.engine.coordinator import (
    CycleCoordinator,
    CycleReport,
    CycleState,
    CycleStatus,
)

__all__ = [
    "OpportunityCalculator",
    "VenueBook",
    "evaluate",
    "evaluate_books",
    "DedupGuard",
    "GasOracle",
    "CycleCoordinator",
    "CycleReport",
    "CycleState",
    "CycleStatus",
]
