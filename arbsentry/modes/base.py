"""
Base class for execution modes.
"""

from abc import ABC, abstractmethod

import structlog

from arbsentry.models.schemas import OpportunityResult

logger = structlog.get_logger()


class ExecutionMode(ABC):
    """
    Abstract base class for execution modes.

    The discovery cycle hands every detected surebet to exactly one mode.
    What the mode does with it is opaque to the cycle.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logger.bind(mode=name)

    @abstractmethod
    async def evaluate_and_execute(self, result: OpportunityResult) -> bool:
        """
        Act on an opportunity.

        Args:
            result: Evaluated opportunity with stake allocation

        Returns:
            True if the opportunity was acted on
        """
        pass

    async def close(self) -> None:
        """Release resources held by the mode."""
        pass
