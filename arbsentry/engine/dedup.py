"""
Duplicate bet guard.

Remembers which matched pairs were already handed to execution so the
same real-world event is never acted on twice. Keys are kept for the
lifetime of the process.
"""

import structlog

logger = structlog.get_logger()


class DedupGuard:
    """Set of matched-pair keys already handed to execution."""

    def __init__(self):
        self._keys: set[str] = set()
        self.logger = logger.bind(component="dedup_guard")

    def seen(self, key: str) -> bool:
        """Check whether a pair was already executed."""
        return key in self._keys

    def mark(self, key: str) -> None:
        """Register a pair as executed."""
        self._keys.add(key)
        self.logger.info("Bet registered in dedup cache", key=key, total=len(self._keys))

    def __contains__(self, key: str) -> bool:
        return self.seen(key)

    def __len__(self) -> int:
        return len(self._keys)
