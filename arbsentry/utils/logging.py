"""
Logging setup and journals for the arbitrage bot.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper, add_log_level

from arbsentry.models.schemas import OpportunityLog


def setup_logging(log_level: str = "INFO", log_dir: str = "logs", json_logs: bool = False) -> None:
    """
    Configure structlog for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for journal files
        json_logs: Render JSON lines instead of the console format
    """
    # Ensure log directory exists
    Path(log_dir).mkdir(parents=True, exist_ok=True)

    renderer = JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


class OpportunityLogger:
    """
    Journal of detected surebets.
    Writes one JSON line per opportunity, rotated daily.
    """

    def __init__(self, log_dir: str = "logs"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = structlog.get_logger("opportunity_logger")

        # Current day's log file
        self._current_date: Optional[str] = None
        self._current_file: Optional[Path] = None
        self._file_handle = None

    def _get_log_file(self) -> Path:
        """Get current day's log file, rotating if needed."""
        today = datetime.now().strftime("%Y-%m-%d")

        if today != self._current_date:
            # Close previous file
            if self._file_handle:
                self._file_handle.close()

            # Open new file
            self._current_date = today
            self._current_file = self.log_dir / f"opportunities_{today}.jsonl"
            self._file_handle = open(self._current_file, "a")

        return self._current_file

    def log_opportunity(self, record: OpportunityLog) -> None:
        """Append an opportunity record."""
        self._get_log_file()

        self._file_handle.write(record.model_dump_json() + "\n")
        self._file_handle.flush()

        self.logger.info(
            "opportunity_logged",
            match_id=record.match_id,
            margin=record.margin,
            net_profit=record.net_profit,
        )

    def close(self) -> None:
        """Close log file handle."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None


class DiscoveryHistoryLog:
    """
    Quiet log for discovery cycles that found nothing new.

    Each cycle appends one block; only the most recent blocks are kept.
    """

    SEPARATOR = "-------------------------\n"

    def __init__(self, path: str = "logs/discovery_history.log", max_blocks: int = 10):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.max_blocks = max_blocks
        self.logger = structlog.get_logger("discovery_history")

    def append(self, text: str) -> None:
        """Append a block and trim the file to the last `max_blocks` blocks."""
        block = f"[{datetime.now().isoformat()}] {text.rstrip()}\n{self.SEPARATOR}"
        try:
            with open(self.path, "a") as f:
                f.write(block)

            blocks = [
                b for b in self.path.read_text().split(self.SEPARATOR)
                if b.strip()
            ]
            if len(blocks) > self.max_blocks:
                kept = blocks[-self.max_blocks:]
                self.path.write_text(self.SEPARATOR.join(kept) + self.SEPARATOR)
        except OSError as e:
            self.logger.error("Discovery history write failed", error=str(e))

    def read_blocks(self) -> list[str]:
        """Return stored blocks, oldest first."""
        if not self.path.exists():
            return []
        return [b for b in self.path.read_text().split(self.SEPARATOR) if b.strip()]
