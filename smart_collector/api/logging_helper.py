"""Logging helpers for the SMART collector.

This module provides:

1. A TRACE level below DEBUG for per-command and per-probe chatter
2. A filter that rate limits duplicate messages from parallel workers
3. A manager that quiets noisy libraries and restores them on reset
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Tuple

_LOGGER = logging.getLogger(__name__)

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Loggers written to by every pool worker
FILTERED_LOGGERS = (
    "smart_collector.api.runner",
    "smart_collector.api.executor",
    "smart_collector.api.connection_manager",
)
NOISY_LOGGERS = {
    "asyncssh": logging.WARNING,
    "asyncio": logging.WARNING,
}


class LoggingFilter(logging.Filter):
    """Logging filter that suppresses repeated messages.

    Every worker of a pool logs the same line for the same condition (for
    example one RAID dialect failing on every candidate), so identical
    messages beyond ``max_duplicates`` within ``rate_limit_period`` seconds
    are dropped and summarized when the period expires.
    """

    def __init__(
        self,
        name: str = "",
        max_duplicates: int = 5,
        rate_limit_period: int = 300
    ) -> None:
        """Initialize the logging filter."""
        super().__init__(name)
        self.max_duplicates = max_duplicates
        self.rate_limit_period = rate_limit_period

        self._messages: Dict[str, Tuple[int, datetime]] = {}
        self._suppressed_count: Dict[str, int] = defaultdict(int)
        self._last_cleanup = datetime.now()

    def filter(self, record: logging.LogRecord) -> bool:
        """Return False if the record should be suppressed."""
        self._check_cleanup()

        # Never filter problems
        if record.levelno >= logging.WARNING:
            return True

        message_key = f"{record.name}:{record.levelno}:{self._get_message(record)}"
        now = datetime.now()

        if message_key not in self._messages:
            self._messages[message_key] = (1, now)
            return True

        count, first_time = self._messages[message_key]
        if (now - first_time).total_seconds() < self.rate_limit_period:
            count += 1
            self._messages[message_key] = (count, first_time)
            if count > self.max_duplicates:
                self._suppressed_count[message_key] += 1
                return False
            return True

        self._messages[message_key] = (1, now)
        suppressed = self._suppressed_count.pop(message_key, 0)
        if suppressed:
            record.msg = (
                f"{record.msg} (suppressed {suppressed} similar messages "
                f"in last {self.rate_limit_period}s)"
            )
        return True

    def _get_message(self, record: logging.LogRecord) -> str:
        try:
            return record.getMessage()
        except Exception:  # pylint: disable=broad-except
            return str(record.msg)

    def _check_cleanup(self) -> None:
        """Drop message history older than the rate limit period."""
        now = datetime.now()
        if (now - self._last_cleanup).total_seconds() < 60:
            return

        cutoff = now - timedelta(seconds=self.rate_limit_period)
        self._messages = {
            k: (c, t) for k, (c, t) in self._messages.items()
            if t >= cutoff
        }
        self._suppressed_count = defaultdict(
            int,
            {k: v for k, v in self._suppressed_count.items() if k in self._messages}
        )
        self._last_cleanup = now


class LogManager:
    """Installs the package filter and adjusts library log levels."""

    def __init__(self) -> None:
        """Initialize the log manager."""
        self._filter: LoggingFilter | None = None
        self._original_levels: Dict[str, int] = {}

    @property
    def is_configured(self) -> bool:
        return self._filter is not None

    def configure(self) -> None:
        """Configure logging once; later calls are no-ops."""
        if self._filter is not None:
            return

        for logger_name, level in NOISY_LOGGERS.items():
            logger = logging.getLogger(logger_name)
            self._original_levels.setdefault(logger_name, logger.level)
            logger.setLevel(level)

        self._filter = LoggingFilter(
            name="smart_collector_root",
            max_duplicates=3,
            rate_limit_period=120
        )
        for logger_name in FILTERED_LOGGERS:
            logging.getLogger(logger_name).addFilter(self._filter)

        _LOGGER.debug("LogManager configured filters and log levels")

    def reset(self) -> None:
        """Remove the filter and restore original log levels."""
        if self._filter is not None:
            for logger_name in FILTERED_LOGGERS:
                logging.getLogger(logger_name).removeFilter(self._filter)
            self._filter = None

        for logger_name, level in self._original_levels.items():
            logging.getLogger(logger_name).setLevel(level)
        self._original_levels = {}


_LOG_MANAGER = LogManager()


def get_log_manager() -> LogManager:
    """Return the process-wide log manager."""
    return _LOG_MANAGER
