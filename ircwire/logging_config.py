r"""
Logging configuration for ircwire applications.

Root-logger colour output (colorlog) plus category-tagged error lines. Every
structured error is also counted per category so a long-running client can
print what went wrong during the session when it shuts down.
"""

import logging
import os
import sys
import threading
import time
from collections import Counter, deque
from typing import Any

import colorlog

from .logs.logger import LOG_COLORS

ERRORS_LOGGER_NAME = "ircwire.errors"
_RECENT_ERRORS_PER_CATEGORY = 200


class ErrorAggregator:
    """Per-category error counters with a bounded window of recent entries."""

    def __init__(self, keep: int = _RECENT_ERRORS_PER_CATEGORY):
        self.keep = keep
        self.counts: Counter[str] = Counter()
        self.recent: dict[str, deque[dict[str, Any]]] = {}
        self.lock = threading.Lock()
        self.started = time.monotonic()

    def record_error(self, category: str, message: str, context: dict[str, Any] | None = None) -> None:
        entry = {"at": time.time(), "message": message, "context": dict(context or {})}
        with self.lock:
            self.counts[category] += 1
            self.recent.setdefault(category, deque(maxlen=self.keep)).append(entry)

    def get_error_summary(self) -> dict[str, Any]:
        with self.lock:
            return {
                category: {
                    "total_count": count,
                    "last_occurrence": self.recent[category][-1] if self.recent.get(category) else None,
                }
                for category, count in self.counts.most_common()
            }

    def clear(self) -> None:
        with self.lock:
            self.counts.clear()
            self.recent.clear()
            self.started = time.monotonic()

    def log_summary_report(self) -> None:
        """Log one line per error category seen since start (or the last clear)."""
        log = logging.getLogger(ERRORS_LOGGER_NAME)
        summary = self.get_error_summary()
        if not summary:
            log.info("No protocol or network errors this session")
            return
        uptime = time.monotonic() - self.started
        log.warning(f"Error summary after {uptime:.0f}s:")
        for category, stats in summary.items():
            last = stats["last_occurrence"]
            tail = f" (last: {last['message']})" if last else ""
            log.warning(f"  {category}: {stats['total_count']}{tail}")


error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: Exception | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log ``[CATEGORY] message | Exception: ... | Context: k=v`` and count it.

    Args:
        error_type: Category from :func:`ircwire.errors.classify_error`
            (``protocol``, ``network``, ``request``, ...).
        message: Descriptive error message.
        exception: The exception that occurred, if any.
        context: Extra key/value data, e.g. the offending line.
        level: Logging level (default: ERROR).
    """
    parts = [f"[{error_type.upper()}] {message}"]
    if exception is not None:
        parts.append(f"Exception: {type(exception).__name__}: {exception}")
    if context:
        parts.append("Context: " + " | ".join(f"{k}={v}" for k, v in context.items()))
    logging.getLogger(ERRORS_LOGGER_NAME).log(level, " | ".join(parts))
    error_aggregator.record_error(error_type, message, context)


class LoggerConfigurator:
    """Root-logger colour output for applications embedding the client.

    ``DEBUG`` (``true``/``1``/``yes``) in the environment selects DEBUG level
    unless an explicit ``level`` is given.
    """

    def __init__(self, level: int | None = None, stream=None):
        self.level = level
        self.stream = stream or sys.stderr

    def resolve_level(self) -> int:
        if self.level is not None:
            return self.level
        debug_env = os.environ.get("DEBUG", "").lower()
        return logging.DEBUG if debug_env in ("true", "1", "yes") else logging.INFO

    def configure(self) -> None:
        log_level = self.resolve_level()
        formatter = colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors=LOG_COLORS,
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )
        handler = logging.StreamHandler(self.stream)
        handler.setFormatter(formatter)

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.addHandler(handler)
        root_logger.setLevel(log_level)

        # asyncio debug chatter is noise at the protocol level
        logging.getLogger("asyncio").setLevel(logging.WARNING)
