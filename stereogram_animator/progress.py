"""Periodic progress logging for multi-frame jobs."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Optional


def format_seconds(seconds: float) -> str:
    """Render a duration as ``1m05s`` / ``42s`` / ``<1s``."""
    whole = int(round(seconds))
    if whole <= 0:
        return "<1s"
    minutes, remainder = divmod(whole, 60)
    if minutes:
        return f"{minutes}m{remainder:02d}s"
    return f"{remainder}s"


class ProgressReporter:
    """Log ``done/total`` counts roughly every 5% of a job, with a remaining-time estimate."""

    def __init__(self, logger: logging.Logger, label: str, total: int) -> None:
        self.logger = logger
        self.label = label
        self.total = max(0, total)
        self.completed = 0
        self.interval = max(1, self.total // 20)
        self._started = perf_counter()

    def remaining_seconds(self) -> Optional[float]:
        elapsed = perf_counter() - self._started
        if self.completed <= 0 or self.total <= 0 or elapsed <= 0.0:
            return None
        per_item = elapsed / self.completed
        return max(0.0, per_item * (self.total - self.completed))

    def advance(self, count: int = 1) -> None:
        self.completed = min(self.total, self.completed + count)
        if self.completed % self.interval and self.completed != self.total:
            return
        remaining = self.remaining_seconds()
        eta = "estimating" if remaining is None else format_seconds(remaining)
        percent = (self.completed / self.total) * 100.0 if self.total else 100.0
        self.logger.info(
            "%s: %s/%s frames (%0.1f%%, ETA %s)",
            self.label,
            self.completed,
            self.total,
            percent,
            eta,
        )


__all__ = ["ProgressReporter", "format_seconds"]
