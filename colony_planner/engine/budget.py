"""Compute budget gate consulted once per planner invocation."""

from __future__ import annotations

import math
import time
from typing import Protocol


class ComputeBudget(Protocol):
    """Host-provided view of the compute time left in this turn."""

    def remaining(self) -> float:
        ...

    def limit(self) -> float:
        ...


class UnlimitedBudget:
    """Budget that never gates; used by offline tools and tests."""

    def remaining(self) -> float:
        return math.inf

    def limit(self) -> float:
        return math.inf


class WallClockBudget:
    """Seconds left from a fixed allowance started at construction."""

    def __init__(self, limit_seconds: float) -> None:
        if limit_seconds < 0:
            raise ValueError("limit_seconds must be non-negative")
        self._limit = limit_seconds
        self._started = time.perf_counter()

    def remaining(self) -> float:
        return max(0.0, self._limit - (time.perf_counter() - self._started))

    def limit(self) -> float:
        return self._limit
