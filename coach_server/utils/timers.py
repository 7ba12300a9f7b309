# coach_server/utils/timers.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — timing utilities
-----------------------------------------
Stopwatch for logging the latency of storage and generation calls.
"""

from __future__ import annotations

import logging
import time
from contextlib import ContextDecorator
from typing import Optional


class Stopwatch(ContextDecorator):
    """
    Simple stopwatch context manager.

    Example:
        with Stopwatch("tier1 generate", logger):
            call_tier1_model(...)

    Logs something like:
        tier1 generate took 0.237 s
    """

    def __init__(
        self,
        label: str,
        logger: Optional[logging.Logger] = None,
        level: int = logging.DEBUG,
    ) -> None:
        self.label = label
        self.logger = logger or logging.getLogger(__name__)
        self.level = level
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Stopwatch":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:  # type: ignore[override]
        self.elapsed = time.perf_counter() - self._start
        status = "failed after" if exc_type is not None else "took"
        self.logger.log(self.level, "%s %s %.3f s", self.label, status, self.elapsed)
