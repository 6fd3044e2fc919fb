#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Deadline handling for workflow runs.

One :class:`Deadline` is created per workflow run. The orchestrator checks it
at the top of every iteration and hands it down so the LLM request and every
command can cap their own timeout at the time left.
"""

import time
from typing import Callable, Optional

from crewflow.errors import DeadlineExceeded


class Deadline:
    """Monotonic deadline with an optional tighter per-step cap."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._start = clock()
        self._expires_at = self._start + max(0.0, seconds)

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def elapsed(self) -> float:
        return self._clock() - self._start

    @property
    def expired(self) -> bool:
        return self._clock() >= self._expires_at

    def check(self, what: str = "workflow") -> None:
        if self.expired:
            raise DeadlineExceeded(f"{what} deadline exceeded after {self.elapsed():.1f}s")

    def cap(self, timeout: Optional[float]) -> float:
        """Clamp ``timeout`` to the time left; raises if nothing is left."""
        self.check()
        remaining = self.remaining()
        if timeout is None:
            return remaining
        return min(timeout, remaining)
