#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Retry logic for LLM requests."""

import time
from typing import Any, Callable, Optional

from crewflow.debug_logger import get_logger
from crewflow.llm.base import ProviderError, RetryConfig

logger = get_logger()


class RetryHandler:
    """Retries classified backend errors with exponential backoff."""

    def __init__(self, config: RetryConfig, sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self._sleep = sleep

    def should_retry(self, error: ProviderError, attempt: int) -> bool:
        """Whether attempt number ``attempt`` (1-indexed) may be followed by another."""
        if attempt > self.config.max_retries:
            logger.info("Max retries (%s) exceeded", self.config.max_retries)
            return False
        if not error.retryable:
            return False
        return error.error_class in self.config.retry_on

    def get_backoff_delay(self, attempt: int) -> float:
        if self.config.exponential:
            delay = self.config.base_backoff * (2 ** (attempt - 1))
        else:
            delay = self.config.base_backoff
        return min(delay, self.config.max_backoff)

    def execute_with_retry(
        self,
        func: Callable[[], Any],
        classify: Callable[[Exception], ProviderError],
        time_left: Optional[Callable[[], float]] = None,
    ) -> Any:
        """Call ``func`` until it succeeds or the error is not worth retrying.

        Args:
            func: Zero-argument callable performing one request.
            classify: Maps a raised exception to a ProviderError.
            time_left: Optional callable; retries stop when the backoff would
                overrun the remaining time.

        Raises:
            The last exception raised by ``func``.
        """
        attempt = 1
        while True:
            try:
                result = func()
                if attempt > 1:
                    logger.info("Retry successful on attempt %s", attempt)
                return result
            except Exception as exc:
                error = classify(exc)
                logger.warning("Attempt %s failed (%s): %s", attempt, error.error_class.value, exc)
                if not self.should_retry(error, attempt):
                    raise

                delay = self.get_backoff_delay(attempt)
                if time_left is not None and delay >= time_left():
                    raise
                self._sleep(delay)
                attempt += 1
