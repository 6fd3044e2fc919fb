#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Base interface for LLM backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ErrorClass(Enum):
    """Standardized backend error categories."""
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    SERVER_ERROR = "server_error"
    MODEL_NOT_FOUND = "model_not_found"
    INVALID_REQUEST = "invalid_request"
    UNKNOWN = "unknown"


@dataclass
class ProviderError:
    """Standardized error representation."""
    error_class: ErrorClass
    message: str
    retryable: bool
    original_error: Optional[Exception] = None


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_backoff: float = 1.0  # seconds
    max_backoff: float = 30.0  # seconds
    exponential: bool = True
    retry_on: List[ErrorClass] = field(default_factory=lambda: [
        ErrorClass.TIMEOUT,
        ErrorClass.NETWORK_ERROR,
        ErrorClass.SERVER_ERROR,
    ])


class LLMClient(ABC):
    """Anything that turns a prompt into text.

    ``generate`` raises :class:`crewflow.errors.GenerationError` when no
    completion could be produced; the orchestrator treats that as an
    invocation-level error.
    """

    model: str = ""

    @abstractmethod
    def generate(self, prompt: str, timeout: Optional[float] = None) -> str:
        """Return the completion for ``prompt`` within ``timeout`` seconds."""

    def for_model(self, model: str) -> "LLMClient":
        """Client for another model; backends without model selection return self."""
        return self
