#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Ollama client over the /api/generate endpoint."""

import time
from typing import Any, Dict, Optional

import requests

from crewflow.debug_logger import get_logger
from crewflow.errors import GenerationError
from crewflow.llm.base import ErrorClass, LLMClient, ProviderError, RetryConfig
from crewflow.llm.retry import RetryHandler

DEFAULT_REQUEST_TIMEOUT = 300.0


class OllamaClient(LLMClient):
    """Non-streaming text generation against a local or remote Ollama server."""

    def __init__(
        self,
        base_url: str,
        model: str,
        options: Optional[Dict[str, Any]] = None,
        retry_config: Optional[RetryConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.options = dict(options or {})
        self.retry_config = retry_config or RetryConfig()
        self.session = session or requests.Session()
        self._retry = RetryHandler(self.retry_config)
        self._logger = get_logger()

    def for_model(self, model: str) -> "OllamaClient":
        if model == self.model:
            return self
        return OllamaClient(self.base_url, model, self.options, self.retry_config, self.session)

    def generate(self, prompt: str, timeout: Optional[float] = None) -> str:
        if timeout is not None and timeout <= 0:
            raise GenerationError("LLM request timeout: no time left for generation")

        started = time.monotonic()
        deadline = None if timeout is None else started + timeout

        def time_left() -> float:
            return DEFAULT_REQUEST_TIMEOUT if deadline is None else max(0.0, deadline - time.monotonic())

        def attempt() -> str:
            return self._request(prompt, min(time_left(), DEFAULT_REQUEST_TIMEOUT))

        self._logger.log_llm_request(self.model, prompt)
        try:
            text = self._retry.execute_with_retry(attempt, self.classify_error, time_left)
        except requests.exceptions.RequestException as exc:
            error = self.classify_error(exc)
            raise GenerationError(self._describe(error), retryable=error.retryable) from exc
        except ValueError as exc:
            raise GenerationError(f"LLM generation failed: malformed response from Ollama: {exc}") from exc

        self._logger.log_llm_response(self.model, text, time.monotonic() - started)
        return text

    def _request(self, prompt: str, timeout: float) -> str:
        payload: Dict[str, Any] = {"model": self.model, "prompt": prompt, "stream": False}
        if self.options:
            payload["options"] = self.options
        response = self.session.post(f"{self.base_url}/api/generate", json=payload, timeout=timeout)
        response.raise_for_status()
        data = response.json()
        if "error" in data:
            raise ValueError(data["error"])
        return str(data.get("response", ""))

    def classify_error(self, error: Exception) -> ProviderError:
        """Map a requests exception onto ErrorClass."""
        if isinstance(error, requests.exceptions.Timeout):
            return ProviderError(ErrorClass.TIMEOUT, str(error), True, error)
        if isinstance(error, requests.exceptions.ConnectionError):
            return ProviderError(ErrorClass.NETWORK_ERROR, str(error), True, error)
        if isinstance(error, requests.exceptions.HTTPError):
            status = error.response.status_code if error.response is not None else 0
            if status == 404:
                return ProviderError(ErrorClass.MODEL_NOT_FOUND, str(error), False, error)
            if status >= 500:
                return ProviderError(ErrorClass.SERVER_ERROR, str(error), True, error)
            return ProviderError(ErrorClass.INVALID_REQUEST, str(error), False, error)
        return ProviderError(ErrorClass.UNKNOWN, str(error), False, error)

    def _describe(self, error: ProviderError) -> str:
        # Wording matters: recovery keys on "connection" and "timeout"
        if error.error_class is ErrorClass.TIMEOUT:
            return f"LLM request timeout ({self.model}): {error.message}"
        if error.error_class is ErrorClass.NETWORK_ERROR:
            return f"LLM connection failed ({self.base_url}): {error.message}"
        if error.error_class is ErrorClass.MODEL_NOT_FOUND:
            return f"LLM model unavailable: {self.model} is not pulled on {self.base_url}"
        return f"LLM generation failed ({self.model}): {error.message}"

    def validate_config(self) -> bool:
        """True when the server answers /api/tags."""
        try:
            response = self.session.get(f"{self.base_url}/api/tags", timeout=5)
            return response.ok
        except requests.exceptions.RequestException:
            return False
