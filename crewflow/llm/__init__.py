#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""LLM backends."""

from crewflow.llm.base import ErrorClass, LLMClient, ProviderError, RetryConfig
from crewflow.llm.ollama import OllamaClient
from crewflow.llm.retry import RetryHandler

__all__ = ["ErrorClass", "LLMClient", "OllamaClient", "ProviderError", "RetryConfig", "RetryHandler"]
