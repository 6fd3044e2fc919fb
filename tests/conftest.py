#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Shared fixtures for the crewflow test suite."""

from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

import pytest

from crewflow.config import WorkflowConfig
from crewflow.debug_logger import DebugLogger
from crewflow.errors import GenerationError
from crewflow.execution.timeout_manager import Deadline
from crewflow.llm.base import LLMClient
from crewflow.tools.toolset import ToolSet


class ScriptedLLM(LLMClient):
    """LLM double replaying canned replies in order.

    A reply may be an exception instance, which is raised instead, or a
    callable receiving the prompt.
    """

    model = "scripted"

    def __init__(self, replies: Sequence[Union[str, Exception, Callable[[str], str]]] = ()):
        self.replies: List = list(replies)
        self.prompts: List[str] = []
        self.timeouts: List[Optional[float]] = []

    def generate(self, prompt: str, timeout: Optional[float] = None) -> str:
        self.prompts.append(prompt)
        self.timeouts.append(timeout)
        if not self.replies:
            raise GenerationError("LLM generation failed (scripted): no reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(prompt)
        return reply


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_debug_logger():
    """Reset the singleton logger before and after each test."""
    DebugLogger.reset()
    yield
    DebugLogger.reset()


@pytest.fixture
def config() -> WorkflowConfig:
    return WorkflowConfig()


@pytest.fixture
def toolset(tmp_path: Path, config: WorkflowConfig) -> ToolSet:
    tools = ToolSet(config, str(tmp_path))
    # tmp_path may sit inside an unrelated git checkout
    tools.git.status = lambda: ""
    tools.git.diff = lambda: ""
    return tools


@pytest.fixture
def deadline() -> Deadline:
    return Deadline(600)


@pytest.fixture
def scripted_llm():
    def factory(*replies):
        return ScriptedLLM(replies)
    return factory


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
