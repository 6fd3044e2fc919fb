#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Base class and request type shared by the four role agents."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from crewflow.config import WorkflowConfig
from crewflow.debug_logger import get_logger
from crewflow.execution.error_classifier import ErrorClassifier
from crewflow.execution.step_executor import StepExecutor
from crewflow.execution.timeout_manager import Deadline
from crewflow.llm.base import LLMClient
from crewflow.models import ProjectType, Role, StepOutcome
from crewflow.tools.toolset import ToolSet


@dataclass
class StepRequest:
    """Input of one role step."""
    task: str
    original_task: str
    project_type: ProjectType
    toolset: ToolSet
    deadline: Deadline
    project_context: str = ""
    files_so_far: Tuple[str, ...] = ()


class RoleAgent(ABC):
    """One pipeline role.

    Agents are stateless between calls: everything run-specific (working
    directory, deadline, task) arrives in the :class:`StepRequest`, so one
    agent instance can serve several workflow runs.

    ``run`` returns an outcome for anything the step itself decided, success
    or failure. It raises only for invocation-level problems (the LLM could
    not be reached, the deadline passed), which the orchestrator's recovery
    table handles.
    """

    role: Role

    def __init__(self, llm: LLMClient, config: WorkflowConfig, classifier: Optional[ErrorClassifier] = None):
        self.config = config
        self.llm = llm.for_model(config.agent(self.role).model)
        self.classifier = classifier or ErrorClassifier()
        self.logger = get_logger()

    @abstractmethod
    def run(self, request: StepRequest) -> StepOutcome:
        """Execute the role's step for ``request``."""

    def generate(self, request: StepRequest, prompt: str) -> str:
        """Call the LLM with the step timeout capped by the workflow deadline."""
        request.deadline.check(self.role.value)
        timeout = request.deadline.cap(self.config.agent_timeout_seconds(self.role))
        return self.llm.generate(prompt, timeout=timeout)

    def executor(self, request: StepRequest) -> StepExecutor:
        return StepExecutor(request.toolset)

    def log(self, event: str, data: dict, level: str = "INFO") -> None:
        self.logger.log(f"agent.{self.role.value}", event, data, level)
