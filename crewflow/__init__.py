#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""crewflow - Role-based workflow routing for LLM development agents."""

from crewflow.versioning import get_version

__version__ = get_version()

# Configuration
from crewflow.config import WorkflowConfig, AgentConfig, load_config

# Core models
from crewflow.models import (
    Role,
    ProjectType,
    StepOutcome,
    FailureReason,
    Transition,
    WorkflowResult,
)

# Errors
from crewflow.errors import (
    CrewflowError,
    ConfigurationError,
    NoRuleMatched,
)

# Orchestration
from crewflow.execution.orchestrator import WorkflowOrchestrator, execute_workflow

__all__ = [
    "__version__",
    "WorkflowConfig",
    "AgentConfig",
    "load_config",
    "Role",
    "ProjectType",
    "StepOutcome",
    "FailureReason",
    "Transition",
    "WorkflowResult",
    "CrewflowError",
    "ConfigurationError",
    "NoRuleMatched",
    "WorkflowOrchestrator",
    "execute_workflow",
]
