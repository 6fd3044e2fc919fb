#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Data models shared across crewflow."""

from crewflow.models.roles import Role, ProjectType
from crewflow.models.outcome import Action, ActionType, StepOutcome, dedupe
from crewflow.models.workflow import (
    FailureReason,
    RoleSummary,
    Transition,
    WorkflowResult,
    WorkflowState,
)

__all__ = [
    "Role",
    "ProjectType",
    "Action",
    "ActionType",
    "StepOutcome",
    "dedupe",
    "FailureReason",
    "RoleSummary",
    "Transition",
    "WorkflowResult",
    "WorkflowState",
]
