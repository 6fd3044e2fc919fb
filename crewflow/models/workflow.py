#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Workflow state and result models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from crewflow.models.roles import Role


class FailureReason(str, Enum):
    """Machine-readable tags carried by every failed workflow."""
    TIMEOUT = "timeout"
    ITERATION_LIMIT_EXCEEDED = "iteration_limit_exceeded"
    WORKFLOW_HEALTH_FAILED = "workflow_health_failed"
    ROUTING_FAILED = "routing_failed"
    AGENT_UNAVAILABLE = "agent_unavailable"
    COMMAND_RESTRICTION = "command_restriction"
    FILESYSTEM_ERROR = "filesystem_error"
    CONFIGURATION_ERROR = "configuration_error"
    GIT_ERROR = "git_error"
    UNKNOWN_ERROR = "unknown_error"


@dataclass(frozen=True)
class Transition:
    """One entry of the append-only transition history."""
    from_role: Role
    to_role: Role
    reason: str
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def edge(self):
        return (self.from_role, self.to_role)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_role.value,
            "to": self.to_role.value,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class WorkflowState:
    """Mutable state owned by a single workflow run."""
    task_description: str
    current_role: Role = Role.MANAGER
    iteration_counts: Dict[Role, int] = field(default_factory=lambda: {role: 0 for role in Role})
    history: List[Transition] = field(default_factory=list)
    start_time: datetime = field(default_factory=datetime.now)
    recovery_attempts: int = 0

    @property
    def total_iterations(self) -> int:
        return sum(self.iteration_counts.values())

    def record_transition(self, transition: Transition) -> None:
        self.history.append(transition)


@dataclass
class RoleSummary:
    """Per-role rollup reported in the final result."""
    task_completed: str = ""
    files_changed: List[str] = field(default_factory=list)
    iterations: int = 0
    success: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_completed": self.task_completed,
            "files_changed": list(self.files_changed),
            "iterations": self.iterations,
            "success": self.success,
        }


@dataclass
class WorkflowResult:
    """Aggregate result of ``execute_workflow``."""
    success: bool = False
    completed_phases: List[str] = field(default_factory=list)
    files_modified: List[str] = field(default_factory=list)
    tests_added: List[str] = field(default_factory=list)
    quality_checks: List[str] = field(default_factory=list)
    build_output: str = ""
    agent_summaries: Dict[str, RoleSummary] = field(default_factory=dict)
    history: List[Transition] = field(default_factory=list)
    failure_reason: Optional[FailureReason] = None
    error: str = ""
    duration_seconds: float = 0.0

    def fail(self, reason: FailureReason, message: str) -> "WorkflowResult":
        self.success = False
        self.failure_reason = reason
        self.error = message
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "completed_phases": list(self.completed_phases),
            "files_modified": list(self.files_modified),
            "tests_added": list(self.tests_added),
            "quality_checks": list(self.quality_checks),
            "build_output": self.build_output,
            "agent_summaries": {name: summary.to_dict() for name, summary in self.agent_summaries.items()},
            "history": [transition.to_dict() for transition in self.history],
            "failure_reason": self.failure_reason.value if self.failure_reason else None,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 3),
        }
