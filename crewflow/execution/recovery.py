#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Recovery from invocation-level errors.

When an agent step raises instead of returning an outcome (the LLM is
unreachable, a tool threw, an agent is missing) the orchestrator consults
this table before failing the workflow. Rules match coarse substrings of the
error text, first match wins. Errors no rule covers are mapped to a
:class:`FailureReason` tag by :func:`categorize_failure`.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from crewflow.errors import (
    AgentNotRegisteredError,
    CommandRestrictedError,
    ConfigurationError,
    DeadlineExceeded,
    GenerationError,
    PathAccessError,
)
from crewflow.models import FailureReason, Role


class RecoveryStrategy(Enum):
    """How the orchestrator continues after an invocation error."""
    RETRY = "retry"  # Run the same role again
    REPLAN = "replan"  # Hand control back to the manager


@dataclass(frozen=True)
class RecoveryRule:
    keywords: Tuple[str, ...]
    strategy: RecoveryStrategy
    description: str

    def matches(self, message: str) -> bool:
        return any(keyword in message for keyword in self.keywords)


@dataclass(frozen=True)
class RecoveryAction:
    """Concrete recovery step chosen for one error."""
    strategy: RecoveryStrategy
    next_role: Role
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "next_role": self.next_role.value,
            "reason": self.reason,
        }


RECOVERY_RULES: Tuple[RecoveryRule, ...] = (
    RecoveryRule(("connection", "timeout"), RecoveryStrategy.RETRY, "transient LLM or network failure, retrying"),
    RecoveryRule(("not registered",), RecoveryStrategy.REPLAN, "agent unavailable, returning to manager"),
    RecoveryRule(("command", "restricted"), RecoveryStrategy.REPLAN, "command restriction, manager to adjust approach"),
    RecoveryRule(("file", "directory"), RecoveryStrategy.REPLAN, "filesystem problem, manager to re-plan"),
    RecoveryRule(("deadline", "context"), RecoveryStrategy.REPLAN, "step ran out of time, manager to simplify"),
)


class RecoveryPlanner:
    """Maps an invocation error to a recovery action, if one applies."""

    def __init__(self, rules: Tuple[RecoveryRule, ...] = RECOVERY_RULES):
        self.rules = rules

    def plan(self, role: Role, error: Exception) -> Optional[RecoveryAction]:
        """Pick a recovery for an error raised while invoking ``role``.

        Args:
            role: The role whose invocation raised
            error: The raised exception

        Returns:
            RecoveryAction for the first rule with a keyword in the
            error text, or None when the error is a deadline or unrecognised
        """
        if isinstance(error, DeadlineExceeded):
            return None

        message = str(error).lower()
        for rule in self.rules:
            if not rule.matches(message):
                continue
            next_role = role if rule.strategy is RecoveryStrategy.RETRY else Role.MANAGER
            return RecoveryAction(
                strategy=rule.strategy,
                next_role=next_role,
                reason=f"Error recovery: {rule.description} ({_short(str(error))})",
            )
        return None


_TYPE_REASONS = (
    (DeadlineExceeded, FailureReason.TIMEOUT),
    (ConfigurationError, FailureReason.CONFIGURATION_ERROR),
    (AgentNotRegisteredError, FailureReason.AGENT_UNAVAILABLE),
    (CommandRestrictedError, FailureReason.COMMAND_RESTRICTION),
    (PathAccessError, FailureReason.FILESYSTEM_ERROR),
)

_TEXT_REASONS = (
    (("timeout", "timed out", "deadline"), FailureReason.TIMEOUT),
    (("connection", "not registered", "unavailable"), FailureReason.AGENT_UNAVAILABLE),
    (("command", "restricted"), FailureReason.COMMAND_RESTRICTION),
    (("file", "directory"), FailureReason.FILESYSTEM_ERROR),
    (("config",), FailureReason.CONFIGURATION_ERROR),
    (("git",), FailureReason.GIT_ERROR),
)


def categorize_failure(error: Exception) -> FailureReason:
    """Tag an unrecoverable invocation error."""
    for error_type, reason in _TYPE_REASONS:
        if isinstance(error, error_type):
            return reason

    message = str(error).lower()
    for keywords, reason in _TEXT_REASONS:
        if any(keyword in message for keyword in keywords):
            return reason
    if isinstance(error, GenerationError):
        return FailureReason.AGENT_UNAVAILABLE
    return FailureReason.UNKNOWN_ERROR


def describe_failure(reason: FailureReason, error: Exception) -> str:
    """Human-readable failure message; raw exception text is never used alone."""
    prefix = {
        FailureReason.TIMEOUT: "Workflow step timed out",
        FailureReason.AGENT_UNAVAILABLE: "Agent unavailable",
        FailureReason.COMMAND_RESTRICTION: "Command rejected by restrictions",
        FailureReason.FILESYSTEM_ERROR: "Filesystem operation failed",
        FailureReason.CONFIGURATION_ERROR: "Configuration problem",
        FailureReason.GIT_ERROR: "Git operation failed",
    }.get(reason, "Unexpected error during workflow step")
    return f"{prefix}: {error}"


def _short(text: str, limit: int = 120) -> str:
    text = " ".join(text.split())
    return text if len(text) <= limit else text[:limit - 3] + "..."
