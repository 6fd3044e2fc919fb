#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Exception hierarchy for crewflow.

Two error universes are kept apart:

* invocation-level errors (subclasses of :class:`CrewflowError` raised out of
  an agent step) go through the orchestrator's recovery table;
* outcome-level failures are never raised, they are reported as a
  ``StepOutcome`` with ``success=False`` and routed.

Tool errors raised while executing parsed actions are converted into
outcome-level failures by the step executor according to the role's policy.
"""

from typing import Optional


class CrewflowError(Exception):
    """Base class for all crewflow errors."""


class ConfigurationError(CrewflowError):
    """Invalid or unreadable workflow configuration."""


class GenerationError(CrewflowError):
    """The LLM backend could not produce a completion."""

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class ToolError(CrewflowError):
    """A capability-layer call failed."""


class PathAccessError(ToolError):
    """A path resolved outside the bound working directory."""


class CommandRestrictedError(ToolError):
    """A command was rejected by the allow/block validation."""


class CommandError(ToolError):
    """A validated command ran but exited non-zero or timed out."""

    def __init__(self, message: str, output: str = "", returncode: Optional[int] = None):
        super().__init__(message)
        self.output = output
        self.returncode = returncode


class AgentNotRegisteredError(CrewflowError):
    """No agent is registered for the requested role."""


class NoRuleMatched(CrewflowError):
    """The routing table has no rule accepting the outcome."""


class RuleTableError(CrewflowError):
    """The routing table failed static validation."""


class DeadlineExceeded(CrewflowError):
    """The workflow deadline passed while a step was in flight."""
