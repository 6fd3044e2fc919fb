#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Tests for invocation error recovery and failure tagging."""

import pytest

from crewflow.errors import (
    AgentNotRegisteredError,
    CommandRestrictedError,
    ConfigurationError,
    DeadlineExceeded,
    GenerationError,
    PathAccessError,
)
from crewflow.execution.recovery import RecoveryPlanner, RecoveryStrategy, categorize_failure, describe_failure
from crewflow.models import FailureReason, Role


@pytest.fixture
def planner():
    return RecoveryPlanner()


def test_connection_error_retries_same_role(planner):
    action = planner.plan(Role.ENGINEER, GenerationError("LLM connection failed (http://x): refused", retryable=True))
    assert action.strategy is RecoveryStrategy.RETRY
    assert action.next_role is Role.ENGINEER
    assert action.reason.startswith("Error recovery:")


def test_timeout_retries_same_role(planner):
    action = planner.plan(Role.QA, GenerationError("LLM request timeout (qwen): read timed out"))
    assert action.next_role is Role.QA


def test_missing_agent_replans(planner):
    action = planner.plan(Role.QA, AgentNotRegisteredError("agent qa not registered"))
    assert action.strategy is RecoveryStrategy.REPLAN
    assert action.next_role is Role.MANAGER


def test_command_restriction_replans(planner):
    action = planner.plan(Role.ENGINEER, CommandRestrictedError("command restricted: not in allowed list: rm x"))
    assert action.next_role is Role.MANAGER


def test_deadline_is_never_recovered(planner):
    assert planner.plan(Role.ENGINEER, DeadlineExceeded("engineer deadline exceeded after 900.0s")) is None


def test_unmatched_error_has_no_recovery(planner):
    assert planner.plan(Role.ENGINEER, ValueError("bad value")) is None


@pytest.mark.parametrize("error, reason", [
    (DeadlineExceeded("workflow deadline exceeded"), FailureReason.TIMEOUT),
    (ConfigurationError("bad yaml"), FailureReason.CONFIGURATION_ERROR),
    (AgentNotRegisteredError("agent qa not registered"), FailureReason.AGENT_UNAVAILABLE),
    (CommandRestrictedError("command restricted: sudo"), FailureReason.COMMAND_RESTRICTION),
    (PathAccessError("access denied: path outside working directory: ../x"), FailureReason.FILESYSTEM_ERROR),
    (GenerationError("LLM connection failed"), FailureReason.AGENT_UNAVAILABLE),
    (GenerationError("LLM generation failed (m): HTTP 400"), FailureReason.AGENT_UNAVAILABLE),
    (OSError("No such file or directory"), FailureReason.FILESYSTEM_ERROR),
    (RuntimeError("git index locked"), FailureReason.GIT_ERROR),
    (RuntimeError("boom"), FailureReason.UNKNOWN_ERROR),
])
def test_categorize_failure(error, reason):
    assert categorize_failure(error) is reason


def test_describe_failure_prefixes_raw_text():
    message = describe_failure(FailureReason.AGENT_UNAVAILABLE, GenerationError("refused"))
    assert message == "Agent unavailable: refused"
    assert describe_failure(FailureReason.UNKNOWN_ERROR, RuntimeError("x")).startswith("Unexpected error")
