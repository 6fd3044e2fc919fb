#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Execution module for routing work between the pipeline roles.

This package contains:
- Action parsing: turns agent replies into typed actions
- Error classification: maps outcome text to categories and severities
- Routing: picks the next role from a prioritised rule table
- Recovery and health checks used by the orchestrator

The orchestrator itself lives in ``crewflow.execution.orchestrator`` and is
imported from there, since it depends on the agents package.
"""

from crewflow.execution.action_parser import (
    ManagerBrief,
    ReviewDecision,
    parse_actions,
    parse_manager_brief,
    parse_review_decision,
)
from crewflow.execution.error_classifier import (
    ErrorCategory,
    ErrorClassifier,
    ErrorContext,
    ErrorPattern,
    OutcomeSignals,
    detect_signals,
)
from crewflow.execution.health import HealthIssue, check_workflow_health
from crewflow.execution.recovery import RecoveryAction, RecoveryPlanner, categorize_failure
from crewflow.execution.router import RouteDecision, RoutingContext, RoutingEngine, RoutingRule, validate_rules
from crewflow.execution.timeout_manager import Deadline

__all__ = [
    # Parser
    "ManagerBrief",
    "ReviewDecision",
    "parse_actions",
    "parse_manager_brief",
    "parse_review_decision",
    # Classifier
    "ErrorCategory",
    "ErrorClassifier",
    "ErrorContext",
    "ErrorPattern",
    "OutcomeSignals",
    "detect_signals",
    # Health and recovery
    "HealthIssue",
    "check_workflow_health",
    "RecoveryAction",
    "RecoveryPlanner",
    "categorize_failure",
    # Router
    "RouteDecision",
    "RoutingContext",
    "RoutingEngine",
    "RoutingRule",
    "validate_rules",
    "Deadline",
]
