#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Workflow health checks over the transition history."""

from dataclasses import dataclass
from typing import Optional, Sequence

from crewflow.models import Role, Transition

LOOP_WINDOW = 3
ESCALATION_WINDOW = 5
MAX_MANAGER_ESCALATIONS = 3


@dataclass(frozen=True)
class HealthIssue:
    kind: str  # "loop" or "escalation"
    message: str


def detect_loop(history: Sequence[Transition]) -> Optional[HealthIssue]:
    """Ping-pong detection: within the last three transitions, entry i repeats at i+2."""
    if len(history) < LOOP_WINDOW:
        return None
    window = list(history[-LOOP_WINDOW:])
    for i in range(len(window) - 2):
        if window[i].edge == window[i + 2].edge:
            edge = window[i]
            return HealthIssue(
                "loop",
                f"loop detected: {edge.from_role.value} -> {edge.to_role.value} repeated",
            )
    return None


def detect_excessive_escalation(history: Sequence[Transition]) -> Optional[HealthIssue]:
    """More than three transitions into Manager within the last five."""
    recent = list(history[-ESCALATION_WINDOW:])
    escalations = sum(1 for transition in recent if transition.to_role is Role.MANAGER)
    if escalations > MAX_MANAGER_ESCALATIONS:
        return HealthIssue(
            "escalation",
            f"excessive EM interventions: {escalations} of the last {len(recent)} transitions returned to the manager",
        )
    return None


def check_workflow_health(history: Sequence[Transition]) -> Optional[HealthIssue]:
    """Return the first health problem found, or None."""
    return detect_loop(history) or detect_excessive_escalation(history)
