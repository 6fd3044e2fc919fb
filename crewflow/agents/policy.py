#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Pluggable pre-review policy checks for the tech lead.

A policy check inspects the review context and reports violations. Any
violation turns the review into a structured rejection, which always routes
back to the engineering manager. Checks are deliberately narrow; the default
set only verifies that the brief's requirements were addressed.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Sequence

from crewflow.execution.action_parser import ManagerBrief
from crewflow.execution.error_classifier import is_test_file


class RejectionReason(Enum):
    REQUIREMENTS_NOT_MET = "requirements_not_met"
    SECURITY_CONCERNS = "security_concerns"
    UNNECESSARY_DUPLICATION = "unnecessary_duplication"
    PATTERN_DEVIATION = "pattern_deviation"


# Reported reason when violations of several kinds are present
_REASON_PRECEDENCE = (
    RejectionReason.SECURITY_CONCERNS,
    RejectionReason.REQUIREMENTS_NOT_MET,
    RejectionReason.PATTERN_DEVIATION,
    RejectionReason.UNNECESSARY_DUPLICATION,
)


@dataclass
class ReviewContext:
    """What the tech lead knows about the change under review."""
    brief: ManagerBrief
    changed_files: List[str] = field(default_factory=list)

    @property
    def test_files(self) -> List[str]:
        return [path for path in self.changed_files if is_test_file(path)]

    @property
    def implementation_files(self) -> List[str]:
        return [path for path in self.changed_files if not is_test_file(path)]


@dataclass(frozen=True)
class PolicyViolation:
    reason: RejectionReason
    issue: str
    required_action: str
    existing_pattern: str = ""


class PolicyCheck(ABC):
    """One pluggable check run before the LLM review."""

    name = "policy"

    @abstractmethod
    def check(self, review: ReviewContext) -> List[PolicyViolation]:
        """Return the violations found (empty when the change passes)."""


class RequirementsCheck(PolicyCheck):
    """The brief's task produced changes and its test criteria have tests."""

    name = "requirements"

    def check(self, review: ReviewContext) -> List[PolicyViolation]:
        if review.brief.is_empty:
            return []

        violations = []
        if not review.changed_files:
            violations.append(PolicyViolation(
                RejectionReason.REQUIREMENTS_NOT_MET,
                f"Core task not completed: {review.brief.task}",
                "Implement the task; no files were changed",
            ))
            return violations

        for criterion in review.brief.success_criteria_items():
            lowered = criterion.lower()
            if "test" in lowered and not review.test_files:
                violations.append(PolicyViolation(
                    RejectionReason.REQUIREMENTS_NOT_MET,
                    f"Success criterion not met: {criterion}",
                    "Add tests covering the new behaviour",
                ))
            elif ("create" in lowered or "implement" in lowered) and not review.implementation_files:
                violations.append(PolicyViolation(
                    RejectionReason.REQUIREMENTS_NOT_MET,
                    f"Success criterion not met: {criterion}",
                    "Add the implementation files the criterion calls for",
                ))
        return violations


def default_policy_checks() -> List[PolicyCheck]:
    return [RequirementsCheck()]


def run_policy_checks(checks: Iterable[PolicyCheck], review: ReviewContext) -> List[PolicyViolation]:
    violations: List[PolicyViolation] = []
    for check in checks:
        violations.extend(check.check(review))
    return violations


def build_rejection_feedback(violations: Sequence[PolicyViolation]) -> str:
    """Render violations in the structured rejection format."""
    if not violations:
        raise ValueError("cannot build a rejection without violations")

    present = {violation.reason for violation in violations}
    reason = next(candidate for candidate in _REASON_PRECEDENCE if candidate in present)

    lines = [f"REJECTION_REASON: {reason.value}", "", "SPECIFIC_ISSUES:"]
    lines.extend(f"- {violation.issue}" for violation in violations)

    patterns = [violation.existing_pattern for violation in violations if violation.existing_pattern]
    if patterns:
        lines.extend(["", "EXISTING_PATTERNS:"])
        lines.extend(f"- {pattern}" for pattern in patterns)

    lines.extend(["", "REQUIRED_ACTIONS:"])
    seen = set()
    for violation in violations:
        if violation.required_action not in seen:
            seen.add(violation.required_action)
            lines.append(f"- {violation.required_action}")

    lines.extend(["", "ROUTE_TO: engineering_manager"])
    return "\n".join(lines)
