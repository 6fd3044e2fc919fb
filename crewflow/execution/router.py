#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Routing engine for the Manager → Engineer → QA → TechLead pipeline.

After every step the router picks the next role from a static table of
prioritised rules. Each rule reads a :class:`RoutingContext` (the outcome's
success flag, its classified error and its extracted signals), never the raw
outcome text. The highest-priority matching rule wins; no match is a hard
failure because the table is expected to cover every role for both success
and failure.

The table is validated once at construction: two rules of the same role may
not share a priority, and every role must accept a plain success and a plain
failure.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from crewflow.debug_logger import get_logger
from crewflow.errors import NoRuleMatched, RuleTableError
from crewflow.execution.error_classifier import (
    ErrorCategory,
    ErrorClassifier,
    ErrorContext,
    OutcomeSignals,
    detect_signals,
)
from crewflow.models import Role, StepOutcome


@dataclass(frozen=True)
class RoutingContext:
    """Everything a routing predicate may look at."""
    success: bool
    error: ErrorContext
    signals: OutcomeSignals

    @property
    def failed(self) -> bool:
        return not self.success

    def failed_with(self, *categories: ErrorCategory) -> bool:
        return not self.success and self.error.category in categories


Predicate = Callable[[RoutingContext], bool]


@dataclass(frozen=True)
class RoutingRule:
    """Static routing rule. Higher priority is preferred."""
    from_role: Role
    predicate: Predicate
    to_role: Role
    reason: str
    priority: int
    name: str = ""


@dataclass(frozen=True)
class RouteDecision:
    """Selected next role and why."""
    next_role: Role
    reason: str
    priority: int
    rule_name: str = ""
    error: Optional[ErrorContext] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "next_role": self.next_role.value,
            "reason": self.reason,
            "priority": self.priority,
            "rule": self.rule_name,
            "error": self.error.to_dict() if self.error else None,
        }


def _success(ctx: RoutingContext) -> bool:
    return ctx.success


def _failure(ctx: RoutingContext) -> bool:
    return ctx.failed


def _engineer_noop_success(ctx: RoutingContext) -> bool:
    return ctx.success and not ctx.signals.touched_files and not ctx.signals.failure_wording


def _engineer_ambiguous_success(ctx: RoutingContext) -> bool:
    return ctx.success and not ctx.signals.touched_files and ctx.signals.failure_wording


def _engineer_build_error(ctx: RoutingContext) -> bool:
    return ctx.failed_with(
        ErrorCategory.SYNTAX_ERROR,
        ErrorCategory.UNDEFINED_SYMBOL,
        ErrorCategory.TYPE_ERROR,
        ErrorCategory.IMPORT_CYCLE,
    )


def _engineer_runtime_error(ctx: RoutingContext) -> bool:
    return ctx.failed_with(ErrorCategory.RUNTIME_ERROR) and ctx.error.severity >= 3


def _qa_no_tests(ctx: RoutingContext) -> bool:
    return ctx.failed and (ctx.error.category is ErrorCategory.NO_TESTS or ctx.error.severity <= 1)


def _qa_test_failure(ctx: RoutingContext) -> bool:
    return ctx.failed_with(ErrorCategory.TEST_FAILURE) and ctx.error.severity >= 2


DEFAULT_RULES: Tuple[RoutingRule, ...] = (
    # Manager
    RoutingRule(Role.MANAGER, _success, Role.ENGINEER,
                "Task analysis complete, ready for implementation", 10, "manager_success"),
    RoutingRule(Role.MANAGER, _failure, Role.MANAGER,
                "Planning failed, retrying task analysis", 5, "manager_retry"),

    # Engineer
    RoutingRule(Role.ENGINEER, lambda ctx: ctx.success and ctx.signals.touched_files, Role.QA,
                "Implementation complete, ready for testing", 20, "engineer_to_qa"),
    RoutingRule(Role.ENGINEER, _engineer_noop_success, Role.TECH_LEAD,
                "No file changes required, forwarding to review", 19, "engineer_noop"),
    RoutingRule(Role.ENGINEER, _engineer_build_error, Role.ENGINEER,
                "Critical build error, engineer must self-correct", 18, "engineer_build_error"),
    RoutingRule(Role.ENGINEER, _engineer_runtime_error, Role.ENGINEER,
                "Runtime error in implementation, engineer must fix", 16, "engineer_runtime_error"),
    RoutingRule(Role.ENGINEER,
                lambda ctx: ctx.failed_with(ErrorCategory.MISSING_DEPENDENCY, ErrorCategory.PERMISSION_ERROR),
                Role.MANAGER, "Dependency or permission problem, needs re-planning", 15, "engineer_blocked"),
    RoutingRule(Role.ENGINEER,
                lambda ctx: ctx.failed_with(ErrorCategory.NETWORK_ERROR, ErrorCategory.GIT_ERROR),
                Role.MANAGER, "Infrastructure issue, escalating to manager", 12, "engineer_infrastructure"),
    RoutingRule(Role.ENGINEER, _failure, Role.MANAGER,
                "Implementation failed, manager to re-plan", 5, "engineer_failure"),
    RoutingRule(Role.ENGINEER, _engineer_ambiguous_success, Role.MANAGER,
                "Engineer reported success without changes but mentioned failures", 4, "engineer_ambiguous"),

    # QA
    RoutingRule(Role.QA, lambda ctx: ctx.success and ctx.signals.touched_test_files, Role.TECH_LEAD,
                "Tests written and passing, ready for review", 20, "qa_to_tech_lead"),
    RoutingRule(Role.QA, _qa_test_failure, Role.ENGINEER,
                "Tests revealed implementation bugs", 17, "qa_test_failure"),
    RoutingRule(Role.QA, _qa_no_tests, Role.QA,
                "No tests yet, QA continues test development", 11, "qa_no_tests"),
    RoutingRule(Role.QA, lambda ctx: ctx.failed and ctx.signals.non_testable, Role.TECH_LEAD,
                "Code is not testable, forwarding to review", 10, "qa_non_testable"),
    RoutingRule(Role.QA, lambda ctx: ctx.success and not ctx.signals.touched_test_files, Role.QA,
                "No recognised test files were written", 8, "qa_missing_test_files"),
    RoutingRule(Role.QA, _failure, Role.MANAGER,
                "Testing failed for an unclear reason, manager to re-plan", 5, "qa_failure"),

    # TechLead (success is terminal; the orchestrator completes before routing)
    RoutingRule(Role.TECH_LEAD, _success, Role.TECH_LEAD,
                "Review passed, workflow complete", 20, "tech_lead_approved"),
    RoutingRule(Role.TECH_LEAD, lambda ctx: ctx.failed and ctx.signals.structured_rejection, Role.MANAGER,
                "Structured rejection, manager to re-plan", 19, "tech_lead_rejection"),
    RoutingRule(Role.TECH_LEAD, lambda ctx: ctx.failed and ctx.signals.quality_issue, Role.ENGINEER,
                "Code quality issues, engineer to fix", 15, "tech_lead_quality"),
    RoutingRule(Role.TECH_LEAD, lambda ctx: ctx.failed and ctx.signals.architecture_issue, Role.MANAGER,
                "Architectural concerns, manager to re-plan", 14, "tech_lead_architecture"),
    RoutingRule(Role.TECH_LEAD, _failure, Role.MANAGER,
                "Review failed, manager to re-plan", 5, "tech_lead_failure"),
)


_SUCCESS_PROBE = RoutingContext(True, ErrorContext(ErrorCategory.UNKNOWN, 2), OutcomeSignals())
_FAILURE_PROBE = RoutingContext(False, ErrorContext(ErrorCategory.UNKNOWN, 2), OutcomeSignals(failure_wording=True))


def validate_rules(rules: Sequence[RoutingRule], roles: Iterable[Role] = tuple(Role)) -> None:
    """Reject priority collisions and roles without success/failure coverage."""
    seen: Dict[Tuple[Role, int], RoutingRule] = {}
    for rule in rules:
        key = (rule.from_role, rule.priority)
        if key in seen:
            raise RuleTableError(
                f"rules {seen[key].name or seen[key].reason!r} and {rule.name or rule.reason!r} "
                f"share priority {rule.priority} for {rule.from_role.value}"
            )
        seen[key] = rule

    for role in roles:
        role_rules = [rule for rule in rules if rule.from_role is role]
        for label, probe in (("success", _SUCCESS_PROBE), ("failure", _FAILURE_PROBE)):
            if not any(rule.predicate(probe) for rule in role_rules):
                raise RuleTableError(f"no {label} rule covers role {role.value}")


class RoutingEngine:
    """Selects the next role from a validated rule table."""

    def __init__(self, classifier: Optional[ErrorClassifier] = None, rules: Optional[Sequence[RoutingRule]] = None):
        self.classifier = classifier or ErrorClassifier()
        self.rules: Tuple[RoutingRule, ...] = tuple(rules if rules is not None else DEFAULT_RULES)
        validate_rules(self.rules)
        self._logger = get_logger()

    def context_for(self, outcome: StepOutcome) -> RoutingContext:
        return RoutingContext(
            success=outcome.success,
            error=self.classifier.classify_outcome(outcome),
            signals=detect_signals(outcome),
        )

    def candidates(self, role: Role, ctx: RoutingContext) -> List[RoutingRule]:
        """Rules for ``role`` accepting ``ctx``, best first."""
        matching = [rule for rule in self.rules if rule.from_role is role and rule.predicate(ctx)]
        return sorted(matching, key=lambda rule: rule.priority, reverse=True)

    def route(self, role: Role, outcome: StepOutcome) -> RouteDecision:
        """Return the next role for ``outcome``.

        Args:
            role: The role whose step produced the outcome
            outcome: Result of that step

        Returns:
            RouteDecision from the highest priority matching rule, with the
            classified error attached for failures

        Raises:
            NoRuleMatched: when no rule for ``role`` accepts the outcome.
        """
        ctx = self.context_for(outcome)
        matching = self.candidates(role, ctx)
        if not matching:
            self._logger.log("router", "NO_RULE_MATCHED", {
                "role": role.value,
                "success": outcome.success,
                "error": ctx.error.to_dict(),
            }, "ERROR")
            raise NoRuleMatched(f"no routing rule matched for {role.value} (success={outcome.success})")

        best = matching[0]
        decision = RouteDecision(
            next_role=best.to_role,
            reason=best.reason,
            priority=best.priority,
            rule_name=best.name,
            error=None if outcome.success else ctx.error,
        )
        self._logger.log("router", "ROUTE_DECISION", {
            "from": role.value,
            **decision.to_dict(),
            "considered": [rule.name for rule in matching],
        }, "INFO")
        return decision
