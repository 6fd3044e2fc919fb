#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Workflow orchestrator.

Drives one request through the role pipeline::

    Manager → Engineer → QA → TechLead → complete

Each iteration checks the deadline and the iteration caps, invokes the
current role, folds its outcome into the result, runs health checks and asks
the routing engine for the next role. Invocation errors go through the
recovery table instead of the router. Every run owns its own
:class:`WorkflowState` and toolset binding.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from crewflow.agents.base import StepRequest
from crewflow.agents.registry import AgentRegistry, build_default_registry
from crewflow.config import WorkflowConfig
from crewflow.debug_logger import get_logger
from crewflow.errors import DeadlineExceeded, NoRuleMatched
from crewflow.execution.error_classifier import ErrorClassifier, is_test_file
from crewflow.execution.health import check_workflow_health
from crewflow.execution.recovery import RecoveryPlanner, categorize_failure, describe_failure
from crewflow.execution.router import RoutingEngine
from crewflow.execution.timeout_manager import Deadline
from crewflow.llm.base import LLMClient
from crewflow.models import (
    FailureReason,
    ProjectType,
    Role,
    RoleSummary,
    StepOutcome,
    Transition,
    WorkflowResult,
    WorkflowState,
)
from crewflow.tools.toolset import ToolSet

COMPLETE_PHASE = "workflow_complete"


@dataclass
class _Run:
    """Per-run bundle so concurrent runs never share mutable state."""
    state: WorkflowState
    result: WorkflowResult
    toolset: ToolSet
    deadline: Deadline
    project_type: ProjectType
    description: str


class WorkflowOrchestrator:
    """Runs the role pipeline until completion or a tagged failure."""

    def __init__(
        self,
        config: WorkflowConfig,
        llm: Optional[LLMClient] = None,
        agents: Optional[AgentRegistry] = None,
        classifier: Optional[ErrorClassifier] = None,
        router: Optional[RoutingEngine] = None,
        recovery: Optional[RecoveryPlanner] = None,
        toolset: Optional[ToolSet] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if agents is None and llm is None:
            raise ValueError("either an LLM client or an agent registry is required")
        self.config = config
        self.classifier = classifier or ErrorClassifier()
        self.router = router or RoutingEngine(self.classifier)
        self.recovery = recovery or RecoveryPlanner()
        self.agents = agents or build_default_registry(llm, config, self.classifier)
        self._toolset = toolset
        self._clock = clock
        self.logger = get_logger()

    def _bind_toolset(self, working_directory: str) -> ToolSet:
        if self._toolset is None:
            return ToolSet(self.config, working_directory)
        return self._toolset.bound_to(working_directory)

    def execute_workflow(self, description: str, project_type, working_directory: str = ".") -> WorkflowResult:
        """Run the full pipeline for ``description`` inside ``working_directory``.

        Args:
            description: The user's task description
            project_type: ProjectType or its name (go, python, javascript)
            working_directory: Directory the agents' tools are bound to

        Returns:
            WorkflowResult with the final phase, status and failure reason
        """
        result = WorkflowResult()
        try:
            project = project_type if isinstance(project_type, ProjectType) else ProjectType.parse(project_type)
            toolset = self._bind_toolset(working_directory)
        except (ValueError, OSError) as exc:
            return result.fail(FailureReason.CONFIGURATION_ERROR, f"Invalid workflow request: {exc}")

        run = _Run(
            state=WorkflowState(task_description=description),
            result=result,
            toolset=toolset,
            deadline=Deadline(self.config.timeout_seconds, self._clock),
            project_type=project,
            description=description,
        )
        self.logger.log_workflow_phase("WORKFLOW_START", {
            "description": description,
            "project_type": project.value,
            "working_directory": str(toolset.working_directory),
        })

        try:
            self._loop(run)
        finally:
            self._finalize(run)
        return run.result

    def _loop(self, run: _Run) -> None:
        state = run.state
        while True:
            role = state.current_role

            if run.deadline.expired:
                self._fail(run, FailureReason.TIMEOUT,
                           f"Workflow timeout after {self.config.timeout_minutes} minutes")
                return

            limit_message = self._limit_violation(state)
            if limit_message:
                self._fail(run, FailureReason.ITERATION_LIMIT_EXCEEDED, limit_message)
                return

            self.logger.log_workflow_phase("ROLE_START", {
                "role": role.value,
                "iteration": state.iteration_counts[role] + 1,
                "total_iterations": state.total_iterations,
            })
            try:
                outcome = self._invoke(run, role)
            except Exception as exc:
                if not self._recover(run, role, exc):
                    return
                continue

            self._merge(run, role, outcome)

            issue = check_workflow_health(state.history)
            if issue:
                self.logger.log("orchestrator", "HEALTH_FAILED", {"kind": issue.kind, "message": issue.message}, "ERROR")
                self._fail(run, FailureReason.WORKFLOW_HEALTH_FAILED, f"Workflow health check failed: {issue.message}")
                return

            if role is Role.TECH_LEAD and outcome.success:
                self._complete(run)
                return

            try:
                decision = self.router.route(role, outcome)
            except NoRuleMatched as exc:
                self._fail(run, FailureReason.ROUTING_FAILED, f"Routing failed: {exc}")
                return

            state.record_transition(Transition(role, decision.next_role, decision.reason))
            state.iteration_counts[role] += 1
            state.current_role = decision.next_role
            if outcome.next_steps.strip():
                state.task_description = outcome.next_steps
            self.logger.log_transition(role.value, decision.next_role.value, decision.reason)

    def _limit_violation(self, state: WorkflowState) -> str:
        role = state.current_role
        cap = self.config.max_iterations(role)
        if state.iteration_counts[role] >= cap:
            return f"{role.display_name} exceeded maximum iterations ({cap})"
        if state.total_iterations >= self.config.max_total_iterations:
            return f"Workflow exceeded maximum total iterations ({self.config.max_total_iterations})"
        return ""

    def _invoke(self, run: _Run, role: Role) -> StepOutcome:
        agent = self.agents.get(role)
        context = run.toolset.project_context()
        request = StepRequest(
            task=run.state.task_description,
            original_task=run.description,
            project_type=run.project_type,
            toolset=run.toolset,
            deadline=run.deadline,
            project_context=context,
            files_so_far=tuple(run.result.files_modified),
        )
        return agent.run(request)

    def _recover(self, run: _Run, role: Role, error: Exception) -> bool:
        """Apply the recovery table; returns False when the run has failed."""
        self.logger.log_error("orchestrator", error, {"role": role.value})
        state = run.state

        if isinstance(error, DeadlineExceeded) or run.deadline.expired:
            self._fail(run, FailureReason.TIMEOUT, describe_failure(FailureReason.TIMEOUT, error))
            return False

        action = self.recovery.plan(role, error)
        if action is None or state.recovery_attempts >= self.config.max_recovery_attempts:
            reason = categorize_failure(error)
            message = describe_failure(reason, error)
            if action is not None:
                message = f"{message} (recovery attempts exhausted)"
            self._fail(run, reason, message)
            return False

        state.recovery_attempts += 1
        state.record_transition(Transition(role, action.next_role, action.reason))
        state.current_role = action.next_role
        self.logger.log("orchestrator", "RECOVERY", {
            "role": role.value,
            "attempt": state.recovery_attempts,
            **action.to_dict(),
        }, "WARNING")
        self.logger.log_transition(role.value, action.next_role.value, action.reason, kind="recovery")
        return True

    def _merge(self, run: _Run, role: Role, outcome: StepOutcome) -> None:
        result = run.result
        result.completed_phases.append(role.value)
        for path in outcome.files_modified:
            if path not in result.files_modified:
                result.files_modified.append(path)
        if role is Role.QA:
            for path in outcome.files_modified:
                if is_test_file(path) and path not in result.tests_added:
                    result.tests_added.append(path)
        if role is Role.TECH_LEAD:
            for command in outcome.commands_executed:
                if command not in result.quality_checks:
                    result.quality_checks.append(command)
        if outcome.output:
            result.build_output += f"\n=== {role.display_name} Output ===\n{outcome.output}\n"

        summary = result.agent_summaries.setdefault(role.value, RoleSummary())
        summary.task_completed = outcome.message
        summary.files_changed = list(dict.fromkeys(summary.files_changed + list(outcome.files_modified)))
        summary.iterations += 1
        summary.success = outcome.success

        self.logger.log_workflow_phase("ROLE_DONE", {
            "role": role.value,
            "success": outcome.success,
            "message": outcome.message,
            "files": list(outcome.files_modified),
        })

    def _complete(self, run: _Run) -> None:
        result = run.result
        result.success = True
        result.completed_phases.append(COMPLETE_PHASE)
        self.logger.log_workflow_phase("WORKFLOW_COMPLETE", {"files": result.files_modified})

        manager = self.agents.manager()
        if manager is None:
            return
        try:
            written = manager.document_task(run.description, result, run.toolset, run.deadline)
        except Exception as exc:
            self.logger.log_error("orchestrator", exc, {"hook": "document_task"})
            return
        if written and written not in result.files_modified:
            result.files_modified.append(written)

    def _fail(self, run: _Run, reason: FailureReason, message: str) -> None:
        run.result.fail(reason, message)
        self.logger.log_workflow_phase("WORKFLOW_FAILED", {
            "reason": reason.value,
            "message": message,
            "role": run.state.current_role.value,
        })

    def _finalize(self, run: _Run) -> None:
        state, result = run.state, run.result
        result.history = list(state.history)
        result.duration_seconds = (datetime.now() - state.start_time).total_seconds()
        counts = ", ".join(f"{role.value}={count}" for role, count in state.iteration_counts.items())
        result.build_output += (
            "\n=== Workflow Diagnostics ===\n"
            f"Duration: {result.duration_seconds:.1f}s\n"
            f"Transitions: {len(state.history)}\n"
            f"Iterations: {counts}\n"
        )
        if not result.success and result.failure_reason is None:
            result.fail(FailureReason.UNKNOWN_ERROR, "Workflow ended without completing")


def execute_workflow(
    description: str,
    project_type,
    working_directory: str = ".",
    config: Optional[WorkflowConfig] = None,
    llm: Optional[LLMClient] = None,
) -> WorkflowResult:
    """Convenience entry point building an orchestrator from config."""
    from crewflow.llm.ollama import OllamaClient

    config = config or WorkflowConfig()
    if llm is None:
        llm = OllamaClient(config.ollama_url, config.agent(Role.MANAGER).model)
    return WorkflowOrchestrator(config, llm=llm).execute_workflow(description, project_type, working_directory)
