#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Tests for the workflow orchestrator loop."""

from pathlib import Path

import pytest

from crewflow.agents.base import RoleAgent
from crewflow.agents.manager import ManagerAgent
from crewflow.agents.registry import AgentRegistry
from crewflow.config import WorkflowConfig
from crewflow.errors import DeadlineExceeded, GenerationError, NoRuleMatched, ToolError
from crewflow.execution.orchestrator import COMPLETE_PHASE, WorkflowOrchestrator
from crewflow.models import FailureReason, ProjectType, Role, StepOutcome


class StubAgent(RoleAgent):
    """Replays scripted outcomes; exceptions are raised, callables are called."""

    def __init__(self, role, *outcomes):
        self.role = role
        self.outcomes = list(outcomes)
        self.requests = []

    def run(self, request):
        self.requests.append(request)
        item = self.outcomes.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item


class StubManager(ManagerAgent):
    """Manager double with a scripted documentation hook."""

    def __init__(self, *outcomes, document=None):
        self.outcomes = list(outcomes)
        self.requests = []
        self.document = document
        self.documented = []

    def run(self, request):
        self.requests.append(request)
        return self.outcomes.pop(0)

    def document_task(self, description, result, toolset, deadline):
        self.documented.append(description)
        if isinstance(self.document, Exception):
            raise self.document
        return self.document


def plan_ok(next_steps="TASK: Add /health endpoint\nSUCCESS_CRITERIA: returns 200"):
    return StepOutcome.succeeded("Task analysis complete: Add /health endpoint", next_steps=next_steps)


def impl_ok(*files):
    return StepOutcome.succeeded("Implementation complete", files_modified=files or ("handler.go",),
                                 output="$ go build ./...")


def tests_ok(*files):
    return StepOutcome.succeeded("Tests added and passing", files_modified=files or ("handler_test.go",))


def review_ok():
    return StepOutcome.succeeded("Code review approved", commands_executed=("go fmt ./...", "go vet ./..."))


def build_error():
    return StepOutcome.failed("Build failed", "main.go:3:2: undefined: foo")


def registry(manager=None, engineer=(), qa=(), tech_lead=()):
    return AgentRegistry({
        Role.MANAGER: manager if manager is not None else StubAgent(Role.MANAGER, plan_ok()),
        Role.ENGINEER: StubAgent(Role.ENGINEER, *engineer),
        Role.QA: StubAgent(Role.QA, *qa),
        Role.TECH_LEAD: StubAgent(Role.TECH_LEAD, *tech_lead),
    })


def run(tmp_path: Path, agents, config=None, **kwargs):
    orchestrator = WorkflowOrchestrator(config or WorkflowConfig(), agents=agents, **kwargs)
    return orchestrator.execute_workflow("Add a /health endpoint", ProjectType.GO, str(tmp_path))


def test_happy_path_completes(tmp_path: Path):
    agents = registry(engineer=[impl_ok()], qa=[tests_ok()], tech_lead=[review_ok()])
    result = run(tmp_path, agents)

    assert result.success
    assert result.failure_reason is None
    assert result.completed_phases == ["manager", "engineer", "qa", "tech_lead", COMPLETE_PHASE]
    assert result.files_modified == ["handler.go", "handler_test.go"]
    assert result.tests_added == ["handler_test.go"]
    assert result.quality_checks == ["go fmt ./...", "go vet ./..."]
    assert [t.edge for t in result.history] == [
        (Role.MANAGER, Role.ENGINEER),
        (Role.ENGINEER, Role.QA),
        (Role.QA, Role.TECH_LEAD),
    ]
    assert set(result.agent_summaries) == {"manager", "engineer", "qa", "tech_lead"}
    assert result.agent_summaries["engineer"].files_changed == ["handler.go"]
    assert "=== Senior Engineer Output ===" in result.build_output
    assert "=== Workflow Diagnostics ===" in result.build_output
    assert "Transitions: 3" in result.build_output


def test_next_steps_become_the_task_for_the_next_role(tmp_path: Path):
    agents = registry(engineer=[impl_ok()], qa=[tests_ok()], tech_lead=[review_ok()])
    run(tmp_path, agents)

    engineer_request = agents.get(Role.ENGINEER).requests[0]
    assert engineer_request.task.startswith("TASK: Add /health endpoint")
    assert engineer_request.original_task == "Add a /health endpoint"
    qa_request = agents.get(Role.QA).requests[0]
    assert qa_request.files_so_far == ("handler.go",)


def test_requests_are_bound_to_the_run_directory(tmp_path: Path):
    first, second = tmp_path / "one", tmp_path / "two"
    first.mkdir()
    second.mkdir()
    orchestrator = WorkflowOrchestrator(WorkflowConfig(), agents=registry(
        manager=StubAgent(Role.MANAGER, plan_ok(), plan_ok()),
        engineer=[impl_ok(), impl_ok()],
        qa=[tests_ok(), tests_ok()],
        tech_lead=[review_ok(), review_ok()],
    ))
    assert orchestrator.execute_workflow("a", "go", str(first)).success
    assert orchestrator.execute_workflow("b", "go", str(second)).success

    requests = orchestrator.agents.get(Role.ENGINEER).requests
    assert requests[0].toolset.working_directory == first.resolve()
    assert requests[1].toolset.working_directory == second.resolve()


def test_engineer_iteration_cap(tmp_path: Path):
    agents = registry(engineer=[build_error(), build_error(), build_error()])
    result = run(tmp_path, agents)

    assert not result.success
    assert result.failure_reason is FailureReason.ITERATION_LIMIT_EXCEEDED
    assert "Senior Engineer exceeded maximum iterations (3)" in result.error
    assert len(agents.get(Role.ENGINEER).requests) == 3
    assert [t.to_role for t in result.history] == [Role.ENGINEER] * 4


def test_total_iteration_cap(tmp_path: Path):
    config = WorkflowConfig(max_total_iterations=2)
    agents = registry(engineer=[impl_ok()], qa=[tests_ok()])
    result = run(tmp_path, agents, config)

    assert result.failure_reason is FailureReason.ITERATION_LIMIT_EXCEEDED
    assert "maximum total iterations (2)" in result.error
    assert agents.get(Role.QA).requests == []


def test_connection_error_is_retried_on_same_role(tmp_path: Path):
    agents = registry(
        engineer=[GenerationError("LLM connection failed (http://localhost:11434): refused"), impl_ok()],
        qa=[tests_ok()],
        tech_lead=[review_ok()],
    )
    result = run(tmp_path, agents)

    assert result.success
    recovery = result.history[1]
    assert recovery.edge == (Role.ENGINEER, Role.ENGINEER)
    assert recovery.reason.startswith("Error recovery:")


def test_recovery_budget_is_bounded(tmp_path: Path):
    error = GenerationError("LLM connection failed (http://localhost:11434): refused")
    agents = registry(engineer=[error, error, error, error])
    result = run(tmp_path, agents, WorkflowConfig(max_recovery_attempts=3))

    assert result.failure_reason is FailureReason.AGENT_UNAVAILABLE
    assert "recovery attempts exhausted" in result.error
    assert len(agents.get(Role.ENGINEER).requests) == 4


def test_unrecoverable_error_fails_with_tag(tmp_path: Path):
    agents = registry(engineer=[RuntimeError("boom")])
    result = run(tmp_path, agents)

    assert result.failure_reason is FailureReason.UNKNOWN_ERROR
    assert result.error == "Unexpected error during workflow step: boom"
    assert result.completed_phases == ["manager"]


def test_restricted_command_replans_with_manager(tmp_path: Path):
    from crewflow.errors import CommandRestrictedError

    agents = registry(
        manager=StubAgent(Role.MANAGER, plan_ok(), plan_ok()),
        engineer=[CommandRestrictedError("command restricted: not in allowed list: curl x"), impl_ok()],
        qa=[tests_ok()],
        tech_lead=[review_ok()],
    )
    result = run(tmp_path, agents)

    assert result.history[1].edge == (Role.ENGINEER, Role.MANAGER)
    assert len(agents.get(Role.MANAGER).requests) == 2
    # M->E, E->M, M->E is a ping-pong the health check stops
    assert result.failure_reason is FailureReason.WORKFLOW_HEALTH_FAILED


def test_deadline_exceeded_inside_agent_is_timeout(tmp_path: Path):
    agents = registry(engineer=[DeadlineExceeded("engineer deadline exceeded after 900.0s")])
    result = run(tmp_path, agents)

    assert result.failure_reason is FailureReason.TIMEOUT


def test_workflow_deadline(tmp_path: Path, fake_clock):
    def slow_plan(request):
        fake_clock.advance(15 * 60 + 1)
        return plan_ok()

    agents = registry(manager=StubAgent(Role.MANAGER, slow_plan))
    result = run(tmp_path, agents, clock=fake_clock)

    assert result.failure_reason is FailureReason.TIMEOUT
    assert result.error == "Workflow timeout after 15 minutes"
    assert agents.get(Role.ENGINEER).requests == []


def test_routing_failure(tmp_path: Path):
    class NoRoute:
        def route(self, role, outcome):
            raise NoRuleMatched(f"no routing rule matched for {role.value}")

    result = run(tmp_path, registry(), router=NoRoute())

    assert result.failure_reason is FailureReason.ROUTING_FAILED
    assert "no routing rule matched for manager" in result.error


def test_ping_pong_between_engineer_and_qa_fails_health(tmp_path: Path):
    failing_tests = StepOutcome.failed("Test failed: tests revealed implementation bugs",
                                       "--- FAIL: TestHealth\nassertion failed")
    agents = registry(engineer=[impl_ok(), impl_ok()], qa=[failing_tests, failing_tests])
    result = run(tmp_path, agents)

    assert result.failure_reason is FailureReason.WORKFLOW_HEALTH_FAILED
    assert "loop detected" in result.error


def test_documentation_hook_runs_after_completion(tmp_path: Path):
    manager = StubManager(plan_ok(), document="agents/AGENTS.md")
    agents = registry(manager=manager, engineer=[impl_ok()], qa=[tests_ok()], tech_lead=[review_ok()])
    result = run(tmp_path, agents)

    assert result.success
    assert manager.documented == ["Add a /health endpoint"]
    assert result.files_modified[-1] == "agents/AGENTS.md"


def test_documentation_failure_does_not_fail_workflow(tmp_path: Path):
    manager = StubManager(plan_ok(), document=ToolError("documentation update produced no content"))
    agents = registry(manager=manager, engineer=[impl_ok()], qa=[tests_ok()], tech_lead=[review_ok()])
    result = run(tmp_path, agents)

    assert result.success
    assert COMPLETE_PHASE in result.completed_phases


@pytest.mark.parametrize("project_type, workdir", [
    ("cobol", "."),
    ("go", "does/not/exist"),
])
def test_invalid_request_is_a_configuration_error(tmp_path: Path, project_type, workdir):
    orchestrator = WorkflowOrchestrator(WorkflowConfig(), agents=registry())
    result = orchestrator.execute_workflow("x", project_type, str(tmp_path / workdir))
    assert result.failure_reason is FailureReason.CONFIGURATION_ERROR


def test_orchestrator_requires_llm_or_agents():
    with pytest.raises(ValueError):
        WorkflowOrchestrator(WorkflowConfig())


def test_result_serializes(tmp_path: Path):
    agents = registry(engineer=[build_error(), build_error(), build_error()])
    data = run(tmp_path, agents).to_dict()
    assert data["success"] is False
    assert data["failure_reason"] == "iteration_limit_exceeded"
    assert data["history"][0]["from"] == "manager"
