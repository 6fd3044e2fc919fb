#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Tech Lead: policy checks, quality commands and the final review."""

from typing import List, Optional, Sequence

from crewflow.agents.base import RoleAgent, StepRequest
from crewflow.agents.manager import FALLBACK_KNOWLEDGE_FILE, KNOWLEDGE_FILE
from crewflow.agents.policy import (
    PolicyCheck,
    ReviewContext,
    build_rejection_feedback,
    default_policy_checks,
    run_policy_checks,
)
from crewflow.agents.prompts import ACTION_FORMAT, TECH_LEAD_PROMPT
from crewflow.agents.toolchains import toolchain_for
from crewflow.config import WorkflowConfig
from crewflow.errors import CommandError, CommandRestrictedError
from crewflow.execution.action_parser import parse_actions, parse_manager_brief, parse_review_decision
from crewflow.execution.error_classifier import ErrorClassifier
from crewflow.execution.step_executor import ExecutionPolicy
from crewflow.llm.base import LLMClient
from crewflow.models import Role, StepOutcome, dedupe

# Review edits are advisory; a failed write is reported, not fatal.
TECH_LEAD_POLICY = ExecutionPolicy(
    fail_on_read_error=False,
    fail_on_write_error=False,
    fail_on_command_error=False,
    fail_on_blocked_command=False,
)

KNOWLEDGE_FILES = (KNOWLEDGE_FILE, FALLBACK_KNOWLEDGE_FILE)


class TechLeadAgent(RoleAgent):
    """Final gate before the workflow completes."""

    role = Role.TECH_LEAD

    def __init__(
        self,
        llm: LLMClient,
        config: WorkflowConfig,
        classifier: Optional[ErrorClassifier] = None,
        policy_checks: Optional[Sequence[PolicyCheck]] = None,
    ):
        super().__init__(llm, config, classifier)
        self.policy_checks: List[PolicyCheck] = list(
            policy_checks if policy_checks is not None else default_policy_checks()
        )

    def run(self, request: StepRequest) -> StepOutcome:
        """Review the changes and approve or reject them.

        Args:
            request: Step input carrying the brief and the files changed so far

        Returns:
            Successful StepOutcome on approval; otherwise a failure whose error
            is the structured rejection or the review issues
        """
        brief = parse_manager_brief(request.task)
        changed = [
            path for path in dedupe(list(request.files_so_far) + request.toolset.changed_files())
            if path not in KNOWLEDGE_FILES
        ]
        review = ReviewContext(brief=brief, changed_files=changed)

        violations = run_policy_checks(self.policy_checks, review)
        if violations:
            feedback = build_rejection_feedback(violations)
            self.log("STRUCTURED_REJECTION", {"violations": [v.issue for v in violations]}, "WARNING")
            return StepOutcome.failed(
                "Tech lead rejected the implementation",
                feedback,
                output=feedback,
                next_steps=f"{request.original_task}\n\n{feedback}",
            )

        checks, check_output = self.run_quality_checks(request)

        prompt = TECH_LEAD_PROMPT.format(
            project_type=request.project_type.value,
            task=brief.task or request.task,
            files="\n".join(f"- {path}" for path in changed) or "(none)",
            checks="\n".join(check_output) or "(none)",
            action_format=ACTION_FORMAT,
            context=request.project_context or "(none)",
        )
        response = self.generate(request, prompt)
        report = self.executor(request).execute(parse_actions(response), TECH_LEAD_POLICY, request.deadline)
        for warning in report.warnings:
            self.log("REVIEW_ACTION_WARNING", {"warning": warning}, "WARNING")
        commands = checks + report.commands_executed
        output = "\n\n".join(part for part in ("\n".join(check_output), report.output, response.strip()) if part)

        decision = parse_review_decision(response)
        if not decision.approved:
            return StepOutcome.failed(
                "Review requested changes",
                decision.issues,
                files_modified=report.unique_files(),
                commands_executed=commands,
                output=output,
                next_steps=f"Address the tech lead review:\n{decision.issues}\n\nOriginal request: {request.original_task}",
            )

        return StepOutcome.succeeded(
            "Code review approved",
            files_modified=report.unique_files(),
            commands_executed=commands,
            output=output,
        )

    def run_quality_checks(self, request: StepRequest):
        """Run the project's auto-fix and lint commands; failures are informational."""
        executed: List[str] = []
        notes: List[str] = []
        for command in toolchain_for(request.project_type).quality:
            if request.deadline.expired:
                break
            try:
                result = request.toolset.execute_command(command, timeout=request.deadline.remaining())
            except CommandRestrictedError as exc:
                notes.append(f"{command}: skipped ({exc})")
                continue
            except CommandError as exc:
                if exc.returncode is not None:
                    executed.append(command)
                notes.append(f"{command}: reported problems\n{exc.output[-1500:]}")
                continue
            executed.append(command)
            notes.append(f"{command}: ok" + (f"\n{result.output[-1500:]}" if result.output.strip() else ""))
        return executed, notes
