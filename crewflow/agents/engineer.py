#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Senior Engineer: implements the brief and self-corrects on build errors."""

from typing import List, Optional, Tuple

from crewflow.agents.base import RoleAgent, StepRequest
from crewflow.agents.prompts import ACTION_FORMAT, ENGINEER_PROMPT, ENGINEER_RETRY_NOTE
from crewflow.agents.toolchains import toolchain_for
from crewflow.errors import CommandError, CommandRestrictedError
from crewflow.execution.action_parser import parse_actions, parse_manager_brief
from crewflow.execution.error_classifier import ErrorCategory, ErrorContext
from crewflow.execution.step_executor import STRICT_POLICY
from crewflow.models import Role, StepOutcome, dedupe

GIVE_UP_MESSAGE = "Agent decided to give up."


class EngineerAgent(RoleAgent):
    """Implementation loop with its own attempt budget.

    Up to ``engineer_max_attempts`` generate/apply/build cycles run inside one
    step. The loop stops early when ``stuck_threshold`` consecutive attempts
    fail in the same error category. These counters are internal to the step
    and independent of the orchestrator's per-role iteration count.
    """

    role = Role.ENGINEER

    def run(self, request: StepRequest) -> StepOutcome:
        """Implement the brief, building after each attempt.

        Args:
            request: Step input carrying the Manager's brief

        Returns:
            StepOutcome listing the files changed, or the last build error
        """
        brief = parse_manager_brief(request.task)
        max_attempts = self.config.engineer_max_attempts
        files: List[str] = []
        commands: List[str] = []
        outputs: List[str] = []
        last_error = ""
        last_context: Optional[ErrorContext] = None
        same_category = 0

        for attempt in range(1, max_attempts + 1):
            prompt = self._prompt(request, brief, attempt, max_attempts, last_error, last_context)
            response = self.generate(request, prompt)
            actions = parse_actions(response)
            report = self.executor(request).execute(actions, STRICT_POLICY, request.deadline)
            files.extend(report.files_modified)
            commands.extend(report.commands_executed)
            if report.output:
                outputs.append(f"--- attempt {attempt} ---\n{report.output}")

            if report.gave_up:
                return StepOutcome.failed(
                    GIVE_UP_MESSAGE,
                    last_error or GIVE_UP_MESSAGE,
                    files_modified=dedupe(files),
                    commands_executed=commands,
                    output="\n\n".join(outputs),
                )

            if not actions:
                error = "No actions found in response"
            elif report.failed:
                error = "\n".join(part for part in (report.error, report.error_output) if part)
            else:
                build_ok, build_command, build_output = self._build(request)
                if build_command:
                    commands.append(build_command)
                if build_ok:
                    unique = dedupe(files)
                    self.log("IMPLEMENTATION_COMPLETE", {"attempt": attempt, "files": list(unique)})
                    return StepOutcome.succeeded(
                        f"Implementation complete after {attempt} attempt(s), {len(unique)} file(s) modified",
                        files_modified=unique,
                        commands_executed=commands,
                        output="\n\n".join(outputs + ([build_output] if build_output else [])),
                    )
                error = f"Build failed:\n{build_output}"

            context = self.classifier.classify(error)
            same_category = same_category + 1 if last_context and last_context.category is context.category else 1
            last_error, last_context = error, context
            self.log("ATTEMPT_FAILED", {
                "attempt": attempt,
                "category": context.category.value,
                "same_category_count": same_category,
            }, "WARNING")

            if same_category >= self.config.stuck_threshold:
                return StepOutcome.failed(
                    f"Implementation failed: stuck on {context.category.value} after {attempt} attempts",
                    last_error,
                    files_modified=dedupe(files),
                    commands_executed=commands,
                    output="\n\n".join(outputs),
                )

        return StepOutcome.failed(
            f"Implementation failed after {max_attempts} attempts",
            last_error,
            files_modified=dedupe(files),
            commands_executed=commands,
            output="\n\n".join(outputs),
        )

    def _prompt(self, request, brief, attempt, max_attempts, last_error, last_context) -> str:
        retry_note = ""
        if last_error:
            retry_note = ENGINEER_RETRY_NOTE.format(
                category=last_context.category.value if last_context else ErrorCategory.UNKNOWN.value,
                error=last_error[-3000:],
                hints="; ".join(last_context.hints) if last_context else "",
            )
        return ENGINEER_PROMPT.format(
            project_type=request.project_type.value,
            task=brief.task or request.task,
            original_task=request.original_task,
            files_to_examine=brief.files_to_examine or "(not specified)",
            approach=brief.implementation_approach or "(not specified)",
            success_criteria=brief.success_criteria or "(not specified)",
            attempt=attempt,
            max_attempts=max_attempts,
            last_error=retry_note,
            action_format=ACTION_FORMAT,
            context=request.project_context or "(none)",
        )

    def _build(self, request: StepRequest) -> Tuple[bool, str, str]:
        """Run the project build; returns (ok, command run or '', output).

        A build that cannot be attempted (command restricted or toolchain not
        installed) does not fail the attempt.
        """
        request.deadline.check(self.role.value)
        command = toolchain_for(request.project_type).build
        try:
            result = request.toolset.execute_command(command, timeout=request.deadline.remaining())
        except CommandRestrictedError as exc:
            self.log("BUILD_SKIPPED", {"command": command, "reason": str(exc)}, "WARNING")
            return True, "", ""
        except CommandError as exc:
            if exc.returncode is None:
                self.log("BUILD_SKIPPED", {"command": command, "reason": str(exc)}, "WARNING")
                return True, "", ""
            return False, command, f"$ {command}\n{exc}\n{exc.output}"
        return True, command, f"$ {command}\n{result.output}"
