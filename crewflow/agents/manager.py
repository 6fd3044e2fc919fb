#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Engineering Manager: turns a request into a structured brief."""

from typing import Optional

from crewflow.agents.base import RoleAgent, StepRequest
from crewflow.agents.prompts import ACTION_FORMAT, AGENTS_MD_SKELETON, DOCUMENT_PROMPT, MANAGER_PROMPT
from crewflow.errors import ToolError
from crewflow.execution.action_parser import parse_actions, parse_manager_brief
from crewflow.execution.step_executor import LENIENT_POLICY
from crewflow.execution.timeout_manager import Deadline
from crewflow.models import Role, StepOutcome, WorkflowResult
from crewflow.tools.toolset import ToolSet

KNOWLEDGE_FILE = "agents/AGENTS.md"
FALLBACK_KNOWLEDGE_FILE = "AGENTS.md"


class ManagerAgent(RoleAgent):
    """Plans the work and owns the team knowledge file."""

    role = Role.MANAGER

    def run(self, request: StepRequest) -> StepOutcome:
        """Plan the task and prepare the project.

        Args:
            request: Step input; ``request.task`` is the user's task

        Returns:
            StepOutcome whose ``next_steps`` carries the brief for the engineer
        """
        created = self.ensure_knowledge_file(request.toolset)

        prompt = MANAGER_PROMPT.format(
            project_type=request.project_type.value,
            task=request.task,
            original_task=request.original_task,
            action_format=ACTION_FORMAT,
            context=request.project_context or "(none)",
        )
        response = self.generate(request, prompt)
        if not response.strip():
            return StepOutcome.failed("Task analysis failed: empty plan", "LLM returned an empty response")

        report = self.executor(request).execute(parse_actions(response), LENIENT_POLICY, request.deadline)
        for warning in report.warnings:
            self.log("SETUP_WARNING", {"warning": warning}, "WARNING")
        files = ([created] if created else []) + report.unique_files()
        if report.failed:
            return StepOutcome.failed(
                "Task analysis failed while preparing the project",
                report.error,
                files_modified=files,
                commands_executed=report.commands_executed,
                output=report.output,
            )

        brief = parse_manager_brief(response)
        next_steps = brief.render() if not brief.is_empty else request.task
        summary = brief.task or _first_line(request.task)
        return StepOutcome.succeeded(
            f"Task analysis complete: {summary}",
            files_modified=files,
            commands_executed=report.commands_executed,
            output="\n\n".join(part for part in (response.strip(), report.output) if part),
            next_steps=next_steps,
        )

    def ensure_knowledge_file(self, toolset: ToolSet) -> Optional[str]:
        """Create the knowledge file skeleton if missing; returns its path when created."""
        if toolset.files.exists(KNOWLEDGE_FILE) or toolset.files.exists(FALLBACK_KNOWLEDGE_FILE):
            return None
        try:
            return toolset.write_file(KNOWLEDGE_FILE, AGENTS_MD_SKELETON)
        except (OSError, ToolError) as exc:
            self.log("KNOWLEDGE_FILE_UNWRITABLE", {"error": str(exc)}, "WARNING")
            return None

    def document_task(self, description: str, result: WorkflowResult, toolset: ToolSet, deadline: Deadline) -> str:
        """Fold a completed run into the knowledge file; returns the path written.

        Raises on failure; callers treat documentation as best effort.
        """
        current = ""
        for candidate in (KNOWLEDGE_FILE, FALLBACK_KNOWLEDGE_FILE):
            if toolset.files.exists(candidate):
                current = toolset.read_file(candidate)
                break

        prompt = DOCUMENT_PROMPT.format(
            current=current or AGENTS_MD_SKELETON,
            description=description,
            files=", ".join(result.files_modified) or "(none)",
            tests=", ".join(result.tests_added) or "(none)",
            phases=", ".join(result.completed_phases),
        )
        timeout = deadline.cap(self.config.agent_timeout_seconds(self.role))
        content = _strip_fences(self.llm.generate(prompt, timeout=timeout))
        if not content.strip():
            raise ToolError("documentation update produced no content")

        try:
            return toolset.write_file(KNOWLEDGE_FILE, content + "\n")
        except (OSError, ToolError) as exc:
            self.log("KNOWLEDGE_FILE_FALLBACK", {"error": str(exc)}, "WARNING")
            return toolset.write_file(FALLBACK_KNOWLEDGE_FILE, content + "\n")


def _strip_fences(text: str) -> str:
    lines = text.strip().splitlines()
    if lines and lines[0].startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].strip().startswith("```"):
        lines = lines[:-1]
    return "\n".join(lines).strip()


def _first_line(text: str) -> str:
    for line in (text or "").splitlines():
        if line.strip():
            return line.strip()
    return ""
