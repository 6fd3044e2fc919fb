#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Execution of parsed actions against the capability layer.

Each role tolerates tool failures differently (a manager's exploratory
command failing is only a warning, an engineer's failed write is fatal), so
execution is driven by an :class:`ExecutionPolicy`. Tool errors never
escape: they are recorded in the report and, when the policy says so,
become the step's failure.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from crewflow.debug_logger import get_logger
from crewflow.errors import CommandError, CommandRestrictedError, ToolError
from crewflow.execution.timeout_manager import Deadline
from crewflow.models import Action, ActionType, dedupe
from crewflow.tools.toolset import ToolSet

MAX_READ_ECHO_CHARS = 4000

logger = get_logger()


@dataclass(frozen=True)
class ExecutionPolicy:
    """Which tool failures abort a role's step."""
    fail_on_read_error: bool = True
    fail_on_write_error: bool = True
    fail_on_command_error: bool = True
    fail_on_blocked_command: bool = True
    record_reads_as_modified: bool = False


LENIENT_POLICY = ExecutionPolicy(
    fail_on_read_error=False,
    fail_on_write_error=True,
    fail_on_command_error=False,
    fail_on_blocked_command=False,
)

STRICT_POLICY = ExecutionPolicy()


@dataclass
class ExecutionReport:
    """What happened while executing one batch of actions."""
    files_modified: List[str] = field(default_factory=list)
    files_read: List[str] = field(default_factory=list)
    commands_executed: List[str] = field(default_factory=list)
    output_blocks: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error: str = ""
    error_output: str = ""
    gave_up: bool = False

    @property
    def failed(self) -> bool:
        return bool(self.error)

    @property
    def output(self) -> str:
        return "\n\n".join(self.output_blocks)

    def unique_files(self) -> List[str]:
        return list(dedupe(self.files_modified))


class StepExecutor:
    """Performs actions in order and stops at the first fatal failure."""

    def __init__(self, toolset: ToolSet):
        self.toolset = toolset

    def execute(
        self,
        actions: List[Action],
        policy: ExecutionPolicy = STRICT_POLICY,
        deadline: Optional[Deadline] = None,
    ) -> ExecutionReport:
        report = ExecutionReport()
        for action in actions:
            if action.type is ActionType.GIVE_UP:
                report.gave_up = True
                report.output_blocks.append("GIVE_UP")
                break
            if deadline is not None and deadline.expired:
                report.error = "step deadline exceeded while executing actions"
                break

            handler = _HANDLERS[action.type]
            handler(self, action, policy, report, deadline)
            if report.failed:
                break
        return report

    def _read(self, action: Action, policy: ExecutionPolicy, report: ExecutionReport, deadline):
        try:
            text = self.toolset.read_file(action.path)
        except (OSError, ToolError) as exc:
            self._tool_failure(report, "read_file", action.path, exc, policy.fail_on_read_error)
            return
        report.files_read.append(action.path)
        if policy.record_reads_as_modified:
            report.files_modified.append(action.path)
        shown = text if len(text) <= MAX_READ_ECHO_CHARS else text[:MAX_READ_ECHO_CHARS] + "\n...[truncated]..."
        report.output_blocks.append(f"READ {action.path}:\n{shown}")

    def _write(self, action: Action, policy: ExecutionPolicy, report: ExecutionReport, deadline):
        try:
            written = self.toolset.write_file(action.path, action.content)
        except (OSError, ToolError) as exc:
            self._tool_failure(report, "write_file", action.path, exc, policy.fail_on_write_error)
            return
        report.files_modified.append(written)
        report.output_blocks.append(f"WROTE {written} ({len(action.content)} chars)")

    def _command(self, action: Action, policy: ExecutionPolicy, report: ExecutionReport, deadline):
        timeout = deadline.remaining() if deadline is not None else None
        try:
            result = self.toolset.execute_command(action.command, timeout=timeout)
        except CommandRestrictedError as exc:
            self._tool_failure(report, "execute_command", action.command, exc, policy.fail_on_blocked_command)
            return
        except CommandError as exc:
            report.commands_executed.append(action.command)
            report.output_blocks.append(f"$ {action.command}\n{exc.output}")
            self._tool_failure(report, "execute_command", action.command, exc, policy.fail_on_command_error,
                               output=exc.output)
            return
        report.commands_executed.append(action.command)
        report.output_blocks.append(f"$ {action.command}\n{result.output}")

    def _list(self, action: Action, policy: ExecutionPolicy, report: ExecutionReport, deadline):
        directory = action.path or "."
        try:
            entries = self.toolset.list_files(directory)
        except (OSError, ToolError) as exc:
            self._tool_failure(report, "list_files", directory, exc, policy.fail_on_read_error)
            return
        report.output_blocks.append(f"LIST {directory}:\n" + "\n".join(entries))

    def _find(self, action: Action, policy: ExecutionPolicy, report: ExecutionReport, deadline):
        directory = action.search_path or "."
        try:
            matches = self.toolset.find_files(action.pattern, directory)
        except (OSError, ToolError) as exc:
            self._tool_failure(report, "find_files", action.pattern, exc, policy.fail_on_read_error)
            return
        report.output_blocks.append(f"FIND {action.pattern!r} in {directory}:\n" + "\n".join(matches))

    def _tool_failure(self, report: ExecutionReport, tool: str, target: str, exc: Exception,
                      fatal: bool, output: str = ""):
        message = f"{tool} failed for {target}: {exc}"
        logger.log_tool_execution(tool, {"target": target}, error=str(exc))
        if fatal:
            report.error = message
            report.error_output = output
        else:
            report.warnings.append(message)
            report.output_blocks.append(f"WARNING: {message}")


_HANDLERS = {
    ActionType.READ_FILE: StepExecutor._read,
    ActionType.WRITE_FILE: StepExecutor._write,
    ActionType.EXECUTE_COMMAND: StepExecutor._command,
    ActionType.LIST_FILES: StepExecutor._list,
    ActionType.FIND_FILES: StepExecutor._find,
}
