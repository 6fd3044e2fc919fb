#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Capability interface handed to agents.

A :class:`ToolSet` is bound to exactly one working directory. Each workflow
run binds its own toolset, so concurrent runs never share a directory
binding.
"""

import pathlib
from typing import List, Optional

from crewflow.config import WorkflowConfig
from crewflow.debug_logger import get_logger
from crewflow.errors import ToolError
from crewflow.tools.command_runner import CommandResult, CommandRunner, CommandValidator
from crewflow.tools.file_ops import FileOps
from crewflow.tools.git_ops import GitOps

CONTEXT_FILES = ("CLAUDE.md", "AGENTS.md", "agents/AGENTS.md")
MAX_CONTEXT_FILE_CHARS = 8000

logger = get_logger()


class ToolSet:
    """File, command and git capabilities for one working directory."""

    def __init__(self, config: WorkflowConfig, working_directory: str = "."):
        self.config = config
        self.validator = CommandValidator(config.allowed_commands, config.blocked_patterns)
        self.set_working_directory(working_directory)

    def set_working_directory(self, working_directory: str) -> None:
        root = pathlib.Path(working_directory).resolve()
        if not root.is_dir():
            raise FileNotFoundError(f"working directory does not exist: {working_directory}")
        self.working_directory = root
        self.files = FileOps(root)
        self.git = GitOps(root)
        self.commands = CommandRunner(self.validator, str(root), self.config.command_timeout_seconds)

    def bound_to(self, working_directory: str) -> "ToolSet":
        """A fresh toolset sharing this config, bound to another directory."""
        return ToolSet(self.config, working_directory)

    def read_file(self, path: str) -> str:
        return self.files.read_file(path)

    def write_file(self, path: str, content: str) -> str:
        written = self.files.write_file(path, content)
        logger.log_tool_execution("write_file", {"path": path, "bytes": len(content)}, result=written)
        return written

    def list_files(self, directory: str = ".") -> List[str]:
        return self.files.list_files(directory)

    def find_files(self, pattern: str, directory: str = ".") -> List[str]:
        return self.files.find_files(pattern, directory)

    def execute_command(self, command: str, timeout: Optional[float] = None) -> CommandResult:
        return self.commands.run(command, timeout=timeout)

    def validate_command(self, command: str) -> None:
        self.validator.validate(command)

    def git_status(self) -> str:
        return self.git.status()

    def git_diff(self) -> str:
        return self.git.diff()

    def changed_files(self) -> List[str]:
        return self.git.changed_files()

    def project_context(self) -> str:
        """Git state plus project guidance files, appended to every prompt."""
        sections = []
        status = self.git_status().strip()
        if status:
            sections.append(f"## Git status\n{status}")
        diff = self.git_diff().strip()
        if diff:
            sections.append(f"## Git diff\n{diff}")
        for name in CONTEXT_FILES:
            if not self.files.exists(name):
                continue
            try:
                text = self.files.read_file(name)
            except (OSError, ToolError) as exc:
                logger.log("tools", "CONTEXT_FILE_UNREADABLE", {"path": name, "error": str(exc)}, "WARNING")
                continue
            if len(text) > MAX_CONTEXT_FILE_CHARS:
                text = text[:MAX_CONTEXT_FILE_CHARS] + "\n...[truncated]..."
            sections.append(f"## {name}\n{text}")
        return "\n\n".join(sections)
