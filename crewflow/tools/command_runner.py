#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Validated command execution.

Commands are checked against two lists before they run:

* blocked patterns veto first; a pattern matches as a whole word sequence,
  so ``at`` blocks the ``at`` scheduler but not ``cat``;
* the command must then start with an allowed prefix (``go test``,
  ``python -m pytest`` ...).

Validated commands are split with shlex and executed without a shell, so
shell operators are rejected outright.
"""

import os
import re
import shlex
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence

from crewflow.debug_logger import get_logger
from crewflow.errors import CommandError, CommandRestrictedError

# Shell operators have no meaning without a shell; reject them up front
FORBIDDEN_RE = re.compile(r"[;&|><`]|(\$\()|\r|\n")

MAX_OUTPUT_CHARS = 20000

logger = get_logger()


def _pattern_regex(pattern: str) -> "re.Pattern[str]":
    body = re.escape(pattern.strip().lower())
    left = r"(?<![\w-])" if pattern[:1].isalnum() else ""
    right = r"(?![\w-])" if pattern[-1:].isalnum() else ""
    return re.compile(left + body + right)


class CommandValidator:
    """Allow-list prefix match with block-list veto."""

    def __init__(self, allowed: Sequence[str], blocked_patterns: Sequence[str]):
        self.allowed = [item.strip() for item in allowed if item.strip()]
        self.blocked_patterns = [item for item in blocked_patterns if item.strip()]
        self._blocked = [(item, _pattern_regex(item)) for item in self.blocked_patterns]

    def blocked_by(self, command: str) -> Optional[str]:
        lowered = command.strip().lower()
        for pattern, regex in self._blocked:
            if regex.search(lowered):
                return pattern
        return None

    def allowed_prefix(self, command: str) -> Optional[str]:
        stripped = " ".join(command.split())
        for prefix in self.allowed:
            if stripped == prefix or stripped.startswith(prefix + " "):
                return prefix
        return None

    def is_allowed(self, command: str) -> bool:
        try:
            self.validate(command)
        except CommandRestrictedError:
            return False
        return True

    def validate(self, command: str) -> List[str]:
        """Return the argv for ``command`` or raise CommandRestrictedError."""
        if not command or not command.strip():
            raise CommandRestrictedError("command restricted: empty command")
        blocked = self.blocked_by(command)
        if blocked:
            raise CommandRestrictedError(f"command restricted: matches blocked pattern {blocked!r}: {command}")
        if not self.allowed_prefix(command):
            raise CommandRestrictedError(f"command restricted: not in allowed list: {command}")
        if FORBIDDEN_RE.search(command):
            raise CommandRestrictedError(f"command restricted: shell operators are not allowed: {command}")
        try:
            return shlex.split(command)
        except ValueError as exc:
            raise CommandRestrictedError(f"command restricted: failed to parse command: {exc}") from exc


@dataclass
class CommandResult:
    command: str
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _clip(text: str) -> str:
    if len(text) <= MAX_OUTPUT_CHARS:
        return text
    return "...[output truncated]...\n" + text[-MAX_OUTPUT_CHARS:]


class CommandRunner:
    """Run validated commands in a working directory."""

    def __init__(self, validator: CommandValidator, cwd: str, default_timeout: float = 300):
        self.validator = validator
        self.cwd = cwd
        self.default_timeout = default_timeout

    def run(self, command: str, timeout: Optional[float] = None) -> CommandResult:
        """Run ``command`` and return its combined output.

        Raises:
            CommandRestrictedError: validation rejected the command.
            CommandError: the command exited non-zero, timed out or could not start.
        """
        argv = self.validator.validate(command)
        effective_timeout = self.default_timeout if timeout is None else min(timeout, self.default_timeout)
        if effective_timeout <= 0:
            raise CommandError(f"command timeout: no time left to run {command}")

        try:
            proc = subprocess.run(
                argv,
                cwd=self.cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                timeout=effective_timeout,
                env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
            )
        except subprocess.TimeoutExpired as exc:
            output = exc.output if isinstance(exc.output, str) else ""
            raise CommandError(f"command timed out after {effective_timeout:.0f}s: {command}",
                               output=_clip(output), returncode=-1) from exc
        except OSError as exc:
            raise CommandError(f"command failed to start: {command}: {exc}") from exc

        result = CommandResult(command=command, returncode=proc.returncode, output=_clip(proc.stdout or ""))
        logger.log_tool_execution("execute_command", {"command": command}, result=f"rc={proc.returncode}")
        if not result.ok:
            raise CommandError(
                f"command failed with exit code {proc.returncode}: {command}",
                output=result.output,
                returncode=proc.returncode,
            )
        return result
