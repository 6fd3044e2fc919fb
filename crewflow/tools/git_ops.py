#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Read-only git helpers used to build project context."""

import pathlib
import subprocess
from typing import List

from crewflow.debug_logger import get_logger

GIT_TIMEOUT_SECONDS = 30
MAX_DIFF_CHARS = 30000

logger = get_logger()


class GitOps:
    """git status / diff for one working directory.

    Outside a repository every query returns an empty string; callers treat
    "no git" as "nothing changed".
    """

    def __init__(self, root: pathlib.Path):
        self.root = pathlib.Path(root)

    def _git(self, *args: str) -> str:
        try:
            proc = subprocess.run(
                ["git", *args],
                cwd=self.root,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=GIT_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.log("git", "GIT_UNAVAILABLE", {"args": list(args), "error": str(exc)}, "WARNING")
            return ""
        if proc.returncode != 0:
            logger.log("git", "GIT_COMMAND_FAILED", {"args": list(args), "stderr": proc.stderr.strip()}, "DEBUG")
            return ""
        return proc.stdout

    def is_repo(self) -> bool:
        return self._git("rev-parse", "--is-inside-work-tree").strip() == "true"

    def status(self) -> str:
        return self._git("status", "--porcelain")

    def diff(self) -> str:
        output = self._git("diff")
        if len(output) > MAX_DIFF_CHARS:
            return output[:MAX_DIFF_CHARS] + "\n...[diff truncated]..."
        return output

    def changed_files(self) -> List[str]:
        """Paths from ``git status --porcelain`` (renames report the new path)."""
        files = []
        for line in self.status().splitlines():
            if len(line) < 4:
                continue
            path = line[3:].strip()
            if " -> " in path:
                path = path.split(" -> ", 1)[1]
            files.append(path.strip('"'))
        return files
