#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Version helpers for crewflow."""

from __future__ import annotations

from pathlib import Path
import subprocess
from typing import Optional

from crewflow._version import CREWFLOW_VERSION, CREWFLOW_GIT_COMMIT


def get_version() -> str:
    """Return the package version, preferring installed metadata when the constant is unset."""
    if CREWFLOW_VERSION:
        return CREWFLOW_VERSION

    try:
        from importlib.metadata import version

        return version("crewflow")
    except Exception:
        return "unknown"


def get_git_commit(short: bool = True) -> Optional[str]:
    """Return the git commit hash, preferring the build-time value if present."""
    if CREWFLOW_GIT_COMMIT and CREWFLOW_GIT_COMMIT != "unknown":
        return CREWFLOW_GIT_COMMIT[:7] if short else CREWFLOW_GIT_COMMIT

    cmd = ["git", "rev-parse", "--short", "HEAD"] if short else ["git", "rev-parse", "HEAD"]
    try:
        repo_root = Path(__file__).resolve().parent.parent
        commit = subprocess.check_output(cmd, cwd=repo_root, stderr=subprocess.DEVNULL)
        return commit.decode().strip()
    except (OSError, subprocess.CalledProcessError):
        return None


def version_banner() -> str:
    """Human readable version string for ``--version``."""
    commit = get_git_commit()
    if commit:
        return f"crewflow {get_version()} ({commit})"
    return f"crewflow {get_version()}"
