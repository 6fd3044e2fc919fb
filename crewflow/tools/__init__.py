#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Capability layer: files, commands and git bound to a working directory."""

from crewflow.tools.command_runner import CommandResult, CommandRunner, CommandValidator
from crewflow.tools.file_ops import FileOps
from crewflow.tools.git_ops import GitOps
from crewflow.tools.toolset import ToolSet

__all__ = [
    "CommandResult",
    "CommandRunner",
    "CommandValidator",
    "FileOps",
    "GitOps",
    "ToolSet",
]
