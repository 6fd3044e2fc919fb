#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Tests for the working-directory bound capability layer."""

from pathlib import Path

import pytest

from crewflow.errors import CommandRestrictedError, PathAccessError
from crewflow.tools.toolset import ToolSet


def test_write_creates_parents_and_returns_relative_path(toolset, tmp_path: Path):
    written = toolset.write_file("pkg/api/handler.go", "package api\n")
    assert written == "pkg/api/handler.go"
    assert (tmp_path / "pkg" / "api" / "handler.go").read_text() == "package api\n"
    assert toolset.read_file("pkg/api/handler.go") == "package api\n"


def test_paths_outside_working_directory_are_denied(toolset, tmp_path: Path):
    outside = tmp_path.parent / "outside.txt"
    with pytest.raises(PathAccessError, match="outside working directory"):
        toolset.write_file("../outside.txt", "x")
    with pytest.raises(PathAccessError):
        toolset.read_file(str(outside))
    assert not outside.exists()


def test_read_missing_file(toolset):
    with pytest.raises(FileNotFoundError):
        toolset.read_file("nope.txt")


def test_list_files_marks_directories(toolset, tmp_path: Path):
    (tmp_path / "cmd").mkdir()
    (tmp_path / "go.mod").write_text("module x\n")
    assert toolset.list_files(".") == ["cmd/", "go.mod"]


def test_find_files_skips_excluded_directories(toolset, tmp_path: Path):
    (tmp_path / "internal").mkdir()
    (tmp_path / "internal" / "Handler.go").write_text("")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "handler.js").write_text("")
    assert toolset.find_files("handler") == ["internal/Handler.go"]


def test_validate_command_uses_config_lists(toolset):
    toolset.validate_command("go build ./...")
    with pytest.raises(CommandRestrictedError):
        toolset.validate_command("sudo go build")


def test_project_context_includes_guidance_files(toolset, tmp_path: Path):
    (tmp_path / "CLAUDE.md").write_text("Use table driven tests.")
    (tmp_path / "agents").mkdir()
    (tmp_path / "agents" / "AGENTS.md").write_text("# Team notes")
    context = toolset.project_context()
    assert "## CLAUDE.md\nUse table driven tests." in context
    assert "## agents/AGENTS.md\n# Team notes" in context


def test_project_context_empty_directory(toolset):
    assert toolset.project_context() == ""


def test_missing_working_directory_is_rejected(config, tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        ToolSet(config, str(tmp_path / "missing"))


def test_bound_to_gives_independent_binding(toolset, tmp_path: Path):
    other_dir = tmp_path / "other"
    other_dir.mkdir()
    other = toolset.bound_to(str(other_dir))
    other.write_file("a.txt", "x")
    assert (other_dir / "a.txt").exists()
    assert toolset.working_directory == tmp_path.resolve()
