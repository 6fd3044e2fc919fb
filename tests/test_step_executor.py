#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Tests for executing parsed actions under role policies."""

from pathlib import Path

from crewflow.execution.action_parser import parse_actions
from crewflow.execution.step_executor import LENIENT_POLICY, STRICT_POLICY, ExecutionPolicy, StepExecutor
from crewflow.execution.timeout_manager import Deadline


def test_write_and_read(toolset, tmp_path: Path):
    actions = parse_actions(
        "ACTION: WRITE_FILE\nPATH: a.txt\nCONTENT:\nhello\nworld\n"
        "ACTION: READ_FILE\nPATH: a.txt\n"
    )
    report = StepExecutor(toolset).execute(actions)
    assert not report.failed
    assert report.files_modified == ["a.txt"]
    assert report.files_read == ["a.txt"]
    assert (tmp_path / "a.txt").read_text() == "hello\nworld"
    assert "READ a.txt:\nhello\nworld" in report.output


def test_strict_policy_stops_at_first_failure(toolset, tmp_path: Path):
    actions = parse_actions(
        "ACTION: READ_FILE\nPATH: missing.go\n"
        "ACTION: WRITE_FILE\nPATH: b.txt\nCONTENT:\nx\n"
    )
    report = StepExecutor(toolset).execute(actions, STRICT_POLICY)
    assert report.failed
    assert "read_file failed for missing.go" in report.error
    assert not (tmp_path / "b.txt").exists()


def test_lenient_policy_records_warnings(toolset, tmp_path: Path):
    actions = parse_actions(
        "ACTION: READ_FILE\nPATH: missing.go\n"
        "ACTION: EXECUTE_COMMAND\nCOMMAND: sudo rm x\n"
        "ACTION: WRITE_FILE\nPATH: b.txt\nCONTENT:\nx\n"
    )
    report = StepExecutor(toolset).execute(actions, LENIENT_POLICY)
    assert not report.failed
    assert len(report.warnings) == 2
    assert report.files_modified == ["b.txt"]


def test_failed_command_output_is_kept(toolset):
    report = StepExecutor(toolset).execute(parse_actions("ACTION: EXECUTE_COMMAND\nCOMMAND: ls missing-dir"))
    assert report.failed
    assert report.commands_executed == ["ls missing-dir"]
    assert "missing-dir" in report.error_output


def test_give_up_stops_execution(toolset, tmp_path: Path):
    actions = parse_actions("ACTION: GIVE_UP\nACTION: WRITE_FILE\nPATH: c.txt\nCONTENT:\nx")
    report = StepExecutor(toolset).execute(actions)
    assert report.gave_up
    assert not (tmp_path / "c.txt").exists()


def test_expired_deadline_fails_batch(toolset, fake_clock):
    deadline = Deadline(10, clock=fake_clock)
    fake_clock.advance(11)
    report = StepExecutor(toolset).execute(parse_actions("ACTION: LIST_FILES\nPATH: ."), deadline=deadline)
    assert report.failed
    assert "deadline" in report.error


def test_list_and_find(toolset, tmp_path: Path):
    (tmp_path / "main.go").write_text("package main")
    actions = parse_actions("ACTION: LIST_FILES\nACTION: FIND_FILES\nPATTERN: main")
    report = StepExecutor(toolset).execute(actions)
    assert "LIST .:\nmain.go" in report.output
    assert "main.go" in report.output.split("FIND", 1)[1]


def test_duplicate_writes_are_deduplicated(toolset):
    actions = parse_actions(
        "ACTION: WRITE_FILE\nPATH: a.txt\nCONTENT:\n1\n"
        "ACTION: WRITE_FILE\nPATH: a.txt\nCONTENT:\n2\n"
    )
    report = StepExecutor(toolset).execute(actions)
    assert report.unique_files() == ["a.txt"]


def test_reads_count_as_modified_only_when_policy_says_so(toolset, tmp_path: Path):
    (tmp_path / "main.go").write_text("package main")
    actions = parse_actions("ACTION: READ_FILE\nPATH: main.go\nACTION: WRITE_FILE\nPATH: b.txt\nCONTENT:\nx\n")

    default = StepExecutor(toolset).execute(actions)
    assert default.files_modified == ["b.txt"]

    report = StepExecutor(toolset).execute(actions, ExecutionPolicy(record_reads_as_modified=True))
    assert report.files_read == ["main.go"]
    assert report.files_modified == ["main.go", "b.txt"]
