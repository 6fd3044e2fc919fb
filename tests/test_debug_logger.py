#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from pathlib import Path

from crewflow.debug_logger import DebugLogger, get_logger, log_function, prune_old_logs


def test_plain_logging_helpers_write_when_enabled(tmp_path: Path):
    logger = DebugLogger.initialize(enabled=True, log_dir=tmp_path)

    logger.info("info message")
    logger.warning("warn %s", "message")
    logger.error("error message")
    logger.debug("debug message")
    logger.close()

    log_file = logger.log_file_path
    assert log_file is not None
    assert log_file.exists()
    assert log_file.name.startswith("crewflow_debug_")

    content = log_file.read_text()
    assert "crewflow.general" in content
    assert "info message" in content
    assert "warn message" in content
    assert "error message" in content
    assert "debug message" in content
    assert "DEBUG_SESSION_END" in content


def test_plain_logging_helpers_are_noops_when_disabled(tmp_path: Path):
    logger = DebugLogger.initialize(enabled=False, log_dir=tmp_path)

    logger.info("info message")
    logger.warning("warn message")
    logger.log("orchestrator", "WORKFLOW_PHASE", {"phase": "manager"})

    assert logger.log_file_path is None
    assert not any(tmp_path.iterdir())


def test_initialize_enables_the_instance_modules_already_hold(tmp_path: Path):
    held = get_logger()
    assert not held.enabled

    logger = DebugLogger.initialize(enabled=True, log_dir=tmp_path)

    assert logger is held
    assert held.enabled


def test_workflow_events_are_structured(tmp_path: Path):
    logger = DebugLogger.initialize(enabled=True, log_dir=tmp_path)

    logger.log_transition("engineer", "qa", "Implementation complete, ready for testing")
    logger.log_workflow_phase("WORKFLOW_FAILED", {"failure_reason": "timeout"})
    logger.log_tool_execution("execute_command", {"command": "go build ./..."}, error="exit code 1")
    logger.close()

    content = logger.log_file_path.read_text()
    assert "crewflow.orchestrator" in content
    assert '"to": "qa"' in content
    assert '"failure_reason": "timeout"' in content
    assert "crewflow.tools" in content
    assert "exit code 1" in content


def test_log_function_decorator(tmp_path: Path):
    logger = DebugLogger.initialize(enabled=True, log_dir=tmp_path)

    @log_function("tools")
    def add(a, b):
        return a + b

    assert add(1, 2) == 3
    logger.close()
    assert '"function": "add"' in logger.log_file_path.read_text()


def test_prune_old_logs_keeps_newest(tmp_path: Path):
    import os

    for index in range(4):
        path = tmp_path / f"crewflow_debug_{index}.log"
        path.write_text("x")
        os.utime(path, (index, index))

    prune_old_logs(tmp_path, keep=2)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["crewflow_debug_2.log", "crewflow_debug_3.log"]
