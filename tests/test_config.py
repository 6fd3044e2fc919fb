#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Tests for workflow configuration loading."""

from pathlib import Path

import pytest

from crewflow import config as config_module
from crewflow.config import (
    AgentConfig,
    WorkflowConfig,
    apply_env_overrides,
    find_config_file,
    load_config,
)
from crewflow.errors import ConfigurationError
from crewflow.models import Role


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    for name in ("CREWFLOW_CONFIG", "CREWFLOW_MAX_ITERATIONS", "CREWFLOW_TIMEOUT_MINUTES", "CREWFLOW_MODEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_FILES", ())


def test_defaults():
    cfg = WorkflowConfig()
    assert cfg.max_total_iterations == 7
    assert cfg.timeout_minutes == 15
    assert cfg.max_recovery_attempts == 3
    assert cfg.max_iterations(Role.MANAGER) == 2
    assert cfg.max_iterations(Role.ENGINEER) == 3
    assert cfg.max_iterations(Role.QA) == 2
    assert cfg.max_iterations(Role.TECH_LEAD) == 2
    assert cfg.timeout_seconds == 900.0
    cfg.validate()


def test_role_without_agent_entry_gets_default_cap():
    cfg = WorkflowConfig(agents={Role.MANAGER: AgentConfig(model="m", max_iterations=4)})
    assert cfg.max_iterations(Role.MANAGER) == 4
    assert cfg.max_iterations(Role.QA) == config_module.DEFAULT_MAX_ITERATIONS


def test_from_yaml(tmp_path: Path):
    path = tmp_path / "crewflow.yaml"
    path.write_text(
        "workflow:\n"
        "  max_total_iterations: 9\n"
        "  timeout_minutes: 30\n"
        "agents:\n"
        "  senior_engineer:\n"
        "    model: codellama\n"
        "    max_iterations: 5\n"
        "commands:\n"
        "  allowed: [go build, go test]\n"
        "restrictions:\n"
        "  blocked_patterns: [sudo]\n"
    )
    cfg, error = WorkflowConfig.from_yaml(path)

    assert error is None
    assert cfg.max_total_iterations == 9
    assert cfg.timeout_minutes == 30
    assert cfg.agent(Role.ENGINEER).model == "codellama"
    assert cfg.max_iterations(Role.ENGINEER) == 5
    assert cfg.max_iterations(Role.QA) == 2
    assert cfg.allowed_commands == ["go build", "go test"]
    assert cfg.blocked_patterns == ["sudo"]


def test_from_yaml_reports_errors_instead_of_raising(tmp_path: Path):
    bad_yaml = tmp_path / "bad.yaml"
    bad_yaml.write_text("workflow: [unclosed\n")
    cfg, error = WorkflowConfig.from_yaml(bad_yaml)
    assert cfg is None
    assert "failed to decode" in error

    cfg, error = WorkflowConfig.from_yaml(tmp_path / "missing.yaml")
    assert cfg is None
    assert "failed to read" in error


@pytest.mark.parametrize("content, message", [
    ("workflow:\n  timeout_minutes: 0\n", "timeout_minutes"),
    ("workflow:\n  max_total_iterations: many\n", "max_total_iterations"),
    ("agents:\n  intern:\n    model: x\n", "Unknown role"),
    ("agents:\n  senior_qa:\n    max_iterations: -1\n", "senior_qa"),
    ("commands:\n  allowed: []\n", "allowed command"),
    ("- just\n- a list\n", "mapping"),
])
def test_invalid_values(tmp_path: Path, content, message):
    path = tmp_path / "crewflow.yaml"
    path.write_text(content)
    cfg, error = WorkflowConfig.from_yaml(path)
    assert cfg is None
    assert message in error


def test_load_config_defaults_without_file():
    assert load_config().to_dict() == WorkflowConfig().to_dict()


def test_load_config_raises_on_invalid_file(tmp_path: Path):
    path = tmp_path / "crewflow.yaml"
    path.write_text("workflow:\n  stuck_threshold: 0\n")
    with pytest.raises(ConfigurationError, match="stuck_threshold"):
        load_config(str(path))


def test_find_config_file_prefers_explicit_then_env(tmp_path: Path, monkeypatch):
    env_path = tmp_path / "env.yaml"
    monkeypatch.setenv("CREWFLOW_CONFIG", str(env_path))
    assert find_config_file("explicit.yaml") == Path("explicit.yaml")
    assert find_config_file() == env_path


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CREWFLOW_MAX_ITERATIONS", "11")
    monkeypatch.setenv("CREWFLOW_TIMEOUT_MINUTES", "2")
    monkeypatch.setenv("CREWFLOW_MODEL", "llama3")
    cfg = apply_env_overrides(WorkflowConfig())
    assert cfg.max_total_iterations == 11
    assert cfg.timeout_minutes == 2
    assert all(cfg.agent(role).model == "llama3" for role in Role)


def test_env_override_must_be_integer(monkeypatch):
    monkeypatch.setenv("CREWFLOW_TIMEOUT_MINUTES", "soon")
    with pytest.raises(ConfigurationError, match="CREWFLOW_TIMEOUT_MINUTES"):
        apply_env_overrides(WorkflowConfig())


def test_to_dict_round_trip():
    cfg = WorkflowConfig(max_total_iterations=4).with_model("phi3")
    again = WorkflowConfig.from_dict(cfg.to_dict())
    assert again.to_dict() == cfg.to_dict()
