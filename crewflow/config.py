#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Configuration constants and settings for crewflow.

Environment lookups happen only in this module. Everything else receives a
:class:`WorkflowConfig` value through its constructor.
"""

import os
import pathlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import yaml

from crewflow.errors import ConfigurationError
from crewflow.models.roles import Role

# Configuration
ROOT = pathlib.Path(os.getcwd()).resolve()
CREWFLOW_HOME = ROOT / ".crewflow"
LOGS_DIR = CREWFLOW_HOME / "logs"
DEFAULT_CONFIG_FILES = (ROOT / "crewflow.yaml", CREWFLOW_HOME / "config.yaml")

LOG_RETENTION_LIMIT = int(os.getenv("CREWFLOW_LOG_RETENTION", "20"))
DEBUG_ENABLED = os.getenv("CREWFLOW_DEBUG", "0") == "1"

DEFAULT_OLLAMA_URL = os.getenv("OLLAMA_URL", os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"))
DEFAULT_MODEL = os.getenv("CREWFLOW_MODEL", "qwen3:14b-q4_K_M")

# Roles without an explicit agent entry get this cap
DEFAULT_MAX_ITERATIONS = 2

DEFAULT_ROLE_ITERATIONS = {
    Role.MANAGER: 2,
    Role.ENGINEER: 3,
    Role.QA: 2,
    Role.TECH_LEAD: 2,
}

DEFAULT_ALLOWED_COMMANDS = [
    "go build", "go test", "go fmt", "go vet", "go mod tidy", "go run",
    "go mod download", "go mod init",
    "npm install", "npm run build", "npm test", "npm run dev",
    "npm ci", "yarn install", "yarn build", "yarn test",
    "npm run lint", "npm audit",
    "python -m pytest", "python -m pip install", "python -m compileall",
    "pip install", "pytest", "python -m venv",
    "python -m flake8", "python -m black",
    "make",
    "git add", "git status", "git diff", "git log", "git show", "git branch",
    "ls", "cat", "head", "tail", "find", "grep",
    "mkdir", "touch", "cp", "mv",
]

DEFAULT_BLOCKED_PATTERNS = [
    "sudo", "rm -rf", "chmod +x", "systemctl",
    "iptables", "mount", "cd /", "cat /etc/",
    "passwd", "usermod", "userdel", "groupmod",
    "service", "systemd", "crontab", "at",
    "wget", "curl http", "curl https", "ssh",
    "scp", "rsync", "dd", "fdisk", "mkfs",
    "chown", "chgrp", "umount", "kill -9",
]


@dataclass
class AgentConfig:
    """Per-role settings."""
    model: str = DEFAULT_MODEL
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    per_agent_timeout_minutes: int = 5

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_iterations": self.max_iterations,
            "per_agent_timeout_minutes": self.per_agent_timeout_minutes,
        }


def _default_agents() -> Dict[Role, AgentConfig]:
    return {role: AgentConfig(max_iterations=cap) for role, cap in DEFAULT_ROLE_ITERATIONS.items()}


@dataclass
class WorkflowConfig:
    """Single explicit configuration value for one crewflow process."""
    max_total_iterations: int = 7
    timeout_minutes: int = 15
    max_recovery_attempts: int = 3
    engineer_max_attempts: int = 8
    stuck_threshold: int = 3
    command_timeout_seconds: int = 300
    ollama_url: str = DEFAULT_OLLAMA_URL
    agents: Dict[Role, AgentConfig] = field(default_factory=_default_agents)
    allowed_commands: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_COMMANDS))
    blocked_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_BLOCKED_PATTERNS))

    def agent(self, role: Role) -> AgentConfig:
        return self.agents.get(role) or AgentConfig()

    def max_iterations(self, role: Role) -> int:
        agent_cfg = self.agents.get(role)
        if agent_cfg is None:
            return DEFAULT_MAX_ITERATIONS
        return agent_cfg.max_iterations

    def agent_timeout_seconds(self, role: Role) -> float:
        return float(self.agent(role).per_agent_timeout_minutes * 60)

    @property
    def timeout_seconds(self) -> float:
        return float(self.timeout_minutes * 60)

    def with_model(self, model: str) -> "WorkflowConfig":
        """Point every role at ``model``."""
        for role in Role:
            self.agents.setdefault(role, AgentConfig()).model = model
        return self

    def validate(self) -> None:
        """Raise ConfigurationError when a value cannot drive a workflow."""
        positive = {
            "max_total_iterations": self.max_total_iterations,
            "timeout_minutes": self.timeout_minutes,
            "engineer_max_attempts": self.engineer_max_attempts,
            "stuck_threshold": self.stuck_threshold,
            "command_timeout_seconds": self.command_timeout_seconds,
        }
        for name, value in positive.items():
            if not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
        if not isinstance(self.max_recovery_attempts, int) or self.max_recovery_attempts < 0:
            raise ConfigurationError("max_recovery_attempts must be a non-negative integer")
        for role, agent_cfg in self.agents.items():
            if not agent_cfg.model:
                raise ConfigurationError(f"agent {role.config_key} model is required")
            if not isinstance(agent_cfg.max_iterations, int) or agent_cfg.max_iterations <= 0:
                raise ConfigurationError(f"agent {role.config_key} max_iterations must be positive")
            if not isinstance(agent_cfg.per_agent_timeout_minutes, int) or agent_cfg.per_agent_timeout_minutes <= 0:
                raise ConfigurationError(f"agent {role.config_key} per_agent_timeout_minutes must be positive")
        if not self.allowed_commands:
            raise ConfigurationError("at least one allowed command is required")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowConfig":
        """Build a config from the parsed YAML mapping.

        Layout::

            workflow:
              max_total_iterations: 7
              timeout_minutes: 15
            agents:
              senior_engineer:
                model: qwen3:14b-q4_K_M
                max_iterations: 3
            commands:
              allowed: [...]
            restrictions:
              blocked_patterns: [...]
        """
        if not isinstance(data, dict):
            raise ConfigurationError("config root must be a mapping")

        cfg = cls()
        workflow = data.get("workflow") or {}
        if not isinstance(workflow, dict):
            raise ConfigurationError("'workflow' must be a mapping")
        for key in (
            "max_total_iterations",
            "timeout_minutes",
            "max_recovery_attempts",
            "engineer_max_attempts",
            "stuck_threshold",
            "command_timeout_seconds",
        ):
            if key in workflow:
                setattr(cfg, key, workflow[key])
        if workflow.get("ollama_url"):
            cfg.ollama_url = str(workflow["ollama_url"])

        agents = data.get("agents")
        if agents is not None:
            if not isinstance(agents, dict):
                raise ConfigurationError("'agents' must be a mapping")
            for key, entry in agents.items():
                try:
                    role = Role.from_config_key(str(key))
                except ValueError as exc:
                    raise ConfigurationError(str(exc)) from exc
                entry = entry or {}
                base = cfg.agents.get(role) or AgentConfig()
                cfg.agents[role] = AgentConfig(
                    model=str(entry.get("model", base.model)),
                    max_iterations=entry.get("max_iterations", base.max_iterations),
                    per_agent_timeout_minutes=entry.get("per_agent_timeout_minutes", base.per_agent_timeout_minutes),
                )

        commands = data.get("commands") or {}
        if "allowed" in commands:
            cfg.allowed_commands = [str(item) for item in commands.get("allowed") or []]
        restrictions = data.get("restrictions") or {}
        if "blocked_patterns" in restrictions:
            cfg.blocked_patterns = [str(item) for item in restrictions.get("blocked_patterns") or []]

        cfg.validate()
        return cfg

    @classmethod
    def from_yaml(cls, path: pathlib.Path) -> Tuple[Optional["WorkflowConfig"], Optional[str]]:
        """Load config from a YAML file.

        Returns:
            (config, None) on success, (None, error message) otherwise.
        """
        try:
            raw = yaml.safe_load(pathlib.Path(path).read_text(encoding="utf-8")) or {}
        except OSError as exc:
            return None, f"failed to read config file {path}: {exc}"
        except yaml.YAMLError as exc:
            return None, f"failed to decode config file {path}: {exc}"

        try:
            return cls.from_dict(raw), None
        except ConfigurationError as exc:
            return None, f"invalid configuration in {path}: {exc}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow": {
                "max_total_iterations": self.max_total_iterations,
                "timeout_minutes": self.timeout_minutes,
                "max_recovery_attempts": self.max_recovery_attempts,
                "engineer_max_attempts": self.engineer_max_attempts,
                "stuck_threshold": self.stuck_threshold,
                "command_timeout_seconds": self.command_timeout_seconds,
                "ollama_url": self.ollama_url,
            },
            "agents": {role.config_key: agent.to_dict() for role, agent in self.agents.items()},
            "commands": {"allowed": list(self.allowed_commands)},
            "restrictions": {"blocked_patterns": list(self.blocked_patterns)},
        }


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def apply_env_overrides(cfg: WorkflowConfig) -> WorkflowConfig:
    """Apply CREWFLOW_* environment overrides on top of a loaded config."""
    max_iterations = _env_int("CREWFLOW_MAX_ITERATIONS")
    if max_iterations is not None:
        cfg.max_total_iterations = max_iterations
    timeout_minutes = _env_int("CREWFLOW_TIMEOUT_MINUTES")
    if timeout_minutes is not None:
        cfg.timeout_minutes = timeout_minutes
    model = os.getenv("CREWFLOW_MODEL", "").strip()
    if model:
        cfg.with_model(model)
    cfg.validate()
    return cfg


def find_config_file(explicit: Optional[str] = None) -> Optional[pathlib.Path]:
    """Resolve the config file: explicit path, $CREWFLOW_CONFIG, then defaults."""
    if explicit:
        return pathlib.Path(explicit)
    env_path = os.getenv("CREWFLOW_CONFIG", "").strip()
    if env_path:
        return pathlib.Path(env_path)
    for candidate in DEFAULT_CONFIG_FILES:
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Optional[str] = None) -> WorkflowConfig:
    """Load the workflow config, falling back to built-in defaults."""
    config_path = find_config_file(path)
    if config_path is None:
        return apply_env_overrides(WorkflowConfig())

    cfg, error = WorkflowConfig.from_yaml(config_path)
    if error:
        raise ConfigurationError(error)
    return apply_env_overrides(cfg)
