#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Role and project type enums for crewflow."""

from enum import Enum


class Role(Enum):
    """The four pipeline stages."""
    MANAGER = "manager"
    ENGINEER = "engineer"
    QA = "qa"
    TECH_LEAD = "tech_lead"

    @property
    def config_key(self) -> str:
        """Key used for this role under ``agents:`` in the config file."""
        return _CONFIG_KEYS[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_config_key(cls, key: str) -> "Role":
        for role, name in _CONFIG_KEYS.items():
            if name == key or role.value == key:
                return role
        raise ValueError(f"Unknown role: {key}")


_CONFIG_KEYS = {
    Role.MANAGER: "engineering_manager",
    Role.ENGINEER: "senior_engineer",
    Role.QA: "senior_qa",
    Role.TECH_LEAD: "senior_tech_lead",
}

_DISPLAY_NAMES = {
    Role.MANAGER: "Engineering Manager",
    Role.ENGINEER: "Senior Engineer",
    Role.QA: "QA Engineer",
    Role.TECH_LEAD: "Tech Lead",
}


class ProjectType(Enum):
    """Toolchains the agents know how to build, test and format."""
    GO = "go"
    PYTHON = "python"
    TYPESCRIPT = "typescript"

    @classmethod
    def parse(cls, value: str) -> "ProjectType":
        normalized = (value or "").strip().lower()
        aliases = {"golang": "go", "py": "python", "ts": "typescript", "javascript": "typescript", "js": "typescript"}
        normalized = aliases.get(normalized, normalized)
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unsupported project type: {value!r} (expected go, python or typescript)")
