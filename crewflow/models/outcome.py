#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Step outcome and parsed action records."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class ActionType(Enum):
    """Action markers an agent reply may contain."""
    READ_FILE = "READ_FILE"
    WRITE_FILE = "WRITE_FILE"
    EXECUTE_COMMAND = "EXECUTE_COMMAND"
    LIST_FILES = "LIST_FILES"
    FIND_FILES = "FIND_FILES"
    GIVE_UP = "GIVE_UP"

    @classmethod
    def lookup(cls, name: str) -> Optional["ActionType"]:
        """Return the member for ``name`` or None for unknown markers."""
        return cls.__members__.get(name.strip().upper())


@dataclass(frozen=True)
class Action:
    """One parsed action. Only the fields relevant to ``type`` are populated."""
    type: ActionType
    path: str = ""
    content: str = ""
    command: str = ""
    pattern: str = ""
    search_path: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.type is ActionType.GIVE_UP


@dataclass(frozen=True)
class StepOutcome:
    """Structured result of one role step.

    Outcomes are immutable; the classifier and router only read them.
    """
    success: bool
    message: str = ""
    error: str = ""
    files_modified: Tuple[str, ...] = ()
    commands_executed: Tuple[str, ...] = ()
    output: str = ""
    next_steps: str = ""

    @classmethod
    def succeeded(cls, message: str, **kwargs: Any) -> "StepOutcome":
        return cls(success=True, message=message, **_freeze(kwargs))

    @classmethod
    def failed(cls, message: str, error: str = "", **kwargs: Any) -> "StepOutcome":
        return cls(success=False, message=message, error=error or message, **_freeze(kwargs))

    def text_for_classification(self) -> str:
        """Lower-cased concatenation of error, output and message."""
        return f"{self.error} {self.output} {self.message}".lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "error": self.error,
            "files_modified": list(self.files_modified),
            "commands_executed": list(self.commands_executed),
            "output": self.output,
            "next_steps": self.next_steps,
        }


def _freeze(kwargs: Dict[str, Any]) -> Dict[str, Any]:
    for key in ("files_modified", "commands_executed"):
        value = kwargs.get(key)
        if value is not None and not isinstance(value, tuple):
            kwargs[key] = tuple(value)
    return kwargs


def dedupe(items: Iterable[str]) -> Tuple[str, ...]:
    """Drop duplicates while keeping first-seen order."""
    seen = set()
    ordered = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            ordered.append(item)
    return tuple(ordered)
