#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Parsing of agent replies into typed actions.

Agent replies are LLM prose with line-oriented markers::

    ACTION: WRITE_FILE
    PATH: pkg/handler.go
    CONTENT:
    package pkg
    ...

The parser is lenient: anything it does not recognise is skipped and it
never raises. This module, together with the error classifier, is the only
place where free text is interpreted.
"""

import re
from dataclasses import dataclass, fields
from typing import Dict, List, Optional

from crewflow.debug_logger import get_logger
from crewflow.models import Action, ActionType

logger = get_logger()

_ACTION_RE = re.compile(r"^ACTION:\s*(\S+)\s*$")
_FENCE_RE = re.compile(r"^\s*(```|~~~)[\w+-]*\s*$")
_FIELD_PREFIXES = (
    ("PATH:", "path"),
    ("COMMAND:", "command"),
    ("PATTERN:", "pattern"),
    ("SEARCH_PATH:", "search_path"),
)


class _PendingAction:
    """Accumulator for the action currently being parsed."""

    def __init__(self, action_type: Optional[ActionType]):
        self.type = action_type
        self.fields: Dict[str, str] = {}
        self.content_lines: List[str] = []
        self.in_content = False

    def build(self) -> Optional[Action]:
        if self.type is None:
            return None
        if self.type is ActionType.GIVE_UP:
            return Action(type=ActionType.GIVE_UP)
        return Action(type=self.type, content=_trim_blank_edges(self.content_lines), **self.fields)


def _trim_blank_edges(lines: List[str]) -> str:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return "\n".join(lines[start:end])


def parse_actions(text: str) -> List[Action]:
    """Parse every action in ``text`` in order of appearance."""
    actions: List[Action] = []
    pending: Optional[_PendingAction] = None

    def flush():
        if pending is None:
            return
        action = pending.build()
        if action is not None:
            actions.append(action)

    for raw_line in (text or "").splitlines():
        line = raw_line.strip()

        match = _ACTION_RE.match(line)
        if match:
            flush()
            action_type = ActionType.lookup(match.group(1))
            if action_type is None:
                logger.log("parser", "UNKNOWN_ACTION", {"marker": match.group(1)}, "DEBUG")
            pending = _PendingAction(action_type)
            continue

        if pending is None:
            continue

        if pending.in_content:
            if not _FENCE_RE.match(raw_line):
                pending.content_lines.append(raw_line)
            continue

        if line.startswith("CONTENT:"):
            pending.in_content = True
            inline = line[len("CONTENT:"):].strip()
            if inline and not _FENCE_RE.match(inline):
                pending.content_lines.append(inline)
            continue

        for prefix, name in _FIELD_PREFIXES:
            if line.startswith(prefix):
                pending.fields[name] = line[len(prefix):].strip()
                break

    flush()
    return actions


def extract_task_description(text: str) -> str:
    """Return the value of the first ``TASK:`` line, or an empty string."""
    return extract_labeled_value(text, "TASK:")


@dataclass
class ManagerBrief:
    """Structured brief the Engineering Manager hands to the engineer."""
    task: str = ""
    context: str = ""
    files_to_examine: str = ""
    implementation_approach: str = ""
    potential_issues: str = ""
    success_criteria: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.task

    def success_criteria_items(self) -> List[str]:
        return [item.strip() for item in re.split(r"[,\n]", self.success_criteria) if item.strip()]

    def render(self) -> str:
        """Render back to the labelled text form the parser accepts."""
        lines = []
        for item in fields(self):
            value = getattr(self, item.name)
            if value:
                lines.append(f"{item.name.upper()}: {value}")
        return "\n".join(lines)


_BRIEF_LABELS = {f"{item.name.upper()}:": item.name for item in fields(ManagerBrief)}


def parse_manager_brief(text: str) -> ManagerBrief:
    """Extract the labelled brief fields; continuation lines extend the last field."""
    values: Dict[str, List[str]] = {}
    current: Optional[str] = None

    for raw_line in (text or "").splitlines():
        line = raw_line.strip()
        if _ACTION_RE.match(line):
            current = None
            continue

        label = next((lbl for lbl in _BRIEF_LABELS if line.upper().startswith(lbl)), None)
        if label is not None:
            current = _BRIEF_LABELS[label]
            values.setdefault(current, []).append(line[len(label):].strip())
            continue

        if current and line:
            values[current].append(line)
        elif not line:
            current = None

    return ManagerBrief(**{name: "\n".join(part for part in parts if part) for name, parts in values.items()})


def extract_labeled_value(text: str, label: str) -> str:
    """Value after the first line starting with ``label`` (case-insensitive)."""
    wanted = label.upper()
    for line in (text or "").splitlines():
        stripped = line.strip()
        if stripped.upper().startswith(wanted):
            return stripped[len(wanted):].strip()
    return ""


@dataclass
class ReviewDecision:
    """Tech lead verdict parsed from the review reply."""
    approved: bool
    issues: str = ""


def parse_review_decision(text: str) -> ReviewDecision:
    """``FINAL_DECISION: NEEDS_REVISION`` rejects; anything else approves.

    Issues are the ``ISSUES:`` line plus any following non-blank lines that
    do not start a new action.
    """
    decision = extract_labeled_value(text, "FINAL_DECISION:").upper().replace(" ", "_")
    if not decision.startswith("NEEDS_REVISION"):
        return ReviewDecision(approved=True)

    issues: List[str] = []
    collecting = False
    for raw_line in (text or "").splitlines():
        line = raw_line.strip()
        if line.upper().startswith("ISSUES:"):
            collecting = True
            first = line[len("ISSUES:"):].strip()
            if first:
                issues.append(first)
            continue
        if collecting:
            if not line or _ACTION_RE.match(line) or line.upper().startswith("FINAL_DECISION:"):
                break
            issues.append(line)
    return ReviewDecision(approved=False, issues="\n".join(issues) or "Review requested changes without details")
