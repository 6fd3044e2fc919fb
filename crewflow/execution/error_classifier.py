#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Error classification for step outcomes.

The classifier maps outcome text to a fixed set of categories, each with a
severity from 1 (benign) to 4 (fatal for the current approach). Every pattern
is evaluated and the most severe match wins, so an unrelated warning in the
same output can never mask a compile error. Ties keep declaration order.

``detect_signals`` extracts the remaining booleans the router needs (test
files touched, rejection markers, review keywords) so routing predicates
never look at raw strings.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from crewflow.models import StepOutcome


class ErrorCategory(Enum):
    """Closed set of error categories."""
    UNDEFINED_SYMBOL = "undefined_symbol"
    SYNTAX_ERROR = "syntax_error"
    IMPORT_CYCLE = "import_cycle"
    MISSING_DEPENDENCY = "missing_dependency"
    PERMISSION_ERROR = "permission_error"
    TEST_FAILURE = "test_failure"
    NO_TESTS = "no_tests"
    RUNTIME_ERROR = "runtime_error"
    TYPE_ERROR = "type_error"
    NETWORK_ERROR = "network_error"
    GIT_ERROR = "git_error"
    UNKNOWN = "unknown"


EXTERNAL_HELP_CATEGORIES = frozenset({
    ErrorCategory.MISSING_DEPENDENCY,
    ErrorCategory.PERMISSION_ERROR,
    ErrorCategory.NETWORK_ERROR,
})

UNKNOWN_SEVERITY = 2
UNKNOWN_HINTS = ("Review error logs", "Check implementation logic")


@dataclass(frozen=True)
class ErrorPattern:
    """One classification rule."""
    pattern: str
    category: ErrorCategory
    severity: int
    hints: Tuple[str, ...] = ()

    def __post_init__(self):
        if not 1 <= self.severity <= 4:
            raise ValueError(f"severity must be between 1 and 4, got {self.severity}")
        object.__setattr__(self, "_regex", re.compile(self.pattern, re.IGNORECASE))

    def matches(self, text: str) -> bool:
        return self._regex.search(text) is not None


@dataclass(frozen=True)
class ErrorContext:
    """Result of classifying one outcome."""
    category: ErrorCategory
    severity: int
    hints: Tuple[str, ...] = ()

    @property
    def is_recoverable(self) -> bool:
        return self.severity <= 3

    @property
    def requires_external_help(self) -> bool:
        return self.severity >= 3 and self.category in EXTERNAL_HELP_CATEGORIES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "severity": self.severity,
            "hints": list(self.hints),
            "recoverable": self.is_recoverable,
            "requires_external_help": self.requires_external_help,
        }


DEFAULT_PATTERNS: Tuple[ErrorPattern, ...] = (
    ErrorPattern(
        r"(undefined:\s*\w+|undeclared name:\s*\w+|cannot find[\s\w]*:\s*\w+"
        r"|name '\w+' is not defined|\b\w+ is not defined)",
        ErrorCategory.UNDEFINED_SYMBOL, 4,
        ("Check for missing imports", "Verify function or variable names", "Ensure all dependencies are declared"),
    ),
    ErrorPattern(
        r"(syntax error|syntaxerror|invalid syntax|unexpected (token|eof|indent|newline))",
        ErrorCategory.SYNTAX_ERROR, 4,
        ("Check bracket and brace matching", "Verify statement terminators", "Review language syntax rules"),
    ),
    ErrorPattern(
        r"(import cycle|circular import|cyclic import)",
        ErrorCategory.IMPORT_CYCLE, 3,
        ("Restructure package dependencies", "Move shared code to a separate package", "Use interfaces to break the cycle"),
    ),
    ErrorPattern(
        r"(module\s+\S+\s+not found|no module named|cannot find module|no such file or directory"
        r"|package \S+ is not in goroot)",
        ErrorCategory.MISSING_DEPENDENCY, 3,
        ("Install the missing dependency", "Check the module path", "Update the dependency manifest"),
    ),
    ErrorPattern(
        r"(permission denied|access denied|operation not permitted)",
        ErrorCategory.PERMISSION_ERROR, 3,
        ("Check file permissions", "Verify user access rights", "Ensure the path is inside the working directory"),
    ),
    ErrorPattern(
        r"(test failed|tests failed|assertion failed|assertionerror|--- fail|panic: test timed out)",
        ErrorCategory.TEST_FAILURE, 2,
        ("Review test expectations", "Check the implementation logic", "Verify test data setup"),
    ),
    ErrorPattern(
        r"(no tests to run|no test files|no tests ran|collected 0 items)",
        ErrorCategory.NO_TESTS, 1,
        ("Create test files", "Follow the test naming convention", "Add test functions"),
    ),
    ErrorPattern(
        r"(panic:|runtime error|nil pointer dereference|index out of range)",
        ErrorCategory.RUNTIME_ERROR, 4,
        ("Add nil and bounds checks", "Validate inputs before use", "Guard against empty collections"),
    ),
    ErrorPattern(
        r"(type \w+ has no field \w+|cannot use \S+ as \S+ value|typeerror:)",
        ErrorCategory.TYPE_ERROR, 3,
        ("Check type definitions", "Verify field names", "Review type conversions"),
    ),
    ErrorPattern(
        r"(connection refused|timeout|timed out|no route to host|dial tcp.*refused)",
        ErrorCategory.NETWORK_ERROR, 2,
        ("Check network connectivity", "Verify the service is running", "Retry with backoff"),
    ),
    ErrorPattern(
        r"(fatal: not a git repository|fatal:|\bgit\b.*error|merge conflict)",
        ErrorCategory.GIT_ERROR, 2,
        ("Initialize the git repository", "Resolve merge conflicts", "Check git configuration"),
    ),
)


TEST_FILE_MARKERS = (
    "_test.go", ".test.js", ".test.ts", ".spec.js", ".spec.ts",
    "test_", "_test.py", "/test/", "/tests/",
)

NON_TESTABLE_MARKERS = (
    "non-testable", "cannot test", "untestable", "no tests needed",
    "testing not applicable", "manual testing only", "ui only", "configuration only",
)

QUALITY_KEYWORDS = (
    "code quality", "lint", "format", "style", "naming convention",
    "complexity", "duplication", "security", "performance", "maintainability",
)

ARCHITECTURE_KEYWORDS = (
    "architecture", "design pattern", "separation of concerns", "coupling",
    "cohesion", "dependency injection", "interface design", "api design", "structure",
)

REJECTION_REASONS = (
    "requirements_not_met", "security_concerns", "unnecessary_duplication", "pattern_deviation",
)

_REJECTION_RE = re.compile(r"rejection_reason:\s*(" + "|".join(REJECTION_REASONS) + r")\b")


def is_test_file(path: str) -> bool:
    normalized = "/" + path.replace("\\", "/").lower()
    name = normalized.rsplit("/", 1)[-1]
    if name.startswith("test_"):
        return True
    return any(marker in normalized for marker in TEST_FILE_MARKERS if marker != "test_")


def is_structured_rejection(text: str) -> bool:
    """True when ``text`` carries the TechLead rejection markers."""
    lowered = (text or "").lower()
    if "rejection_reason:" not in lowered:
        return False
    return "route_to: engineering_manager" in lowered or _REJECTION_RE.search(lowered) is not None


@dataclass(frozen=True)
class OutcomeSignals:
    """Boolean features of an outcome consumed by routing predicates."""
    touched_files: bool = False
    touched_test_files: bool = False
    failure_wording: bool = False
    non_testable: bool = False
    quality_issue: bool = False
    architecture_issue: bool = False
    structured_rejection: bool = False


def detect_signals(outcome: StepOutcome) -> OutcomeSignals:
    review_text = f"{outcome.message} {outcome.error}".lower()
    return OutcomeSignals(
        touched_files=bool(outcome.files_modified),
        touched_test_files=any(is_test_file(path) for path in outcome.files_modified),
        failure_wording="failed" in review_text,
        non_testable=any(marker in review_text for marker in NON_TESTABLE_MARKERS),
        quality_issue=any(keyword in review_text for keyword in QUALITY_KEYWORDS),
        architecture_issue=any(keyword in review_text for keyword in ARCHITECTURE_KEYWORDS),
        structured_rejection=is_structured_rejection(outcome.error),
    )


class ErrorClassifier:
    """Most-severe-match classifier over an ordered pattern table."""

    def __init__(self, patterns: Optional[Sequence[ErrorPattern]] = None):
        self.patterns: Tuple[ErrorPattern, ...] = tuple(patterns if patterns is not None else DEFAULT_PATTERNS)

    def classify(self, text: str) -> ErrorContext:
        lowered = (text or "").lower()
        best: Optional[ErrorPattern] = None
        for candidate in self.patterns:
            if not candidate.matches(lowered):
                continue
            if best is None or candidate.severity > best.severity:
                best = candidate

        if best is None:
            return ErrorContext(ErrorCategory.UNKNOWN, UNKNOWN_SEVERITY, UNKNOWN_HINTS)
        return ErrorContext(best.category, best.severity, best.hints)

    def classify_outcome(self, outcome: StepOutcome) -> ErrorContext:
        return self.classify(outcome.text_for_classification())

    def matching_categories(self, text: str) -> List[ErrorCategory]:
        """Every category whose pattern matches, in declaration order."""
        lowered = (text or "").lower()
        return [candidate.category for candidate in self.patterns if candidate.matches(lowered)]


def is_non_testable(text: str) -> bool:
    """True when free text declares the change impossible to test automatically."""
    lowered = (text or "").lower()
    return any(marker in lowered for marker in NON_TESTABLE_MARKERS)
