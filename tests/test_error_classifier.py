#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Tests for outcome error classification."""

import pytest

from crewflow.execution.error_classifier import (
    ErrorCategory,
    ErrorClassifier,
    ErrorContext,
    ErrorPattern,
    detect_signals,
    is_non_testable,
    is_structured_rejection,
    is_test_file,
)
from crewflow.models import StepOutcome


@pytest.fixture
def classifier():
    return ErrorClassifier()


def test_undefined_symbol_is_fatal(classifier):
    ctx = classifier.classify("./main.go:12:2: undefined: foo")
    assert ctx.category is ErrorCategory.UNDEFINED_SYMBOL
    assert ctx.severity == 4
    assert not ctx.is_recoverable
    assert ctx.hints


def test_most_severe_match_wins_over_earlier_warning(classifier):
    text = "warning: connection refused while fetching proxy\nsyntax error: unexpected newline"
    ctx = classifier.classify(text)
    assert ctx.category is ErrorCategory.SYNTAX_ERROR
    assert ctx.severity == 4


def test_fatal_line_outranks_earlier_warning(classifier):
    text = "testing: warning: no tests to run\nfatal: not a git repository (or any of the parent directories)"
    assert classifier.matching_categories(text) == [ErrorCategory.NO_TESTS, ErrorCategory.GIT_ERROR]
    ctx = classifier.classify(text)
    assert ctx.category is ErrorCategory.GIT_ERROR
    assert ctx.severity == 2


def test_tie_keeps_declaration_order(classifier):
    # undefined_symbol and syntax_error are both severity 4; undefined is declared first
    ctx = classifier.classify("syntax error near x; undefined: bar")
    assert ctx.category is ErrorCategory.UNDEFINED_SYMBOL


def test_classification_is_deterministic(classifier):
    text = "--- FAIL: TestHandler (0.00s)\nassertion failed"
    assert classifier.classify(text) == classifier.classify(text)
    assert classifier.classify(text).category is ErrorCategory.TEST_FAILURE


def test_unknown_defaults(classifier):
    ctx = classifier.classify("something odd happened")
    assert ctx.category is ErrorCategory.UNKNOWN
    assert ctx.severity == 2
    assert ctx.hints == ("Review error logs", "Check implementation logic")
    assert ctx.is_recoverable
    assert not ctx.requires_external_help


@pytest.mark.parametrize("text, category, severity", [
    ("import cycle not allowed", ErrorCategory.IMPORT_CYCLE, 3),
    ("ModuleNotFoundError: No module named 'yaml'", ErrorCategory.MISSING_DEPENDENCY, 3),
    ("open /etc/x: permission denied", ErrorCategory.PERMISSION_ERROR, 3),
    ("ok  \tpkg\t[no test files]", ErrorCategory.NO_TESTS, 1),
    ("panic: runtime error: index out of range [3]", ErrorCategory.RUNTIME_ERROR, 4),
    ("type Server has no field Port", ErrorCategory.TYPE_ERROR, 3),
    ("dial tcp 127.0.0.1:5432: connection refused", ErrorCategory.NETWORK_ERROR, 2),
    ("fatal: not a git repository", ErrorCategory.GIT_ERROR, 2),
])
def test_category_table(classifier, text, category, severity):
    ctx = classifier.classify(text)
    assert ctx.category is category
    assert ctx.severity == severity


def test_requires_external_help():
    assert ErrorContext(ErrorCategory.PERMISSION_ERROR, 3).requires_external_help
    assert ErrorContext(ErrorCategory.MISSING_DEPENDENCY, 4).requires_external_help
    assert not ErrorContext(ErrorCategory.NETWORK_ERROR, 2).requires_external_help
    assert not ErrorContext(ErrorCategory.IMPORT_CYCLE, 3).requires_external_help


def test_recoverable_boundary():
    assert ErrorContext(ErrorCategory.TYPE_ERROR, 3).is_recoverable
    assert not ErrorContext(ErrorCategory.RUNTIME_ERROR, 4).is_recoverable


def test_custom_pattern_table():
    classifier = ErrorClassifier([ErrorPattern(r"kaboom", ErrorCategory.RUNTIME_ERROR, 3)])
    assert classifier.classify("KABOOM!").category is ErrorCategory.RUNTIME_ERROR
    assert classifier.classify("undefined: x").category is ErrorCategory.UNKNOWN


def test_pattern_severity_is_validated():
    with pytest.raises(ValueError):
        ErrorPattern("x", ErrorCategory.UNKNOWN, 5)


def test_matching_categories_lists_every_match(classifier):
    found = classifier.matching_categories("test failed: connection refused")
    assert found == [ErrorCategory.TEST_FAILURE, ErrorCategory.NETWORK_ERROR]


def test_classify_outcome_reads_error_output_and_message(classifier):
    outcome = StepOutcome.failed("Build failed", "", output="main.go:3: undefined: Handler")
    assert classifier.classify_outcome(outcome).category is ErrorCategory.UNDEFINED_SYMBOL


@pytest.mark.parametrize("path, expected", [
    ("handler_test.go", True),
    ("pkg/api/handler_test.go", True),
    ("tests/test_parser.py", True),
    ("test_parser.py", True),
    ("src/app.spec.ts", True),
    ("src/app.test.js", True),
    ("handler.go", False),
    ("src/contest.py", False),
    ("latest_results.py", False),
])
def test_is_test_file(path, expected):
    assert is_test_file(path) is expected


def test_structured_rejection_markers():
    assert is_structured_rejection("REJECTION_REASON: requirements_not_met\nSPECIFIC_ISSUES:\n- x")
    assert is_structured_rejection("REJECTION_REASON: other\nROUTE_TO: engineering_manager")
    assert not is_structured_rejection("REJECTION_REASON: whatever")
    assert not is_structured_rejection("requirements_not_met")


def test_detect_signals_for_engineer_outcome():
    outcome = StepOutcome.succeeded("done", files_modified=["handler.go", "handler_test.go"])
    signals = detect_signals(outcome)
    assert signals.touched_files
    assert signals.touched_test_files
    assert not signals.failure_wording


def test_detect_signals_for_review_outcome():
    outcome = StepOutcome.failed("Review requested changes", "lint issues and poor separation of concerns")
    signals = detect_signals(outcome)
    assert signals.quality_issue
    assert signals.architecture_issue
    assert not signals.structured_rejection
    assert not signals.touched_files


def test_non_testable_text():
    assert is_non_testable("This is configuration only, nothing to test")
    assert not is_non_testable("tests added")
