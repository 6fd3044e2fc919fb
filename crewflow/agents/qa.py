#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""QA Engineer: writes tests for the change and runs the suite."""

from crewflow.agents.base import RoleAgent, StepRequest
from crewflow.agents.prompts import ACTION_FORMAT, QA_PROMPT
from crewflow.agents.toolchains import toolchain_for
from crewflow.errors import CommandError, CommandRestrictedError
from crewflow.execution.action_parser import extract_labeled_value, parse_actions
from crewflow.execution.error_classifier import ErrorCategory, is_non_testable, is_test_file
from crewflow.execution.step_executor import ExecutionPolicy
from crewflow.models import Role, StepOutcome, dedupe

QA_POLICY = ExecutionPolicy(
    fail_on_read_error=False,
    fail_on_write_error=True,
    fail_on_command_error=False,
    fail_on_blocked_command=False,
)


class QAAgent(RoleAgent):
    """Adds tests and verifies them.

    Outcome messages are phrased so the classifier can tell the cases apart:
    a red test run reads "Test failed", a run without tests reads "no tests
    to run", and code declared untestable reads "non-testable".
    """

    role = Role.QA

    def run(self, request: StepRequest) -> StepOutcome:
        """Write tests for the changed files and run them.

        Args:
            request: Step input; ``files_so_far`` lists the implementation changes

        Returns:
            StepOutcome listing the test files, or the test failure output
        """
        toolchain = toolchain_for(request.project_type)
        changed = dedupe(list(request.files_so_far) + request.toolset.changed_files())
        implementation_files = [path for path in changed if not is_test_file(path)]

        prompt = QA_PROMPT.format(
            project_type=request.project_type.value,
            task=request.task,
            implementation_files="\n".join(f"- {path}" for path in implementation_files) or "(none detected)",
            framework=toolchain.test_framework,
            naming=toolchain.test_naming,
            action_format=ACTION_FORMAT,
            context=request.project_context or "(none)",
        )
        response = self.generate(request, prompt)
        report = self.executor(request).execute(parse_actions(response), QA_POLICY, request.deadline)
        files = report.unique_files()
        test_files = [path for path in files if is_test_file(path)]

        if report.gave_up:
            return StepOutcome.failed("QA gave up on writing tests", "QA agent declined to write tests",
                                      files_modified=files, output=report.output)
        if report.failed:
            return StepOutcome.failed("Test development failed", report.error,
                                      files_modified=files, commands_executed=report.commands_executed,
                                      output=report.output)

        if not test_files:
            if is_non_testable(response):
                reason = extract_labeled_value(response, "NON-TESTABLE:") or "declared non-testable by QA"
                return StepOutcome.failed(f"Non-testable code: {reason}", f"non-testable: {reason}",
                                          files_modified=files, output=response.strip())
            return StepOutcome.failed("no tests to run: QA did not add test files",
                                      "no test files were written", files_modified=files, output=report.output)

        commands = list(report.commands_executed)
        try:
            result = request.toolset.execute_command(toolchain.test, timeout=request.deadline.remaining())
        except CommandRestrictedError as exc:
            return StepOutcome.failed("Test command could not be run", str(exc),
                                      files_modified=files, commands_executed=commands, output=report.output)
        except CommandError as exc:
            commands.append(toolchain.test)
            return self.analyze_test_results(exc, files, commands, report.output)

        commands.append(toolchain.test)
        self.log("TESTS_PASSED", {"test_files": test_files})
        return StepOutcome.succeeded(
            f"Tests added and passing: {len(test_files)} test file(s)",
            files_modified=files,
            commands_executed=commands,
            output="\n\n".join(part for part in (report.output, f"$ {toolchain.test}\n{result.output}") if part),
        )

    def analyze_test_results(self, exc: CommandError, files, commands, prior_output: str) -> StepOutcome:
        """Turn a failed test run into an outcome the router can act on."""
        run_output = exc.output or ""
        output = "\n\n".join(part for part in (prior_output, run_output) if part)
        if exc.returncode is None:
            return StepOutcome.failed("Test run could not start", str(exc),
                                      files_modified=files, commands_executed=commands, output=output)

        context = self.classifier.classify(run_output)
        if context.category is ErrorCategory.NO_TESTS:
            return StepOutcome.failed("no tests to run: test runner found no tests", run_output[-2000:],
                                      files_modified=files, commands_executed=commands, output=output)
        if context.category in (ErrorCategory.TEST_FAILURE, ErrorCategory.UNKNOWN):
            return StepOutcome.failed("Test failed: tests revealed implementation bugs",
                                      f"Test failed:\n{run_output[-4000:]}",
                                      files_modified=files, commands_executed=commands, output=output,
                                      next_steps="Fix the implementation so the failing tests pass:\n" + run_output[-2000:])
        return StepOutcome.failed(f"Test run failed with {context.category.value}", run_output[-4000:],
                                  files_modified=files, commands_executed=commands, output=output)
