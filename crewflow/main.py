#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Main entry point for crewflow CLI."""

import sys
import json
import argparse
from typing import List, Optional

from . import config
from .config import load_config
from .debug_logger import DebugLogger
from .errors import ConfigurationError
from .execution.orchestrator import WorkflowOrchestrator
from .llm.ollama import OllamaClient
from .models import ProjectType, Role, WorkflowResult
from .versioning import version_banner


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="crewflow - Manager → Engineer → QA → TechLead agent workflow powered by Ollama"
    )
    parser.add_argument(
        "description",
        nargs="*",
        help="Task description"
    )
    parser.add_argument(
        "--project-type",
        default=ProjectType.GO.value,
        help="Project toolchain: go, python or typescript (default: go)"
    )
    parser.add_argument(
        "--workdir",
        default=".",
        help="Working directory the agents operate in (default: current directory)"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a crewflow YAML config file"
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Ollama model for every role (overrides the config file)"
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help=f"Ollama base URL (default: {config.DEFAULT_OLLAMA_URL})"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the workflow result as JSON"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable detailed debug logging to file"
    )
    parser.add_argument(
        "-v",
        "--version",
        action="store_true",
        help="Show crewflow version information and exit",
    )
    return parser


def print_summary(result: WorkflowResult) -> None:
    status = "✓ Workflow completed" if result.success else "✗ Workflow failed"
    print(f"\n{status} in {result.duration_seconds:.1f}s")
    print(f"Phases: {' → '.join(result.completed_phases) or '(none)'}")
    if result.files_modified:
        print("Files modified:")
        for path in result.files_modified:
            print(f"  - {path}")
    if result.tests_added:
        print(f"Tests added: {', '.join(result.tests_added)}")
    if result.quality_checks:
        print(f"Quality checks: {', '.join(result.quality_checks)}")
    if result.history:
        print("Transitions:")
        for transition in result.history:
            print(f"  {transition.from_role.display_name} → {transition.to_role.display_name}: {transition.reason}")
    if not result.success:
        print(f"Failure: {result.failure_reason.value if result.failure_reason else 'unknown'}")
        print(f"Error: {result.error}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the crewflow CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(version_banner())
        return 0

    description = " ".join(args.description).strip()
    if not description:
        parser.error("a task description is required")

    debug_logger = DebugLogger.initialize(enabled=args.debug or config.DEBUG_ENABLED)
    if debug_logger.enabled:
        print(f"Debug logging enabled: {debug_logger.log_file_path}")

    try:
        project_type = ProjectType.parse(args.project_type)
        workflow_config = load_config(args.config)
        if args.model:
            workflow_config.with_model(args.model)
        if args.base_url:
            workflow_config.ollama_url = args.base_url
        workflow_config.validate()
    except (ConfigurationError, ValueError) as e:
        print(f"✗ Configuration error: {e}", file=sys.stderr)
        return 2

    debug_logger.log("main", "CONFIGURATION", {
        "project_type": project_type.value,
        "workdir": args.workdir,
        "config": workflow_config.to_dict(),
    })

    llm = OllamaClient(workflow_config.ollama_url, workflow_config.agent(Role.MANAGER).model)
    if not args.json:
        print("crewflow - role-based agent workflow")
        print(f"Model: {workflow_config.agent(Role.MANAGER).model}")
        print(f"Ollama: {workflow_config.ollama_url}")
        print(f"Project type: {project_type.value}")
        print(f"Working directory: {args.workdir}")

    orchestrator = WorkflowOrchestrator(workflow_config, llm=llm)
    try:
        result = orchestrator.execute_workflow(description, project_type, args.workdir)
    except KeyboardInterrupt:
        print("\n✗ Interrupted", file=sys.stderr)
        return 130
    finally:
        debug_logger.close()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_summary(result)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
