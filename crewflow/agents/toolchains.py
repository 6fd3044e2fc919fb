#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Per-project-type build, test and quality commands."""

from dataclasses import dataclass
from typing import Tuple

from crewflow.models import ProjectType


@dataclass(frozen=True)
class Toolchain:
    build: str
    test: str
    quality: Tuple[str, ...]
    test_framework: str
    test_naming: str


TOOLCHAINS = {
    ProjectType.GO: Toolchain(
        build="go build ./...",
        test="go test ./...",
        quality=("go fmt ./...", "go vet ./...", "go mod tidy"),
        test_framework="the standard testing package",
        test_naming="*_test.go next to the code",
    ),
    ProjectType.PYTHON: Toolchain(
        build="python -m compileall -q .",
        test="python -m pytest",
        quality=("python -m black .",),
        test_framework="pytest",
        test_naming="tests/test_*.py",
    ),
    ProjectType.TYPESCRIPT: Toolchain(
        build="npm run build",
        test="npm test",
        quality=("npm run lint -- --fix",),
        test_framework="the project's configured test runner",
        test_naming="*.test.ts or *.spec.ts",
    ),
}


def toolchain_for(project_type: ProjectType) -> Toolchain:
    return TOOLCHAINS[project_type]
