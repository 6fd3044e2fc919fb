#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Centralized version constant for crewflow."""

# Note: CREWFLOW_GIT_COMMIT is populated at build time so wheels/sdists carry
# the commit even when git metadata is unavailable at runtime.
CREWFLOW_VERSION = "0.3.0"
CREWFLOW_GIT_COMMIT = "unknown"

__all__ = ["CREWFLOW_VERSION", "CREWFLOW_GIT_COMMIT"]
