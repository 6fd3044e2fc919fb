#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Role agents for the Manager → Engineer → QA → TechLead pipeline."""

from crewflow.agents.base import RoleAgent, StepRequest
from crewflow.agents.engineer import EngineerAgent
from crewflow.agents.manager import ManagerAgent
from crewflow.agents.policy import (
    PolicyCheck,
    PolicyViolation,
    RejectionReason,
    RequirementsCheck,
    build_rejection_feedback,
)
from crewflow.agents.qa import QAAgent
from crewflow.agents.registry import AgentRegistry, build_default_registry
from crewflow.agents.tech_lead import TechLeadAgent

__all__ = [
    "RoleAgent",
    "StepRequest",
    "EngineerAgent",
    "ManagerAgent",
    "PolicyCheck",
    "PolicyViolation",
    "RejectionReason",
    "RequirementsCheck",
    "build_rejection_feedback",
    "QAAgent",
    "AgentRegistry",
    "build_default_registry",
    "TechLeadAgent",
]
