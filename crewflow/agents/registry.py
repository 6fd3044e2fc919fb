#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Registry mapping roles to agent instances."""

from typing import Dict, List, Optional

from crewflow.agents.base import RoleAgent
from crewflow.agents.engineer import EngineerAgent
from crewflow.agents.manager import ManagerAgent
from crewflow.agents.qa import QAAgent
from crewflow.agents.tech_lead import TechLeadAgent
from crewflow.config import WorkflowConfig
from crewflow.errors import AgentNotRegisteredError
from crewflow.execution.error_classifier import ErrorClassifier
from crewflow.llm.base import LLMClient
from crewflow.models import Role


class AgentRegistry:
    """Role → agent lookup for one orchestrator."""

    def __init__(self, agents: Optional[Dict[Role, RoleAgent]] = None):
        self._agents: Dict[Role, RoleAgent] = {}
        for role, agent in (agents or {}).items():
            self.register(role, agent)

    def register(self, role: Role, agent: RoleAgent) -> None:
        if not isinstance(agent, RoleAgent):
            raise ValueError(f"{type(agent).__name__} must inherit from RoleAgent")
        self._agents[role] = agent

    def get(self, role: Role) -> RoleAgent:
        agent = self._agents.get(role)
        if agent is None:
            raise AgentNotRegisteredError(f"agent {role.value} not registered")
        return agent

    def roles(self) -> List[Role]:
        return list(self._agents)

    def manager(self) -> Optional[ManagerAgent]:
        agent = self._agents.get(Role.MANAGER)
        return agent if isinstance(agent, ManagerAgent) else None


def build_default_registry(
    llm: LLMClient,
    config: WorkflowConfig,
    classifier: Optional[ErrorClassifier] = None,
) -> AgentRegistry:
    return AgentRegistry({
        Role.MANAGER: ManagerAgent(llm, config, classifier),
        Role.ENGINEER: EngineerAgent(llm, config, classifier),
        Role.QA: QAAgent(llm, config, classifier),
        Role.TECH_LEAD: TechLeadAgent(llm, config, classifier),
    })
