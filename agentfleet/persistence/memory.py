"""
agentfleet In-Memory Fleet Store
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional

from agentfleet.persistence.base import FleetStore
from agentfleet.rebalancing.exceptions import PersistenceError
from agentfleet.rebalancing.types import (
    Agent,
    AvailabilityZone,
    HostRole,
    Node,
    NodeZoneBinding,
)


class InMemoryFleetStore(FleetStore):
    """Dictionary-backed store, useful for embedding and tests."""

    def __init__(self) -> None:
        self._azs: Dict[str, AvailabilityZone] = {}
        self._nodes: Dict[HostRole, Dict[str, Node]] = {role: {} for role in HostRole}
        self._bindings: Dict[HostRole, List[NodeZoneBinding]] = {role: [] for role in HostRole}
        self._agents: Dict[str, Agent] = {}

    # === Seeding ===

    def add_az(self, az: AvailabilityZone) -> None:
        self._azs[az.id] = az

    def add_node(self, role: HostRole, node: Node) -> None:
        self._nodes[role][node.ip] = node

    def add_binding(self, role: HostRole, binding: NodeZoneBinding) -> None:
        self._bindings[role].append(binding)

    def add_agent(self, agent: Agent) -> None:
        self._agents[agent.id] = agent

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        agent = self._agents.get(agent_id)
        return replace(agent) if agent else None

    # === FleetStore ===

    async def list_azs(self) -> list[AvailabilityZone]:
        return list(self._azs.values())

    async def list_nodes(self, role: HostRole) -> list[Node]:
        return [replace(n) for n in self._nodes[role].values()]

    async def list_bindings(self, role: HostRole) -> list[NodeZoneBinding]:
        return list(self._bindings[role])

    async def list_agents(self, role: HostRole) -> list[Agent]:
        return [replace(a) for a in self._agents.values() if a.node_ip(role)]

    async def update_agent_node(self, agent_id: str, role: HostRole, node_ip: str) -> None:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise PersistenceError(f"agent {agent_id} not found")
        setattr(agent, role.agent_field, node_ip)
