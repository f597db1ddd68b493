"""
agentfleet Capacity Accounting

Per-AZ load bookkeeping for one role: how many agents each resolved node
currently hosts and how much headroom it has left.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import structlog

from agentfleet.rebalancing.exceptions import NoHealthyNodesError
from agentfleet.rebalancing.types import Agent, HostRole, Node, NodeState, ip_sort_key

logger = structlog.get_logger(__name__)


@dataclass
class NodeCapacity:
    """Load of one node inside one AZ."""
    ip: str
    state: NodeState
    max_agents: int
    used: int = 0

    @property
    def available(self) -> int:
        """Headroom: capacity minus currently assigned agents (may be negative)."""
        return self.max_agents - self.used

    @property
    def is_healthy(self) -> bool:
        return self.state == NodeState.COMPLETE


@dataclass
class AZCapacity:
    """Capacity view of a single AZ.

    ``total_agents`` counts every agent in the AZ, including agents pinned to
    nodes that do not serve it; those agents appear in no ``node_agents``
    entry and are never moved.
    """
    az: str
    total_agents: int = 0
    nodes: Dict[str, NodeCapacity] = field(default_factory=dict)
    node_agents: Dict[str, List[Agent]] = field(default_factory=dict)

    @property
    def healthy_count(self) -> int:
        return sum(1 for n in self.nodes.values() if n.is_healthy)

    @property
    def target(self) -> int:
        """Even share per healthy node, rounded up; 0 when no node is healthy."""
        if self.healthy_count == 0:
            return 0
        return math.ceil(self.total_agents / self.healthy_count)


class CapacityAccountant:
    """Computes used / available agent slots per node for one role."""

    def __init__(self, role: HostRole) -> None:
        self.role = role

    def ensure_available(self, nodes: Sequence[Node]) -> int:
        """Fail fast unless at least one node of the role can take agents.

        Returns:
            Number of healthy nodes with non-zero capacity.
        """
        count = sum(1 for node in nodes if node.is_available)
        if count == 0:
            logger.error("no_available_nodes", role=self.role.value, nodes=len(nodes))
            raise NoHealthyNodesError(self.role)
        return count

    def account(
        self,
        az: str,
        agents: Sequence[Agent],
        nodes: Sequence[Node],
    ) -> AZCapacity:
        ip_to_agents: Dict[str, List[Agent]] = {}
        for agent in agents:
            ip_to_agents.setdefault(agent.node_ip(self.role), []).append(agent)

        capacity = AZCapacity(az=az, total_agents=len(agents))
        for node in sorted(nodes, key=lambda n: ip_sort_key(n.ip)):
            hosted = sorted(ip_to_agents.get(node.ip, []), key=Agent.sort_key)
            capacity.nodes[node.ip] = NodeCapacity(
                ip=node.ip,
                state=node.state,
                max_agents=node.max_agents,
                used=len(hosted),
            )
            capacity.node_agents[node.ip] = hosted

        orphaned = capacity.total_agents - sum(n.used for n in capacity.nodes.values())
        if orphaned:
            logger.debug(
                "agents_outside_node_pool",
                role=self.role.value,
                az=az,
                count=orphaned,
            )
        return capacity
