"""
agentfleet Rebalancing Types

Type definitions for the fleet rebalancing engine:
- Agents pinned to one controller node and one analyzer node
- Controller / analyzer nodes with health state and agent capacity
- Availability zones, regions and node-to-zone bindings
- Planned moves and the per-node rebalance report
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# Binding value meaning "every AZ in the binding's region"
WILDCARD_AZ = "ALL"


# =============================================================================
# Enums
# =============================================================================


class HostRole(str, Enum):
    """Kind of node an agent is pinned to."""
    CONTROLLER = "controller"
    ANALYZER = "analyzer"

    @property
    def agent_field(self) -> str:
        """Name of the agent attribute holding the node address for this role."""
        return f"{self.value}_ip"


class NodeState(str, Enum):
    """Lifecycle state of a controller / analyzer node."""
    TO_INSTALL = "to_install"
    INSTALLING = "installing"
    COMPLETE = "complete"       # Only state eligible as a destination
    MODIFYING = "modifying"
    EXCEPTION = "exception"


def ip_sort_key(ip: str) -> Tuple[int, Any]:
    """Sort key ordering addresses numerically, unparsable ones last by text."""
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return (2, ip)
    return (0 if addr.version == 4 else 1, int(addr))


# =============================================================================
# Fleet Entities
# =============================================================================


@dataclass
class Agent:
    """A monitoring agent and its current node assignments."""
    id: str
    name: str = ""
    az: str = ""
    controller_ip: str = ""
    analyzer_ip: str = ""
    enabled: bool = True

    def node_ip(self, role: HostRole) -> str:
        return getattr(self, role.agent_field)

    def sort_key(self) -> Tuple[str, str]:
        return (self.name, self.id)


@dataclass
class Node:
    """A controller or analyzer node serving a bounded number of agents."""
    ip: str
    state: NodeState = NodeState.COMPLETE
    max_agents: int = 0
    region: str = ""

    @property
    def is_healthy(self) -> bool:
        return self.state == NodeState.COMPLETE

    @property
    def is_available(self) -> bool:
        """Healthy and able to host at least one agent."""
        return self.is_healthy and self.max_agents > 0


@dataclass(frozen=True)
class AvailabilityZone:
    """An availability zone; belongs to exactly one region."""
    id: str
    region: str
    name: str = ""


@dataclass(frozen=True)
class NodeZoneBinding:
    """Binds a node to one AZ, or to every AZ of a region via the wildcard."""
    node_ip: str
    az: str
    region: str = ""

    @property
    def is_wildcard(self) -> bool:
        return self.az == WILDCARD_AZ


@dataclass(frozen=True)
class FleetSnapshot:
    """Consistent read of everything one role's rebalancing needs."""
    role: HostRole
    azs: Tuple[AvailabilityZone, ...] = ()
    nodes: Tuple[Node, ...] = ()
    bindings: Tuple[NodeZoneBinding, ...] = ()
    agents: Tuple[Agent, ...] = ()

    def agents_by_az(self) -> Dict[str, List[Agent]]:
        grouped: Dict[str, List[Agent]] = {}
        for agent in self.agents:
            grouped.setdefault(agent.az, []).append(agent)
        return grouped


# =============================================================================
# Plan / Report
# =============================================================================


@dataclass(frozen=True)
class PlannedMove:
    """Reassignment of one agent from one node to another."""
    agent_id: str
    agent_name: str
    az: str
    from_ip: str
    to_ip: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "agent_name": self.agent_name,
            "az": self.az,
            "from_ip": self.from_ip,
            "to_ip": self.to_ip,
        }


@dataclass
class HostRebalanceResult:
    """Per-node, per-AZ line of the rebalance report."""
    ip: str
    state: NodeState
    az: str
    before_agent_count: int = 0
    after_agent_count: int = 0
    switched_agent_count: int = 0
    before_weight: float = 0.0
    after_weight: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ip": self.ip,
            "state": self.state.value,
            "az": self.az,
            "before_agent_count": self.before_agent_count,
            "after_agent_count": self.after_agent_count,
            "switched_agent_count": self.switched_agent_count,
            "before_weight": self.before_weight,
            "after_weight": self.after_weight,
        }


@dataclass
class AZRebalanceResult:
    """Planner output for a single availability zone."""
    az: str
    target: int = 0
    total_switched: int = 0
    details: List[HostRebalanceResult] = field(default_factory=list)
    moves: List[PlannedMove] = field(default_factory=list)


@dataclass(frozen=True)
class WriteFailure:
    """A planned move the persistence collaborator failed to apply."""
    agent_id: str
    to_ip: str
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {"agent_id": self.agent_id, "to_ip": self.to_ip, "error": self.error}


@dataclass
class RebalanceResult:
    """Outcome of one rebalancing call."""
    total_switched: int = 0
    details: List[HostRebalanceResult] = field(default_factory=list)
    moves: List[PlannedMove] = field(default_factory=list)
    failures: List[WriteFailure] = field(default_factory=list)

    def merge(self, az_result: AZRebalanceResult) -> None:
        self.total_switched += az_result.total_switched
        self.details.extend(az_result.details)
        self.moves.extend(az_result.moves)

    def set_uniform_weights(self, weight: float = 1.0) -> None:
        for detail in self.details:
            detail.before_weight = weight
            detail.after_weight = weight

    def get_detail(self, ip: str, az: Optional[str] = None) -> Optional[HostRebalanceResult]:
        for detail in self.details:
            if detail.ip == ip and (az is None or detail.az == az):
                return detail
        return None

    def to_dict(self, include_moves: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "total_switched": self.total_switched,
            "details": [d.to_dict() for d in self.details],
        }
        if include_moves:
            data["moves"] = [m.to_dict() for m in self.moves]
            data["failures"] = [f.to_dict() for f in self.failures]
        return data
