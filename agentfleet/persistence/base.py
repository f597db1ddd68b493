"""
agentfleet Fleet Store Interface

Abstract persistence collaborator consumed by the rebalancing engine.
Stores own agent and node records; the engine only reads a snapshot and,
in commit mode, rewrites one agent's node address at a time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog

from agentfleet.rebalancing.exceptions import PersistenceError
from agentfleet.rebalancing.types import (
    Agent,
    AvailabilityZone,
    FleetSnapshot,
    HostRole,
    Node,
    NodeZoneBinding,
)

logger = structlog.get_logger(__name__)


class FleetStore(ABC):
    """
    Abstract base class for fleet persistence backends.

    Implementations must return agents whose node address for the role is
    non-empty only.
    """

    @abstractmethod
    async def list_azs(self) -> list[AvailabilityZone]:
        """All availability zones."""
        pass

    @abstractmethod
    async def list_nodes(self, role: HostRole) -> list[Node]:
        """All nodes of the role, whatever their state."""
        pass

    @abstractmethod
    async def list_bindings(self, role: HostRole) -> list[NodeZoneBinding]:
        """Node-to-AZ bindings of the role."""
        pass

    @abstractmethod
    async def list_agents(self, role: HostRole) -> list[Agent]:
        """Agents currently assigned to some node of the role."""
        pass

    @abstractmethod
    async def update_agent_node(self, agent_id: str, role: HostRole, node_ip: str) -> None:
        """Point one agent at a new node of the role."""
        pass

    async def load_snapshot(self, role: HostRole) -> FleetSnapshot:
        """Read everything needed to rebalance ``role`` in one go."""
        try:
            azs = await self.list_azs()
            nodes = await self.list_nodes(role)
            bindings = await self.list_bindings(role)
            agents = await self.list_agents(role)
        except PersistenceError:
            raise
        except Exception as e:
            logger.error("snapshot_read_failed", role=role.value, error=str(e))
            raise PersistenceError(f"failed to read {role.value} snapshot: {e}") from e

        return FleetSnapshot(
            role=role,
            azs=tuple(azs),
            nodes=tuple(nodes),
            bindings=tuple(bindings),
            agents=tuple(agents),
        )
