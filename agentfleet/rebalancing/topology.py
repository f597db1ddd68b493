"""
agentfleet Fleet Topology

Resolves which controller / analyzer nodes serve each availability zone:

- **Specific bindings** attach a node to one AZ.
- **Wildcard bindings** (``az == "ALL"``) attach a node to every AZ of the
  binding's region, including AZs added since the binding was made.

The mapping is derived from a ``FleetSnapshot`` on every call so that a
rebalancing run never sees a stale view of the region membership.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Sequence, Tuple

import structlog

from agentfleet.rebalancing.types import (
    AvailabilityZone,
    Node,
    NodeZoneBinding,
    ip_sort_key,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResolvedTopology:
    """AZ id -> nodes serving it, ordered by IP."""
    az_nodes: Dict[str, Tuple[Node, ...]] = field(default_factory=dict)

    def nodes_for(self, az: str) -> Tuple[Node, ...]:
        return self.az_nodes.get(az, ())

    def has_az(self, az: str) -> bool:
        return bool(self.az_nodes.get(az))

    def __iter__(self) -> Iterator[str]:
        return iter(self.az_nodes)

    def __len__(self) -> int:
        return len(self.az_nodes)


class TopologyResolver:
    """
    Builds the AZ -> node pool mapping for one role.

    Usage::

        topology = TopologyResolver().resolve(azs, nodes, bindings)
        pool = topology.nodes_for("az-1")
    """

    def resolve(
        self,
        azs: Sequence[AvailabilityZone],
        nodes: Sequence[Node],
        bindings: Sequence[NodeZoneBinding],
    ) -> ResolvedTopology:
        region_azs: Dict[str, List[str]] = defaultdict(list)
        for az in azs:
            region_azs[az.region].append(az.id)

        ip_to_node = {node.ip: node for node in nodes}
        pools: Dict[str, Dict[str, Node]] = defaultdict(dict)

        for binding in bindings:
            node = ip_to_node.get(binding.node_ip)
            if node is None:
                logger.debug("binding_unknown_node", node_ip=binding.node_ip, az=binding.az)
                continue

            if binding.is_wildcard:
                for az_id in region_azs.get(binding.region, ()):
                    pools[az_id][node.ip] = node
            else:
                pools[binding.az][node.ip] = node

        az_nodes = {
            az_id: tuple(sorted(pool.values(), key=lambda n: ip_sort_key(n.ip)))
            for az_id, pool in pools.items()
            if pool
        }

        logger.debug(
            "topology_resolved",
            azs=len(az_nodes),
            nodes=len(ip_to_node),
            bindings=len(bindings),
        )
        return ResolvedTopology(az_nodes=az_nodes)
