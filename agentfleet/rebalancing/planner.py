"""
agentfleet Rebalance Planner

Greedy single-pass redistribution of agents inside one availability zone.

For every AZ the planner computes the even share ``target`` per healthy
node (rounded up). Agents past the ``target``-th position on any node
holding more than ``target`` agents are re-placed one at a time onto the
healthy node with the most headroom.

Ordering is fully deterministic:
- source nodes are visited by ascending IP
- agents on a node are enumerated by ascending ``(name, id)``
- destination ties go to the lowest IP

Headroom is reserved at the chosen destination before checking whether the
agent actually moves. A node that wins its own candidate therefore still
gives up one unit of headroom, which lets later candidates of the same node
spill over to other nodes instead of being pinned in place.
"""

from __future__ import annotations

from typing import Dict, Optional

import structlog

from agentfleet.rebalancing.capacity import AZCapacity
from agentfleet.rebalancing.types import (
    AZRebalanceResult,
    HostRebalanceResult,
    HostRole,
    PlannedMove,
    ip_sort_key,
)

logger = structlog.get_logger(__name__)


class RebalancePlanner:
    """Plans agent moves for one role, one AZ at a time."""

    def __init__(self, role: HostRole) -> None:
        self.role = role

    def plan_az(self, capacity: AZCapacity) -> Optional[AZRebalanceResult]:
        """Plan the moves for a single AZ.

        Returns:
            The AZ's result, or ``None`` when no healthy node serves the AZ.
        """
        if capacity.healthy_count == 0:
            logger.warning(
                "az_without_healthy_nodes",
                role=self.role.value,
                az=capacity.az,
                agents=capacity.total_agents,
            )
            return None

        target = capacity.target
        headroom: Dict[str, int] = {
            ip: node.available
            for ip, node in capacity.nodes.items()
            if node.is_healthy
        }
        report: Dict[str, HostRebalanceResult] = {
            ip: HostRebalanceResult(
                ip=ip,
                state=node.state,
                az=capacity.az,
                before_agent_count=node.used,
                after_agent_count=node.used,
            )
            for ip, node in capacity.nodes.items()
        }
        result = AZRebalanceResult(az=capacity.az, target=target)

        for source_ip, agents in capacity.node_agents.items():
            if len(agents) <= target:
                continue

            source = report[source_ip]
            for agent in agents[target:]:
                dest_ip = self._select_destination(headroom)
                headroom[dest_ip] -= 1

                if dest_ip == source_ip:
                    logger.debug(
                        "agent_kept",
                        role=self.role.value,
                        agent=agent.name,
                        node_ip=source_ip,
                    )
                    continue

                logger.info(
                    "agent_rebalanced",
                    role=self.role.value,
                    agent=agent.name,
                    from_ip=source_ip,
                    to_ip=dest_ip,
                )
                result.moves.append(PlannedMove(
                    agent_id=agent.id,
                    agent_name=agent.name,
                    az=capacity.az,
                    from_ip=source_ip,
                    to_ip=dest_ip,
                ))
                source.after_agent_count -= 1
                source.switched_agent_count += 1
                destination = report[dest_ip]
                destination.after_agent_count += 1
                destination.switched_agent_count += 1
                result.total_switched += 1

        result.details = list(report.values())
        logger.debug(
            "az_planned",
            role=self.role.value,
            az=capacity.az,
            target=target,
            switched=result.total_switched,
        )
        return result

    @staticmethod
    def _select_destination(headroom: Dict[str, int]) -> str:
        """Node with the largest headroom; lowest IP wins ties."""
        ip, _ = min(headroom.items(), key=lambda kv: (-kv[1], ip_sort_key(kv[0])))
        return ip
