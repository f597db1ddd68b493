"""
agentfleet Plan Executor

Applies planned moves to the fleet store, or simulates them in check mode.
Each move is an independent write; failures are collected per agent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

import structlog

from agentfleet.rebalancing.types import HostRole, PlannedMove, WriteFailure

if TYPE_CHECKING:
    from agentfleet.persistence.base import FleetStore

logger = structlog.get_logger(__name__)


class PlanExecutor:
    """Writes each planned move back to the store unless checking."""

    def __init__(self, role: HostRole) -> None:
        self.role = role

    async def execute(
        self,
        store: FleetStore,
        moves: Sequence[PlannedMove],
        check: bool,
    ) -> List[WriteFailure]:
        """Apply ``moves``.

        Returns:
            One ``WriteFailure`` per move the store rejected; empty in check
            mode or when every write succeeded.
        """
        if check:
            logger.info("plan_checked", role=self.role.value, moves=len(moves))
            return []

        failures: List[WriteFailure] = []
        for move in moves:
            try:
                await store.update_agent_node(move.agent_id, self.role, move.to_ip)
            except Exception as e:
                logger.error(
                    "agent_update_failed",
                    role=self.role.value,
                    agent_id=move.agent_id,
                    to_ip=move.to_ip,
                    error=str(e),
                )
                failures.append(WriteFailure(agent_id=move.agent_id, to_ip=move.to_ip, error=str(e)))

        logger.info(
            "plan_committed",
            role=self.role.value,
            moves=len(moves),
            failed=len(failures),
        )
        return failures
