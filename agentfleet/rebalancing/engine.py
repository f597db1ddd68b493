"""
agentfleet Fleet Rebalancer

Entry point for one rebalancing call. Selects the strategy, serialises runs
per role so snapshot -> plan -> write never interleaves for the same role,
and turns collected write failures into a ``PersistenceError``.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Union

import structlog

from agentfleet.rebalancing.config import (
    LoadBalancingStrategyConfig,
    RebalanceConfig,
    RebalanceRequest,
)
from agentfleet.rebalancing.exceptions import PersistenceError, RebalanceError
from agentfleet.rebalancing.strategies import TrafficBalancer, select_strategy
from agentfleet.rebalancing.types import HostRole, RebalanceResult

if TYPE_CHECKING:
    from agentfleet.persistence.base import FleetStore

logger = structlog.get_logger(__name__)


class FleetRebalancer:
    """
    Rebalances agents across controller or analyzer nodes.

    Usage::

        rebalancer = FleetRebalancer(store)
        result = await rebalancer.rebalance(RebalanceRequest(type="analyzer", check=True))
        payload = result.to_dict()

    Args:
        store: Persistence collaborator holding agents, nodes and topology.
        config: Engine options, including the analyzer strategy.
        traffic_balancer: Collaborator for the ``by-ingested-data`` strategy.
    """

    def __init__(
        self,
        store: FleetStore,
        config: Optional[RebalanceConfig] = None,
        traffic_balancer: Optional[TrafficBalancer] = None,
    ) -> None:
        self.store = store
        self.config = config or RebalanceConfig()
        self.traffic_balancer = traffic_balancer
        self._locks: Dict[HostRole, asyncio.Lock] = {role: asyncio.Lock() for role in HostRole}

    async def rebalance(
        self,
        request: Union[RebalanceRequest, Mapping[str, Any], None] = None,
        strategy: Optional[LoadBalancingStrategyConfig] = None,
    ) -> RebalanceResult:
        """Run one rebalancing pass.

        Args:
            request: Role and check flag, as a model or raw API arguments.
            strategy: Analyzer strategy overriding the configured one.

        Raises:
            InvalidRequestError: raw arguments name an unknown role.
            NoHealthyNodesError: the role has no usable node.
            UnsupportedStrategyError: unknown analyzer algorithm.
            PersistenceError: snapshot read failed, or some moves could not
                be written (the error carries the failures and the result).
        """
        if request is None:
            request = RebalanceRequest()
        elif not isinstance(request, RebalanceRequest):
            request = RebalanceRequest.from_args(request)

        role = HostRole(request.type)
        chosen = select_strategy(
            role,
            strategy or self.config.load_balancing,
            traffic_balancer=self.traffic_balancer,
            uniform_weight=self.config.uniform_weight,
        )

        lock = self._locks[role]
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.config.lock_timeout_seconds)
        except asyncio.TimeoutError as e:
            raise RebalanceError(f"another {role.value} rebalance is still running") from e

        start = time.monotonic()
        try:
            logger.info(
                "rebalance_started",
                role=role.value,
                check=request.check,
                strategy=chosen.name,
            )
            result = await chosen.rebalance(self.store, request.check)
        finally:
            lock.release()

        logger.info(
            "rebalance_finished",
            role=role.value,
            check=request.check,
            switched=result.total_switched,
            failed=len(result.failures),
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )

        if result.failures:
            raise PersistenceError(
                f"{len(result.failures)} of {len(result.moves)} {role.value} moves failed",
                failures=result.failures,
                result=result,
            )
        return result

    def is_running(self, role: HostRole) -> bool:
        return self._locks[role].locked()
