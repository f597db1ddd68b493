"""
agentfleet Rebalancing Strategies

Pluggable strategies producing a rebalance result for one role:
- Agent-count balancing (topology -> capacity -> greedy plan -> execute)
- Traffic-volume balancing, delegated to an external ``TrafficBalancer``

``select_strategy`` maps a role and analyzer configuration to a strategy
and rejects unknown algorithm names before anything is read.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Optional

import structlog

from agentfleet.rebalancing.capacity import CapacityAccountant
from agentfleet.rebalancing.config import (
    ALGORITHM_BY_AGENT_COUNT,
    ALGORITHM_BY_INGESTED_DATA,
    SUPPORTED_ALGORITHMS,
    LoadBalancingStrategyConfig,
)
from agentfleet.rebalancing.exceptions import (
    StrategyUnavailableError,
    UnsupportedStrategyError,
)
from agentfleet.rebalancing.executor import PlanExecutor
from agentfleet.rebalancing.planner import RebalancePlanner
from agentfleet.rebalancing.topology import TopologyResolver
from agentfleet.rebalancing.types import HostRole, RebalanceResult

if TYPE_CHECKING:
    from agentfleet.persistence.base import FleetStore

logger = structlog.get_logger(__name__)


# =============================================================================
# Strategy Interface
# =============================================================================


class RebalanceStrategy(abc.ABC):
    """Common contract: read, plan and (unless checking) apply."""

    name: str = ""

    @abc.abstractmethod
    async def rebalance(self, store: FleetStore, check: bool) -> RebalanceResult:
        """Rebalance the fleet held by *store*.

        Args:
            store: Persistence collaborator to read from and write to.
            check: When true, compute the plan without persisting it.
        """


class TrafficBalancer(abc.ABC):
    """External collaborator balancing analyzers by ingested data volume."""

    @abc.abstractmethod
    async def rebalance(
        self,
        store: FleetStore,
        check: bool,
        data_duration: int,
    ) -> RebalanceResult:
        """Produce a weighted rebalance result over the last *data_duration* seconds."""


# =============================================================================
# Agent-Count Strategy
# =============================================================================


class AgentCountStrategy(RebalanceStrategy):
    """Flattens agent counts per node, AZ by AZ.

    When ``uniform_weight`` is set every report line carries it as both
    before and after weight, so analyzer reports have the same shape as the
    traffic strategy's.
    """

    name = ALGORITHM_BY_AGENT_COUNT

    def __init__(self, role: HostRole, uniform_weight: Optional[float] = None) -> None:
        self.role = role
        self.uniform_weight = uniform_weight
        self._resolver = TopologyResolver()
        self._accountant = CapacityAccountant(role)
        self._planner = RebalancePlanner(role)
        self._executor = PlanExecutor(role)

    async def rebalance(self, store: FleetStore, check: bool) -> RebalanceResult:
        snapshot = await store.load_snapshot(self.role)
        self._accountant.ensure_available(snapshot.nodes)

        topology = self._resolver.resolve(snapshot.azs, snapshot.nodes, snapshot.bindings)
        agents_by_az = snapshot.agents_by_az()
        result = RebalanceResult()

        for az in sorted(snapshot.azs, key=lambda a: a.id):
            az_agents = agents_by_az.get(az.id)
            if not az_agents:
                continue
            pool = topology.nodes_for(az.id)
            if not pool:
                logger.info(
                    "az_without_node_pool",
                    role=self.role.value,
                    az=az.id,
                    agents=len(az_agents),
                )
                continue

            capacity = self._accountant.account(az.id, az_agents, pool)
            az_result = self._planner.plan_az(capacity)
            if az_result is not None:
                result.merge(az_result)

        if self.uniform_weight is not None:
            result.set_uniform_weights(self.uniform_weight)

        result.failures = await self._executor.execute(store, result.moves, check)
        return result


# =============================================================================
# Traffic Strategy
# =============================================================================


class TrafficStrategy(RebalanceStrategy):
    """Delegates analyzer balancing to a ``TrafficBalancer``."""

    name = ALGORITHM_BY_INGESTED_DATA

    def __init__(self, balancer: TrafficBalancer, data_duration: int) -> None:
        self._balancer = balancer
        self.data_duration = data_duration

    async def rebalance(self, store: FleetStore, check: bool) -> RebalanceResult:
        logger.info(
            "traffic_rebalance_delegated",
            balancer=type(self._balancer).__name__,
            data_duration=self.data_duration,
            check=check,
        )
        return await self._balancer.rebalance(store, check, self.data_duration)


# =============================================================================
# Selection
# =============================================================================


def select_strategy(
    role: HostRole,
    config: Optional[LoadBalancingStrategyConfig] = None,
    traffic_balancer: Optional[TrafficBalancer] = None,
    uniform_weight: float = 1.0,
) -> RebalanceStrategy:
    """Pick the strategy for *role*.

    Raises:
        UnsupportedStrategyError: analyzer algorithm name is unknown.
        StrategyUnavailableError: traffic balancing requested without a
            ``TrafficBalancer``.
    """
    if role == HostRole.CONTROLLER:
        return AgentCountStrategy(role)

    config = config or LoadBalancingStrategyConfig()
    if config.algorithm == ALGORITHM_BY_AGENT_COUNT:
        return AgentCountStrategy(role, uniform_weight=uniform_weight)

    if config.algorithm == ALGORITHM_BY_INGESTED_DATA:
        if traffic_balancer is None:
            raise StrategyUnavailableError(
                f"algorithm({config.algorithm}) requires a traffic balancer"
            )
        return TrafficStrategy(traffic_balancer, config.data_duration)

    logger.error("unsupported_strategy", role=role.value, algorithm=config.algorithm)
    raise UnsupportedStrategyError(config.algorithm, SUPPORTED_ALGORITHMS)
