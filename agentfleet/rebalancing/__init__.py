"""
agentfleet - Fleet Rebalancing

Rebalances monitoring agents across controller and analyzer nodes:
- Topology resolution with region-wide wildcard bindings
- Per-AZ capacity accounting and greedy redistribution
- Check (dry-run) and commit modes producing identical reports
- Pluggable agent-count / traffic strategies for analyzers
"""

from agentfleet.rebalancing.capacity import AZCapacity, CapacityAccountant, NodeCapacity
from agentfleet.rebalancing.config import (
    ALGORITHM_BY_AGENT_COUNT,
    ALGORITHM_BY_INGESTED_DATA,
    LoadBalancingStrategyConfig,
    RebalanceConfig,
    RebalanceRequest,
)
from agentfleet.rebalancing.engine import FleetRebalancer
from agentfleet.rebalancing.exceptions import (
    InvalidRequestError,
    NoHealthyNodesError,
    PersistenceError,
    RebalanceError,
    StrategyUnavailableError,
    UnsupportedStrategyError,
)
from agentfleet.rebalancing.executor import PlanExecutor
from agentfleet.rebalancing.planner import RebalancePlanner
from agentfleet.rebalancing.strategies import (
    AgentCountStrategy,
    RebalanceStrategy,
    TrafficBalancer,
    TrafficStrategy,
    select_strategy,
)
from agentfleet.rebalancing.topology import ResolvedTopology, TopologyResolver
from agentfleet.rebalancing.types import (
    Agent,
    AvailabilityZone,
    FleetSnapshot,
    HostRebalanceResult,
    HostRole,
    Node,
    NodeState,
    NodeZoneBinding,
    PlannedMove,
    RebalanceResult,
    WriteFailure,
)

__all__ = [
    "FleetRebalancer",
    "RebalanceConfig",
    "RebalanceRequest",
    "LoadBalancingStrategyConfig",
    "ALGORITHM_BY_AGENT_COUNT",
    "ALGORITHM_BY_INGESTED_DATA",
    "TopologyResolver",
    "ResolvedTopology",
    "CapacityAccountant",
    "AZCapacity",
    "NodeCapacity",
    "RebalancePlanner",
    "PlanExecutor",
    "RebalanceStrategy",
    "AgentCountStrategy",
    "TrafficStrategy",
    "TrafficBalancer",
    "select_strategy",
    "RebalanceError",
    "NoHealthyNodesError",
    "UnsupportedStrategyError",
    "StrategyUnavailableError",
    "InvalidRequestError",
    "PersistenceError",
    "Agent",
    "AvailabilityZone",
    "FleetSnapshot",
    "HostRebalanceResult",
    "HostRole",
    "Node",
    "NodeState",
    "NodeZoneBinding",
    "PlannedMove",
    "RebalanceResult",
    "WriteFailure",
]
