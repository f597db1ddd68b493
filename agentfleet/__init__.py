"""
agentfleet - Monitoring Agent Fleet Rebalancing

Keeps monitoring agents evenly spread across controller nodes (configuration
sync) and analyzer nodes (telemetry ingestion), zone by zone.
"""

__version__ = "1.0.0"

from agentfleet.rebalancing import FleetRebalancer, RebalanceRequest, RebalanceResult

__all__ = ["FleetRebalancer", "RebalanceRequest", "RebalanceResult", "__version__"]
