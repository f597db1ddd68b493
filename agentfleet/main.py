"""
agentfleet - Fleet Rebalancing Service

Wires settings, logging and the SQLite fleet store into a ``FleetRebalancer``
for an API-serving host process.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import structlog

from agentfleet.core.config import AgentFleetSettings, get_settings
from agentfleet.core.logging import setup_logging
from agentfleet.persistence.sqlite import SQLiteFleetStore
from agentfleet.rebalancing.engine import FleetRebalancer
from agentfleet.rebalancing.strategies import TrafficBalancer

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def open_rebalancer(
    settings: Optional[AgentFleetSettings] = None,
    traffic_balancer: Optional[TrafficBalancer] = None,
) -> AsyncIterator[FleetRebalancer]:
    """Open the fleet store and yield a ready rebalancer; closes the store on exit."""
    settings = settings or get_settings()
    setup_logging(settings.log_level.value, json_output=settings.log_json)

    store = SQLiteFleetStore(settings.store_path, busy_timeout_ms=settings.store_busy_timeout_ms)
    await store.initialize()
    logger.info(
        "rebalancer_ready",
        store=str(settings.store_path),
        analyzer_algorithm=settings.rebalance.load_balancing.algorithm,
    )
    try:
        yield FleetRebalancer(store, settings.rebalance, traffic_balancer=traffic_balancer)
    finally:
        await store.shutdown()
