"""
agentfleet Persistence

Fleet store collaborators read by the rebalancing engine.
"""

from agentfleet.persistence.base import FleetStore
from agentfleet.persistence.memory import InMemoryFleetStore
from agentfleet.persistence.sqlite import SQLiteFleetStore

__all__ = ["FleetStore", "InMemoryFleetStore", "SQLiteFleetStore"]
