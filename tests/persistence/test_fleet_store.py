"""
Tests for agentfleet fleet stores.

Tests cover:
- In-memory store snapshot isolation and updates
- SQLite store lifecycle, seeding, filtering and updates
- Rebalancing end to end on top of the SQLite store
"""

from pathlib import Path

import pytest

from agentfleet.persistence.memory import InMemoryFleetStore
from agentfleet.persistence.sqlite import SQLiteFleetStore
from agentfleet.rebalancing.config import RebalanceRequest
from agentfleet.rebalancing.engine import FleetRebalancer
from agentfleet.rebalancing.exceptions import PersistenceError
from agentfleet.rebalancing.types import (
    Agent,
    AvailabilityZone,
    HostRole,
    Node,
    NodeState,
    NodeZoneBinding,
)


CONTROLLER = HostRole.CONTROLLER
ANALYZER = HostRole.ANALYZER


# ==================== In-Memory Store ====================

class TestInMemoryFleetStore:
    """Tests for the dictionary-backed store."""

    @pytest.mark.asyncio
    async def test_snapshot_is_isolated_from_writes(self):
        store = InMemoryFleetStore()
        store.add_az(AvailabilityZone(id="az-1", region="r1"))
        store.add_node(CONTROLLER, Node(ip="10.0.0.1", max_agents=3))
        store.add_agent(Agent(id="a1", az="az-1", controller_ip="10.0.0.1"))

        snapshot = await store.load_snapshot(CONTROLLER)
        await store.update_agent_node("a1", CONTROLLER, "10.0.0.2")

        assert snapshot.agents[0].controller_ip == "10.0.0.1"
        assert store.get_agent("a1").controller_ip == "10.0.0.2"

    @pytest.mark.asyncio
    async def test_roles_are_separate(self):
        store = InMemoryFleetStore()
        store.add_node(CONTROLLER, Node(ip="10.0.0.1", max_agents=3))
        store.add_node(ANALYZER, Node(ip="10.0.1.1", max_agents=3))
        store.add_agent(Agent(id="a1", az="az-1", analyzer_ip="10.0.1.1"))

        assert [n.ip for n in await store.list_nodes(ANALYZER)] == ["10.0.1.1"]
        assert await store.list_agents(CONTROLLER) == []
        assert len(await store.list_agents(ANALYZER)) == 1

    @pytest.mark.asyncio
    async def test_update_unknown_agent(self):
        store = InMemoryFleetStore()
        with pytest.raises(PersistenceError):
            await store.update_agent_node("ghost", CONTROLLER, "10.0.0.1")


# ==================== SQLite Store ====================

async def seeded_sqlite_store(path: Path) -> SQLiteFleetStore:
    store = SQLiteFleetStore(path)
    await store.initialize()
    await store.add_az(AvailabilityZone(id="az-1", region="r1", name="zone one"))
    await store.add_az(AvailabilityZone(id="az-2", region="r1"))
    for ip in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
        await store.add_node(CONTROLLER, Node(ip=ip, max_agents=4, region="r1"))
        await store.add_binding(CONTROLLER, NodeZoneBinding(node_ip=ip, az="ALL", region="r1"))
    await store.add_node(ANALYZER, Node(ip="10.0.1.1", state=NodeState.INSTALLING, max_agents=4))
    for i in range(1, 5):
        await store.add_agent(Agent(
            id=f"agent-{i}",
            name=f"agent-{i}",
            az="az-1",
            controller_ip="10.0.0.1",
        ))
    await store.add_agent(Agent(id="idle", name="idle", az="az-1", enabled=False))
    return store


class TestSQLiteFleetStore:
    """Tests for the aiosqlite-backed store."""

    @pytest.mark.asyncio
    async def test_load_snapshot(self, tmp_path):
        store = await seeded_sqlite_store(tmp_path / "fleet.db")
        try:
            snapshot = await store.load_snapshot(CONTROLLER)

            assert [az.id for az in snapshot.azs] == ["az-1", "az-2"]
            assert snapshot.azs[0].name == "zone one"
            assert [n.ip for n in snapshot.nodes] == ["10.0.0.1", "10.0.0.2", "10.0.0.3"]
            assert all(b.is_wildcard for b in snapshot.bindings)
            assert {a.id for a in snapshot.agents} == {f"agent-{i}" for i in range(1, 5)}
        finally:
            await store.shutdown()

    @pytest.mark.asyncio
    async def test_node_state_round_trips(self, tmp_path):
        store = await seeded_sqlite_store(tmp_path / "fleet.db")
        try:
            nodes = await store.list_nodes(ANALYZER)
            assert nodes[0].state == NodeState.INSTALLING
            assert not nodes[0].is_healthy
        finally:
            await store.shutdown()

    @pytest.mark.asyncio
    async def test_update_agent_node(self, tmp_path):
        store = await seeded_sqlite_store(tmp_path / "fleet.db")
        try:
            await store.update_agent_node("agent-2", CONTROLLER, "10.0.0.3")
            agent = await store.get_agent("agent-2")
            assert agent.controller_ip == "10.0.0.3"
            assert agent.analyzer_ip == ""

            idle = await store.get_agent("idle")
            assert idle.enabled is False
        finally:
            await store.shutdown()

    @pytest.mark.asyncio
    async def test_update_unknown_agent(self, tmp_path):
        store = await seeded_sqlite_store(tmp_path / "fleet.db")
        try:
            with pytest.raises(PersistenceError):
                await store.update_agent_node("ghost", CONTROLLER, "10.0.0.3")
        finally:
            await store.shutdown()

    @pytest.mark.asyncio
    async def test_uninitialized_store(self):
        store = SQLiteFleetStore()
        assert not store.is_initialized
        with pytest.raises(PersistenceError):
            await store.load_snapshot(CONTROLLER)

    @pytest.mark.asyncio
    async def test_data_survives_reopen(self, tmp_path):
        path = tmp_path / "nested" / "fleet.db"
        store = await seeded_sqlite_store(path)
        await store.update_agent_node("agent-1", CONTROLLER, "10.0.0.2")
        await store.shutdown()

        reopened = SQLiteFleetStore(path)
        await reopened.initialize()
        try:
            agent = await reopened.get_agent("agent-1")
            assert agent.controller_ip == "10.0.0.2"
        finally:
            await reopened.shutdown()

    @pytest.mark.asyncio
    async def test_rebalance_commit(self, tmp_path):
        store = await seeded_sqlite_store(tmp_path / "fleet.db")
        try:
            result = await FleetRebalancer(store).rebalance(RebalanceRequest(type="controller"))
            assert result.total_switched == 2

            agents = await store.list_agents(CONTROLLER)
            placement = {a.id: a.controller_ip for a in agents}
            assert placement == {
                "agent-1": "10.0.0.1",
                "agent-2": "10.0.0.1",
                "agent-3": "10.0.0.2",
                "agent-4": "10.0.0.3",
            }
        finally:
            await store.shutdown()
