"""
agentfleet SQLite Fleet Store

aiosqlite-backed fleet store with:
- WAL mode so reads do not block the rebalancing writes
- One independent, committed UPDATE per agent move
- Driver errors surfaced as ``PersistenceError``
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Optional, Union

import aiosqlite
import structlog

from agentfleet.persistence.base import FleetStore
from agentfleet.rebalancing.exceptions import PersistenceError
from agentfleet.rebalancing.types import (
    Agent,
    AvailabilityZone,
    HostRole,
    Node,
    NodeState,
    NodeZoneBinding,
)

logger = structlog.get_logger(__name__)


_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS azs (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL DEFAULT '',
        region TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS nodes (
        role TEXT NOT NULL,
        ip TEXT NOT NULL,
        state TEXT NOT NULL,
        max_agents INTEGER NOT NULL DEFAULT 0,
        region TEXT NOT NULL DEFAULT '',
        PRIMARY KEY (role, ip)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS zone_bindings (
        role TEXT NOT NULL,
        node_ip TEXT NOT NULL,
        az TEXT NOT NULL,
        region TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS agents (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL DEFAULT '',
        az TEXT NOT NULL DEFAULT '',
        controller_ip TEXT NOT NULL DEFAULT '',
        analyzer_ip TEXT NOT NULL DEFAULT '',
        enabled INTEGER NOT NULL DEFAULT 1
    )
    """,
]


class SQLiteFleetStore(FleetStore):
    """
    Fleet store persisted in a single SQLite file.

    Usage::

        store = SQLiteFleetStore("data/fleet.db")
        await store.initialize()
        snapshot = await store.load_snapshot(HostRole.CONTROLLER)
        await store.shutdown()
    """

    def __init__(self, path: Union[str, Path] = ":memory:", busy_timeout_ms: int = 30000):
        self.path = Path(path) if str(path) != ":memory:" else None
        self.busy_timeout_ms = busy_timeout_ms
        self._conn: Optional[aiosqlite.Connection] = None

    @property
    def is_initialized(self) -> bool:
        return self._conn is not None

    async def initialize(self) -> None:
        """Open the connection and create tables."""
        if self._conn is not None:
            return

        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        target = str(self.path) if self.path is not None else ":memory:"

        logger.info("fleet_store_initializing", path=target)
        try:
            self._conn = await aiosqlite.connect(target, timeout=self.busy_timeout_ms / 1000)
            self._conn.row_factory = self._dict_factory
            await self._conn.execute("PRAGMA journal_mode = WAL")
            await self._conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
            for ddl in _SCHEMA:
                await self._conn.execute(ddl)
            await self._conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"failed to open fleet store {target}: {e}") from e

    async def shutdown(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None
        logger.info("fleet_store_closed")

    @staticmethod
    def _dict_factory(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
        return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}

    def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise PersistenceError("fleet store is not initialized")
        return self._conn

    async def _fetch_all(self, query: str, params: tuple = ()) -> list[dict[str, Any]]:
        cursor = await self._connection().execute(query, params)
        rows = await cursor.fetchall()
        await cursor.close()
        return list(rows)

    async def _write(self, query: str, params: tuple) -> int:
        conn = self._connection()
        try:
            cursor = await conn.execute(query, params)
            await conn.commit()
        except sqlite3.Error as e:
            await conn.rollback()
            raise PersistenceError(str(e)) from e
        rowcount = cursor.rowcount
        await cursor.close()
        return rowcount

    # === Seeding ===

    async def add_az(self, az: AvailabilityZone) -> None:
        await self._write(
            "INSERT OR REPLACE INTO azs (id, name, region) VALUES (?, ?, ?)",
            (az.id, az.name, az.region),
        )

    async def add_node(self, role: HostRole, node: Node) -> None:
        await self._write(
            "INSERT OR REPLACE INTO nodes (role, ip, state, max_agents, region) "
            "VALUES (?, ?, ?, ?, ?)",
            (role.value, node.ip, node.state.value, node.max_agents, node.region),
        )

    async def add_binding(self, role: HostRole, binding: NodeZoneBinding) -> None:
        await self._write(
            "INSERT INTO zone_bindings (role, node_ip, az, region) VALUES (?, ?, ?, ?)",
            (role.value, binding.node_ip, binding.az, binding.region),
        )

    async def add_agent(self, agent: Agent) -> None:
        await self._write(
            "INSERT OR REPLACE INTO agents "
            "(id, name, az, controller_ip, analyzer_ip, enabled) VALUES (?, ?, ?, ?, ?, ?)",
            (
                agent.id,
                agent.name,
                agent.az,
                agent.controller_ip,
                agent.analyzer_ip,
                int(agent.enabled),
            ),
        )

    async def get_agent(self, agent_id: str) -> Optional[Agent]:
        rows = await self._fetch_all("SELECT * FROM agents WHERE id = ?", (agent_id,))
        return self._to_agent(rows[0]) if rows else None

    # === FleetStore ===

    async def list_azs(self) -> list[AvailabilityZone]:
        rows = await self._fetch_all("SELECT id, name, region FROM azs ORDER BY id")
        return [AvailabilityZone(id=r["id"], name=r["name"], region=r["region"]) for r in rows]

    async def list_nodes(self, role: HostRole) -> list[Node]:
        rows = await self._fetch_all(
            "SELECT ip, state, max_agents, region FROM nodes WHERE role = ? ORDER BY ip",
            (role.value,),
        )
        return [
            Node(
                ip=r["ip"],
                state=NodeState(r["state"]),
                max_agents=r["max_agents"],
                region=r["region"],
            )
            for r in rows
        ]

    async def list_bindings(self, role: HostRole) -> list[NodeZoneBinding]:
        rows = await self._fetch_all(
            "SELECT node_ip, az, region FROM zone_bindings WHERE role = ?",
            (role.value,),
        )
        return [NodeZoneBinding(node_ip=r["node_ip"], az=r["az"], region=r["region"]) for r in rows]

    async def list_agents(self, role: HostRole) -> list[Agent]:
        rows = await self._fetch_all(
            f"SELECT * FROM agents WHERE {role.agent_field} != '' ORDER BY id"
        )
        return [self._to_agent(r) for r in rows]

    async def update_agent_node(self, agent_id: str, role: HostRole, node_ip: str) -> None:
        updated = await self._write(
            f"UPDATE agents SET {role.agent_field} = ? WHERE id = ?",
            (node_ip, agent_id),
        )
        if updated == 0:
            raise PersistenceError(f"agent {agent_id} not found")

    @staticmethod
    def _to_agent(row: dict[str, Any]) -> Agent:
        return Agent(
            id=row["id"],
            name=row["name"],
            az=row["az"],
            controller_ip=row["controller_ip"],
            analyzer_ip=row["analyzer_ip"],
            enabled=bool(row["enabled"]),
        )
