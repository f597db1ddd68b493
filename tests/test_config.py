"""
Tests for agentfleet settings and service wiring.
"""

import pytest

from agentfleet.core.config import (
    AgentFleetSettings,
    LogLevel,
    get_settings,
    reset_settings,
    set_settings,
)
from agentfleet.main import open_rebalancer
from agentfleet.rebalancing.config import ALGORITHM_BY_AGENT_COUNT, ALGORITHM_BY_INGESTED_DATA
from agentfleet.rebalancing.engine import FleetRebalancer


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for name in (
        "AGENTFLEET_LOG_LEVEL",
        "AGENTFLEET_STORE_PATH",
        "AGENTFLEET_REBALANCE__LOAD_BALANCING__ALGORITHM",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


class TestSettings:
    """Tests for AgentFleetSettings."""

    def test_defaults(self):
        settings = AgentFleetSettings()

        assert settings.log_level == LogLevel.INFO
        assert settings.log_json is True
        assert settings.rebalance.load_balancing.algorithm == ALGORITHM_BY_INGESTED_DATA
        assert settings.rebalance.load_balancing.data_duration == 86400
        assert settings.rebalance.uniform_weight == 1.0

    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("AGENTFLEET_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("AGENTFLEET_STORE_PATH", str(tmp_path / "fleet.db"))
        monkeypatch.setenv("AGENTFLEET_REBALANCE__LOAD_BALANCING__ALGORITHM", "By-Agent-Count")

        settings = AgentFleetSettings()

        assert settings.log_level == LogLevel.DEBUG
        assert settings.store_path == tmp_path / "fleet.db"
        assert settings.rebalance.load_balancing.algorithm == ALGORITHM_BY_AGENT_COUNT

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "conf" / "agentfleet.json"
        original = AgentFleetSettings(log_level=LogLevel.WARNING, store_path=tmp_path / "x.db")
        original.to_file(path)

        loaded = AgentFleetSettings.from_file(path)
        assert loaded.log_level == LogLevel.WARNING
        assert loaded.store_path == tmp_path / "x.db"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AgentFleetSettings.from_file(tmp_path / "missing.json")

    def test_global_settings(self):
        custom = AgentFleetSettings(log_json=False)
        set_settings(custom)
        assert get_settings() is custom

        reset_settings()
        assert get_settings() is not custom


class TestOpenRebalancer:
    """Tests for the service entry point."""

    @pytest.mark.asyncio
    async def test_yields_ready_rebalancer(self, tmp_path):
        settings = AgentFleetSettings(store_path=tmp_path / "fleet.db", log_json=False)

        async with open_rebalancer(settings) as rebalancer:
            assert isinstance(rebalancer, FleetRebalancer)
            assert rebalancer.store.is_initialized
            store = rebalancer.store

        assert not store.is_initialized
        assert (tmp_path / "fleet.db").exists()
