"""
agentfleet Configuration Management

Process-wide settings loaded from environment variables and/or JSON files.
Environment variables are prefixed with AGENTFLEET_ (e.g.
AGENTFLEET_LOG_LEVEL=DEBUG, AGENTFLEET_REBALANCE__LOAD_BALANCING__ALGORITHM=by-agent-count).
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from agentfleet.rebalancing.config import RebalanceConfig


class LogLevel(str, Enum):
    """Logging levels for agentfleet."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AgentFleetSettings(BaseSettings):
    """Main agentfleet settings."""

    log_level: LogLevel = LogLevel.INFO
    log_json: bool = True

    # Fleet store
    store_path: Path = Field(default=Path("./data/fleet.db"))
    store_busy_timeout_ms: int = Field(default=30000, ge=0)

    rebalance: RebalanceConfig = Field(default_factory=RebalanceConfig)

    model_config = {
        "env_prefix": "AGENTFLEET_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }

    @field_validator("store_path", mode="before")
    @classmethod
    def ensure_path(cls, v: Any) -> Path:
        if isinstance(v, str):
            return Path(v)
        return v

    @classmethod
    def from_file(cls, config_path: Path) -> "AgentFleetSettings":
        """Load settings from a JSON file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            config_data = json.load(f)

        return cls(**config_data)

    def to_file(self, config_path: Path) -> None:
        """Save settings to a JSON file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)


_settings: Optional[AgentFleetSettings] = None


def get_settings() -> AgentFleetSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = AgentFleetSettings()
    return _settings


def set_settings(settings: AgentFleetSettings) -> None:
    global _settings
    _settings = settings


def reset_settings() -> None:
    global _settings
    _settings = None
