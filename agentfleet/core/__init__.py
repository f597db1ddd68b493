"""agentfleet core: settings and logging."""

from agentfleet.core.config import AgentFleetSettings, get_settings, reset_settings, set_settings
from agentfleet.core.logging import setup_logging

__all__ = [
    "AgentFleetSettings",
    "get_settings",
    "set_settings",
    "reset_settings",
    "setup_logging",
]
