"""
agentfleet Rebalancing Configuration

Pydantic models describing one rebalancing call: which role to balance,
whether to only check, and how analyzers are balanced.
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from agentfleet.rebalancing.exceptions import InvalidRequestError

ALGORITHM_BY_INGESTED_DATA = "by-ingested-data"
ALGORITHM_BY_AGENT_COUNT = "by-agent-count"

SUPPORTED_ALGORITHMS = (ALGORITHM_BY_INGESTED_DATA, ALGORITHM_BY_AGENT_COUNT)


class LoadBalancingStrategyConfig(BaseModel):
    """Analyzer load balancing strategy.

    ``algorithm`` is kept as a free string; unknown names are rejected by the
    strategy selector so callers receive an ``UnsupportedStrategyError``.
    """
    algorithm: str = Field(default=ALGORITHM_BY_INGESTED_DATA)
    data_duration: int = Field(
        default=86400, gt=0, description="Traffic sampling window in seconds",
    )

    @field_validator("algorithm")
    @classmethod
    def normalize_algorithm(cls, v: str) -> str:
        return v.strip().lower()


class RebalanceRequest(BaseModel):
    """Trigger for a rebalancing call."""
    type: Literal["controller", "analyzer"] = "controller"
    check: bool = False

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "RebalanceRequest":
        """Build a request from loosely typed API arguments.

        Raises:
            InvalidRequestError: unknown role or malformed check flag.
        """
        data: Dict[str, Any] = {}
        if args.get("type") is not None:
            data["type"] = str(args["type"]).lower()
        if args.get("check") is not None:
            data["check"] = args["check"]
        try:
            return cls(**data)
        except ValidationError as e:
            raise InvalidRequestError(f"invalid rebalance request: {e}") from e


class RebalanceConfig(BaseModel):
    """Engine-wide rebalancing options."""
    load_balancing: LoadBalancingStrategyConfig = Field(
        default_factory=LoadBalancingStrategyConfig,
    )
    uniform_weight: float = Field(default=1.0, gt=0)
    lock_timeout_seconds: float = Field(
        default=60.0, gt=0, description="Max wait for another run of the same role",
    )
