"""
agentfleet Rebalancing Errors
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Sequence

if TYPE_CHECKING:
    from agentfleet.rebalancing.types import HostRole, RebalanceResult, WriteFailure


class RebalanceError(Exception):
    """Base class for all rebalancing failures."""


class NoHealthyNodesError(RebalanceError):
    """Raised when the role has no healthy node able to host agents."""

    def __init__(self, role: "HostRole"):
        self.role = role
        super().__init__(
            f"No available {role.value}s, global equalization is not possible"
        )


class UnsupportedStrategyError(RebalanceError):
    """Raised when the configured analyzer algorithm is not recognised."""

    def __init__(self, algorithm: str, supported: Iterable[str]):
        self.algorithm = algorithm
        self.supported = tuple(supported)
        super().__init__(
            f"algorithm({algorithm}) is not supported, only supports: "
            + ", ".join(self.supported)
        )


class StrategyUnavailableError(RebalanceError):
    """Raised when a known strategy has no collaborator to delegate to."""


class InvalidRequestError(RebalanceError):
    """Raised when trigger arguments do not describe a valid request."""


class PersistenceError(RebalanceError):
    """Raised when reading the snapshot or applying moves fails.

    For write failures every failed move is listed in ``failures`` and the
    computed plan is attached as ``result``.
    """

    def __init__(
        self,
        message: str,
        failures: Sequence["WriteFailure"] = (),
        result: Optional["RebalanceResult"] = None,
    ):
        self.failures = list(failures)
        self.result = result
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Error payload listing the failed writes and, when known, the plan."""
        data: Dict[str, Any] = {
            "error": str(self),
            "failures": [f.to_dict() for f in self.failures],
        }
        if self.result is not None:
            data["result"] = self.result.to_dict(include_moves=True)
        return data
