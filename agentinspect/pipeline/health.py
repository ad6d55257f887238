"""Health states shared by every pipeline component."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .model import Node


class HealthStatus(str, Enum):
    """Current state of a pipeline component."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    ERROR = "error"
    DISABLED = "disabled"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


_STATE_GROUPS: dict[HealthStatus, frozenset[str]] = {
    HealthStatus.HEALTHY: frozenset({"HEALTHY", "RUNNING", "OK"}),
    HealthStatus.DEGRADED: frozenset({"DEGRADED", "WARNING", "WARN"}),
    HealthStatus.ERROR: frozenset({"FAILED", "ERROR"}),
    HealthStatus.DISABLED: frozenset({"DISABLED", "STOPPED"}),
}

_OTEL_RUNTIME_STATES: dict[str, HealthStatus] = {
    "StatusOK": HealthStatus.HEALTHY,
    "StatusRecoverableError": HealthStatus.DEGRADED,
    "StatusPermanentError": HealthStatus.ERROR,
    "StatusFatalError": HealthStatus.ERROR,
    "StatusStopped": HealthStatus.DISABLED,
    "": HealthStatus.UNKNOWN,
    "StatusNone": HealthStatus.UNKNOWN,
    "StatusStarting": HealthStatus.UNKNOWN,
    "StatusUnknown": HealthStatus.UNKNOWN,
}


def _map_state_to_health(state: str) -> HealthStatus:
    normalized = state.strip().upper()
    for health, names in _STATE_GROUPS.items():
        if normalized in names:
            return health
    return HealthStatus.UNKNOWN


def assess_health(node: Node | None) -> HealthStatus:
    """Normalize a node's status text into one of the shared health states."""
    if node is None:
        return HealthStatus.UNKNOWN
    return _map_state_to_health(str(node.status))


def map_otel_runtime_status(status: str) -> HealthStatus:
    """Normalize an OTel component runtime state."""
    known = _OTEL_RUNTIME_STATES.get(status.strip())
    if known is not None:
        return known
    return _map_state_to_health(status)


def assess_otel_component_health(
    current: HealthStatus, send_failed: float, dropped: float, enabled: bool
) -> HealthStatus:
    """Combine a runtime state with error and drop counters."""
    if not enabled:
        return HealthStatus.DISABLED
    if send_failed > 0:
        return HealthStatus.ERROR
    if dropped > 0 and current != HealthStatus.ERROR:
        return HealthStatus.DEGRADED
    return current