"""Discovery results shared by every discovery strategy."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field

from ..pipeline.health import HealthStatus
from ..pipeline.model import Pipeline, example_pipeline


def _current_os() -> str:
    """Return the running operating system as "linux", "darwin" or "windows"."""
    platform = sys.platform
    if platform.startswith("linux"):
        return "linux"
    if platform == "darwin":
        return "darwin"
    if platform in ("win32", "cygwin"):
        return "windows"
    return platform


@dataclass
class DiscoveredChild:
    """A process running as part of a parent agent."""

    pid: int = 0
    name: str = ""
    role: str = ""
    args: list[str] = field(default_factory=list)


@dataclass
class DiscoveredAgent:
    """An agent found on the local machine, with whatever was learnt about it."""

    agent_type: str = ""
    pid: int = 0
    config_path: str = ""
    endpoints: dict[str, str] = field(default_factory=dict)
    children: list[DiscoveredChild] = field(default_factory=list)
    source: str = ""

    def id(self) -> str:
        """Identify the agent by PID, else by config path, else by type alone."""
        if self.pid > 0:
            return f"{self.agent_type}:{self.pid}"
        if self.config_path:
            return f"{self.agent_type}:{self.config_path}"
        return self.agent_type

    def status(self) -> Pipeline:
        """Return a placeholder pipeline for the agent."""
        return example_pipeline()

    def health(self) -> HealthStatus:
        """Return the agent's health, which discovery alone cannot tell."""
        return HealthStatus.UNKNOWN