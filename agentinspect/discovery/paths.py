"""Discovery of agents by their well-known configuration paths."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field

from .types import DiscoveredAgent, _current_os


@dataclass(frozen=True)
class PathRule:
    """Candidate config paths of one agent type, per operating system."""

    agent_type: str
    paths: dict[str, list[str]] = field(default_factory=dict)


DEFAULT_PATH_RULES: list[PathRule] = [
    PathRule(
        agent_type="elastic-agent",
        paths={
            "darwin": ["/Library/Elastic/Agent/elastic-agent.yml"],
            "linux": ["/opt/Elastic/Agent/elastic-agent.yml"],
            "windows": [r"C:\Program Files\Elastic\Agent\elastic-agent.yml"],
        },
    ),
    PathRule(
        agent_type="otel",
        paths={
            "darwin": ["/etc/otelcol/config.yaml"],
            "linux": ["/etc/otelcol/config.yaml", "/etc/otel/config.yaml"],
        },
    ),
    PathRule(
        agent_type="edot",
        paths={
            "darwin": ["/etc/edot/config.yaml"],
            "linux": ["/etc/edot/config.yaml", "/etc/elastic-otel-collector/config.yaml"],
        },
    ),
]


class PathScanner:
    """Reports an agent for each rule whose config file exists."""

    def __init__(
        self,
        os_name: str | None = None,
        exists: Callable[[str], bool] | None = None,
        rules: list[PathRule] | None = None,
    ) -> None:
        self.os_name = os_name or _current_os()
        self.exists = exists if exists is not None else os.path.exists
        self.rules = rules if rules is not None else DEFAULT_PATH_RULES

    def discover(self) -> list[DiscoveredAgent]:
        """Return one agent per rule, using the first existing candidate path."""
        found = []
        for rule in self.rules:
            path = next(
                (candidate for candidate in rule.paths.get(self.os_name, []) if self.exists(candidate)),
                None,
            )
            if path is not None:
                found.append(
                    DiscoveredAgent(agent_type=rule.agent_type, config_path=path, source="path")
                )
        return found