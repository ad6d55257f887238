"""Runs every discovery strategy and merges what they report."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol

from .paths import PathScanner
from .probe import PortProber
from .process import ProcessScanner
from .types import DiscoveredAgent

_SOURCE_PRIORITY = {"process": 0, "path": 1, "port": 2}
_CONFIG_SOURCE_PRIORITY = {"path": 0, "process": 1, "port": 2}


class _Strategy(Protocol):
    def discover(self) -> list[DiscoveredAgent]: ...


def _copy(agent: DiscoveredAgent) -> DiscoveredAgent:
    return replace(agent, endpoints=dict(agent.endpoints or {}), children=list(agent.children or []))


def _find_by_endpoint_overlap(merged: list[DiscoveredAgent], incoming: DiscoveredAgent) -> int:
    if not incoming.endpoints:
        return -1
    for index, existing in enumerate(merged):
        if existing.agent_type != incoming.agent_type or not existing.endpoints:
            continue
        for key, value in incoming.endpoints.items():
            if value and existing.endpoints.get(key) == value:
                return index
    return -1


def _can_fallback_merge(existing: DiscoveredAgent, incoming: DiscoveredAgent) -> bool:
    if existing.pid > 0 and incoming.pid > 0 and existing.pid != incoming.pid:
        return False
    return not (
        existing.config_path
        and incoming.config_path
        and existing.config_path != incoming.config_path
        and existing.source == "path"
        and incoming.source == "path"
    )


def _find_merge_index(merged: list[DiscoveredAgent], incoming: DiscoveredAgent) -> int:
    if incoming.pid > 0:
        for index, existing in enumerate(merged):
            if existing.agent_type == incoming.agent_type and existing.pid == incoming.pid:
                return index
    if incoming.config_path:
        for index, existing in enumerate(merged):
            if (
                existing.agent_type == incoming.agent_type
                and existing.config_path
                and existing.config_path == incoming.config_path
            ):
                return index
    index = _find_by_endpoint_overlap(merged, incoming)
    if index != -1:
        return index
    same_type = [i for i, existing in enumerate(merged) if existing.agent_type == incoming.agent_type]
    if len(same_type) == 1 and _can_fallback_merge(merged[same_type[0]], incoming):
        return same_type[0]
    return -1


def _should_prefer_config_path(existing: DiscoveredAgent, incoming: DiscoveredAgent) -> bool:
    if not incoming.config_path:
        return False
    if not existing.config_path:
        return True
    return _CONFIG_SOURCE_PRIORITY.get(incoming.source, 3) < _CONFIG_SOURCE_PRIORITY.get(
        existing.source, 3
    )


def _merge_into(existing: DiscoveredAgent, incoming: DiscoveredAgent) -> None:
    if existing.pid == 0:
        existing.pid = incoming.pid
    if _should_prefer_config_path(existing, incoming):
        existing.config_path = incoming.config_path
    if _SOURCE_PRIORITY.get(incoming.source, 3) < _SOURCE_PRIORITY.get(existing.source, 3):
        existing.source = incoming.source
    for key, value in incoming.endpoints.items():
        if value and key not in existing.endpoints:
            existing.endpoints[key] = value
    existing.children.extend(incoming.children)


class Orchestrator:
    """Runs discovery strategies in order and merges their results."""

    def __init__(self, strategies: Iterable[_Strategy] | None = None) -> None:
        if strategies is None:
            strategies = [ProcessScanner(), PathScanner(), PortProber()]
        self.strategies = list(strategies)

    def discover_detailed(self) -> list[DiscoveredAgent]:
        """Return merged agents in discovery order, children sorted by PID then role."""
        merged: list[DiscoveredAgent] = []
        for strategy in self.strategies:
            for found in strategy.discover():
                incoming = _copy(found)
                index = _find_merge_index(merged, incoming)
                if index == -1:
                    merged.append(incoming)
                else:
                    _merge_into(merged[index], incoming)
        for agent in merged:
            agent.children.sort(key=lambda child: (child.pid, child.role))
        return merged

    def discover(self) -> list[DiscoveredAgent]:
        """Return the merged agents."""
        return list(self.discover_detailed())