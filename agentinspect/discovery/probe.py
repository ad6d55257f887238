"""Discovery of agents by probing their well-known local HTTP endpoints."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

import requests

from .types import DiscoveredAgent


@dataclass(frozen=True)
class EndpointProbe:
    """One HTTP endpoint whose answer reveals an agent of the given type."""

    agent_type: str
    url: str
    check_path: str
    key: str


DEFAULT_ENDPOINTS: list[EndpointProbe] = [
    EndpointProbe("elastic-agent", "http://localhost:6791", "/api/status", "status"),
    EndpointProbe("otel", "http://localhost:55679", "/debug/pipelinez", "zpages"),
    EndpointProbe("edot", "http://localhost:55679", "/debug/pipelinez", "zpages"),
    EndpointProbe("otel", "http://localhost:13133", "/", "health"),
    EndpointProbe("edot", "http://localhost:13133", "/", "health"),
    EndpointProbe("otel", "http://localhost:8888", "/metrics", "metrics"),
    EndpointProbe("edot", "http://localhost:8888", "/metrics", "metrics"),
]


def endpoint_url(base: str, check_path: str) -> str:
    """Return base with its path replaced by check_path.

    Raises ValueError when base is not a valid URL.
    """
    parts = urlsplit(base)
    if not check_path:
        return urlunsplit(parts)
    path = check_path if check_path.startswith("/") else "/" + check_path
    return urlunsplit(parts._replace(path=path))


class PortProber:
    """Reports an agent for each type with at least one answering endpoint."""

    def __init__(
        self,
        session: requests.Session | None = None,
        endpoints: Iterable[EndpointProbe] | None = None,
        timeout: float = 0.5,
    ) -> None:
        self.session = session if session is not None else requests.Session()
        self.endpoints = list(endpoints) if endpoints is not None else list(DEFAULT_ENDPOINTS)
        self.timeout = timeout

    def _answers(self, endpoint: EndpointProbe) -> bool:
        try:
            target = endpoint_url(endpoint.url, endpoint.check_path)
            with self.session.get(target, timeout=self.timeout) as response:
                return 200 <= response.status_code < 400
        except (ValueError, requests.RequestException):
            return False

    def discover(self) -> list[DiscoveredAgent]:
        """Return one agent per type, sorted by type, holding every answering endpoint."""
        by_type: dict[str, DiscoveredAgent] = {}
        for endpoint in self.endpoints:
            if not self._answers(endpoint):
                continue
            agent = by_type.setdefault(
                endpoint.agent_type,
                DiscoveredAgent(agent_type=endpoint.agent_type, source="port"),
            )
            agent.endpoints[endpoint.key] = endpoint.url
        return sorted(by_type.values(), key=lambda agent: (agent.agent_type, agent.id()))