"""Discovery of agents among the running processes."""

from __future__ import annotations

import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field

from .types import DiscoveredAgent, DiscoveredChild, _current_os


@dataclass
class ProcessInfo:
    """A running process that might belong to an agent."""

    pid: int = 0
    ppid: int = 0
    name: str = ""
    command: str = ""
    args: list[str] = field(default_factory=list)


ProcessProvider = Callable[[], "list[ProcessInfo]"]

_BEAT_ROLES = frozenset({"metricbeat", "filebeat", "agentbeat"})


def _base_name(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rsplit("/", 1)[-1]


def _parse_int(text: str) -> int | None:
    if "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def parse_ps_line(line: str) -> ProcessInfo | None:
    """Parse one "pid ppid args" line of ps output; None if malformed."""
    fields = line.split()
    if len(fields) < 3:
        return None
    pid = _parse_int(fields[0])
    ppid = _parse_int(fields[1])
    if pid is None or ppid is None:
        return None
    command = fields[2]
    return ProcessInfo(
        pid=pid, ppid=ppid, name=_base_name(command), command=command, args=fields[3:]
    )


def default_process_provider() -> list[ProcessInfo]:
    """List processes with ps; empty on systems other than Linux and macOS.

    Raises subprocess.CalledProcessError when ps fails.
    """
    if _current_os() not in ("darwin", "linux"):
        return []
    result = subprocess.run(
        ["ps", "-eo", "pid,ppid,args"], capture_output=True, check=True, text=True
    )
    processes = []
    for line in result.stdout.split("\n")[1:]:
        stripped = line.strip()
        if not stripped:
            continue
        proc = parse_ps_line(stripped)
        if proc is not None:
            processes.append(proc)
    return processes


def classify_process(proc: ProcessInfo) -> tuple[str, str, bool]:
    """Return (agent type, role, runs as a child) for a process; empty type if unknown."""
    name = _base_name(proc.name)
    first_arg = proc.args[0] if proc.args else ""
    if name == "elastic-agent":
        if first_arg == "otel":
            return "edot", "otel-collector", True
        return "elastic-agent", "", False
    if name in ("elastic-otel-collector", "edot-collector"):
        return "edot", "otel-collector", True
    if name == "agentbeat":
        if first_arg in ("metricbeat", "filebeat"):
            return "elastic-agent", first_arg, True
        return "elastic-agent", "agentbeat", True
    if name == "elastic-endpoint":
        return "elastic-endpoint", "endpoint", False
    if name in ("otelcol", "otelcol-contrib", "otelcorecol"):
        return "otel", "otel-collector", False
    return "", "", False


def _parse_e_flag(endpoints: dict[str, str], value: str) -> None:
    value = value.strip()
    if value.startswith("http.host="):
        endpoints["beats_http_host"] = value[len("http.host=") :]
    if value.startswith("path.data="):
        endpoints["path_data"] = value[len("path.data=") :]


_PREFIXED_ENDPOINTS = (
    ("--supervised.monitoring.url=", "monitoring_url"),
    ("--http-addr=", "http_addr"),
    ("--grpc-addr=", "grpc_addr"),
)

_SPLIT_ENDPOINTS = {"--http-addr": "http_addr", "--grpc-addr": "grpc_addr"}


def parse_process_arguments(args: list[str]) -> tuple[str, dict[str, str]]:
    """Extract the config path and known endpoint flags from process arguments."""
    config_path = ""
    endpoints: dict[str, str] = {}
    remaining = iter(args)
    for arg in remaining:
        if arg in ("--config", "-c"):
            value = next(remaining, None)
            if value is not None:
                config_path = value
            continue
        if arg.startswith("--config="):
            config_path = arg[len("--config=") :]
            continue
        if arg.startswith("-c="):
            config_path = arg[len("-c=") :]
            continue
        if arg in _SPLIT_ENDPOINTS:
            value = next(remaining, None)
            if value is not None:
                endpoints[_SPLIT_ENDPOINTS[arg]] = value
            continue
        prefixed = next((item for item in _PREFIXED_ENDPOINTS if arg.startswith(item[0])), None)
        if prefixed is not None:
            endpoints[prefixed[1]] = arg[len(prefixed[0]) :]
            continue
        if arg == "-E":
            value = next(remaining, None)
            if value is not None:
                _parse_e_flag(endpoints, value)
            continue
        if arg.startswith("-E"):
            _parse_e_flag(endpoints, arg[2:])
    return config_path, endpoints


@dataclass
class _ChildCandidate:
    child: DiscoveredChild
    parent_pid: int
    agent_type: str
    config_path: str
    endpoints: dict[str, str]


def _children_to_standalone(children: list[_ChildCandidate]) -> list[DiscoveredAgent]:
    return [
        DiscoveredAgent(
            agent_type="elastic-agent" if item.child.role in _BEAT_ROLES else item.agent_type,
            pid=item.child.pid,
            config_path=item.config_path,
            endpoints=item.endpoints,
            source="process",
        )
        for item in children
    ]


class ProcessScanner:
    """Finds agents among running processes and attaches children to their parents."""

    def __init__(self, provider: ProcessProvider | None = None) -> None:
        self.provider = provider if provider is not None else default_process_provider

    def discover(self) -> list[DiscoveredAgent]:
        """Return parents, then standalone agents, then children without a parent."""
        parents: list[DiscoveredAgent] = []
        standalone: list[DiscoveredAgent] = []
        children: list[_ChildCandidate] = []

        for proc in self.provider():
            agent_type, role, is_child = classify_process(proc)
            if not agent_type:
                continue
            config_path, endpoints = parse_process_arguments(proc.args)
            config_path = config_path.strip()
            if is_child:
                children.append(
                    _ChildCandidate(
                        child=DiscoveredChild(
                            pid=proc.pid, name=proc.name, role=role, args=list(proc.args)
                        ),
                        parent_pid=proc.ppid,
                        agent_type=agent_type,
                        config_path=config_path,
                        endpoints=endpoints,
                    )
                )
                continue
            agent = DiscoveredAgent(
                agent_type=agent_type,
                pid=proc.pid,
                config_path=config_path,
                endpoints=endpoints,
                source="process",
            )
            (parents if agent_type == "elastic-agent" else standalone).append(agent)

        if not parents:
            return standalone + _children_to_standalone(children)

        by_pid = {parent.pid: parent for parent in parents}
        unmatched = []
        for candidate in children:
            parent = by_pid.get(candidate.parent_pid)
            if parent is None:
                unmatched.append(candidate)
            else:
                parent.children.append(candidate.child)
        for parent in parents:
            parent.children.sort(key=lambda child: child.pid)
        return parents + standalone + _children_to_standalone(unmatched)