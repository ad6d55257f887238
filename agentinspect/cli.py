"""Command line: discover local agents and show their pipeline status."""

from __future__ import annotations

import argparse
import os
import re
import subprocess
import sys
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from .config.elastic import ElasticAgentConfig, parse_elastic_agent_config
from .config.otel import OTelCollectorConfig, parse_otel_collector_config
from .discovery.orchestrator import Orchestrator
from .discovery.types import DiscoveredAgent, _current_os
from .output import render_json, render_table
from .pipeline.health import HealthStatus
from .pipeline.model import Edge, Node, Pipeline

DEFAULT_ELASTIC_URL = "http://localhost:6791"
DEFAULT_ZPAGES_URL = "http://localhost:55679"
DEFAULT_METRICS_URL = "http://localhost:8888/metrics"
DEFAULT_HEALTH_URL = "http://localhost:13133/"

_URL_DEFAULTS = {
    "elastic_status_url": DEFAULT_ELASTIC_URL,
    "edot_zpages_url": DEFAULT_ZPAGES_URL,
    "edot_metrics_url": DEFAULT_METRICS_URL,
    "edot_health_url": DEFAULT_HEALTH_URL,
    "otel_zpages_url": DEFAULT_ZPAGES_URL,
    "otel_metrics_url": DEFAULT_METRICS_URL,
    "otel_health_url": DEFAULT_HEALTH_URL,
}

# agent type -> (config field, [(endpoint key, option field, suffix)])
_DISCOVERED_SETTINGS = {
    "elastic-agent": ("elastic_config", [("status", "elastic_status_url", "")]),
    "edot": (
        "edot_config",
        [
            ("zpages", "edot_zpages_url", ""),
            ("metrics", "edot_metrics_url", "/metrics"),
            ("health", "edot_health_url", "/"),
        ],
    ),
    "otel": (
        "otel_config",
        [
            ("zpages", "otel_zpages_url", ""),
            ("metrics", "otel_metrics_url", "/metrics"),
            ("health", "otel_health_url", "/"),
        ],
    ),
}

_PRIORITY = {"elastic-agent": 0, "edot": 1, "otel": 2}

Discover = Callable[[], "list[DiscoveredAgent]"]


@dataclass
class StatusOptions:
    """Which agent to inspect and where its config and endpoints are.

    ``explicit`` names the URL fields given on the command line; discovery
    never overrides those.
    """

    agent_type: str = ""
    elastic_config: str = ""
    elastic_status_url: str = DEFAULT_ELASTIC_URL
    edot_config: str = ""
    edot_zpages_url: str = DEFAULT_ZPAGES_URL
    edot_metrics_url: str = DEFAULT_METRICS_URL
    edot_health_url: str = DEFAULT_HEALTH_URL
    otel_config: str = ""
    otel_zpages_url: str = DEFAULT_ZPAGES_URL
    otel_metrics_url: str = DEFAULT_METRICS_URL
    otel_health_url: str = DEFAULT_HEALTH_URL
    explicit: frozenset[str] = field(default_factory=frozenset)


def _discover_agents() -> list[DiscoveredAgent]:
    return Orchestrator().discover_detailed()


def discovery_priority(agent_type: str) -> int:
    """Rank agent types for auto-detection; lower wins."""
    return _PRIORITY.get(agent_type, 3)


def select_preferred_agent(agents: Sequence[DiscoveredAgent]) -> DiscoveredAgent:
    """Return the single agent of the best-ranked type.

    Raises ValueError when several agents share that type.
    """
    if not agents:
        raise LookupError("no local agents discovered; pass --agent and explicit config flags")
    best_score = min(discovery_priority(agent.agent_type) for agent in agents)
    tied = [agent for agent in agents if discovery_priority(agent.agent_type) == best_score]
    if len(tied) > 1:
        label = tied[0].agent_type.strip() and tied[0].agent_type or "unknown"
        raise ValueError(
            f"multiple {label} agents discovered; pass --agent and explicit config flags"
        )
    return tied[0]


def auto_detect_status_options(
    options: StatusOptions, discover: Discover | None = None
) -> StatusOptions:
    """Fill the agent type, config path and endpoints from local discovery."""
    found = (discover or _discover_agents)()
    if not found:
        raise LookupError("no local agents discovered; pass --agent and explicit config flags")
    best = select_preferred_agent(found)
    changes: dict[str, str] = {"agent_type": best.agent_type}
    settings = _DISCOVERED_SETTINGS.get(best.agent_type)
    if settings is not None:
        config_field, endpoint_fields = settings
        if not getattr(options, config_field).strip():
            changes[config_field] = best.config_path
        for key, option_field, suffix in endpoint_fields:
            if key in best.endpoints and option_field not in options.explicit:
                changes[option_field] = best.endpoints[key] + suffix
    return replace(options, **changes)


def default_elastic_config_paths(os_name: str | None = None) -> list[str]:
    """Return the usual elastic-agent.yml locations for an operating system."""
    os_name = os_name or _current_os()
    if os_name == "darwin":
        return ["/Library/Elastic/Agent/elastic-agent.yml"]
    if os_name == "windows":
        return [r"C:\Program Files\Elastic\Agent\elastic-agent.yml"]
    return ["/opt/Elastic/Agent/elastic-agent.yml"]


def resolve_elastic_config_path(explicit_path: str = "", os_name: str | None = None) -> str:
    """Return the explicit path, else the first existing default location."""
    if explicit_path:
        return explicit_path
    for candidate in default_elastic_config_paths(os_name):
        if os.path.exists(candidate):
            return candidate
    raise FileNotFoundError("elastic agent config not found; pass --elastic-config")


def format_discovery(agents: Sequence[DiscoveredAgent]) -> str:
    """Describe discovered agents and their children, one per line."""
    lines = [f"Found {len(agents)} agent(s):"]
    for number, agent in enumerate(agents, start=1):
        config_path = agent.config_path if agent.config_path.strip() else "(config not found)"
        pid_label = f"PID {agent.pid}" if agent.pid > 0 else "PID n/a"
        lines.append(f"  {number}. {agent.agent_type} ({pid_label}) - {config_path} [{agent.source}]")
        if not agent.children:
            continue
        lines.append("     Children:")
        for child in agent.children:
            role = child.role if child.role.strip() else child.name
            lines.append(f"       - {role} (PID {child.pid})")
    return "\n".join(lines)


def _elastic_pipeline(cfg: ElasticAgentConfig, metadata: dict[str, str]) -> Pipeline:
    nodes: list[Node] = []
    edges: list[Edge] = []
    for item in cfg.inputs:
        node_id = f"input.{item.id}"
        status = HealthStatus.UNKNOWN if item.enabled else HealthStatus.DISABLED
        nodes.append(Node(id=node_id, label=item.id or item.type, kind="input", status=status))
        target = item.use_output or "default"
        if target in cfg.outputs:
            edges.append(Edge(from_id=node_id, to_id=f"output.{target}"))
    for name in cfg.outputs:
        nodes.append(Node(id=f"output.{name}", label=name, kind="output", status=HealthStatus.UNKNOWN))
    return Pipeline(
        name="elastic-agent",
        nodes=nodes,
        edges=edges,
        updated_at=datetime.now(timezone.utc),
        metadata=metadata,
    )


def _collector_pipeline(name: str, cfg: OTelCollectorConfig, metadata: dict[str, str]) -> Pipeline:
    nodes: dict[str, Node] = {}
    edges: list[Edge] = []
    seen: set[tuple[str, str]] = set()

    def add(kind: str, component: str) -> str:
        node_id = f"{kind}.{component}"
        if node_id not in nodes:
            nodes[node_id] = Node(id=node_id, label=component, kind=kind, status=HealthStatus.UNKNOWN)
        return node_id

    for wiring in cfg.service.pipelines.values():
        stages: list[list[str]] = [[add("receiver", r) for r in wiring.receivers]]
        stages.extend([add("processor", p)] for p in wiring.processors)
        stages.append([add("exporter", e) for e in wiring.exporters])
        stages = [stage for stage in stages if stage]
        for upstream, downstream in zip(stages, stages[1:]):
            for source in upstream:
                for target in downstream:
                    if (source, target) not in seen:
                        seen.add((source, target))
                        edges.append(Edge(from_id=source, to_id=target))
    return Pipeline(
        name=name,
        nodes=list(nodes.values()),
        edges=edges,
        updated_at=datetime.now(timezone.utc),
        metadata=metadata,
    )


def _status_pipeline(options: StatusOptions, discover: Discover | None = None) -> Pipeline:
    if not options.agent_type:
        options = auto_detect_status_options(options, discover)

    if options.agent_type == "elastic-agent":
        config_path = resolve_elastic_config_path(options.elastic_config)
        cfg = parse_elastic_agent_config(config_path)
        metadata = {
            "agent_type": "elastic-agent",
            "config_path": config_path,
            "status_url": options.elastic_status_url,
        }
        return _elastic_pipeline(cfg, metadata)

    if options.agent_type in ("edot", "otel"):
        prefix = options.agent_type
        config_path = getattr(options, f"{prefix}_config")
        if not config_path.strip():
            raise ValueError(f"{prefix} config not found; pass --{prefix}-config")
        cfg = parse_otel_collector_config(config_path)
        metadata = {
            "agent_type": prefix,
            "config_path": config_path,
            "zpages_url": getattr(options, f"{prefix}_zpages_url"),
            "metrics_url": getattr(options, f"{prefix}_metrics_url"),
            "health_url": getattr(options, f"{prefix}_health_url"),
        }
        return _collector_pipeline(prefix, cfg, metadata)

    raise ValueError(f'unsupported --agent value "{options.agent_type}"')


_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def _parse_duration(text: str) -> float:
    body = text.strip()
    sign = 1.0
    if body and body[0] in "+-":
        sign = -1.0 if body[0] == "-" else 1.0
        body = body[1:]
    if body == "0":
        return 0.0
    if not body:
        raise argparse.ArgumentTypeError(f"invalid duration {text!r}")
    total = 0.0
    position = 0
    while position < len(body):
        match = _DURATION_PART.match(body, position)
        if match is None:
            raise argparse.ArgumentTypeError(f"invalid duration {text!r}")
        total += float(match[1]) * _DURATION_UNITS[match[2]]
        position = match.end()
    return sign * total


def _add_target_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--agent", dest="agent_type", default="", help="Target a specific agent type")
    parser.add_argument(
        "--elastic-config", default="", help="Path to elastic-agent.yml (auto-detected when omitted)"
    )
    parser.add_argument(
        "--elastic-url",
        dest="elastic_status_url",
        help=f"Elastic Agent status API base URL (default {DEFAULT_ELASTIC_URL})",
    )
    parser.add_argument("--edot-config", default="", help="Path to EDOT/OTel collector YAML config")
    parser.add_argument(
        "--edot-zpages-url", help=f"EDOT zpages base URL (default {DEFAULT_ZPAGES_URL})"
    )
    parser.add_argument(
        "--edot-metrics-url", help=f"EDOT Prometheus metrics endpoint (default {DEFAULT_METRICS_URL})"
    )
    parser.add_argument(
        "--edot-health-url", help=f"EDOT health_check endpoint (default {DEFAULT_HEALTH_URL})"
    )
    parser.add_argument("--otel-config", default="", help="Path to OTel collector YAML config")
    parser.add_argument(
        "--otel-zpages-url", help=f"OTel zpages base URL (default {DEFAULT_ZPAGES_URL})"
    )
    parser.add_argument(
        "--otel-metrics-url", help=f"OTel Prometheus metrics endpoint (default {DEFAULT_METRICS_URL})"
    )
    parser.add_argument(
        "--otel-health-url", help=f"OTel health_check endpoint (default {DEFAULT_HEALTH_URL})"
    )


def _options_from_args(args: argparse.Namespace) -> StatusOptions:
    given = {name: getattr(args, name) for name in _URL_DEFAULTS}
    urls = {name: value if value is not None else _URL_DEFAULTS[name] for name, value in given.items()}
    return StatusOptions(
        agent_type=args.agent_type,
        elastic_config=args.elastic_config,
        edot_config=args.edot_config,
        otel_config=args.otel_config,
        explicit=frozenset(name for name, value in given.items() if value is not None),
        **urls,
    )


def _run_status(args: argparse.Namespace) -> str:
    """Build the status report in the requested format."""
    pipe = _status_pipeline(_options_from_args(args))
    if args.format == "json":
        return render_json(pipe)
    if args.format == "table":
        return render_table(pipe)
    raise ValueError("unsupported --format value (use: table|json)")


def _run_discover(args: argparse.Namespace) -> str:
    """Run local discovery and describe what was found."""
    agents = _discover_agents()
    return format_discovery(agents)


def _run_tui(args: argparse.Namespace) -> str:
    """Start the interactive dashboard; it draws its own output."""
    from .tui.app import App

    pipe = _status_pipeline(_options_from_args(args))
    App(live=args.live, refresh=args.refresh, pipe=pipe).run()
    return ""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="agent-cli", description="Inspect local observability agents")
    commands = parser.add_subparsers(dest="command")

    status = commands.add_parser("status", help="Show a pipeline-oriented status report")
    status.add_argument("--format", default="table", help="Output format (table|json)")
    _add_target_flags(status)
    status.set_defaults(handler=_run_status)

    discover = commands.add_parser("discover", help="Discover local agents")
    discover.set_defaults(handler=_run_discover)

    tui = commands.add_parser("tui", help="Launch interactive TUI")
    tui.add_argument("--live", action="store_true", help="Enable live mode auto-refresh")
    tui.add_argument(
        "--refresh", type=_parse_duration, default=5.0, help="Refresh interval in live mode (e.g. 5s)"
    )
    _add_target_flags(tui)
    tui.set_defaults(handler=_run_tui)
    return parser


def main(argv: Iterable[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    parser = _build_parser()
    args = parser.parse_args(None if argv is None else list(argv))
    if args.command is None:
        parser.print_help()
        return 0
    try:
        output = args.handler(args)
    except (ValueError, LookupError, OSError, subprocess.SubprocessError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if output:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())