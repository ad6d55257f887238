"""Graph model of an agent's data flow."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .health import HealthStatus

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def _json_number(value: float) -> int | float:
    number = float(value)
    if math.isfinite(number) and number.is_integer() and abs(number) < 1e21:
        return int(number)
    return number


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    minutes = int(offset.total_seconds() // 60) if offset else 0
    if minutes == 0:
        return text + "Z"
    sign = "+" if minutes > 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{mins:02d}"


@dataclass
class NodeMetrics:
    """Throughput and error counters rendered per node."""

    events_in_per_sec: float = 0.0
    events_out_per_sec: float = 0.0
    error_count: float = 0.0
    drop_count: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "events_in_per_sec": _json_number(self.events_in_per_sec),
            "events_out_per_sec": _json_number(self.events_out_per_sec),
            "error_count": _json_number(self.error_count),
            "drop_count": _json_number(self.drop_count),
        }


@dataclass
class Node:
    """A pipeline vertex."""

    id: str = ""
    label: str = ""
    kind: str = ""
    status: HealthStatus | str = HealthStatus.UNKNOWN
    metrics: NodeMetrics | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "kind": self.kind,
            "status": str(self.status),
        }
        if self.metrics is not None:
            data["metrics"] = self.metrics.to_dict()
        return data


@dataclass
class Edge:
    """A directional connection between two nodes."""

    from_id: str = ""
    to_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"from": self.from_id, "to": self.to_id}


@dataclass
class ComponentStatus:
    """Flattened status view of one component."""

    id: str = ""
    name: str = ""
    kind: str = ""
    status: HealthStatus | str = HealthStatus.UNKNOWN
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "status": str(self.status),
        }
        if self.message:
            data["message"] = self.message
        return data


@dataclass
class Pipeline:
    """Nodes and edges describing one agent's data flow."""

    name: str = ""
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    updated_at: datetime = _ZERO_TIME
    metadata: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "updated_at": _format_time(self.updated_at),
        }
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


def example_pipeline() -> Pipeline:
    """Return a small placeholder pipeline."""
    return Pipeline(
        name="example",
        nodes=[
            Node(id="input.logs", label="logs input", kind="input", status=HealthStatus.HEALTHY),
            Node(id="processor.batch", label="batch", kind="processor", status=HealthStatus.HEALTHY),
            Node(id="output.es", label="elasticsearch", kind="output", status=HealthStatus.HEALTHY),
        ],
        edges=[
            Edge(from_id="input.logs", to_id="processor.batch"),
            Edge(from_id="processor.batch", to_id="output.es"),
        ],
        updated_at=datetime.now(timezone.utc),
    )