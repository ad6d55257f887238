"""Parsing of OTel collector metrics in the Prometheus text format."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class OTelComponentMetrics:
    """Counters used for a component's health and throughput."""

    accepted: float = 0.0
    sent: float = 0.0
    dropped: float = 0.0
    send_failed: float = 0.0


@dataclass
class OTelSnapshot:
    """Key collector runtime counters, keyed by component name."""

    receivers: dict[str, OTelComponentMetrics] = field(default_factory=dict)
    processors: dict[str, OTelComponentMetrics] = field(default_factory=dict)
    exporters: dict[str, OTelComponentMetrics] = field(default_factory=dict)


# metric name prefix, snapshot section, label naming the component, counter
_RULES = (
    ("otelcol_receiver_accepted_", "receivers", "receiver", "accepted"),
    ("otelcol_exporter_sent_", "exporters", "exporter", "sent"),
    ("otelcol_processor_dropped_", "processors", "processor", "dropped"),
    ("otelcol_exporter_send_failed_", "exporters", "exporter", "send_failed"),
)


def _split_labels(raw: str) -> list[str]:
    if not raw.strip():
        return []
    parts: list[str] = []
    current: list[str] = []
    in_quotes = False
    for char in raw:
        if char == '"':
            in_quotes = not in_quotes
            current.append(char)
        elif char == "," and not in_quotes:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def parse_prometheus_labels(raw: str) -> dict[str, str]:
    """Parse the text between the braces of a sample into a label mapping."""
    labels: dict[str, str] = {}
    for token in _split_labels(raw):
        key, sep, value = token.strip().partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key:
            continue
        labels[key] = value.strip().strip('"')
    return labels


def _parse_float(text: str) -> float | None:
    if "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def parse_prometheus_line(line: str) -> tuple[str, dict[str, str], float] | None:
    """Split one sample line into name, labels and value; None if malformed.

    A trailing timestamp after the value is ignored.
    """
    parts = line.split()
    if len(parts) < 2:
        return None
    raw_metric = parts[0]
    value = _parse_float(parts[1])
    if value is None:
        return None

    open_at = raw_metric.find("{")
    if open_at < 0:
        return raw_metric, {}, value
    close_at = raw_metric.rfind("}")
    if close_at <= open_at:
        return None
    return raw_metric[:open_at], parse_prometheus_labels(raw_metric[open_at + 1 : close_at]), value


def parse_prometheus_text(text: str) -> OTelSnapshot:
    """Sum the accepted, sent, dropped and send-failed counters per component."""
    snapshot = OTelSnapshot()
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        sample = parse_prometheus_line(line)
        if sample is None:
            continue
        name, labels, value = sample
        for prefix, section_name, label, counter in _RULES:
            if not name.startswith(prefix):
                continue
            component = labels.get(label, "").strip()
            if component:
                section: dict[str, OTelComponentMetrics] = getattr(snapshot, section_name)
                metrics = section.setdefault(component, OTelComponentMetrics())
                setattr(metrics, counter, getattr(metrics, counter) + value)
            break
    return snapshot