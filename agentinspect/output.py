"""JSON and table renderings of a pipeline."""

from __future__ import annotations

import json
import unicodedata
from collections.abc import Sequence

from .pipeline.health import HealthStatus
from .pipeline.model import Node, Pipeline

_HEADERS = ("Component", "Health", "Status", "Events/s", "Errors")

_ICONS = {
    HealthStatus.HEALTHY: "✓",
    HealthStatus.DEGRADED: "⚠",
    HealthStatus.ERROR: "✗",
    HealthStatus.DISABLED: "○",
}

_JSON_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def render_json(pipeline: Pipeline) -> str:
    """Return an indented JSON view of a pipeline.

    Raises ValueError when a metric is not a finite number.
    """
    text = json.dumps(pipeline.to_dict(), indent=2, ensure_ascii=False, allow_nan=False)
    for raw, escaped in _JSON_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def health_icon(status: HealthStatus | str) -> str:
    """Return the single-character icon for a health state."""
    try:
        return _ICONS.get(HealthStatus(status), "?")
    except ValueError:
        return "?"


def _node_row(node: Node) -> list[str]:
    events = "-"
    errors = "-"
    if node.metrics is not None:
        events = f"{node.metrics.events_out_per_sec:.2f}"
        errors = f"{node.metrics.error_count:.0f}"
    return [node.label, health_icon(node.status), str(node.status), events, errors]


def _display_width(text: str) -> int:
    width = 0
    for char in text:
        if unicodedata.combining(char):
            continue
        width += 2 if unicodedata.east_asian_width(char) in ("W", "F") else 1
    return width


def _draw_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    widths = [_display_width(h) for h in headers]
    for row in rows:
        widths = [max(w, _display_width(cell)) for w, cell in zip(widths, row)]

    def border(left: str, middle: str, right: str) -> str:
        return left + middle.join("─" * w for w in widths) + right

    def line(cells: Sequence[str]) -> str:
        padded = (cell + " " * (w - _display_width(cell)) for cell, w in zip(cells, widths))
        return "│" + "│".join(padded) + "│"

    lines = [border("╭", "┬", "╮"), line(headers), border("├", "┼", "┤")]
    lines.extend(line(row) for row in rows)
    lines.append(border("╰", "┴", "╯"))
    return "\n".join(lines)


def render_table(pipeline: Pipeline) -> str:
    """Return a bordered table with one row per pipeline node."""
    return _draw_table(_HEADERS, [_node_row(node) for node in pipeline.nodes])