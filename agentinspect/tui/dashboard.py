"""Pipeline-first dashboard screen with one column per component kind."""

from __future__ import annotations

import textwrap

from ..output import _display_width, health_icon
from ..pipeline.model import Node, Pipeline, example_pipeline

_CONTENT_WIDTH = 32
_COLUMN_WIDTH = _CONTENT_WIDTH + 4
_TITLE_STYLE = "\x1b[1;38;5;63m"
_TITLE_SELECTED_STYLE = "\x1b[1;38;5;63;4m"
_RESET = "\x1b[0m"


def _has_otel_kinds(pipe: Pipeline) -> bool:
    return any(node.kind in ("receiver", "exporter") for node in pipe.nodes)


def _column_titles(uses_otel: bool) -> list[str]:
    if uses_otel:
        return ["Receivers", "Processors", "Exporters"]
    return ["Inputs", "Processors", "Outputs"]


def _wrap(text: str) -> list[str]:
    if _display_width(text) <= _CONTENT_WIDTH:
        return [text]
    return textwrap.wrap(text, _CONTENT_WIDTH) or [""]


def _boxed(plain: str, rendered: str | None = None) -> str:
    padding = " " * max(0, _CONTENT_WIDTH - _display_width(plain))
    return "│ " + (plain if rendered is None else rendered) + padding + " │"


def _node_text(node: Node) -> str:
    events = "-"
    if node.metrics is not None:
        events = f"{node.metrics.events_out_per_sec:.2f}/s"
    return f" {health_icon(node.status)} {node.label} ({events})"


def _render_column(title: str, nodes: list[Node], selected: bool) -> list[str]:
    style = _TITLE_SELECTED_STYLE if selected else _TITLE_STYLE
    lines = ["┌" + "─" * (_CONTENT_WIDTH + 2) + "┐"]
    lines.extend(_boxed(piece, f"{style}{piece}{_RESET}") for piece in _wrap(title))
    texts = [_node_text(node) for node in nodes] or [" -"]
    for text in texts:
        lines.extend(_boxed(piece) for piece in _wrap(text))
    lines.append("└" + "─" * (_CONTENT_WIDTH + 2) + "┘")
    return lines


def _join_horizontal(columns: list[list[str]]) -> str:
    height = max(len(column) for column in columns)
    blank = " " * _COLUMN_WIDTH
    padded = [column + [blank] * (height - len(column)) for column in columns]
    return "\n".join("".join(row) for row in zip(*padded))


class Dashboard:
    """Three columns of pipeline nodes with a selectable column cursor."""

    def __init__(self, pipe: Pipeline | None = None) -> None:
        self.pipe = pipe if pipe is not None else example_pipeline()
        self.uses_otel = _has_otel_kinds(self.pipe)
        self.items = _column_titles(self.uses_otel)
        self.cursor = 0

    def move_up(self) -> None:
        """Select the previous column, wrapping to the last."""
        if self.items:
            self.cursor = (self.cursor - 1) % len(self.items)

    def move_down(self) -> None:
        """Select the next column, wrapping to the first."""
        if self.items:
            self.cursor = (self.cursor + 1) % len(self.items)

    def nodes_by_kind(self, kind: str) -> list[Node]:
        """Return the pipeline nodes of one kind, in pipeline order."""
        return [node for node in self.pipe.nodes if node.kind == kind]

    def view(self) -> str:
        """Render the three columns side by side."""
        left, right = ("receiver", "exporter") if self.uses_otel else ("input", "output")
        kinds = (left, "processor", right)
        columns = [
            _render_column(title, self.nodes_by_kind(kind), self.cursor == index)
            for index, (title, kind) in enumerate(zip(self.items, kinds))
        ]
        return _join_horizontal(columns)