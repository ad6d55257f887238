from datetime import datetime, timezone

from agentinspect.pipeline.health import HealthStatus
from agentinspect.pipeline.model import Node, NodeMetrics, Pipeline
from agentinspect.tui.dashboard import Dashboard


def _ea_pipeline():
    return Pipeline(
        name="ea",
        nodes=[
            Node(
                id="input.system-logs",
                label="system-logs",
                kind="input",
                status=HealthStatus.HEALTHY,
                metrics=NodeMetrics(events_out_per_sec=10),
            ),
            Node(
                id="processor.batch",
                label="batch",
                kind="processor",
                status=HealthStatus.DEGRADED,
                metrics=NodeMetrics(events_out_per_sec=9),
            ),
            Node(id="output.default", label="default", kind="output", status=HealthStatus.ERROR),
        ],
        updated_at=datetime.now(timezone.utc),
    )


def _otel_pipeline():
    return Pipeline(
        name="edot",
        nodes=[
            Node(id="receiver.otlp", label="otlp", kind="receiver", status=HealthStatus.HEALTHY),
            Node(id="processor.batch", label="batch", kind="processor", status=HealthStatus.HEALTHY),
            Node(id="exporter.debug", label="debug", kind="exporter", status=HealthStatus.HEALTHY),
        ],
        updated_at=datetime.now(timezone.utc),
    )


def test_view_renders_pipeline_columns():
    view = Dashboard(_ea_pipeline()).view()
    for token in ["Inputs", "Processors", "Outputs", "system-logs", "batch", "default"]:
        assert token in view


def test_view_renders_otel_columns():
    view = Dashboard(_otel_pipeline()).view()
    for token in ["Receivers", "Processors", "Exporters", "otlp", "batch", "debug"]:
        assert token in view


def test_view_shows_icons_and_rates():
    view = Dashboard(_ea_pipeline()).view()
    assert "✓ system-logs (10.00/s)" in view
    assert "⚠ batch (9.00/s)" in view
    assert "✗ default (-)" in view


def test_empty_column_shows_dash():
    pipe = Pipeline(nodes=[Node(id="in", label="only", kind="input", status=HealthStatus.HEALTHY)])
    view = Dashboard(pipe).view()
    assert "│  -" in view


def test_none_pipeline_uses_example():
    dash = Dashboard(None)
    assert dash.items == ["Inputs", "Processors", "Outputs"]
    assert "logs input" in dash.view()


def test_cursor_wraps_both_ways():
    dash = Dashboard(_ea_pipeline())
    assert dash.cursor == 0
    dash.move_up()
    assert dash.cursor == 2
    dash.move_down()
    assert dash.cursor == 0
    dash.move_down()
    dash.move_down()
    dash.move_down()
    assert dash.cursor == 0


def test_selected_title_is_underlined():
    dash = Dashboard(_ea_pipeline())
    dash.move_down()
    view = dash.view()
    assert ";4mProcessors" in view
    assert ";4mInputs" not in view


def test_nodes_by_kind_keeps_order():
    dash = Dashboard(_otel_pipeline())
    assert [node.label for node in dash.nodes_by_kind("processor")] == ["batch"]
    assert dash.nodes_by_kind("input") == []


def test_rows_have_equal_width():
    lines = Dashboard(_ea_pipeline()).view().split("\n")
    assert lines[0].count("┌") == 3
    assert len({len(line) for line in lines if "\x1b" not in line}) == 1