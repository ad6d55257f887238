import pytest

from agentinspect.config.otel import (
    OTelPipelineType,
    parse_otel_collector_config,
    parse_otel_collector_config_bytes,
    pipeline_type_from_name,
    segment_before_slash,
)

EDOT_CONFIG = """
receivers:
  otlp:
    protocols:
      grpc:
        endpoint: 0.0.0.0:4317
  prometheus/infra:
    config:
      scrape_configs:
        - job_name: infra
processors:
  memory_limiter:
    check_interval: 1s
    limit_mib: 512
  batch: {}
  ecsformatprocessor/logs: {}
exporters:
  debug:
    verbosity: basic
  elasticsearch/logs:
    endpoints: ["https://localhost:9200"]
extensions:
  health_check: {}
  zpages: {}
service:
  extensions: [health_check, zpages]
  pipelines:
    traces:
      receivers: [otlp]
      processors: [memory_limiter, batch]
      exporters: [debug]
    metrics:
      receivers: [otlp, prometheus/infra]
      processors: [memory_limiter, batch]
      exporters: [debug]
    logs:
      receivers: [otlp]
      processors: [ecsformatprocessor/logs, batch]
      exporters: [elasticsearch/logs]
"""


@pytest.fixture
def edot_config_path(tmp_path):
    path = tmp_path / "edot-config.yaml"
    path.write_text(EDOT_CONFIG)
    return path


def test_parse_otel_collector_config(edot_config_path):
    cfg = parse_otel_collector_config(edot_config_path)
    assert len(cfg.receivers) == 2
    assert len(cfg.processors) == 3
    assert len(cfg.exporters) == 2
    assert len(cfg.extensions) == 2
    assert len(cfg.service.pipelines) == 3

    traces = cfg.service.pipelines["traces"]
    assert traces.type == OTelPipelineType.TRACE
    assert traces.receivers == ["otlp"]
    assert traces.processors == ["memory_limiter", "batch"]
    assert traces.exporters == ["debug"]

    metrics = cfg.service.pipelines["metrics"]
    assert metrics.type == OTelPipelineType.METRICS
    assert metrics.receivers == ["otlp", "prometheus/infra"]
    assert metrics.processors == ["memory_limiter", "batch"]
    assert metrics.exporters == ["debug"]

    logs = cfg.service.pipelines["logs"]
    assert logs.type == OTelPipelineType.LOGS
    assert logs.receivers == ["otlp"]
    assert logs.processors == ["ecsformatprocessor/logs", "batch"]
    assert logs.exporters == ["elasticsearch/logs"]


def test_components_keep_type_and_raw_settings(edot_config_path):
    cfg = parse_otel_collector_config(edot_config_path)
    infra = cfg.receivers["prometheus/infra"]
    assert infra.name == "prometheus/infra"
    assert infra.type == "prometheus"
    assert cfg.exporters["elasticsearch/logs"].raw["endpoints"] == ["https://localhost:9200"]
    assert cfg.service.pipelines["logs"].name == "logs"


def test_empty_document_gives_empty_config():
    cfg = parse_otel_collector_config_bytes(b"")
    assert cfg.receivers == {}
    assert cfg.service.pipelines == {}


def test_invalid_yaml_raises():
    with pytest.raises(ValueError, match="parse otel collector config yaml"):
        parse_otel_collector_config_bytes(b"receivers: [unclosed")


def test_wrong_shape_raises():
    with pytest.raises(ValueError):
        parse_otel_collector_config_bytes(b"receivers:\n  - otlp\n")


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_otel_collector_config(tmp_path / "absent.yaml")


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("traces", OTelPipelineType.TRACE),
        ("trace/x", OTelPipelineType.TRACE),
        ("metrics/unpoller", OTelPipelineType.METRICS),
        ("logs", OTelPipelineType.LOGS),
        ("profiles", OTelPipelineType.UNKNOWN),
    ],
)
def test_pipeline_type_from_name(name, expected):
    assert pipeline_type_from_name(name) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("prometheus/infra", "prometheus"),
        ("  otlp  ", "otlp"),
        ("/leading", "/leading"),
        ("   ", ""),
    ],
)
def test_segment_before_slash(value, expected):
    assert segment_before_slash(value) == expected