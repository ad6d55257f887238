import json
from unittest import mock

import pytest

from agentinspect.cli import (
    StatusOptions,
    auto_detect_status_options,
    default_elastic_config_paths,
    discovery_priority,
    format_discovery,
    main,
    resolve_elastic_config_path,
    select_preferred_agent,
)
from agentinspect.discovery.types import DiscoveredAgent, DiscoveredChild

OTEL_CONFIG = """
receivers:
  otlp:
    protocols:
      grpc: {}
processors:
  batch: {}
exporters:
  debug: {}
service:
  pipelines:
    traces:
      receivers: [otlp]
      processors: [batch]
      exporters: [debug]
"""

ELASTIC_CONFIG = """
outputs:
  default:
    type: elasticsearch
    hosts: ["http://localhost:9200"]
inputs:
  - id: system-logs
    type: logfile
    use_output: default
  - id: api-events
    type: httpjson
    enabled: false
    use_output: default
"""


def test_auto_detect_uses_discovered_config_and_endpoints():
    def discover():
        return [
            DiscoveredAgent(
                agent_type="edot",
                config_path="/etc/edot/config.yaml",
                endpoints={
                    "zpages": "http://localhost:55679",
                    "metrics": "http://localhost:8888",
                    "health": "http://localhost:13133",
                },
                source="process",
            )
        ]

    options = auto_detect_status_options(StatusOptions(), discover)
    assert options.agent_type == "edot"
    assert options.edot_config == "/etc/edot/config.yaml"
    assert options.edot_metrics_url == "http://localhost:8888/metrics"
    assert options.edot_health_url == "http://localhost:13133/"
    assert options.edot_zpages_url == "http://localhost:55679"


def test_auto_detect_errors_when_nothing_discovered():
    with pytest.raises(LookupError, match="no local agents discovered"):
        auto_detect_status_options(StatusOptions(), lambda: [])


def _elastic_with_status():
    return [
        DiscoveredAgent(
            agent_type="elastic-agent",
            endpoints={"status": "http://127.0.0.1:7791"},
            source="process",
        )
    ]


def test_auto_detect_overrides_default_elastic_url():
    options = auto_detect_status_options(
        StatusOptions(elastic_status_url="http://localhost:6791"), _elastic_with_status
    )
    assert options.elastic_status_url == "http://127.0.0.1:7791"


def test_auto_detect_keeps_explicit_elastic_url():
    options = auto_detect_status_options(
        StatusOptions(
            elastic_status_url="http://custom-status:6791",
            explicit=frozenset({"elastic_status_url"}),
        ),
        _elastic_with_status,
    )
    assert options.elastic_status_url == "http://custom-status:6791"


def test_auto_detect_keeps_given_config_path():
    def discover():
        return [DiscoveredAgent(agent_type="otel", config_path="/etc/otelcol/config.yaml")]

    options = auto_detect_status_options(StatusOptions(otel_config="/custom.yaml"), discover)
    assert options.agent_type == "otel"
    assert options.otel_config == "/custom.yaml"


def test_auto_detect_errors_when_preferred_type_is_ambiguous():
    def discover():
        return [
            DiscoveredAgent(agent_type="elastic-agent", pid=100, source="process"),
            DiscoveredAgent(agent_type="elastic-agent", pid=200, source="process"),
        ]

    with pytest.raises(ValueError, match="multiple elastic-agent agents discovered"):
        auto_detect_status_options(StatusOptions(), discover)


def test_select_preferred_agent_labels_unknown_type():
    agents = [DiscoveredAgent(agent_type=""), DiscoveredAgent(agent_type="")]
    with pytest.raises(ValueError, match="multiple unknown agents discovered"):
        select_preferred_agent(agents)


def test_select_preferred_agent_prefers_elastic_agent():
    agents = [
        DiscoveredAgent(agent_type="otel", pid=1),
        DiscoveredAgent(agent_type="edot", pid=2),
        DiscoveredAgent(agent_type="otel", pid=4),
        DiscoveredAgent(agent_type="elastic-agent", pid=3),
    ]
    assert select_preferred_agent(agents).pid == 3


@pytest.mark.parametrize(
    "agent_type, expected",
    [("elastic-agent", 0), ("edot", 1), ("otel", 2), ("elastic-endpoint", 3)],
)
def test_discovery_priority(agent_type, expected):
    assert discovery_priority(agent_type) == expected


@pytest.mark.parametrize(
    "os_name, expected",
    [
        ("darwin", ["/Library/Elastic/Agent/elastic-agent.yml"]),
        ("windows", [r"C:\Program Files\Elastic\Agent\elastic-agent.yml"]),
        ("linux", ["/opt/Elastic/Agent/elastic-agent.yml"]),
    ],
)
def test_default_elastic_config_paths(os_name, expected):
    assert default_elastic_config_paths(os_name) == expected


def test_resolve_elastic_config_path_prefers_explicit():
    assert resolve_elastic_config_path("/my/elastic-agent.yml", "linux") == "/my/elastic-agent.yml"


def test_resolve_elastic_config_path_finds_default():
    with mock.patch("os.path.exists", return_value=True):
        assert resolve_elastic_config_path("", "linux") == "/opt/Elastic/Agent/elastic-agent.yml"


def test_resolve_elastic_config_path_not_found():
    with mock.patch("os.path.exists", return_value=False):
        with pytest.raises(FileNotFoundError, match="pass --elastic-config"):
            resolve_elastic_config_path("", "linux")


def test_format_discovery():
    agents = [
        DiscoveredAgent(
            agent_type="elastic-agent",
            pid=714,
            config_path="/opt/Elastic/Agent/elastic-agent.yml",
            source="process",
            children=[
                DiscoveredChild(pid=1443, name="agentbeat", role="metricbeat"),
                DiscoveredChild(pid=1500, name="edot-collector", role=""),
            ],
        ),
        DiscoveredAgent(agent_type="otel", source="port"),
    ]
    assert format_discovery(agents) == (
        "Found 2 agent(s):\n"
        "  1. elastic-agent (PID 714) - /opt/Elastic/Agent/elastic-agent.yml [process]\n"
        "     Children:\n"
        "       - metricbeat (PID 1443)\n"
        "       - edot-collector (PID 1500)\n"
        "  2. otel (PID n/a) - (config not found) [port]"
    )


def test_status_json_otel(tmp_path, capsys):
    config = tmp_path / "otel-config.yaml"
    config.write_text(OTEL_CONFIG)
    code = main(
        [
            "status",
            "--agent", "otel",
            "--format", "json",
            "--otel-config", str(config),
            "--otel-zpages-url", "http://localhost:1234",
        ]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert '"kind": "receiver"' in out
    payload = json.loads(out)
    assert [n["id"] for n in payload["nodes"]] == ["receiver.otlp", "processor.batch", "exporter.debug"]
    assert payload["edges"] == [
        {"from": "receiver.otlp", "to": "processor.batch"},
        {"from": "processor.batch", "to": "exporter.debug"},
    ]
    assert payload["metadata"]["zpages_url"] == "http://localhost:1234"
    assert payload["metadata"]["metrics_url"] == "http://localhost:8888/metrics"


def test_status_json_elastic(tmp_path, capsys):
    config = tmp_path / "elastic-agent.yml"
    config.write_text(ELASTIC_CONFIG)
    code = main(["status", "--agent", "elastic-agent", "--format", "json", "--elastic-config", str(config)])
    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    statuses = {n["id"]: n["status"] for n in payload["nodes"]}
    assert statuses == {
        "input.system-logs": "unknown",
        "input.api-events": "disabled",
        "output.default": "unknown",
    }
    assert {"from": "input.system-logs", "to": "output.default"} in payload["edges"]


def test_status_table_elastic(tmp_path, capsys):
    config = tmp_path / "elastic-agent.yml"
    config.write_text(ELASTIC_CONFIG)
    code = main(["status", "--agent", "elastic-agent", "--elastic-config", str(config)])
    out = capsys.readouterr().out
    assert code == 0
    assert "system-logs" in out
    assert "○" in out


def test_status_edot_without_config_fails(capsys):
    code = main(["status", "--agent", "edot"])
    assert code == 1
    assert "edot config not found; pass --edot-config" in capsys.readouterr().err


def test_status_unsupported_agent_fails(capsys):
    code = main(["status", "--agent", "bogus"])
    assert code == 1
    assert 'unsupported --agent value "bogus"' in capsys.readouterr().err


def test_status_unsupported_format_fails(tmp_path, capsys):
    config = tmp_path / "otel-config.yaml"
    config.write_text(OTEL_CONFIG)
    code = main(["status", "--agent", "otel", "--otel-config", str(config), "--format", "xml"])
    assert code == 1
    assert "unsupported --format value (use: table|json)" in capsys.readouterr().err


def test_status_missing_config_file_fails(tmp_path, capsys):
    code = main(["status", "--agent", "otel", "--otel-config", str(tmp_path / "missing.yaml")])
    assert code == 1
    assert capsys.readouterr().err.startswith("Error: ")