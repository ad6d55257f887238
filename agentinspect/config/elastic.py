"""Elastic Agent configuration parsing."""

from __future__ import annotations

from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Any

from .otel import (
    _load_document,
    _mapping,
    _scalar_text,
    _string_list,
    parse_otel_collector_config_bytes,
    segment_before_slash,
)


@dataclass
class ElasticOutput:
    """A named output target."""

    type: str = ""
    hosts: list[str] = field(default_factory=list)


@dataclass
class ElasticInput:
    """One input block; enabled unless the file says otherwise."""

    id: str = ""
    type: str = ""
    enabled: bool = True
    use_output: str = ""
    streams: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class ElasticAgentConfig:
    """The outputs and inputs of an elastic-agent.yml."""

    outputs: dict[str, ElasticOutput] = field(default_factory=dict)
    inputs: list[ElasticInput] = field(default_factory=list)


def _parse_output(raw: Any, name: str) -> ElasticOutput:
    body = _mapping(raw, f"output {name}")
    return ElasticOutput(
        type=_scalar_text(body.get("type"), f"output {name} type"),
        hosts=_string_list(body.get("hosts"), f"output {name} hosts"),
    )


def _parse_input(raw: Any) -> ElasticInput:
    body = _mapping(raw, "input")
    enabled = body.get("enabled")
    if enabled is None:
        enabled = True
    elif not isinstance(enabled, bool):
        raise ValueError("input enabled must be a boolean")
    streams_raw = body.get("streams")
    if streams_raw is None:
        streams_raw = []
    elif not isinstance(streams_raw, list):
        raise ValueError("input streams must be a sequence")
    return ElasticInput(
        id=_scalar_text(body.get("id"), "input id"),
        type=_scalar_text(body.get("type"), "input type"),
        enabled=enabled,
        use_output=_scalar_text(body.get("use_output"), "input use_output"),
        streams=[dict(_mapping(stream, "input stream")) for stream in streams_raw],
    )


def _first_non_empty(values: list[str]) -> str:
    return next((v.strip() for v in values if v.strip()), "")


def _raw_strings(raw: dict[str, Any], key: str) -> list[str]:
    items = raw.get(key)
    if not isinstance(items, list):
        return []
    return [item.strip() for item in items if isinstance(item, str) and item.strip()]


def _input_key(input_id: str, output: str) -> tuple[str, str]:
    return input_id.strip(), output.strip()


def _augment_from_otel_pipelines(data: bytes | str, cfg: ElasticAgentConfig) -> None:
    """Map OTel-style exporters and pipelines into outputs and inputs."""
    try:
        otel = parse_otel_collector_config_bytes(data)
    except ValueError:
        return
    if not otel.service.pipelines and not otel.exporters:
        return

    for exporter_name, exporter in otel.exporters.items():
        key = exporter_name.strip()
        if not key or key in cfg.outputs:
            continue
        hosts = _raw_strings(exporter.raw, "hosts") or _raw_strings(exporter.raw, "endpoints")
        cfg.outputs[key] = ElasticOutput(
            type=_first_non_empty([exporter.type, segment_before_slash(key)]),
            hosts=hosts,
        )

    existing = {_input_key(item.id, item.use_output) for item in cfg.inputs}
    for pipeline in otel.service.pipelines.values():
        use_output = _first_non_empty(pipeline.exporters) or "default"
        for receiver in pipeline.receivers:
            receiver_id = receiver.strip()
            if not receiver_id:
                continue
            key = _input_key(receiver_id, use_output)
            if key in existing:
                continue
            cfg.inputs.append(
                ElasticInput(
                    id=receiver_id,
                    type=segment_before_slash(receiver_id),
                    enabled=True,
                    use_output=use_output,
                )
            )
            existing.add(key)


def parse_elastic_agent_config_bytes(data: bytes | str) -> ElasticAgentConfig:
    """Parse elastic-agent YAML. Raises ValueError on malformed input."""
    try:
        document = _load_document(data)
        outputs = {
            str(name): _parse_output(raw, str(name))
            for name, raw in _mapping(document.get("outputs"), "outputs").items()
        }
        inputs_raw = document.get("inputs")
        if inputs_raw is None:
            inputs_raw = []
        elif not isinstance(inputs_raw, list):
            raise ValueError("inputs must be a sequence")
        inputs = [_parse_input(raw) for raw in inputs_raw]
    except ValueError as exc:
        raise ValueError(f"parse elastic agent config yaml: {exc}") from exc

    cfg = ElasticAgentConfig(outputs=outputs, inputs=inputs)
    _augment_from_otel_pipelines(data, cfg)
    return cfg


def parse_elastic_agent_config(path: str | PathLike[str]) -> ElasticAgentConfig:
    """Read and parse an elastic-agent.yml file."""
    return parse_elastic_agent_config_bytes(Path(path).read_bytes())