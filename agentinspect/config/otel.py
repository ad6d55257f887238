"""OTel and EDOT collector configuration parsing."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from os import PathLike
from pathlib import Path
from typing import Any

import yaml


class OTelPipelineType(str, Enum):
    """Signal type carried by a service pipeline."""

    TRACE = "trace"
    METRICS = "metrics"
    LOGS = "logs"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


@dataclass
class OTelComponent:
    """A named collector component with its raw settings."""

    name: str
    type: str
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class OTelPipelineConfig:
    """Wiring of one service pipeline."""

    name: str = ""
    type: OTelPipelineType = OTelPipelineType.UNKNOWN
    receivers: list[str] = field(default_factory=list)
    processors: list[str] = field(default_factory=list)
    exporters: list[str] = field(default_factory=list)


@dataclass
class OTelServiceConfig:
    """The configured service pipelines."""

    pipelines: dict[str, OTelPipelineConfig] = field(default_factory=dict)


@dataclass
class OTelCollectorConfig:
    """Collector components and service wiring."""

    receivers: dict[str, OTelComponent] = field(default_factory=dict)
    processors: dict[str, OTelComponent] = field(default_factory=dict)
    exporters: dict[str, OTelComponent] = field(default_factory=dict)
    extensions: dict[str, OTelComponent] = field(default_factory=dict)
    service: OTelServiceConfig = field(default_factory=OTelServiceConfig)


def _load_document(data: bytes | str) -> dict[Any, Any]:
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ValueError(str(exc)) from exc
    return _mapping(document, "document")


def _mapping(value: Any, what: str) -> dict[Any, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a mapping")
    return value


def _scalar_text(value: Any, what: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        raise ValueError(f"{what} must be a scalar")
    return str(value)


def _string_list(value: Any, what: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{what} must be a sequence")
    return [_scalar_text(item, what) for item in value]


def segment_before_slash(value: str) -> str:
    """Return the component type part of a name such as "prometheus/infra"."""
    trimmed = value.strip()
    index = trimmed.find("/")
    if index <= 0:
        return trimmed
    return trimmed[:index]


def pipeline_type_from_name(name: str) -> OTelPipelineType:
    """Infer the signal type from a pipeline name."""
    base = segment_before_slash(name)
    if base in ("trace", "traces"):
        return OTelPipelineType.TRACE
    if base == "metrics":
        return OTelPipelineType.METRICS
    if base == "logs":
        return OTelPipelineType.LOGS
    return OTelPipelineType.UNKNOWN


def _components(section: Any, what: str) -> dict[str, OTelComponent]:
    components = {}
    for key, raw in _mapping(section, what).items():
        name = str(key)
        settings = {str(k): v for k, v in _mapping(raw, f"{what}.{name}").items()}
        components[name] = OTelComponent(name=name, type=segment_before_slash(name), raw=settings)
    return components


def _pipelines(section: Any) -> dict[str, OTelPipelineConfig]:
    pipelines = {}
    for key, raw in _mapping(section, "service.pipelines").items():
        name = str(key)
        body = _mapping(raw, f"pipeline {name}")
        pipelines[name] = OTelPipelineConfig(
            name=name,
            type=pipeline_type_from_name(name),
            receivers=_string_list(body.get("receivers"), f"pipeline {name} receivers"),
            processors=_string_list(body.get("processors"), f"pipeline {name} processors"),
            exporters=_string_list(body.get("exporters"), f"pipeline {name} exporters"),
        )
    return pipelines


def parse_otel_collector_config_bytes(data: bytes | str) -> OTelCollectorConfig:
    """Parse collector YAML. Raises ValueError on malformed input."""
    try:
        document = _load_document(data)
        service = _mapping(document.get("service"), "service")
        return OTelCollectorConfig(
            receivers=_components(document.get("receivers"), "receivers"),
            processors=_components(document.get("processors"), "processors"),
            exporters=_components(document.get("exporters"), "exporters"),
            extensions=_components(document.get("extensions"), "extensions"),
            service=OTelServiceConfig(pipelines=_pipelines(service.get("pipelines"))),
        )
    except ValueError as exc:
        raise ValueError(f"parse otel collector config yaml: {exc}") from exc


def parse_otel_collector_config(path: str | PathLike[str]) -> OTelCollectorConfig:
    """Read and parse a collector YAML file."""
    return parse_otel_collector_config_bytes(Path(path).read_bytes())