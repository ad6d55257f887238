# agentinspect

Find the observability agents on this machine and describe their data
pipelines. `agentinspect` recognises three kinds of agent: Elastic Agent,
EDOT and OpenTelemetry collectors. It shows each pipeline as three stages:
inputs or receivers, then processors, then outputs or exporters.

## Install

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Commands

Running `agentinspect` with no command prints the help. When a command fails,
it prints `Error: <message>` on standard error and exits with status 1.

### Discover local agents

```
agentinspect discover
```

Three strategies run in this order, and results that describe the same agent
are merged:

- **Running processes.** On Linux and macOS this reads `ps -eo pid,ppid,args`.
  It finds config paths in `--config` / `-c`, and endpoints in
  `--http-addr`, `--grpc-addr`, `--supervised.monitoring.url=` and `-E`
  flags. Beat and collector processes are attached as children of their
  `elastic-agent` parent.
- **Well-known config file locations.** For example
  `/opt/Elastic/Agent/elastic-agent.yml`, `/etc/otelcol/config.yaml` and
  `/etc/edot/config.yaml`.
- **Default local endpoints.** HTTP probes of the status API (6791), zpages
  (55679), health_check (13133) and Prometheus metrics (8888). Any answer
  from 200 to 399 counts as found.

Example output:

```
Found 1 agent(s):
  1. elastic-agent (PID 714) - /opt/Elastic/Agent/elastic-agent.yml [process]
     Children:
       - otel-collector (PID 1091)
       - metricbeat (PID 1443)
```

### Pipeline report

```
agentinspect status
agentinspect status --format json
agentinspect status --agent edot --edot-config /etc/edot/config.yaml
```

Without `--agent`, discovery runs and picks an agent. The preferred type is
`elastic-agent`, then `edot`, then `otel`. The command stops with an error in
two cases: nothing is discovered, or more than one agent of the preferred
type is found. The discovered config path fills in a missing config option.
Discovered endpoints replace the default URLs, but never a URL given on the
command line.

| Option | Default |
| --- | --- |
| `--agent` | auto-detected (`elastic-agent`, `edot`, `otel`) |
| `--format` | `table` (or `json`) |
| `--elastic-config` | the first existing default `elastic-agent.yml` location |
| `--elastic-url` | `http://localhost:6791` |
| `--edot-config` / `--otel-config` | discovered config path |
| `--edot-zpages-url` / `--otel-zpages-url` | `http://localhost:55679` |
| `--edot-metrics-url` / `--otel-metrics-url` | `http://localhost:8888/metrics` |
| `--edot-health-url` / `--otel-health-url` | `http://localhost:13133/` |

The table has the columns Component, Health, Status, Events/s and Errors.
The JSON output has `name`, `nodes`, `edges`, `updated_at` and `metadata`.

For Elastic Agent, each input links to the output named in its
`use_output`, or to `default`. For collectors, each service pipeline links
its receivers, then its processors in order, then its exporters.

### Interactive view

```
agentinspect tui
agentinspect tui --live --refresh 5s
```

This takes the same target options as `status`. It shows the pipeline in
three columns. `--refresh` takes a duration such as `500ms`, `5s` or `1m30s`.
When standard input is not a terminal, keys are read one per line.

| Key | Action |
| --- | --- |
| up / down | move the selected column |
| `q`, ctrl+c | quit |

## What it does not do

The `status` and `tui` commands build the pipeline from the configuration
file alone. They do not contact the agent's status API, zpages, health_check
or metrics endpoints. Those URLs are only recorded in the report's
`metadata`. As a result:

- enabled components show health `unknown`;
- disabled Elastic Agent inputs show `disabled`;
- no per-node metrics are filled in.

In the interactive view, `r` and the live refresh do not fetch new data.

## Library use

The building blocks can be used directly. Metrics collection, for example,
is available only this way:

```python
from agentinspect.config.otel import parse_otel_collector_config
from agentinspect.discovery.orchestrator import Orchestrator
from agentinspect.metrics.collector import Collector
from agentinspect.output import render_table
from agentinspect.pipeline.model import example_pipeline

cfg = parse_otel_collector_config("/etc/otelcol/config.yaml")
agents = Orchestrator().discover_detailed()

collector = Collector()
otel = collector.collect_otel_prometheus("http://localhost:8888/metrics")
beat = collector.collect_beat_stats("http://localhost:5066/stats")

print(render_table(example_pipeline()))
```

`collect_beat_stats` works out the event rates from the previous sample of
the same endpoint. On the first call the rates are zero.