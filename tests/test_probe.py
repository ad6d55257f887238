import requests
import responses

from agentinspect.discovery.probe import DEFAULT_ENDPOINTS, EndpointProbe, PortProber, endpoint_url

BASE = "http://localhost:8888"


def _mock():
    return responses.RequestsMock(assert_all_requests_are_fired=False)


def test_endpoint_url_replaces_path():
    assert endpoint_url("http://localhost:6791", "/api/status") == "http://localhost:6791/api/status"


def test_endpoint_url_adds_leading_slash():
    assert endpoint_url("http://localhost:8888", "metrics") == "http://localhost:8888/metrics"


def test_endpoint_url_without_check_path_keeps_base():
    assert endpoint_url("http://localhost:55679", "") == "http://localhost:55679"


def test_endpoint_url_root_path():
    assert endpoint_url("http://localhost:13133", "/") == "http://localhost:13133/"


def test_default_metrics_endpoints_resolve_to_prometheus_url():
    targets = {
        (e.agent_type, endpoint_url(e.url, e.check_path))
        for e in DEFAULT_ENDPOINTS
        if e.key == "metrics"
    }
    assert targets == {
        ("otel", "http://localhost:8888/metrics"),
        ("edot", "http://localhost:8888/metrics"),
    }


def test_port_prober_includes_prometheus_for_otel_and_edot():
    endpoints = [
        EndpointProbe("otel", BASE, "/metrics", "metrics"),
        EndpointProbe("edot", BASE, "/metrics", "metrics"),
    ]
    with _mock() as mock:
        mock.add(responses.GET, BASE + "/metrics", status=200)
        agents = PortProber(requests.Session(), endpoints).discover()
    assert len(agents) == 2


def test_port_prober_returns_deterministic_type_order():
    endpoints = [
        EndpointProbe("otel", BASE, "/metrics", "metrics"),
        EndpointProbe("edot", BASE, "/metrics", "metrics"),
    ]
    with _mock() as mock:
        mock.add(responses.GET, BASE + "/metrics", status=200)
        agents = PortProber(requests.Session(), endpoints).discover()
    assert [a.agent_type for a in agents] == ["edot", "otel"]


def test_port_prober_merges_endpoints_of_one_type():
    endpoints = [
        EndpointProbe("otel", BASE, "/metrics", "metrics"),
        EndpointProbe("otel", "http://localhost:13133", "/", "health"),
    ]
    with _mock() as mock:
        mock.add(responses.GET, BASE + "/metrics", status=200)
        mock.add(responses.GET, "http://localhost:13133/", status=200)
        agents = PortProber(requests.Session(), endpoints).discover()
    assert len(agents) == 1
    assert agents[0].source == "port"
    assert agents[0].endpoints == {"metrics": BASE, "health": "http://localhost:13133"}


def test_port_prober_skips_failing_and_unreachable_endpoints():
    endpoints = [
        EndpointProbe("elastic-agent", "http://localhost:6791", "/api/status", "status"),
        EndpointProbe("otel", BASE, "/metrics", "metrics"),
        EndpointProbe("edot", "http://localhost:55679", "/debug/pipelinez", "zpages"),
    ]
    with _mock() as mock:
        mock.add(responses.GET, "http://localhost:6791/api/status", status=404)
        mock.add(responses.GET, BASE + "/metrics", status=204)
        agents = PortProber(requests.Session(), endpoints).discover()
    assert [a.agent_type for a in agents] == ["otel"]
    assert agents[0].endpoints == {"metrics": BASE}