#tests\test_readiness_poller.py

"""Test ingress readiness polling and the reachability probe."""

import pytest
import requests

from langlab.core.errors import ClusterCommandError, ReadinessTimeout
from langlab.core.models import Component, Endpoint
from langlab.infrastructure.memory.cluster import InMemoryClusterClient
from langlab.readiness.poller import ReadinessPoller

from conftest import NAMESPACE


class FlakyCluster(InMemoryClusterClient):
    """Ingress lookups fail a fixed number of times before answering."""

    def __init__(self, failures, address):
        super().__init__()
        self.failures = failures
        self.address = address

    def get_ingress_endpoint(self, namespace):
        self.calls.append(("get_ingress_endpoint", namespace))
        if self.failures:
            self.failures -= 1
            raise ClusterCommandError(["kubectl", "get", "ingress"], 1, "connection refused")
        return self.address


def make_poller(cluster, sleeps, max_attempts=30):
    return ReadinessPoller(
        cluster,
        initial_delay=10,
        interval=5,
        max_attempts=max_attempts,
        probe_timeout=2,
        sleep=sleeps.append,
    )


class TestPoll:
    def test_immediate_answer(self, cluster, sleeps):
        cluster.ingress[NAMESPACE] = ["lb.example.com"]

        endpoint = make_poller(cluster, sleeps).poll(NAMESPACE)

        assert endpoint == Endpoint(address="lb.example.com")
        assert sleeps == [10]

    def test_answer_after_retries(self, cluster, sleeps):
        cluster.ingress[NAMESPACE] = [None, "", "10.0.0.7"]

        endpoint = make_poller(cluster, sleeps).poll(NAMESPACE)

        assert endpoint.address == "10.0.0.7"
        assert sleeps == [10, 5, 5]
        assert cluster.call_names().count("get_ingress_endpoint") == 3

    def test_budget_exhausted(self, cluster, sleeps, make_context):
        ctx = make_context(Component.CORE_SERVICE)

        endpoint = make_poller(cluster, sleeps, max_attempts=4).poll(NAMESPACE, ctx)

        assert endpoint.pending
        assert f"kubectl get ingress -n {NAMESPACE}" in endpoint.address
        assert cluster.call_names().count("get_ingress_endpoint") == 4
        # No sleep after the final attempt
        assert sleeps == [10, 5, 5, 5]
        assert len(ctx.warnings) == 1
        assert isinstance(ctx.warnings[0], ReadinessTimeout)
        assert ctx.warnings[0].attempts == 4

    def test_lookup_errors_are_retried(self, sleeps):
        cluster = FlakyCluster(failures=2, address="lb.example.com")

        endpoint = make_poller(cluster, sleeps).poll(NAMESPACE)

        assert endpoint.address == "lb.example.com"
        assert cluster.call_names().count("get_ingress_endpoint") == 3


class TestProbe:
    @pytest.fixture
    def poller(self, cluster, sleeps):
        return make_poller(cluster, sleeps)

    def test_pending_not_probed(self, poller, monkeypatch):
        def fail(url, timeout=None):
            raise AssertionError("pending endpoints must not be probed")

        monkeypatch.setattr("langlab.readiness.poller.requests.get", fail)
        pending = Endpoint.pending_for(NAMESPACE)

        assert poller.probe(pending) is pending

    def test_reachable(self, poller, monkeypatch):
        seen = []

        class Response:
            status_code = 302

        def fake_get(url, timeout=None):
            seen.append((url, timeout))
            return Response()

        monkeypatch.setattr("langlab.readiness.poller.requests.get", fake_get)

        endpoint = poller.probe(Endpoint(address="lb.example.com"))

        assert endpoint.reachable is True
        assert seen == [("http://lb.example.com", 2)]

    def test_server_error(self, poller, monkeypatch):
        class Response:
            status_code = 503

        monkeypatch.setattr(
            "langlab.readiness.poller.requests.get",
            lambda url, timeout=None: Response(),
        )

        assert poller.probe(Endpoint(address="lb.example.com")).reachable is False

    def test_connection_error(self, poller, monkeypatch):
        def refuse(url, timeout=None):
            raise requests.exceptions.ConnectionError("refused")

        monkeypatch.setattr("langlab.readiness.poller.requests.get", refuse)

        endpoint = poller.probe(Endpoint(address="lb.example.com"))

        assert endpoint.reachable is False
        assert endpoint.address == "lb.example.com"
