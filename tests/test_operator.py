"""Wiring of the operator: kopf handlers, environment configuration and the CLI."""

import pytest
from typer.testing import CliRunner

from fakes import FakeConnectApi
from konnektor import config
from konnektor.cli import app
from konnektor.exceptions import ConnectRestException
from konnektor.handlers import connect_handler
from konnektor.models.connect import KAFKA_CONNECTOR


class StubDispatcher:
    def __init__(self):
        self.events = []

    def submit(self, kind, event_type, body):
        self.events.append((kind, event_type, body["metadata"]["name"]))

    def health(self):
        return {"in_flight": []}


@pytest.fixture
def stub_dispatcher(monkeypatch):
    import konnektor.main

    stub = StubDispatcher()
    monkeypatch.setattr(konnektor.main, "dispatcher", stub)
    return stub


def test_events_are_forwarded(stub_dispatcher):
    body = {"metadata": {"name": "connector", "namespace": "ns"}}

    connect_handler.forward_event(KAFKA_CONNECTOR, {"type": None, "object": body})
    connect_handler.forward_event(KAFKA_CONNECTOR, {"type": "DELETED", "object": body})

    assert stub_dispatcher.events == [
        (KAFKA_CONNECTOR, "ADDED", "connector"),
        (KAFKA_CONNECTOR, "DELETED", "connector"),
    ]


@pytest.mark.asyncio
async def test_probe_reports_dispatcher_health(stub_dispatcher):
    assert await connect_handler.dispatcher_health() == {"in_flight": []}


@pytest.mark.asyncio
async def test_probe_before_startup(monkeypatch):
    import konnektor.main

    monkeypatch.setattr(konnektor.main, "dispatcher", None)

    assert await connect_handler.dispatcher_health() == {"status": "not_initialised"}


def test_config_defaults(monkeypatch):
    for name in (
        "WATCH_NAMESPACE",
        "FULL_RECONCILIATION_INTERVAL",
        "WORKER_LIMIT",
        "RETRY_DELAY",
        "CONNECT_REST_TIMEOUT",
        "LIVENESS_ENDPOINT",
    ):
        monkeypatch.delenv(name, raising=False)

    assert config.get_watch_namespace() is None
    assert config.get_resync_interval() == 120
    assert config.get_worker_limit() == 5
    assert config.get_retry_delay() == 10
    assert config.get_rest_timeout() == 30
    assert config.get_liveness_endpoint() is None


def test_config_from_environment(monkeypatch):
    monkeypatch.setenv("WATCH_NAMESPACE", "kafka")
    monkeypatch.setenv("FULL_RECONCILIATION_INTERVAL", "30")
    monkeypatch.setenv("POSTING_ENABLED", "True")

    assert config.get_watch_namespace() == "kafka"
    assert config.get_resync_interval() == 30
    assert config.get_posting_enabled()


@pytest.fixture
def cli_api(monkeypatch):
    import konnektor.services.connect_api

    api = FakeConnectApi()
    monkeypatch.setattr(
        konnektor.services.connect_api, "ConnectApiClient", lambda *args, **kwargs: api
    )
    return api


def test_connectors_command_lists_states(cli_api):
    cli_api.connectors_on("cluster-connect-api.default.svc").update({"b": True, "a": False})

    result = CliRunner().invoke(app, ["connectors", "cluster"])

    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "a: RUNNING",
        "  - task 0: RUNNING on somehost2:8083",
        "b: PAUSED",
        "  - task 0: PAUSED on somehost2:8083",
    ]


def test_connectors_command_with_explicit_host(cli_api):
    result = CliRunner().invoke(
        app, ["connectors", "cluster", "--host", "localhost", "--port", "18083"]
    )

    assert result.exit_code == 0
    assert "No connectors running on localhost:18083" in result.output
    assert cli_api.calls == [("list", "localhost", 18083, None)]


def test_connectors_command_reports_rest_failure(cli_api):
    cli_api.failures["list"] = ConnectRestException(
        "GET", "/connectors", 0, "ConnectError", "Connection refused"
    )

    result = CliRunner().invoke(app, ["connectors", "cluster", "-n", "kafka"])

    assert result.exit_code == 1
    assert "Failed to query cluster-connect-api.kafka.svc:8083" in result.output
