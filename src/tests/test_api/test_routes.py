import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from iot_dispatch.adapters.rest import RestResponse
from iot_dispatch.api.app import create_app
from iot_dispatch.utils.exceptions import CommunicationError


@pytest.fixture
def client(gateway):
    app = create_app(SimpleNamespace(router=gateway.router))
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_telemetry_returns_no_content(client, gateway, telemetry_message):
    response = client.post("/devices/NETATMO", json=[telemetry_message])

    assert response.status_code == 204
    assert response.content == b""
    gateway.backend_rest.post.assert_awaited_once_with("/netatmo/set/BARCELONA/31.2")


def test_telemetry_non_json_body(client, gateway):
    response = client.post("/devices/NETATMO", content=b"temperature=20", headers={"Content-Type": "text/plain"})
    assert response.status_code == 204
    gateway.backend_rest.post.assert_not_awaited()


def test_telemetry_operation_not_found(client):
    assert client.post("/devices/NETATMO/SET").status_code == 404


def test_unknown_device(client):
    response = client.post("/devices/TOASTER")
    assert response.status_code == 400
    assert response.text == "Device TOASTER not recognized. Ignoring"


def test_unlatch_missing_zone(client, gateway):
    assert client.post("/devices/NUKI/UNLATCH").status_code == 400
    gateway.backend_rest.get.assert_not_awaited()


def test_unlatch_forwarding_failure(client, gateway, backend):
    backend["/setup/baseport/MADRID"] = '{"baseport": "07"}'
    gateway.forward_rest.get.side_effect = CommunicationError("Connection refused")

    response = client.post("/devices/NUKI/UNLATCH/madrid")

    assert response.status_code == 200
    assert set(response.json()) == {"error", "uri"}


def test_kiosk_service_action(client, gateway, backend, service_template):
    backend["/setup/baseport/MADRID"] = '{"baseport": "07"}'
    backend["/cozmo/action/MADRID/SERVICE"] = json.dumps({"commands": service_template.text})
    gateway.forward_rest.post.return_value = RestResponse(
        status=200, body='{"status": "done"}', content_type="application/json"
    )

    response = client.post(
        "/devices/KIOSK",
        json={"zone": "madrid", "operation": "SERVICE", "params": {"room": "101", "service": "towels"}}
    )

    assert response.status_code == 200
    assert response.json() == {"status": "done"}
    _, command = gateway.forward_rest.post.await_args.args
    assert command == {"actions": [{"say": "Delivering to slot 1"}, {"goto": "slot-1"}]}


def test_kiosk_maintenance_with_params(client, gateway):
    response = client.post(
        "/devices/KIOSK",
        json={"zone": "madrid", "operation": "MAINTENANCE", "params": {"mode": "on"}}
    )
    assert response.status_code == 400
    gateway.backend_rest.get.assert_not_awaited()
