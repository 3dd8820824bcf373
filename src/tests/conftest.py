from unittest.mock import AsyncMock

import pytest

from iot_dispatch.adapters.rest import RestResponse
from iot_dispatch.core.gateway import DispatchGateway
from iot_dispatch.models.things import CommandTemplate
from iot_dispatch.utils.exceptions import CommunicationError


@pytest.fixture
def mock_config():
    return {
        "api": {"host": "127.0.0.1", "port": 30000},
        "backend": {
            "host": "https://db.test",
            "verify_ssl": False,
            "telemetry_path": "/netatmo/set",
            "timeout": {"connect": 5, "request": 10},
        },
        "directory": {
            "path": "/setup/baseport/{zone}",
            "port_field": "baseport",
            "proxy_host": "http://proxy.test",
            "port_pattern": "18{baseport}1",
        },
        "devices": {
            "telemetry": {"id": "NETATMO"},
            "lock": {"id": "NUKI", "unlatch_path": "/UNLATCH"},
            "kiosk": {
                "id": "KIOSK",
                "role": "COZMO",
                "catalog_path": "/cozmo/action/{zone}/{operation}",
                "action_path": "/COZMO",
                "services": {"towels": 1, "water": 2, "amenities": 3},
            },
            "aliases": {"COZMO": "KIOSK"},
            "timeout": {"connect": 1, "request": 20},
        },
        "logging": {"level": "DEBUG", "file": ""},
    }


@pytest.fixture
def telemetry_message():
    return {
        "id": "b9e9e3b3-c165-4bb7-a282-bff94b84c568",
        "type": "DATA",
        "direction": "FROM_DEVICE",
        "payload": {
            "format": "urn:com:oracle:iot:device:thermostat:attributes",
            "data": {
                "$(source)_location": "BARCELONA",
                "moduleName": "Netatmo",
                "temperature": 31.2,
                "setpointTemp": 0,
            }
        }
    }


@pytest.fixture
def json_response():
    def build(body: str, status: int = 200) -> RestResponse:
        return RestResponse(status=status, body=body, content_type="application/json")
    return build


@pytest.fixture
def service_template():
    return CommandTemplate(
        zone="MADRID",
        operation="SERVICE",
        text='{"actions": [{"say": "Delivering to slot $1"}, {"goto": "slot-$1"}]}'
    )


@pytest.fixture
def gateway(mock_config):
    """Fully wired gateway whose HTTP calls are mocked"""
    gateway = DispatchGateway(mock_config)
    gateway.backend_rest.get = AsyncMock()
    gateway.backend_rest.post = AsyncMock()
    gateway.forward_rest.get = AsyncMock()
    gateway.forward_rest.post = AsyncMock()
    return gateway


@pytest.fixture
def backend(gateway, json_response):
    """
    Backend GET answers keyed by URI. Values are JSON text or an exception;
    URIs without an entry answer 404.
    """
    routes = {}

    async def get(uri):
        if uri not in routes:
            raise CommunicationError("404 Not Found", url=f"https://db.test{uri}", status=404)
        answer = routes[uri]
        if isinstance(answer, Exception):
            raise answer
        return json_response(answer)

    gateway.backend_rest.get.side_effect = get
    return routes
