import json
from unittest.mock import AsyncMock

import pytest

from iot_dispatch.adapters.rest import RestAPIAdapter
from iot_dispatch.clients.catalog import CommandCatalogClient
from iot_dispatch.clients.directory import DirectoryClient
from iot_dispatch.utils.exceptions import (
    CommunicationError,
    InvalidPayload,
    ResolutionFailure,
    UnknownEntity,
)


@pytest.fixture
def rest():
    rest = RestAPIAdapter("https://db.test")
    rest.get = AsyncMock()
    return rest


@pytest.fixture
def directory(rest, mock_config):
    return DirectoryClient(rest, mock_config["directory"])


@pytest.mark.asyncio
async def test_directory_derives_proxy_url_from_port(directory, rest, json_response):
    rest.get.return_value = json_response('{"baseport": "07"}')

    endpoint = await directory.resolve("madrid", "NUKI", "UNLATCH")

    rest.get.assert_awaited_once_with("/setup/baseport/MADRID")
    assert endpoint.base_url == "http://proxy.test:18071"


@pytest.mark.asyncio
async def test_directory_prefers_full_url(directory, rest, json_response):
    rest.get.return_value = json_response('{"baseurl": "https://kiosk.test/", "baseport": "07"}')
    endpoint = await directory.resolve("MADRID", "COZMO", "ACTION")
    assert endpoint.base_url == "https://kiosk.test"


@pytest.mark.asyncio
async def test_directory_lookup_path_can_use_role_and_purpose(rest, json_response):
    directory = DirectoryClient(rest, {"path": "/endpoints/{zone}/{role}/{purpose}", "url_field": "url"})
    rest.get.return_value = json_response('{"url": "http://robot.test"}')

    await directory.resolve("lisboa", "COZMO", "ACTION")

    rest.get.assert_awaited_once_with("/endpoints/LISBOA/COZMO/ACTION")


@pytest.mark.asyncio
async def test_directory_transport_error(directory, rest):
    rest.get.side_effect = CommunicationError("503 Service Unavailable", url="https://db.test/x", status=503)
    with pytest.raises(ResolutionFailure, match="MADRID: 503") as excinfo:
        await directory.resolve("madrid", "NUKI", "UNLATCH")
    assert excinfo.value.uri == "https://db.test/x"


@pytest.mark.parametrize("body", ["", "{}", '{"baseport": ""}', "not json", "[]"])
@pytest.mark.asyncio
async def test_directory_without_entry(directory, rest, json_response, body):
    rest.get.return_value = json_response(body)
    with pytest.raises(ResolutionFailure, match="No data retrieved for DEMOZONE MADRID"):
        await directory.resolve("madrid", "NUKI", "UNLATCH")


@pytest.fixture
def catalog(rest):
    return CommandCatalogClient(rest, "/cozmo/action/{zone}/{operation}")


@pytest.mark.asyncio
async def test_catalog_returns_serialized_command(catalog, rest, json_response):
    rest.get.return_value = json_response(json.dumps({"commands": '{"say": "hello"}'}))

    template = await catalog.resolve("madrid", "GREET")

    rest.get.assert_awaited_once_with("/cozmo/action/MADRID/GREET")
    assert template.text == '{"say": "hello"}'
    assert template.parse() == {"say": "hello"}


@pytest.mark.asyncio
async def test_catalog_not_found(catalog, rest):
    rest.get.side_effect = CommunicationError("404 Not Found", url="https://db.test/x", status=404)
    with pytest.raises(UnknownEntity, match="not found"):
        await catalog.resolve("madrid", "GREET")


@pytest.mark.parametrize("body", ["", "{}", '{"commands": ""}'])
@pytest.mark.asyncio
async def test_catalog_empty_answer(catalog, rest, json_response, body):
    rest.get.return_value = json_response(body)
    with pytest.raises(UnknownEntity):
        await catalog.resolve("madrid", "GREET")


@pytest.mark.asyncio
async def test_catalog_transport_error(catalog, rest):
    rest.get.side_effect = CommunicationError("Timeout after 10s", url="https://db.test/x")
    with pytest.raises(ResolutionFailure, match="Timeout"):
        await catalog.resolve("madrid", "GREET")


@pytest.mark.asyncio
async def test_catalog_non_json_answer(catalog, rest, json_response):
    rest.get.return_value = json_response("<html>")
    with pytest.raises(InvalidPayload):
        await catalog.resolve("madrid", "GREET")
