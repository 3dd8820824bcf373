import json

import pytest

from iot_dispatch.core.templating import ServiceMapping, substitute
from iot_dispatch.models.things import CommandTemplate
from iot_dispatch.utils.exceptions import InvalidPayload, UnknownEntity


def test_service_mapping_is_case_insensitive():
    services = ServiceMapping({"Towels": 1, "WATER": 2})
    assert services.slot_for("towels") == "1"
    assert services.slot_for("Water") == "2"
    assert len(services) == 2


def test_service_mapping_unknown_service():
    services = ServiceMapping({"towels": 1})
    with pytest.raises(UnknownEntity, match="Service champagne not recognized"):
        services.slot_for("champagne")


def test_service_mapping_is_read_only():
    services = ServiceMapping({"towels": 1})
    with pytest.raises(TypeError):
        services["towels"] = "9"


def test_substitute_replaces_every_occurrence(service_template):
    command = substitute(service_template, "3")
    assert command == {"actions": [{"say": "Delivering to slot 3"}, {"goto": "slot-3"}]}
    assert "$1" not in json.dumps(command)


def test_substitute_leaves_other_tokens():
    template = CommandTemplate(zone="MADRID", operation="SERVICE", text='{"a": "$1", "b": "$2"}')
    assert substitute(template, "7") == {"a": "7", "b": "$2"}


def test_substitute_rejects_broken_result():
    template = CommandTemplate(zone="MADRID", operation="SERVICE", text='{"a": "$1"}')
    with pytest.raises(InvalidPayload, match="after substitution"):
        substitute(template, 'x"')
