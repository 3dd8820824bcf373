# Command template substitution
import json
from types import MappingProxyType
from collections.abc import Mapping
from typing import Any, Dict, Iterator

from ..models.things import CommandTemplate
from ..utils.exceptions import InvalidPayload, UnknownEntity

# Positional marker the command catalog uses for the physical slot
PLACEHOLDER = "$1"


class ServiceMapping(Mapping):
    """
    Read-only, case-insensitive table of kiosk service name -> physical slot.
    Built once from configuration.
    """
    def __init__(self, entries: Dict[str, Any]):
        self._slots = MappingProxyType(
            {str(name).upper(): str(slot) for name, slot in (entries or {}).items()}
        )

    def __getitem__(self, service: str) -> str:
        return self._slots[service.upper()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def slot_for(self, service: str) -> str:
        try:
            return self[service]
        except KeyError:
            raise UnknownEntity(f"Service {service} not recognized")


def substitute(template: CommandTemplate, value: str, token: str = PLACEHOLDER) -> Any:
    """
    Replace every occurrence of ``token`` in the serialized template and
    parse the result.

    This is a plain text replacement, not a walk over the decoded document:
    the token must not appear anywhere in the template where it is not meant
    to be replaced.

    Raises:
        InvalidPayload: the substituted text is no longer valid JSON
    """
    text = template.text.replace(token, value)
    try:
        return json.loads(text)
    except ValueError as e:
        raise InvalidPayload(
            f"Invalid JSON commands for demozone {template.zone} after substitution: {e}"
        )
