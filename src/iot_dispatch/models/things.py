import json
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, field_validator

from ..utils.exceptions import InvalidPayload

# Attribute name the sensor network uses for the station location
LOCATION_FIELD = "$(source)_location"


class TelemetryEvent(BaseModel):
    """Canonical weather-station reading, whatever shape it arrived in"""
    location: str
    temperature: Union[int, float]

    @field_validator('location')
    def validate_location(cls, v):
        if not v.strip():
            raise ValueError("location must not be empty")
        return v.strip()

    @classmethod
    def from_body(cls, body: Any) -> "TelemetryEvent":
        """
        Normalize an inbound notification into a single event.

        The sensor network has posted both a bare message object and a
        one-element list of messages; both are accepted.

        Raises:
            InvalidPayload: body, payload, data, temperature or location missing
        """
        if isinstance(body, list):
            body = body[0] if body else None
        if not body or not isinstance(body, dict):
            raise InvalidPayload("No message body")

        payload = body.get('payload')
        if not isinstance(payload, dict):
            raise InvalidPayload("Message has no payload section")

        data = payload.get('data')
        if not isinstance(data, dict):
            raise InvalidPayload("Message payload has no data section")

        temperature = data.get('temperature')
        if temperature is None or isinstance(temperature, bool):
            raise InvalidPayload("Message data has no temperature")

        location = data.get(LOCATION_FIELD, data.get('location'))
        if location is None:
            raise InvalidPayload("Message data has no location")

        try:
            return cls(location=str(location), temperature=temperature)
        except ValueError as e:
            raise InvalidPayload(f"Invalid telemetry reading: {e}")


class EndpointDescriptor(BaseModel):
    """Resolved network location of a downstream device-role service"""
    base_url: str

    @field_validator('base_url')
    def strip_trailing_slash(cls, v):
        return v.rstrip('/')

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"


@dataclass(frozen=True)
class CommandTemplate:
    """
    Stored command for a zone/operation pair, kept in its serialized form so
    that placeholder substitution can operate on the text.
    """
    zone: str
    operation: str
    text: str

    def parse(self) -> Any:
        """
        Raises:
            InvalidPayload: the stored text is not valid JSON
        """
        try:
            return json.loads(self.text)
        except ValueError as e:
            raise InvalidPayload(
                f"Invalid JSON commands for demozone {self.zone}: {e}"
            )
