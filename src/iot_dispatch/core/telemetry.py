import json
from typing import Any
from urllib.parse import quote

from ..adapters.rest import RestAPIAdapter
from ..models.things import TelemetryEvent
from ..utils.exceptions import CommunicationError, InvalidPayload
from ..utils.logging import get_logger

logger = get_logger(__name__)


class TelemetryForwarder:
    """
    Republishes weather-station readings to the backend sink.

    Runs after the caller has been acknowledged, so nothing here can change
    the response: invalid events and sink errors are logged and dropped.
    """
    def __init__(self, rest: RestAPIAdapter, sink_path: str):
        self.rest = rest
        self.sink_path = sink_path.rstrip('/')

    def sink_uri(self, event: TelemetryEvent) -> str:
        return f"{self.sink_path}/{quote(event.location, safe='')}/{event.temperature}"

    async def forward(self, body: Any, device: str = "telemetry") -> None:
        try:
            event = TelemetryEvent.from_body(body)
        except InvalidPayload as e:
            logger.error(
                f"Invalid JSON received for {device} device event ({e.message}): "
                f"{json.dumps(body, default=str)}"
            )
            return

        uri = self.sink_uri(event)
        try:
            await self.rest.post(uri)
        except CommunicationError as e:
            logger.error(f"[POST] Error from DB call: {e.status or e.message}")
            logger.error(f"URI: {e.url}")
            return
        logger.debug(f"Published {device} reading for {event.location}: {event.temperature}")
