import json

from ..adapters.rest import RestAPIAdapter
from ..models.things import CommandTemplate
from ..utils.exceptions import CommunicationError, InvalidPayload, ResolutionFailure, UnknownEntity
from ..utils.logging import get_logger

logger = get_logger(__name__)


class CommandCatalogClient:
    """Fetches the stored command for an operation in a demozone"""

    def __init__(self, rest: RestAPIAdapter, path: str):
        self.rest = rest
        self.path = path

    async def resolve(self, zone: str, operation: str) -> CommandTemplate:
        """
        The catalog stores the command as serialized text inside the
        ``commands`` field; it is returned unparsed.

        Raises:
            ResolutionFailure: the catalog is unreachable
            UnknownEntity: the operation is not configured for the zone
            InvalidPayload: the catalog answer itself is not JSON
        """
        zone = zone.upper()
        uri = self.path.format(zone=zone, operation=operation)
        try:
            response = await self.rest.get(uri)
        except CommunicationError as e:
            if e.status == 404:
                raise self._not_found(zone, operation)
            message = f"Error retrieving DEMOZONE commands for {zone}: {e.status or e.message}"
            logger.error(message)
            logger.error(f"URI: {e.url}")
            raise ResolutionFailure(message, uri=e.url)

        try:
            document = response.json()
        except ValueError as e:
            raise InvalidPayload(f"Invalid JSON commands for demozone {zone}: {e}")

        commands = document.get('commands') if isinstance(document, dict) else None
        if commands in (None, ""):
            raise self._not_found(zone, operation)
        if not isinstance(commands, str):
            # Some catalog versions return the command already decoded
            commands = json.dumps(commands)

        return CommandTemplate(zone=zone, operation=operation, text=commands)

    @staticmethod
    def _not_found(zone: str, operation: str) -> UnknownEntity:
        message = f"{operation} commands for demozone {zone}, not found"
        logger.error(message)
        return UnknownEntity(message)
