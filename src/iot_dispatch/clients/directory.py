from typing import Any, Dict, Optional

from ..adapters.rest import RestAPIAdapter
from ..models.things import EndpointDescriptor
from ..utils.exceptions import CommunicationError, ResolutionFailure
from ..utils.logging import get_logger

logger = get_logger(__name__)


class DirectoryClient:
    """
    Resolves the downstream base URL serving a device role in a demozone.

    The directory answers either with a complete ``url_field`` or with a
    ``port_field`` from which the proxy URL is derived as
    ``<proxy_host>:<port_pattern>``.
    """
    def __init__(self, rest: RestAPIAdapter, config: Dict[str, Any]):
        self.rest = rest
        self.path = config['path']
        self.url_field = config.get('url_field', 'baseurl')
        self.port_field = config.get('port_field', 'baseport')
        self.proxy_host = config.get('proxy_host', '').rstrip('/')
        self.port_pattern = str(config.get('port_pattern', '{baseport}'))

    def lookup_uri(self, zone: str, role: str, purpose: str) -> str:
        return self.path.format(zone=zone.upper(), role=role, purpose=purpose)

    async def resolve(self, zone: str, role: str, purpose: str) -> EndpointDescriptor:
        """
        Raises:
            ResolutionFailure: the directory is unreachable or has no entry
        """
        zone = zone.upper()
        uri = self.lookup_uri(zone, role, purpose)
        logger.debug(f"Resolving {role}/{purpose} endpoint for demozone {zone}")
        try:
            response = await self.rest.get(uri)
        except CommunicationError as e:
            message = f"Error retrieving DEMOZONE information for {zone}: {e.status or e.message}"
            logger.error(message)
            logger.error(f"URI: {e.url}")
            raise ResolutionFailure(message, uri=e.url)

        try:
            data = response.json()
        except ValueError:
            data = None

        descriptor = self._descriptor_from(data)
        if descriptor is None:
            message = f"Error: No data retrieved for DEMOZONE {zone}"
            logger.error(message)
            raise ResolutionFailure(message, uri=self.rest.url_for(uri))

        logger.debug(f"PROXY URL: {descriptor.base_url}")
        return descriptor

    def _descriptor_from(self, data: Any) -> Optional[EndpointDescriptor]:
        if not isinstance(data, dict):
            return None
        if data.get(self.url_field):
            return EndpointDescriptor(base_url=str(data[self.url_field]))
        port = data.get(self.port_field)
        if port in (None, ""):
            return None
        return EndpointDescriptor(
            base_url=f"{self.proxy_host}:{self.port_pattern.format(baseport=port)}"
        )
