from ..adapters.rest import RestAPIAdapter
from ..clients.catalog import CommandCatalogClient
from ..clients.directory import DirectoryClient
from ..models.device import ActionRequest, DispatchPhase, DispatchResult
from ..utils.exceptions import CommunicationError, ForwardingFailure
from ..utils.logging import get_logger
from .responses import passthrough_response
from .templating import PLACEHOLDER, ServiceMapping, substitute

logger = get_logger(__name__)


class ActionDispatcher:
    """
    Sends a catalogued command to the kiosk robot of a demozone.

    The endpoint is resolved before the command so that an unknown zone
    never costs a catalog lookup.
    """
    def __init__(
        self,
        directory: DirectoryClient,
        catalog: CommandCatalogClient,
        rest: RestAPIAdapter,
        services: ServiceMapping,
        action_path: str = "/KIOSK",
        role: str = "KIOSK",
        purpose: str = "ACTION",
        placeholder: str = PLACEHOLDER
    ):
        self.directory = directory
        self.catalog = catalog
        self.rest = rest
        self.services = services
        self.action_path = action_path
        self.role = role
        self.purpose = purpose
        self.placeholder = placeholder

    async def dispatch(self, action: ActionRequest) -> DispatchResult:
        zone = action.normalized_zone

        logger.debug(f"[{zone}] {DispatchPhase.RESOLVING_ENDPOINT.value}")
        endpoint = await self.directory.resolve(zone, self.role, self.purpose)

        logger.debug(f"[{zone}] {DispatchPhase.RESOLVING_COMMAND.value} {action.operation}")
        template = await self.catalog.resolve(zone, action.operation)
        command = template.parse()

        if action.is_service:
            service = action.service_params.service
            slot = self.services.slot_for(service)
            logger.debug(f"[{zone}] {DispatchPhase.SUBSTITUTING.value} service {service} -> slot {slot}")
            command = substitute(template, slot, self.placeholder)

        url = endpoint.url_for(self.action_path)
        logger.debug(f"[{zone}] {DispatchPhase.FORWARDING.value} {action.operation} ACTION request to {url}")
        try:
            response = await self.rest.post(url, command)
        except CommunicationError as e:
            raise ForwardingFailure(f"Error in KIOSK ACTION: {e.message}", uri=url)

        logger.info(f"[{zone}] {action.operation} action delivered")
        return passthrough_response(response)
