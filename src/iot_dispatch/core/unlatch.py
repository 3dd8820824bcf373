from ..adapters.rest import RestAPIAdapter
from ..clients.directory import DirectoryClient
from ..models.device import DispatchPhase, DispatchResult
from ..utils.exceptions import CommunicationError, ForwardingFailure
from ..utils.logging import get_logger
from .responses import passthrough_response

logger = get_logger(__name__)


class UnlatchDispatcher:
    """Opens a smart lock through the demozone proxy"""

    def __init__(
        self,
        directory: DirectoryClient,
        rest: RestAPIAdapter,
        unlatch_path: str = "/UNLATCH",
        role: str = "LOCK",
        purpose: str = "UNLATCH"
    ):
        self.directory = directory
        self.rest = rest
        self.unlatch_path = unlatch_path
        self.role = role
        self.purpose = purpose

    async def dispatch(self, zone: str) -> DispatchResult:
        """
        Raises:
            ResolutionFailure: no endpoint could be resolved for the zone
            ForwardingFailure: the lock proxy call failed
        """
        zone = zone.upper()
        logger.debug(f"[{zone}] {DispatchPhase.RESOLVING_ENDPOINT.value}")
        endpoint = await self.directory.resolve(zone, self.role, self.purpose)

        url = endpoint.url_for(self.unlatch_path)
        logger.debug(f"[{zone}] {DispatchPhase.FORWARDING.value} UNLATCH request to {url}")
        try:
            response = await self.rest.get(url)
        except CommunicationError as e:
            raise ForwardingFailure(f"Error UNLATCHING door: {e.message}", uri=url)

        logger.info(f"[{zone}] Door unlatched")
        return passthrough_response(response)
