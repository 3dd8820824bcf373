from typing import Any, Dict

from ..adapters.rest import RestAPIAdapter
from ..clients.catalog import CommandCatalogClient
from ..clients.directory import DirectoryClient
from ..models.device import DeviceKind
from ..utils.exceptions import CommunicationError, ConfigurationError
from ..utils.logging import get_logger
from .actions import ActionDispatcher
from .router import DeviceRouter, KioskHandler, LockHandler, TelemetryHandler
from .telemetry import TelemetryForwarder
from .templating import PLACEHOLDER, ServiceMapping
from .unlatch import UnlatchDispatcher

logger = get_logger(__name__)


class DispatchGateway:
    """Wires the outbound clients and dispatchers from configuration"""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        backend = config['backend']
        devices = config['devices']

        lookup_timeout = backend.get('timeout', {})
        self.backend_rest = RestAPIAdapter(
            backend['host'],
            connect_timeout=lookup_timeout.get('connect', 5),
            request_timeout=lookup_timeout.get('request', 10),
            verify_ssl=backend.get('verify_ssl', True)
        )
        # No base URL: forwarding targets are resolved per request
        forward_timeout = devices.get('timeout', {})
        self.forward_rest = RestAPIAdapter(
            connect_timeout=forward_timeout.get('connect', 1),
            request_timeout=forward_timeout.get('request', 20),
            verify_ssl=devices.get('verify_ssl', True)
        )

        telemetry = devices['telemetry']
        lock = devices['lock']
        kiosk = devices['kiosk']

        self.directory = DirectoryClient(self.backend_rest, config['directory'])
        self.catalog = CommandCatalogClient(self.backend_rest, kiosk['catalog_path'])
        self.services = ServiceMapping(kiosk.get('services', {}))

        self.telemetry_forwarder = TelemetryForwarder(self.backend_rest, backend['telemetry_path'])
        self.unlatch_dispatcher = UnlatchDispatcher(
            self.directory,
            self.forward_rest,
            unlatch_path=lock.get('unlatch_path', '/UNLATCH'),
            role=lock.get('role', lock['id']),
            purpose=lock.get('purpose', 'UNLATCH')
        )
        self.action_dispatcher = ActionDispatcher(
            self.directory,
            self.catalog,
            self.forward_rest,
            self.services,
            action_path=kiosk.get('action_path', '/' + kiosk['id']),
            role=kiosk.get('role', kiosk['id']),
            purpose=kiosk.get('purpose', 'ACTION'),
            placeholder=kiosk.get('placeholder', PLACEHOLDER)
        )

        identifiers = {
            telemetry['id']: DeviceKind.TELEMETRY,
            lock['id']: DeviceKind.LOCK,
            kiosk['id']: DeviceKind.KIOSK,
        }
        for alias, target in (devices.get('aliases') or {}).items():
            if target not in identifiers:
                raise ConfigurationError(f"Alias {alias} points to unknown device {target}")
            identifiers[alias] = identifiers[target]

        self.router = DeviceRouter(
            {
                DeviceKind.TELEMETRY: TelemetryHandler(self.telemetry_forwarder),
                DeviceKind.LOCK: LockHandler(self.unlatch_dispatcher),
                DeviceKind.KIOSK: KioskHandler(self.action_dispatcher),
            },
            identifiers
        )

    async def initialize(self) -> None:
        logger.info("Initializing dispatch gateway")
        try:
            await self.backend_rest.connect()
            await self.forward_rest.connect()
        except Exception as e:
            await self.shutdown()
            raise CommunicationError(f"Failed to open HTTP sessions: {e}")
        logger.info(
            f"Routing devices {', '.join(sorted(self.router.identifiers))} "
            f"with {len(self.services)} kiosk services"
        )

    async def shutdown(self) -> None:
        logger.info("Shutting down dispatch gateway")
        await self.backend_rest.disconnect()
        await self.forward_rest.disconnect()
