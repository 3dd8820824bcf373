# Device dispatch: one handler per device kind
from abc import ABC, abstractmethod
from functools import partial
from typing import Dict, Optional

from pydantic import ValidationError

from ..models.device import ActionRequest, DeviceKind, DeviceRequest, DispatchPhase, DispatchResult
from ..utils.exceptions import (
    ForwardingFailure,
    InvalidPayload,
    IoTDispatchError,
    UnknownEntity,
    UnsupportedOperation,
)
from ..utils.logging import get_logger
from .actions import ActionDispatcher
from .responses import retry_suppressing_response
from .telemetry import TelemetryForwarder
from .unlatch import UnlatchDispatcher

logger = get_logger(__name__)

OP_UNLATCH = "UNLATCH"


class DeviceHandler(ABC):
    """Base class for all device-kind handlers"""
    kind: DeviceKind

    @abstractmethod
    async def handle(self, request: DeviceRequest) -> DispatchResult:
        """Dispatch the request, raising IoTDispatchError subclasses on failure"""
        pass


class TelemetryHandler(DeviceHandler):
    kind = DeviceKind.TELEMETRY

    def __init__(self, forwarder: TelemetryForwarder):
        self.forwarder = forwarder

    async def handle(self, request: DeviceRequest) -> DispatchResult:
        if request.operation:
            raise UnsupportedOperation(
                f"Operation {request.operation} not supported for device {request.device}"
            )
        # Acknowledge first, validate and publish once the response is out
        return DispatchResult(
            status_code=204,
            background=partial(self.forwarder.forward, request.body, request.device)
        )


class LockHandler(DeviceHandler):
    kind = DeviceKind.LOCK

    def __init__(self, dispatcher: UnlatchDispatcher):
        self.dispatcher = dispatcher

    async def handle(self, request: DeviceRequest) -> DispatchResult:
        if not request.operation or request.operation.upper() != OP_UNLATCH:
            raise InvalidPayload(
                f"Operation {request.operation} not supported for device {request.device}"
            )
        if not request.zone:
            raise InvalidPayload(f"Missing demozone for {request.device} {OP_UNLATCH}")
        return await self.dispatcher.dispatch(request.zone)


class KioskHandler(DeviceHandler):
    kind = DeviceKind.KIOSK

    def __init__(self, dispatcher: ActionDispatcher):
        self.dispatcher = dispatcher

    async def handle(self, request: DeviceRequest) -> DispatchResult:
        action = self.parse_action(request)
        return await self.dispatcher.dispatch(action)

    @staticmethod
    def parse_action(request: DeviceRequest) -> ActionRequest:
        """
        Build the action from the JSON body. Path segments fill in zone and
        operation for callers still using the legacy path form.
        """
        body = request.body
        if body is None and not (request.operation and request.zone):
            raise InvalidPayload(f"Missing request body for device {request.device}")
        if body is not None and not isinstance(body, dict):
            raise InvalidPayload(f"Request body for device {request.device} must be a JSON object")

        data = dict(body or {})
        if not data.get('operation') and request.operation:
            data['operation'] = request.operation
        if not data.get('zone') and request.zone:
            data['zone'] = request.zone

        try:
            return ActionRequest(**data)
        except ValidationError as e:
            raise InvalidPayload(_describe(e))


class UnknownDeviceHandler(DeviceHandler):
    kind = DeviceKind.UNKNOWN

    async def handle(self, request: DeviceRequest) -> DispatchResult:
        raise UnknownEntity(f"Device {request.device} not recognized. Ignoring")


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get('loc', ()))
        message = item.get('msg', '').replace("Value error, ", "")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


class DeviceRouter:
    """
    Picks the handler for an inbound device notification and turns every
    failure into a definitive HTTP result.
    """
    def __init__(self, handlers: Dict[DeviceKind, DeviceHandler], identifiers: Dict[str, DeviceKind]):
        self.handlers = dict(handlers)
        self.handlers.setdefault(DeviceKind.UNKNOWN, UnknownDeviceHandler())
        self.identifiers = dict(identifiers)

    def classify(self, device: Optional[str]) -> DeviceKind:
        return self.identifiers.get(device or "", DeviceKind.UNKNOWN)

    async def dispatch(self, request: DeviceRequest) -> DispatchResult:
        kind = self.classify(request.device)
        handler = self.handlers.get(kind, self.handlers[DeviceKind.UNKNOWN])
        logger.debug(f"{request.device} request: {DispatchPhase.VALIDATING.value} as {kind.value}")

        try:
            result = await handler.handle(request)
        except ForwardingFailure as e:
            logger.error(f"{e.message} (uri: {e.uri})")
            result = retry_suppressing_response(e)
        except IoTDispatchError as e:
            logger.error(e.message)
            result = DispatchResult.text(e.status_code, e.message)
        except Exception as e:
            logger.exception(f"Unexpected error handling {request.device} request: {e}")
            result = DispatchResult.text(500, "Internal error")

        logger.info(
            f"{request.device} request {DispatchPhase.RESPONDED.value} with {result.status_code}"
        )
        return result
