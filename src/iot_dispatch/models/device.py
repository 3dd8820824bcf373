from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator


class DeviceKind(str, Enum):
    TELEMETRY = "TELEMETRY"
    LOCK = "LOCK"
    KIOSK = "KIOSK"
    UNKNOWN = "UNKNOWN"


class KioskOperation(str, Enum):
    SERVICE = "SERVICE"
    MAINTENANCE = "MAINTENANCE"


@dataclass(frozen=True)
class DeviceRequest:
    """What the HTTP layer extracted from an inbound device notification"""
    device: str
    operation: Optional[str] = None
    zone: Optional[str] = None
    body: Any = None


@dataclass
class DispatchResult:
    """HTTP-agnostic outcome of a dispatch, rendered by the API layer"""
    status_code: int
    content: Any = None
    media_type: Optional[str] = None
    # Runs after the response has been sent
    background: Optional[Callable[[], Awaitable[None]]] = None

    @classmethod
    def text(cls, status_code: int, message: str = "") -> "DispatchResult":
        return cls(status_code=status_code, content=message or None, media_type="text/plain")


class ServiceParams(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="allow")

    room: str
    service: str


class ActionRequest(BaseModel):
    """Kiosk action as posted by the orchestrator: { zone, operation, params? }"""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    zone: str
    operation: str
    params: Optional[Dict[str, Any]] = None

    @field_validator('zone', 'operation')
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @model_validator(mode='after')
    def validate_params_shape(self):
        if self.is_service:
            params = self.params or {}
            if params.get('room') in (None, "") or params.get('service') in (None, ""):
                raise ValueError(
                    f"{KioskOperation.SERVICE.value} operation requires params.room and params.service"
                )
            try:
                ServiceParams(**params)
            except ValidationError as e:
                fields = ", ".join(f"params.{err['loc'][0]}" for err in e.errors() if err.get('loc'))
                raise ValueError(
                    f"{KioskOperation.SERVICE.value} operation requires text values for {fields}"
                )
        elif self.is_maintenance and self.params is not None:
            raise ValueError(f"{KioskOperation.MAINTENANCE.value} operation does not accept params")
        return self

    @property
    def normalized_zone(self) -> str:
        return self.zone.upper()

    @property
    def is_service(self) -> bool:
        return self.operation.upper() == KioskOperation.SERVICE.value

    @property
    def is_maintenance(self) -> bool:
        return self.operation.upper() == KioskOperation.MAINTENANCE.value

    @property
    def service_params(self) -> Optional[ServiceParams]:
        if not self.is_service:
            return None
        return ServiceParams(**self.params)


class DispatchPhase(str, Enum):
    VALIDATING = "VALIDATING"
    RESOLVING_ENDPOINT = "RESOLVING_ENDPOINT"
    RESOLVING_COMMAND = "RESOLVING_COMMAND"
    SUBSTITUTING = "SUBSTITUTING"
    FORWARDING = "FORWARDING"
    RESPONDED = "RESPONDED"
