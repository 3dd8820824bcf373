# Abstract base class for outbound communication adapters

from abc import ABC, abstractmethod
from typing import Any, Optional


class CommunicationAdapter(ABC):
    @abstractmethod
    async def connect(self) -> None:
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    async def get(self, endpoint: str) -> Any:
        """Fetch a resource. Raises CommunicationError on failure."""
        pass

    @abstractmethod
    async def post(self, endpoint: str, data: Optional[Any] = None) -> Any:
        """Send a resource. Raises CommunicationError on failure."""
        pass
