# adapters/rest.py
import asyncio
import json
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp

from .base import CommunicationAdapter
from ..utils.exceptions import CommunicationError
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RestResponse:
    status: int
    body: str
    content_type: Optional[str] = None

    def json(self) -> Any:
        """Decode the body, None when it is empty. Raises ValueError on bad JSON."""
        if not self.body:
            return None
        return json.loads(self.body)


class RestAPIAdapter(CommunicationAdapter):
    """
    Generic REST API communication adapter.

    Performs exactly one attempt per call: callers decide what a failure
    means, nothing is retried here. Endpoints are joined to ``base_url``
    unless they are already absolute URLs, so an adapter without a base URL
    can serve dynamically resolved hosts over one shared session.
    """
    def __init__(
        self,
        base_url: str = "",
        connect_timeout: Optional[float] = None,
        request_timeout: Optional[float] = None,
        verify_ssl: bool = True
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = aiohttp.ClientTimeout(total=request_timeout, connect=connect_timeout)
        self.verify_ssl = verify_ssl
        self.session: Optional[aiohttp.ClientSession] = None
        self.is_connected = False

    async def connect(self) -> None:
        if self.is_connected:
            return
        connector = aiohttp.TCPConnector(ssl=self.verify_ssl)
        self.session = aiohttp.ClientSession(timeout=self.timeout, connector=connector)
        self.is_connected = True
        logger.info(f"Created REST API session for {self.base_url or 'resolved endpoints'}")

    async def disconnect(self) -> None:
        if self.session:
            try:
                await self.session.close()
                logger.info(f"Closed REST API session for {self.base_url or 'resolved endpoints'}")
            finally:
                self.session = None
                self.is_connected = False

    def url_for(self, endpoint: str) -> str:
        if endpoint.startswith(('http://', 'https://')):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    async def get(self, endpoint: str) -> RestResponse:
        return await self._request('GET', endpoint)

    async def post(self, endpoint: str, data: Optional[Any] = None) -> RestResponse:
        return await self._request('POST', endpoint, data)

    async def _request(self, method: str, endpoint: str, data: Optional[Any] = None) -> RestResponse:
        if not self.is_connected:
            raise RuntimeError("REST API session not created")

        url = self.url_for(endpoint)
        logger.debug(f"[{method}] {url}")
        try:
            async with self.session.request(method, url, json=data) as response:
                body = await response.text()
                status = response.status
                reason = response.reason
                content_type = response.headers.get('Content-Type')
        except asyncio.TimeoutError:
            raise CommunicationError(
                f"Timeout (connect {self.timeout.connect}s / total {self.timeout.total}s)", url=url
            )
        except aiohttp.ClientError as e:
            raise CommunicationError(str(e) or e.__class__.__name__, url=url)

        if status >= 400:
            raise CommunicationError(f"{status} {reason}", url=url, status=status)
        return RestResponse(status=status, body=body, content_type=content_type)
