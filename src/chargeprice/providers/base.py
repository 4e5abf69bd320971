"""Provider contracts and shared HTTP plumbing."""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal

import httpx

from ..errors import RequestFailedError, TransportError
from ..models import PricePoint


class DynamicPriceProvider(ABC):
    """A provider returning one price point per hour."""

    @abstractmethod
    async def get_price_data(self, start: datetime, end: datetime) -> list[PricePoint]:
        """Return hourly price points covering [start, end)."""


class WholePriceProvider(ABC):
    """A provider returning one aggregated cost for a window."""

    @abstractmethod
    async def get_total_price(self, start: datetime, end: datetime) -> Decimal:
        """Return the total cost recorded in [start, end)."""


async def send(client: httpx.AsyncClient, request: httpx.Request) -> httpx.Response:
    """Send a request, translating transport failures and non-2xx statuses.

    Raises:
        TransportError: the request never got a response
        RequestFailedError: the response status was not 2xx
    """
    try:
        response = await client.send(request)
    except httpx.TransportError as e:
        raise TransportError(f"Network error calling {request.url}: {e}") from e

    if not response.is_success:
        raise RequestFailedError(
            status_code=response.status_code,
            headers=response.headers,
            body=response.text or None,
            url=str(request.url),
        )
    return response
