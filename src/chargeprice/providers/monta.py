"""Monta whole-price provider.

Authenticates with client credentials and sums the cost of every charge
recorded in a window. A fresh access token is requested on every call.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
import structlog

from ..config import MontaOptions
from ..errors import ProviderProtocolError
from ..models import PriceWindow, format_round_trip
from .base import WholePriceProvider, send

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Charge:
    cost: Decimal

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Charge":
        cost = data["cost"]
        if cost is None:
            raise ValueError("charge without cost")
        return cls(cost=cost if isinstance(cost, Decimal) else Decimal(str(cost)))


def calculate_total_price(charges: list[Charge]) -> Decimal:
    """Sum the cost of all charges. No charges costs nothing."""
    return sum((charge.cost for charge in charges), Decimal(0))


def _json(response: httpx.Response) -> Any:
    try:
        return response.json(parse_float=Decimal)
    except ValueError as e:
        raise ProviderProtocolError(f"Could not decode Monta response from {response.url}") from e


class MontaService(WholePriceProvider):
    """Total charging cost from the Monta public API."""

    def __init__(self, client: httpx.AsyncClient, options: MontaOptions):
        self._client = client
        self._options = options

    @property
    def _base_url(self) -> str:
        return self._options.base_url.rstrip("/")

    async def get_total_price(self, start: datetime, end: datetime) -> Decimal:
        window = PriceWindow(start, end)
        access_token = await self.get_access_token()
        charges = await self.get_charges(access_token, window)
        total = calculate_total_price(charges)
        logger.debug("monta.total_price", charges=len(charges), total=str(total))
        return total

    async def get_access_token(self) -> str:
        """Exchange client credentials for a bearer token."""
        request = self._client.build_request(
            "POST",
            f"{self._base_url}/auth/token",
            json={
                "clientId": self._options.client_id,
                "clientSecret": self._options.client_secret,
            },
        )
        response = await send(self._client, request)
        data = _json(response)

        token = data.get("accessToken") if isinstance(data, dict) else None
        if not token:
            raise ProviderProtocolError("Monta token response did not contain an access token")
        return token

    async def get_charges(self, access_token: str, window: PriceWindow) -> list[Charge]:
        """Fetch the charges recorded in the window."""
        request = self._client.build_request(
            "GET",
            f"{self._base_url}/charges",
            params={"from": format_round_trip(window.start), "to": format_round_trip(window.end)},
            headers={"Authorization": f"Bearer {access_token}"},
        )
        logger.debug("monta.request", start=window.start.isoformat(), end=window.end.isoformat())
        response = await send(self._client, request)
        data = _json(response)

        try:
            return [Charge.from_dict(c) for c in data["data"]]
        except (AttributeError, KeyError, TypeError, ValueError, InvalidOperation) as e:
            raise ProviderProtocolError(f"Unexpected Monta charges response: {e!r}") from e
