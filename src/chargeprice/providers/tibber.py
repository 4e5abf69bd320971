"""Tibber dynamic price provider.

Fetches hourly prices from the Tibber GraphQL API. One query returns both the
historical price range and the current hour's price, which the range never
includes. The two are reconciled into a gap-free list of hourly price points.
"""

import base64
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from importlib.metadata import PackageNotFoundError, version
from typing import Any

import httpx
import structlog

from ..config import TibberOptions
from ..errors import ProviderProtocolError, ReconciliationMismatchError, SelectorNotFoundError
from ..models import ONE_HOUR, PricePoint, PriceWindow, ensure_aware, format_round_trip
from .base import DynamicPriceProvider, send

logger = structlog.get_logger(__name__)

PRICE_QUERY = """
query PriceData($after: String, $first: Int) {
    viewer {
        homes {
            id,
            currentSubscription {
                priceInfo {
                    range(resolution: HOURLY, after: $after, first: $first) {
                        nodes {
                            total
                            startsAt
                        }
                    }
                    current {
                        total
                        startsAt
                        level
                    }
                }
            }
        }
    }
}
"""

# One hour of look-back plus the current hour missing from the range
EXTRA_HOURS = 2


def _client_version() -> str:
    try:
        return version("chargeprice")
    except PackageNotFoundError:
        return "0.0.0"


USER_AGENT = f"chargeprice/{_client_version()}"


@dataclass(frozen=True)
class RawNode:
    """One entry of the hourly price range."""

    total: Decimal
    starts_at: datetime

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RawNode":
        return cls(total=_decimal(data["total"]), starts_at=_timestamp(data["startsAt"]))


@dataclass(frozen=True)
class CurrentPriceSnapshot:
    """The price for the hour in progress."""

    total: Decimal
    starts_at: datetime
    level: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CurrentPriceSnapshot":
        return cls(
            total=_decimal(data["total"]),
            starts_at=_timestamp(data["startsAt"]),
            level=data.get("level"),
        )


@dataclass(frozen=True)
class Home:
    id: uuid.UUID
    nodes: tuple[RawNode, ...]
    current: CurrentPriceSnapshot | None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Home":
        subscription = data.get("currentSubscription")
        if not subscription or not subscription.get("priceInfo"):
            raise ProviderProtocolError(f"Home {data.get('id')} has no active subscription price info")
        price_info = subscription["priceInfo"]
        current = price_info.get("current")
        return cls(
            id=uuid.UUID(data["id"]),
            nodes=tuple(RawNode.from_dict(n) for n in price_info["range"]["nodes"]),
            current=CurrentPriceSnapshot.from_dict(current) if current else None,
        )


def _decimal(value: Any) -> Decimal:
    if value is None:
        raise ValueError("missing price total")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _timestamp(value: str) -> datetime:
    return ensure_aware(datetime.fromisoformat(value))


def encode_cursor(value: datetime) -> str:
    """Encode a timestamp as a range pagination cursor."""
    return base64.b64encode(format_round_trip(value).encode("utf-8")).decode("ascii")


def _home_id(raw: dict[str, Any]) -> uuid.UUID:
    try:
        return uuid.UUID(raw["id"])
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ProviderProtocolError(f"Deserialization of Tibber API response failed: {e!r}") from e


def select_home(homes: list[dict[str, Any]], home_id: uuid.UUID | None) -> dict[str, Any]:
    """Pick the configured home, or the first one when none is configured.

    Works on the raw home entries so that other homes on the account, which
    may have no active subscription, are never decoded.
    """
    if home_id is not None:
        for home in homes:
            if _home_id(home) == home_id:
                return home
        raise SelectorNotFoundError(home_id)

    if not homes:
        raise ProviderProtocolError("No homes returned by Tibber API")
    return homes[0]


def reconcile_prices(
    nodes: list[RawNode] | tuple[RawNode, ...],
    current: CurrentPriceSnapshot | None,
    window: PriceWindow,
) -> list[PricePoint]:
    """Turn the returned range into the full list of hourly price points.

    The range only holds completed hours, so when exactly one point is
    missing and the current price falls inside the requested window (plus the
    hour of look-back), the current price fills the gap. Any other shortfall
    or surplus is an error.
    """
    expected = window.hours + EXTRA_HOURS
    prices = [PricePoint.for_hour(node.starts_at, node.total) for node in nodes]
    count = len(prices)

    if (
        count + 1 == expected
        and current is not None
        and window.start - ONE_HOUR <= current.starts_at < window.end
        and not any(p.valid_from == current.starts_at for p in prices)
    ):
        logger.info("tibber.current_price_appended", starts_at=current.starts_at.isoformat())
        prices.append(PricePoint.for_hour(current.starts_at, current.total))
    elif count != expected:
        logger.warning("tibber.price_count_mismatch", expected=expected, actual=count)
        raise ReconciliationMismatchError(expected=expected, actual=count)

    return prices


def decode_homes(payload: Any) -> list[dict[str, Any]]:
    """Extract the raw home entries from a decoded GraphQL response body."""
    if not payload or not isinstance(payload, dict):
        raise ProviderProtocolError("Deserialization of Tibber API response failed")

    errors = payload.get("errors") or []
    if errors:
        messages = [str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors]
        raise ProviderProtocolError(f"Failed to call Tibber API: {', '.join(messages)}", messages)

    try:
        homes = payload["data"]["viewer"]["homes"]
    except (KeyError, TypeError) as e:
        raise ProviderProtocolError(f"Deserialization of Tibber API response failed: {e!r}") from e
    if not isinstance(homes, list) or not all(isinstance(h, dict) for h in homes):
        raise ProviderProtocolError("Deserialization of Tibber API response failed: homes is not a list")
    return homes


def decode_home(raw: dict[str, Any]) -> Home:
    """Decode the price info of the selected home."""
    try:
        return Home.from_dict(raw)
    except (AttributeError, KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise ProviderProtocolError(f"Deserialization of Tibber API response failed: {e!r}") from e


class TibberService(DynamicPriceProvider):
    """Hourly prices for one Tibber home."""

    def __init__(self, client: httpx.AsyncClient, options: TibberOptions):
        self._client = client
        self._options = options

    def build_request(self, window: PriceWindow) -> httpx.Request:
        """Build the PriceData query starting one hour before the window."""
        variables = {
            "after": encode_cursor(window.start - ONE_HOUR),
            "first": window.hours + EXTRA_HOURS,
        }
        headers = {"User-Agent": USER_AGENT}
        if self._options.access_token:
            headers["Authorization"] = f"Bearer {self._options.access_token}"
        return self._client.build_request(
            "POST",
            self._options.base_url,
            json={"query": PRICE_QUERY, "operationName": "PriceData", "variables": variables},
            headers=headers,
        )

    async def get_price_data(self, start: datetime, end: datetime) -> list[PricePoint]:
        window = PriceWindow(start, end)
        request = self.build_request(window)
        logger.debug(
            "tibber.request",
            start=window.start.isoformat(),
            end=window.end.isoformat(),
            first=window.hours + EXTRA_HOURS,
        )

        response = await send(self._client, request)
        try:
            payload = response.json(parse_float=Decimal)
        except ValueError as e:
            raise ProviderProtocolError("Deserialization of Tibber API response failed") from e

        home = decode_home(select_home(decode_homes(payload), self._options.home_id))
        logger.debug("tibber.home_selected", home_id=str(home.id), nodes=len(home.nodes))
        return reconcile_prices(home.nodes, home.current, window)
