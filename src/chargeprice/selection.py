"""Build the HTTP client and the configured provider."""

import httpx

from .config import MONTA, TIBBER, Settings
from .errors import ConfigurationError
from .providers.base import DynamicPriceProvider, WholePriceProvider
from .providers.monta import MontaService
from .providers.tibber import TibberService


def create_client(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Create the HTTP client shared by the providers for one run."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout),
        headers={"Accept": "application/json"},
        transport=transport,
    )


def create_tibber(settings: Settings, client: httpx.AsyncClient) -> TibberService:
    return TibberService(client, settings.require_tibber())


def create_monta(settings: Settings, client: httpx.AsyncClient) -> MontaService:
    return MontaService(client, settings.require_monta())


def create_provider(
    settings: Settings, client: httpx.AsyncClient
) -> DynamicPriceProvider | WholePriceProvider:
    """Return the provider named by ``settings.provider``."""
    if settings.provider == TIBBER:
        return create_tibber(settings, client)
    if settings.provider == MONTA:
        return create_monta(settings, client)
    raise ConfigurationError(
        "No price provider configured.\n"
        "Set PRICE_PROVIDER to 'tibber' or 'monta', or add 'provider:' to the config file."
    )
