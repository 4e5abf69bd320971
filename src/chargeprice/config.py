"""Provider configuration.

Settings come from an optional YAML file, overridden by environment
variables (a ``.env`` file in the working directory is loaded first).

Example ``chargeprice.yaml``::

    provider: tibber
    timeout: 30
    tibber:
      access_token: "..."
      home_id: "96a14971-525a-4420-aae9-e5aedaa129ff"
    monta:
      client_id: "..."
      client_secret: "..."
"""

import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError

TIBBER = "tibber"
MONTA = "monta"
PROVIDERS = (TIBBER, MONTA)

DEFAULT_TIBBER_BASE_URL = "https://api.tibber.com/v1-beta/gql"
DEFAULT_MONTA_BASE_URL = "https://public-api.monta.com/api/v1"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class TibberOptions:
    """Dynamic price provider settings."""

    base_url: str = DEFAULT_TIBBER_BASE_URL
    access_token: str | None = None
    home_id: uuid.UUID | None = None  # None = take the first home


@dataclass(frozen=True)
class MontaOptions:
    """Whole-price provider settings."""

    client_id: str
    client_secret: str
    base_url: str = DEFAULT_MONTA_BASE_URL


@dataclass(frozen=True)
class Settings:
    provider: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    tibber: TibberOptions | None = None
    monta: MontaOptions | None = None

    def require_tibber(self) -> TibberOptions:
        # Tibber needs nothing beyond defaults to build a request
        return self.tibber or TibberOptions()

    def require_monta(self) -> MontaOptions:
        if self.monta is None:
            raise ConfigurationError(
                "Monta credentials not set.\n"
                "Set MONTA_CLIENT_ID and MONTA_CLIENT_SECRET, or add a 'monta' section to the config file."
            )
        return self.monta


def parse_home_id(value: Any) -> uuid.UUID | None:
    """Parse a configured home id. Empty values mean "not configured"."""
    if value is None or isinstance(value, uuid.UUID):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return uuid.UUID(text)
    except ValueError:
        raise ConfigurationError(f"Invalid Tibber home id: {text!r}") from None


def load_yaml_config(config_path: Path) -> dict:
    """Load the raw settings mapping from a YAML file."""
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    return data


def _env(name: str, fallback: Any = None) -> Any:
    return os.environ.get(name, fallback)


def load_settings(config_path: Path | None = None) -> Settings:
    """Build settings from the config file (if any) and the environment."""
    load_dotenv(find_dotenv(usecwd=True))

    data = load_yaml_config(config_path) if config_path else {}
    tibber_data = data.get("tibber") or {}
    monta_data = data.get("monta") or {}

    provider = _env("PRICE_PROVIDER", data.get("provider"))
    if provider:
        provider = str(provider).strip().lower()
        if provider not in PROVIDERS:
            raise ConfigurationError(
                f"Unknown price provider {provider!r} (expected one of: {', '.join(PROVIDERS)})"
            )

    timeout_value = _env("PRICE_HTTP_TIMEOUT", data.get("timeout", DEFAULT_TIMEOUT))
    try:
        timeout = float(timeout_value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid HTTP timeout: {timeout_value!r}") from None

    tibber = TibberOptions(
        base_url=_env("TIBBER_BASE_URL", tibber_data.get("base_url")) or DEFAULT_TIBBER_BASE_URL,
        access_token=_env("TIBBER_ACCESS_TOKEN", tibber_data.get("access_token")) or None,
        home_id=parse_home_id(_env("TIBBER_HOME_ID", tibber_data.get("home_id"))),
    )

    monta = None
    client_id = _env("MONTA_CLIENT_ID", monta_data.get("client_id"))
    client_secret = _env("MONTA_CLIENT_SECRET", monta_data.get("client_secret"))
    if client_id or client_secret:
        if not (client_id and client_secret):
            raise ConfigurationError("Both MONTA_CLIENT_ID and MONTA_CLIENT_SECRET must be set")
        monta = MontaOptions(
            client_id=client_id,
            client_secret=client_secret,
            base_url=_env("MONTA_BASE_URL", monta_data.get("base_url")) or DEFAULT_MONTA_BASE_URL,
        )

    return Settings(provider=provider, timeout=timeout, tibber=tibber, monta=monta)
