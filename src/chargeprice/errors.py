"""Exceptions raised by the price providers."""

from collections.abc import Mapping


class PriceProviderError(Exception):
    """Base exception for price provider errors."""
    pass


class ConfigurationError(ValueError):
    """Raised when provider settings are missing or invalid."""
    pass


class TransportError(PriceProviderError):
    """Network or connection failure before a response was received."""
    pass


class RequestFailedError(PriceProviderError):
    """The provider answered with a non-success HTTP status."""

    def __init__(
        self,
        status_code: int,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
        url: str | None = None,
    ):
        message = f"Request failed with HTTP {status_code}"
        if url:
            message += f" ({url})"
        if body:
            message += f": {body[:200]}"
        super().__init__(message)
        self.status_code = status_code
        self.headers = dict(headers or {})
        self.body = body
        self.url = url


class ProviderProtocolError(PriceProviderError):
    """The response arrived but could not be used.

    Covers provider-reported errors (e.g. a GraphQL ``errors`` array) as well
    as bodies that are empty or do not match the expected shape.
    """

    def __init__(self, message: str, messages: list[str] | None = None):
        super().__init__(message)
        self.messages = messages or []


class SelectorNotFoundError(PriceProviderError):
    """The configured home id matched none of the homes returned."""

    def __init__(self, home_id):
        super().__init__(f"Home with id {home_id} not found")
        self.home_id = home_id


class ReconciliationMismatchError(PriceProviderError):
    """The number of returned price points does not match the request."""

    def __init__(self, expected: int, actual: int, provider: str = "Tibber"):
        super().__init__(
            f"Mismatch of requested price info from {provider} API "
            f"(expected: {expected}, actual: {actual})"
        )
        self.expected = expected
        self.actual = actual
