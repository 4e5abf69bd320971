import pytest
import structlog

from chargeprice import config


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the developer's .env and shell variables out of the tests."""
    monkeypatch.setattr(config, "load_dotenv", lambda *args, **kwargs: False)
    for name in (
        "PRICE_PROVIDER",
        "PRICE_HTTP_TIMEOUT",
        "TIBBER_BASE_URL",
        "TIBBER_ACCESS_TOKEN",
        "TIBBER_HOME_ID",
        "MONTA_BASE_URL",
        "MONTA_CLIENT_ID",
        "MONTA_CLIENT_SECRET",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    structlog.reset_defaults()
