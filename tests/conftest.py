import pytest

from mbta_routing.config import Config


@pytest.fixture(autouse=True)
def boston_config(monkeypatch):
    # Keep tests independent of a developer's .env
    monkeypatch.setattr(Config, "TIMEZONE", "America/New_York")
    monkeypatch.setattr(Config, "MBTA_API_KEY", "test-api-key")
    monkeypatch.setattr(Config, "MBTA_API_URL", "https://api-v3.mbta.com")
    monkeypatch.setattr(Config, "TIMEOUT_SECONDS", 5)
    monkeypatch.setattr(Config, "MAX_WORKERS", 1)
