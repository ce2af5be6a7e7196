from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from chatguard.api.app import create_app
from chatguard.config.settings import Settings, get_settings
from chatguard.infra.session_store import InMemorySessionStore

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture()
def settings() -> Settings:
    return Settings(environment="development", admin_token=ADMIN_TOKEN, log_level="WARNING")


@pytest.fixture()
def client(settings: Settings):
    get_settings.cache_clear()
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def store() -> InMemorySessionStore:
    """Store em memória com poucos shards para exercitar colisões."""
    return InMemorySessionStore(shards=4)
