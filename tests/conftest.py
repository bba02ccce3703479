"""Shared fixtures for the ListBackup API test suite."""

from unittest.mock import AsyncMock

import httpx
import pytest

from listbackup_api.config.settings import get_settings
from listbackup_api.main import create_app
from listbackup_api.services.container import Services
from listbackup_api.services.objects import ObjectStorage
from listbackup_api.services.payments import PaymentsProvider
from listbackup_api.store.memory import MemoryStore
from listbackup_api.store.schema import resolved_index_sort_keys, resolved_key_schema

USER = "user:u-1"
ACCOUNT = "account:a-1"
OTHER_ACCOUNT = "account:a-2"

NESTED_AUTHORIZER = {"lambda": {"userId": USER, "accountId": ACCOUNT}}


@pytest.fixture
def override_settings(monkeypatch):
    """Factory fixture: set env vars and clear settings cache.

    Usage:
        override_settings(STORE_BACKEND="memory", MAX_LOGO_SIZE_KB=1)
    """
    def _override(**kwargs):
        for key, value in kwargs.items():
            monkeypatch.setenv(key.upper(), str(value))
        get_settings.cache_clear()

    yield _override

    get_settings.cache_clear()


@pytest.fixture
def settings(override_settings):
    override_settings(STORE_BACKEND="memory", TABLE_PREFIX="test")
    return get_settings()


@pytest.fixture
def store(settings) -> MemoryStore:
    return MemoryStore(resolved_key_schema(settings), resolved_index_sort_keys(settings))


@pytest.fixture
def payments():
    return AsyncMock(spec=PaymentsProvider)


@pytest.fixture
def objects():
    storage = AsyncMock(spec=ObjectStorage)
    storage.put_object.return_value = "https://test-branding.s3.us-east-1.amazonaws.com/logo.png"
    storage.presigned_download_url.return_value = "https://test-data.s3.amazonaws.com/signed?X-Amz-Signature=abc"
    return storage


@pytest.fixture
def services(settings, store, payments, objects) -> Services:
    return Services(settings=settings, store=store, payments=payments, objects=objects)


@pytest.fixture
def app(services):
    return create_app(services)


def with_aws_event(app, authorizer):
    """Wrap an ASGI app so every request carries an API Gateway event.

    Mirrors what Mangum puts in the scope when running on Lambda.
    """
    async def asgi(scope, receive, send):
        if scope["type"] == "http":
            event = {"requestContext": {"requestId": "req-test-1", "authorizer": authorizer}}
            scope = {**scope, "aws.event": event}
        await app(scope, receive, send)

    return asgi


@pytest.fixture
async def api_client(app):
    """Factory fixture: httpx client whose requests carry the given authorizer payload."""
    clients = []

    def _make(authorizer=NESTED_AUTHORIZER) -> httpx.AsyncClient:
        transport = httpx.ASGITransport(app=with_aws_event(app, authorizer))
        client = httpx.AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()


@pytest.fixture
def client(api_client) -> httpx.AsyncClient:
    return api_client()


@pytest.fixture
def anon_client(api_client) -> httpx.AsyncClient:
    return api_client({})
