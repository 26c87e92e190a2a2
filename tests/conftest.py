"""Shared test fixtures for the CMS webhooks test suite."""

import os
from collections.abc import AsyncGenerator, Callable, Generator
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

import httpx
import pytest

from cms_webhooks.config.models.delivery import DeliveryConfig
from cms_webhooks.stores import InMemoryWebhookStore
from cms_webhooks.webhooks.dispatcher import WebhookDispatcher
from cms_webhooks.webhooks.executor import DeliveryExecutor
from cms_webhooks.webhooks.models import WebhookEvent, WebhookRegistration


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            toml_file = test_config_dir / filename
            toml_file.write_text(content)

    return _create_toml_files


class EnvOverrideContext:
    """Context manager for temporarily setting environment variables."""

    def __init__(self, overrides: dict[str, str]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            if self.original_env[key] is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = self.original_env[key]


@pytest.fixture
def env_override() -> Generator[Callable[[dict[str, str]], EnvOverrideContext], None, None]:
    """Context manager for temporarily setting environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"CMS_WEBHOOKS_DEBUG": "true"}):
                # test code here
    """

    def _env_override(overrides: dict[str, str]) -> EnvOverrideContext:
        return EnvOverrideContext(overrides)

    yield _env_override


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache before and after each test.

    This ensures test isolation for configuration tests.
    """
    from cms_webhooks.config import get_settings
    from cms_webhooks.config.settings import set_toml_config

    get_settings.cache_clear()
    set_toml_config({})
    yield
    get_settings.cache_clear()
    set_toml_config({})


class Receiver:
    """Mock webhook endpoint backed by httpx.MockTransport.

    Records every request and answers with a configurable status and body.
    """

    def __init__(self, status_code: int = 200, body: str = "ok") -> None:
        self.status_code = status_code
        self.body = body
        self.requests: list[httpx.Request] = []
        self.error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def tenant_id() -> UUID:
    """Tenant owning the test webhooks."""
    return uuid4()


@pytest.fixture
def store() -> InMemoryWebhookStore:
    """Create an in-memory webhook store."""
    return InMemoryWebhookStore()


@pytest.fixture
def receiver() -> Receiver:
    """Create a mock receiver answering 200 OK."""
    return Receiver()


@pytest.fixture
def delivery_config() -> DeliveryConfig:
    """Delivery settings with defaults."""
    return DeliveryConfig()


@pytest.fixture
async def dispatcher(
    store: InMemoryWebhookStore,
    receiver: Receiver,
    delivery_config: DeliveryConfig,
) -> AsyncGenerator[WebhookDispatcher, None]:
    """Dispatcher wired to the in-memory store and the mock receiver."""
    executor = DeliveryExecutor(delivery_config, client=receiver.client())
    dispatcher = WebhookDispatcher(store, executor=executor, config=delivery_config)
    yield dispatcher
    await dispatcher.close()


@pytest.fixture
def make_webhook(
    store: InMemoryWebhookStore, tenant_id: UUID
) -> Callable[..., Any]:
    """Factory fixture that saves a webhook registration and returns it.

    Usage:
        async def test_something(make_webhook):
            webhook = await make_webhook(events=[WebhookEvent.PAGE_PUBLISHED])
    """

    async def _make_webhook(**overrides: Any) -> WebhookRegistration:
        fields: dict[str, Any] = {
            "tenant_id": tenant_id,
            "name": "Site rebuild",
            "url": "https://hooks.example.com/cms",
            "secret": "whsec_" + "ab" * 24,
            "events": [WebhookEvent.PAGE_PUBLISHED],
        }
        fields.update(overrides)
        webhook = WebhookRegistration(**fields)
        await store.save_webhook(webhook)
        return webhook

    return _make_webhook
