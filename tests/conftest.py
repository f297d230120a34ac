"""
Pytest configuration and shared fixtures for the team memory test suite.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from team_memory.config.config_manager import (
    AppConfig,
    PersonalizationConfig,
    SupermemoryConfig,
    UserConfig,
)
from team_memory.services.supermemory_client import SupermemoryClient

API_BASE = "https://api.test.supermemory.local/v4"

ENV_VARS = (
    "SUPERMEMORY_API_KEY",
    "SUPERMEMORY_BASE_URL",
    "SUPERMEMORY_STORE_ENDPOINT",
    "DEFAULT_USER_ID",
    "LANGUAGE",
    "TEAM_MEMORY_PERSONALIZATION_ENABLED",
    "TEAM_MEMORY_PERSONALIZATION_LANGUAGES",
    "TEAM_MEMORY_ATTRIBUTE_CONTENT",
    "TEAM_MEMORY_LOG_LEVEL",
    "TEAM_MEMORY_LOG_FILE_PATH",
    "TEAM_MEMORY_LOG_FILE_ENABLED",
)


class FakeSupermemoryAPI:
    """Records outbound requests and replays canned responses."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.responses: Dict[str, Any] = {}

    def respond(self, endpoint: str, response: Any) -> None:
        """Set the reply for an endpoint: a dict (JSON 200), an httpx.Response or an exception."""
        self.responses[endpoint] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.rsplit("/", 1)[-1]
        response = self.responses.get(endpoint, {})
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def api_base() -> str:
    return API_BASE


@pytest.fixture
def fake_api() -> FakeSupermemoryAPI:
    return FakeSupermemoryAPI()


@pytest.fixture
def make_config() -> Callable[..., AppConfig]:
    """Build an AppConfig for tests; configured with an API key unless told otherwise."""
    def _make(
        api_key: Optional[str] = "test-key",
        user_id: str = "Chris",
        language: str = "en",
        store_endpoint: str = "conversations",
        languages: Optional[List[str]] = None,
        personalization_enabled: bool = True,
        attribute_content: bool = False,
    ) -> AppConfig:
        return AppConfig(
            supermemory=SupermemoryConfig(
                api_key=api_key,
                base_url=API_BASE,
                store_endpoint=store_endpoint,
            ),
            user=UserConfig(default_user_id=user_id, language=language),
            personalization=PersonalizationConfig(
                enabled=personalization_enabled,
                languages=languages or ["es", "en"],
                attribute_content=attribute_content,
            ),
        )
    return _make


@pytest.fixture
def make_client(make_config, fake_api) -> Callable[..., SupermemoryClient]:
    """Build a SupermemoryClient wired to the fake API."""
    def _make(**config_overrides) -> SupermemoryClient:
        return SupermemoryClient(make_config(**config_overrides), transport=fake_api.transport())
    return _make


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every setting the config manager reads from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handler changes made by setup_logging() so caplog keeps working."""
    yield
    package_logger = logging.getLogger("team_memory")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as exercising several components together"
    )
    config.addinivalue_line(
        "markers", "known_limitation: documents accepted behavior that is lossy or surprising"
    )
