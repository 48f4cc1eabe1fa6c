from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from api.server import create_app
from config import ProxySettings

API_KEY = "s3cret-key"
UPSTREAM_URL = "https://listings.upstream.test/RMXServices/strateo/getInscriptions/call.do"


@pytest.fixture
def settings() -> ProxySettings:
    return ProxySettings(
        _env_file=None,
        api_key=API_KEY,
        upstream_url=UPSTREAM_URL,
        upstream_timeout_seconds=10.0,
        rate_limit_max_requests=100,
        rate_limit_window_minutes=15,
        cors_allow_origins="*",
    )


@pytest.fixture
def client(settings: ProxySettings) -> Iterator[TestClient]:
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)  # no stray .env
    for var in (
        "API_KEY",
        "PORT",
        "HOST",
        "UPSTREAM_URL",
        "UPSTREAM_TIMEOUT_SECONDS",
        "RATE_LIMIT_MAX_REQUESTS",
        "RATE_LIMIT_WINDOW_MINUTES",
        "CORS_ALLOW_ORIGINS",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    """setup_logging() installs a root handler; drop it after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
