# tests/conftest.py
import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

os.environ.setdefault("APP_ENV", "dev")
os.environ.setdefault("LOG_FORMAT", "json")

from storefront_core.bootstrap import build_resolver  # noqa: E402
from storefront_core.core.config import Settings  # noqa: E402
from storefront_core.main import create_app  # noqa: E402


class RecordingLogger:
    """Stands in for a structlog logger and keeps every call."""

    def __init__(self):
        self.calls = []

    def _record(self, level):
        def _log(event, **fields):
            self.calls.append((level, event, fields))

        return _log

    def __getattr__(self, level):
        return self._record(level)

    def events(self):
        return [event for _, event, _ in self.calls]


def make_settings(**overrides) -> Settings:
    values = {"app_env": "dev", "log_format": "json", "sentry_dsn": None}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_request(path: str = "/test", method: str = "GET", headers=None) -> Request:
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request(
        {
            "type": "http",
            "method": method,
            "path": path,
            "root_path": "",
            "scheme": "http",
            "query_string": b"",
            "headers": raw_headers,
            "server": ("test", 80),
            "client": ("203.0.113.7", 5000),
        }
    )


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def resolver(settings):
    return build_resolver(settings)


@pytest.fixture
def recording_logger(monkeypatch):
    from storefront_core.api import errors

    fake = RecordingLogger()
    monkeypatch.setattr(errors, "logger", fake)
    return fake


@pytest_asyncio.fixture
async def app_client(settings, resolver):
    app = create_app(settings=settings, resolver=resolver)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
