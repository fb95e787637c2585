# ABOUTME: pytest configuration for cascade tests
# ABOUTME: Configures timeouts, test logging and shared application/request fixtures

from typing import Any, Dict, List, Optional

import pytest
from loguru import logger

from cascade import Application, MemoryIncomingMessage, MemoryServerResponse
from cascade.config import CoreSettings, configure_for_testing


def pytest_configure(config):
    """Configure pytest for cascade tests."""
    config.addinivalue_line("markers", "unit: Unit tests with 20-second timeout")
    config.addinivalue_line("markers", "integration: Integration tests with 60-second timeout")
    config.addinivalue_line("markers", "contract: Contract tests with 60-second timeout")
    config.addinivalue_line("markers", "config: Configuration tests")


def pytest_collection_modifyitems(config, items):
    """Modify test items to add appropriate timeouts based on test type."""
    for item in items:
        # Respect an explicit timeout marker
        if item.get_closest_marker("timeout"):
            continue

        if item.get_closest_marker("unit"):
            item.add_marker(pytest.mark.timeout(20))
        elif any(item.get_closest_marker(mark) for mark in ["integration", "contract"]):
            item.add_marker(pytest.mark.timeout(60))


@pytest.fixture(autouse=True, scope="session")
def _test_logging():
    configure_for_testing()
    yield
    logger.remove()


@pytest.fixture
def log_records():
    """Capture log messages emitted while the test runs."""
    records: List[Dict[str, Any]] = []
    handler_id = logger.add(
        lambda message: records.append(message.record),
        level="DEBUG",
        format="{message}",
        catch=False,
    )
    yield records
    logger.remove(handler_id)


@pytest.fixture
def settings() -> CoreSettings:
    """Settings isolated from CASCADE_* variables in the developer's environment."""
    return CoreSettings(_env_file=None, ENV="test")


@pytest.fixture
def app(settings) -> Application:
    return Application(settings=settings)


class RequestRunner:
    """Drives an application through the in-memory transport."""

    def __init__(self, app: Application):
        self.app = app

    async def __call__(
        self,
        method: str = "GET",
        url: str = "/",
        headers: Optional[Dict[str, str]] = None,
        body: bytes = b"",
        http_version: str = "1.1",
    ) -> MemoryServerResponse:
        req = MemoryIncomingMessage(method, url, headers, body, http_version)
        res = MemoryServerResponse()
        await self.app.callback()(req, res)
        return res


@pytest.fixture
def client(app) -> RequestRunner:
    """Send one request to the `app` fixture and return the recorded response."""
    return RequestRunner(app)


@pytest.fixture
def make_context(app):
    """Build a context on the `app` fixture without running any middleware."""

    def _make(
        method: str = "GET",
        url: str = "/",
        headers: Optional[Dict[str, str]] = None,
        http_version: str = "1.1",
        target: Optional[Application] = None,
    ):
        req = MemoryIncomingMessage(method, url, headers, http_version=http_version)
        res = MemoryServerResponse()
        return (target or app).create_context(req, res)

    return _make
