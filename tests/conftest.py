import httpx
import pytest

from neo_impact.catalog import FALLBACK_NEOS
from neo_impact.config import Settings


@pytest.fixture
def settings():
    return Settings(nasa_api_key="test-key-123456", impact_probability="none")


def mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def failing_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, text="service unavailable")


def timeout_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectTimeout("timed out", request=request)


@pytest.fixture
def neo_records():
    return [dict(r) for r in FALLBACK_NEOS]
