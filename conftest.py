import pytest
import httpx
from httpx import AsyncClient, ASGITransport

from limo_api.core.config import Settings
from limo_api.main import create_app

TEST_API_KEY = "test-api-key"
TEST_MAPS_KEY = "test-maps-key"


def make_settings(**overrides) -> Settings:
    values = {
        "LMS_API_KEY": TEST_API_KEY,
        "GOOGLE_MAPS_KEY": None,
        "PRICE_BASE": 65.0,
        "PRICE_PER_KM": 2.2,
        "PRICE_PER_MIN": 0.0,
        "PRICE_PER_PAX": 5.0,
        "PRICE_PER_BAG": 2.0,
        "AFTER_HOURS_RATE": 0.0,
        "AIRPORT_SURCHARGE": 0.0,
        "REDIS_URL": None,
        "DISTANCE_CACHE_ENABLED": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def matrix_payload(meters=16000, seconds=1500, traffic_seconds=None, element_status="OK", status="OK"):
    element = {"status": element_status}
    if meters is not None:
        element["distance"] = {"text": f"{meters / 1000} km", "value": meters}
    if seconds is not None:
        element["duration"] = {"text": f"{seconds // 60} mins", "value": seconds}
    if traffic_seconds is not None:
        element["duration_in_traffic"] = {"text": f"{traffic_seconds // 60} mins", "value": traffic_seconds}
    return {
        "status": status,
        "origin_addresses": ["Origin"],
        "destination_addresses": ["Destination"],
        "rows": [{"elements": [element]}],
    }


class FakeMaps:
    """Records distance-matrix calls and answers from a canned handler."""

    def __init__(self, handler=None):
        self.calls = []
        self.handler = handler or (lambda request: httpx.Response(200, json=matrix_payload()))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return self.handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def fake_maps():
    return FakeMaps()


@pytest.fixture
def app_factory():
    def _create(settings=None, maps=None):
        return create_app(settings or make_settings(), transport=maps.transport if maps else None)
    return _create


@pytest.fixture
async def test_client(settings):
    app = create_app(settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def api_headers():
    return {"X-Api-Key": TEST_API_KEY}


@pytest.fixture
def valid_quote_data():
    return {
        "pickup": "Brisbane Airport",
        "dropoff": "South Bank",
        "when": "2025-10-15T10:30",
        "pax": 2,
        "luggage": 1,
    }


@pytest.fixture
def valid_booking_data(valid_quote_data):
    data = dict(valid_quote_data)
    data.update({
        "name": "Jane Citizen",
        "phone": "0400 000 000",
        "email": "jane@example.com",
        "notes": "Child seat please",
        "quoteRef": "Q-123",
    })
    return data


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to pricing"
    )
    config.addinivalue_line(
        "markers", "distance: marks tests related to distance resolution"
    )
    config.addinivalue_line(
        "markers", "auth: marks tests related to the API key"
    )
    config.addinivalue_line(
        "markers", "rate_limit: marks tests related to rate limiting"
    )
