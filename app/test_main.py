import fakeredis
import httpx
from fastapi.testclient import TestClient

from app.main import app
from app.models.health import ServiceStatus
from app.redis_cache.cache import CityReferenceCache


class FakeResponse:
    def __init__(self, json_data, status_code=200):
        self._json_data = json_data
        self.status_code = status_code

    def json(self):
        return self._json_data

    def raise_for_status(self):
        return None


def use_fake_cache(monkeypatch):
    client = fakeredis.FakeRedis(decode_responses=True)
    client.flushall()
    monkeypatch.setattr(
        "app.main.city_reference_cache", lambda: CityReferenceCache(client)
    )
    return client


def fake_upstream(calls):
    def fake_httpx_get(url, params=None, headers=None, timeout=None):
        calls.append(url)
        if "nominatim" in url:
            return FakeResponse(
                {
                    "display_name": "Calle X, Huejutla de Reyes",
                    "address": {"city": "Huejutla de Reyes"},
                }
            )
        if "geocoding-api.open-meteo.com" in url:
            return FakeResponse(
                {
                    "results": [
                        {
                            "name": "Huejutla de Reyes",
                            "latitude": 21.1403,
                            "longitude": -98.4194,
                        }
                    ]
                }
            )
        raise AssertionError(f"Unexpected URL: {url}")

    return fake_httpx_get


def test_root():
    client = TestClient(app)
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Hello World"}


def test_where_am_i_integration_with_mocked_upstream(monkeypatch):
    client = TestClient(app)
    calls = []
    monkeypatch.setattr(
        "app.geocoding_service.geocoding.httpx.get", fake_upstream(calls)
    )
    use_fake_cache(monkeypatch)

    body = {"permission_granted": True, "fix": {"latitude": 21.15, "longitude": -98.42}}
    response = client.post("/where-am-i", json=body)
    assert response.status_code == 200
    data = response.json()
    assert data["phase"] == "report_ready"
    assert data["location_text"] == "Calle X, Huejutla de Reyes"
    assert data["direction_text"] == "Huejutla de Reyes center: South"
    assert data["report"]["cardinal_label"] == "South"

    display = client.get("/display").json()
    assert display["phase"] == "idle"
    assert display["direction_text"] == "Huejutla de Reyes center: South"

    response = client.post("/where-am-i", json=body)
    assert response.status_code == 200
    city_lookups = [url for url in calls if "open-meteo" in url]
    assert len(city_lookups) == 1


def test_where_am_i_permission_denied(monkeypatch):
    client = TestClient(app)

    def unexpected_build(fix):
        raise AssertionError("no report should be built")

    monkeypatch.setattr("app.main.build_report", unexpected_build)
    response = client.post("/where-am-i", json={"permission_granted": False})
    assert response.status_code == 200
    assert response.json()["location_text"] == "You are at: (permission denied)"


def test_where_am_i_without_fix(monkeypatch):
    client = TestClient(app)
    response = client.post("/where-am-i", json={"permission_granted": True})
    assert response.status_code == 200
    assert response.json()["location_text"] == "You are at: (location unavailable)"


def test_report_degraded_when_upstream_down(monkeypatch):
    client = TestClient(app)

    def failing_httpx_get(url, params=None, headers=None, timeout=None):
        raise httpx.ConnectError("no connectivity")

    monkeypatch.setattr("app.geocoding_service.geocoding.httpx.get", failing_httpx_get)
    redis = use_fake_cache(monkeypatch)

    response = client.post("/report", json={"latitude": 21.15, "longitude": -98.42})
    assert response.status_code == 200
    data = response.json()
    assert data["address_line"] is None
    assert data["city_name"] == "Huejutla de Reyes"
    assert data["reference"] == {"latitude": 21.1403, "longitude": -98.4194}
    assert redis.keys() == []


def test_report_rejects_out_of_range_fix():
    client = TestClient(app)
    response = client.post("/report", json={"latitude": 91, "longitude": 0})
    assert response.status_code == 422


def test_classify_bearing():
    client = TestClient(app)
    response = client.get("/bearing/classify", params={"degrees": -90})
    assert response.status_code == 200
    assert response.json() == {"bearing_deg": 270.0, "cardinal_label": "West"}


def test_health(monkeypatch):
    client = TestClient(app)

    async def fake_is_geocoding_api_available():
        return True

    def fake_is_redis_available():
        return ServiceStatus.available

    monkeypatch.setattr(
        "app.main.is_geocoding_api_available", fake_is_geocoding_api_available
    )
    monkeypatch.setattr("app.main.is_redis_available", fake_is_redis_available)

    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "dependencies": {"geocoding_api": "available", "redis": "available"},
    }


def test_metrics():
    client = TestClient(app)
    client.get("/")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text
