"""
Tests for the geocoding client and the maps endpoints
"""
import httpx
import pytest

from hvacpro.config import settings
from hvacpro.errors import InternalError, NotFoundError, ValidationError
from hvacpro.main import app
from hvacpro.services.geocoding import geocode, get_geocode_client


def _client(payload, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["key"] == "test-maps-key"
        return httpx.Response(status_code, json=payload)

    return httpx.Client(transport=httpx.MockTransport(handler))


OK = {
    "status": "OK",
    "results": [
        {
            "formatted_address": "1100 Congress Ave, Austin, TX 78701, USA",
            "geometry": {"location": {"lat": 30.2747, "lng": -97.7404}},
        }
    ],
}


class TestGeocode:
    def test_best_match(self):
        result = geocode("1100 Congress Ave, Austin TX", client=_client(OK))
        assert result == {"lat": 30.2747, "lng": -97.7404, "formatted_address": "1100 Congress Ave, Austin, TX 78701, USA"}

    def test_no_results(self):
        with pytest.raises(NotFoundError):
            geocode("nowhere at all", client=_client({"status": "ZERO_RESULTS", "results": []}))

    def test_blank_address(self):
        with pytest.raises(ValidationError):
            geocode("   ", client=_client(OK))

    def test_missing_key(self, monkeypatch):
        monkeypatch.setattr(settings, "google_maps_api_key", None)
        with pytest.raises(InternalError):
            geocode("1100 Congress Ave", client=_client(OK))

    def test_upstream_failure(self):
        with pytest.raises(InternalError):
            geocode("1100 Congress Ave", client=_client({}, status_code=503))


class TestMapsEndpoints:
    def test_geocode_endpoint(self, client_a):
        app.dependency_overrides[get_geocode_client] = lambda: _client(OK)
        try:
            response = client_a.get("/maps/geocode", params={"address": "1100 Congress Ave"})
        finally:
            app.dependency_overrides.pop(get_geocode_client, None)
        assert response.status_code == 200
        assert response.json()["lat"] == 30.2747

    def test_geocode_endpoint_requires_login(self, anon):
        assert anon.get("/maps/geocode", params={"address": "x"}).status_code == 401

    def test_health(self, anon):
        response = anon.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
