import pytest
from fastapi.testclient import TestClient

import main
import upstream

# 2023-11-14 22:13:20 UTC, i.e. Wed 15 Nov 03:43 in Hyderabad (UTC+5:30)
NOW = 1700000000
IST_OFFSET = 19800


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, body=None, reason="OK"):
        self.status_code = status_code
        self._body = body
        self.reason = reason

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


@pytest.fixture(autouse=True)
def api_keys(monkeypatch):
    monkeypatch.setenv("OPENWEATHER_API_KEY", "test-weather-key")
    monkeypatch.setenv("GNEWS_API_KEY", "test-news-key")
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    monkeypatch.delenv("GEOCODING_API_KEY", raising=False)
    monkeypatch.delenv("UPSTREAM_TIMEOUT", raising=False)


@pytest.fixture
def client():
    return TestClient(main.app)


@pytest.fixture
def fake_upstream(monkeypatch):
    """
    Replace requests.get. Register responses by URL path suffix in fake_upstream.routes;
    a registered exception is raised instead. Calls are recorded in fake_upstream.calls.
    """
    routes = {}
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append({"url": url, "params": params, "timeout": timeout})
        for path, response in routes.items():
            if url.endswith(path):
                if isinstance(response, Exception):
                    raise response
                return response
        raise AssertionError(f"Unexpected upstream call: {url}")

    fake_get.routes = routes
    fake_get.calls = calls
    monkeypatch.setattr(upstream.requests, "get", fake_get)
    return fake_get


@pytest.fixture
def current_weather():
    return {
        "coord": {"lat": 17.385, "lon": 78.4867},
        "dt": NOW,
        "timezone": IST_OFFSET,
        "name": "Hyderabad",
        "sys": {"country": "IN"},
        "main": {"temp": 28.4, "feels_like": 30.1, "temp_min": 26.0, "temp_max": 29.0, "humidity": 60},
        "wind": {"speed": 3.0},
        "weather": [{"description": "clear sky", "icon": "01d"}],
    }


@pytest.fixture
def forecast_3h():
    """16 three-hour slots starting at NOW: local dates Nov 15 (7 slots), Nov 16 (8), Nov 17 (1)."""
    items = []
    for i in range(16):
        item = {
            "dt": NOW + i * 10800,
            "main": {"temp": 25.6 + i * 0.1, "temp_min": 24.0, "temp_max": 27.0, "humidity": 70},
            "wind": {"speed": 2.0},
            "weather": [{"description": "scattered clouds", "icon": "03d"}],
            "pop": 0.25,
        }
        if i == 0:
            item["rain"] = {"3h": 1.2}
        items.append(item)
    return {"list": items, "city": {"name": "Hyderabad", "timezone": IST_OFFSET}}


@pytest.fixture
def daily_7d():
    return {
        "list": [
            {
                # 2023-11-15T00:00:00Z
                "dt": NOW + 6400,
                "temp": {"max": 30.2, "min": 20.1},
                "weather": [{"description": "light rain", "icon": "10d"}],
                "pop": 0.456,
            },
            {
                "dt": NOW + 6400 + 86400,
                "temp": {"max": 31.0, "min": 21.0},
                "weather": [{"description": "clear sky", "icon": "01d"}],
            },
        ]
    }
