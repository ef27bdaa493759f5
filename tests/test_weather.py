import pytest
import requests

import weather_client
from conftest import NOW, FakeResponse
from upstream import UpstreamError, _redact, fetch


# --- Upstream access ---

def test_redact_masks_keys():
    assert _redact({"appid": "secret", "apikey": "s2", "q": "Pune"}) == {
        "appid": "[REDACTED]",
        "apikey": "[REDACTED]",
        "q": "Pune",
    }


def test_fetch_maps_timeout(fake_upstream):
    fake_upstream.routes["/data/2.5/weather"] = requests.exceptions.Timeout()
    with pytest.raises(UpstreamError, match="OpenWeather request timed out"):
        fetch("https://api.openweathermap.org/data/2.5/weather", {}, "OpenWeather")


def test_fetch_maps_connection_errors(fake_upstream):
    fake_upstream.routes["/search"] = requests.exceptions.ConnectionError("refused")
    with pytest.raises(UpstreamError, match="Failed to reach GNews: refused"):
        fetch("https://gnews.io/api/v4/search", {}, "GNews")


def test_fetch_uses_configured_timeout(fake_upstream, monkeypatch):
    monkeypatch.setenv("UPSTREAM_TIMEOUT", "3")
    fake_upstream.routes["/data/2.5/weather"] = FakeResponse(200, {})
    fetch("https://api.openweathermap.org/data/2.5/weather", {}, "OpenWeather")
    assert fake_upstream.calls[0]["timeout"] == 3.0


# --- Reshaping ---

def test_hourly_outlook_labels_local_time(forecast_3h):
    slots = weather_client.hourly_outlook(forecast_3h)
    assert len(slots) == 8
    assert slots[0] == {
        "time": "3 AM",
        "temperature": 26,
        "description": "scattered clouds",
        "icon": "03d",
        "precipitation": 1.2,
    }
    assert slots[1]["time"] == "6 AM"
    assert slots[1]["precipitation"] == 0


def test_daily_summaries_one_entry_per_local_date(forecast_3h):
    days = weather_client.daily_summaries(forecast_3h)
    assert [d["date"] for d in days] == ["Wed, Nov 15", "Thu, Nov 16", "Fri, Nov 17"]
    assert days[0]["windSpeed"] == pytest.approx(7.2)
    assert days[0]["precipitation"] == 1.2
    assert len(weather_client.daily_summaries(forecast_3h, limit=2)) == 2


def test_live_outlook_starts_with_current(current_weather, forecast_3h):
    days = weather_client.live_outlook(current_weather, forecast_3h)
    assert len(days) == 3
    assert days[0]["date"] == NOW
    assert days[0]["rain_chance"] == 0
    assert days[0]["feelsLike"] == 30.1
    assert days[1]["rain_chance"] == 25
    assert days[1]["date"] == NOW + 7 * 10800


def test_daily_outlook_iso_dates(daily_7d):
    days = weather_client.daily_outlook(daily_7d)
    assert days[0] == {
        "date": "2023-11-15T00:00:00.000Z",
        "temp_max": 30.2,
        "temp_min": 20.1,
        "description": "light rain",
        "icon": "10d",
        "rain_chance": 46,
    }
    assert days[1]["rain_chance"] == 0


def test_location_name(current_weather):
    assert weather_client.location_name(current_weather) == "Hyderabad, IN"
    assert weather_client.location_name({"name": "Somewhere"}) == "Somewhere"


# --- /api/weather ---

def test_weather_requires_city(client):
    response = client.get("/api/weather")
    assert response.status_code == 400
    assert response.json()["detail"] == "City name is required"


def test_weather_requires_key(client, monkeypatch):
    monkeypatch.delenv("OPENWEATHER_API_KEY")
    response = client.get("/api/weather", params={"city": "Hyderabad"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Weather API key not configured"


def test_weather_city_not_found(client, fake_upstream):
    fake_upstream.routes["/data/2.5/weather"] = FakeResponse(404, {"cod": "404", "message": "city not found"})
    response = client.get("/api/weather", params={"city": "Atlantis"})
    assert response.status_code == 500
    assert response.json()["detail"] == "City not found: Atlantis"


def test_weather_composite(client, fake_upstream, current_weather, forecast_3h):
    fake_upstream.routes["/data/2.5/weather"] = FakeResponse(200, current_weather)
    fake_upstream.routes["/data/2.5/forecast"] = FakeResponse(200, forecast_3h)

    response = client.get("/api/weather", params={"city": "hyderabad"})
    assert response.status_code == 200
    body = response.json()
    assert body["location"] == "Hyderabad, IN"
    assert body["dt"] == NOW
    assert body["weather"]["temperature"] == 28
    assert body["weather"]["feelsLike"] == 30
    assert body["weather"]["estimatedSoilTemp"] == 26
    assert body["weather"]["precipitation"] == 0
    assert body["suitableCrops"][0] == "Rice (Paddy)"
    assert body["irrigationStatus"]["level"] == "info"
    assert len(body["forecast"]) == 8
    assert body["alerts"] == []

    forecast_call = fake_upstream.calls[1]
    assert forecast_call["params"]["lat"] == 17.385
    assert forecast_call["params"]["appid"] == "test-weather-key"


def test_weather_rounds_halves_up(client, fake_upstream, current_weather, forecast_3h):
    current_weather["main"].update(temp=24.5, feels_like=26.5)
    forecast_3h["list"][0]["main"]["temp"] = 26.5
    fake_upstream.routes["/data/2.5/weather"] = FakeResponse(200, current_weather)
    fake_upstream.routes["/data/2.5/forecast"] = FakeResponse(200, forecast_3h)

    body = client.get("/api/weather", params={"city": "Hyderabad"}).json()
    assert body["weather"]["temperature"] == 25
    assert body["weather"]["feelsLike"] == 27
    assert body["weather"]["estimatedSoilTemp"] == 23
    assert body["forecast"][0]["temperature"] == 27


def test_current_soil_temperature_rounds_halves_up(client, fake_upstream, current_weather, forecast_3h):
    current_weather["main"].update(temp=24.5, temp_min=24.5)
    fake_upstream.routes["/data/2.5/weather"] = FakeResponse(200, current_weather)
    fake_upstream.routes["/data/2.5/forecast"] = FakeResponse(200, forecast_3h)
    response = client.get("/api/weather/current", params={"lat": "17.3", "lon": "78.4", "city": "Hyderabad"})
    assert response.json()["soilTemp"] == 25


def test_rain_chance_rounds_halves_up(current_weather, forecast_3h, daily_7d):
    daily_7d["list"][0]["pop"] = 0.125
    assert weather_client.daily_outlook(daily_7d)[0]["rain_chance"] == 13
    for item in forecast_3h["list"]:
        item["pop"] = 0.125
    assert weather_client.live_outlook(current_weather, forecast_3h)[1]["rain_chance"] == 13


def test_weather_forecast_failure_aborts(client, fake_upstream, current_weather):
    fake_upstream.routes["/data/2.5/weather"] = FakeResponse(200, current_weather)
    fake_upstream.routes["/data/2.5/forecast"] = FakeResponse(500, {"message": "upstream down"})
    response = client.get("/api/weather", params={"city": "Hyderabad"})
    assert response.status_code == 500
    assert response.json()["detail"] == "upstream down"


def test_weather_timeout(client, fake_upstream):
    fake_upstream.routes["/data/2.5/weather"] = requests.exceptions.Timeout()
    response = client.get("/api/weather", params={"city": "Hyderabad"})
    assert response.status_code == 500
    assert response.json()["detail"] == "OpenWeather request timed out"


# --- /api/weather/current ---

def test_current_requires_all_params(client):
    response = client.get("/api/weather/current", params={"lat": "17.3", "lon": "78.4"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Latitude, longitude, and city name are required"


def test_current_requires_key(client, monkeypatch):
    monkeypatch.delenv("OPENWEATHER_API_KEY")
    response = client.get("/api/weather/current", params={"lat": "17.3", "lon": "78.4", "city": "Hyderabad"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Weather API key is not configured"


def test_current_with_field_advice(client, fake_upstream, current_weather, forecast_3h):
    fake_upstream.routes["/data/2.5/weather"] = FakeResponse(200, current_weather)
    fake_upstream.routes["/data/2.5/forecast"] = FakeResponse(200, forecast_3h)
    response = client.get("/api/weather/current", params={"lat": "17.3", "lon": "78.4", "city": "Hyderabad"})
    assert response.status_code == 200
    body = response.json()
    assert body["location"] == "Hyderabad"
    assert body["soilTemp"] == 27
    assert body["windSpeed"] == pytest.approx(10.8)
    assert [d["date"] for d in body["forecast"]] == ["Wed, Nov 15", "Thu, Nov 16", "Fri, Nov 17"]
    assert body["agricultural"]["irrigationStatus"] == "Suitable for irrigation"
    assert body["agricultural"]["suitableCrops"][:3] == ["Cotton", "Sugarcane", "Rice"]


def test_current_passes_upstream_message(client, fake_upstream):
    fake_upstream.routes["/data/2.5/weather"] = FakeResponse(401, {"cod": 401, "message": "Invalid API key"})
    response = client.get("/api/weather/current", params={"lat": "17.3", "lon": "78.4", "city": "Hyderabad"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Invalid API key"


# --- /api/weather/forecast ---

def test_forecast_requires_coordinates(client):
    response = client.get("/api/weather/forecast", params={"lat": "17.3"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Latitude and longitude are required"


def test_forecast_with_location(client, fake_upstream, daily_7d, monkeypatch):
    monkeypatch.setenv("GEOCODING_API_KEY", "geo-key")
    fake_upstream.routes["/geo/1.0/reverse"] = FakeResponse(200, [{"name": "Hyderabad", "country": "IN"}])
    fake_upstream.routes["/data/2.5/forecast/daily"] = FakeResponse(200, daily_7d)

    response = client.get("/api/weather/forecast", params={"lat": "17.3", "lon": "78.4"})
    assert response.status_code == 200
    body = response.json()
    assert body["location"] == "Hyderabad, IN"
    assert body["forecast"][0]["date"] == "2023-11-15T00:00:00.000Z"
    assert body["forecast"][0]["rain_chance"] == 46

    reverse_call, daily_call = fake_upstream.calls
    assert reverse_call["params"]["appid"] == "geo-key"
    assert daily_call["params"]["appid"] == "test-weather-key"
    assert daily_call["params"]["cnt"] == 7


def test_forecast_unknown_location(client, fake_upstream, daily_7d):
    fake_upstream.routes["/geo/1.0/reverse"] = FakeResponse(200, [])
    fake_upstream.routes["/data/2.5/forecast/daily"] = FakeResponse(200, daily_7d)
    response = client.get("/api/weather/forecast", params={"lat": "0", "lon": "0"})
    assert response.json()["location"] == "Location unknown"


def test_forecast_failure(client, fake_upstream):
    fake_upstream.routes["/geo/1.0/reverse"] = FakeResponse(200, [])
    fake_upstream.routes["/data/2.5/forecast/daily"] = FakeResponse(401, {"message": "Invalid API key"})
    response = client.get("/api/weather/forecast", params={"lat": "17.3", "lon": "78.4"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to fetch weather forecast"


# --- /api/weather/live ---

def test_live(client, fake_upstream, current_weather, forecast_3h):
    fake_upstream.routes["/data/2.5/weather"] = FakeResponse(200, current_weather)
    fake_upstream.routes["/data/2.5/forecast"] = FakeResponse(200, forecast_3h)
    response = client.get("/api/weather/live", params={"lat": "17.3", "lon": "78.4", "city": "Hyderabad"})
    assert response.status_code == 200
    body = response.json()
    assert body["location"] == "Hyderabad"
    assert len(body["forecast"]) == 3
    assert body["forecast"][0]["rain_chance"] == 0


def test_live_failure(client, fake_upstream):
    fake_upstream.routes["/data/2.5/weather"] = FakeResponse(500, {"message": "boom"})
    response = client.get("/api/weather/live", params={"lat": "17.3", "lon": "78.4", "city": "Hyderabad"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to fetch weather data"


# --- /api/weather/test ---

def test_key_probe_success(client, fake_upstream, current_weather):
    fake_upstream.routes["/data/2.5/weather"] = FakeResponse(200, current_weather)
    response = client.get("/api/weather/test")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["data"] == {
        "city": "Hyderabad",
        "temp": 28.4,
        "description": "clear sky",
        "humidity": 60,
        "windSpeed": 3.0,
    }
    assert fake_upstream.calls[0]["params"]["lat"] == weather_client.TEST_LAT


def test_key_probe_rejected(client, fake_upstream):
    fake_upstream.routes["/data/2.5/weather"] = FakeResponse(401, {"cod": 401, "message": "Invalid API key"})
    response = client.get("/api/weather/test")
    assert response.status_code == 401
    assert response.json() == {
        "status": "error",
        "message": "Invalid API key",
        "code": 401,
        "details": "Please ensure your API key is correct and activated",
    }


def test_key_probe_without_key(client, monkeypatch):
    monkeypatch.delenv("OPENWEATHER_API_KEY")
    response = client.get("/api/weather/test")
    assert response.status_code == 500
    assert response.json()["status"] == "error"
