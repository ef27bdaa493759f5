"""
KrishiMitra - OpenWeatherMap client.
Fetches current weather, 3-hourly and daily forecasts and reverse geocoding, and reshapes
the upstream JSON into the compact structures the weather pages render.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import config
from crop_database import round_half_up
from upstream import UpstreamError, fetch, response_json

logger = logging.getLogger(__name__)

SERVICE = "OpenWeather"
MS_TO_KMH = 3.6

# Hyderabad, used to probe the API key
TEST_LAT = "17.3850"
TEST_LON = "78.4867"


def _url(path: str) -> str:
    return f"{config.OPENWEATHER_BASE_URL}{path}"


def _local_time(ts: int, offset_seconds: int = 0) -> datetime:
    """Unix timestamp -> aware datetime in the location's UTC offset."""
    return datetime.fromtimestamp(ts, tz=timezone(timedelta(seconds=offset_seconds or 0)))


def _hour_label(moment: datetime) -> str:
    """12-hour clock label, e.g. '3 PM'."""
    hour = moment.hour % 12 or 12
    return f"{hour} {'AM' if moment.hour < 12 else 'PM'}"


def _day_label(moment: datetime) -> str:
    """Short day label, e.g. 'Mon, Oct 19'."""
    return f"{moment:%a, %b} {moment.day}"


def _first_weather(item: Dict[str, Any]) -> Dict[str, Any]:
    weather = item.get("weather") or [{}]
    return weather[0]


def rain_amount(item: Dict[str, Any], window: str) -> float:
    """Rain volume for '1h' or '3h' windows; 0 when the block is absent."""
    return (item.get("rain") or {}).get(window, 0) or 0


# --- Upstream calls ---

def current_by_city(city: str, api_key: str) -> Dict[str, Any]:
    response = fetch(_url("/data/2.5/weather"), {"q": city, "appid": api_key, "units": "metric"}, SERVICE)
    data = response_json(response)
    if not response.ok:
        logger.error("OpenWeather API error for city %s: %s", city, data)
        if isinstance(data, dict) and data.get("message") == "city not found":
            raise UpstreamError(f"City not found: {city}", response.status_code)
        raise UpstreamError("Failed to fetch weather data", response.status_code)
    return data


def current_by_coords(lat: str, lon: str, api_key: str) -> Dict[str, Any]:
    params = {"lat": lat, "lon": lon, "units": "metric", "appid": api_key}
    response = fetch(_url("/data/2.5/weather"), params, SERVICE)
    data = response_json(response)
    if not response.ok:
        logger.error("OpenWeather API error: %s", data)
        message = data.get("message") if isinstance(data, dict) else None
        raise UpstreamError(message or "Failed to fetch current weather data", response.status_code)
    return data


def forecast_by_coords(lat: Any, lon: Any, api_key: str) -> Dict[str, Any]:
    """5 day / 3 hour forecast."""
    params = {"lat": lat, "lon": lon, "units": "metric", "appid": api_key}
    response = fetch(_url("/data/2.5/forecast"), params, SERVICE)
    data = response_json(response)
    if not response.ok:
        logger.error("OpenWeather Forecast API error: %s", data)
        message = data.get("message") if isinstance(data, dict) else None
        raise UpstreamError(message or "Failed to fetch forecast data", response.status_code)
    return data


def daily_forecast(lat: str, lon: str, api_key: str, days: int = 7) -> Dict[str, Any]:
    params = {"lat": lat, "lon": lon, "cnt": days, "units": "metric", "appid": api_key}
    response = fetch(_url("/data/2.5/forecast/daily"), params, SERVICE)
    if not response.ok:
        logger.error("OpenWeather daily forecast error: HTTP %s", response.status_code)
        raise UpstreamError("Failed to fetch forecast data", response.status_code)
    return response_json(response)


def reverse_geocode(lat: str, lon: str, api_key: str) -> str:
    """'Name, CC' for the coordinates, or 'Location unknown'."""
    params = {"lat": lat, "lon": lon, "limit": 1, "appid": api_key}
    response = fetch(_url("/geo/1.0/reverse"), params, SERVICE)
    data = response_json(response)
    if response.ok and isinstance(data, list) and data and data[0].get("name"):
        return f"{data[0]['name']}, {data[0].get('country', '')}"
    return "Location unknown"


def probe(api_key: str):
    """Current weather at the test coordinates; returns (status_code, body)."""
    params = {"lat": TEST_LAT, "lon": TEST_LON, "units": "metric", "appid": api_key}
    response = fetch(_url("/data/2.5/weather"), params, SERVICE)
    return response.status_code, response_json(response)


# --- Reshaping ---

def hourly_outlook(forecast: Dict[str, Any], limit: int = 8) -> List[Dict[str, Any]]:
    """Next `limit` 3-hour slots: time label, rounded temperature, description, icon, precipitation."""
    offset = (forecast.get("city") or {}).get("timezone", 0)
    out = []
    for item in forecast.get("list", [])[:limit]:
        weather = _first_weather(item)
        out.append({
            "time": _hour_label(_local_time(item["dt"], offset)),
            "temperature": round_half_up(item["main"]["temp"]),
            "description": weather.get("description"),
            "icon": weather.get("icon"),
            "precipitation": rain_amount(item, "3h"),
        })
    return out


def daily_summaries(forecast: Dict[str, Any], limit: int = 5) -> List[Dict[str, Any]]:
    """First forecast slot of each local calendar day, up to `limit` days."""
    offset = (forecast.get("city") or {}).get("timezone", 0)
    daily = []
    seen_dates = set()
    for item in forecast.get("list", []):
        moment = _local_time(item["dt"], offset)
        if moment.date() in seen_dates:
            continue
        seen_dates.add(moment.date())
        weather = _first_weather(item)
        daily.append({
            "date": _day_label(moment),
            "temp_max": item["main"].get("temp_max"),
            "temp_min": item["main"].get("temp_min"),
            "precipitation": rain_amount(item, "3h"),
            "humidity": item["main"].get("humidity"),
            "windSpeed": (item.get("wind") or {}).get("speed", 0) * MS_TO_KMH,
            "description": weather.get("description"),
            "icon": weather.get("icon"),
        })
        if len(daily) >= limit:
            break
    return daily


def _live_entry(item: Dict[str, Any], rain_chance: int) -> Dict[str, Any]:
    weather = _first_weather(item)
    main = item["main"]
    return {
        "date": item["dt"],
        "temp": main.get("temp"),
        "temp_min": main.get("temp_min"),
        "temp_max": main.get("temp_max"),
        "humidity": main.get("humidity"),
        "description": weather.get("description"),
        "icon": weather.get("icon"),
        "windSpeed": (item.get("wind") or {}).get("speed", 0) * MS_TO_KMH,
        "feelsLike": main.get("feels_like"),
        "rain_chance": rain_chance,
    }


def live_outlook(current: Dict[str, Any], forecast: Dict[str, Any], limit: int = 5) -> List[Dict[str, Any]]:
    """Current conditions as day one, then the first forecast slot of each following day."""
    offset = current.get("timezone") or (forecast.get("city") or {}).get("timezone", 0)
    # Current weather carries no precipitation probability
    days = [_live_entry(current, 0)]
    seen_dates = {_local_time(current["dt"], offset).date()}
    for item in forecast.get("list", []):
        if len(days) >= limit:
            break
        day = _local_time(item["dt"], offset).date()
        if day in seen_dates:
            continue
        seen_dates.add(day)
        days.append(_live_entry(item, round_half_up((item.get("pop") or 0) * 100)))
    return days


def daily_outlook(daily: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Daily forecast entries with ISO dates and precipitation probability as a percentage."""
    out = []
    for day in daily.get("list", []):
        weather = _first_weather(day)
        moment = datetime.fromtimestamp(day["dt"], tz=timezone.utc)
        out.append({
            "date": moment.strftime("%Y-%m-%dT%H:%M:%S.000Z"),
            "temp_max": day["temp"]["max"],
            "temp_min": day["temp"]["min"],
            "description": weather.get("description"),
            "icon": weather.get("icon"),
            "rain_chance": round_half_up((day.get("pop") or 0) * 100),
        })
    return out


def location_name(current: Dict[str, Any]) -> str:
    country = (current.get("sys") or {}).get("country")
    name = current.get("name", "Unknown")
    return f"{name}, {country}" if country else name


def current_snapshot(current: Dict[str, Any]) -> Dict[str, Any]:
    """Compact current-conditions block used by the key probe."""
    main = current.get("main") or {}
    return {
        "city": current.get("name"),
        "temp": main.get("temp"),
        "description": _first_weather(current).get("description"),
        "humidity": main.get("humidity"),
        "windSpeed": (current.get("wind") or {}).get("speed"),
    }
