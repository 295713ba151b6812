"""Convert raw One Call payloads into WeatherSnapshot - no I/O, no shared state."""
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from weather_conditions import WeatherCondition, get_condition
from weather_data import CurrentConditions, DailyForecast, HourlyForecast, WeatherSnapshot

HOURLY_LIMIT = 24
DAILY_LIMIT = 5
UNKNOWN_LOCATION = "Unknown Location"


def round_half_up(value: Optional[float], default: int = 0) -> int:
    """Round .5 upwards (2.5 -> 3, -2.5 -> -2) instead of to the nearest even number."""
    if value is None:
        return default
    return int(math.floor(float(value) + 0.5))


def ms_to_kmh(speed: Optional[float]) -> int:
    return round_half_up((speed or 0.0) * 3.6)


def pop_to_percent(pop: Optional[float]) -> int:
    return round_half_up((pop or 0.0) * 100)


def epoch_to_datetime(epoch_seconds: int) -> datetime:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)


def _condition_for(entry: Dict[str, Any]) -> Tuple[WeatherCondition, Dict[str, Any]]:
    weather_array = entry.get("weather") or [{}]
    weather = weather_array[0] or {}
    return get_condition(weather.get("icon")), weather


def _normalize_current(current: Dict[str, Any]) -> CurrentConditions:
    condition, weather = _condition_for(current)
    visibility = current.get("visibility")
    pressure = current.get("pressure")
    return CurrentConditions(
        temperature=round_half_up(current.get("temp")),
        feels_like=round_half_up(current.get("feels_like")),
        condition_name=condition.display_name,
        description=weather.get("description", ""),
        icon_ref=condition.icon_ref,
        theme=condition.theme,
        humidity=round_half_up(current.get("humidity")),
        wind_speed_kmh=ms_to_kmh(current.get("wind_speed")),
        uv_index=round_half_up(current.get("uvi")),
        pressure=round_half_up(pressure) if pressure is not None else None,
        visibility_km=round_half_up(visibility / 1000) if visibility else None,
        timestamp=int(current.get("dt", 0)),
    )


def _normalize_hourly(hours: List[Dict[str, Any]]) -> List[HourlyForecast]:
    forecasts = []
    for hour in hours[:HOURLY_LIMIT]:
        condition, _ = _condition_for(hour)
        forecasts.append(HourlyForecast(
            time=epoch_to_datetime(hour.get("dt", 0)),
            temperature=round_half_up(hour.get("temp")),
            condition_name=condition.display_name,
            icon_ref=condition.icon_ref,
            precipitation_pct=pop_to_percent(hour.get("pop")),
        ))
    return forecasts


def _normalize_daily(days: List[Dict[str, Any]]) -> List[DailyForecast]:
    forecasts = []
    for day in days[:DAILY_LIMIT]:
        condition, _ = _condition_for(day)
        temp = day.get("temp") or {}
        forecasts.append(DailyForecast(
            date=epoch_to_datetime(day.get("dt", 0)),
            temp_max=round_half_up(temp.get("max")),
            temp_min=round_half_up(temp.get("min")),
            condition_name=condition.display_name,
            icon_ref=condition.icon_ref,
            precipitation_pct=pop_to_percent(day.get("pop")),
        ))
    return forecasts


def normalize(raw: Dict[str, Any]) -> WeatherSnapshot:
    """
    Build a WeatherSnapshot from a One Call 3.0 response.

    Args:
        raw: Provider payload, optionally carrying a "locationName" key
             added after reverse geocoding

    Returns:
        WeatherSnapshot: temperatures rounded to whole degrees, wind in km/h,
        hourly series capped at 24 entries and daily at 5
    """
    return WeatherSnapshot(
        location=raw.get("locationName") or UNKNOWN_LOCATION,
        current=_normalize_current(raw.get("current") or {}),
        hourly=_normalize_hourly(raw.get("hourly") or []),
        daily=_normalize_daily(raw.get("daily") or []),
    )
