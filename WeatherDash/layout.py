"""Text layout for the terminal dashboard - pure functions for testability."""
from typing import List, Optional, Tuple

from weather_conditions import Activity
from weather_data import CurrentConditions, ImageRef, WeatherSnapshot

TEMPERATURE_SYMBOLS = {
    "metric": "°C",
    "imperial": "°F",
    "standard": "K",
}


def convert_temperature(temp_c: int, units: str = "metric") -> int:
    """
    Convert a Celsius temperature from the snapshot into the display unit.

    Args:
        temp_c: Temperature in Celsius
        units: "metric" (°C), "imperial" (°F) or "standard" (Kelvin)

    Returns:
        Whole-degree temperature in the requested unit
    """
    if units == "imperial":
        return int(round(temp_c * 9 / 5 + 32))
    if units == "standard":
        return int(round(temp_c + 273.15))
    return temp_c


def format_temperature(temp_c: int, units: str = "metric") -> str:
    value = convert_temperature(temp_c, units)
    symbol = TEMPERATURE_SYMBOLS.get(units, "°C")
    return f"{value}{symbol}"


def format_wind(speed_kmh: int, units: str = "metric") -> str:
    if units == "imperial":
        return f"{int(round(speed_kmh / 1.609344))} mph"
    return f"{speed_kmh} km/h"


def get_current_lines(current: CurrentConditions, units: str = "metric") -> List[str]:
    """Headline and detail lines for current conditions."""
    visibility = f"{current.visibility_km} km" if current.visibility_km is not None else "N/A"
    pressure = f"{current.pressure} hPa" if current.pressure is not None else "N/A"
    return [
        f"{format_temperature(current.temperature, units)}  {current.condition_name}",
        f"Feels like {format_temperature(current.feels_like, units)}, {current.description}",
        f"Humidity {current.humidity}%  Wind {format_wind(current.wind_speed_kmh, units)}  UV {current.uv_index}",
        f"Pressure {pressure}  Visibility {visibility}",
    ]


def get_hourly_line(snapshot: WeatherSnapshot, units: str = "metric", hours: int = 6) -> str:
    cells = [
        f"{hour.time:%H:%M} {format_temperature(hour.temperature, units)} {hour.precipitation_pct}%"
        for hour in snapshot.hourly[:hours]
    ]
    return " | ".join(cells)


def get_daily_lines(snapshot: WeatherSnapshot, units: str = "metric") -> List[str]:
    return [
        f"{day.date:%a %d %b}  {format_temperature(day.temp_max, units)} / "
        f"{format_temperature(day.temp_min, units)}  {day.condition_name}  {day.precipitation_pct}%"
        for day in snapshot.daily
    ]


def get_activity_lines(suggestions: List[Tuple[Activity, Optional[ImageRef]]]) -> List[str]:
    lines = []
    for activity, image in suggestions:
        line = f"{activity.name} ({activity.distance})"
        if image is not None:
            line += f" - {image.url}"
        lines.append(line)
    return lines


def calculate_layout(snapshot: WeatherSnapshot, units: str = "metric") -> List[str]:
    """
    Calculate the full dashboard as a list of text lines.

    This is a pure function so the output can be asserted without a terminal.
    """
    lines = [f"{snapshot.location} [{snapshot.theme}]"]
    lines.extend(get_current_lines(snapshot.current, units))
    if snapshot.hourly:
        lines.append("")
        lines.append("Next hours: " + get_hourly_line(snapshot, units))
    if snapshot.daily:
        lines.append("")
        lines.append("Forecast:")
        lines.extend(f"  {line}" for line in get_daily_lines(snapshot, units))
    return lines
