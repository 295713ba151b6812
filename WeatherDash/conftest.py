"""Shared fixtures: sample OpenWeather payloads."""
import pytest


@pytest.fixture
def sample_onecall_response():
    """Sample One Call 3.0 response (metric units)."""
    return {
        "lat": 40.7128,
        "lon": -74.006,
        "timezone": "America/New_York",
        "timezone_offset": -14400,
        "current": {
            "dt": 1684929490,
            "temp": 21.6,
            "feels_like": 21.2,
            "pressure": 1014,
            "humidity": 62,
            "uvi": 5.4,
            "visibility": 10000,
            "wind_speed": 5.2,
            "weather": [
                {"id": 802, "main": "Clouds", "description": "scattered clouds", "icon": "03d"}
            ],
        },
        "hourly": [
            {
                "dt": 1684929600 + i * 3600,
                "temp": 20.0 + i * 0.25,
                "pop": 0.29 if i % 2 else 0,
                "weather": [{"icon": "10d" if i % 2 else "01d"}],
            }
            for i in range(48)
        ],
        "daily": [
            {
                "dt": 1684944000 + i * 86400,
                "temp": {"min": 12.4 + i, "max": 24.5 + i},
                "pop": 0.5,
                "weather": [{"icon": "11d"}],
            }
            for i in range(8)
        ],
    }
