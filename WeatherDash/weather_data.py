"""Weather domain model - pure data structures independent of any API."""
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class Coordinate:
    """Immutable latitude/longitude pair."""
    lat: float
    lon: float

    def __post_init__(self):
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lon}")


@dataclass(frozen=True)
class CachedLocation:
    """A coordinate remembered across restarts, with the time it was stored."""
    coordinate: Coordinate
    timestamp: float  # UNIX timestamp (seconds)

    def is_valid(self, max_age_seconds: float, now: Optional[float] = None) -> bool:
        current_time = time.time() if now is None else now
        return current_time - self.timestamp < max_age_seconds

    def to_dict(self) -> dict:
        return {
            "lat": self.coordinate.lat,
            "lon": self.coordinate.lon,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CachedLocation":
        return cls(
            coordinate=Coordinate(float(data["lat"]), float(data["lon"])),
            timestamp=float(data.get("timestamp", 0)),
        )


@dataclass(frozen=True)
class City:
    """A city search result."""
    name: str
    country: str
    coordinate: Coordinate
    state: Optional[str] = None

    @property
    def display_name(self) -> str:
        parts = [self.name]
        if self.state:
            parts.append(self.state)
        parts.append(self.country)
        return ", ".join(parts)


@dataclass(frozen=True)
class ImageRef:
    """Reference to a remote image (activity card or background)."""
    id: str
    url: str
    alt: str
    photographer: str


@dataclass
class CurrentConditions:
    """Current weather, converted to display units (°C, km/h, km)."""
    temperature: int
    feels_like: int
    condition_name: str  # e.g., "Partly Cloudy"
    description: str  # provider text, e.g., "few clouds"
    icon_ref: str
    theme: str  # sunny, cloudy, rainy, stormy, snowy, night
    humidity: int
    wind_speed_kmh: int
    uv_index: int
    pressure: Optional[int]
    timestamp: int  # UNIX timestamp (UTC) as reported by the provider
    visibility_km: Optional[int] = None


@dataclass
class HourlyForecast:
    time: datetime
    temperature: int
    condition_name: str
    icon_ref: str
    precipitation_pct: int


@dataclass
class DailyForecast:
    date: datetime
    temp_max: int
    temp_min: int
    condition_name: str
    icon_ref: str
    precipitation_pct: int


@dataclass
class WeatherSnapshot:
    """Render-ready weather for one location at one point in time."""
    location: str
    current: CurrentConditions
    hourly: List[HourlyForecast] = field(default_factory=list)
    daily: List[DailyForecast] = field(default_factory=list)

    @property
    def theme(self) -> str:
        return self.current.theme

    def is_stale(self, max_age_seconds: int = 600, now: Optional[float] = None) -> bool:
        """Check if this data is stale (older than max_age_seconds)."""
        current_time = time.time() if now is None else now
        age = current_time - self.current.timestamp
        return age > max_age_seconds
