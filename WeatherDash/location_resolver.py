"""Location resolution: cached location, live geolocation, then a fixed default."""
import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

import requests

from key_value_store import LAST_LOCATION_KEY, KeyValueStoreBase
from weather_data import CachedLocation, Coordinate

DEFAULT_COORDINATE = Coordinate(40.7128, -74.0060)  # New York City
LOCATION_MAX_AGE_SECONDS = 24 * 60 * 60
GEOLOCATION_TIMEOUT_SECONDS = 10
GEOLOCATION_MAX_CACHED_AGE_SECONDS = 5 * 60

PERMISSION_DENIED = "permission-denied"
POSITION_UNAVAILABLE = "position-unavailable"
TIMEOUT = "timeout"
UNSUPPORTED = "unsupported"


class GeolocationError(Exception):
    """Raised by a geolocation provider; kind is one of the module constants."""

    def __init__(self, kind: str, message: str = ""):
        super().__init__(message or kind)
        self.kind = kind


class GeolocationProviderBase(ABC):
    """Abstract source of the device position."""

    @abstractmethod
    def get_current_position(self, timeout: float, max_cached_age: float) -> Coordinate:
        """
        Get the current position.

        Args:
            timeout: Maximum seconds to wait for a fix
            max_cached_age: A previous fix younger than this may be returned

        Raises:
            GeolocationError: permission-denied, position-unavailable,
                timeout or unsupported
        """
        pass


class NoGeolocationProvider(GeolocationProviderBase):
    """Platform without any geolocation capability."""

    def get_current_position(self, timeout: float, max_cached_age: float) -> Coordinate:
        raise GeolocationError(UNSUPPORTED, "Geolocation is not available")


class IpGeolocationProvider(GeolocationProviderBase):
    """Approximate position from the public IP address via ip-api.com (no key needed)."""

    BASE_URL = "http://ip-api.com/json/"

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last_fix: Optional[Coordinate] = None
        self._last_fix_time: float = 0.0

    def get_current_position(self, timeout: float, max_cached_age: float) -> Coordinate:
        now = self._clock()
        if self._last_fix is not None and now - self._last_fix_time < max_cached_age:
            logging.debug(f"Reusing geolocation fix from {now - self._last_fix_time:.0f}s ago")
            return self._last_fix

        try:
            logging.info(f"Requesting IP geolocation: {self.BASE_URL}")
            response = requests.get(
                self.BASE_URL,
                params={"fields": "status,message,lat,lon"},
                timeout=timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout as e:
            raise GeolocationError(TIMEOUT, f"Geolocation request timed out: {e}")
        except (requests.exceptions.RequestException, ValueError) as e:
            raise GeolocationError(POSITION_UNAVAILABLE, f"Geolocation request failed: {e}")

        if not isinstance(data, dict):
            raise GeolocationError(POSITION_UNAVAILABLE, "Unexpected geolocation response type")
        if data.get("status") != "success":
            raise GeolocationError(
                POSITION_UNAVAILABLE,
                f"Geolocation lookup failed: {data.get('message', 'unknown error')}"
            )

        try:
            coordinate = Coordinate(float(data["lat"]), float(data["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise GeolocationError(POSITION_UNAVAILABLE, f"Invalid geolocation response: {e}")

        self._last_fix = coordinate
        self._last_fix_time = now
        return coordinate


class LocationResolver:
    """
    Resolve the coordinate to show weather for.

    Tries, in order: a stored location younger than 24 hours, a live
    geolocation fix, and finally DEFAULT_COORDINATE. resolve() never raises.
    """

    def __init__(
        self,
        geolocation: GeolocationProviderBase,
        store: KeyValueStoreBase,
        default: Coordinate = DEFAULT_COORDINATE,
        clock: Callable[[], float] = time.time,
        timeout: float = GEOLOCATION_TIMEOUT_SECONDS,
        max_cached_age: float = GEOLOCATION_MAX_CACHED_AGE_SECONDS
    ):
        self.geolocation = geolocation
        self.store = store
        self.default = default
        self.timeout = timeout
        self.max_cached_age = max_cached_age
        self._clock = clock

    def cached_location(self) -> Optional[CachedLocation]:
        data = self.store.get(LAST_LOCATION_KEY)
        if not data:
            return None
        try:
            location = CachedLocation.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logging.warning(f"Ignoring invalid cached location {data!r}: {e}")
            return None
        if not location.is_valid(LOCATION_MAX_AGE_SECONDS, now=self._clock()):
            logging.info("Cached location is older than 24h, ignoring it")
            return None
        return location

    def remember(self, coordinate: Coordinate) -> None:
        location = CachedLocation(coordinate=coordinate, timestamp=self._clock())
        self.store.set(LAST_LOCATION_KEY, location.to_dict())

    def resolve(self) -> Coordinate:
        cached = self.cached_location()
        if cached is not None:
            logging.info(f"Using cached location: {cached.coordinate.lat}, {cached.coordinate.lon}")
            return cached.coordinate

        try:
            logging.info("Getting current position...")
            coordinate = self.geolocation.get_current_position(self.timeout, self.max_cached_age)
        except GeolocationError as e:
            logging.warning(f"Location error ({e.kind}): {e}")
            logging.info(f"Falling back to default location: {self.default.lat}, {self.default.lon}")
            return self.default

        logging.info(f"Current position: {coordinate.lat}, {coordinate.lon}")
        self.remember(coordinate)
        return coordinate
