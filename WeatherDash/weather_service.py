"""Weather orchestration: location fallback, response caching and normalization."""
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from image_provider import ImageProviderBase
from location_resolver import LocationResolver
from normalizer import UNKNOWN_LOCATION, normalize
from response_cache import CACHE_DURATION_SECONDS, ResponseCache, make_key
from weather_conditions import Activity, get_activities
from weather_data import City, Coordinate, ImageRef, WeatherSnapshot
from weather_provider import (
    NETWORK,
    NOT_FOUND,
    UNAUTHORIZED,
    WeatherProviderBase,
    WeatherProviderError,
)

CAUSE_NETWORK = "network"
CAUSE_NOT_FOUND = "not-found"
CAUSE_UNAUTHORIZED = "unauthorized"
CAUSE_SERVER = "server"

STALE_AFTER_SECONDS = 10 * 60
ACTIVITY_IMAGE_COUNT = 4


class WeatherFetchError(Exception):
    """Weather data could not be loaded; cause is one of the CAUSE_* constants."""

    def __init__(self, cause: str, message: str = ""):
        super().__init__(message or cause)
        self.cause = cause


class CityNotFoundError(Exception):
    """A city search returned no results."""

    def __init__(self, query: str):
        super().__init__(f"No city matches {query!r}")
        self.query = query


class NothingToRefreshError(Exception):
    """refresh() was called before any location was loaded."""


def cause_for(error: WeatherProviderError) -> str:
    """Collapse provider error kinds into the causes the presentation layer words."""
    if error.kind == NETWORK:
        return CAUSE_NETWORK
    if error.kind == NOT_FOUND:
        return CAUSE_NOT_FOUND
    if error.kind == UNAUTHORIZED:
        return CAUSE_UNAUTHORIZED
    return CAUSE_SERVER


@dataclass
class LoadResult:
    """Outcome of an orchestrator operation: a snapshot or the error that prevented it."""
    snapshot: Optional[WeatherSnapshot] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> WeatherSnapshot:
        if self.error is not None:
            raise self.error
        return self.snapshot


class WeatherOrchestrator:
    """
    Produces render-ready weather snapshots for the dashboard.

    Raw provider responses are cached per coordinate for the cache TTL
    (default: 10 minutes); only refresh() bypasses the cache. Failures are
    returned as LoadResult errors and never retried here - retrying is up to
    the caller (refresh() or start() again).

    Concurrent loads are not deduplicated: whichever finishes last wins.
    """

    def __init__(
        self,
        provider: WeatherProviderBase,
        location_resolver: LocationResolver,
        cache: Optional[ResponseCache] = None,
        image_provider: Optional[ImageProviderBase] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the orchestrator.

        Args:
            provider: Weather provider for forecasts, geocoding and city search
            location_resolver: Resolves and remembers the user's location
            cache: Response cache (a 10-minute cache is created if omitted)
            image_provider: Optional source of activity images
            clock: Time source in UNIX seconds, injectable for tests
        """
        self.provider = provider
        self.location_resolver = location_resolver
        self.cache = cache if cache is not None else ResponseCache(CACHE_DURATION_SECONDS, clock)
        self.image_provider = image_provider
        self._clock = clock

        self.current_snapshot: Optional[WeatherSnapshot] = None
        self.current_coordinate: Optional[Coordinate] = None
        self.initialized = False
        self.last_fetch_at: Optional[float] = None

    def start(self) -> LoadResult:
        """Resolve the user's location and load its weather."""
        logging.info("Starting weather orchestrator...")
        coordinate = self.location_resolver.resolve()
        result = self.load_for_coordinate(coordinate)
        if not result.ok:
            logging.error(f"Initial weather load failed for {coordinate.lat}, {coordinate.lon}: {result.error}")
        return result

    def load_for_coordinate(self, coordinate: Coordinate) -> LoadResult:
        logging.info(f"Loading weather for coordinates: {coordinate.lat}, {coordinate.lon}")
        key = make_key("weather", coordinate.lat, coordinate.lon)

        raw = self.cache.get(key)
        from_cache = raw is not None
        if from_cache:
            logging.info("Using cached weather data")
        else:
            self.last_fetch_at = self._clock()
            try:
                raw = self._fetch_raw(coordinate)
            except WeatherProviderError as e:
                logging.error(f"Weather loading error ({e.kind}): {e}")
                return LoadResult(error=WeatherFetchError(cause_for(e), str(e)))

        # Only payloads that normalize cleanly are cached
        try:
            snapshot = normalize(raw)
        except (KeyError, TypeError, ValueError, AttributeError, IndexError) as e:
            logging.error(f"Failed to normalize weather response: {e}", exc_info=True)
            return LoadResult(error=WeatherFetchError(CAUSE_SERVER, f"Malformed weather response: {e}"))

        if not from_cache:
            self.cache.set(key, raw)
        self.current_snapshot = snapshot
        self.current_coordinate = coordinate
        self.initialized = True
        self.location_resolver.remember(coordinate)

        logging.info(
            f"Weather data loaded: {snapshot.location}, {snapshot.current.temperature}°, "
            f"{snapshot.current.condition_name} ({snapshot.theme})"
        )
        return LoadResult(snapshot=snapshot)

    def load_for_city(self, name: str) -> LoadResult:
        logging.info(f"Loading weather for city: {name}")
        try:
            cities = self.provider.search_cities(name)
        except WeatherProviderError as e:
            logging.error(f"City search error ({e.kind}): {e}")
            return LoadResult(error=WeatherFetchError(cause_for(e), str(e)))

        if not cities:
            logging.warning(f"City not found: {name}")
            return LoadResult(error=CityNotFoundError(name))

        city = cities[0]
        logging.info(f"Resolved {name!r} to {city.display_name} ({city.coordinate.lat}, {city.coordinate.lon})")
        return self.load_for_coordinate(city.coordinate)

    def refresh(self) -> LoadResult:
        """Drop every cached response and reload the current location."""
        if self.current_coordinate is None:
            logging.error("No current location to refresh")
            return LoadResult(error=NothingToRefreshError("nothing to refresh"))

        logging.info("Refreshing weather data...")
        self.cache.clear()
        return self.load_for_coordinate(self.current_coordinate)

    def needs_refresh(self, now: Optional[float] = None, threshold: float = STALE_AFTER_SECONDS) -> bool:
        """
        Advise whether the shown data is old enough to refresh.

        Only compares timestamps; the caller decides whether to call refresh().
        """
        if self.current_snapshot is None:
            return True
        current_time = self._clock() if now is None else now
        return self.current_snapshot.is_stale(threshold, now=current_time)

    def refresh_due(self, now: Optional[float] = None) -> bool:
        """
        needs_refresh(), throttled to one network attempt per cache TTL.

        The provider's observation time can lag the fetch by minutes, so
        data may still look stale right after a successful refresh.
        """
        current_time = self._clock() if now is None else now
        if self.last_fetch_at is not None and current_time - self.last_fetch_at < self.cache.ttl_seconds:
            return False
        return self.needs_refresh(now=current_time)

    def search_cities(self, query: str) -> List[City]:
        """City suggestions for a search box; provider failures yield no suggestions."""
        if not query or len(query.strip()) < 2:
            return []
        try:
            return self.provider.search_cities(query)
        except WeatherProviderError as e:
            logging.error(f"City search error: {e}")
            return []

    def activity_suggestions(self, count: int = ACTIVITY_IMAGE_COUNT) -> List[Tuple[Activity, Optional[ImageRef]]]:
        """Activities for the current theme, each paired with an image when available."""
        if self.current_snapshot is None:
            return []

        theme = self.current_snapshot.theme
        activities = get_activities(theme)[:count]
        images = self._activity_images(theme, count)
        return [
            (activity, images[index] if index < len(images) else None)
            for index, activity in enumerate(activities)
        ]

    def _activity_images(self, theme: str, count: int) -> List[ImageRef]:
        if self.image_provider is None:
            return []

        key = make_key("images", theme, count)
        images = self.cache.get(key)
        if images is not None:
            return images

        images = self.image_provider.search(theme, count)
        if not all(image.id.startswith("placeholder_") for image in images):
            self.cache.set(key, images)
        return images

    def _fetch_raw(self, coordinate: Coordinate) -> dict:
        logging.info("Fetching weather data from provider...")
        raw = dict(self.provider.fetch_current_and_forecast(coordinate))

        try:
            raw["locationName"] = self.provider.reverse_geocode(coordinate)
        except WeatherProviderError as e:
            logging.warning(f"Could not get location name: {e}")
            raw["locationName"] = UNKNOWN_LOCATION
        return raw
