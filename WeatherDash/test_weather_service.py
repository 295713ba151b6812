"""Tests for the weather orchestrator."""
import copy
from unittest.mock import Mock, patch

import pytest

from image_provider import ImageProviderBase, placeholder_images
from key_value_store import LAST_LOCATION_KEY, MemoryStore
from location_resolver import (
    DEFAULT_COORDINATE,
    PERMISSION_DENIED,
    GeolocationError,
    GeolocationProviderBase,
    LocationResolver,
)
from openweather_provider import OpenWeatherProvider
from response_cache import ResponseCache
from weather_data import City, Coordinate, ImageRef
from weather_provider import (
    NETWORK,
    NOT_FOUND,
    RATE_LIMITED,
    SERVER_ERROR,
    UNAUTHORIZED,
    WeatherProviderBase,
    WeatherProviderError,
)
from weather_service import (
    CityNotFoundError,
    LoadResult,
    NothingToRefreshError,
    WeatherFetchError,
    WeatherOrchestrator,
)

NOW = 1684929490.0
NYC = Coordinate(40.7128, -74.006)
PARIS = Coordinate(48.8566, 2.3522)


class FakeClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now


class MockProvider(WeatherProviderBase):
    """Mock weather provider for testing."""

    def __init__(self, return_data=None, raise_error=None, cities=None, location_name="Testville"):
        self.return_data = return_data
        self.raise_error = raise_error
        self.cities = cities or []
        self.location_name = location_name
        self.geocode_error = None
        self.search_error = None
        self.call_count = 0
        self.search_count = 0

    def fetch_current_and_forecast(self, coordinate):
        self.call_count += 1
        if self.raise_error:
            raise self.raise_error
        return copy.deepcopy(self.return_data)

    def reverse_geocode(self, coordinate):
        if self.geocode_error:
            raise self.geocode_error
        return self.location_name

    def search_cities(self, query):
        self.search_count += 1
        if self.search_error:
            raise self.search_error
        return list(self.cities)


class MockGeolocation(GeolocationProviderBase):
    def __init__(self, coordinate=None, raise_error=None):
        self.coordinate = coordinate
        self.raise_error = raise_error
        self.call_count = 0

    def get_current_position(self, timeout, max_cached_age):
        self.call_count += 1
        if self.raise_error:
            raise self.raise_error
        return self.coordinate


class MockImageProvider(ImageProviderBase):
    def __init__(self, images=None):
        self.images = images
        self.call_count = 0

    def search(self, theme, count=4):
        self.call_count += 1
        if self.images is None:
            return placeholder_images(count)
        return self.images[:count]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()


def build(provider, clock, store, geolocation=None, image_provider=None):
    resolver = LocationResolver(
        geolocation or MockGeolocation(coordinate=PARIS),
        store,
        clock=clock,
    )
    return WeatherOrchestrator(
        provider=provider,
        location_resolver=resolver,
        cache=ResponseCache(ttl_seconds=600, clock=clock),
        image_provider=image_provider,
        clock=clock,
    )


def test_load_for_coordinate_success(sample_onecall_response, clock, store):
    provider = MockProvider(return_data=sample_onecall_response)
    orchestrator = build(provider, clock, store)

    result = orchestrator.load_for_coordinate(NYC)

    assert isinstance(result, LoadResult)
    assert result.ok
    snapshot = result.unwrap()
    assert snapshot.location == "Testville"
    assert snapshot.current.temperature == 22
    assert snapshot.current.wind_speed_kmh == 19
    assert orchestrator.current_snapshot is snapshot
    assert orchestrator.current_coordinate == NYC
    assert orchestrator.initialized is True
    assert store.get(LAST_LOCATION_KEY) == {"lat": NYC.lat, "lon": NYC.lon, "timestamp": NOW}


def test_load_for_coordinate_uses_cache(sample_onecall_response, clock, store):
    """Test back-to-back loads within the TTL make one provider call."""
    provider = MockProvider(return_data=sample_onecall_response)
    orchestrator = build(provider, clock, store)

    first = orchestrator.load_for_coordinate(NYC)
    clock.now += 599
    second = orchestrator.load_for_coordinate(NYC)

    assert provider.call_count == 1
    assert first.snapshot == second.snapshot


def test_load_for_coordinate_cache_expiry(sample_onecall_response, clock, store):
    provider = MockProvider(return_data=sample_onecall_response)
    orchestrator = build(provider, clock, store)

    orchestrator.load_for_coordinate(NYC)
    clock.now += 600
    orchestrator.load_for_coordinate(NYC)

    assert provider.call_count == 2


def test_load_for_coordinate_cache_is_per_coordinate(sample_onecall_response, clock, store):
    provider = MockProvider(return_data=sample_onecall_response)
    orchestrator = build(provider, clock, store)

    orchestrator.load_for_coordinate(NYC)
    orchestrator.load_for_coordinate(PARIS)

    assert provider.call_count == 2
    assert orchestrator.current_coordinate == PARIS


@pytest.mark.parametrize("kind,cause", [
    (NETWORK, "network"),
    (NOT_FOUND, "not-found"),
    (UNAUTHORIZED, "unauthorized"),
    (RATE_LIMITED, "server"),
    (SERVER_ERROR, "server"),
])
def test_load_failure_causes(clock, store, kind, cause):
    """Test provider failures are reported with a cause category and no retry."""
    provider = MockProvider(raise_error=WeatherProviderError("boom", kind=kind))
    orchestrator = build(provider, clock, store)

    result = orchestrator.load_for_coordinate(NYC)

    assert not result.ok
    assert isinstance(result.error, WeatherFetchError)
    assert result.error.cause == cause
    assert provider.call_count == 1
    assert orchestrator.current_snapshot is None
    assert orchestrator.initialized is False
    with pytest.raises(WeatherFetchError):
        result.unwrap()


def test_failed_load_is_not_cached(sample_onecall_response, clock, store):
    provider = MockProvider(raise_error=WeatherProviderError("down", kind=NETWORK))
    orchestrator = build(provider, clock, store)
    orchestrator.load_for_coordinate(NYC)

    provider.raise_error = None
    provider.return_data = sample_onecall_response
    result = orchestrator.load_for_coordinate(NYC)

    assert result.ok
    assert provider.call_count == 2


@pytest.mark.parametrize("bad_payload", [
    {"current": {"dt": 1, "temp": "warm", "weather": [{"icon": "01d"}]}},
    {"current": {"dt": None, "temp": 20.0, "weather": [{"icon": "01d"}]}},
    {"current": {"dt": 1, "temp": 20.0, "weather": [{"icon": "01d"}]}, "hourly": [{"dt": "soon"}]},
    {"current": {"dt": 1, "temp": 20.0, "weather": ["01d"]}},
])
def test_malformed_payload_reports_server_cause(sample_onecall_response, clock, store, bad_payload):
    """Test an unparseable body is a server error, is not cached and keeps the shown data."""
    provider = MockProvider(return_data=sample_onecall_response)
    orchestrator = build(provider, clock, store)
    before = orchestrator.load_for_coordinate(NYC).snapshot

    provider.return_data = bad_payload
    result = orchestrator.load_for_coordinate(PARIS)

    assert isinstance(result.error, WeatherFetchError)
    assert result.error.cause == "server"
    assert orchestrator.current_snapshot is before
    assert orchestrator.current_coordinate == NYC
    assert orchestrator.cache.get("weather:48.8566:2.3522") is None

    # Not cached: the next load goes back to the provider
    provider.return_data = sample_onecall_response
    assert orchestrator.load_for_coordinate(PARIS).ok
    assert provider.call_count == 3


def test_malformed_openweather_body_through_orchestrator(clock, store):
    with patch('openweather_provider.requests.get') as mock_get:
        mock_response = Mock()
        mock_response.ok = True
        mock_response.status_code = 200
        mock_response.json.side_effect = [
            {"current": {"dt": 1, "temp": "warm", "weather": [{"icon": "01d"}]}},
            [{"name": "Somewhere"}],
        ]
        mock_get.return_value = mock_response
        orchestrator = build(OpenWeatherProvider("key"), clock, store)

        result = orchestrator.load_for_coordinate(Coordinate(1.0, 2.0))

        assert result.error.cause == "server"
        assert len(orchestrator.cache) == 0


def test_start_and_city_return_malformed_payload_as_error(clock, store):
    bad_payload = {"current": {"dt": 1, "temp": "warm", "weather": [{"icon": "01d"}]}}
    provider = MockProvider(return_data=bad_payload, cities=[City(name="Paris", country="FR", coordinate=PARIS)])
    orchestrator = build(provider, clock, store)

    assert orchestrator.start().error.cause == "server"
    assert orchestrator.load_for_city("Paris").error.cause == "server"
    assert orchestrator.initialized is False


def test_reverse_geocode_failure_degrades(sample_onecall_response, clock, store):
    provider = MockProvider(return_data=sample_onecall_response)
    provider.geocode_error = WeatherProviderError("geo down", kind=NETWORK)
    orchestrator = build(provider, clock, store)

    result = orchestrator.load_for_coordinate(NYC)

    assert result.ok
    assert result.snapshot.location == "Unknown Location"


def test_start_uses_geolocation(sample_onecall_response, clock, store):
    provider = MockProvider(return_data=sample_onecall_response)
    geolocation = MockGeolocation(coordinate=PARIS)
    orchestrator = build(provider, clock, store, geolocation=geolocation)

    result = orchestrator.start()

    assert result.ok
    assert orchestrator.current_coordinate == PARIS
    assert geolocation.call_count == 1


def test_start_uses_cached_location(sample_onecall_response, clock, store):
    store.set(LAST_LOCATION_KEY, {"lat": NYC.lat, "lon": NYC.lon, "timestamp": NOW - 3600})
    provider = MockProvider(return_data=sample_onecall_response)
    geolocation = MockGeolocation(coordinate=PARIS)
    orchestrator = build(provider, clock, store, geolocation=geolocation)

    orchestrator.start()

    assert orchestrator.current_coordinate == NYC
    assert geolocation.call_count == 0


def test_start_falls_back_to_default_location(sample_onecall_response, clock, store):
    provider = MockProvider(return_data=sample_onecall_response)
    geolocation = MockGeolocation(raise_error=GeolocationError(PERMISSION_DENIED))
    orchestrator = build(provider, clock, store, geolocation=geolocation)

    result = orchestrator.start()

    assert result.ok
    assert orchestrator.current_coordinate == DEFAULT_COORDINATE


def test_start_surfaces_weather_failure_after_fallback(clock, store):
    """Test no second fallback happens when the default location fails too."""
    provider = MockProvider(raise_error=WeatherProviderError("down", kind=NETWORK))
    geolocation = MockGeolocation(raise_error=GeolocationError(PERMISSION_DENIED))
    orchestrator = build(provider, clock, store, geolocation=geolocation)

    result = orchestrator.start()

    assert isinstance(result.error, WeatherFetchError)
    assert result.error.cause == "network"
    assert provider.call_count == 1


def test_load_for_city(sample_onecall_response, clock, store):
    cities = [
        City(name="Paris", country="FR", coordinate=PARIS),
        City(name="Paris", country="US", state="Texas", coordinate=Coordinate(33.66, -95.55)),
    ]
    provider = MockProvider(return_data=sample_onecall_response, cities=cities)
    orchestrator = build(provider, clock, store)

    result = orchestrator.load_for_city("Paris")

    assert result.ok
    assert orchestrator.current_coordinate == PARIS


def test_load_for_city_not_found(sample_onecall_response, clock, store):
    """Test an empty search leaves the current snapshot untouched."""
    provider = MockProvider(return_data=sample_onecall_response, cities=[])
    orchestrator = build(provider, clock, store)
    before = orchestrator.load_for_coordinate(NYC).snapshot

    result = orchestrator.load_for_city("xyz123nowhere")

    assert isinstance(result.error, CityNotFoundError)
    assert result.error.query == "xyz123nowhere"
    assert orchestrator.current_snapshot is before
    assert orchestrator.current_coordinate == NYC
    assert provider.call_count == 1


def test_load_for_city_search_failure(clock, store):
    provider = MockProvider()
    provider.search_error = WeatherProviderError("bad key", kind=UNAUTHORIZED)
    orchestrator = build(provider, clock, store)

    result = orchestrator.load_for_city("Paris")

    assert isinstance(result.error, WeatherFetchError)
    assert result.error.cause == "unauthorized"


def test_refresh_without_location(clock, store):
    """Test refresh before any load reports an error and makes no call."""
    provider = MockProvider()
    orchestrator = build(provider, clock, store)

    result = orchestrator.refresh()

    assert isinstance(result.error, NothingToRefreshError)
    assert provider.call_count == 0


def test_refresh_bypasses_cache(sample_onecall_response, clock, store):
    provider = MockProvider(return_data=sample_onecall_response)
    orchestrator = build(provider, clock, store)
    orchestrator.load_for_coordinate(NYC)

    result = orchestrator.refresh()

    assert result.ok
    assert provider.call_count == 2
    assert orchestrator.current_coordinate == NYC


def test_refresh_failure_keeps_previous_snapshot(sample_onecall_response, clock, store):
    provider = MockProvider(return_data=sample_onecall_response)
    orchestrator = build(provider, clock, store)
    before = orchestrator.load_for_coordinate(NYC).snapshot

    provider.raise_error = WeatherProviderError("down", kind=SERVER_ERROR)
    result = orchestrator.refresh()

    assert result.error.cause == "server"
    assert orchestrator.current_snapshot is before


def test_needs_refresh(sample_onecall_response, clock, store):
    provider = MockProvider(return_data=sample_onecall_response)
    orchestrator = build(provider, clock, store)

    assert orchestrator.needs_refresh() is True

    orchestrator.load_for_coordinate(NYC)
    timestamp = sample_onecall_response["current"]["dt"]
    assert orchestrator.needs_refresh(now=timestamp + 600) is False
    assert orchestrator.needs_refresh(now=timestamp + 601) is True
    # Advisory only: no network activity
    assert provider.call_count == 1


def test_refresh_due_waits_a_ttl_between_fetches(sample_onecall_response, clock, store):
    """Test a lagging observation time does not cause a fetch on every check."""
    provider = MockProvider(return_data=sample_onecall_response)
    orchestrator = build(provider, clock, store)
    timestamp = sample_onecall_response["current"]["dt"]

    assert orchestrator.refresh_due() is True

    clock.now = timestamp + 900  # observation already 15 minutes old when fetched
    orchestrator.load_for_coordinate(NYC)
    assert orchestrator.needs_refresh() is True
    assert orchestrator.refresh_due() is False

    clock.now += 599
    assert orchestrator.refresh_due() is False
    clock.now += 1
    assert orchestrator.refresh_due() is True


def test_refresh_due_after_failed_fetch(clock, store):
    provider = MockProvider(raise_error=WeatherProviderError("down", kind=NETWORK))
    orchestrator = build(provider, clock, store)

    orchestrator.load_for_coordinate(NYC)

    assert orchestrator.refresh_due() is False
    clock.now += 600
    assert orchestrator.refresh_due() is True


def test_search_cities_passthrough(clock, store):
    provider = MockProvider(cities=[City(name="Paris", country="FR", coordinate=PARIS)])
    orchestrator = build(provider, clock, store)

    assert orchestrator.search_cities("P") == []
    assert provider.search_count == 0
    assert [city.name for city in orchestrator.search_cities("Par")] == ["Paris"]

    provider.search_error = WeatherProviderError("down", kind=NETWORK)
    assert orchestrator.search_cities("Par") == []


def test_activity_suggestions(sample_onecall_response, clock, store):
    images = [ImageRef(id=f"img{i}", url=f"https://img/{i}", alt="", photographer="x") for i in range(4)]
    image_provider = MockImageProvider(images=images)
    orchestrator = build(MockProvider(return_data=sample_onecall_response), clock, store, image_provider=image_provider)

    assert orchestrator.activity_suggestions() == []

    orchestrator.load_for_coordinate(NYC)
    suggestions = orchestrator.activity_suggestions()

    assert [activity.name for activity, _ in suggestions] == ["Museum", "Shopping Mall", "Cafe", "Art Gallery"]
    assert [image.id for _, image in suggestions] == ["img0", "img1", "img2", "img3"]

    orchestrator.activity_suggestions()
    assert image_provider.call_count == 1


def test_activity_placeholders_are_not_cached(sample_onecall_response, clock, store):
    image_provider = MockImageProvider(images=None)
    orchestrator = build(MockProvider(return_data=sample_onecall_response), clock, store, image_provider=image_provider)
    orchestrator.load_for_coordinate(NYC)

    orchestrator.activity_suggestions()
    orchestrator.activity_suggestions()

    assert image_provider.call_count == 2


def test_activity_suggestions_without_image_provider(sample_onecall_response, clock, store):
    orchestrator = build(MockProvider(return_data=sample_onecall_response), clock, store)
    orchestrator.load_for_coordinate(NYC)

    suggestions = orchestrator.activity_suggestions()

    assert len(suggestions) == 4
    assert all(image is None for _, image in suggestions)
