"""Weather provider abstraction - allows swapping different weather APIs."""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from weather_data import City, Coordinate

NOT_FOUND = "not-found"
UNAUTHORIZED = "unauthorized"
RATE_LIMITED = "rate-limited"
NETWORK = "network"
SERVER_ERROR = "server-error"


class WeatherProviderBase(ABC):
    """Abstract base class for weather data providers."""

    @abstractmethod
    def fetch_current_and_forecast(self, coordinate: Coordinate) -> Dict[str, Any]:
        """
        Fetch current, hourly and daily weather for a coordinate.

        Returns:
            dict: Raw provider payload (One Call 3.0 shape)

        Raises:
            WeatherProviderError: If the provider fails to fetch data
        """
        pass

    @abstractmethod
    def reverse_geocode(self, coordinate: Coordinate) -> str:
        """
        Look up a human readable place name for a coordinate.

        Raises:
            WeatherProviderError: If the lookup fails
        """
        pass

    @abstractmethod
    def search_cities(self, query: str) -> List[City]:
        """
        Search cities by name, best match first.

        Returns:
            list: Matching cities, empty if nothing matched

        Raises:
            WeatherProviderError: If the search request fails
        """
        pass


class WeatherProviderError(Exception):
    """Exception raised when a weather provider fails."""

    def __init__(self, message: str, kind: str = SERVER_ERROR, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


def kind_for_status(status_code: int) -> str:
    """Map an HTTP error status to a provider error kind."""
    if status_code == 404:
        return NOT_FOUND
    if status_code == 401:
        return UNAUTHORIZED
    if status_code == 429:
        return RATE_LIMITED
    return SERVER_ERROR
