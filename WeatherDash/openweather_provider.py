"""OpenWeather One Call 3.0 and Geocoding API provider implementation."""
import logging
from typing import Any, Dict, List

import requests

from normalizer import UNKNOWN_LOCATION
from weather_data import City, Coordinate
from weather_provider import (
    NETWORK,
    SERVER_ERROR,
    WeatherProviderBase,
    WeatherProviderError,
    kind_for_status,
)

MIN_QUERY_LENGTH = 2


class OpenWeatherProvider(WeatherProviderBase):
    """
    Weather provider using the OpenWeather One Call and Geocoding APIs.

    One Call 3.0: https://openweathermap.org/api/one-call-3
    Geocoding:    https://openweathermap.org/api/geocoding-api
    """

    ONECALL_URL = "https://api.openweathermap.org/data/3.0/onecall"
    GEOCODING_URL = "https://api.openweathermap.org/geo/1.0"

    def __init__(
        self,
        api_key: str,
        units: str = "metric",
        lang: str = "en",
        timeout: int = 10,
        search_limit: int = 5
    ):
        """
        Initialize OpenWeather provider.

        Args:
            api_key: OpenWeather API key
            units: Units requested from the API; the normalizer expects "metric"
            lang: Language code for descriptions (e.g., "en", "de")
            timeout: HTTP request timeout in seconds
            search_limit: Maximum number of cities returned by search_cities
        """
        self.api_key = api_key
        self.units = units
        self.lang = lang
        self.timeout = timeout
        self.search_limit = search_limit

    def fetch_current_and_forecast(self, coordinate: Coordinate) -> Dict[str, Any]:
        params = {
            "lat": coordinate.lat,
            "lon": coordinate.lon,
            "exclude": "minutely,alerts",
            "units": self.units,
            "lang": self.lang,
            "appid": self.api_key,
        }
        data = self._request(self.ONECALL_URL, params)

        if not isinstance(data, dict):
            raise WeatherProviderError("Unexpected One Call response type", kind=SERVER_ERROR)
        current = data.get("current")
        if not current or not isinstance(current, dict):
            logging.error("Response missing 'current' block")
            raise WeatherProviderError("Response missing 'current' block", kind=SERVER_ERROR)
        if not current.get("weather"):
            logging.error("Response missing 'weather' array")
            raise WeatherProviderError("Response missing 'weather' array", kind=SERVER_ERROR)

        logging.info(f"Fetched weather for {coordinate.lat}, {coordinate.lon}: {current.get('temp')}°")
        return data

    def reverse_geocode(self, coordinate: Coordinate) -> str:
        params = {
            "lat": coordinate.lat,
            "lon": coordinate.lon,
            "limit": 1,
            "appid": self.api_key,
        }
        data = self._request(f"{self.GEOCODING_URL}/reverse", params)
        if data and isinstance(data, list):
            return data[0].get("name") or UNKNOWN_LOCATION
        return UNKNOWN_LOCATION

    def search_cities(self, query: str) -> List[City]:
        if not query or len(query.strip()) < MIN_QUERY_LENGTH:
            return []

        params = {
            "q": query.strip(),
            "limit": self.search_limit,
            "appid": self.api_key,
        }
        data = self._request(f"{self.GEOCODING_URL}/direct", params)

        cities = []
        try:
            for entry in data or []:
                cities.append(City(
                    name=entry["name"],
                    country=entry.get("country", ""),
                    state=entry.get("state"),
                    coordinate=Coordinate(float(entry["lat"]), float(entry["lon"])),
                ))
        except (KeyError, ValueError, TypeError) as e:
            logging.error(f"Failed to parse city search response: {e}", exc_info=True)
            raise WeatherProviderError(f"Failed to parse response: {str(e)}", kind=SERVER_ERROR)

        logging.info(f"City search for {query!r} returned {len(cities)} result(s)")
        return cities

    def _request(self, url: str, params: Dict[str, Any]) -> Any:
        """GET a JSON document, translating failures into WeatherProviderError."""
        try:
            logging.info(f"Making OpenWeather API request: {url}")
            safe_params = {k: v for k, v in params.items() if k != "appid"}
            logging.debug(f"Request parameters: {safe_params}")

            response = requests.get(url, params=params, timeout=self.timeout)

            logging.info(f"API response status: {response.status_code}")

            if not response.ok:
                logging.error(f"API request failed with status {response.status_code}")
                self._handle_error_response(response)

            data = response.json()
            logging.debug(f"API response (truncated): {str(data)[:500]}...")
            return data

        except WeatherProviderError:
            raise
        # requests' JSONDecodeError is both a ValueError and a RequestException
        except ValueError as e:
            logging.error(f"Failed to parse API response: {e}", exc_info=True)
            raise WeatherProviderError(f"Failed to parse response: {str(e)}", kind=SERVER_ERROR)
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during API request: {e}")
            raise WeatherProviderError(f"Network error: {str(e)}", kind=NETWORK)

    def _handle_error_response(self, response: requests.Response) -> None:
        """Parse and raise error from OpenWeather error response."""
        kind = kind_for_status(response.status_code)
        try:
            error_data = response.json()
        except ValueError:
            # Not JSON, use HTTP status
            logging.error(f"Non-JSON error response: HTTP {response.status_code}, body: {response.text[:500]}")
            raise WeatherProviderError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                kind=kind,
                status_code=response.status_code,
            )

        logging.error(f"OpenWeather API error response: {error_data}")
        if isinstance(error_data, dict):
            cod = error_data.get("cod", response.status_code)
            message = error_data.get("message", "Unknown error")
        else:
            cod, message = response.status_code, "Unknown error"
        raise WeatherProviderError(
            f"OpenWeather API error {cod}: {message}",
            kind=kind,
            status_code=response.status_code,
        )
