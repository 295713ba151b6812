"""Terminal weather dashboard."""
import argparse
import logging
import os
import signal
import sys
import time
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from image_provider import UnsplashImageProvider
from key_value_store import UNITS, JsonFileStore, UserPreferences
from layout import calculate_layout, get_activity_lines
from location_resolver import IpGeolocationProvider, LocationResolver, NoGeolocationProvider
from openweather_provider import OpenWeatherProvider
from response_cache import ResponseCache
from weather_service import (
    CAUSE_NETWORK,
    CAUSE_NOT_FOUND,
    CAUSE_UNAUTHORIZED,
    CityNotFoundError,
    LoadResult,
    NothingToRefreshError,
    WeatherFetchError,
    WeatherOrchestrator,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_LOG_FILE = os.path.join(BASE_DIR, "weather-dash.log")
DEFAULT_STATE_FILE = "~/.weather-dash.json"

ERROR_MESSAGES = {
    CAUSE_NETWORK: "Network error. Please check your internet connection.",
    CAUSE_NOT_FOUND: "Weather data not found for this location.",
    CAUSE_UNAUTHORIZED: "Invalid API key. Please check your configuration.",
    "api": "Unable to fetch weather data. Please check your connection.",
    "city": "City not found. Please try a different search.",
    "refresh": "Failed to refresh weather data. Please try again.",
}


@dataclass
class Config:
    api_key: str
    unsplash_key: Optional[str]
    lang: str
    state_file: str


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("Terminal weather dashboard")
    parser.add_argument("--city", help="Show weather for a city instead of the current location")
    parser.add_argument("--units", choices=UNITS, help="Display units (saved as the new preference)")
    parser.add_argument("--watch", action="store_true", help="Keep running and refresh stale data")
    parser.add_argument("--refresh", type=float, default=60.0, help="Seconds between staleness checks")
    parser.add_argument("--cache-ttl", type=int, default=600)
    parser.add_argument("--timeout", type=int, default=10, help="HTTP timeout in seconds")
    parser.add_argument("--no-geolocation", action="store_true", help="Never look up the IP location")
    parser.add_argument("--log-file", default=DEFAULT_LOG_FILE)
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def setup_logging(log_file: str, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file)
        ]
    )


def load_config() -> Config:
    load_dotenv()
    api_key = os.getenv("OPENWEATHER_API_KEY")
    if not api_key:
        raise SystemExit("Missing OPENWEATHER_API_KEY in environment")

    config = Config(
        api_key=api_key,
        unsplash_key=os.getenv("UNSPLASH_ACCESS_KEY"),
        lang=os.getenv("WEATHER_LANG", "en"),
        state_file=os.getenv("WEATHER_STATE_FILE", DEFAULT_STATE_FILE),
    )
    if not config.unsplash_key:
        logging.warning("UNSPLASH_ACCESS_KEY not set, activity images will be placeholders")
    logging.info("Configuration loaded: lang=%s state_file=%s", config.lang, config.state_file)
    return config


def build_orchestrator(config: Config, store: JsonFileStore, args: argparse.Namespace) -> WeatherOrchestrator:
    provider = OpenWeatherProvider(
        api_key=config.api_key,
        lang=config.lang,
        timeout=args.timeout,
    )
    geolocation = NoGeolocationProvider() if args.no_geolocation else IpGeolocationProvider()
    orchestrator = WeatherOrchestrator(
        provider=provider,
        location_resolver=LocationResolver(geolocation, store),
        cache=ResponseCache(ttl_seconds=args.cache_ttl),
        image_provider=UnsplashImageProvider(config.unsplash_key, timeout=args.timeout),
    )
    logging.info("Weather orchestrator ready (cache ttl=%ss)", args.cache_ttl)
    return orchestrator


def error_message(error: Exception) -> str:
    """Pick the user-facing wording for an orchestrator error."""
    if isinstance(error, CityNotFoundError):
        return ERROR_MESSAGES["city"]
    if isinstance(error, NothingToRefreshError):
        return ERROR_MESSAGES["refresh"]
    if isinstance(error, WeatherFetchError):
        return ERROR_MESSAGES.get(error.cause, ERROR_MESSAGES["api"])
    return ERROR_MESSAGES["api"]


def draw_dashboard(orchestrator: WeatherOrchestrator, units: str) -> None:
    snapshot = orchestrator.current_snapshot
    lines = calculate_layout(snapshot, units)
    suggestions = orchestrator.activity_suggestions()
    if suggestions:
        lines.append("")
        lines.append("Things to do:")
        lines.extend(f"  {line}" for line in get_activity_lines(suggestions))
    updated = time.strftime("%H:%M:%S", time.localtime(snapshot.current.timestamp or time.time()))
    lines.append("")
    lines.append(f"Updated {updated}")
    print("\n".join(lines))


def draw_status(message: str) -> None:
    print(f"!! {message}")


def show_result(orchestrator: WeatherOrchestrator, result: LoadResult, units: str) -> None:
    if result.ok:
        draw_dashboard(orchestrator, units)
    else:
        logging.error("Weather load failed: %s", result.error)
        draw_status(error_message(result.error))


def weather_loop(orchestrator: WeatherOrchestrator, units: str, args: argparse.Namespace) -> None:
    frame = 0
    while True:
        time.sleep(max(args.refresh, 1.0))
        frame += 1
        try:
            if not orchestrator.refresh_due():
                logging.debug("Frame %s: weather still fresh", frame)
                continue
            logging.info("Frame %s: weather is stale, refreshing", frame)
            result = orchestrator.refresh() if orchestrator.current_coordinate else orchestrator.start()
            show_result(orchestrator, result, units)
        except Exception as exc:
            logging.exception("Unexpected error: %s", exc)
            draw_status("FATAL ERROR")


def signal_handler(signum, frame):
    logging.info("Received signal %s, shutting down", signum)
    raise KeyboardInterrupt()


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)
    config = load_config()

    store = JsonFileStore(config.state_file)
    preferences = UserPreferences(store)
    if args.units:
        preferences.set_units(args.units)
    units = preferences.units

    orchestrator = build_orchestrator(config, store, args)

    result = orchestrator.load_for_city(args.city) if args.city else orchestrator.start()
    show_result(orchestrator, result, units)

    if not args.watch:
        return 0 if result.ok else 1

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
    try:
        weather_loop(orchestrator, units, args)
    except KeyboardInterrupt:
        logging.info("Stopping dashboard")
    return 0


if __name__ == "__main__":
    sys.exit(main())
