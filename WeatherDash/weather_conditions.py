"""Static lookup tables keyed by OpenWeather icon codes and display themes."""
from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class WeatherCondition:
    theme: str
    icon_ref: str
    display_name: str


@dataclass(frozen=True)
class Activity:
    name: str
    distance: str
    image: str


DEFAULT_ICON_CODE = "01d"

WEATHER_CONDITIONS: Dict[str, WeatherCondition] = {
    # Clear sky
    "01d": WeatherCondition("sunny", "fas fa-sun", "Clear Sky"),
    "01n": WeatherCondition("night", "fas fa-moon", "Clear Night"),
    # Few clouds
    "02d": WeatherCondition("cloudy", "fas fa-cloud-sun", "Partly Cloudy"),
    "02n": WeatherCondition("night", "fas fa-cloud-moon", "Partly Cloudy Night"),
    # Scattered / broken clouds
    "03d": WeatherCondition("cloudy", "fas fa-cloud", "Scattered Clouds"),
    "03n": WeatherCondition("cloudy", "fas fa-cloud", "Scattered Clouds"),
    "04d": WeatherCondition("cloudy", "fas fa-cloud", "Broken Clouds"),
    "04n": WeatherCondition("cloudy", "fas fa-cloud", "Broken Clouds"),
    # Rain
    "09d": WeatherCondition("rainy", "fas fa-cloud-rain", "Shower Rain"),
    "09n": WeatherCondition("rainy", "fas fa-cloud-rain", "Shower Rain"),
    "10d": WeatherCondition("rainy", "fas fa-cloud-rain", "Rain"),
    "10n": WeatherCondition("rainy", "fas fa-cloud-rain", "Rain"),
    # Thunderstorm
    "11d": WeatherCondition("stormy", "fas fa-bolt", "Thunderstorm"),
    "11n": WeatherCondition("stormy", "fas fa-bolt", "Thunderstorm"),
    # Snow
    "13d": WeatherCondition("snowy", "fas fa-snowflake", "Snow"),
    "13n": WeatherCondition("snowy", "fas fa-snowflake", "Snow"),
    # Mist/Fog
    "50d": WeatherCondition("cloudy", "fas fa-smog", "Mist"),
    "50n": WeatherCondition("cloudy", "fas fa-smog", "Mist"),
}

THEMES = ("sunny", "cloudy", "rainy", "stormy", "snowy", "night")

WEATHER_ACTIVITIES: Dict[str, List[Activity]] = {
    "sunny": [
        Activity("Beach", "2km away", "beach"),
        Activity("Park", "1.5km away", "park"),
        Activity("Outdoor Sports", "3km away", "sports"),
        Activity("Hiking Trail", "5km away", "hiking"),
    ],
    "cloudy": [
        Activity("Museum", "2km away", "museum"),
        Activity("Shopping Mall", "1km away", "shopping"),
        Activity("Cafe", "500m away", "cafe"),
        Activity("Art Gallery", "1.5km away", "gallery"),
    ],
    "rainy": [
        Activity("Indoor Gym", "1km away", "gym"),
        Activity("Movie Theater", "2km away", "cinema"),
        Activity("Library", "800m away", "library"),
        Activity("Spa Center", "1.5km away", "spa"),
    ],
    "stormy": [
        Activity("Home Activities", "At home", "home"),
        Activity("Board Game Cafe", "1km away", "games"),
        Activity("Indoor Market", "2km away", "market"),
        Activity("Coworking Space", "1.5km away", "coworking"),
    ],
    "snowy": [
        Activity("Ski Resort", "15km away", "ski"),
        Activity("Hot Chocolate Cafe", "500m away", "cafe"),
        Activity("Indoor Activities", "1km away", "indoor"),
        Activity("Winter Market", "2km away", "market"),
    ],
    "night": [
        Activity("Night Market", "2km away", "market"),
        Activity("Observatory", "10km away", "stars"),
        Activity("Night Cafe", "1km away", "cafe"),
        Activity("Evening Walk", "500m away", "walk"),
    ],
}


def get_condition(icon_code) -> WeatherCondition:
    """
    Look up the display condition for a provider icon code.

    Unknown or missing codes map to the clear-sky entry; this never raises.
    """
    if not isinstance(icon_code, str):
        return WEATHER_CONDITIONS[DEFAULT_ICON_CODE]
    return WEATHER_CONDITIONS.get(icon_code, WEATHER_CONDITIONS[DEFAULT_ICON_CODE])


def get_activities(theme: str) -> List[Activity]:
    return list(WEATHER_ACTIVITIES.get(theme, WEATHER_ACTIVITIES["sunny"]))
