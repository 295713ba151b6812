"""Tests for the condition and activity tables."""
from weather_conditions import THEMES, WEATHER_ACTIVITIES, WEATHER_CONDITIONS, get_activities, get_condition


def test_known_codes():
    assert get_condition("01n").theme == "night"
    assert get_condition("11d").display_name == "Thunderstorm"
    assert get_condition("13d").icon_ref == "fas fa-snowflake"


def test_unknown_codes_fall_back_to_clear_sky():
    for code in ("99x", "", None, 42, ["01n"]):
        condition = get_condition(code)
        assert condition.theme == "sunny"
        assert condition.icon_ref == "fas fa-sun"
        assert condition.display_name == "Clear Sky"


def test_every_condition_has_a_known_theme():
    assert len(WEATHER_CONDITIONS) == 18
    assert {condition.theme for condition in WEATHER_CONDITIONS.values()} <= set(THEMES)


def test_activities_for_every_theme():
    for theme in THEMES:
        assert len(WEATHER_ACTIVITIES[theme]) == 4
    assert get_activities("stormy")[0].name == "Home Activities"
    assert get_activities("unknown") == get_activities("sunny")
