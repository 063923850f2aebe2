"""
Weather data for the station's personal weather station (PWS).

Workflow:
  1. Current conditions and daily history come from the weather.com PWS
     API, keyed by the station ID.
  2. Daily and hourly forecasts come from the weather.com v3 forecast API,
     geocoded at the station's coordinates.
  3. Every request asks for imperial units (units=e); metric is a display
     concern handled by unit_utils.
  4. Parsed records are cached for one poll cycle so that re-renders and
     unit toggles don't hit the API again.

Failures of any kind surface as DataUnavailableError.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import requests
from django.conf import settings
from django.core.cache import cache

from .exceptions import DataUnavailableError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
#  Constants
# ---------------------------------------------------------------------------

PWS_BASE_URL = "https://api.weather.com/v2/pws"
FORECAST_BASE_URL = "https://api.weather.com/v3/wx/forecast"

# Lengths the v3 daily forecast endpoint offers.
DAILY_FORECAST_DAYS = (3, 5, 7, 10, 15)
DEFAULT_FORECAST_DAYS = 5

HOURLY_FORECAST_HOURS = 24

HISTORY_DAYS = (3, 7, 14, 30)
DEFAULT_HISTORY_DAYS = 7

CACHE_KEY_CURRENT = "weather_current"
CACHE_KEY_DAILY = "weather_daily_{days}"
CACHE_KEY_HOURLY = "weather_hourly"
CACHE_KEY_HISTORY = "weather_history_{days}"


# ---------------------------------------------------------------------------
#  Records (all measurements imperial)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CurrentConditions:
    station_id: str
    observed_at: str
    conditions: Optional[str]
    temperature: Optional[float]
    heat_index: Optional[float]
    dew_point: Optional[float]
    wind_chill: Optional[float]
    wind_speed: Optional[float]
    wind_gust: Optional[float]
    wind_direction: Optional[int]
    pressure: Optional[float]
    precip_rate: Optional[float]
    precip_total: Optional[float]
    elevation: Optional[float]
    humidity: Optional[float]
    uv: Optional[float]
    solar_radiation: Optional[float]


@dataclass(frozen=True)
class DailyForecast:
    date: str
    day_of_week: str
    temp_high: Optional[float]
    temp_low: Optional[float]
    precip_chance: Optional[int]
    wind_speed: Optional[float]
    conditions: Optional[str]


@dataclass(frozen=True)
class HourlyForecast:
    time: str
    hour_label: str
    temperature: Optional[float]
    precip_chance: Optional[int]
    wind_speed: Optional[float]
    conditions: Optional[str]


@dataclass(frozen=True)
class HistoricalDay:
    date: str
    temp_high: Optional[float]
    temp_low: Optional[float]
    humidity: Optional[float]
    precip: Optional[float]
    wind_speed: Optional[float]


# ---------------------------------------------------------------------------
#  HTTP helpers
# ---------------------------------------------------------------------------

def _get_json(url, params, source):
    """GET *url* and return decoded JSON, or raise DataUnavailableError."""
    try:
        response = requests.get(url, params=params, timeout=settings.HTTP_TIMEOUT_SECONDS)
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("%s request failed: %s", source, exc)
        raise DataUnavailableError(source, str(exc)) from exc


def clear_weather_cache():
    """Drop every cached weather record so the next request re-fetches."""
    keys = [CACHE_KEY_CURRENT, CACHE_KEY_HOURLY]
    keys += [CACHE_KEY_DAILY.format(days=d) for d in DAILY_FORECAST_DAYS]
    keys += [CACHE_KEY_HISTORY.format(days=d) for d in HISTORY_DAYS]
    cache.delete_many(keys)


def _pws_params(**extra):
    params = {
        "stationId": settings.PWS_STATION_ID,
        "format": "json",
        "units": "e",
        "apiKey": settings.WEATHER_COM_API_KEY,
    }
    params.update(extra)
    return params


def _forecast_params():
    return {
        "geocode": f"{settings.STATION_LATITUDE},{settings.STATION_LONGITUDE}",
        "format": "json",
        "units": "e",
        "language": "en-US",
        "apiKey": settings.WEATHER_COM_API_KEY,
    }


# ---------------------------------------------------------------------------
#  Parsers
# ---------------------------------------------------------------------------

def parse_current_conditions(payload):
    """Map a PWS observations/current payload to CurrentConditions."""
    try:
        obs = payload["observations"][0]
        imperial = obs["imperial"]
        return CurrentConditions(
            station_id=obs["stationID"],
            observed_at=obs.get("obsTimeLocal", ""),
            conditions=obs.get("conditions"),
            temperature=imperial.get("temp"),
            heat_index=imperial.get("heatIndex"),
            dew_point=imperial.get("dewpt"),
            wind_chill=imperial.get("windChill"),
            wind_speed=imperial.get("windSpeed"),
            wind_gust=imperial.get("windGust"),
            wind_direction=obs.get("winddir"),
            pressure=imperial.get("pressure"),
            precip_rate=imperial.get("precipRate"),
            precip_total=imperial.get("precipTotal"),
            elevation=imperial.get("elev"),
            humidity=obs.get("humidity"),
            uv=obs.get("uv"),
            solar_radiation=obs.get("solarRadiation"),
        )
    except (KeyError, IndexError, TypeError) as exc:
        logger.warning("Unexpected current-conditions payload: %r", exc)
        raise DataUnavailableError("weather", "malformed current conditions") from exc


def parse_history(payload):
    """Map a PWS daily history payload to a list of HistoricalDay, oldest first."""
    try:
        days = []
        for obs in payload["observations"]:
            imperial = obs["imperial"]
            days.append(
                HistoricalDay(
                    date=obs["obsTimeLocal"][:10],
                    temp_high=imperial.get("tempHigh"),
                    temp_low=imperial.get("tempLow"),
                    humidity=obs.get("humidityAvg"),
                    precip=imperial.get("precipTotal"),
                    wind_speed=imperial.get("windspeedAvg"),
                )
            )
    except (KeyError, TypeError) as exc:
        logger.warning("Unexpected history payload: %r", exc)
        raise DataUnavailableError("weather", "malformed history") from exc
    return sorted(days, key=lambda day: day.date)


def _daypart_value(daypart, field, day_index):
    """
    The v3 daily forecast splits each day into day/night halves.  Prefer the
    daytime value; it is null for today once the afternoon has passed.
    """
    values = daypart.get(field) or []
    for index in (day_index * 2, day_index * 2 + 1):
        if index < len(values) and values[index] is not None:
            return values[index]
    return None


def parse_daily_forecast(payload):
    """Map a v3 daily forecast payload to a list of DailyForecast."""
    try:
        daypart = (payload.get("daypart") or [{}])[0]
        forecast = []
        for i, valid_time in enumerate(payload["validTimeLocal"]):
            forecast.append(
                DailyForecast(
                    date=valid_time[:10],
                    day_of_week=payload["dayOfWeek"][i][:3],
                    temp_high=payload["calendarDayTemperatureMax"][i],
                    temp_low=payload["calendarDayTemperatureMin"][i],
                    precip_chance=_daypart_value(daypart, "precipChance", i),
                    wind_speed=_daypart_value(daypart, "windSpeed", i),
                    conditions=_daypart_value(daypart, "wxPhraseLong", i),
                )
            )
    except (KeyError, IndexError, TypeError) as exc:
        logger.warning("Unexpected daily forecast payload: %r", exc)
        raise DataUnavailableError("weather", "malformed daily forecast") from exc
    return forecast


def _at(payload, field, index):
    values = payload.get(field) or []
    return values[index] if index < len(values) else None


def _hour_label(valid_time):
    # "2024-06-01T15:00:00-0500" -> "3 PM"
    hour = datetime.strptime(valid_time[:19], "%Y-%m-%dT%H:%M:%S").hour
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12} {suffix}"


def parse_hourly_forecast(payload, hours=HOURLY_FORECAST_HOURS):
    """Map a v3 hourly forecast payload to the next *hours* HourlyForecast."""
    try:
        forecast = []
        for i, valid_time in enumerate(payload["validTimeLocal"][:hours]):
            forecast.append(
                HourlyForecast(
                    time=valid_time,
                    hour_label=_hour_label(valid_time),
                    temperature=payload["temperature"][i],
                    precip_chance=_at(payload, "precipChance", i),
                    wind_speed=_at(payload, "windSpeed", i),
                    conditions=_at(payload, "wxPhraseLong", i),
                )
            )
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        logger.warning("Unexpected hourly forecast payload: %r", exc)
        raise DataUnavailableError("weather", "malformed hourly forecast") from exc
    return forecast


# ---------------------------------------------------------------------------
#  Public fetchers
# ---------------------------------------------------------------------------

def get_current_conditions():
    """Latest observation from the station."""
    def load():
        payload = _get_json(f"{PWS_BASE_URL}/observations/current", _pws_params(), "weather")
        return parse_current_conditions(payload)

    return cache.get_or_set(CACHE_KEY_CURRENT, load, settings.DASHBOARD_REFRESH_SECONDS)


def get_historical_data(num_days=DEFAULT_HISTORY_DAYS):
    """One summary per day for the last *num_days* days."""
    if num_days not in HISTORY_DAYS:
        num_days = DEFAULT_HISTORY_DAYS

    def load():
        payload = _get_json(
            f"{PWS_BASE_URL}/history/daily", _pws_params(numDays=num_days), "weather"
        )
        return parse_history(payload)

    return cache.get_or_set(
        CACHE_KEY_HISTORY.format(days=num_days), load, settings.DASHBOARD_REFRESH_SECONDS
    )


def get_daily_forecast(days=DEFAULT_FORECAST_DAYS):
    if days not in DAILY_FORECAST_DAYS:
        days = DEFAULT_FORECAST_DAYS

    def load():
        payload = _get_json(
            f"{FORECAST_BASE_URL}/daily/{days}day", _forecast_params(), "weather"
        )
        return parse_daily_forecast(payload)

    return cache.get_or_set(CACHE_KEY_DAILY.format(days=days), load, settings.DASHBOARD_REFRESH_SECONDS)


def get_hourly_forecast():
    def load():
        payload = _get_json(f"{FORECAST_BASE_URL}/hourly/2day", _forecast_params(), "weather")
        return parse_hourly_forecast(payload)

    return cache.get_or_set(CACHE_KEY_HOURLY, load, settings.DASHBOARD_REFRESH_SECONDS)
