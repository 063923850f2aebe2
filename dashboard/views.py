import logging
from urllib.parse import urlencode

from django.conf import settings
from django.http import JsonResponse
from django.urls import reverse
from django.views.decorators.cache import cache_control
from django.views.decorators.http import require_GET

from . import alerts_utils, weather_utils
from .dashboard_state import DashboardState, apply_event
from .exceptions import DataUnavailableError, InvalidInputError
from .forms import CallsignLookupForm, DashboardEventForm
from .grid_locator_utils import grid_to_coordinates
from .ham_utils import lookup_callsign
from .station_utils import get_station_info
from .unit_utils import (
    convert_precipitation,
    convert_temperature,
    convert_wind_speed,
    format_precipitation,
    format_temperature,
    format_wind_speed,
    unit_labels,
)

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

# Endpoint serving each dashboard tab.
TAB_ENDPOINTS = {
    "station": "dashboard:station",
    "current": "dashboard:weather_current",
    "forecast": "dashboard:weather_forecast",
    "history": "dashboard:weather_history",
    "alerts": "dashboard:alerts",
}


# ---------------------------------------------------------------------------
#  Helpers
# ---------------------------------------------------------------------------

def _load_state(request):
    """Return (state, None) or (None, 400 response) for the request's query string."""
    try:
        return DashboardState.from_query(request.GET), None
    except InvalidInputError as exc:
        return None, JsonResponse({"error": str(exc)}, status=400)


def _unavailable(what):
    # The client keeps polling; the next cycle may succeed.
    return JsonResponse(
        {"available": False, "error": f"{what} is currently unavailable. Retrying shortly."},
        status=503,
    )


def _optional(formatter, value, units):
    """Format *value*, or "N/A" when the station didn't report it."""
    if value is None:
        return NOT_AVAILABLE
    return formatter(value, units)


def _suffixed(value, suffix):
    if value is None or value == "":
        return NOT_AVAILABLE
    return f"{value}{suffix}"


def _series(converter, values, units, digits):
    return [None if v is None else round(converter(v, units), digits) for v in values]


# ---------------------------------------------------------------------------
#  Dashboard state
# ---------------------------------------------------------------------------

@cache_control(no_cache=True, must_revalidate=True, no_store=True)
@require_GET
def dashboard(request):
    """
    Current dashboard state, after applying an optional event.

    The response lists the URL (state included) the client should poll for
    each tab, and how often.
    """
    state, error = _load_state(request)
    if error:
        return error

    form = DashboardEventForm(request.GET)
    if not form.is_valid():
        return JsonResponse({"error": "Invalid event.", "form_errors": form.errors}, status=400)

    event = form.cleaned_data["event"]
    if event:
        try:
            state = apply_event(state, event, form.cleaned_data["value"] or None)
        except InvalidInputError as exc:
            return JsonResponse({"error": str(exc)}, status=400)

    if event == "refresh":
        if state.tab == "alerts":
            alerts_utils.clear_alerts_cache()
        elif state.tab != "station":
            weather_utils.clear_weather_cache()
        logger.info("Refresh requested for the %s tab", state.tab)

    query = urlencode(state.to_query())
    return JsonResponse(
        {
            "state": state.to_query(),
            "unit_labels": unit_labels(state.units),
            "refresh_seconds": settings.DASHBOARD_REFRESH_SECONDS,
            "endpoints": {
                tab: f"{reverse(name)}?{query}" for tab, name in TAB_ENDPOINTS.items()
            },
        }
    )


# ---------------------------------------------------------------------------
#  Station
# ---------------------------------------------------------------------------

@cache_control(no_cache=True, must_revalidate=True, no_store=True)
@require_GET
def station(request):
    return JsonResponse(get_station_info())


# Ham Radio Call Sign Lookup
@cache_control(no_cache=True, must_revalidate=True, no_store=True)
@require_GET
def callsign_lookup(request):
    form = CallsignLookupForm(request.GET)
    if not form.is_valid():
        return JsonResponse({"error": "Please enter a callsign.", "form_errors": form.errors}, status=400)

    try:
        record, error = lookup_callsign(form.cleaned_data["callsign"])
    except DataUnavailableError:
        return _unavailable("The callsign directory")

    if error:
        return JsonResponse({"error": error}, status=404)

    data = record.as_dict()
    data["grid_location"] = grid_to_coordinates(record.grid) if record.grid else None
    return JsonResponse(data)


# ---------------------------------------------------------------------------
#  Weather
# ---------------------------------------------------------------------------

@cache_control(no_cache=True, must_revalidate=True, no_store=True)
@require_GET
def weather_current(request):
    state, error = _load_state(request)
    if error:
        return error
    try:
        current = weather_utils.get_current_conditions()
    except DataUnavailableError:
        return _unavailable("Weather data")

    units = state.units
    return JsonResponse(
        {
            "units": units.value,
            "station_id": current.station_id,
            "observed_at": current.observed_at,
            "conditions": current.conditions or "Clear",
            "temperature": _optional(format_temperature, current.temperature, units),
            "feels_like": _optional(format_temperature, current.heat_index, units),
            "dew_point": _optional(format_temperature, current.dew_point, units),
            "wind_chill": _optional(format_temperature, current.wind_chill, units),
            "wind_speed": _optional(format_wind_speed, current.wind_speed, units),
            "wind_gust": _optional(format_wind_speed, current.wind_gust, units),
            "wind_direction": _suffixed(current.wind_direction, "°"),
            "humidity": _suffixed(current.humidity, "%"),
            "precip_total": _optional(format_precipitation, current.precip_total, units),
            "precip_rate": (
                format_precipitation(current.precip_rate, units) + "/hr"
                if current.precip_rate is not None else NOT_AVAILABLE
            ),
            "pressure": _suffixed(current.pressure, " inHg"),
            "uv": _suffixed(current.uv, ""),
            "solar_radiation": _suffixed(current.solar_radiation, " W/m²"),
            "elevation": _suffixed(current.elevation, " ft"),
        }
    )


@cache_control(no_cache=True, must_revalidate=True, no_store=True)
@require_GET
def weather_forecast(request):
    state, error = _load_state(request)
    if error:
        return error

    units = state.units
    try:
        if state.forecast_type == "hourly":
            periods = [
                {
                    "time": hour.time,
                    "hour": hour.hour_label,
                    "temperature": _optional(format_temperature, hour.temperature, units),
                    "precip_chance": _suffixed(hour.precip_chance, "%"),
                    "wind_speed": _optional(format_wind_speed, hour.wind_speed, units),
                    "conditions": hour.conditions or NOT_AVAILABLE,
                }
                for hour in weather_utils.get_hourly_forecast()
            ]
        else:
            periods = [
                {
                    "date": day.date,
                    "day_of_week": day.day_of_week,
                    "temp_high": _optional(format_temperature, day.temp_high, units),
                    "temp_low": _optional(format_temperature, day.temp_low, units),
                    "precip_chance": _suffixed(day.precip_chance, "%"),
                    "wind_speed": _optional(format_wind_speed, day.wind_speed, units),
                    "conditions": day.conditions or NOT_AVAILABLE,
                }
                for day in weather_utils.get_daily_forecast()
            ]
    except DataUnavailableError:
        return _unavailable("Forecast data")

    return JsonResponse(
        {"units": units.value, "forecast_type": state.forecast_type, "periods": periods}
    )


@cache_control(no_cache=True, must_revalidate=True, no_store=True)
@require_GET
def weather_history(request):
    state, error = _load_state(request)
    if error:
        return error
    try:
        history = weather_utils.get_historical_data(state.history_days)
    except DataUnavailableError:
        return _unavailable("Historical data")

    units = state.units
    days = [
        {
            "date": day.date,
            "temp_high": _optional(format_temperature, day.temp_high, units),
            "temp_low": _optional(format_temperature, day.temp_low, units),
            "humidity": _suffixed(day.humidity, "%"),
            "precip": _optional(format_precipitation, day.precip, units),
            "wind_speed": _optional(format_wind_speed, day.wind_speed, units),
        }
        for day in history
    ]
    # Numbers in display units for the charts.
    chart = {
        "labels": [day.date for day in history],
        "temp_high": _series(convert_temperature, [d.temp_high for d in history], units, 1),
        "temp_low": _series(convert_temperature, [d.temp_low for d in history], units, 1),
        "precip": _series(convert_precipitation, [d.precip for d in history], units, 2),
        "wind_speed": _series(convert_wind_speed, [d.wind_speed for d in history], units, 1),
        "humidity": [day.humidity for day in history],
        "unit_labels": unit_labels(units),
    }
    return JsonResponse(
        {"units": units.value, "days_requested": state.history_days, "days": days, "chart": chart}
    )


# ---------------------------------------------------------------------------
#  Alerts
# ---------------------------------------------------------------------------

@cache_control(no_cache=True, must_revalidate=True, no_store=True)
@require_GET
def alerts(request):
    try:
        active = alerts_utils.get_active_alerts()
    except DataUnavailableError:
        return _unavailable("NWS alert data")

    return JsonResponse(
        {
            "skywarn_status": alerts_utils.skywarn_status(active),
            "alerts": [alert.as_dict() for alert in active],
        }
    )
