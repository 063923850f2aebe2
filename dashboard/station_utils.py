"""Station metadata: callsign, position, grid locator and a location label."""

import logging
from datetime import datetime, timezone

from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ImproperlyConfigured
from geopy.exc import GeocoderServiceError, GeocoderTimedOut
from geopy.geocoders import Nominatim

from .grid_locator_utils import coordinates_to_grid

logger = logging.getLogger(__name__)

_LOCATION_CACHE_KEY = "station_location_label"
_LOCATION_TTL_SECONDS = 24 * 3600  # the station doesn't move
_LOCATION_RETRY_SECONDS = 15 * 60  # after a geocoder failure

UTC_CLOCK_FORMAT = "%H:%M:%S UTC %d %b %Y"


def utc_clock(now=None):
    """"14:05:09 UTC 19 Oct 2026" style timestamp."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime(UTC_CLOCK_FORMAT)


def get_location_label(latitude, longitude):
    """
    Reverse-geocode the station to "City, State" (or the country).
    Returns "" when the geocoder can't help; the label is decoration only.
    """
    label = cache.get(_LOCATION_CACHE_KEY)
    if label is not None:
        return label

    try:
        geolocator = Nominatim(user_agent=settings.NWS_USER_AGENT)
        location = geolocator.reverse(
            (latitude, longitude), exactly_one=True, language="en",
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    except (GeocoderTimedOut, GeocoderServiceError) as exc:
        logger.warning("Reverse geocoding of the station failed: %s", exc)
        cache.set(_LOCATION_CACHE_KEY, "", timeout=_LOCATION_RETRY_SECONDS)
        return ""

    label = ""
    if location:
        address = location.raw.get("address", {})
        city = address.get("city") or address.get("town") or address.get("village")
        state = address.get("state")
        parts = [part for part in (city, state) if part]
        label = ", ".join(parts) or address.get("country", "")

    cache.set(_LOCATION_CACHE_KEY, label, timeout=_LOCATION_TTL_SECONDS)
    return label


def get_station_info(now=None):
    """
    Everything the station panel shows.

    Returns:
        dict with keys "callsign", "latitude", "longitude", "lat_display",
        "lon_display", "grid", "grid_4", "location", "utc_time".
    """
    grid = coordinates_to_grid(settings.STATION_LATITUDE, settings.STATION_LONGITUDE)
    if grid["error"]:
        raise ImproperlyConfigured(f"Station coordinates: {grid['error']}")

    return {
        "callsign": settings.STATION_CALLSIGN,
        "latitude": grid["latitude"],
        "longitude": grid["longitude"],
        "lat_display": grid["lat_display"],
        "lon_display": grid["lon_display"],
        "grid": grid["grid"],
        "grid_4": grid["grid_4"],
        "location": get_location_label(grid["latitude"], grid["longitude"]),
        "utc_time": utc_clock(now),
    }
