"""
Maidenhead grid locators for the station dashboard.

A locator is built from pairs of characters, longitude first in each pair,
every pair subdividing the cell named by the one before it:

    pair 1   letters A-R   18 x 18 fields       20 deg lon x 10 deg lat
    pair 2   digits  0-9   10 x 10 squares       2 deg lon x  1 deg lat
    pair 3   letters a-x   24 x 24 subsquares    5 min lon x  2.5 min lat
    pair 4   digits  0-9   10 x 10 extended     30 sec lon x 15 sec lat

The station's own locator is always 6 characters.  Locators returned by the
callsign directory may be 4, 6 or 8 characters long; grid_to_coordinates()
turns those back into a point on the map.

See https://en.wikipedia.org/wiki/Maidenhead_Locator_System
"""

import math
import re

from .exceptions import InvalidInputError

# ---------------------------------------------------------------------------
#  Validation
# ---------------------------------------------------------------------------

# Case-insensitive shapes accepted from user input or a directory record.
GRID_4_RE = re.compile(r"^[A-Ra-r]{2}[0-9]{2}$")
GRID_6_RE = re.compile(r"^[A-Ra-r]{2}[0-9]{2}[A-Xa-x]{2}$")
GRID_8_RE = re.compile(r"^[A-Ra-r]{2}[0-9]{2}[A-Xa-x]{2}[0-9]{2}$")
_GRID_PATTERNS = {4: GRID_4_RE, 6: GRID_6_RE, 8: GRID_8_RE}

# Strict form of a computed 6-character locator.
LOCATOR_RE = re.compile(r"^[A-R]{2}[0-9]{2}[a-x]{2}$")

# (lon cell size, lat cell size, symbol base) for each character pair.
_PAIRS = (
    (20.0, 10.0, "A"),
    (2.0, 1.0, "0"),
    (2.0 / 24.0, 1.0 / 24.0, "a"),
    (2.0 / 240.0, 1.0 / 240.0, "0"),
)


def _require_number(value, name):
    """Coerce *value* to float, rejecting None, junk and NaN/Infinity."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be a number, not {value!r}.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{name} must be a number, not {value!r}.") from None
    if not math.isfinite(number):
        raise InvalidInputError(f"{name} must be finite, got {value!r}.")
    return number


def validate_grid_square(grid):
    """
    Check a locator typed by a user or returned by a lookup.

    Returns:
        (normalized, None) on success, where the field letters are upper
        case and the subsquare letters lower case ("em12OS" -> "EM12os"),
        or (None, message) when *grid* isn't a 4, 6 or 8 character locator.
    """
    if not isinstance(grid, str) or not grid.strip():
        return None, "Please enter a grid square."

    grid = grid.strip()
    pattern = _GRID_PATTERNS.get(len(grid))
    if pattern is None:
        return None, f"“{grid}” is not a grid square; use 4, 6 or 8 characters such as EM12 or EM12os."
    if not pattern.match(grid):
        return None, f"“{grid}” is not a valid grid square (expected e.g. EM12, EM12os or EM12os47)."

    return grid[:4].upper() + grid[4:6].lower() + grid[6:], None


def validate_coordinates(lat, lon):
    """
    Error message for an unusable (lat, lon) pair, or None.

    Longitude may be any finite number; it is wrapped into [-180, 180)
    before encoding.
    """
    if lat is None or lon is None:
        return "Please enter both latitude and longitude."

    try:
        lat = _require_number(lat, "Latitude")
        _require_number(lon, "Longitude")
    except InvalidInputError as exc:
        return str(exc)

    if not -90.0 <= lat <= 90.0:
        return f"Latitude must be between -90 and 90, got {lat}."
    return None


# ---------------------------------------------------------------------------
#  Coordinates → Grid Locator (encode)
# ---------------------------------------------------------------------------

def normalize_longitude(lon):
    """Wrap any longitude into [-180, 180)."""
    lon = ((lon + 180.0) % 360.0) - 180.0
    # Float % can return the divisor itself for a tiny negative operand.
    if lon >= 180.0:
        lon -= 360.0
    return lon


def calculate_grid_locator(lat, lon):
    """
    Return the 6-character Maidenhead locator for (lat, lon).

    >>> calculate_grid_locator(32.7767, -96.7970)
    'EM12os'

    Raises InvalidInputError when latitude is outside [-90, 90] or either
    value is not a finite number.
    """
    lat = _require_number(lat, "Latitude")
    lon = _require_number(lon, "Longitude")
    if not (-90.0 <= lat <= 90.0):
        raise InvalidInputError(f"Latitude must be between -90 and 90, got {lat}.")

    # Measure from the southwest corner of AA00.
    adjusted_lon = normalize_longitude(lon) + 180.0
    adjusted_lat = lat + 90.0

    # Field.
    lon_field = math.floor(adjusted_lon / 20.0)
    lat_field = math.floor(adjusted_lat / 10.0)

    # Square.
    lon_sq = math.floor((adjusted_lon % 20.0) / 2.0)
    lat_sq = math.floor(adjusted_lat % 10.0)

    # Subsquare, 24 per square on each axis.
    lon_sub = math.floor((adjusted_lon % 2.0) * 12.0)
    lat_sub = math.floor((adjusted_lat % 1.0) * 24.0)

    # The north pole sits on the outer edge of the grid; keep it in the top row (R, 9, x).
    if lat_field > 17:
        lat_field, lat_sq, lat_sub = 17, 9, 23

    return (
        chr(ord("A") + lon_field)
        + chr(ord("A") + lat_field)
        + str(lon_sq)
        + str(lat_sq)
        + chr(ord("a") + lon_sub)
        + chr(ord("a") + lat_sub)
    )


def coordinates_to_grid(lat, lon):
    """
    Grid locator plus formatted coordinates, for the station panel.

    Latitude must lie in [-90, 90]; any finite longitude is wrapped into
    [-180, 180) first.

    Returns:
        dict with keys "grid" (6 characters), "grid_4", "latitude",
        "longitude" (normalized), "lat_display", "lon_display" and "error".
        Only "error" is present when the coordinates are unusable.
    """
    error = validate_coordinates(lat, lon)
    if error:
        return {"error": error}

    lat = float(lat)
    lon = normalize_longitude(float(lon))
    grid = calculate_grid_locator(lat, lon)

    return {
        "grid": grid,
        "grid_4": grid[:4],
        "latitude": round(lat, 6),
        "longitude": round(lon, 6),
        "lat_display": format_coordinate(lat, "lat"),
        "lon_display": format_coordinate(lon, "lon"),
        "error": None,
    }


# ---------------------------------------------------------------------------
#  Grid Locator → Coordinates (decode)
# ---------------------------------------------------------------------------

def grid_to_coordinates(grid):
    """
    Decode a 4, 6 or 8 character locator to the cell it names.

    Used to place an operator found by callsign lookup relative to the
    station.

    Returns:
        dict with keys "latitude"/"longitude" (cell center), "lat_display",
        "lon_display", "bbox" {lat_min, lat_max, lon_min, lon_max}, "grid"
        (normalized) and "error".  Only "error" is present on failure.
    """
    grid, error = validate_grid_square(grid)
    if error:
        return {"error": error}

    lon, lat = -180.0, -90.0
    lon_size = lat_size = 0.0
    for index, (lon_size, lat_size, base) in enumerate(_PAIRS[: len(grid) // 2]):
        pair = grid[2 * index: 2 * index + 2]
        lon += (ord(pair[0]) - ord(base)) * lon_size
        lat += (ord(pair[1]) - ord(base)) * lat_size

    center_lat = lat + lat_size / 2.0
    center_lon = lon + lon_size / 2.0

    return {
        "latitude": round(center_lat, 6),
        "longitude": round(center_lon, 6),
        "lat_display": format_coordinate(center_lat, "lat"),
        "lon_display": format_coordinate(center_lon, "lon"),
        "bbox": {
            "lat_min": round(lat, 6),
            "lat_max": round(lat + lat_size, 6),
            "lon_min": round(lon, 6),
            "lon_max": round(lon + lon_size, 6),
        },
        "grid": grid,
        "error": None,
    }


# ---------------------------------------------------------------------------
#  Coordinate formatting
# ---------------------------------------------------------------------------

def format_coordinate(value, axis):
    """32.7767 -> "32.7767° N", -96.797 -> "96.7970° W" (axis is "lat" or "lon")."""
    if axis == "lat":
        direction = "N" if value >= 0 else "S"
    else:
        direction = "E" if value >= 0 else "W"

    return f"{abs(value):.4f}° {direction}"
