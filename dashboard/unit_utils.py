"""
Unit conversion and display formatting for weather readings.

Every reading the dashboard receives is stored in imperial units
(°F, mph, inches).  Metric is only ever a display projection: the
formatters below take the imperial value plus the viewer's unit
preference and return a string, leaving the source value untouched.

Usage:
    from .unit_utils import format_temperature, UnitSystem

    format_temperature(72.5, "imperial")        # "72.5°F"
    format_temperature(72.5, UnitSystem.METRIC) # "22.5°C"
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from .exceptions import InvalidInputError

MPH_TO_KMH = 1.60934
INCHES_TO_MM = 25.4


class UnitSystem(str, Enum):
    IMPERIAL = "imperial"
    METRIC = "metric"

    def toggled(self):
        if self is UnitSystem.IMPERIAL:
            return UnitSystem.METRIC
        return UnitSystem.IMPERIAL


def parse_units(value):
    """
    Return the UnitSystem for *value* ("imperial"/"metric", any case, or a
    UnitSystem member).  Anything else raises InvalidInputError.
    """
    if isinstance(value, UnitSystem):
        return value
    if isinstance(value, str):
        try:
            return UnitSystem(value.strip().lower())
        except ValueError:
            pass
    raise InvalidInputError(
        f"Unknown unit system {value!r}; expected 'imperial' or 'metric'."
    )


def _finite(value, name):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{name} must be a number, not {value!r}.")
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} must be finite, got {value!r}.")
    return float(value)


# ---------------------------------------------------------------------------
#  Conversions
# ---------------------------------------------------------------------------

def fahrenheit_to_celsius(fahrenheit):
    return (_finite(fahrenheit, "Temperature") - 32) * 5 / 9


def celsius_to_fahrenheit(celsius):
    return _finite(celsius, "Temperature") * 9 / 5 + 32


def convert_temperature(temp_f, units):
    """Temperature in the display unit, as a number (for chart series)."""
    if parse_units(units) is UnitSystem.METRIC:
        return fahrenheit_to_celsius(temp_f)
    return _finite(temp_f, "Temperature")


def convert_wind_speed(speed_mph, units):
    speed_mph = _finite(speed_mph, "Wind speed")
    if parse_units(units) is UnitSystem.METRIC:
        return speed_mph * MPH_TO_KMH
    return speed_mph


def convert_precipitation(inches, units):
    inches = _finite(inches, "Precipitation")
    if parse_units(units) is UnitSystem.METRIC:
        return inches * INCHES_TO_MM
    return inches


# ---------------------------------------------------------------------------
#  Formatting
# ---------------------------------------------------------------------------

def fixed(value, places):
    """
    *value* with exactly *places* decimals, ties rounded away from zero.

    Rounds the exact binary value of the float, so 72.25 -> "72.3" and
    0.125 -> "0.13" (the :.1f format spec would round those to even).
    """
    exponent = Decimal(1).scaleb(-places)
    return format(Decimal(value).quantize(exponent, rounding=ROUND_HALF_UP), "f")


def format_temperature(temp_f, units):
    """72.5 → "72.5°F", or "22.5°C" when *units* is metric."""
    if parse_units(units) is UnitSystem.METRIC:
        return f"{fixed(fahrenheit_to_celsius(temp_f), 1)}°C"
    return f"{fixed(_finite(temp_f, 'Temperature'), 1)}°F"


def format_wind_speed(speed_mph, units):
    """5.8 → "5.8 mph", or "9.3 km/h" when *units* is metric."""
    if parse_units(units) is UnitSystem.METRIC:
        return f"{fixed(convert_wind_speed(speed_mph, units), 1)} km/h"
    return f"{fixed(_finite(speed_mph, 'Wind speed'), 1)} mph"


def format_precipitation(inches, units):
    """0.05 → "0.05 in", or "1.3 mm" when *units* is metric."""
    if parse_units(units) is UnitSystem.METRIC:
        return f"{fixed(convert_precipitation(inches, units), 1)} mm"
    return f"{fixed(_finite(inches, 'Precipitation'), 2)} in"


UNIT_LABELS = {
    UnitSystem.IMPERIAL: {"temperature": "°F", "wind_speed": "mph", "precipitation": "in"},
    UnitSystem.METRIC: {"temperature": "°C", "wind_speed": "km/h", "precipitation": "mm"},
}


def unit_labels(units):
    """Axis/legend suffixes for each measurement kind in *units*."""
    return dict(UNIT_LABELS[parse_units(units)])
