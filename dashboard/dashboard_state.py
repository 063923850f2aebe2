"""
Dashboard view state and the events that change it.

The state is an immutable value: which tab is showing, which unit system
readings are rendered in, which forecast and how many days of history.
It travels in the query string, so every request carries the whole state
and the server keeps none.  apply_event() is the only way to move from
one state to the next.

Usage:
    state = DashboardState.from_query(request.GET)
    state = apply_event(state, "toggle_units")
    state.to_query()   # {"tab": "current", "units": "metric", ...}
"""

from dataclasses import dataclass, replace

from .exceptions import InvalidInputError
from .unit_utils import UnitSystem, parse_units
from .weather_utils import DEFAULT_HISTORY_DAYS, HISTORY_DAYS

TABS = ("station", "current", "forecast", "history", "alerts")
DEFAULT_TAB = "current"

FORECAST_TYPES = ("daily", "hourly")
DEFAULT_FORECAST_TYPE = "daily"

EVENTS = (
    "toggle_units",
    "set_units",
    "select_tab",
    "select_forecast",
    "select_days",
    "refresh",
)


@dataclass(frozen=True)
class DashboardState:
    tab: str = DEFAULT_TAB
    units: UnitSystem = UnitSystem.IMPERIAL
    forecast_type: str = DEFAULT_FORECAST_TYPE
    history_days: int = DEFAULT_HISTORY_DAYS

    def __post_init__(self):
        if self.tab not in TABS:
            raise InvalidInputError(f"Unknown tab {self.tab!r}.")
        if self.forecast_type not in FORECAST_TYPES:
            raise InvalidInputError(f"Unknown forecast type {self.forecast_type!r}.")
        if self.history_days not in HISTORY_DAYS:
            raise InvalidInputError(
                f"History covers {', '.join(map(str, HISTORY_DAYS))} days, not {self.history_days!r}."
            )
        # Accept "metric"/"imperial" strings as well as the enum.
        object.__setattr__(self, "units", parse_units(self.units))

    @classmethod
    def from_query(cls, params):
        """Build a state from request.GET-like params; missing keys take defaults."""
        days = params.get("days") or DEFAULT_HISTORY_DAYS
        try:
            days = int(days)
        except (TypeError, ValueError):
            raise InvalidInputError(f"days must be a whole number, not {days!r}.") from None
        return cls(
            tab=params.get("tab") or DEFAULT_TAB,
            units=params.get("units") or UnitSystem.IMPERIAL,
            forecast_type=params.get("forecast") or DEFAULT_FORECAST_TYPE,
            history_days=days,
        )

    def to_query(self):
        return {
            "tab": self.tab,
            "units": self.units.value,
            "forecast": self.forecast_type,
            "days": str(self.history_days),
        }


def apply_event(state, event, value=None):
    """
    Return the state that follows *state* after *event*.

    Events:
        toggle_units             imperial <-> metric
        set_units <units>        pick a unit system outright
        select_tab <tab>         switch the visible tab
        select_forecast <type>   "daily" or "hourly"
        select_days <n>          history window (3, 7, 14 or 30)
        refresh                  no state change; the caller re-fetches data

    Raises InvalidInputError for unknown events or bad values.
    """
    if event == "toggle_units":
        return replace(state, units=state.units.toggled())
    if event == "set_units":
        return replace(state, units=parse_units(value))
    if event == "select_tab":
        return replace(state, tab=value)
    if event == "select_forecast":
        return replace(state, forecast_type=value)
    if event == "select_days":
        try:
            days = int(value)
        except (TypeError, ValueError):
            raise InvalidInputError(f"days must be a whole number, not {value!r}.") from None
        return replace(state, history_days=days)
    if event == "refresh":
        return state
    raise InvalidInputError(f"Unknown event {event!r}; expected one of {', '.join(EVENTS)}.")
