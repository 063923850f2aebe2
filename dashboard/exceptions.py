"""Exceptions raised by the dashboard utilities."""


class DashboardError(Exception):
    """Base class for every error the dashboard raises on purpose."""


class InvalidInputError(DashboardError, ValueError):
    """Raised for out-of-range coordinates, non-finite numbers or unknown units."""


class DataUnavailableError(DashboardError):
    """
    Raised when an upstream data source (weather, callsign directory, alerts)
    cannot be reached or returns something we can't parse.

    Views turn this into a "data unavailable" response; the client retries on
    its next poll.
    """

    def __init__(self, source, message):
        self.source = source
        super().__init__(f"{source}: {message}")
