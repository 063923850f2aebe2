"""
Active weather alerts for the station from the National Weather Service.

api.weather.gov returns a GeoJSON FeatureCollection; each feature's
properties carry the event, headline, severity and expiry we display.
Skywarn spotter activation is inferred from the alert severities.
"""

import logging
from dataclasses import dataclass, asdict
from enum import Enum

import requests
from django.conf import settings
from django.core.cache import cache

from .exceptions import DataUnavailableError

logger = logging.getLogger(__name__)

NWS_ALERTS_URL = "https://api.weather.gov/alerts/active"
NWS_ALERTS_WEB_URL = "https://www.weather.gov/alerts"

CACHE_KEY_ALERTS = "nws_alerts"


class AlertSeverity(str, Enum):
    EXTREME = "Extreme"
    SEVERE = "Severe"
    MODERATE = "Moderate"
    MINOR = "Minor"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value):
        for member in cls:
            if member.value.lower() == (value or "").strip().lower():
                return member
        return cls.UNKNOWN

    @property
    def rank(self):
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.EXTREME: 4,
    AlertSeverity.SEVERE: 3,
    AlertSeverity.MODERATE: 2,
    AlertSeverity.MINOR: 1,
    AlertSeverity.UNKNOWN: 0,
}

# Severities that put local Skywarn spotters on alert.
ACTIVATING_SEVERITIES = {AlertSeverity.EXTREME, AlertSeverity.SEVERE}


@dataclass(frozen=True)
class WeatherAlert:
    id: str
    event: str
    headline: str
    description: str
    severity: AlertSeverity
    expires: str
    url: str

    def as_dict(self):
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


def parse_alerts(payload):
    """Map an alerts FeatureCollection to WeatherAlerts, most severe first."""
    alerts = []
    for feature in payload.get("features", []):
        props = feature.get("properties") or {}
        alerts.append(
            WeatherAlert(
                id=props.get("id") or feature.get("id", ""),
                event=props.get("event", "Unknown"),
                headline=props.get("headline") or "",
                description=props.get("description") or "",
                severity=AlertSeverity.parse(props.get("severity")),
                expires=props.get("expires") or "",
                url=props.get("@id") or feature.get("id") or NWS_ALERTS_WEB_URL,
            )
        )
    alerts.sort(key=lambda alert: alert.severity.rank, reverse=True)
    return alerts


def skywarn_status(alerts):
    """"Active" when any alert is severe enough to activate spotters."""
    if any(alert.severity in ACTIVATING_SEVERITIES for alert in alerts):
        return "Active"
    return "Inactive"


def get_active_alerts():
    """Active alerts for the station's point, cached for one poll cycle."""
    alerts = cache.get(CACHE_KEY_ALERTS)
    if alerts is not None:
        return alerts

    params = {
        "point": f"{settings.STATION_LATITUDE:.4f},{settings.STATION_LONGITUDE:.4f}",
        "status": "actual",
    }
    headers = {
        "User-Agent": settings.NWS_USER_AGENT,
        "Accept": "application/geo+json",
    }
    try:
        response = requests.get(
            NWS_ALERTS_URL, params=params, headers=headers,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        alerts = parse_alerts(response.json())
    except (requests.RequestException, ValueError) as exc:
        logger.warning("NWS alerts request failed: %s", exc)
        raise DataUnavailableError("alerts", str(exc)) from exc
    except (AttributeError, TypeError) as exc:
        logger.exception("Unexpected NWS alerts payload")
        raise DataUnavailableError("alerts", "malformed alerts response") from exc

    cache.set(CACHE_KEY_ALERTS, alerts, timeout=settings.DASHBOARD_REFRESH_SECONDS)
    logger.info("Fetched %d active NWS alerts", len(alerts))
    return alerts


def clear_alerts_cache():
    cache.delete(CACHE_KEY_ALERTS)
