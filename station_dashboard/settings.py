"""Django settings for the station dashboard."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-insecure-key")
DEBUG = os.environ.get("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

INSTALLED_APPS = [
    "django.contrib.staticfiles",
    "dashboard",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "station_dashboard.urls"
WSGI_APPLICATION = "station_dashboard.wsgi.application"

# The dashboard keeps no records of its own.
DATABASES = {}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "station-dashboard",
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

STATIC_URL = "static/"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "dashboard": {
            "handlers": ["console"],
            "level": os.environ.get("DASHBOARD_LOG_LEVEL", "INFO"),
        },
    },
}

# ---------------------------------------------------------------------------
#  Station
# ---------------------------------------------------------------------------

STATION_CALLSIGN = os.environ.get("STATION_CALLSIGN", "KJ5IRQ")
STATION_LATITUDE = float(os.environ.get("STATION_LATITUDE", "32.7767"))
STATION_LONGITUDE = float(os.environ.get("STATION_LONGITUDE", "-96.7970"))
PWS_STATION_ID = os.environ.get("PWS_STATION_ID", "KTXMINER45")

# ---------------------------------------------------------------------------
#  Upstream services
# ---------------------------------------------------------------------------

WEATHER_COM_API_KEY = os.environ.get("WEATHER_COM_API_KEY", "")
# api.weather.gov rejects requests without a descriptive User-Agent.
NWS_USER_AGENT = os.environ.get(
    "NWS_USER_AGENT", f"Station Dashboard ({STATION_CALLSIGN})"
)
HTTP_TIMEOUT_SECONDS = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "10"))

# One poll cycle; upstream data is cached this long.
DASHBOARD_REFRESH_SECONDS = int(os.environ.get("DASHBOARD_REFRESH_SECONDS", "300"))
