"""WSGI entry point for the station dashboard."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "station_dashboard.settings")

application = get_wsgi_application()
