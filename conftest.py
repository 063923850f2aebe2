import os

import django

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "station_dashboard.settings")
os.environ.setdefault("DJANGO_SECRET_KEY", "test-secret")

django.setup()
