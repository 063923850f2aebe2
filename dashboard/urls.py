from django.urls import path

from . import views

app_name = "dashboard"

urlpatterns = [
    path("", views.dashboard, name="dashboard"),
    path("station/", views.station, name="station"),
    path("callsign/", views.callsign_lookup, name="callsign_lookup"),
    path("weather/current/", views.weather_current, name="weather_current"),
    path("weather/forecast/", views.weather_forecast, name="weather_forecast"),
    path("weather/history/", views.weather_history, name="weather_history"),
    path("alerts/", views.alerts, name="alerts"),
]
