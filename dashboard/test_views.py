from dataclasses import replace
from datetime import datetime, timezone
from unittest.mock import patch

from django.core.cache import cache
from django.test import SimpleTestCase, override_settings
from django.urls import reverse

from .alerts_utils import AlertSeverity, WeatherAlert
from .exceptions import DataUnavailableError
from .ham_utils import CallsignRecord
from .station_utils import get_station_info, utc_clock
from .weather_utils import CurrentConditions, DailyForecast, HistoricalDay, HourlyForecast

CURRENT = CurrentConditions(
    station_id="KTXMINER45",
    observed_at="2026-10-19 14:05:00",
    conditions=None,
    temperature=72.5,
    heat_index=None,
    dew_point=60.8,
    wind_chill=72.5,
    wind_speed=5.8,
    wind_gust=12.3,
    wind_direction=180,
    pressure=29.92,
    precip_rate=0.0,
    precip_total=0.05,
    elevation=500,
    humidity=65,
    uv=4.2,
    solar_radiation=None,
)

DAILY = [
    DailyForecast("2026-10-19", "Mon", 84, 66, 20, 6, "Partly Cloudy"),
    DailyForecast("2026-10-20", "Tue", None, 61, 70, 14, "Thunderstorms"),
]

HOURLY = [HourlyForecast("2026-10-19T13:00:00-0500", "1 PM", 82, 35, 9, "Partly Cloudy")]

HISTORY = [
    HistoricalDay("2026-10-17", 81, 63, 58, 0.31, 6.7),
    HistoricalDay("2026-10-18", 212, 32, 71, 0.0, None),
]


class DashboardViewTests(SimpleTestCase):
    """State handling and event transitions."""

    def test_default_state(self):
        response = self.client.get(reverse("dashboard:dashboard"))
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["state"], {"tab": "current", "units": "imperial", "forecast": "daily", "days": "7"})
        self.assertEqual(data["unit_labels"]["temperature"], "°F")
        self.assertIn("units=imperial", data["endpoints"]["current"])

    def test_toggle_units(self):
        response = self.client.get(reverse("dashboard:dashboard"), {"event": "toggle_units"})
        data = response.json()
        self.assertEqual(data["state"]["units"], "metric")
        self.assertTrue(data["endpoints"]["history"].startswith(reverse("dashboard:weather_history")))
        self.assertIn("units=metric", data["endpoints"]["history"])

    def test_select_tab(self):
        response = self.client.get(
            reverse("dashboard:dashboard"), {"units": "metric", "event": "select_tab", "value": "alerts"}
        )
        self.assertEqual(response.json()["state"]["tab"], "alerts")
        self.assertEqual(response.json()["state"]["units"], "metric")

    def test_event_missing_value(self):
        response = self.client.get(reverse("dashboard:dashboard"), {"event": "select_tab"})
        self.assertEqual(response.status_code, 400)

    def test_unknown_event(self):
        response = self.client.get(reverse("dashboard:dashboard"), {"event": "reboot"})
        self.assertEqual(response.status_code, 400)

    def test_bad_event_value(self):
        response = self.client.get(
            reverse("dashboard:dashboard"), {"event": "select_days", "value": "5"}
        )
        self.assertEqual(response.status_code, 400)

    def test_bad_state(self):
        response = self.client.get(reverse("dashboard:dashboard"), {"tab": "settings"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    @patch("dashboard.alerts_utils.clear_alerts_cache")
    @patch("dashboard.weather_utils.clear_weather_cache")
    def test_refresh_clears_tab_data(self, mock_weather, mock_alerts):
        self.client.get(reverse("dashboard:dashboard"), {"tab": "alerts", "event": "refresh"})
        mock_alerts.assert_called_once()
        mock_weather.assert_not_called()

        self.client.get(reverse("dashboard:dashboard"), {"tab": "history", "event": "refresh"})
        mock_weather.assert_called_once()

    def test_post_not_allowed(self):
        response = self.client.post(reverse("dashboard:dashboard"))
        self.assertEqual(response.status_code, 405)


class CurrentWeatherViewTests(SimpleTestCase):

    @patch("dashboard.weather_utils.get_current_conditions", return_value=CURRENT)
    def test_imperial(self, _):
        data = self.client.get(reverse("dashboard:weather_current")).json()
        self.assertEqual(data["temperature"], "72.5°F")
        self.assertEqual(data["wind_speed"], "5.8 mph")
        self.assertEqual(data["precip_total"], "0.05 in")
        self.assertEqual(data["precip_rate"], "0.00 in/hr")
        self.assertEqual(data["humidity"], "65%")
        self.assertEqual(data["wind_direction"], "180°")
        self.assertEqual(data["pressure"], "29.92 inHg")
        self.assertEqual(data["conditions"], "Clear")

    @patch("dashboard.weather_utils.get_current_conditions", return_value=CURRENT)
    def test_metric(self, _):
        data = self.client.get(reverse("dashboard:weather_current"), {"units": "metric"}).json()
        self.assertEqual(data["units"], "metric")
        self.assertEqual(data["temperature"], "22.5°C")
        self.assertEqual(data["wind_speed"], "9.3 km/h")
        self.assertEqual(data["precip_total"], "1.3 mm")

    @patch("dashboard.weather_utils.get_current_conditions", return_value=CURRENT)
    def test_missing_readings(self, _):
        data = self.client.get(reverse("dashboard:weather_current")).json()
        self.assertEqual(data["feels_like"], "N/A")
        self.assertEqual(data["solar_radiation"], "N/A")

    @patch("dashboard.weather_utils.get_current_conditions")
    def test_temperature_sensor_offline(self, mock_current):
        mock_current.return_value = replace(CURRENT, temperature=None)
        response = self.client.get(reverse("dashboard:weather_current"), {"units": "metric"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["temperature"], "N/A")
        self.assertEqual(response.json()["wind_speed"], "9.3 km/h")

    @patch("dashboard.weather_utils.get_current_conditions")
    def test_unavailable(self, mock_current):
        mock_current.side_effect = DataUnavailableError("weather", "timeout")
        response = self.client.get(reverse("dashboard:weather_current"))
        self.assertEqual(response.status_code, 503)
        self.assertFalse(response.json()["available"])

    def test_bad_units(self):
        response = self.client.get(reverse("dashboard:weather_current"), {"units": "kelvin"})
        self.assertEqual(response.status_code, 400)


class ForecastViewTests(SimpleTestCase):

    @patch("dashboard.weather_utils.get_daily_forecast", return_value=DAILY)
    def test_daily(self, _):
        data = self.client.get(reverse("dashboard:weather_forecast"), {"units": "metric"}).json()
        self.assertEqual(data["forecast_type"], "daily")
        self.assertEqual(data["periods"][0]["temp_high"], "28.9°C")
        self.assertEqual(data["periods"][0]["precip_chance"], "20%")
        self.assertEqual(data["periods"][1]["temp_high"], "N/A")

    @patch("dashboard.weather_utils.get_hourly_forecast", return_value=HOURLY)
    def test_hourly(self, _):
        data = self.client.get(reverse("dashboard:weather_forecast"), {"forecast": "hourly"}).json()
        self.assertEqual(data["forecast_type"], "hourly")
        self.assertEqual(data["periods"][0]["hour"], "1 PM")
        self.assertEqual(data["periods"][0]["temperature"], "82.0°F")
        self.assertEqual(data["periods"][0]["wind_speed"], "9.0 mph")

    @patch("dashboard.weather_utils.get_hourly_forecast")
    def test_hourly_missing_temperature(self, mock_hourly):
        mock_hourly.return_value = [replace(HOURLY[0], temperature=None)]
        response = self.client.get(reverse("dashboard:weather_forecast"), {"forecast": "hourly"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["periods"][0]["temperature"], "N/A")

    @patch("dashboard.weather_utils.get_daily_forecast")
    def test_unavailable(self, mock_daily):
        mock_daily.side_effect = DataUnavailableError("weather", "500")
        response = self.client.get(reverse("dashboard:weather_forecast"))
        self.assertEqual(response.status_code, 503)


class HistoryViewTests(SimpleTestCase):

    @patch("dashboard.weather_utils.get_historical_data", return_value=HISTORY)
    def test_metric_chart_series(self, mock_history):
        data = self.client.get(
            reverse("dashboard:weather_history"), {"units": "metric", "days": "14"}
        ).json()

        mock_history.assert_called_once_with(14)
        self.assertEqual(data["days_requested"], 14)
        self.assertEqual(data["chart"]["labels"], ["2026-10-17", "2026-10-18"])
        self.assertEqual(data["chart"]["temp_high"][1], 100.0)
        self.assertEqual(data["chart"]["temp_low"][1], 0.0)
        self.assertEqual(data["chart"]["precip"][0], 7.87)
        self.assertEqual(data["chart"]["wind_speed"], [10.8, None])
        self.assertEqual(data["chart"]["unit_labels"]["precipitation"], "mm")
        self.assertEqual(data["days"][0]["precip"], "7.9 mm")
        self.assertEqual(data["days"][1]["wind_speed"], "N/A")

    @patch("dashboard.weather_utils.get_historical_data", return_value=HISTORY)
    def test_imperial_rows(self, _):
        data = self.client.get(reverse("dashboard:weather_history")).json()
        self.assertEqual(data["days"][0]["temp_high"], "81.0°F")
        self.assertEqual(data["days"][0]["humidity"], "58%")
        self.assertEqual(data["chart"]["temp_high"], [81.0, 212.0])

    def test_unsupported_days(self):
        response = self.client.get(reverse("dashboard:weather_history"), {"days": "5"})
        self.assertEqual(response.status_code, 400)


class CallsignViewTests(SimpleTestCase):

    @patch("dashboard.views.lookup_callsign")
    def test_found(self, mock_lookup):
        mock_lookup.return_value = (
            CallsignRecord("KJ5IRQ", "John Doe", "United States", "TX", "EM12dx", "Amateur Extra", "12/31/2030"),
            None,
        )
        response = self.client.get(reverse("dashboard:callsign_lookup"), {"callsign": "kj5irq"})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        mock_lookup.assert_called_once_with("KJ5IRQ")
        self.assertEqual(data["grid"], "EM12dx")
        self.assertEqual(data["qrz_url"], "https://www.qrz.com/db/KJ5IRQ")
        self.assertIsNone(data["grid_location"]["error"])

    @patch("dashboard.views.lookup_callsign", return_value=(None, "“W9ZZZ” is not a valid amateur-radio call sign."))
    def test_not_found(self, _):
        response = self.client.get(reverse("dashboard:callsign_lookup"), {"callsign": "W9ZZZ"})
        self.assertEqual(response.status_code, 404)

    def test_missing_callsign(self):
        response = self.client.get(reverse("dashboard:callsign_lookup"))
        self.assertEqual(response.status_code, 400)

    def test_malformed_callsign(self):
        response = self.client.get(reverse("dashboard:callsign_lookup"), {"callsign": "hello"})
        self.assertEqual(response.status_code, 400)

    @patch("dashboard.views.lookup_callsign", side_effect=DataUnavailableError("callsign", "timeout"))
    def test_directory_down(self, _):
        response = self.client.get(reverse("dashboard:callsign_lookup"), {"callsign": "KJ5IRQ"})
        self.assertEqual(response.status_code, 503)


class AlertsViewTests(SimpleTestCase):

    @patch("dashboard.alerts_utils.get_active_alerts")
    def test_alerts(self, mock_alerts):
        mock_alerts.return_value = [
            WeatherAlert("1", "Flash Flood Warning", "Flash Flood Warning for Dallas County",
                         "", AlertSeverity.SEVERE, "2026-10-19T20:00:00-05:00",
                         "https://api.weather.gov/alerts/1"),
        ]
        data = self.client.get(reverse("dashboard:alerts")).json()
        self.assertEqual(data["skywarn_status"], "Active")
        self.assertEqual(data["alerts"][0]["severity"], "Severe")

    @patch("dashboard.alerts_utils.get_active_alerts", return_value=[])
    def test_no_alerts(self, _):
        data = self.client.get(reverse("dashboard:alerts")).json()
        self.assertEqual(data, {"skywarn_status": "Inactive", "alerts": []})

    @patch("dashboard.alerts_utils.get_active_alerts", side_effect=DataUnavailableError("alerts", "down"))
    def test_unavailable(self, _):
        self.assertEqual(self.client.get(reverse("dashboard:alerts")).status_code, 503)


@override_settings(STATION_CALLSIGN="KJ5IRQ", STATION_LATITUDE=32.7767, STATION_LONGITUDE=-96.797)
class StationTests(SimpleTestCase):

    def setUp(self):
        cache.clear()

    def test_utc_clock(self):
        now = datetime(2026, 10, 19, 14, 5, 9, tzinfo=timezone.utc)
        self.assertEqual(utc_clock(now), "14:05:09 UTC 19 Oct 2026")

    @patch("dashboard.station_utils.get_location_label", return_value="Dallas, Texas")
    def test_station_info(self, _):
        info = get_station_info(datetime(2026, 10, 19, 14, 5, 9, tzinfo=timezone.utc))
        self.assertEqual(info["callsign"], "KJ5IRQ")
        self.assertEqual(info["grid"], "EM12os")
        self.assertEqual(info["lat_display"], "32.7767° N")
        self.assertEqual(info["lon_display"], "96.7970° W")
        self.assertEqual(info["location"], "Dallas, Texas")
        self.assertEqual(info["utc_time"], "14:05:09 UTC 19 Oct 2026")

    @patch("dashboard.station_utils.Nominatim")
    def test_location_label_cached(self, mock_nominatim):
        location = mock_nominatim.return_value.reverse.return_value
        location.raw = {"address": {"city": "Dallas", "state": "Texas", "country": "United States"}}

        response = self.client.get(reverse("dashboard:station"))
        self.client.get(reverse("dashboard:station"))

        self.assertEqual(response.json()["location"], "Dallas, Texas")
        self.assertEqual(mock_nominatim.return_value.reverse.call_count, 1)

    @patch("dashboard.station_utils.Nominatim")
    def test_geocoder_failure_is_not_fatal(self, mock_nominatim):
        from geopy.exc import GeocoderTimedOut

        mock_nominatim.return_value.reverse.side_effect = GeocoderTimedOut("slow")
        response = self.client.get(reverse("dashboard:station"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["location"], "")
        self.assertEqual(response.json()["grid"], "EM12os")

    @patch("dashboard.station_utils.Nominatim")
    def test_geocoder_failure_is_not_retried_every_poll(self, mock_nominatim):
        from geopy.exc import GeocoderServiceError

        mock_nominatim.return_value.reverse.side_effect = GeocoderServiceError("503")
        self.client.get(reverse("dashboard:station"))
        response = self.client.get(reverse("dashboard:station"))

        self.assertEqual(response.json()["location"], "")
        self.assertEqual(mock_nominatim.return_value.reverse.call_count, 1)
