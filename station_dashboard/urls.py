from django.urls import include, path, re_path
from django.views.generic.base import RedirectView

urlpatterns = [
    path("", include("dashboard.urls")),
    # Old single-page paths.
    re_path(r"^dashboard/?$", RedirectView.as_view(url="/", permanent=True)),
    re_path(r"^weather/?$", RedirectView.as_view(url="/weather/current/", permanent=True)),
]
