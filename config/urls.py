from django.contrib import admin
from django.urls import include, path
from django.views.generic import RedirectView

from apps.core.views import health_check, liveness_check, readiness_check

urlpatterns = [
    # Health check endpoints for container orchestration
    path("health/", health_check, name="health_check"),
    path("live/", liveness_check, name="liveness_check"),
    path("ready/", readiness_check, name="readiness_check"),
    # Django admin
    path("django-admin/", admin.site.urls),
    # Admin JSON/CSV endpoints
    path("admin-portal/", include("apps.properties.urls_admin")),
    path("admin-portal/", include("apps.billing.urls_admin")),
    path("", RedirectView.as_view(url="/django-admin/", permanent=False)),
]
