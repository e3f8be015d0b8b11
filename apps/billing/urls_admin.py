from django.urls import path

from . import views

app_name = "billing_admin"

urlpatterns = [
    # Collections
    path("billing/aging/", views.aging_report, name="aging_report"),
    path("billing/collections/", views.collection_overview, name="collection_overview"),
    # Jobs
    path("jobs/status/", views.job_status, name="job_status"),
    path("jobs/logs/", views.job_logs, name="job_logs"),
    path("jobs/logs/cleanup/", views.job_logs_cleanup, name="job_logs_cleanup"),
    path("jobs/logs/<uuid:pk>/delete/", views.job_log_delete, name="job_log_delete"),
    path("jobs/trigger/", views.job_trigger, name="job_trigger"),
    path("jobs/summary/", views.job_summary, name="job_summary"),
]
