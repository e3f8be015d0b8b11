import csv
import io
import json
from datetime import date, timedelta

import pytest
from django.urls import reverse
from django.utils import timezone

from apps.billing.locks import DatabaseJobLock
from apps.billing.models import JobRun, RentCycle
from apps.billing.services import RENT_JOB_NAME
from apps.core.clock import FixedClock
from apps.properties.models import OccupancySnapshot, Unit

pytestmark = pytest.mark.django_db


@pytest.fixture(autouse=True)
def frozen(monkeypatch):
    clock = FixedClock(date(2024, 5, 20))
    monkeypatch.setattr("apps.billing.views.Clock", lambda: clock)
    monkeypatch.setattr("apps.properties.views.Clock", lambda: clock)
    return clock


def body(response):
    return json.loads(response.content)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health/")
        assert response.status_code == 200
        data = body(response)
        assert data["status"] == "healthy"
        assert data["checks"]["database"] == "connected"
        assert data["checks"]["rent_generation"] == "never_run"

    def test_health_reports_last_rent_run(self, client):
        JobRun.objects.create(job_name=RENT_JOB_NAME, status="failed", started_at=timezone.now())
        response = client.get("/health/")
        assert response.status_code == 200
        assert body(response)["checks"]["rent_generation"]["status"] == "failed"

    def test_probes(self, client):
        assert body(client.get("/live/")) == {"status": "alive"}
        assert body(client.get("/ready/")) == {"status": "ready"}


class TestAccess:
    def test_anonymous_is_sent_to_login(self, client):
        url = reverse("billing_admin:aging_report")
        response = client.get(url)
        assert response.status_code == 302
        assert response["Location"] == f"/django-admin/login/?next={url}"

    def test_tenant_is_forbidden(self, client, make_tenant):
        client.force_login(make_tenant())
        assert client.get(reverse("billing_admin:job_status")).status_code == 403


class TestCollections:
    def test_aging_json(self, admin_client, make_payment):
        make_payment(due_date=date(2024, 5, 1))
        make_payment(due_date=date(2024, 5, 1), status="paid")

        response = admin_client.get(reverse("billing_admin:aging_report"))

        assert response.status_code == 200
        data = body(response)["data"]
        assert data["as_of"] == "2024-05-20"
        assert data["total_count"] == 1
        assert data["buckets"]["16-30"]["count"] == 1

    def test_aging_filtered_by_building(self, admin_client, make_payment):
        make_payment()
        other = "00000000-0000-0000-0000-000000000000"
        response = admin_client.get(reverse("billing_admin:aging_report"), {"building": other})
        assert body(response)["data"]["total_count"] == 0

    def test_aging_csv(self, admin_client, make_payment):
        make_payment(due_date=date(2024, 5, 1))

        response = admin_client.get(reverse("billing_admin:aging_report"), {"format": "csv"})

        assert response["Content-Type"] == "text/csv"
        assert "rent_aging_2024-05-20.csv" in response["Content-Disposition"]
        rows = list(csv.reader(io.StringIO(response.content.decode())))
        assert rows[0][0] == "Building"
        assert rows[1][0] == "Sunset Apartments"
        assert rows[1][-2:] == ["19", "16-30"]

    def test_collection_overview(self, admin_client, make_payment):
        make_payment(due_date=date(2024, 5, 1), status="paid")
        make_payment(due_date=date(2024, 5, 1))
        make_payment(due_date=date(2024, 4, 1), status="paid")

        response = admin_client.get(
            reverse("billing_admin:collection_overview"), {"month": 5, "year": 2024}
        )

        data = body(response)["data"]
        assert data["current"]["collection_rate"] == 50.0
        assert data["current"]["payment_count"] == 2
        assert data["previous"]["month"] == 4
        assert data["previous"]["collection_rate"] == 100.0
        assert data["collection_trend"] == -50.0
        assert data["aging"]["total_count"] == 1

    @pytest.mark.parametrize(
        "params", [{"month": 13, "year": 2024}, {"month": "may"}, {"month": 1, "year": 1900}]
    )
    def test_collection_overview_rejects_bad_period(self, admin_client, params):
        response = admin_client.get(reverse("billing_admin:collection_overview"), params)
        assert response.status_code == 400
        assert body(response)["success"] is False


class TestJobs:
    def test_status(self, admin_client):
        data = body(admin_client.get(reverse("billing_admin:job_status")))["data"]
        assert data["scheduler"]["is_running"] is False
        assert data["scheduler"]["schedule"] is None
        assert data["recent_logs"] == []

    def test_trigger_rent_generation(self, admin_client, make_tenancy):
        make_tenancy()

        response = admin_client.post(
            reverse("billing_admin:job_trigger"),
            {"job_name": RENT_JOB_NAME, "month": 5, "year": 2024},
        )

        assert response.status_code == 200
        assert body(response)["data"]["payments_created"] == 1
        assert RentCycle.objects.count() == 1
        assert JobRun.objects.get().trigger == "manual"

    def test_trigger_while_running_is_a_conflict(self, admin_client):
        DatabaseJobLock(RENT_JOB_NAME, owner="scheduler").acquire()
        response = admin_client.post(reverse("billing_admin:job_trigger"), {"month": 5, "year": 2024})
        assert response.status_code == 409

    def test_trigger_unknown_job(self, admin_client):
        response = admin_client.post(reverse("billing_admin:job_trigger"), {"job_name": "nope"})
        assert response.status_code == 400

    def test_trigger_bad_month(self, admin_client):
        response = admin_client.post(reverse("billing_admin:job_trigger"), {"month": 13, "year": 2024})
        assert response.status_code == 400

    def test_trigger_requires_post(self, admin_client):
        assert admin_client.get(reverse("billing_admin:job_trigger")).status_code == 405

    def test_logs_are_paginated_and_filtered(self, admin_client):
        now = timezone.now()
        for i in range(3):
            JobRun.objects.create(job_name=RENT_JOB_NAME, status="completed", started_at=now - timedelta(hours=i))
        JobRun.objects.create(job_name=RENT_JOB_NAME, status="failed", started_at=now)

        data = body(admin_client.get(reverse("billing_admin:job_logs"), {"limit": 2}))["data"]
        assert data["pagination"] == {"page": 1, "limit": 2, "total": 4, "total_pages": 2}
        assert len(data["logs"]) == 2

        data = body(admin_client.get(reverse("billing_admin:job_logs"), {"status": "failed"}))["data"]
        assert [log["status"] for log in data["logs"]] == ["failed"]

    def test_summary(self, admin_client):
        JobRun.objects.create(
            job_name=RENT_JOB_NAME, status="completed", started_at=timezone.now(), payments_created=4
        )
        data = body(admin_client.get(reverse("billing_admin:job_summary")))["data"]
        assert data["jobs_summary"][0]["total_executions"] == 1
        assert data["jobs_summary"][0]["total_payments_created"] == 4
        assert len(data["recent_activity"]) == 1

    def test_delete_log(self, admin_client):
        run = JobRun.objects.create(job_name=RENT_JOB_NAME, status="completed", started_at=timezone.now())
        url = reverse("billing_admin:job_log_delete", args=[run.pk])

        assert admin_client.get(url).status_code == 405
        assert admin_client.post(url).status_code == 200
        assert not JobRun.objects.exists()
        assert admin_client.post(url).status_code == 404

    def test_cleanup(self, admin_client):
        JobRun.objects.create(
            job_name=RENT_JOB_NAME, status="completed", started_at=timezone.now() - timedelta(days=40)
        )
        url = reverse("billing_admin:job_logs_cleanup")

        assert admin_client.post(url, {"older_than_days": 0}).status_code == 400
        response = admin_client.post(url, {"older_than_days": 30})
        assert body(response)["data"]["deleted_count"] == 1


class TestBuildings:
    @pytest.fixture
    def occupied_building(self, building, make_unit, make_tenancy, make_payment):
        tenancy = make_tenancy(unit=make_unit())
        make_unit()
        make_unit(status=Unit.MAINTENANCE)
        make_payment(tenancy=tenancy, status="paid")
        return building

    def test_overview(self, admin_client, occupied_building):
        url = reverse("properties_admin:building_overview", args=[occupied_building.pk])
        data = body(admin_client.get(url))["data"]

        assert data["building"]["name"] == "Sunset Apartments"
        assert data["stats"]["total_units"] == 3
        assert data["stats"]["occupied"] == 1
        assert "units" not in data["stats"]
        assert data["revenue"]["collection_rate"] == 100.0

    def test_vacancy_chart(self, admin_client, occupied_building):
        url = reverse("properties_admin:building_vacancy_chart", args=[occupied_building.pk])

        data = body(admin_client.get(url, {"range": 7}))["data"]
        assert data["filters"]["range"] == 7
        assert len(data["units"]) == 3
        assert len(data["vacant_units"]) == 1
        assert data["summary"]["maintenance"] == 1

        assert body(admin_client.get(url, {"range": 1000}))["data"]["filters"]["range"] == 365

    def test_occupancy_history(self, admin_client, building):
        for days_ago in (1, 60):
            OccupancySnapshot.objects.create(
                building=building,
                snapshot_date=date(2024, 5, 20) - timedelta(days=days_ago),
                total_units=1, occupied_units=1, upcoming_units=0,
                available_units=0, maintenance_units=0,
                occupancy_rate=100, utilization_rate=100,
            )
        url = reverse("properties_admin:building_occupancy_history", args=[building.pk])

        data = body(admin_client.get(url))["data"]
        assert [row["date"] for row in data] == ["2024-05-19"]

    def test_unknown_building(self, admin_client):
        url = reverse(
            "properties_admin:building_overview", args=["00000000-0000-0000-0000-000000000000"]
        )
        assert admin_client.get(url).status_code == 404
