import csv
import logging
from datetime import timedelta

from django.conf import settings
from django.core.paginator import Paginator
from django.db.models import Avg, Count, Max, Q, Sum
from django.db.models.functions import TruncDate
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.clock import Clock, month_bounds
from apps.core.dashboard_utils import calculate_trend
from apps.core.decorators import admin_required

from .aging import analyze, bucket_for, collection_summary
from .exceptions import RunLevelFailure
from .locks import lock_status
from .models import JobRun, Payment
from .services import RENT_JOB_NAME
from .store import DjangoRecordStore

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def _json(data, status=200):
    return JsonResponse(data, status=status)


def _int_param(params, name, default=None):
    value = params.get(name)
    if value in (None, ""):
        return default
    return int(value)


def _job_run_row(run):
    return {
        "id": str(run.pk),
        "job_name": run.job_name,
        "trigger": run.trigger,
        "cycle_month": run.cycle_month,
        "cycle_year": run.cycle_year,
        "status": run.status,
        "started_at": run.started_at,
        "finished_at": run.finished_at,
        "duration_ms": run.duration_ms,
        "tenancies_processed": run.tenancies_processed,
        "payments_created": run.payments_created,
        "rent_cycles_created": run.rent_cycles_created,
        "skipped_count": run.skipped_count,
        "failed_count": run.failed_count,
        "details": run.details,
        "error_message": run.error_message,
    }


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


@admin_required
@require_GET
def aging_report(request):
    """Unpaid payments bucketed by days past due. ``?format=csv`` downloads the rows."""
    building_id = request.GET.get("building") or None
    today = Clock().today()
    payments = list(
        DjangoRecordStore().list_payments(building_id=building_id, status=Payment.UNPAID_STATUSES)
    )

    if request.GET.get("format") == "csv":
        response = HttpResponse(content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="rent_aging_{today}.csv"'
        writer = csv.writer(response)
        writer.writerow([
            "Building", "Unit", "Tenant", "Type", "Due Date",
            "Amount", "Late Fee", "Status", "Days Past Due", "Aging Bucket",
        ])
        for payment in payments:
            days = (today - payment.due_date).days
            unit = payment.tenancy.unit
            writer.writerow([
                unit.building.name,
                unit.unit_number,
                payment.tenancy.tenant.get_full_name() or payment.tenancy.tenant.username,
                payment.get_payment_type_display(),
                payment.due_date,
                payment.amount,
                payment.late_fee,
                payment.get_status_display(),
                max(days, 0),
                bucket_for(days),
            ])
        return response

    return _json({"success": True, "data": analyze(payments, today)})


@admin_required
@require_GET
def collection_overview(request):
    """Collection figures for a month, with the previous month for comparison."""
    clock = Clock()
    default_month, default_year = clock.current_period()
    try:
        month = _int_param(request.GET, "month", default_month)
        year = _int_param(request.GET, "year", default_year)
        start, end = month_bounds(month, year)
        prev_month, prev_year = (12, year - 1) if month == 1 else (month - 1, year)
        prev_start, _ = month_bounds(prev_month, prev_year)
    except ValueError as exc:
        return _json({"success": False, "error": str(exc)}, status=400)

    building_id = request.GET.get("building") or None
    payments = [
        p for p in DjangoRecordStore().list_payments(building_id=building_id, due_date_range=(prev_start, end))
        if p.payment_type == "rent"
    ]
    current = collection_summary(payments, month, year)
    previous = collection_summary(payments, prev_month, prev_year)

    return _json({
        "success": True,
        "data": {
            "current": current,
            "previous": previous,
            "collection_trend": calculate_trend(current["collection_rate"], previous["collection_rate"]),
            "aging": analyze([p for p in payments if start <= p.due_date <= end], clock.today()),
        },
    })


# ---------------------------------------------------------------------------
# Job runs
# ---------------------------------------------------------------------------


def _run_rent_generation(params):
    from .tasks import generate_monthly_rent_cycles

    return generate_monthly_rent_cycles(
        _int_param(params, "month"), _int_param(params, "year"), trigger="manual"
    )


def _run_overdue(params):
    from .tasks import mark_overdue_payments

    return mark_overdue_payments()


def _run_occupancy_snapshots(params):
    from apps.properties.tasks import capture_occupancy_snapshots

    return {"snapshots": capture_occupancy_snapshots()}


def _run_revenue_snapshots(params):
    from .tasks import capture_revenue_snapshots

    return {"snapshots": capture_revenue_snapshots(_int_param(params, "month"), _int_param(params, "year"))}


TRIGGERABLE_JOBS = {
    RENT_JOB_NAME: _run_rent_generation,
    "mark_overdue_payments": _run_overdue,
    "occupancy_snapshots": _run_occupancy_snapshots,
    "revenue_snapshots": _run_revenue_snapshots,
}


@admin_required
@require_GET
def job_status(request):
    from django_q.models import Schedule

    schedule = Schedule.objects.filter(func="apps.billing.tasks.generate_monthly_rent_cycles").first()
    recent = JobRun.objects.all()[:10]
    return _json({
        "success": True,
        "data": {
            "scheduler": {
                **lock_status(RENT_JOB_NAME),
                "schedule": schedule.cron if schedule else None,
                "next_run": schedule.next_run if schedule else None,
                "time_zone": settings.BILLING["TIME_ZONE"],
            },
            "recent_logs": [_job_run_row(r) for r in recent],
        },
    })


@admin_required
@require_GET
def job_logs(request):
    qs = JobRun.objects.all()
    if request.GET.get("job_name"):
        qs = qs.filter(job_name=request.GET["job_name"])
    if request.GET.get("status"):
        qs = qs.filter(status=request.GET["status"])

    try:
        page_size = min(max(_int_param(request.GET, "limit", 50), 1), MAX_PAGE_SIZE)
    except ValueError:
        page_size = 50
    paginator = Paginator(qs, page_size)
    page = paginator.get_page(request.GET.get("page"))

    return _json({
        "success": True,
        "data": {
            "logs": [_job_run_row(r) for r in page.object_list],
            "pagination": {
                "page": page.number,
                "limit": page_size,
                "total": paginator.count,
                "total_pages": paginator.num_pages,
            },
        },
    })


@admin_required
@require_POST
def job_trigger(request):
    job_name = request.POST.get("job_name", RENT_JOB_NAME)
    runner = TRIGGERABLE_JOBS.get(job_name)
    if runner is None:
        return _json({"success": False, "error": f"Unknown job: {job_name}"}, status=400)

    logger.info("Admin %s triggered job %s", request.user.pk, job_name)
    try:
        result = runner(request.POST)
    except ValueError as exc:
        return _json({"success": False, "error": str(exc)}, status=400)
    except RunLevelFailure as exc:
        return _json({"success": False, "error": str(exc), "job_run_id": exc.job_run_id}, status=500)

    if isinstance(result, dict) and result.get("status") == "skipped":
        return _json({
            "success": False,
            "error": f"Job '{job_name}' is already running.",
            "data": result,
        }, status=409)

    return _json({
        "success": True,
        "message": f"Job '{job_name}' triggered successfully",
        "data": result,
    })


@admin_required
@require_GET
def job_summary(request):
    summary = (
        JobRun.objects.values("job_name")
        .annotate(
            total_executions=Count("id"),
            successful_executions=Count("id", filter=Q(status="completed")),
            failed_executions=Count("id", filter=Q(status="failed")),
            total_payments_created=Sum("payments_created"),
            total_rent_cycles_created=Sum("rent_cycles_created"),
            last_execution=Max("started_at"),
            avg_duration_ms=Avg("duration_ms"),
        )
        .order_by("-last_execution")
    )
    since = timezone.now() - timedelta(days=30)
    activity = (
        JobRun.objects.filter(started_at__gte=since)
        .annotate(date=TruncDate("started_at"))
        .values("date", "job_name")
        .annotate(executions=Count("id"), payments_created=Sum("payments_created"))
        .order_by("-date")
    )
    return _json({
        "success": True,
        "data": {
            "jobs_summary": list(summary),
            "recent_activity": list(activity),
            "scheduler_status": lock_status(RENT_JOB_NAME),
        },
    })


@admin_required
@require_http_methods(["POST", "DELETE"])
def job_log_delete(request, pk):
    run = get_object_or_404(JobRun, pk=pk)
    run.delete()
    return _json({"success": True, "message": "Job log deleted successfully"})


@admin_required
@require_POST
def job_logs_cleanup(request):
    from .tasks import cleanup_job_runs

    try:
        days = _int_param(request.POST, "older_than_days", settings.BILLING["JOB_LOG_RETENTION_DAYS"])
    except ValueError:
        return _json({"success": False, "error": "older_than_days must be a number"}, status=400)
    if days < 1:
        return _json({"success": False, "error": "older_than_days must be at least 1"}, status=400)

    deleted = cleanup_job_runs(days)
    return _json({
        "success": True,
        "message": f"Cleaned up {deleted} old job logs",
        "data": {"deleted_count": deleted},
    })
