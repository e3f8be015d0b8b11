"""
Health check endpoints for container orchestration.
"""

from django.conf import settings
from django.db import connection
from django.http import JsonResponse


def health_check(request):
    """
    Health check endpoint.

    Returns:
        - 200 OK with JSON {"status": "healthy"} when all systems operational
        - 503 Service Unavailable when the database or Redis fails

    The last rent generation run is reported for information only; a failed
    run does not make the service unhealthy.

    Usage:
        curl http://localhost:8000/health/
    """
    health_data = {
        "status": "healthy",
        "checks": {},
    }
    status_code = 200

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_data["checks"]["database"] = "connected"
    except Exception as e:
        health_data["status"] = "unhealthy"
        health_data["checks"]["database"] = f"error: {str(e)}"
        status_code = 503

    redis_url = getattr(settings, "REDIS_URL", None)
    if redis_url:
        try:
            import redis

            r = redis.from_url(redis_url)
            r.ping()
            health_data["checks"]["redis"] = "connected"
        except Exception as e:
            health_data["status"] = "unhealthy"
            health_data["checks"]["redis"] = f"error: {str(e)}"
            status_code = 503

    if status_code == 200:
        from apps.billing.models import JobRun
        from apps.billing.services import RENT_JOB_NAME

        last_run = JobRun.objects.filter(job_name=RENT_JOB_NAME).first()
        health_data["checks"]["rent_generation"] = (
            {"status": last_run.status, "started_at": last_run.started_at.isoformat()}
            if last_run else "never_run"
        )

    return JsonResponse(health_data, status=status_code)


def liveness_check(request):
    """
    Simple liveness probe - just confirms the application is running.

    Usage:
        curl http://localhost:8000/live/
    """
    return JsonResponse({"status": "alive"})


def readiness_check(request):
    """
    Readiness probe - confirms the application can accept traffic.

    Usage:
        curl http://localhost:8000/ready/
    """
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        return JsonResponse({"status": "ready"})
    except Exception as e:
        return JsonResponse({"status": "not_ready", "error": str(e)}, status=503)
