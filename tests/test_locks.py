from datetime import timedelta

import pytest
from django.utils import timezone

from apps.billing.locks import DatabaseJobLock, lock_status
from apps.billing.models import JobLock

pytestmark = pytest.mark.django_db


def test_only_one_holder_at_a_time():
    first = DatabaseJobLock("rent", owner="a")
    second = DatabaseJobLock("rent", owner="b")

    assert first.acquire() is True
    assert second.acquire() is False

    first.release()
    assert second.acquire() is True
    assert lock_status("rent")["owner"] == "b"


def test_expired_lock_can_be_taken_over():
    stale = DatabaseJobLock("rent", owner="crashed")
    stale.acquire()
    JobLock.objects.filter(name="rent").update(expires_at=timezone.now() - timedelta(seconds=1))

    assert DatabaseJobLock("rent", owner="fresh").acquire() is True
    assert lock_status("rent")["owner"] == "fresh"


def test_release_by_a_non_holder_leaves_the_lock():
    holder = DatabaseJobLock("rent", owner="a")
    holder.acquire()

    intruder = DatabaseJobLock("rent", owner="b")
    intruder.acquire()
    intruder.release()

    assert lock_status("rent")["is_running"] is True
    assert lock_status("rent")["owner"] == "a"


def test_context_manager_releases_on_exit():
    with DatabaseJobLock("rent", ttl_seconds=60) as lock:
        assert lock.acquired
        status = lock_status("rent")
        assert status["is_running"] is True
        assert status["expires_at"] - status["acquired_at"] == timedelta(seconds=60)

    assert lock_status("rent")["is_running"] is False


def test_status_of_unknown_lock():
    assert lock_status("never-used") == {
        "name": "never-used",
        "is_running": False,
        "owner": "",
        "acquired_at": None,
        "expires_at": None,
    }


def test_refresh_extends_the_expiry():
    lock = DatabaseJobLock("rent", ttl_seconds=60, owner="a")
    lock.acquire()
    JobLock.objects.filter(name="rent").update(expires_at=timezone.now() + timedelta(seconds=5))

    assert lock.refresh() is True

    expires_at = JobLock.objects.get(name="rent").expires_at
    assert expires_at > timezone.now() + timedelta(seconds=30)


def test_refresh_after_takeover_reports_the_loss():
    lock = DatabaseJobLock("rent", owner="a")
    lock.acquire()
    JobLock.objects.filter(name="rent").update(owner="b")

    assert lock.refresh() is False
    assert lock.acquired is False
    lock.release()
    assert lock_status("rent")["owner"] == "b"


def test_refresh_without_holding_does_nothing():
    assert DatabaseJobLock("rent").refresh() is False
    assert not JobLock.objects.exists()
