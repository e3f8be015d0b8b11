"""
Database-backed job lock.

One ``JobLock`` row per job name is shared by every process pointed at the
same database. Acquisition is a single conditional UPDATE, so exactly one
caller wins even when several start at once. A held lock expires after its
TTL so a crashed holder cannot block the job forever.
"""

import logging
import uuid
from datetime import timedelta

from django.conf import settings
from django.db import DatabaseError
from django.db.models import Q
from django.utils import timezone

logger = logging.getLogger(__name__)


class DatabaseJobLock:
    def __init__(self, name, ttl_seconds=None, owner=None):
        self.name = name
        self.ttl_seconds = ttl_seconds or settings.BILLING["LOCK_TTL_SECONDS"]
        self.owner = owner or uuid.uuid4().hex
        self.acquired = False

    def acquire(self):
        """
        Try to take the lock without waiting.

        Returns True when this instance now holds it. Database errors
        propagate to the caller.
        """
        from .models import JobLock

        now = timezone.now()
        JobLock.objects.get_or_create(name=self.name)
        updated = (
            JobLock.objects.filter(name=self.name)
            .filter(Q(is_locked=False) | Q(expires_at__lt=now))
            .update(
                is_locked=True,
                owner=self.owner,
                acquired_at=now,
                expires_at=now + timedelta(seconds=self.ttl_seconds),
                updated_at=now,
            )
        )
        self.acquired = updated == 1
        if self.acquired:
            logger.debug("Lock %s acquired by %s", self.name, self.owner)
        return self.acquired

    def refresh(self):
        """
        Push the expiry out by another TTL while the lock is still ours.

        Returns False when another owner has taken the lock over. A database
        error is logged and the current expiry is left to stand.
        """
        from .models import JobLock

        if not self.acquired:
            return False
        now = timezone.now()
        try:
            updated = JobLock.objects.filter(
                name=self.name, owner=self.owner, is_locked=True
            ).update(expires_at=now + timedelta(seconds=self.ttl_seconds), updated_at=now)
        except DatabaseError:
            logger.exception("Could not refresh lock %s", self.name)
            return True
        if not updated:
            logger.warning("Lock %s is no longer held by %s", self.name, self.owner)
            self.acquired = False
        return self.acquired

    def release(self):
        from .models import JobLock

        if not self.acquired:
            return
        try:
            JobLock.objects.filter(name=self.name, owner=self.owner).update(
                is_locked=False, owner="", expires_at=None, updated_at=timezone.now()
            )
        except DatabaseError:
            logger.exception(
                "Could not release lock %s; it will expire after %ss", self.name, self.ttl_seconds
            )
        else:
            logger.debug("Lock %s released by %s", self.name, self.owner)
        finally:
            self.acquired = False

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


def lock_status(name):
    """Current state of a job lock as a plain dict."""
    from .models import JobLock

    lock = JobLock.objects.filter(name=name).first()
    now = timezone.now()
    held = bool(lock and lock.is_locked and (lock.expires_at is None or lock.expires_at >= now))
    return {
        "name": name,
        "is_running": held,
        "owner": lock.owner if held else "",
        "acquired_at": lock.acquired_at if held else None,
        "expires_at": lock.expires_at if held else None,
    }
