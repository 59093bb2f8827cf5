from celery import Celery
from celery.schedules import crontab

from rentflow.core.config import settings, is_testing

celery_app = Celery(
    "rentflow",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    # Tests run tasks in-process without a broker
    task_always_eager=is_testing(),
    task_eager_propagates=True,
)

# ─── Scheduled tasks ──────────────────────────
celery_app.conf.beat_schedule = {
    "expire-leases-daily": {
        "task": "rentflow.services.lease_expiry.expire_leases",
        "schedule": crontab(hour=settings.EXPIRY_SWEEP_HOUR, minute=settings.EXPIRY_SWEEP_MINUTE),
    },
}

# Task modules are listed explicitly; there is no tasks.py to autodiscover.
celery_app.conf.include = [
    "rentflow.services.lease_expiry",
]
