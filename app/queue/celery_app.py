"""
Celery application - background work off the request path.
Reset emails are sent here; a beat job reports paid charges that never became orders.
"""

from celery import Celery

from app.config import get_settings

settings = get_settings()

celery_app = Celery(
    "storefront",
    broker=settings.celery_broker_url,
    backend=settings.redis_url,
    include=["app.queue.tasks"],
)

# Task settings: retries, time limits, serialization
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_track_started=True,
    task_time_limit=300,
    task_soft_time_limit=60,
    worker_prefetch_multiplier=1,  # Fair distribution
    timezone="UTC",
)

celery_app.conf.beat_schedule = {
    "report-unreconciled-charges": {
        "task": "app.queue.tasks.report_unreconciled_charges",
        "schedule": float(settings.unreconciled_report_after_seconds),
    },
}
