"""Celery app configuration for rink report generation."""

from __future__ import annotations

from celery import Celery, signals
from celery.schedules import crontab

from .config import settings
from .db import init_db
from .logging import logger

celery_config = {
    "task_serializer": "json",
    "accept_content": ["json"],
    "result_serializer": "json",
    "timezone": "UTC",
    "enable_utc": True,
    "task_track_started": True,
    "worker_prefetch_multiplier": 1,
    "task_time_limit": 1800,       # 30 minutes hard limit
    "task_soft_time_limit": 1740,  # 29 minutes soft limit
    "task_default_queue": "rink-reports",
}

app = Celery(
    "rink-reports",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["rink_reports.jobs.report_tasks"],
)
app.conf.update(**celery_config)
app.conf.task_routes = {
    "generate_weekly_rink_reports": {"queue": "rink-reports", "routing_key": "rink-reports"},
    "generate_division_rink_report": {"queue": "rink-reports", "routing_key": "rink-reports"},
}
# League games run through Sunday night; last week's reports are rebuilt
# Monday morning once scorekeepers have submitted final scores.
app.conf.beat_schedule = {
    "weekly-rink-reports-monday-6am-utc": {
        "task": "generate_weekly_rink_reports",
        "schedule": crontab(minute=0, hour=6, day_of_week="mon"),
        "kwargs": {"week_id": "week-1"},
        "options": {"queue": "rink-reports", "routing_key": "rink-reports"},
    },
}


@signals.worker_ready.connect
def on_worker_ready(sender=None, **kwargs):
    """Called when Celery worker is ready. Make sure report tables exist."""
    worker_name = getattr(sender, "hostname", None) or str(sender) if sender else "unknown"
    logger.info("celery_worker_ready", worker=worker_name)
    try:
        init_db()
    except Exception as exc:
        logger.exception("failed_to_init_db", error=str(exc))
