"""Celery application for the Serenity background jobs."""

from datetime import timedelta

from celery import Celery
from celery.schedules import crontab

from .config import settings

# Create Celery app
celery_app = Celery(
    "serenity",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["serenity.tasks"]
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=3600,  # batch jobs walk every user
    task_soft_time_limit=3300,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
    broker_connection_retry_on_startup=True,
)

# Periodic tasks (Celery Beat schedule)
celery_app.conf.beat_schedule = {
    "personalization-analysis": {
        "task": "serenity.tasks.run_personalization_analysis",
        "schedule": timedelta(hours=settings.PERSONALIZATION_JOB_INTERVAL_HOURS),
    },
    "intervention-reminders": {
        "task": "serenity.tasks.send_intervention_reminders",
        "schedule": crontab(hour=10, minute=0),  # Daily at 10:00 UTC
    },
    "journal-reminders": {
        "task": "serenity.tasks.send_journal_reminders",
        "schedule": crontab(hour=18, minute=0),  # Daily at 18:00 UTC
    },
    "weekly-reports": {
        "task": "serenity.tasks.generate_weekly_reports",
        "schedule": crontab(hour=0, minute=0, day_of_week="saturday"),
    },
    "cleanup-old-summaries": {
        "task": "serenity.tasks.cleanup_old_summaries",
        "schedule": crontab(hour=3, minute=0, day_of_week="sunday"),
    },
}

if __name__ == "__main__":
    celery_app.start()
