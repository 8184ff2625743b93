"""Celery background tasks for Serenity."""

import asyncio
import logging
from typing import Optional

from celery import Task
from celery.signals import worker_ready

from .celery_app import celery_app
from .config import settings
from .database import async_session_maker, utcnow
from .llm import ollama_llm_caller
from .services.analysis_job import PersonalizationAnalysisJob
from .services.background_queue import BackgroundQueue
from .services.reminders import InterventionReminderJob, JournalReminderJob
from .services.summarization import ConversationSummarizer
from .services.weekly_report import WeeklyReportScheduler

logger = logging.getLogger(__name__)

# One loop per worker process; the database engine's pooled connections are bound to it
_loop: Optional[asyncio.AbstractEventLoop] = None


def _event_loop() -> asyncio.AbstractEventLoop:
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
        asyncio.set_event_loop(_loop)
    return _loop


# Custom task base class to handle async operations
class AsyncTask(Task):
    """Base task class that supports async operations."""

    def __call__(self, *args, **kwargs):
        """Override call to run async functions in event loop."""
        result = self.run(*args, **kwargs)
        if asyncio.iscoroutine(result):
            return _event_loop().run_until_complete(result)
        return result


# ============================================================================
# Personalization Tasks
# ============================================================================

@celery_app.task(base=AsyncTask)
async def run_personalization_analysis() -> dict:
    """
    Refresh personalization profiles and periodic summaries for every
    recently active user.

    Returns:
        Dict with total, processed and error counts
    """
    try:
        logger.info("Starting personalization analysis task")

        job = PersonalizationAnalysisJob(async_session_maker, llm_caller=ollama_llm_caller)
        result = await job.run_for_all_users()

        logger.info(f"Personalization analysis complete: {result.as_dict()}")
        return {**result.as_dict(), "timestamp": utcnow().isoformat()}

    except Exception as exc:
        logger.error(f"Error in personalization analysis task: {exc}")
        raise


@celery_app.task(base=AsyncTask)
async def cleanup_old_summaries() -> dict:
    """Delete conversation summaries past the retention window."""
    async with async_session_maker() as session:
        deleted = await ConversationSummarizer().cleanup_old_summaries(
            session, days_to_keep=settings.SUMMARY_RETENTION_DAYS
        )
        await session.commit()

    return {"summaries_deleted": deleted, "timestamp": utcnow().isoformat()}


# ============================================================================
# Reminder Tasks
# ============================================================================

@celery_app.task(base=AsyncTask)
async def send_intervention_reminders() -> dict:
    """
    Remind users about idle interventions and ask for ratings on
    interventions finished in the last week.
    """
    try:
        logger.info("Starting intervention reminder task")
        result = await InterventionReminderJob(async_session_maker).run()
        return {**result.as_dict(), "timestamp": utcnow().isoformat()}

    except Exception as exc:
        logger.error(f"Error in intervention reminder task: {exc}")
        raise


@celery_app.task(base=AsyncTask)
async def send_journal_reminders() -> dict:
    """Remind users who have not journaled for a few days."""
    try:
        logger.info("Starting journal reminder task")
        result = await JournalReminderJob(async_session_maker).run()
        return {**result.as_dict(), "timestamp": utcnow().isoformat()}

    except Exception as exc:
        logger.error(f"Error in journal reminder task: {exc}")
        raise


# ============================================================================
# Weekly Report Task
# ============================================================================

@celery_app.task(base=AsyncTask)
async def generate_weekly_reports() -> dict:
    """
    Queue a weekly report job per user and wait for the queue to drain.

    Failed jobs are logged by the queue and dropped.
    """
    queue = BackgroundQueue(concurrency=settings.BACKGROUND_QUEUE_CONCURRENCY)
    scheduler = WeeklyReportScheduler(async_session_maker, queue, llm_caller=ollama_llm_caller)

    queued = await scheduler.run_once()
    await queue.join()

    logger.info(f"Weekly reports finished: {queue.completed} jobs completed, {queue.failed} failed")
    return {
        "queued": queued,
        "completed": queue.completed,
        "failed": queue.failed,
        "timestamp": utcnow().isoformat(),
    }


# ============================================================================
# Startup
# ============================================================================

@worker_ready.connect
def run_startup_jobs(sender=None, **kwargs):
    """Kick off the jobs configured to run when a worker comes up."""
    if settings.PERSONALIZATION_JOB_RUN_ON_STARTUP:
        logger.info("Running personalization analysis job on startup")
        run_personalization_analysis.delay()
    if settings.WEEKLY_REPORT_RUN_ON_STARTUP:
        logger.info("Running weekly report scheduler on startup")
        generate_weekly_reports.delay()
