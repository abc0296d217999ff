"""
APScheduler Configuration

Runs the recurring billing batches once a day inside the API process.

Architecture:
- Jobs are plain coroutines from propman.jobs.recurring_bills
- Cron triggers fire at BILLING_JOB_HOUR:BILLING_JOB_MINUTE (SCHEDULER_TIMEZONE)
- max_instances=1 keeps a slow run from overlapping the next one
"""

import logging
from typing import Awaitable, Callable, Dict, Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor

from propman.config import settings

logger = logging.getLogger(__name__)

# Job stores
jobstores = {
    'default': MemoryJobStore()
}

# Executors
executors = {
    'default': AsyncIOExecutor(),
}

# Job defaults
job_defaults = {
    'coalesce': True,  # Combine multiple pending executions into one
    'max_instances': 1,  # Only one instance of each job at a time
    'misfire_grace_time': 3600,  # A daily job may still run up to an hour late
}

# Create scheduler
scheduler = AsyncIOScheduler(
    jobstores=jobstores,
    executors=executors,
    job_defaults=job_defaults,
    timezone=settings.SCHEDULER_TIMEZONE
)


async def run_billing_job(
    job_name: str,
    job_func: Callable[[], Awaitable[Dict[str, Any]]],
) -> None:
    """
    Wrapper called by APScheduler.

    A failed run is logged and left for the next trigger; the scheduler
    itself keeps running.
    """
    try:
        result = await job_func()
        logger.info(f"Job '{job_name}' completed: {len(result.get('errors', []))} errors")
    except Exception as e:
        logger.error(f"Job '{job_name}' failed: {e}")


async def overdue_sweep_job() -> None:
    from propman.jobs.recurring_bills import run_overdue_sweep

    await run_billing_job('overdue_sweep', run_overdue_sweep)


async def recurring_bill_generation_job() -> None:
    from propman.jobs.recurring_bills import run_cycle_cloner

    await run_billing_job('recurring_bill_generation', run_cycle_cloner)


def register_jobs() -> None:
    """Add the daily billing jobs to the scheduler (idempotent)."""
    cloner_at = settings.BILLING_JOB_HOUR * 60 + settings.BILLING_JOB_MINUTE + 1

    # Sweep runs one minute before generation
    scheduler.add_job(
        overdue_sweep_job,
        'cron',
        hour=settings.BILLING_JOB_HOUR,
        minute=settings.BILLING_JOB_MINUTE,
        id='overdue_sweep',
        name='Mark Overdue Bills',
        replace_existing=True,
    )

    scheduler.add_job(
        recurring_bill_generation_job,
        'cron',
        hour=(cloner_at // 60) % 24,
        minute=cloner_at % 60,
        id='recurring_bill_generation',
        name='Generate Recurring Bills',
        replace_existing=True,
    )


def start_scheduler():
    """Start the background job scheduler."""
    if not settings.BILLING_SCHEDULER_ENABLED:
        logger.info("Billing scheduler disabled (BILLING_SCHEDULER_ENABLED=false)")
        return

    if not scheduler.running:
        register_jobs()
        scheduler.start()
        logger.info("Background job scheduler started")

        for job in scheduler.get_jobs():
            logger.info(f"Scheduled job: {job.name} - Next run: {job.next_run_time}")


def shutdown_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background job scheduler stopped")


def get_job_status():
    """Get status of all scheduled jobs."""
    jobs = scheduler.get_jobs()
    return [
        {
            'id': job.id,
            'name': job.name,
            'next_run_time': str(job.next_run_time) if getattr(job, 'next_run_time', None) else None,
            'trigger': str(job.trigger),
        }
        for job in jobs
    ]
