"""
Scheduler module for the periodic jobs of the contact API.
Wraps APScheduler; the only job today is the MongoDB connectivity probe.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor
from datetime import datetime
import logging

# Set up logger
logger = logging.getLogger(__name__)

MONGO_PROBE_JOB_ID = "mongo_probe_job"


def create_scheduler() -> AsyncIOScheduler:
    return AsyncIOScheduler(
        jobstores={'default': MemoryJobStore()},
        executors={'default': AsyncIOExecutor()},
        job_defaults={
            'coalesce': True,      # Skip missed runs instead of executing all
            'max_instances': 1     # A slow probe must not pile up behind itself
        },
        timezone='UTC'
    )


def init_scheduler(scheduler):
    """Start the scheduler if it's not already running."""
    if not scheduler.running:
        try:
            scheduler.start()
            logger.info(f"Scheduler started successfully at {datetime.now()}")
        except Exception as e:
            logger.error(f"Failed to start scheduler: {str(e)}")
    else:
        logger.info("Scheduler is already running")


def add_job(scheduler, job_id, func, trigger, **trigger_args):
    """Add a job to the scheduler with the specified trigger."""
    try:
        scheduler.add_job(
            func=func,
            trigger=trigger,
            id=job_id,
            replace_existing=True,
            **trigger_args
        )
        logger.info(f"Job {job_id} added successfully with trigger: {trigger}")
        return True
    except Exception as e:
        logger.error(f"Failed to add job {job_id}: {str(e)}")
        return False


def shutdown(scheduler):
    """Shutdown the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down successfully")
