"""Background job scheduler using APScheduler."""
import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor


logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


def get_scheduler() -> AsyncIOScheduler:
    """Get the global scheduler instance, creating it if necessary."""
    global scheduler
    if scheduler is None:
        jobstores = {
            'default': MemoryJobStore()
        }
        executors = {
            'default': AsyncIOExecutor()
        }
        job_defaults = {
            'coalesce': True,  # Combine missed job runs into one
            'max_instances': 1,  # Only one instance of a job at a time
            'misfire_grace_time': 300  # 5 minutes grace period for misfired jobs
        }

        scheduler = AsyncIOScheduler(
            jobstores=jobstores,
            executors=executors,
            job_defaults=job_defaults,
            timezone='UTC'
        )

        logger.info("Scheduler created with UTC timezone")

    return scheduler


async def start_scheduler():
    """Start the scheduler and register all jobs."""
    from teamcal.tasks.rsvp_reminders import schedule_rsvp_reminder_job

    sched = get_scheduler()

    if sched.running:
        logger.warning("Scheduler is already running")
        return

    schedule_rsvp_reminder_job(sched)

    sched.start()
    logger.info("Scheduler started with %d jobs", len(sched.get_jobs()))


async def stop_scheduler():
    """Stop the scheduler gracefully."""
    global scheduler
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
    scheduler = None


def list_jobs() -> list[dict]:
    """Describe registered jobs for the scheduler status endpoint."""
    if scheduler is None:
        return []
    return [
        {
            "id": job.id,
            "name": job.name,
            "next_run": str(job.next_run_time) if getattr(job, "next_run_time", None) else None,
        }
        for job in scheduler.get_jobs()
    ]
