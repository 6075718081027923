"""Background tasks and job scheduler."""
from teamcal.tasks.scheduler import (
    get_scheduler,
    start_scheduler,
    stop_scheduler,
    list_jobs,
)
from teamcal.tasks.rsvp_reminders import process_rsvp_reminders, send_rsvp_reminders

__all__ = [
    "get_scheduler",
    "start_scheduler",
    "stop_scheduler",
    "list_jobs",
    "process_rsvp_reminders",
    "send_rsvp_reminders",
]
