"""
Background Jobs Module

Handles scheduled tasks for:
- Overdue bill sweep
- Recurring bill generation from master templates
"""

from propman.jobs.scheduler import scheduler, start_scheduler, shutdown_scheduler
from propman.jobs.recurring_bills import run_overdue_sweep, run_cycle_cloner, run_daily_billing

__all__ = [
    "scheduler",
    "start_scheduler",
    "shutdown_scheduler",
    "run_overdue_sweep",
    "run_cycle_cloner",
    "run_daily_billing",
]
