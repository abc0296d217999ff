"""Manual triggers for the daily billing batches (owner/manager only)."""
import logging
from typing import List

from fastapi import APIRouter

from propman.api.deps import BillingManager, BillingService
from propman.jobs.scheduler import get_job_status
from propman.schemas.bill import (
    ScriptRunResponse, OverdueSweepSummary, CycleClonerSummary, JobStatus,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/penalties", response_model=ScriptRunResponse)
async def run_penalties(
    service: BillingService,
    current_user: BillingManager,
):
    """Mark issued bills past their due date as overdue."""
    logger.info(f"API triggered by user {current_user.user_id}: running overdue sweep...")
    result = await service.run_overdue_sweep()
    logger.info("API triggered: overdue sweep finished.")

    return ScriptRunResponse(
        success=True,
        message="Overdue penalty check completed successfully.",
        data=OverdueSweepSummary(**result),
    )


@router.post("/renew-bills", response_model=ScriptRunResponse)
async def run_renewals(
    service: BillingService,
    current_user: BillingManager,
):
    """Generate bills for recurring templates whose next period has started."""
    logger.info(f"API triggered by user {current_user.user_id}: running recurring bill generation...")
    result = await service.run_cycle_cloner()
    logger.info("API triggered: recurring bill generation finished.")

    return ScriptRunResponse(
        success=True,
        message="Recurring bill generation completed successfully.",
        data=CycleClonerSummary(**result),
    )


@router.get("/jobs", response_model=List[JobStatus])
async def list_scheduled_jobs(current_user: BillingManager):
    """Status of the scheduled billing jobs."""
    return get_job_status()
