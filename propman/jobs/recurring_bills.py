"""
Recurring Bill Jobs.

Batch entry points invoked by the scheduler, the manual trigger endpoints
and scripts/run_daily_bills.py:
- run_overdue_sweep: issued bills past due become overdue
- run_cycle_cloner: master templates are cloned for periods that started

Both default to the SQLAlchemy repository on the application session factory.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from propman.services.bill_repository import BillRepository, SQLAlchemyBillRepository
from propman.services.recurring_billing_service import RecurringBillingService

logger = logging.getLogger(__name__)


def get_default_repository() -> BillRepository:
    from propman.database import async_session_factory

    return SQLAlchemyBillRepository(async_session_factory)


def _service(repository: Optional[BillRepository]) -> RecurringBillingService:
    return RecurringBillingService(repository or get_default_repository())


async def run_overdue_sweep(
    now: Optional[datetime] = None,
    repository: Optional[BillRepository] = None,
) -> Dict[str, Any]:
    """Mark issued bills whose due date has passed as overdue."""
    return await _service(repository).run_overdue_sweep(now)


async def run_cycle_cloner(
    now: Optional[datetime] = None,
    repository: Optional[BillRepository] = None,
) -> Dict[str, Any]:
    """Generate concrete bills for master templates whose period has started."""
    return await _service(repository).run_cycle_cloner(now)


async def run_daily_billing(
    now: Optional[datetime] = None,
    repository: Optional[BillRepository] = None,
) -> Dict[str, Any]:
    """Run the overdue sweep, then recurring bill generation."""
    service = _service(repository)
    overdue = await service.run_overdue_sweep(now)
    generated = await service.run_cycle_cloner(now)
    return {"overdue_sweep": overdue, "cycle_cloner": generated}
