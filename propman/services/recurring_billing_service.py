"""
Recurring Billing Service

Runs the two daily billing batches over a BillRepository:
- Overdue sweep: issued bills past their due date become overdue
- Cycle cloner: master templates are cloned into one issued bill per period

Also hosts the overdue extension workflow used by managers.

Neither batch keeps state between runs. A malformed template or a failed
write is logged and counted, and the batch moves on to the next row.
"""
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from propman.config import settings
from propman.core.billing_cycle import (
    calculate_next_billing_start,
    compute_billing_period,
    generate_bill_number,
    parse_billing_cycle,
)
from propman.models.bill import Bill, BillStatus
from propman.services.bill_repository import BillRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _billing_date(value: datetime) -> date:
    """Calendar date of `value` in the billing timezone. Naive values are UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(settings.billing_tz).date()


class RecurringBillingService:
    """Service for recurring bill generation and overdue handling."""

    def __init__(self, repository: BillRepository):
        self.repository = repository

    async def run_overdue_sweep(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Mark every issued bill whose due date is before `now` as overdue.

        Dates are compared in the billing timezone (SCHEDULER_TIMEZONE), the
        same zone the daily cron trigger fires in.

        Each bill is updated in its own transaction; one failed update does
        not stop the sweep.

        Returns:
            Summary with checked/marked counts, bill numbers and errors
        """
        now = now or _utcnow()
        today = _billing_date(now)
        logger.info(f"Checking for overdue bills (due before {today.isoformat()})...")

        results: Dict[str, Any] = {
            "started_at": _utcnow().isoformat(),
            "checked": 0,
            "marked_overdue": 0,
            "bill_numbers": [],
            "errors": [],
        }

        candidates = await self.repository.list_overdue_candidates(today)
        results["checked"] = len(candidates)

        if not candidates:
            logger.info("No newly overdue bills found.")

        for bill in candidates:
            label = bill.bill_number or str(bill.bill_id)
            try:
                changed = await self.repository.mark_overdue(bill.bill_id, now)
            except Exception as e:
                error_msg = f"Failed to mark bill {label} as overdue: {e}"
                logger.error(error_msg)
                results["errors"].append(error_msg)
                continue

            if changed:
                results["marked_overdue"] += 1
                results["bill_numbers"].append(label)
                logger.info(f"Marked bill {label} as overdue.")
            else:
                logger.debug(f"Bill {label} changed status before the sweep reached it")

        results["completed_at"] = _utcnow().isoformat()
        logger.info(
            f"Overdue sweep completed: {results['marked_overdue']}/{results['checked']} bills marked overdue"
        )
        return results

    async def run_cycle_cloner(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Clone recurring master templates whose next billing period has started.

        For each template the next period start is created_at advanced by
        bills_cycled whole cycles. If that date is not after `now` and no bill
        exists yet for (tenant, description, period start), a new issued bill
        is inserted and the template counter incremented in one transaction.

        Returns:
            Summary with created/skipped/duplicate/failed counts and errors
        """
        now = now or _utcnow()
        today = _billing_date(now)
        logger.info("Finding active master templates for recurring bills...")

        results: Dict[str, Any] = {
            "started_at": _utcnow().isoformat(),
            "templates": 0,
            "created": 0,
            "skipped": 0,
            "duplicates": 0,
            "failed": 0,
            "bill_numbers": [],
            "errors": [],
        }

        templates = await self.repository.list_active_templates()
        results["templates"] = len(templates)

        if not templates:
            logger.info("No active master templates found.")
            results["completed_at"] = _utcnow().isoformat()
            return results

        logger.info(f"Found {len(templates)} active master templates.")

        for template in templates:
            outcome = await self._clone_if_due(template, now, today, results)
            if outcome in ("skipped", "duplicates", "failed"):
                results[outcome] += 1

        results["completed_at"] = _utcnow().isoformat()
        logger.info(
            f"Recurring bill generation completed: {results['created']} created, "
            f"{results['duplicates']} already generated, {results['skipped']} skipped, "
            f"{results['failed']} failed"
        )
        return results

    async def _clone_if_due(
        self,
        template: Bill,
        now: datetime,
        today: date,
        results: Dict[str, Any],
    ) -> str:
        if not template.billing_cycle:
            logger.warning(f"Skipping master template ID {template.bill_id} due to missing billing_cycle.")
            return "skipped"

        if not template.created_at:
            logger.warning(f"Skipping master template ID {template.bill_id} due to missing created_at.")
            return "skipped"

        cycle = parse_billing_cycle(template.billing_cycle)
        if cycle is None:
            logger.warning(
                f"Skipping master template ID {template.bill_id} due to invalid cycle "
                f"'{template.billing_cycle}'."
            )
            return "skipped"

        cycles_done = template.bills_cycled or 0
        next_start = calculate_next_billing_start(
            _billing_date(template.created_at), cycle, cycles_done
        )

        if today < next_start:
            return "not_due"

        period = compute_billing_period(next_start, cycle)
        bill_number = generate_bill_number(period.start)

        new_bill = Bill(
            tenant_user_id=template.tenant_user_id,
            total_amount=template.total_amount,
            description=template.description,
            created_by=template.created_by,
            bill_number=bill_number,
            status=BillStatus.ISSUED.value,
            is_recurring=True,
            billing_cycle=None,
            bills_cycled=0,
            billing_period_start=period.start,
            billing_period_end=period.end,
            due_date=period.due_date,
            penalty_amount=template.penalty_amount,
            created_at=now,
            updated_at=now,
        )

        try:
            created = await self.repository.clone_template(template, new_bill, now)
        except Exception as e:
            error_msg = f"Transaction failed for master template {template.bill_id}: {e}"
            logger.error(error_msg)
            results["errors"].append(error_msg)
            return "failed"

        if created is None:
            logger.info(
                f"Bill for period starting {period.start.isoformat()} already generated "
                f"for master template {template.bill_id}. Skipping."
            )
            return "duplicates"

        results["created"] += 1
        results["bill_numbers"].append(bill_number)
        logger.info(
            f"Cloned {cycle.value} bill (Number: {bill_number}) from master {template.bill_id} "
            f"for tenant {template.tenant_user_id}. Cycle count updated to {cycles_done + 1}."
        )
        return "created"

    async def extend_overdue_bill(
        self,
        bill_id: int,
        penalty_amount: Decimal = Decimal("0"),
        days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Bill:
        """
        Re-open an overdue bill.

        Sets the bill back to issued, moves the due date `days` later
        (default BILL_EXTENSION_DAYS) and adds `penalty_amount` to the
        existing penalty.

        Raises:
            BillNotFoundError: Unknown or deleted bill
            BillStateError: Bill is not overdue
            ValueError: Negative penalty or non-positive days
        """
        days = days if days is not None else settings.BILL_EXTENSION_DAYS
        if days <= 0:
            raise ValueError("Extension days must be positive")
        penalty = Decimal(str(penalty_amount or 0))
        if penalty < 0:
            raise ValueError("Penalty amount cannot be negative")

        return await self.repository.extend_overdue_bill(
            bill_id, days, penalty, now or _utcnow()
        )
