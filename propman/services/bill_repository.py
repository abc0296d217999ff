"""
Persistence port for bills.

RecurringBillingService only talks to a BillRepository. The SQLAlchemy
implementation opens one session per operation, and every write runs inside
its own `session.begin()` block, so a raised exception rolls the whole
operation back.
"""
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update, and_
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from propman.core.exceptions import BillNotFoundError, BillStateError, TemplateConflictError
from propman.models.bill import Bill, BillStatus

logger = logging.getLogger(__name__)


class BillRepository(ABC):
    """Abstract bill store used by the billing batches."""

    @abstractmethod
    async def list_overdue_candidates(self, today: date) -> List[Bill]:
        """Issued, non-deleted bills whose due date is before `today`."""
        pass

    @abstractmethod
    async def mark_overdue(self, bill_id: int, at: datetime) -> bool:
        """Flip one issued bill to overdue. Returns False if it was no longer issued."""
        pass

    @abstractmethod
    async def list_active_templates(self) -> List[Bill]:
        """Recurring master templates that are not soft-deleted."""
        pass

    @abstractmethod
    async def clone_template(
        self,
        template: Bill,
        new_bill: Bill,
        at: datetime,
    ) -> Optional[Bill]:
        """
        Insert `new_bill` and bump the template's cycle counter atomically.

        Returns None (and writes nothing) when a bill already exists for the
        same tenant, description and period start.
        """
        pass

    @abstractmethod
    async def extend_overdue_bill(
        self,
        bill_id: int,
        days: int,
        penalty_amount: Decimal,
        at: datetime,
    ) -> Bill:
        """Re-open an overdue bill with a later due date and added penalty."""
        pass


class SQLAlchemyBillRepository(BillRepository):
    """BillRepository backed by an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def list_overdue_candidates(self, today: date) -> List[Bill]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Bill)
                .where(
                    and_(
                        Bill.status == BillStatus.ISSUED.value,
                        Bill.due_date < today,
                        Bill.deleted_at.is_(None),
                    )
                )
                .order_by(Bill.bill_id)
            )
            return list(result.scalars().all())

    async def mark_overdue(self, bill_id: int, at: datetime) -> bool:
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(Bill)
                    .where(
                        and_(
                            Bill.bill_id == bill_id,
                            Bill.status == BillStatus.ISSUED.value,
                        )
                    )
                    .values(status=BillStatus.OVERDUE.value, updated_at=at)
                    .execution_options(synchronize_session=False)
                )
            return result.rowcount == 1

    async def list_active_templates(self) -> List[Bill]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Bill)
                .where(
                    and_(
                        Bill.is_recurring == True,  # noqa: E712
                        Bill.status == BillStatus.MASTER.value,
                        Bill.deleted_at.is_(None),
                    )
                )
                .order_by(Bill.bill_id)
            )
            return list(result.scalars().all())

    async def clone_template(
        self,
        template: Bill,
        new_bill: Bill,
        at: datetime,
    ) -> Optional[Bill]:
        cycles_done = template.bills_cycled or 0

        async with self.session_factory() as session:
            async with session.begin():
                existing = await session.execute(
                    select(Bill.bill_id)
                    .where(
                        and_(
                            Bill.tenant_user_id == new_bill.tenant_user_id,
                            Bill.description == new_bill.description,
                            Bill.billing_period_start == new_bill.billing_period_start,
                        )
                    )
                    .limit(1)
                )
                if existing.scalar_one_or_none() is not None:
                    return None

                session.add(new_bill)

                # Guarded on the counter we computed the period from
                counter = await session.execute(
                    update(Bill)
                    .where(
                        and_(
                            Bill.bill_id == template.bill_id,
                            Bill.bills_cycled == cycles_done,
                        )
                    )
                    .values(bills_cycled=cycles_done + 1, updated_at=at)
                    .execution_options(synchronize_session=False)
                )
                if counter.rowcount != 1:
                    raise TemplateConflictError(
                        f"Template {template.bill_id} cycle counter changed during generation"
                    )

                await session.flush()

        return new_bill

    async def extend_overdue_bill(
        self,
        bill_id: int,
        days: int,
        penalty_amount: Decimal,
        at: datetime,
    ) -> Bill:
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    select(Bill)
                    .where(and_(Bill.bill_id == bill_id, Bill.deleted_at.is_(None)))
                    .with_for_update()
                )
                bill = result.scalar_one_or_none()

                if bill is None:
                    raise BillNotFoundError(bill_id)
                if bill.status != BillStatus.OVERDUE.value:
                    raise BillStateError("Only overdue bills can be extended")

                current_due = bill.due_date or at.date()
                current_penalty = bill.penalty_amount or Decimal("0")

                bill.status = BillStatus.ISSUED.value
                bill.due_date = current_due + timedelta(days=days)
                bill.penalty_amount = current_penalty + penalty_amount
                bill.description = f"{bill.description or ''} (extended {days} days)".strip()
                bill.updated_at = at

            logger.info(
                f"Extended bill {bill.bill_number or bill.bill_id} by {days} days, "
                f"due {bill.due_date.isoformat()}, penalty {bill.penalty_amount}"
            )
            return bill
