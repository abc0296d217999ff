"""
Shared fixtures.

Environment is set before any propman import so the cached Settings and the
module-level engine point at an in-memory SQLite database.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("BILLING_SCHEDULER_ENABLED", "false")
os.environ.setdefault("SCHEDULER_TIMEZONE", "Asia/Ho_Chi_Minh")

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from propman.database import Base
from propman.models.bill import Bill, BillStatus
from propman.services.bill_repository import SQLAlchemyBillRepository
from propman.services.recurring_billing_service import RecurringBillingService


@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    yield factory
    await engine.dispose()


@pytest.fixture
def repository(session_factory):
    return SQLAlchemyBillRepository(session_factory)


@pytest.fixture
def service(repository):
    return RecurringBillingService(repository)


@pytest.fixture
def add_bill(session_factory):
    """Insert a bill row and return it."""
    async def _add(**fields) -> Bill:
        async with session_factory() as session:
            bill = Bill(**fields)
            session.add(bill)
            await session.commit()
            return bill
    return _add


@pytest.fixture
def add_template(add_bill):
    """Insert a recurring master template."""
    async def _add(
        created_at: Optional[datetime] = datetime(2026, 1, 1, tzinfo=timezone.utc),
        billing_cycle: Optional[str] = "MONTHLY",
        bills_cycled: int = 0,
        tenant_user_id: int = 7,
        description: str = "Monthly rent - Room 101",
        total_amount: Decimal = Decimal("3500000.00"),
        status: str = BillStatus.MASTER.value,
        **fields,
    ) -> Bill:
        return await add_bill(
            tenant_user_id=tenant_user_id,
            description=description,
            total_amount=total_amount,
            penalty_amount=Decimal("50000.00"),
            status=status,
            is_recurring=True,
            billing_cycle=billing_cycle,
            bills_cycled=bills_cycled,
            created_by=1,
            created_at=created_at,
            **fields,
        )
    return _add


@pytest.fixture
def add_issued_bill(add_bill):
    """Insert an issued (payable) bill."""
    async def _add(due_date: date, bill_number: str, **fields) -> Bill:
        values = dict(
            tenant_user_id=7,
            description="Electricity",
            total_amount=Decimal("420000.00"),
            status=BillStatus.ISSUED.value,
            is_recurring=False,
            bill_number=bill_number,
            due_date=due_date,
        )
        values.update(fields)
        return await add_bill(**values)
    return _add


@pytest.fixture
def fetch_bill(session_factory):
    async def _fetch(bill_id: int) -> Bill:
        async with session_factory() as session:
            return await session.get(Bill, bill_id)
    return _fetch
