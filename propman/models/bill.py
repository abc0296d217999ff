"""Bill model.

One table holds three kinds of rows:
- master templates (status=master, is_recurring=True, billing_cycle set)
- concrete bills generated from templates (status=issued, billing_cycle NULL)
- one-off bills created by managers
"""
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, Boolean, DateTime, Integer, Text, Numeric, Date
from sqlalchemy import UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from propman.core.billing_cycle import BillingCycle
from propman.core.enum_utils import enum_comment
from propman.database import Base


class BillStatus(str, Enum):
    """Bill status enumeration."""
    DRAFT = "draft"
    MASTER = "master"                  # Recurring template, never payable
    ISSUED = "issued"
    OVERDUE = "overdue"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    CANCELLED = "cancelled"


class Bill(Base):
    """
    Tenant bill.

    Concrete bills generated from a template are de-duplicated on
    (tenant_user_id, description, billing_period_start).
    """
    __tablename__ = "bills"
    __table_args__ = (
        UniqueConstraint(
            "tenant_user_id", "description", "billing_period_start",
            name="uq_bills_tenant_description_period",
        ),
        Index("ix_bills_status_due_date", "status", "due_date"),
    )

    bill_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    tenant_user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    bill_number: Mapped[Optional[str]] = mapped_column(
        String(50),
        unique=True,
        nullable=True,
        comment="e.g., B-2026-2-GEN-4512f3"
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Amounts
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    penalty_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    # Status & recurrence
    status: Mapped[str] = mapped_column(
        String(20),
        default=BillStatus.DRAFT.value,
        nullable=False,
        comment=enum_comment(BillStatus)
    )
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    billing_cycle: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment=enum_comment(BillingCycle)
    )
    bills_cycled: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Concrete bills generated from this template"
    )

    # Period
    billing_period_start: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    billing_period_end: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Timestamps
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_template(self) -> bool:
        return self.status == BillStatus.MASTER.value and self.is_recurring

    def __repr__(self) -> str:
        return f"<Bill(bill_id={self.bill_id}, number='{self.bill_number}', status='{self.status}')>"
