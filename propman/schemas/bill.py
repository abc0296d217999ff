"""Pydantic schemas for bills and billing batch runs."""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Any

from pydantic import BaseModel, Field

from propman.schemas.base import BaseResponseSchema, BaseCreateSchema


# ==================== Bill Schemas ====================

class BillResponse(BaseResponseSchema):
    """Response schema for a bill row."""
    bill_id: int
    tenant_user_id: int
    bill_number: Optional[str] = None
    description: Optional[str] = None
    total_amount: Decimal
    penalty_amount: Optional[Decimal] = None
    status: str
    is_recurring: bool
    billing_cycle: Optional[str] = None
    bills_cycled: int = 0
    billing_period_start: Optional[date] = None
    billing_period_end: Optional[date] = None
    due_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BillExtendRequest(BaseCreateSchema):
    """Re-open an overdue bill with a later due date."""
    penalty_amount: Decimal = Field(Decimal("0"), ge=0, description="Added to the current penalty")
    days: Optional[int] = Field(None, ge=1, le=90, description="Defaults to BILL_EXTENSION_DAYS")


class BillExtendResponse(BaseModel):
    """Envelope returned by the extension endpoint."""
    success: bool = True
    message: str
    data: BillResponse


# ==================== Batch Run Schemas ====================

class OverdueSweepSummary(BaseModel):
    """Result of one overdue sweep."""
    started_at: str
    completed_at: Optional[str] = None
    checked: int = 0
    marked_overdue: int = 0
    bill_numbers: List[str] = []
    errors: List[str] = []


class CycleClonerSummary(BaseModel):
    """Result of one recurring bill generation pass."""
    started_at: str
    completed_at: Optional[str] = None
    templates: int = 0
    created: int = 0
    skipped: int = 0
    duplicates: int = 0
    failed: int = 0
    bill_numbers: List[str] = []
    errors: List[str] = []


class ScriptRunResponse(BaseModel):
    """Envelope returned by the manual trigger endpoints."""
    success: bool = True
    message: str
    data: Any = None


class JobStatus(BaseModel):
    id: str
    name: str
    next_run_time: Optional[str] = None
    trigger: str
