"""API endpoints for bill workflows."""
from fastapi import APIRouter, HTTPException, status

from propman.api.deps import BillingManager, BillingService
from propman.core.exceptions import BillNotFoundError, BillStateError
from propman.schemas.bill import BillExtendRequest, BillExtendResponse, BillResponse

router = APIRouter()


@router.post("/{bill_id}/extend", response_model=BillExtendResponse)
async def extend_bill(
    bill_id: int,
    extend_in: BillExtendRequest,
    service: BillingService,
    current_user: BillingManager,
):
    """Re-open an overdue bill with a later due date and optional penalty."""
    try:
        bill = await service.extend_overdue_bill(
            bill_id,
            penalty_amount=extend_in.penalty_amount,
            days=extend_in.days,
        )
    except BillNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (BillStateError, ValueError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return BillExtendResponse(
        success=True,
        message=f"Bill {bill.bill_number or bill.bill_id} extended until {bill.due_date.isoformat()}.",
        data=BillResponse.model_validate(bill),
    )
