"""Admin manual CE ledger entries."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from dentalce.database import get_db
from dentalce.middleware.auth_middleware import require_capability
from dentalce.models.user import User
from dentalce.schemas.common import ApiResponse
from dentalce.schemas.credit import CreditEntryOut, ManualCreditCreate
from dentalce.services import credit_service
from dentalce.utils.permissions import Capability, RequestContext

router = APIRouter(prefix="/api/admin/credits", tags=["admin-credits"])


@router.post("", response_model=ApiResponse[CreditEntryOut], status_code=status.HTTP_201_CREATED)
def add_credit_entry(
    data: ManualCreditCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.MANAGE_CREDITS)),
):
    if not db.query(User).filter(User.user_id == data.user_id).first():
        raise HTTPException(status_code=404, detail="User not found")
    entry = credit_service.record_manual_entry(
        db,
        user_id=data.user_id,
        credits=data.credits,
        transaction_type=data.transaction_type,
        source=data.source,
        event_title=data.event_title,
        event_date=data.event_date,
        notes=data.notes or f"Manual entry by user {ctx.user_id}",
    )
    return ApiResponse(message="Credit entry recorded", data=CreditEntryOut(**credit_service.entry_view(entry)))
