"""Attendee dashboard endpoints: CE credit ledger and seminar registrations."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from dentalce.database import get_db
from dentalce.middleware.auth_middleware import get_request_context
from dentalce.schemas.credit import CreditEntryOut, UserCreditsOut
from dentalce.schemas.registration import RegistrationDetailOut
from dentalce.services import credit_service, seminar_service
from dentalce.utils.permissions import Capability, RequestContext

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/credits", response_model=UserCreditsOut)
def get_credits(
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    target = user_id or ctx.user_id
    if not ctx.can_act_for(target, Capability.MANAGE_CREDITS):
        raise HTTPException(status_code=403, detail="You can only view your own credits")
    ledger = credit_service.get_ledger(db, target)
    return UserCreditsOut(
        total_credits=credit_service.total_of(ledger),
        ledger=[CreditEntryOut(**credit_service.entry_view(e)) for e in ledger],
    )


@router.get("/seminars", response_model=List[RegistrationDetailOut])
def my_seminars(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return seminar_service.list_user_registrations(db, ctx.user_id)
