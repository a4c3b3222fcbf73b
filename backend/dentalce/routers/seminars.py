"""Public seminar catalog, registration and the attendee makeup request endpoints."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dentalce.database import get_db
from dentalce.middleware.auth_middleware import get_request_context
from dentalce.schemas.common import ApiResponse
from dentalce.schemas.makeup import (
    MakeupCreatedOut,
    MakeupRequestCreate,
    MakeupRequestOut,
    MakeupStatusOut,
)
from dentalce.schemas.registration import RegisterRequest, RegistrationOut
from dentalce.schemas.seminar import SeminarDetailOut, SeminarOut
from dentalce.services import makeup_service, seminar_service
from dentalce.utils.permissions import RequestContext

router = APIRouter(prefix="/api/seminars", tags=["seminars"])


@router.get("", response_model=List[SeminarOut])
def list_seminars(db: Session = Depends(get_db)):
    return seminar_service.list_seminars(db, active_only=True)


@router.post("/register", response_model=ApiResponse[RegistrationOut], status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    registration = seminar_service.register(db, ctx.user, data.seminar_id)
    return ApiResponse(data=RegistrationOut.model_validate(registration))


@router.get("/makeup-request", response_model=ApiResponse[List[MakeupRequestOut]])
def list_makeup_requests(
    registration_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    if registration_id:
        requests = makeup_service.list_requests_for_registration(db, ctx, registration_id)
    else:
        requests = makeup_service.list_requests_for_user(db, ctx, ctx.user_id)
    return ApiResponse(data=[MakeupRequestOut.model_validate(r) for r in requests])


@router.get("/makeup-request/status", response_model=ApiResponse[MakeupStatusOut])
def makeup_status(
    registration_id: int = Query(...),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    result = makeup_service.get_makeup_status(db, ctx, registration_id, date.today())
    return ApiResponse(data=MakeupStatusOut.model_validate(result, from_attributes=True))


@router.post(
    "/makeup-request",
    response_model=ApiResponse[MakeupCreatedOut],
    status_code=status.HTTP_201_CREATED,
)
def submit_makeup_request(
    data: MakeupRequestCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    request = makeup_service.create_makeup_request(
        db,
        ctx,
        registration_id=data.registration_id,
        missed_session_id=data.missed_session_id,
        requested_session_id=data.requested_session_id,
        reason=data.reason,
        user_id=data.user_id,
    )
    return ApiResponse(
        message="Makeup request submitted",
        data=MakeupCreatedOut.model_validate(request, from_attributes=True),
    )


# declared last so the static paths above win over the slug
@router.get("/{slug}", response_model=SeminarDetailOut)
def get_seminar(slug: str, db: Session = Depends(get_db)):
    return seminar_service.get_seminar_by_slug(db, slug)
