"""Admin review of makeup session requests."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dentalce.database import get_db
from dentalce.middleware.auth_middleware import require_capability
from dentalce.schemas.common import ApiResponse
from dentalce.schemas.makeup import MakeupRequestListOut, MakeupRequestOut, MakeupReviewRequest
from dentalce.services import makeup_service
from dentalce.utils.permissions import Capability, RequestContext

router = APIRouter(prefix="/api/admin/seminars/makeup-requests", tags=["admin-makeup"])


@router.get("", response_model=MakeupRequestListOut)
def list_requests(
    seminar_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.REVIEW_MAKEUP)),
):
    requests = makeup_service.list_requests(db, seminar_id=seminar_id, status=status)
    return MakeupRequestListOut(
        data=[MakeupRequestOut.model_validate(r) for r in requests],
        counts=makeup_service.count_by_status(db),
        total=len(requests),
    )


@router.get("/{request_id}", response_model=ApiResponse[MakeupRequestOut])
def get_request(
    request_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.REVIEW_MAKEUP)),
):
    return ApiResponse(data=MakeupRequestOut.model_validate(makeup_service.get_request(db, request_id)))


@router.patch("/{request_id}", response_model=ApiResponse[MakeupRequestOut])
def review_request(
    request_id: int,
    data: MakeupReviewRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.REVIEW_MAKEUP)),
):
    request = makeup_service.review_request(
        db,
        request_id,
        action=data.action,
        reviewer_id=ctx.user_id,
        notes=data.notes,
        denial_reason=data.denial_reason,
        requested_session_id=data.requested_session_id,
    )
    return ApiResponse(message=f"Request {request.status}", data=MakeupRequestOut.model_validate(request))


@router.delete("/{request_id}")
def delete_request(
    request_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.REVIEW_MAKEUP)),
):
    makeup_service.delete_request(db, request_id)
    return {"success": True, "message": "Makeup request deleted"}
