"""Admin seminar management: catalog, session schedule and check-in."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from dentalce.database import get_db
from dentalce.middleware.auth_middleware import require_capability
from dentalce.schemas.common import ApiResponse
from dentalce.schemas.registration import (
    AttendanceOut,
    CheckInRequest,
    CheckInResultOut,
    RegistrationOut,
)
from dentalce.schemas.seminar import (
    SeminarCreate,
    SeminarDetailOut,
    SeminarOut,
    SeminarSessionCreate,
    SeminarSessionOut,
    SeminarSessionUpdate,
    SeminarStatsResultOut,
)
from dentalce.services import attendance_service, seminar_service
from dentalce.utils.permissions import Capability, RequestContext

router = APIRouter(prefix="/api/admin/seminars", tags=["admin-seminars"])


@router.get("", response_model=List[SeminarOut])
def list_seminars(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.VIEW_ADMIN)),
):
    return seminar_service.list_seminars(db)


@router.post("", response_model=SeminarOut, status_code=status.HTTP_201_CREATED)
def create_seminar(
    data: SeminarCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.MANAGE_SEMINARS)),
):
    return seminar_service.create_seminar(db, data)


@router.post("/check-in", response_model=ApiResponse[CheckInResultOut])
def check_in(
    data: CheckInRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.CHECK_IN)),
):
    result = attendance_service.check_in(
        db,
        session_id=data.session_id,
        registration_id=data.registration_id,
        qr_code=data.qr_code,
        is_makeup=data.is_makeup,
        checked_in_by=ctx.user_id,
        notes=data.notes,
    )
    return ApiResponse(message="Checked in", data=CheckInResultOut(**result))


@router.put("/sessions/{session_id}", response_model=SeminarSessionOut)
def update_session(
    session_id: int,
    data: SeminarSessionUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.MANAGE_SEMINARS)),
):
    return seminar_service.update_session(db, session_id, data)


@router.get("/sessions/{session_id}/attendance", response_model=List[AttendanceOut])
def session_attendance(
    session_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.CHECK_IN)),
):
    return attendance_service.list_session_attendance(db, session_id)


@router.delete("/attendance/{attendance_id}", response_model=ApiResponse[RegistrationOut])
def delete_attendance(
    attendance_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.CHECK_IN)),
):
    registration = attendance_service.remove_attendance(db, attendance_id, ctx.user_id)
    return ApiResponse(message="Attendance removed", data=RegistrationOut.model_validate(registration))


@router.get("/{seminar_id:int}", response_model=SeminarDetailOut)
def get_seminar(
    seminar_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.VIEW_ADMIN)),
):
    return seminar_service.get_seminar(db, seminar_id)


@router.get("/{seminar_id:int}/stats", response_model=SeminarStatsResultOut)
def seminar_stats(
    seminar_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.VIEW_ADMIN)),
):
    result = seminar_service.get_seminar_stats(db, seminar_id)
    return SeminarStatsResultOut.model_validate(result, from_attributes=True)


@router.post(
    "/{seminar_id:int}/sessions",
    response_model=SeminarSessionOut,
    status_code=status.HTTP_201_CREATED,
)
def create_session(
    seminar_id: int,
    data: SeminarSessionCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.MANAGE_SEMINARS)),
):
    return seminar_service.create_session(db, seminar_id, data)
