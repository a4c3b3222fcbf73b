"""Admin seminar registration management."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dentalce.database import get_db
from dentalce.middleware.auth_middleware import require_capability
from dentalce.schemas.common import ApiResponse
from dentalce.schemas.registration import RegistrationDetailOut, RegistrationOut, RegistrationUpdate
from dentalce.services import seminar_service
from dentalce.utils.permissions import Capability, RequestContext

router = APIRouter(prefix="/api/admin/seminar-registrations", tags=["admin-registrations"])


@router.get("", response_model=List[RegistrationDetailOut])
def list_registrations(
    seminar_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.VIEW_ADMIN)),
):
    return seminar_service.list_registrations(db, seminar_id=seminar_id, status=status)


@router.get("/{registration_id}", response_model=RegistrationDetailOut)
def get_registration(
    registration_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.VIEW_ADMIN)),
):
    return seminar_service.get_registration(db, registration_id)


@router.put("/{registration_id}", response_model=ApiResponse[RegistrationOut])
def update_registration(
    registration_id: int,
    data: RegistrationUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.MANAGE_REGISTRATIONS)),
):
    registration = seminar_service.update_registration(db, registration_id, data)
    return ApiResponse(message="Registration updated", data=RegistrationOut.model_validate(registration))


@router.delete("/{registration_id}", response_model=ApiResponse[RegistrationOut])
def cancel_registration(
    registration_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.MANAGE_REGISTRATIONS)),
):
    registration = seminar_service.cancel_registration(db, registration_id)
    return ApiResponse(message="Registration cancelled", data=RegistrationOut.model_validate(registration))
