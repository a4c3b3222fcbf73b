"""Admin certificate issuance for the bi-annual reporting periods."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dentalce.database import get_db
from dentalce.middleware.auth_middleware import require_capability
from dentalce.schemas.certificate import (
    BulkCertificateRequest,
    BulkResultOut,
    CertificateActionRequest,
    CertificateOut,
    EligibilityOut,
    SentCertificateOut,
)
from dentalce.schemas.common import ApiResponse
from dentalce.services import certificate_service
from dentalce.utils.permissions import Capability, RequestContext

router = APIRouter(prefix="/api/admin/seminars/certificates", tags=["admin-certificates"])


@router.get("/eligible", response_model=EligibilityOut)
def eligible(
    seminar_id: int = Query(...),
    period: str = Query(...),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.ISSUE_CERTIFICATES)),
):
    result = certificate_service.list_eligibility(db, seminar_id, period, year)
    return EligibilityOut.model_validate(result, from_attributes=True)


@router.post("/generate", response_model=ApiResponse[CertificateOut])
def generate(
    data: CertificateActionRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.ISSUE_CERTIFICATES)),
):
    certificate = certificate_service.generate_certificate(db, data.registration_id, data.period, data.year)
    return ApiResponse(message="Certificate generated", data=CertificateOut.model_validate(certificate))


@router.post("/send", response_model=ApiResponse[SentCertificateOut])
def send(
    data: CertificateActionRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.ISSUE_CERTIFICATES)),
):
    result = certificate_service.send_certificate(
        db, data.registration_id, data.period, data.year, email=data.email
    )
    return ApiResponse(message="Certificate sent", data=SentCertificateOut.model_validate(result, from_attributes=True))


@router.post("/bulk-generate", response_model=BulkResultOut)
def bulk_generate(
    data: BulkCertificateRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.ISSUE_CERTIFICATES)),
):
    return certificate_service.bulk_generate(db, data.registration_ids, data.period, data.year)


@router.post("/bulk-send", response_model=BulkResultOut)
def bulk_send(
    data: BulkCertificateRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.ISSUE_CERTIFICATES)),
):
    return certificate_service.bulk_send(db, data.registration_ids, data.period, data.year)
