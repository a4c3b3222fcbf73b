"""Seminar certificate schemas."""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class CertificateActionRequest(BaseModel):
    registration_id: int
    period: str
    year: Optional[int] = Field(None, ge=2000, le=2100)
    email: Optional[str] = None


class BulkCertificateRequest(BaseModel):
    registration_ids: List[int]
    period: str
    year: Optional[int] = Field(None, ge=2000, le=2100)


class CertificateOut(BaseModel):
    certificate_id: int
    registration_id: int
    user_id: int
    seminar_id: int
    certificate_code: str
    period: str
    year: int
    credits: float
    certificate_url: Optional[str] = None
    generated_at: datetime
    sent_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class EligibilityRowOut(BaseModel):
    registration_id: int
    user_id: int
    attendee_name: str
    email: Optional[str] = None
    sessions_completed: int
    sessions_in_period: int
    credits_in_period: float
    eligible: bool
    state: str  # ineligible/pending/generated/sent
    certificate: Optional[CertificateOut] = None


class EligibilityStatsOut(BaseModel):
    total: int
    eligible: int
    generated: int
    sent: int


class EligibilityOut(BaseModel):
    seminar_id: int
    period: str
    period_display: str
    year: int
    stats: EligibilityStatsOut
    registrations: List[EligibilityRowOut]


class BulkErrorOut(BaseModel):
    registration_id: int
    error: str


class BulkResultOut(BaseModel):
    succeeded: int
    failed: int
    errors: List[BulkErrorOut] = []


class SentCertificateOut(BaseModel):
    certificate: CertificateOut
    sent_to: str
    skipped_delivery: bool = False


class SeminarIssueDetailOut(BaseModel):
    seminar_id: int
    seminar_title: str
    eligible_count: int
    generated_count: int
    errors: List[BulkErrorOut] = []
    message: Optional[str] = None
    error: Optional[str] = None


class PeriodIssueResultOut(BaseModel):
    period: str
    period_display: str
    year: int
    dry_run: bool
    seminars_processed: int
    total_generated: int
    details: List[SeminarIssueDetailOut] = []
