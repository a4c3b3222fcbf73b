"""Makeup request schemas."""

from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime

from dentalce.schemas.seminar import SessionBriefOut


class MakeupRequestCreate(BaseModel):
    # presence is checked by the service so a missing id answers 400, not 422
    registration_id: Optional[int] = None
    missed_session_id: Optional[int] = None
    requested_session_id: Optional[int] = None
    reason: Optional[str] = None
    user_id: Optional[int] = None


class MakeupRequestOut(BaseModel):
    request_id: int
    registration_id: int
    user_id: int
    seminar_id: int
    missed_session_id: int
    requested_session_id: Optional[int] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    status: str
    denial_reason: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    missed_session: Optional[SessionBriefOut] = None
    requested_session: Optional[SessionBriefOut] = None

    model_config = {"from_attributes": True}


class MakeupCreatedOut(BaseModel):
    request_id: int
    status: str
    missed_session: SessionBriefOut
    requested_session: Optional[SessionBriefOut] = None


class MakeupStatusOut(BaseModel):
    registration_id: int
    state: str
    can_submit: bool
    makeup_used: bool
    missed_sessions: List[SessionBriefOut] = []
    future_sessions: List[SessionBriefOut] = []
    active_request: Optional[MakeupRequestOut] = None


class MakeupReviewRequest(BaseModel):
    action: str  # approve/deny/complete/cancel/expire/update
    notes: Optional[str] = None
    denial_reason: Optional[str] = None
    requested_session_id: Optional[int] = None


class MakeupRequestListOut(BaseModel):
    success: bool = True
    data: List[MakeupRequestOut]
    counts: Dict[str, int]
    total: int
