"""Makeup eligibility rules for a seminar registration.

Pure functions over session rows, the attended session ids and the
registration's makeup flag. Nothing here touches the database; callers pass in
what they loaded so the same rules back both the status endpoint and request
submission.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from fastapi import HTTPException


ACTIVE_REQUEST_STATUSES = ("pending", "approved")

ALREADY_USED = "already_used"
PERFECT_ATTENDANCE = "perfect_attendance"
REQUEST_IN_FLIGHT = "request_in_flight"
ELIGIBLE = "eligible"


@dataclass
class MakeupEligibility:
    state: str
    missed_sessions: List[Any] = field(default_factory=list)
    future_sessions: List[Any] = field(default_factory=list)
    active_request: Optional[Any] = None

    @property
    def can_submit(self) -> bool:
        return self.state == ELIGIBLE


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def partition_sessions(
    sessions: Iterable[Any],
    attended_session_ids: Iterable[int],
    today: date,
) -> Tuple[List[Any], List[Any]]:
    """Split sessions into (missed, future) relative to ``today``.

    A session dated before today that was not attended is missed. Sessions
    dated today or later are makeup targets. Past attended sessions fall in
    neither list.
    """
    today = _as_date(today)
    attended = set(attended_session_ids)
    missed: List[Any] = []
    future: List[Any] = []
    for s in sorted(sessions, key=lambda row: (_as_date(row.session_date), row.session_number)):
        session_day = _as_date(s.session_date)
        if session_day < today:
            if s.session_id not in attended:
                missed.append(s)
        else:
            future.append(s)
    return missed, future


def find_active_request(requests: Iterable[Any]) -> Optional[Any]:
    for r in requests:
        if r.status in ACTIVE_REQUEST_STATUSES:
            return r
    return None


def evaluate_makeup_state(
    sessions: Sequence[Any],
    attended_session_ids: Iterable[int],
    makeup_used: bool,
    requests: Iterable[Any],
    today: date,
) -> MakeupEligibility:
    missed, future = partition_sessions(sessions, attended_session_ids, today)
    active = find_active_request(requests)

    if makeup_used:
        state = ALREADY_USED
    elif not missed:
        state = PERFECT_ATTENDANCE
    elif active is not None:
        state = REQUEST_IN_FLIGHT
    else:
        state = ELIGIBLE

    return MakeupEligibility(
        state=state,
        missed_sessions=missed,
        future_sessions=future,
        active_request=active,
    )


def validate_makeup_submission(
    eligibility: MakeupEligibility,
    missed_session_id: Optional[int],
    requested_session_id: Optional[int] = None,
) -> None:
    """Raise 400 unless the submission fits the computed eligibility."""
    if not missed_session_id:
        raise HTTPException(status_code=400, detail="missed_session_id is required")

    if eligibility.state == ALREADY_USED:
        raise HTTPException(
            status_code=400,
            detail="You have already used your makeup session for this registration",
        )
    if eligibility.state == PERFECT_ATTENDANCE:
        raise HTTPException(status_code=400, detail="No missed sessions to make up")
    if eligibility.state == REQUEST_IN_FLIGHT:
        raise HTTPException(
            status_code=409,
            detail=(
                f'You already have a makeup request with status "{eligibility.active_request.status}". '
                "Please wait for it to be processed or cancel it before submitting a new one."
            ),
        )

    if missed_session_id not in {s.session_id for s in eligibility.missed_sessions}:
        raise HTTPException(
            status_code=400,
            detail="Invalid missed session. It must be a past session of your seminar that you did not attend.",
        )

    if requested_session_id and requested_session_id not in {s.session_id for s in eligibility.future_sessions}:
        raise HTTPException(
            status_code=400,
            detail="The requested makeup session must be a future session of your seminar",
        )
