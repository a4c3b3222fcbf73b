"""CE credit ledger service. Entries are only ever appended; totals are derived."""

import logging
from datetime import date
from typing import Iterable, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.orm import Session

from dentalce.models.ce_ledger import CELedgerEntry

logger = logging.getLogger(__name__)

SOURCES = {"course_attendance", "seminar_session", "manual", "adjustment"}
TRANSACTION_TYPES = {"earned", "revoked", "adjustment"}


def signed_amount(entry: CELedgerEntry) -> float:
    # credits is stored unsigned; revoked entries subtract
    amount = float(entry.credits or 0)
    if entry.transaction_type == "revoked":
        return -amount
    if entry.transaction_type in ("earned", "adjustment"):
        return amount
    return 0.0


def _append(
    db: Session,
    *,
    user_id: int,
    credits: float,
    source: str,
    transaction_type: str,
    seminar_id: Optional[int] = None,
    session_id: Optional[int] = None,
    event_title: Optional[str] = None,
    event_date: Optional[date] = None,
    notes: Optional[str] = None,
    commit: bool = True,
) -> CELedgerEntry:
    if source not in SOURCES:
        raise HTTPException(status_code=400, detail=f"Invalid credit source: {source}")
    if transaction_type not in TRANSACTION_TYPES:
        raise HTTPException(status_code=400, detail=f"Invalid transaction type: {transaction_type}")
    if credits is None or float(credits) <= 0:
        raise HTTPException(
            status_code=400,
            detail="Credits must be a positive amount; record a deduction as a revoked entry",
        )

    entry = CELedgerEntry(
        user_id=user_id,
        credits=round(float(credits), 2),
        source=source,
        transaction_type=transaction_type,
        seminar_id=seminar_id,
        session_id=session_id,
        event_title=event_title,
        event_date=event_date,
        notes=notes,
    )
    db.add(entry)
    if commit:
        db.commit()
        db.refresh(entry)
    else:
        db.flush()
    logger.info(
        "[credits] %s %.2f for user=%s source=%s",
        transaction_type, entry.credits, user_id, source,
    )
    return entry


def award_credits(db: Session, *, user_id: int, credits: float, source: str, **kwargs) -> CELedgerEntry:
    return _append(db, user_id=user_id, credits=credits, source=source, transaction_type="earned", **kwargs)


def revoke_credits(db: Session, *, user_id: int, credits: float, source: str, **kwargs) -> CELedgerEntry:
    return _append(db, user_id=user_id, credits=credits, source=source, transaction_type="revoked", **kwargs)


def adjust_credits(db: Session, *, user_id: int, credits: float, **kwargs) -> CELedgerEntry:
    kwargs.setdefault("source", "adjustment")
    return _append(db, user_id=user_id, credits=credits, transaction_type="adjustment", **kwargs)


def get_ledger(db: Session, user_id: int) -> List[CELedgerEntry]:
    return (
        db.query(CELedgerEntry)
        .filter(CELedgerEntry.user_id == user_id)
        .order_by(CELedgerEntry.awarded_at.desc(), CELedgerEntry.entry_id.desc())
        .all()
    )


def total_of(entries: Iterable[CELedgerEntry]) -> float:
    return round(sum(signed_amount(e) for e in entries), 2)


def get_total_credits(db: Session, user_id: int) -> float:
    return total_of(get_ledger(db, user_id))


def seminar_credits_in_window(
    db: Session,
    user_id: int,
    seminar_id: int,
    window: Tuple[date, date],
) -> Tuple[float, int]:
    """Return (net credits, earned session count) for seminar sessions inside ``window``."""
    start, end = window
    entries = (
        db.query(CELedgerEntry)
        .filter(
            CELedgerEntry.user_id == user_id,
            CELedgerEntry.seminar_id == seminar_id,
            CELedgerEntry.source == "seminar_session",
            CELedgerEntry.event_date >= start,
            CELedgerEntry.event_date <= end,
        )
        .all()
    )
    total = total_of(entries)
    per_session: dict = {}
    for e in entries:
        if e.transaction_type == "earned":
            per_session[e.session_id] = per_session.get(e.session_id, 0) + 1
        elif e.transaction_type == "revoked":
            per_session[e.session_id] = per_session.get(e.session_id, 0) - 1
    sessions = sum(1 for net in per_session.values() if net > 0)
    return total, sessions


def record_manual_entry(
    db: Session,
    *,
    user_id: int,
    credits: float,
    transaction_type: str,
    source: str = "manual",
    **kwargs,
) -> CELedgerEntry:
    # removals are written as "revoked" with a positive amount
    return _append(db, user_id=user_id, credits=credits, source=source, transaction_type=transaction_type, **kwargs)


def entry_view(entry: CELedgerEntry) -> dict:
    return {
        "id": entry.entry_id,
        "credits": entry.credits,
        "signed_credits": signed_amount(entry),
        "source": entry.source,
        "transaction_type": entry.transaction_type,
        "event_title": entry.event_title,
        "event_date": entry.event_date,
        "notes": entry.notes,
        "awarded_at": entry.awarded_at,
    }
