"""Append-only CE credit ledger."""

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Float, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from dentalce.database import Base


class CELedgerEntry(Base):
    __tablename__ = "ce_ledger"

    entry_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    seminar_id = Column(Integer, ForeignKey("seminars.seminar_id", ondelete="SET NULL"), nullable=True)
    session_id = Column(Integer, ForeignKey("seminar_sessions.session_id", ondelete="SET NULL"), nullable=True)
    credits = Column(Float, nullable=False)  # always a positive magnitude
    source = Column(String(50), nullable=False)
    # course_attendance/seminar_session/manual/adjustment
    transaction_type = Column(String(20), nullable=False, default="earned")
    # earned/revoked/adjustment
    event_title = Column(String(255))
    event_date = Column(Date)
    notes = Column(Text)
    awarded_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="ce_entries")

    __table_args__ = (
        Index("idx_ce_ledger_user", "user_id"),
        Index("idx_ce_ledger_event_date", "event_date"),
    )
