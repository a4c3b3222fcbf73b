"""Makeup session request lifecycle model."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from dentalce.database import Base


class MakeupRequest(Base):
    __tablename__ = "seminar_makeup_requests"

    request_id = Column(Integer, primary_key=True, autoincrement=True)
    registration_id = Column(Integer, ForeignKey("seminar_registrations.registration_id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    seminar_id = Column(Integer, ForeignKey("seminars.seminar_id"), nullable=False)
    missed_session_id = Column(Integer, ForeignKey("seminar_sessions.session_id"), nullable=False)
    requested_session_id = Column(
        Integer, ForeignKey("seminar_sessions.session_id", ondelete="SET NULL"), nullable=True
    )
    reason = Column(Text)
    notes = Column(Text)  # admin notes
    status = Column(String(20), nullable=False, default="pending")
    # pending -> approved/denied -> completed/cancelled/expired
    reviewed_by = Column(Integer, ForeignKey("users.user_id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    denial_reason = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    registration = relationship("SeminarRegistration", back_populates="makeup_requests")
    seminar = relationship("Seminar")
    missed_session = relationship("SeminarSession", foreign_keys=[missed_session_id])
    requested_session = relationship("SeminarSession", foreign_keys=[requested_session_id])
    reviewer = relationship("User", foreign_keys=[reviewed_by])

    __table_args__ = (
        Index("idx_makeup_requests_status", "status"),
        Index("idx_makeup_requests_seminar", "seminar_id"),
        # at most one request in flight per registration
        Index(
            "uq_makeup_requests_active",
            "registration_id",
            unique=True,
            sqlite_where=text("status IN ('pending', 'approved')"),
            postgresql_where=text("status IN ('pending', 'approved')"),
        ),
    )
