"""Seminar program and its fixed session schedule."""

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from dentalce.database import Base


class Seminar(Base):
    __tablename__ = "seminars"

    seminar_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    year = Column(Integer, nullable=False)
    description = Column(Text)
    total_sessions = Column(Integer, nullable=False, default=10)
    status = Column(String(20), nullable=False, default="active")
    # draft/active/completed/archived
    created_at = Column(DateTime, server_default=func.now())

    sessions = relationship(
        "SeminarSession",
        back_populates="seminar",
        cascade="all, delete-orphan",
        order_by="SeminarSession.session_number",
    )
    registrations = relationship("SeminarRegistration", back_populates="seminar")

    __table_args__ = (
        Index("idx_seminars_year", "year"),
        Index("idx_seminars_status", "status"),
    )


class SeminarSession(Base):
    __tablename__ = "seminar_sessions"

    session_id = Column(Integer, primary_key=True, autoincrement=True)
    seminar_id = Column(Integer, ForeignKey("seminars.seminar_id", ondelete="CASCADE"), nullable=False)
    session_number = Column(Integer, nullable=False)
    session_date = Column(Date, nullable=False)
    time_start = Column(String(10))  # HH:MM
    time_end = Column(String(10))    # HH:MM
    topic = Column(String(500))
    description = Column(Text)
    created_at = Column(DateTime, server_default=func.now())

    seminar = relationship("Seminar", back_populates="sessions")

    __table_args__ = (
        UniqueConstraint("seminar_id", "session_number", name="uq_seminar_session_number"),
        Index("idx_seminar_sessions_date", "session_date"),
    )
