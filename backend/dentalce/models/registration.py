"""Seminar enrollment rows and the per-session attendance that drives progress."""

from datetime import date

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Date, DateTime, Float, ForeignKey, Index, UniqueConstraint, text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from dentalce.database import Base


class SeminarRegistration(Base):
    __tablename__ = "seminar_registrations"

    registration_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    seminar_id = Column(Integer, ForeignKey("seminars.seminar_id"), nullable=False)
    status = Column(String(20), nullable=False, default="active")
    # active/completed/on_hold/cancelled
    sessions_completed = Column(Integer, nullable=False, default=0)
    sessions_remaining = Column(Integer, nullable=False, default=10)
    makeup_used = Column(Boolean, nullable=False, default=False)
    qr_code = Column(String(100), unique=True)
    registration_date = Column(Date, default=date.today)
    notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="seminar_registrations")
    seminar = relationship("Seminar", back_populates="registrations")
    attendance = relationship(
        "SeminarAttendance",
        back_populates="registration",
        order_by="SeminarAttendance.checked_in_at",
    )
    makeup_requests = relationship("MakeupRequest", back_populates="registration")
    certificates = relationship("SeminarCertificate", back_populates="registration")

    __table_args__ = (
        Index("idx_seminar_registrations_status", "status"),
        # one live registration per user per seminar
        Index(
            "uq_seminar_registration_user_seminar",
            "user_id",
            "seminar_id",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )


class SeminarAttendance(Base):
    __tablename__ = "seminar_attendance"

    attendance_id = Column(Integer, primary_key=True, autoincrement=True)
    registration_id = Column(Integer, ForeignKey("seminar_registrations.registration_id"), nullable=False)
    session_id = Column(Integer, ForeignKey("seminar_sessions.session_id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    seminar_id = Column(Integer, ForeignKey("seminars.seminar_id"), nullable=False)
    is_makeup = Column(Boolean, nullable=False, default=False)
    credits_awarded = Column(Float, nullable=False, default=2.0)
    checked_in_at = Column(DateTime, nullable=False)
    checked_in_by = Column(Integer, ForeignKey("users.user_id"), nullable=True)
    notes = Column(Text)

    registration = relationship("SeminarRegistration", back_populates="attendance")
    session = relationship("SeminarSession")

    __table_args__ = (
        UniqueConstraint("registration_id", "session_id", name="uq_seminar_attendance"),
        Index("idx_seminar_attendance_session", "session_id"),
    )
