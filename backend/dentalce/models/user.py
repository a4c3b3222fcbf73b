"""User domain SQLAlchemy model."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from dentalce.database import Base


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    clerk_id = Column(String(100), unique=True, nullable=True)
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    role = Column(String(20), nullable=False, default="attendee")  # admin/staff/attendee
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())

    seminar_registrations = relationship("SeminarRegistration", back_populates="user")
    ce_entries = relationship("CELedgerEntry", back_populates="user")

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
