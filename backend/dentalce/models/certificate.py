"""Bi-annual seminar CE certificates."""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from dentalce.database import Base


class SeminarCertificate(Base):
    __tablename__ = "seminar_certificates"

    certificate_id = Column(Integer, primary_key=True, autoincrement=True)
    registration_id = Column(Integer, ForeignKey("seminar_registrations.registration_id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    seminar_id = Column(Integer, ForeignKey("seminars.seminar_id"), nullable=False)
    certificate_code = Column(String(50), unique=True, nullable=False)
    period = Column(String(20), nullable=False)  # first_half/second_half
    year = Column(Integer, nullable=False)
    credits = Column(Float, nullable=False, default=0)
    certificate_url = Column(String(500))
    generated_at = Column(DateTime, nullable=False)
    sent_at = Column(DateTime, nullable=True)

    registration = relationship("SeminarRegistration", back_populates="certificates")

    __table_args__ = (
        UniqueConstraint("registration_id", "period", "year", name="uq_seminar_certificate_period"),
    )
