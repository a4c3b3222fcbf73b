"""SQLAlchemy model package."""

from dentalce.models.user import User
from dentalce.models.seminar import Seminar, SeminarSession
from dentalce.models.registration import SeminarRegistration, SeminarAttendance
from dentalce.models.makeup_request import MakeupRequest
from dentalce.models.ce_ledger import CELedgerEntry
from dentalce.models.certificate import SeminarCertificate

__all__ = [
    "User",
    "Seminar", "SeminarSession",
    "SeminarRegistration", "SeminarAttendance",
    "MakeupRequest",
    "CELedgerEntry",
    "SeminarCertificate",
]
