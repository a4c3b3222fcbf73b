"""Service layer package."""

from dentalce.services import (
    auth_service,
    seminar_service,
    credit_service,
    email_service,
    makeup_eligibility,
    makeup_service,
    attendance_service,
    certificate_service,
    reminder_service,
)
