"""CE credit ledger schemas. Ledger responses use camelCase keys."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import date, datetime


class CreditEntryOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    credits: float
    signed_credits: float
    source: str
    transaction_type: str
    event_title: Optional[str] = None
    event_date: Optional[date] = None
    notes: Optional[str] = None
    awarded_at: Optional[datetime] = None


class UserCreditsOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    total_credits: float
    ledger: List[CreditEntryOut]


class ManualCreditCreate(BaseModel):
    """A manual ledger entry. `credits` is always a positive magnitude; write a
    negative correction as transaction_type "revoked", never as a negative amount.
    """

    user_id: int
    credits: float
    transaction_type: str = "adjustment"  # earned/adjustment/revoked
    source: str = "manual"
    event_title: Optional[str] = None
    event_date: Optional[date] = None
    notes: Optional[str] = None
