"""Renewal schemas."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator
from services.members_service.schemas.audit import RenewalRecord


class MembershipPeriod(BaseModel):
    """Coverage period with inclusive dates. ``end`` is None for life cover."""

    start: date
    end: Optional[date] = None

    @model_validator(mode="after")
    def check_order(self) -> "MembershipPeriod":
        if self.end is not None and self.end < self.start:
            raise ValueError("period end must not precede period start")
        return self


class RenewalPreview(BaseModel):
    member_id: str
    membership_type_id: Optional[str] = None
    current_period: Optional[MembershipPeriod] = None
    # True once the current period has ended; life cover never expires
    expired: bool = False
    proposed_period: MembershipPeriod
    renewal_history: list[RenewalRecord] = Field(default_factory=list)


class RenewalChoice(BaseModel):
    """What the administrator picked on the renewal screen."""

    membership_type_id: str
    # Defaults to the required fees of the chosen type when omitted
    fee: Optional[Decimal] = Field(default=None, ge=0)
    notes: str = ""
