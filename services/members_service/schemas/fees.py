"""Fee quote schemas."""

from decimal import Decimal
from typing import Optional

from libs.common.currency import ZERO
from pydantic import BaseModel, Field, computed_field
from services.members_service.models.enums import BillingFrequency


class OptionalCharge(BaseModel):
    """A non-required fee the member may opt into."""

    name: str
    amount: Decimal
    type_id: str
    description: str = ""


class FrequencyTotal(BaseModel):
    required: Decimal = ZERO
    optional: list[OptionalCharge] = Field(default_factory=list)
    type_ids: list[str] = Field(default_factory=list)


class FeeQuote(BaseModel):
    """Amounts owed for one resolution pass, one total per billing frequency.

    Totals for different frequencies are never added together. The only
    combined figure is ``illustrative_total``, which is a display aid and not
    a payable amount.
    """

    currency: Optional[str] = None
    per_frequency: dict[BillingFrequency, FrequencyTotal] = Field(
        default_factory=dict
    )

    @computed_field  # type: ignore[misc]
    @property
    def illustrative_total(self) -> Decimal:
        """Illustrative total across selected periods. Not a payable amount."""
        total = ZERO
        for bucket in self.per_frequency.values():
            total += bucket.required
        return total

    def required_for(self, frequency: BillingFrequency) -> Decimal:
        bucket = self.per_frequency.get(frequency)
        return bucket.required if bucket else ZERO


class FeeQuoteRequest(BaseModel):
    membership_type_ids: list[str] = Field(..., min_length=1)
