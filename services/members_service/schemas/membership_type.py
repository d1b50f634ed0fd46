"""Membership type definition schemas."""

from decimal import Decimal
from typing import Optional

from libs.common.config import get_settings
from libs.common.currency import to_money
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from services.members_service.models.enums import BillingFrequency, MembershipScope


class AgeBounds(BaseModel):
    """Inclusive age range. ``None`` leaves that side unbounded."""

    min: Optional[int] = Field(default=None, ge=0)
    max: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_order(self) -> "AgeBounds":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("age_bounds.min must not exceed age_bounds.max")
        return self

    @property
    def is_bounded(self) -> bool:
        return self.min is not None or self.max is not None

    def contains(self, age: int) -> bool:
        if self.min is not None and age < self.min:
            return False
        if self.max is not None and age > self.max:
            return False
        return True


class AdditionalFee(BaseModel):
    name: str
    amount: Decimal
    required: bool = True
    description: str = ""

    @field_validator("amount", mode="before")
    @classmethod
    def quantize_amount(cls, v):
        return to_money(v)


class FeeSchedule(BaseModel):
    base_amount: Decimal = Decimal("0.00")
    currency: str = Field(
        default_factory=lambda: get_settings().DEFAULT_CURRENCY,
        min_length=3,
        max_length=3,
    )
    frequency: BillingFrequency
    additional_fees: list[AdditionalFee] = Field(default_factory=list)

    @field_validator("base_amount", mode="before")
    @classmethod
    def quantize_base(cls, v):
        return to_money(v)


class MembershipTypeDefinition(BaseModel):
    """A fee and eligibility rule bound to one organisational scope."""

    type_id: str
    name: str
    description: str = ""
    scope: MembershipScope
    scope_owner_id: Optional[str] = None
    age_bounds: AgeBounds = Field(default_factory=AgeBounds)
    fee: FeeSchedule
    # Preconditions such as parental consent; enforced by the caller
    requirements: set[str] = Field(default_factory=set)
    active: bool = True
    usage_count: int = Field(default=0, ge=0)
    display_order: int = 99

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def check_scope_owner(self) -> "MembershipTypeDefinition":
        if self.scope == MembershipScope.GLOBAL and self.scope_owner_id is not None:
            raise ValueError("global membership types cannot have a scope owner")
        if self.scope != MembershipScope.GLOBAL and not self.scope_owner_id:
            raise ValueError(f"{self.scope.value} membership types need a scope owner")
        return self

    @classmethod
    def from_orm_row(cls, row) -> "MembershipTypeDefinition":
        return cls(
            type_id=row.type_id,
            name=row.name,
            description=row.description or "",
            scope=row.scope,
            scope_owner_id=row.scope_owner_id,
            age_bounds=AgeBounds(min=row.min_age, max=row.max_age),
            fee=FeeSchedule(
                base_amount=row.base_amount,
                currency=row.currency,
                frequency=row.frequency,
                additional_fees=row.additional_fees or [],
            ),
            requirements=set(row.requirements or []),
            active=row.active,
            usage_count=row.usage_count or 0,
            display_order=row.display_order,
        )


class MembershipTypeListResponse(BaseModel):
    items: list[MembershipTypeDefinition]
    total: int
