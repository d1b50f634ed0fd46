"""Membership type catalog table.

Each row is one fee/eligibility rule bound to a scope (global, association,
club or team). Rows referenced by a renewal carry ``usage_count > 0`` and are
only ever deactivated, never deleted.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.members_service.models.enums import (
    BillingFrequency,
    MembershipScope,
    enum_values,
)
from sqlalchemy import Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Index, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column


class MembershipType(Base):
    """A scoped membership type definition."""

    __tablename__ = "membership_type_definitions"
    __table_args__ = (
        CheckConstraint(
            "(scope = 'global') = (scope_owner_id IS NULL)",
            name="ck_membership_type_scope_owner",
        ),
        CheckConstraint(
            "min_age IS NULL OR max_age IS NULL OR min_age <= max_age",
            name="ck_membership_type_age_bounds",
        ),
        Index("ix_membership_type_scope_owner", "scope", "scope_owner_id"),
    )

    type_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    scope: Mapped[MembershipScope] = mapped_column(
        SAEnum(
            MembershipScope,
            name="membership_scope_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    scope_owner_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    # Inclusive; NULL means unbounded on that side
    min_age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Fee schedule
    base_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    frequency: Mapped[BillingFrequency] = mapped_column(
        SAEnum(
            BillingFrequency,
            name="billing_frequency_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    # [{name, amount, required, description}]
    additional_fees: Mapped[list[dict]] = mapped_column(
        JSONB, nullable=False, default=list
    )

    requirements: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=list
    )

    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    usage_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    display_order: Mapped[int] = mapped_column(
        Integer, default=99, server_default="99", nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<MembershipType {self.type_id} scope={self.scope}>"
