"""Club member document and its append-only history tables.

A member is stored as one JSONB document split into named sections
(``personal_info``, ``contact``, ``address`` ...). Section saves replace the
whole document; the change log and renewal tables are insert-only.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column


class ClubMember(Base):
    """Core member document.

    ``association_id`` and ``club_id`` are lifted out of the document so that
    scope lookups can filter on them.
    """

    __tablename__ = "club_members"

    member_id: Mapped[str] = mapped_column(String, primary_key=True)
    association_id: Mapped[Optional[str]] = mapped_column(
        String, index=True, nullable=True
    )
    club_id: Mapped[Optional[str]] = mapped_column(String, index=True, nullable=True)

    record: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)

    # Incremented on every replace
    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default="1"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
    updated_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    def __repr__(self):
        return f"<ClubMember {self.member_id} v{self.version}>"


class MemberChangeLog(Base):
    """One audited section save. Never updated or deleted."""

    __tablename__ = "member_change_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("club_members.member_id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )
    section: Mapped[str] = mapped_column(String, nullable=False)
    # {"dot.path": {"old": ..., "new": ...}}
    changes: Mapped[dict] = mapped_column(JSONB, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )
    updated_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    def __repr__(self):
        return f"<MemberChangeLog member_id={self.member_id} section={self.section}>"


class MemberRenewal(Base):
    """One membership renewal. Never updated or deleted."""

    __tablename__ = "member_renewals"

    renewal_id: Mapped[str] = mapped_column(String, primary_key=True)
    member_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("club_members.member_id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    # NULL for one-time (life) memberships
    period_end: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    membership_type_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("membership_type_definitions.type_id", ondelete="RESTRICT"),
        nullable=False,
    )
    fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    renewal_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )
    renewed_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    def __repr__(self):
        return f"<MemberRenewal {self.renewal_id} member_id={self.member_id}>"
