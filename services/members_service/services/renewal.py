"""
Membership period renewal.

Periods use inclusive dates and run back to back: a new period starts the day
after the current one ends. Its length follows the chosen type's billing
frequency:

- annual:   one year, ending the day before the anniversary
- seasonal: up to the last day of the configured season window
- one_time: open-ended (life cover), ``end`` is None

Renewal history is append-only.
"""

import calendar
import copy
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional

from libs.common.config import get_settings
from libs.common.currency import format_money, to_money
from libs.common.datetime_utils import parse_date, utc_now, utc_today
from libs.common.logging import get_logger
from services.members_service.errors import EmptyDiffNoOp
from services.members_service.models.enums import BillingFrequency, MembershipStatus
from services.members_service.repository import MembersRepository
from services.members_service.schemas import (
    MemberProfile,
    MembershipPeriod,
    RenewalChoice,
    RenewalPreview,
    RenewalRecord,
)
from services.members_service.services.audit import build_change_record
from services.members_service.services.catalog import ScopeCatalog
from services.members_service.services.eligibility import EligibilityResolver
from services.members_service.services.fees import required_total_for

logger = get_logger(__name__)

RENEWAL_SECTION = "Membership Renewal"


@dataclass(frozen=True)
class SeasonWindow:
    """Playing season as inclusive months; may wrap the year end."""

    start_month: int
    end_month: int

    @classmethod
    def from_settings(cls) -> "SeasonWindow":
        settings = get_settings()
        return cls(settings.SEASON_START_MONTH, settings.SEASON_END_MONTH)

    def end_on_or_after(self, day: date) -> date:
        """Last day of the first season end falling on or after ``day``."""
        end = _month_end(day.year, self.end_month)
        if end < day:
            end = _month_end(day.year + 1, self.end_month)
        return end


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def add_years(day: date, years: int) -> date:
    """Same calendar day ``years`` later; 29 February moves to 1 March."""
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return date(day.year + years, 3, 1)


def period_end_for(
    start: date, frequency: BillingFrequency, season: SeasonWindow
) -> Optional[date]:
    if frequency == BillingFrequency.ANNUAL:
        return add_years(start, 1) - timedelta(days=1)
    if frequency == BillingFrequency.SEASONAL:
        return season.end_on_or_after(start)
    return None


def next_period(
    current: Optional[MembershipPeriod],
    frequency: BillingFrequency,
    season: SeasonWindow,
    today: Optional[date] = None,
) -> MembershipPeriod:
    """The period that follows ``current`` without gap or overlap.

    With no current period, or an open-ended one, cover starts ``today``.
    """
    if current is not None and current.end is not None:
        start = current.end + timedelta(days=1)
    else:
        start = today or utc_today()
    return MembershipPeriod(start=start, end=period_end_for(start, frequency, season))


def current_period_of(membership: dict[str, Any]) -> Optional[MembershipPeriod]:
    start = parse_date(membership.get("current_period_start"))
    if start is None:
        return None
    end = parse_date(membership.get("current_period_end"))
    if end is not None and end < start:
        return None
    return MembershipPeriod(start=start, end=end)


def is_membership_expired(
    membership: dict[str, Any], today: Optional[date] = None
) -> bool:
    """True once the current period's last day has passed. Life cover never expires."""
    if membership.get("status") == MembershipStatus.LIFE.value:
        return False
    end = parse_date(membership.get("current_period_end"))
    if end is None:
        return False
    return end < (today or utc_today())


def _current_type_id(membership: dict[str, Any]) -> Optional[str]:
    type_id = membership.get("membership_type_id")
    if type_id:
        return type_id
    elected = membership.get("membership_type_ids") or []
    return elected[0] if elected else None


class RenewalScheduler:
    def __init__(
        self,
        repository: MembersRepository,
        catalog: Optional[ScopeCatalog] = None,
        resolver: Optional[EligibilityResolver] = None,
        season: Optional[SeasonWindow] = None,
    ):
        self.repository = repository
        self.catalog = catalog or ScopeCatalog(repository)
        self.resolver = resolver or EligibilityResolver(self.catalog)
        self.season = season or SeasonWindow.from_settings()

    async def preview(self, member_id: str, today: Optional[date] = None) -> RenewalPreview:
        """Current period and the period a renewal of the held type would give."""
        document = await self.repository.find_member(member_id)
        membership = document.section("membership") or {}
        current = current_period_of(membership)
        type_id = _current_type_id(membership)

        frequency = BillingFrequency.ANNUAL
        if type_id:
            # Inactive types still resolve here for members holding them
            frequency = (await self.catalog.get(type_id)).fee.frequency

        return RenewalPreview(
            member_id=member_id,
            membership_type_id=type_id,
            current_period=current,
            expired=is_membership_expired(membership, today),
            proposed_period=next_period(current, frequency, self.season, today),
            renewal_history=await self.repository.list_renewal_records(member_id),
        )

    async def commit(
        self,
        member_id: str,
        choice: RenewalChoice,
        updated_by: Optional[str] = None,
        today: Optional[date] = None,
    ) -> RenewalRecord:
        """
        Renew a member onto ``choice.membership_type_id``.

        Appends a RenewalRecord, moves the member's current period forward,
        bumps the type's usage count and audits the membership change. All
        four writes land together or not at all.

        Raises:
            MemberNotFound: no such member
            IneligibleMembershipType: the chosen type fails scope or age
            PersistenceFailure: the store rejected a write
        """
        today = today or utc_today()
        document = await self.repository.find_member(member_id)
        profile = MemberProfile.from_document(document)
        [definition] = await self.resolver.elect(
            profile, [choice.membership_type_id], on=today
        )

        membership = document.section("membership") or {}
        period = next_period(
            current_period_of(membership), definition.fee.frequency, self.season, today
        )
        fee: Decimal = (
            to_money(choice.fee) if choice.fee is not None else required_total_for(definition)
        )

        renewal = RenewalRecord(
            renewal_id=f"renewal-{uuid.uuid4().hex}",
            member_id=member_id,
            period_start=period.start,
            period_end=period.end,
            membership_type_id=definition.type_id,
            fee=fee,
            notes=choice.notes,
            renewal_date=utc_now(),
            renewed_by=updated_by,
        )

        renewed = copy.deepcopy(membership)
        elected = list(renewed.get("membership_type_ids") or [])
        if definition.type_id not in elected:
            elected.append(definition.type_id)
        renewed.update(
            {
                "membership_type_id": definition.type_id,
                "membership_type_ids": elected,
                "current_period_start": period.start.isoformat(),
                "current_period_end": period.end.isoformat() if period.end else None,
                "renewal_date": today.isoformat(),
                "status": (
                    MembershipStatus.LIFE.value
                    if period.end is None
                    else MembershipStatus.ACTIVE.value
                ),
            }
        )
        try:
            change = build_change_record(
                member_id, RENEWAL_SECTION, membership, renewed, updated_by
            )
        except EmptyDiffNoOp:
            # Re-renewing open-ended cover on the same day moves nothing
            change = None

        record = copy.deepcopy(document.record)
        record["membership"] = renewed
        await self.repository.commit_renewal(member_id, record, renewal, change)

        logger.info(
            "Renewed member %s on %s for %s to %s (fee %s)",
            member_id,
            definition.type_id,
            period.start,
            period.end or "open-ended",
            format_money(fee, definition.fee.currency),
        )
        return renewal
