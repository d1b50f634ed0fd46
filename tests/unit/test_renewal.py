"""Unit tests for membership period arithmetic and the renewal scheduler."""

from datetime import date
from decimal import Decimal

import pytest
from services.members_service.errors import (
    IneligibleMembershipType,
    MemberNotFound,
    PersistenceFailure,
)
from services.members_service.models.enums import BillingFrequency
from services.members_service.schemas import AgeBounds, MembershipPeriod, RenewalChoice
from services.members_service.services.renewal import (
    RENEWAL_SECTION,
    RenewalScheduler,
    SeasonWindow,
    add_years,
    current_period_of,
    is_membership_expired,
    next_period,
)
from tests.factories import MemberDocumentFactory, MembershipTypeFactory

SEASON = SeasonWindow(start_month=3, end_month=9)


# ---------------------------------------------------------------------------
# Period arithmetic
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_annual_renewal_follows_current_period():
    """A period ending 2025-12-31 renews to the 2026 calendar year."""
    current = MembershipPeriod(start=date(2025, 1, 1), end=date(2025, 12, 31))

    proposed = next_period(current, BillingFrequency.ANNUAL, SEASON)

    assert proposed == MembershipPeriod(start=date(2026, 1, 1), end=date(2026, 12, 31))


@pytest.mark.unit
def test_annual_period_mid_year():
    current = MembershipPeriod(start=date(2024, 7, 1), end=date(2025, 6, 30))
    proposed = next_period(current, BillingFrequency.ANNUAL, SEASON)
    assert (proposed.start, proposed.end) == (date(2025, 7, 1), date(2026, 6, 30))


@pytest.mark.unit
def test_leap_day_start():
    assert add_years(date(2024, 2, 29), 1) == date(2025, 3, 1)

    current = MembershipPeriod(start=date(2023, 3, 1), end=date(2024, 2, 28))
    proposed = next_period(current, BillingFrequency.ANNUAL, SEASON)
    assert (proposed.start, proposed.end) == (date(2024, 2, 29), date(2025, 2, 28))

    after_leap = next_period(
        MembershipPeriod(start=date(2023, 3, 1), end=date(2024, 2, 29)),
        BillingFrequency.ANNUAL,
        SEASON,
    )
    assert (after_leap.start, after_leap.end) == (date(2024, 3, 1), date(2025, 2, 28))


@pytest.mark.unit
def test_seasonal_period_ends_with_season():
    proposed = next_period(None, BillingFrequency.SEASONAL, SEASON, today=date(2026, 2, 10))
    assert (proposed.start, proposed.end) == (date(2026, 2, 10), date(2026, 9, 30))


@pytest.mark.unit
def test_seasonal_period_after_season_end_rolls_to_next_season():
    current = MembershipPeriod(start=date(2025, 3, 1), end=date(2025, 9, 30))
    proposed = next_period(current, BillingFrequency.SEASONAL, SEASON)
    assert (proposed.start, proposed.end) == (date(2025, 10, 1), date(2026, 9, 30))


@pytest.mark.unit
def test_one_time_cover_is_open_ended():
    current = MembershipPeriod(start=date(2025, 1, 1), end=date(2025, 12, 31))
    proposed = next_period(current, BillingFrequency.ONE_TIME, SEASON)
    assert proposed.start == date(2026, 1, 1)
    assert proposed.end is None


@pytest.mark.unit
def test_no_current_period_starts_today():
    proposed = next_period(None, BillingFrequency.ANNUAL, SEASON, today=date(2025, 5, 20))
    assert (proposed.start, proposed.end) == (date(2025, 5, 20), date(2026, 5, 19))


@pytest.mark.unit
def test_consecutive_periods_never_overlap_or_gap():
    period = MembershipPeriod(start=date(2023, 3, 1), end=date(2024, 2, 28))
    for _ in range(6):
        following = next_period(period, BillingFrequency.ANNUAL, SEASON)
        assert (following.start - period.end).days == 1
        period = following


@pytest.mark.unit
def test_current_period_of_membership_section():
    assert current_period_of({}) is None
    assert current_period_of({"current_period_start": "garbage"}) is None
    assert current_period_of(
        {"current_period_start": "2025-01-01", "current_period_end": "2025-12-31"}
    ) == MembershipPeriod(start=date(2025, 1, 1), end=date(2025, 12, 31))


@pytest.mark.unit
def test_membership_expiry():
    membership = {"status": "active", "current_period_end": "2025-12-31"}
    assert not is_membership_expired(membership, date(2025, 12, 31))
    assert is_membership_expired(membership, date(2026, 1, 1))
    assert not is_membership_expired({"status": "life"}, date(2099, 1, 1))


# ---------------------------------------------------------------------------
# RenewalScheduler
# ---------------------------------------------------------------------------


@pytest.fixture
def junior(repository):
    definition = MembershipTypeFactory.create(
        name="Junior",
        age_bounds=AgeBounds(min=5, max=17),
        base_amount="50.00",
        additional_fees=[{"name": "Insurance", "amount": "25.00"}],
    )
    repository.seed_types(definition)
    return definition


@pytest.fixture
def member(repository, junior):
    return repository.seed_member(
        MemberDocumentFactory.create(
            member_id="CHC-1",
            date_of_birth="2010-06-15",
            membership={
                "membership_type_id": junior.type_id,
                "membership_type_ids": [junior.type_id],
            },
        )
    )


@pytest.fixture
def scheduler(repository):
    return RenewalScheduler(repository, season=SEASON)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_preview_proposes_next_period(scheduler, member, junior):
    preview = await scheduler.preview("CHC-1", today=date(2025, 12, 1))

    assert preview.membership_type_id == junior.type_id
    assert preview.current_period.end == date(2025, 12, 31)
    assert preview.proposed_period == MembershipPeriod(
        start=date(2026, 1, 1), end=date(2026, 12, 31)
    )
    assert preview.renewal_history == []
    assert preview.expired is False

    lapsed = await scheduler.preview("CHC-1", today=date(2026, 1, 5))
    assert lapsed.expired is True
    assert lapsed.proposed_period.start == date(2026, 1, 1)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_commit_renews_member(repository, scheduler, member, junior):
    renewal = await scheduler.commit(
        "CHC-1",
        RenewalChoice(membership_type_id=junior.type_id, notes="Paid at rego day"),
        updated_by="admin-1",
        today=date(2025, 12, 1),
    )

    assert renewal.period_start == date(2026, 1, 1)
    assert renewal.period_end == date(2026, 12, 31)
    assert renewal.fee == Decimal("75.00")
    assert renewal.renewed_by == "admin-1"
    assert repository.renewal_records == [renewal]

    membership = repository.members["CHC-1"].record["membership"]
    assert membership["current_period_start"] == "2026-01-01"
    assert membership["current_period_end"] == "2026-12-31"
    assert membership["status"] == "active"

    assert repository.types[junior.type_id].usage_count == 1

    [change] = repository.change_records
    assert change.section == RENEWAL_SECTION
    assert change.changes["current_period_end"].new == "2026-12-31"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_repeated_renewals_append_history(repository, scheduler, member, junior):
    choice = RenewalChoice(membership_type_id=junior.type_id, fee=Decimal("70"))

    await scheduler.commit("CHC-1", choice, today=date(2025, 12, 1))
    await scheduler.commit("CHC-1", choice, today=date(2026, 12, 1))

    starts = [r.period_start for r in repository.renewal_records]
    assert starts == [date(2026, 1, 1), date(2027, 1, 1)]
    assert all(r.fee == Decimal("70.00") for r in repository.renewal_records)
    assert repository.types[junior.type_id].usage_count == 2

    preview = await scheduler.preview("CHC-1", today=date(2026, 12, 2))
    assert len(preview.renewal_history) == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_commit_onto_life_membership(repository, scheduler, member):
    life = MembershipTypeFactory.create(
        name="Life", base_amount="500.00", frequency=BillingFrequency.ONE_TIME
    )
    repository.seed_types(life)

    renewal = await scheduler.commit(
        "CHC-1", RenewalChoice(membership_type_id=life.type_id), today=date(2025, 12, 1)
    )

    assert renewal.period_end is None
    membership = repository.members["CHC-1"].record["membership"]
    assert membership["status"] == "life"
    assert membership["current_period_end"] is None
    assert life.type_id in membership["membership_type_ids"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_commit_rejects_ineligible_type(repository, scheduler, member):
    senior = MembershipTypeFactory.create(name="Senior", age_bounds=AgeBounds(min=18))
    repository.seed_types(senior)

    with pytest.raises(IneligibleMembershipType):
        await scheduler.commit(
            "CHC-1",
            RenewalChoice(membership_type_id=senior.type_id),
            today=date(2025, 12, 1),
        )

    assert repository.renewal_records == []
    assert repository.change_records == []
    assert repository.members["CHC-1"].version == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_renewal_of_unknown_member(scheduler):
    with pytest.raises(MemberNotFound):
        await scheduler.preview("CHC-404")


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "failing_step",
    ["replace member", "append renewal record", "record usage", "append change record"],
)
async def test_failed_renewal_writes_nothing(
    repository, scheduler, member, junior, failing_step
):
    choice = RenewalChoice(membership_type_id=junior.type_id)
    repository.fail_on.add(failing_step)

    with pytest.raises(PersistenceFailure):
        await scheduler.commit("CHC-1", choice, today=date(2025, 12, 1))

    stored = repository.members["CHC-1"]
    assert stored.version == 1
    assert stored.record["membership"]["current_period_end"] == "2025-12-31"
    assert repository.renewal_records == []
    assert repository.change_records == []
    assert repository.types[junior.type_id].usage_count == 0

    # Retrying renews the year that was missed, not the one after
    repository.fail_on.clear()
    renewal = await scheduler.commit("CHC-1", choice, today=date(2025, 12, 1))

    assert (renewal.period_start, renewal.period_end) == (
        date(2026, 1, 1),
        date(2026, 12, 31),
    )
    assert len(repository.change_records) == 1
    assert repository.types[junior.type_id].usage_count == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_later_renewal_leaves_earlier_records_alone(
    repository, scheduler, member, junior
):
    choice = RenewalChoice(membership_type_id=junior.type_id, notes="First")
    first = await scheduler.commit("CHC-1", choice, today=date(2025, 12, 1))
    snapshot = repository.renewal_records[0].model_dump()

    await scheduler.commit(
        "CHC-1",
        RenewalChoice(membership_type_id=junior.type_id, fee=Decimal("10"), notes="Second"),
        today=date(2026, 12, 1),
    )

    assert repository.renewal_records[0] == first
    assert repository.renewal_records[0].model_dump() == snapshot
    history = await repository.list_renewal_records("CHC-1")
    assert [r.notes for r in history] == ["First", "Second"]
