"""Unit tests for scope catalog lookups and eligibility resolution.

Tests run against the in-memory repository; no database involved.
"""

from datetime import date

import pytest
from services.members_service.errors import IneligibleMembershipType
from services.members_service.models.enums import MembershipScope
from services.members_service.schemas import AgeBounds, MemberProfile
from services.members_service.services.catalog import ScopeCatalog
from services.members_service.services.eligibility import (
    RULE_ABOVE_MAX_AGE,
    RULE_BELOW_MIN_AGE,
    RULE_INACTIVE,
    RULE_SCOPE,
    RULE_UNKNOWN_AGE,
    RULE_UNKNOWN_TYPE,
    EligibilityResolver,
    check_definition,
)
from tests.factories import (
    ASSOCIATION_ID,
    CLUB_ID,
    TEAM_ID,
    MemberDocumentFactory,
    MembershipTypeFactory,
)

ON = date(2025, 6, 14)


def _profile(**overrides) -> MemberProfile:
    return MemberProfile.from_document(MemberDocumentFactory.create(**overrides))


def _resolver(repository) -> EligibilityResolver:
    return EligibilityResolver(ScopeCatalog(repository))


# ---------------------------------------------------------------------------
# check_definition
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_junior_eligible_and_senior_ineligible_at_fourteen():
    """DOB 2010-06-15 is 14 on 2025-06-14: junior [5,17] yes, senior [18,-] no."""
    member = _profile(date_of_birth="2010-06-15")
    junior = MembershipTypeFactory.create(name="Junior", age_bounds=AgeBounds(min=5, max=17))
    senior = MembershipTypeFactory.create(name="Senior", age_bounds=AgeBounds(min=18))

    assert check_definition(junior, member, 14).eligible
    decision = check_definition(senior, member, 14)
    assert not decision.eligible
    assert decision.rule == RULE_BELOW_MIN_AGE


@pytest.mark.unit
def test_age_above_max_names_rule():
    member = _profile()
    junior = MembershipTypeFactory.create(age_bounds=AgeBounds(min=5, max=17))
    assert check_definition(junior, member, 18).rule == RULE_ABOVE_MAX_AGE


@pytest.mark.unit
def test_unknown_age_fails_bounded_but_passes_unbounded():
    member = _profile(date_of_birth=None)
    bounded = MembershipTypeFactory.create(age_bounds=AgeBounds(min=18))
    unbounded = MembershipTypeFactory.create()

    assert check_definition(bounded, member, None).rule == RULE_UNKNOWN_AGE
    assert check_definition(unbounded, member, None).eligible


@pytest.mark.unit
def test_inactive_definition_is_never_eligible():
    member = _profile()
    retired = MembershipTypeFactory.create(active=False)
    assert check_definition(retired, member, 30).rule == RULE_INACTIVE


@pytest.mark.unit
@pytest.mark.parametrize(
    "scope,owner,eligible",
    [
        (MembershipScope.GLOBAL, None, True),
        (MembershipScope.ASSOCIATION, ASSOCIATION_ID, True),
        (MembershipScope.ASSOCIATION, "assoc-vic", False),
        (MembershipScope.CLUB, CLUB_ID, True),
        (MembershipScope.CLUB, "club-other", False),
        (MembershipScope.TEAM, TEAM_ID, True),
        (MembershipScope.TEAM, "team-other", False),
    ],
)
def test_scope_must_match_member_organisation(scope, owner, eligible):
    member = _profile()
    definition = MembershipTypeFactory.create(scope=scope, scope_owner_id=owner)
    decision = check_definition(definition, member, 30)
    assert decision.eligible is eligible
    if not eligible:
        assert decision.rule == RULE_SCOPE


@pytest.mark.unit
@pytest.mark.parametrize(
    "wide,narrow",
    [
        ((None, None), (None, None)),
        ((None, None), (5, None)),
        ((None, None), (None, 17)),
        ((None, 40), (10, 40)),
        ((5, None), (5, 17)),
        ((5, 40), (10, 20)),
        ((0, 99), (18, 18)),
    ],
)
def test_narrowing_bounds_never_adds_eligibility(wide, narrow):
    """Tightening an age range can only remove eligible ages."""
    member = _profile()
    wide_type = MembershipTypeFactory.create(age_bounds=AgeBounds(min=wide[0], max=wide[1]))
    narrow_type = wide_type.model_copy(
        update={"age_bounds": AgeBounds(min=narrow[0], max=narrow[1])}
    )

    # None is a member whose age cannot be worked out
    for age in [None, *range(0, 100)]:
        if check_definition(narrow_type, member, age).eligible:
            assert check_definition(wide_type, member, age).eligible


# ---------------------------------------------------------------------------
# ScopeCatalog.candidates_for / EligibilityResolver.resolve
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_candidates_cover_every_scope_of_member(repository):
    global_type = MembershipTypeFactory.create(
        scope=MembershipScope.GLOBAL, name="Life", display_order=1
    )
    assoc = MembershipTypeFactory.create(scope=MembershipScope.ASSOCIATION, name="Assoc")
    club = MembershipTypeFactory.create(scope=MembershipScope.CLUB, name="Club")
    team = MembershipTypeFactory.create(scope=MembershipScope.TEAM, name="Team")
    other_club = MembershipTypeFactory.create(
        scope=MembershipScope.CLUB, scope_owner_id="club-other"
    )
    inactive = MembershipTypeFactory.create(active=False)
    repository.seed_types(global_type, assoc, club, team, other_club, inactive)

    candidates = await ScopeCatalog(repository).candidates_for(_profile())

    assert [c.type_id for c in candidates] == [
        global_type.type_id,
        assoc.type_id,
        club.type_id,
        team.type_id,
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_resolve_filters_by_age(repository):
    junior = MembershipTypeFactory.create(name="Junior", age_bounds=AgeBounds(min=5, max=17))
    senior = MembershipTypeFactory.create(name="Senior", age_bounds=AgeBounds(min=18))
    repository.seed_types(junior, senior)

    eligible = await _resolver(repository).resolve(_profile(date_of_birth="2010-06-15"), ON)

    assert [d.type_id for d in eligible] == [junior.type_id]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_decisions_report_age_and_rules(repository):
    senior = MembershipTypeFactory.create(age_bounds=AgeBounds(min=18))
    repository.seed_types(senior)

    age, decided = await _resolver(repository).decisions(
        _profile(date_of_birth="2010-06-15"), ON
    )

    assert age == 14
    [(definition, decision)] = decided
    assert definition.type_id == senior.type_id
    assert decision.rule == RULE_BELOW_MIN_AGE


# ---------------------------------------------------------------------------
# EligibilityResolver.elect
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_elect_returns_chosen_definitions_once(repository):
    junior = MembershipTypeFactory.create(age_bounds=AgeBounds(min=5, max=17))
    repository.seed_types(junior)

    elected = await _resolver(repository).elect(
        _profile(date_of_birth="2010-06-15"), [junior.type_id, junior.type_id], on=ON
    )

    assert [d.type_id for d in elected] == [junior.type_id]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_elect_rejects_ineligible_choice_with_rule(repository):
    senior = MembershipTypeFactory.create(age_bounds=AgeBounds(min=18))
    repository.seed_types(senior)

    with pytest.raises(IneligibleMembershipType) as exc_info:
        await _resolver(repository).elect(
            _profile(date_of_birth="2010-06-15"), [senior.type_id], on=ON
        )

    assert exc_info.value.type_id == senior.type_id
    assert exc_info.value.rule == RULE_BELOW_MIN_AGE


@pytest.mark.asyncio
@pytest.mark.unit
async def test_elect_rejects_unknown_type(repository):
    with pytest.raises(IneligibleMembershipType) as exc_info:
        await _resolver(repository).elect(_profile(), ["type-missing"], on=ON)
    assert exc_info.value.rule == RULE_UNKNOWN_TYPE


@pytest.mark.asyncio
@pytest.mark.unit
async def test_elect_defaults_to_stored_choices(repository):
    club = MembershipTypeFactory.create()
    repository.seed_types(club)
    member = _profile(membership={"membership_type_ids": [club.type_id]})

    elected = await _resolver(repository).elect(member, on=ON)

    assert [d.type_id for d in elected] == [club.type_id]
