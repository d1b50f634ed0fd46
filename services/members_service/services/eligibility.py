"""
Eligibility resolution for membership types.

A definition is eligible for a member when it is active, its scope matches one
of the member's organisations, and the member's age sits inside its bounds.
An unknown age fails every bounded check but passes unbounded definitions.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from services.members_service.errors import (
    IneligibleMembershipType,
    MembershipTypeNotFound,
)
from services.members_service.models.enums import MembershipScope
from services.members_service.schemas import MemberProfile, MembershipTypeDefinition
from services.members_service.services.age import compute_age
from services.members_service.services.catalog import ScopeCatalog

# Failing rule names
RULE_INACTIVE = "inactive"
RULE_SCOPE = "scope"
RULE_UNKNOWN_AGE = "unknown_age"
RULE_BELOW_MIN_AGE = "below_min_age"
RULE_ABOVE_MAX_AGE = "above_max_age"
RULE_UNKNOWN_TYPE = "unknown_type"


@dataclass(frozen=True)
class EligibilityDecision:
    type_id: str
    eligible: bool
    rule: Optional[str] = None


def scope_matches(definition: MembershipTypeDefinition, member: MemberProfile) -> bool:
    owner = definition.scope_owner_id
    if definition.scope == MembershipScope.GLOBAL:
        return True
    if definition.scope == MembershipScope.ASSOCIATION:
        return owner is not None and owner == member.association_id
    if definition.scope == MembershipScope.CLUB:
        return owner is not None and owner == member.club_id
    if definition.scope == MembershipScope.TEAM:
        return owner is not None and owner in member.team_ids
    return False


def check_definition(
    definition: MembershipTypeDefinition,
    member: MemberProfile,
    age: Optional[int],
) -> EligibilityDecision:
    """Evaluate one definition, naming the first rule that fails."""
    if not definition.active:
        return EligibilityDecision(definition.type_id, False, RULE_INACTIVE)
    if not scope_matches(definition, member):
        return EligibilityDecision(definition.type_id, False, RULE_SCOPE)

    bounds = definition.age_bounds
    if bounds.is_bounded:
        if age is None:
            return EligibilityDecision(definition.type_id, False, RULE_UNKNOWN_AGE)
        if bounds.min is not None and age < bounds.min:
            return EligibilityDecision(definition.type_id, False, RULE_BELOW_MIN_AGE)
        if bounds.max is not None and age > bounds.max:
            return EligibilityDecision(definition.type_id, False, RULE_ABOVE_MAX_AGE)

    return EligibilityDecision(definition.type_id, True)


class EligibilityResolver:
    def __init__(self, catalog: ScopeCatalog):
        self.catalog = catalog

    async def decisions(
        self, member: MemberProfile, on: Optional[date] = None
    ) -> tuple[Optional[int], list[tuple[MembershipTypeDefinition, EligibilityDecision]]]:
        """Age plus a decision for every scope candidate of the member."""
        age = compute_age(member.date_of_birth, on)
        candidates = await self.catalog.candidates_for(member)
        return age, [(d, check_definition(d, member, age)) for d in candidates]

    async def resolve(
        self, member: MemberProfile, on: Optional[date] = None
    ) -> list[MembershipTypeDefinition]:
        """Every definition the member is eligible for."""
        _, decided = await self.decisions(member, on)
        return [definition for definition, decision in decided if decision.eligible]

    async def elect(
        self,
        member: MemberProfile,
        type_ids: Optional[list[str]] = None,
        on: Optional[date] = None,
    ) -> list[MembershipTypeDefinition]:
        """
        The member's final elected set.

        Every chosen id must be eligible; an ineligible choice is rejected with
        the failing rule rather than dropped. Defaults to the member's stored
        ``membership_type_ids``.
        """
        requested = type_ids if type_ids is not None else member.membership_type_ids
        chosen = list(dict.fromkeys(requested))
        age = compute_age(member.date_of_birth, on)

        elected = []
        for type_id in chosen:
            try:
                definition = await self.catalog.get(type_id)
            except MembershipTypeNotFound:
                raise IneligibleMembershipType(type_id, RULE_UNKNOWN_TYPE) from None
            decision = check_definition(definition, member, age)
            if not decision.eligible:
                raise IneligibleMembershipType(
                    type_id,
                    decision.rule,
                    detail=f"{definition.name} for member {member.member_id}",
                )
            elected.append(definition)
        return elected
