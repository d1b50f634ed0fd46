"""Read path over the scoped membership type catalog."""

from typing import Optional

from libs.common.logging import get_logger
from services.members_service.errors import DefinitionInUse, MembershipTypeNotFound
from services.members_service.models.enums import MembershipScope
from services.members_service.repository import MembersRepository
from services.members_service.schemas import MemberProfile, MembershipTypeDefinition

logger = get_logger(__name__)


def _sort_key(definition: MembershipTypeDefinition):
    return (definition.display_order, definition.name.lower(), definition.type_id)


class ScopeCatalog:
    """Looks up membership type definitions by scope and owner id.

    The catalog is always read from the store so that association, club and
    team administrators can extend it without code changes.
    """

    def __init__(self, repository: MembersRepository):
        self.repository = repository

    async def candidates_for(
        self, member: MemberProfile
    ) -> list[MembershipTypeDefinition]:
        """Active definitions whose scope matches the member's organisations."""
        owners: dict[MembershipScope, list[str]] = {
            MembershipScope.ASSOCIATION: [member.association_id]
            if member.association_id
            else [],
            MembershipScope.CLUB: [member.club_id] if member.club_id else [],
            MembershipScope.TEAM: list(member.team_ids),
        }

        found = await self.repository.find_membership_types(
            scope=MembershipScope.GLOBAL, active=True
        )
        for scope, owner_ids in owners.items():
            if not owner_ids:
                continue
            found.extend(
                await self.repository.find_membership_types(
                    scope=scope, owner_ids=owner_ids, active=True
                )
            )
        return sorted(found, key=_sort_key)

    async def list_definitions(
        self,
        scope: Optional[MembershipScope] = None,
        owner_id: Optional[str] = None,
        active_only: bool = False,
    ) -> list[MembershipTypeDefinition]:
        found = await self.repository.find_membership_types(
            scope=scope,
            owner_ids=[owner_id] if owner_id else None,
            active=True if active_only else None,
        )
        return sorted(found, key=_sort_key)

    async def get(self, type_id: str) -> MembershipTypeDefinition:
        """Fetch a definition, active or not. Renewal history relies on this."""
        definition = await self.repository.get_membership_type(type_id)
        if definition is None:
            raise MembershipTypeNotFound(type_id)
        return definition

    async def get_many(self, type_ids: list[str]) -> list[MembershipTypeDefinition]:
        return [await self.get(type_id) for type_id in type_ids]

    async def deactivate(self, type_id: str) -> MembershipTypeDefinition:
        definition = await self.get(type_id)
        if not definition.active:
            return definition
        updated = definition.model_copy(update={"active": False})
        await self.repository.update_membership_type(updated)
        logger.info("Deactivated membership type %s", type_id)
        return updated

    async def delete(self, type_id: str) -> None:
        """Hard-delete a definition that no renewal has ever referenced."""
        definition = await self.get(type_id)
        if definition.usage_count > 0:
            raise DefinitionInUse(type_id, definition.usage_count)
        await self.repository.delete_membership_type(type_id)
        logger.info("Deleted membership type %s", type_id)
