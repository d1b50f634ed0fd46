"""Persistence port for the member lifecycle core and its SQLAlchemy adapter.

The core only needs a handful of document-store operations. Services depend on
the ``MembersRepository`` protocol; ``SqlMembersRepository`` implements it over
an ``AsyncSession``. Change and renewal records are insert-only: nothing here
updates or deletes them.

Writes that touch more than one row (a section save plus its change record, a
renewal) go through one method and one commit, so they land together or not
at all.
"""

import copy
from typing import Optional, Protocol

from fastapi import Depends
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.members_service.errors import (
    MemberNotFound,
    MembershipTypeNotFound,
    PersistenceFailure,
)
from services.members_service.models import (
    ClubMember,
    MemberChangeLog,
    MemberRenewal,
    MembershipScope,
    MembershipType,
)
from services.members_service.schemas import (
    ChangeRecord,
    MemberDocument,
    MembershipTypeDefinition,
    RenewalRecord,
)
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class MembersRepository(Protocol):
    async def find_membership_types(
        self,
        scope: Optional[MembershipScope] = None,
        owner_ids: Optional[list[str]] = None,
        active: Optional[bool] = None,
    ) -> list[MembershipTypeDefinition]: ...

    async def get_membership_type(
        self, type_id: str
    ) -> Optional[MembershipTypeDefinition]: ...

    async def add_membership_type(self, definition: MembershipTypeDefinition) -> None: ...

    async def update_membership_type(
        self, definition: MembershipTypeDefinition
    ) -> None: ...

    async def delete_membership_type(self, type_id: str) -> None: ...

    async def find_member(self, member_id: str) -> MemberDocument: ...

    async def replace_member(
        self, member_id: str, record: dict, updated_by: Optional[str] = None
    ) -> MemberDocument: ...

    async def append_change_record(self, record: ChangeRecord) -> None: ...

    async def list_change_records(
        self, member_id: str, limit: Optional[int] = None
    ) -> list[ChangeRecord]: ...

    async def replace_member_with_audit(
        self, member_id: str, record: dict, change: ChangeRecord
    ) -> MemberDocument: ...

    async def commit_renewal(
        self,
        member_id: str,
        record: dict,
        renewal: RenewalRecord,
        change: Optional[ChangeRecord] = None,
    ) -> MemberDocument: ...

    async def list_renewal_records(self, member_id: str) -> list[RenewalRecord]: ...


def _definition_values(definition: MembershipTypeDefinition) -> dict:
    return {
        "name": definition.name,
        "description": definition.description,
        "scope": definition.scope,
        "scope_owner_id": definition.scope_owner_id,
        "min_age": definition.age_bounds.min,
        "max_age": definition.age_bounds.max,
        "base_amount": definition.fee.base_amount,
        "currency": definition.fee.currency,
        "frequency": definition.fee.frequency,
        "additional_fees": [
            fee.model_dump(mode="json") for fee in definition.fee.additional_fees
        ],
        "requirements": sorted(definition.requirements),
        "active": definition.active,
        "usage_count": definition.usage_count,
        "display_order": definition.display_order,
    }


def _change_record(row: MemberChangeLog) -> ChangeRecord:
    return ChangeRecord(
        member_id=row.member_id,
        section=row.section,
        changes=row.changes,
        timestamp=row.timestamp,
        updated_by=row.updated_by,
    )


class SqlMembersRepository:
    """``MembersRepository`` over SQLAlchemy.

    Every write commits on its own; multi-row writes (a section save with its
    change record, a renewal) share one commit. Any ``SQLAlchemyError``, read
    or write, rolls back and surfaces as ``PersistenceFailure``.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _fail(self, action: str, exc: SQLAlchemyError) -> PersistenceFailure:
        await self.db.rollback()
        logger.error("Failed to %s: %s", action, exc)
        return PersistenceFailure(f"Failed to {action}")

    async def _execute(self, action: str, statement):
        try:
            return await self.db.execute(statement)
        except SQLAlchemyError as exc:
            raise await self._fail(action, exc) from exc

    async def _get(self, action: str, model, key):
        try:
            return await self.db.get(model, key)
        except SQLAlchemyError as exc:
            raise await self._fail(action, exc) from exc

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            raise await self._fail(action, exc) from exc

    # ------------------------------------------------------------------
    # Membership types
    # ------------------------------------------------------------------

    async def find_membership_types(
        self,
        scope: Optional[MembershipScope] = None,
        owner_ids: Optional[list[str]] = None,
        active: Optional[bool] = None,
    ) -> list[MembershipTypeDefinition]:
        query = select(MembershipType)
        if scope is not None:
            query = query.where(MembershipType.scope == scope)
        if owner_ids is not None:
            query = query.where(MembershipType.scope_owner_id.in_(owner_ids))
        if active is not None:
            query = query.where(MembershipType.active.is_(active))
        query = query.order_by(MembershipType.display_order, MembershipType.name)

        result = await self._execute("find membership types", query)
        return [
            MembershipTypeDefinition.from_orm_row(row)
            for row in result.scalars().all()
        ]

    async def get_membership_type(
        self, type_id: str
    ) -> Optional[MembershipTypeDefinition]:
        row = await self._get(f"get membership type {type_id}", MembershipType, type_id)
        return MembershipTypeDefinition.from_orm_row(row) if row else None

    async def add_membership_type(self, definition: MembershipTypeDefinition) -> None:
        self.db.add(
            MembershipType(type_id=definition.type_id, **_definition_values(definition))
        )
        await self._commit(f"add membership type {definition.type_id}")

    async def update_membership_type(
        self, definition: MembershipTypeDefinition
    ) -> None:
        action = f"update membership type {definition.type_id}"
        row = await self._get(action, MembershipType, definition.type_id)
        if row is None:
            raise MembershipTypeNotFound(definition.type_id)
        for field, value in _definition_values(definition).items():
            setattr(row, field, value)
        await self._commit(action)

    async def delete_membership_type(self, type_id: str) -> None:
        action = f"delete membership type {type_id}"
        await self._execute(
            action, delete(MembershipType).where(MembershipType.type_id == type_id)
        )
        await self._commit(action)

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    async def find_member(self, member_id: str) -> MemberDocument:
        # populate_existing: always re-read, never trust the identity map
        result = await self._execute(
            f"find member {member_id}",
            select(ClubMember)
            .where(ClubMember.member_id == member_id)
            .execution_options(populate_existing=True),
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise MemberNotFound(member_id)
        doc = MemberDocument.model_validate(row)
        doc.record = copy.deepcopy(row.record or {})
        return doc

    async def _stage_member(
        self, action: str, member_id: str, record: dict, updated_by: Optional[str]
    ) -> None:
        row = await self._get(action, ClubMember, member_id)
        if row is None:
            raise MemberNotFound(member_id)
        row.record = copy.deepcopy(record)
        row.version = (row.version or 0) + 1
        row.updated_by = updated_by
        row.updated_at = utc_now()

    def _stage_change(self, change: ChangeRecord) -> None:
        self.db.add(
            MemberChangeLog(
                member_id=change.member_id,
                section=change.section,
                changes=change.changes_as_dict(),
                timestamp=change.timestamp,
                updated_by=change.updated_by,
            )
        )

    async def replace_member(
        self, member_id: str, record: dict, updated_by: Optional[str] = None
    ) -> MemberDocument:
        action = f"replace member {member_id}"
        await self._stage_member(action, member_id, record, updated_by)
        await self._commit(action)
        return await self.find_member(member_id)

    async def replace_member_with_audit(
        self, member_id: str, record: dict, change: ChangeRecord
    ) -> MemberDocument:
        """Replace the document and log ``change`` in a single commit."""
        action = f"save {change.section} of member {member_id}"
        await self._stage_member(action, member_id, record, change.updated_by)
        self._stage_change(change)
        await self._commit(action)
        return await self.find_member(member_id)

    async def commit_renewal(
        self,
        member_id: str,
        record: dict,
        renewal: RenewalRecord,
        change: Optional[ChangeRecord] = None,
    ) -> MemberDocument:
        """
        Apply a renewal in a single commit: the member document, the renewal
        row, the chosen type's usage count and the change record.
        """
        action = f"renew member {member_id}"
        await self._stage_member(action, member_id, record, renewal.renewed_by)
        self.db.add(MemberRenewal(**renewal.model_dump()))
        await self._execute(
            action,
            update(MembershipType)
            .where(MembershipType.type_id == renewal.membership_type_id)
            .values(usage_count=MembershipType.usage_count + 1),
        )
        if change is not None:
            self._stage_change(change)
        await self._commit(action)
        return await self.find_member(member_id)

    # ------------------------------------------------------------------
    # Append-only history
    # ------------------------------------------------------------------

    async def append_change_record(self, record: ChangeRecord) -> None:
        self._stage_change(record)
        await self._commit(f"append change record for {record.member_id}")

    async def list_change_records(
        self, member_id: str, limit: Optional[int] = None
    ) -> list[ChangeRecord]:
        query = (
            select(MemberChangeLog)
            .where(MemberChangeLog.member_id == member_id)
            .order_by(MemberChangeLog.timestamp.desc(), MemberChangeLog.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self._execute(f"list change records for {member_id}", query)
        return [_change_record(row) for row in result.scalars().all()]

    async def list_renewal_records(self, member_id: str) -> list[RenewalRecord]:
        result = await self._execute(
            f"list renewal records for {member_id}",
            select(MemberRenewal)
            .where(MemberRenewal.member_id == member_id)
            .order_by(MemberRenewal.renewal_date, MemberRenewal.renewal_id),
        )
        return [RenewalRecord.model_validate(row) for row in result.scalars().all()]


async def get_members_repository(
    db: AsyncSession = Depends(get_async_db),
) -> MembersRepository:
    """FastAPI dependency returning the SQL-backed repository."""
    return SqlMembersRepository(db)


def history_limit() -> int:
    return get_settings().CHANGE_HISTORY_LIMIT
