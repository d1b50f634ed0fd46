"""Append-only audit trail of member section edits."""

from typing import Any, Optional

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.members_service.errors import EmptyDiffNoOp
from services.members_service.repository import MembersRepository, history_limit
from services.members_service.schemas import ChangeRecord, FieldChange
from services.members_service.services.diff import diff_records

logger = get_logger(__name__)


def build_change_record(
    member_id: str,
    section: str,
    before: Any,
    after: Any,
    updated_by: Optional[str] = None,
    prefix: str = "",
) -> ChangeRecord:
    """
    Diff two versions of a section into a ChangeRecord.

    Raises:
        EmptyDiffNoOp: nothing changed; no record should be written
    """
    changes = diff_records(before, after, prefix)
    if not changes:
        raise EmptyDiffNoOp(section)
    return ChangeRecord(
        member_id=member_id,
        section=section,
        changes=changes,
        timestamp=utc_now(),
        updated_by=updated_by,
    )


class AuditTrail:
    """Append and list. There is no update or delete."""

    def __init__(self, repository: MembersRepository):
        self.repository = repository

    async def append(self, record: ChangeRecord) -> ChangeRecord:
        if not record.changes:
            raise EmptyDiffNoOp(record.section)
        await self.repository.append_change_record(record)
        logger.info(
            "Audited %d change(s) to %s of member %s by %s",
            len(record.changes),
            record.section,
            record.member_id,
            record.updated_by or "system",
        )
        for line in summarize_changes(record.changes):
            logger.debug("  %s", line)
        return record

    async def list_for(
        self, member_id: str, limit: Optional[int] = None
    ) -> list[ChangeRecord]:
        """Change records for a member, newest first."""
        records = await self.repository.list_change_records(
            member_id, limit=limit if limit is not None else history_limit()
        )
        return sorted(records, key=lambda r: r.timestamp, reverse=True)


def summarize_changes(changes: dict[str, FieldChange]) -> list[str]:
    """Human-readable lines such as ``email: a@x.com -> b@x.com``."""
    return [
        f"{path}: {_display(change.old)} -> {_display(change.new)}"
        for path, change in changes.items()
    ]


def _display(value: Any) -> str:
    if value is None or value == "":
        return "(empty)"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value) or "(empty)"
    return str(value)
