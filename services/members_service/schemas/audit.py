"""Audit and renewal history schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldChange(BaseModel):
    old: Any = None
    new: Any = None


class ChangeRecord(BaseModel):
    """One audited section save."""

    member_id: str
    section: str
    changes: dict[str, FieldChange]
    timestamp: datetime
    updated_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)

    def changes_as_dict(self) -> dict[str, dict[str, Any]]:
        return {
            path: {"old": change.old, "new": change.new}
            for path, change in self.changes.items()
        }


class RenewalRecord(BaseModel):
    renewal_id: str
    member_id: str
    period_start: date
    period_end: Optional[date] = None
    membership_type_id: str
    fee: Decimal
    notes: str = ""
    renewal_date: datetime
    renewed_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)


class ChangeHistoryResponse(BaseModel):
    member_id: str
    changes: list[ChangeRecord] = Field(default_factory=list)
