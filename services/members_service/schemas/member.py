"""Member document schemas.

A stored member is a document of named sections. ``MemberProfile`` is the
narrow view eligibility and renewal work from.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from services.members_service.schemas.audit import ChangeRecord

# Section label -> document key
SECTIONS: dict[str, str] = {
    "Personal Information": "personal_info",
    "Contact Information": "contact",
    "Address": "address",
    "Emergency Contact": "emergency_contact",
    "Membership": "membership",
    "Medical Information": "medical",
    "Roles": "roles",
    "Teams": "teams",
    "Notes": "notes",
}

SECTION_LABELS: dict[str, str] = {key: label for label, key in SECTIONS.items()}


def resolve_section(name: str) -> tuple[str, str]:
    """Return ``(label, key)`` for a section given either form."""
    if name in SECTIONS:
        return name, SECTIONS[name]
    if name in SECTION_LABELS:
        return SECTION_LABELS[name], name
    raise KeyError(name)


class MemberDocument(BaseModel):
    """A persisted member record."""

    member_id: str
    association_id: Optional[str] = None
    club_id: Optional[str] = None
    record: dict[str, Any] = Field(default_factory=dict)
    version: int = 1
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    def section(self, key: str) -> Any:
        return self.record.get(key)


class MemberProfile(BaseModel):
    """Subject of eligibility and renewal decisions."""

    member_id: str
    # Raw stored value; may be missing or unparseable
    date_of_birth: Any = None
    association_id: Optional[str] = None
    club_id: Optional[str] = None
    team_ids: list[str] = Field(default_factory=list)
    membership_type_ids: list[str] = Field(default_factory=list)
    membership: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_document(cls, doc: MemberDocument) -> "MemberProfile":
        record = doc.record or {}
        personal = record.get("personal_info") or {}
        membership = record.get("membership") or {}
        teams = record.get("teams") or []
        team_ids = [
            team.get("team_id") if isinstance(team, dict) else team
            for team in teams
        ]
        return cls(
            member_id=doc.member_id,
            date_of_birth=personal.get("date_of_birth"),
            association_id=doc.association_id,
            club_id=doc.club_id,
            team_ids=[tid for tid in team_ids if tid],
            membership_type_ids=list(membership.get("membership_type_ids") or []),
            membership=dict(membership),
        )


class SectionSaveRequest(BaseModel):
    """Body of a section save.

    ``baseline`` is the section as the editor loaded it; ``payload`` is the
    full edited section.
    """

    payload: Any
    baseline: Any = None


class SaveOutcome(BaseModel):
    saved: Optional[ChangeRecord] = None
    reason: Optional[str] = None  # "no-change" | "error"
    detail: Optional[str] = None
    # Section as persisted after the attempt; the editor's next baseline
    current: Any = None

    @property
    def ok(self) -> bool:
        return self.saved is not None


class EligibilityItem(BaseModel):
    type_id: str
    name: str
    eligible: bool
    rule: Optional[str] = None


class EligibilityResponse(BaseModel):
    member_id: str
    age: Optional[int] = None
    age_label: str = "unknown"
    eligible: list[str] = Field(default_factory=list)
    decisions: list[EligibilityItem] = Field(default_factory=list)
