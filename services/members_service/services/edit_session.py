"""
Section edit lifecycle for member records.

``MemberEditService.save_section`` is the only write path for section edits.
It re-reads the member, lays the edited section over the fresh copy, diffs
against the fresh section (not the editor's page-load baseline), then replaces
the record and appends one ChangeRecord in a single commit.

``SectionEditSession`` and ``MemberEditor`` hold the per-screen state machine:

    IDLE --start_edit--> EDITING --save--> SAVING --ok--> IDLE
                           ^   |                  \\--failed--> EDITING
                           |   +--cancel_edit--> IDLE
"""

import copy
import enum
from typing import Any, Optional

from libs.common.logging import get_logger
from services.members_service.errors import (
    EmptyDiffNoOp,
    InvalidTransition,
    MembersCoreError,
    PersistenceFailure,
    SectionLocked,
    StaleWriteRisk,
)
from services.members_service.repository import MembersRepository
from services.members_service.schemas import (
    SECTIONS,
    MemberDocument,
    MemberProfile,
    SaveOutcome,
    resolve_section,
)
from services.members_service.services.audit import build_change_record
from services.members_service.services.catalog import ScopeCatalog
from services.members_service.services.diff import diff_records
from services.members_service.services.eligibility import EligibilityResolver

logger = get_logger(__name__)

REASON_NO_CHANGE = "no-change"
REASON_ERROR = "error"


class EditState(str, enum.Enum):
    IDLE = "idle"
    EDITING = "editing"
    SAVING = "saving"


def _diff_prefix(value: Any, key: str) -> str:
    # Dict sections report paths relative to the section; leaf sections
    # (roles, teams, notes) report under their own key
    return "" if isinstance(value, dict) else key


class MemberEditService:
    def __init__(
        self,
        repository: MembersRepository,
        resolver: Optional[EligibilityResolver] = None,
    ):
        self.repository = repository
        self.resolver = resolver or EligibilityResolver(ScopeCatalog(repository))

    async def _check_elected_types(
        self, fresh: MemberDocument, current: Any, payload: Any
    ) -> None:
        """Newly elected membership types must be eligible for the member."""
        held = current if isinstance(current, dict) else {}
        before = held.get("membership_type_ids") or []
        after = payload.get("membership_type_ids") or []
        added = [type_id for type_id in after if type_id not in before]
        if not added:
            return
        record = dict(fresh.record, membership=payload)
        profile = MemberProfile.from_document(fresh.model_copy(update={"record": record}))
        await self.resolver.elect(profile, added)

    async def save_section(
        self,
        member_id: str,
        section: str,
        payload: Any,
        baseline: Any = None,
        updated_by: Optional[str] = None,
    ) -> SaveOutcome:
        """
        Persist one edited section.

        ``payload`` replaces the stored section as a whole. Keys left out of
        it are dropped from the record, and the change record lists only the
        fields present in ``payload``, so a key removed with nothing else
        changed saves as "no-change". Editors always send the full section.

        Args:
            member_id: member being edited
            section: section label ("Contact Information") or key ("contact")
            payload: the full edited section
            baseline: the section as the editor loaded it, used only to spot
                concurrent edits
            updated_by: actor identifier for the audit entry

        Returns:
            SaveOutcome with the ChangeRecord, or reason "no-change"/"error"

        Raises:
            KeyError: unknown section
            MemberNotFound: no such member
            IneligibleMembershipType: a newly elected membership type fails
                scope or age
        """
        label, key = resolve_section(section)

        try:
            fresh = await self.repository.find_member(member_id)
        except PersistenceFailure as exc:
            logger.error("Could not re-read member %s before save: %s", member_id, exc)
            return SaveOutcome(reason=REASON_ERROR, detail=str(exc))

        current = fresh.section(key)
        prefix = _diff_prefix(payload, key)

        if baseline is not None:
            drift = diff_records(baseline, current, _diff_prefix(current, key))
            if drift:
                # Last edit wins per field; the diff below is taken against
                # the fresh read so the audit entry stays truthful
                logger.warning(str(StaleWriteRisk(member_id, label, sorted(drift))))

        try:
            change = build_change_record(
                member_id, label, current, payload, updated_by, prefix
            )
        except EmptyDiffNoOp as info:
            logger.info("%s (member %s)", info, member_id)
            return SaveOutcome(
                reason=REASON_NO_CHANGE, detail=str(info), current=copy.deepcopy(current)
            )

        record = copy.deepcopy(fresh.record)
        record[key] = copy.deepcopy(payload)

        try:
            if key == "membership" and isinstance(payload, dict):
                await self._check_elected_types(fresh, current, payload)
            saved = await self.repository.replace_member_with_audit(
                member_id, record, change
            )
        except PersistenceFailure as exc:
            logger.error("Saving %s for member %s failed: %s", label, member_id, exc)
            return SaveOutcome(reason=REASON_ERROR, detail=str(exc))

        logger.info(
            "Saved %s for member %s (version %s)", label, member_id, saved.version
        )
        return SaveOutcome(saved=change, current=copy.deepcopy(saved.section(key)))


class SectionEditSession:
    """Edit state of one section on one screen."""

    def __init__(self, member_id: str, section: str, baseline: Any):
        self.member_id = member_id
        self.label, self.key = resolve_section(section)
        self.baseline = copy.deepcopy(baseline)
        self.working: Any = None
        self.state = EditState.IDLE
        self.last_error: Optional[str] = None

    def _require(self, state: EditState, action: str) -> None:
        if self.state != state:
            raise InvalidTransition(self.label, self.state.value, action)

    @property
    def is_open(self) -> bool:
        return self.state != EditState.IDLE

    def start_edit(self) -> Any:
        self._require(EditState.IDLE, "start editing")
        self.working = copy.deepcopy(self.baseline)
        self.state = EditState.EDITING
        self.last_error = None
        return self.working

    def set(self, path: str, value: Any) -> None:
        """Set a dot-path field of the working copy; "" replaces the section."""
        self._require(EditState.EDITING, "edit")
        if not path:
            self.working = copy.deepcopy(value)
            return
        if not isinstance(self.working, dict):
            self.working = {}
        target = self.working
        parts = path.split(".")
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        target[parts[-1]] = copy.deepcopy(value)

    def update(self, **fields: Any) -> None:
        for name, value in fields.items():
            self.set(name, value)

    def cancel_edit(self) -> None:
        self._require(EditState.EDITING, "cancel")
        self.working = None
        self.state = EditState.IDLE

    async def save(
        self, service: MemberEditService, updated_by: Optional[str] = None
    ) -> SaveOutcome:
        self._require(EditState.EDITING, "save")
        self.state = EditState.SAVING
        try:
            outcome = await service.save_section(
                self.member_id,
                self.key,
                self.working,
                baseline=self.baseline,
                updated_by=updated_by,
            )
        except MembersCoreError as exc:
            outcome = SaveOutcome(reason=REASON_ERROR, detail=str(exc))

        if outcome.reason == REASON_ERROR:
            # Keep the user's edits and the old baseline
            self.state = EditState.EDITING
            self.last_error = outcome.detail
            return outcome

        self.baseline = copy.deepcopy(outcome.current)
        self.working = None
        self.state = EditState.IDLE
        return outcome


class MemberEditor:
    """All section sessions of one loaded member.

    Only one section may be open at a time. This is a usability guard; the
    integrity of concurrent saves rests on ``MemberEditService``.
    """

    def __init__(self, document: MemberDocument, service: MemberEditService):
        self.member_id = document.member_id
        self.service = service
        self.sessions: dict[str, SectionEditSession] = {
            key: SectionEditSession(document.member_id, key, document.section(key))
            for key in SECTIONS.values()
        }

    @classmethod
    async def load(cls, member_id: str, service: MemberEditService) -> "MemberEditor":
        document = await service.repository.find_member(member_id)
        return cls(document, service)

    def session(self, section: str) -> SectionEditSession:
        _, key = resolve_section(section)
        return self.sessions[key]

    @property
    def open_section(self) -> Optional[SectionEditSession]:
        for session in self.sessions.values():
            if session.is_open:
                return session
        return None

    def start_edit(self, section: str) -> SectionEditSession:
        session = self.session(section)
        current = self.open_section
        if current is not None and current is not session:
            raise SectionLocked(session.label, current.label)
        session.start_edit()
        return session

    async def save_edit(
        self, section: str, updated_by: Optional[str] = None
    ) -> SaveOutcome:
        return await self.session(section).save(self.service, updated_by)

    def cancel_edit(self, section: str) -> None:
        self.session(section).cancel_edit()
