"""Error taxonomy for the member lifecycle core.

Every error here is recoverable at the caller boundary. Routers translate
them into HTTP responses; the edit session converts persistence errors into a
failed save outcome instead of raising.
"""

from typing import Optional


class MembersCoreError(Exception):
    """Base class for member lifecycle errors."""


class UnknownAge(MembersCoreError):
    """Date of birth is missing or unparseable."""

    def __init__(self, member_id: Optional[str] = None):
        self.member_id = member_id
        who = f"member {member_id}" if member_id else "member"
        super().__init__(f"Date of birth for {who} is missing or invalid")


class IneligibleMembershipType(MembersCoreError):
    """An elected membership type fails a scope or age rule."""

    def __init__(self, type_id: str, rule: str, detail: Optional[str] = None):
        self.type_id = type_id
        self.rule = rule
        message = f"Membership type {type_id} is not eligible ({rule})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class EmptyDiffNoOp(MembersCoreError):
    """A save carried no changed fields. Informational, not a failure."""

    def __init__(self, section: str):
        self.section = section
        super().__init__(f"No changes to save in {section}")


class StaleWriteRisk(MembersCoreError):
    """The persisted section moved on since the editor captured its baseline."""

    def __init__(self, member_id: str, section: str, paths: list[str]):
        self.member_id = member_id
        self.section = section
        self.paths = paths
        super().__init__(
            f"{section} of member {member_id} changed since it was loaded: "
            f"{', '.join(paths) or '(whole section)'}"
        )


class PersistenceFailure(MembersCoreError):
    """The underlying store rejected or failed an operation."""


class MemberNotFound(MembersCoreError):
    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(f"Member {member_id} not found")


class MembershipTypeNotFound(MembersCoreError):
    def __init__(self, type_id: str):
        self.type_id = type_id
        super().__init__(f"Membership type {type_id} not found")


class DefinitionInUse(MembersCoreError):
    """A membership type referenced by renewals cannot be hard-deleted."""

    def __init__(self, type_id: str, usage_count: int):
        self.type_id = type_id
        self.usage_count = usage_count
        super().__init__(
            f"Membership type {type_id} is referenced by {usage_count} "
            f"renewal(s); deactivate it instead"
        )


class SectionLocked(MembersCoreError):
    """Another section of the same member is already being edited."""

    def __init__(self, requested: str, open_section: str):
        self.requested = requested
        self.open_section = open_section
        super().__init__(
            f"Cannot edit {requested} while {open_section} has unsaved edits"
        )


class InvalidTransition(MembersCoreError):
    def __init__(self, section: str, state: str, action: str):
        self.section = section
        self.state = state
        self.action = action
        super().__init__(f"Cannot {action} {section} while {state}")
