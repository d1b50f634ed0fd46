"""Members Service models package.

Re-exports all models and enums so that:
  - ``from services.members_service.models import ClubMember`` works
  - Alembic env.py imports see every table
  - SQLAlchemy's mapper registry sees every model class on import

Model definitions are split across:
  - models/member.py         : member document, change log, renewals
  - models/membership_type.py: scoped membership type catalog
"""

from services.members_service.models.enums import (  # noqa: F401
    BillingFrequency,
    MembershipScope,
    MembershipStatus,
)
from services.members_service.models.member import (  # noqa: F401
    ClubMember,
    MemberChangeLog,
    MemberRenewal,
)
from services.members_service.models.membership_type import (  # noqa: F401
    MembershipType,
)

__all__ = [
    "BillingFrequency",
    "MembershipScope",
    "MembershipStatus",
    "ClubMember",
    "MemberChangeLog",
    "MemberRenewal",
    "MembershipType",
]
