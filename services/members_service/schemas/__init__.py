"""Members Service schemas package.

Re-exports all schemas so that:
  - ``from services.members_service.schemas import FeeQuote`` works
  - All router files use a single import namespace

Schema files:
  - schemas/membership_type.py: catalog definitions
  - schemas/member.py         : member documents, sections, save outcomes
  - schemas/fees.py           : fee quotes
  - schemas/audit.py          : change and renewal records
  - schemas/renewal.py        : renewal preview and choice
"""

from services.members_service.schemas.audit import (  # noqa: F401
    ChangeHistoryResponse,
    ChangeRecord,
    FieldChange,
    RenewalRecord,
)
from services.members_service.schemas.fees import (  # noqa: F401
    FeeQuote,
    FeeQuoteRequest,
    FrequencyTotal,
    OptionalCharge,
)
from services.members_service.schemas.member import (  # noqa: F401
    SECTIONS,
    EligibilityItem,
    EligibilityResponse,
    MemberDocument,
    MemberProfile,
    SaveOutcome,
    SectionSaveRequest,
    resolve_section,
)
from services.members_service.schemas.membership_type import (  # noqa: F401
    AdditionalFee,
    AgeBounds,
    FeeSchedule,
    MembershipTypeDefinition,
    MembershipTypeListResponse,
)
from services.members_service.schemas.renewal import (  # noqa: F401
    MembershipPeriod,
    RenewalChoice,
    RenewalPreview,
)
