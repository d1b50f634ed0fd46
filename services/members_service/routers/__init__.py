"""Members service routers package."""

from services.members_service.routers.members import router as members_router
from services.members_service.routers.membership_types import (
    fees_router,
)
from services.members_service.routers.membership_types import (
    router as membership_types_router,
)

__all__ = [
    "members_router",
    "membership_types_router",
    "fees_router",
]
