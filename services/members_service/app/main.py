"""FastAPI application for the Members Service."""

from fastapi import FastAPI

from libs.common.logging import configure_logging
from services.members_service.routers import (
    fees_router,
    members_router,
    membership_types_router,
)


def create_app() -> FastAPI:
    """Create and configure the Members Service FastAPI app."""
    configure_logging()

    app = FastAPI(
        title="Club Members Service",
        version="0.1.0",
        description="Membership eligibility, fees, audited edits and renewals.",
    )

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "members"}

    app.include_router(members_router)
    app.include_router(membership_types_router)
    app.include_router(fees_router)

    return app


app = create_app()
