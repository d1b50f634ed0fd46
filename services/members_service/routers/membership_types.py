"""Membership type catalog router."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from libs.common.logging import get_logger
from services.members_service.errors import MembersCoreError
from services.members_service.models.enums import MembershipScope
from services.members_service.routers._helpers import get_catalog, to_http_error
from services.members_service.schemas import (
    FeeQuote,
    FeeQuoteRequest,
    MembershipTypeDefinition,
    MembershipTypeListResponse,
)
from services.members_service.services.catalog import ScopeCatalog
from services.members_service.services.fees import quote_fees

logger = get_logger(__name__)
router = APIRouter(prefix="/membership-types", tags=["membership-types"])
fees_router = APIRouter(prefix="/fees", tags=["fees"])


@router.get("/", response_model=MembershipTypeListResponse)
async def list_membership_types(
    scope: Optional[MembershipScope] = None,
    owner_id: Optional[str] = None,
    active_only: bool = Query(default=False),
    catalog: ScopeCatalog = Depends(get_catalog),
):
    try:
        items = await catalog.list_definitions(
            scope=scope, owner_id=owner_id, active_only=active_only
        )
    except MembersCoreError as exc:
        raise to_http_error(exc)
    return MembershipTypeListResponse(items=items, total=len(items))


@router.get("/{type_id}", response_model=MembershipTypeDefinition)
async def get_membership_type(
    type_id: str,
    catalog: ScopeCatalog = Depends(get_catalog),
):
    try:
        return await catalog.get(type_id)
    except MembersCoreError as exc:
        raise to_http_error(exc)


@router.post("/{type_id}/deactivate", response_model=MembershipTypeDefinition)
async def deactivate_membership_type(
    type_id: str,
    catalog: ScopeCatalog = Depends(get_catalog),
):
    """Hide a type from eligibility while keeping it for renewal history."""
    try:
        return await catalog.deactivate(type_id)
    except MembersCoreError as exc:
        raise to_http_error(exc)


@router.delete("/{type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_membership_type(
    type_id: str,
    catalog: ScopeCatalog = Depends(get_catalog),
):
    """Delete a type no renewal has used. Used types answer 409."""
    try:
        await catalog.delete(type_id)
    except MembersCoreError as exc:
        raise to_http_error(exc)


@fees_router.post("/quote", response_model=FeeQuote)
async def quote_membership_fees(
    request: FeeQuoteRequest,
    catalog: ScopeCatalog = Depends(get_catalog),
):
    """Quote a set of types as given, without member eligibility checks."""
    try:
        definitions = await catalog.get_many(request.membership_type_ids)
        return quote_fees(definitions)
    except MembersCoreError as exc:
        raise to_http_error(exc)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
