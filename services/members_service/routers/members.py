"""Member lifecycle router: eligibility, fees, section edits, renewals."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from services.members_service.errors import MembersCoreError
from services.members_service.repository import (
    MembersRepository,
    get_members_repository,
)
from services.members_service.routers._helpers import (
    get_edit_service,
    get_renewal_scheduler,
    get_resolver,
    to_http_error,
)
from services.members_service.schemas import (
    ChangeHistoryResponse,
    EligibilityItem,
    EligibilityResponse,
    FeeQuote,
    FeeQuoteRequest,
    MemberProfile,
    RenewalChoice,
    RenewalPreview,
    RenewalRecord,
    SaveOutcome,
    SectionSaveRequest,
)
from services.members_service.services.age import age_label
from services.members_service.services.audit import AuditTrail
from services.members_service.services.edit_session import (
    REASON_ERROR,
    MemberEditService,
)
from services.members_service.services.eligibility import EligibilityResolver
from services.members_service.services.fees import quote_fees
from services.members_service.services.renewal import RenewalScheduler

logger = get_logger(__name__)
router = APIRouter(prefix="/members", tags=["members"])


async def _load_profile(repository: MembersRepository, member_id: str) -> MemberProfile:
    try:
        document = await repository.find_member(member_id)
    except MembersCoreError as exc:
        raise to_http_error(exc)
    return MemberProfile.from_document(document)


@router.get("/{member_id}/eligibility", response_model=EligibilityResponse)
async def get_member_eligibility(
    member_id: str,
    on: Optional[date] = Query(default=None, description="Reference date"),
    repository: MembersRepository = Depends(get_members_repository),
    resolver: EligibilityResolver = Depends(get_resolver),
):
    """Membership types the member may elect, with the rule each other one fails."""
    profile = await _load_profile(repository, member_id)
    try:
        age, decided = await resolver.decisions(profile, on)
    except MembersCoreError as exc:
        raise to_http_error(exc)
    return EligibilityResponse(
        member_id=member_id,
        age=age,
        age_label=age_label(profile.date_of_birth, on),
        eligible=[d.type_id for d, decision in decided if decision.eligible],
        decisions=[
            EligibilityItem(
                type_id=d.type_id,
                name=d.name,
                eligible=decision.eligible,
                rule=decision.rule,
            )
            for d, decision in decided
        ],
    )


@router.post("/{member_id}/fees/quote", response_model=FeeQuote)
async def quote_member_fees(
    member_id: str,
    request: FeeQuoteRequest,
    repository: MembersRepository = Depends(get_members_repository),
    resolver: EligibilityResolver = Depends(get_resolver),
):
    """Quote the member's elected types; any ineligible choice is rejected."""
    profile = await _load_profile(repository, member_id)
    try:
        elected = await resolver.elect(profile, request.membership_type_ids)
        return quote_fees(elected)
    except MembersCoreError as exc:
        raise to_http_error(exc)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.put("/{member_id}/sections/{section}", response_model=SaveOutcome)
async def save_member_section(
    member_id: str,
    section: str,
    request: SectionSaveRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: MemberEditService = Depends(get_edit_service),
):
    """
    Save one section of a member record.

    A save with nothing changed returns ``reason="no-change"`` and writes no
    audit entry.
    """
    try:
        outcome = await service.save_section(
            member_id,
            section,
            request.payload,
            baseline=request.baseline,
            updated_by=current_user.user_id,
        )
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown section: {section}",
        )
    except MembersCoreError as exc:
        raise to_http_error(exc)

    if outcome.reason == REASON_ERROR:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=outcome.detail or "Failed to save member",
        )
    return outcome


@router.get("/{member_id}/history", response_model=ChangeHistoryResponse)
async def get_member_history(
    member_id: str,
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    repository: MembersRepository = Depends(get_members_repository),
):
    """Audited section changes, newest first."""
    await _load_profile(repository, member_id)
    try:
        changes = await AuditTrail(repository).list_for(member_id, limit=limit)
    except MembersCoreError as exc:
        raise to_http_error(exc)
    return ChangeHistoryResponse(member_id=member_id, changes=changes)


@router.get("/{member_id}/renewal", response_model=RenewalPreview)
async def preview_member_renewal(
    member_id: str,
    scheduler: RenewalScheduler = Depends(get_renewal_scheduler),
):
    try:
        return await scheduler.preview(member_id)
    except MembersCoreError as exc:
        raise to_http_error(exc)


@router.post(
    "/{member_id}/renewal",
    response_model=RenewalRecord,
    status_code=status.HTTP_201_CREATED,
)
async def commit_member_renewal(
    member_id: str,
    choice: RenewalChoice,
    current_user: AuthUser = Depends(get_current_user),
    scheduler: RenewalScheduler = Depends(get_renewal_scheduler),
):
    try:
        return await scheduler.commit(member_id, choice, updated_by=current_user.user_id)
    except MembersCoreError as exc:
        raise to_http_error(exc)
