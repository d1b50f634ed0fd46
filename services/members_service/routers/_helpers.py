"""Shared dependencies and error translation for members service routers."""

from fastapi import Depends, HTTPException, status
from services.members_service.errors import (
    DefinitionInUse,
    IneligibleMembershipType,
    MemberNotFound,
    MembershipTypeNotFound,
    MembersCoreError,
    PersistenceFailure,
    UnknownAge,
)
from services.members_service.repository import (
    MembersRepository,
    get_members_repository,
)
from services.members_service.services.catalog import ScopeCatalog
from services.members_service.services.edit_session import MemberEditService
from services.members_service.services.eligibility import EligibilityResolver
from services.members_service.services.renewal import RenewalScheduler


def get_catalog(
    repository: MembersRepository = Depends(get_members_repository),
) -> ScopeCatalog:
    return ScopeCatalog(repository)


def get_resolver(catalog: ScopeCatalog = Depends(get_catalog)) -> EligibilityResolver:
    return EligibilityResolver(catalog)


def get_edit_service(
    repository: MembersRepository = Depends(get_members_repository),
    resolver: EligibilityResolver = Depends(get_resolver),
) -> MemberEditService:
    return MemberEditService(repository, resolver=resolver)


def get_renewal_scheduler(
    repository: MembersRepository = Depends(get_members_repository),
    catalog: ScopeCatalog = Depends(get_catalog),
) -> RenewalScheduler:
    return RenewalScheduler(repository, catalog=catalog)


_STATUS_BY_ERROR = (
    (MemberNotFound, status.HTTP_404_NOT_FOUND),
    (MembershipTypeNotFound, status.HTTP_404_NOT_FOUND),
    (IneligibleMembershipType, status.HTTP_400_BAD_REQUEST),
    (UnknownAge, status.HTTP_400_BAD_REQUEST),
    (DefinitionInUse, status.HTTP_409_CONFLICT),
    (PersistenceFailure, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_error(exc: MembersCoreError) -> HTTPException:
    """Map a domain error onto the HTTP status the API reports."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
