"""
Limited partner API endpoints.

- GET   /funds/{fund_id}/limited-partners                  — List a fund's LPs
- POST  /funds/{fund_id}/limited-partners                  — Admit an LP
- GET   /limited-partners/{lp_id}                          — Retrieve an LP
- PATCH /limited-partners/{lp_id}                          — Partial update
- GET   /funds/{fund_id}/limited-partners/{lp_id}/statement — Capital-account statement
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.deps import get_current_user
from backoffice.db.session import get_db
from backoffice.models.capital_call import CapitalCall
from backoffice.models.fund import Fund
from backoffice.models.limited_partner import LimitedPartner, LPType
from backoffice.models.user import User
from backoffice.repositories.capital_call_repo import CapitalCallRepository
from backoffice.repositories.fund_repo import FundRepository
from backoffice.repositories.lp_repo import LimitedPartnerRepository
from backoffice.schemas.common import ErrorResponse, ValidationErrorResponse
from backoffice.schemas.limited_partner import (
    LimitedPartnerCreate,
    LimitedPartnerResponse,
    LimitedPartnerUpdate,
    LPStatementResponse,
)
from backoffice.services.capital_call_service import CapitalCallService
from backoffice.services.lp_service import LimitedPartnerService

router = APIRouter()


# ── Dependency injection ──


def _get_lp_service(db: AsyncSession = Depends(get_db)) -> LimitedPartnerService:
    return LimitedPartnerService(
        lp_repo=LimitedPartnerRepository(LimitedPartner, db),
        fund_repo=FundRepository(Fund, db),
    )


def _get_capital_call_service(db: AsyncSession = Depends(get_db)) -> CapitalCallService:
    return CapitalCallService(
        call_repo=CapitalCallRepository(CapitalCall, db),
        fund_repo=FundRepository(Fund, db),
        lp_repo=LimitedPartnerRepository(LimitedPartner, db),
    )


# ── Endpoints ──
# Full paths are declared here because the router is mounted at the
# API-version root: LPs are created under a fund but addressed on their own.


@router.get(
    "/funds/{fund_id}/limited-partners",
    response_model=List[LimitedPartnerResponse],
    summary="List a fund's limited partners",
    responses={404: {"model": ErrorResponse, "description": "Fund not found"}},
)
async def list_limited_partners(
    fund_id: UUID,
    lp_type: Optional[LPType] = Query(None, description="Filter by LP type"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    user: User = Depends(get_current_user),
    service: LimitedPartnerService = Depends(_get_lp_service),
) -> List[LimitedPartnerResponse]:
    return await service.list_lps(user, fund_id=fund_id, lp_type=lp_type, skip=skip, limit=limit)


@router.post(
    "/funds/{fund_id}/limited-partners",
    response_model=LimitedPartnerResponse,
    status_code=201,
    summary="Admit a limited partner to a fund",
    responses={
        403: {"model": ErrorResponse, "description": "Caller may not modify this fund"},
        404: {"model": ErrorResponse, "description": "Fund not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def create_limited_partner(
    fund_id: UUID,
    lp_in: LimitedPartnerCreate,
    user: User = Depends(get_current_user),
    service: LimitedPartnerService = Depends(_get_lp_service),
) -> LimitedPartnerResponse:
    return await service.create_lp(user, fund_id, lp_in)


@router.get(
    "/limited-partners/{lp_id}",
    response_model=LimitedPartnerResponse,
    summary="Get a limited partner",
    responses={404: {"model": ErrorResponse, "description": "LP not found"}},
)
async def get_limited_partner(
    lp_id: UUID,
    user: User = Depends(get_current_user),
    service: LimitedPartnerService = Depends(_get_lp_service),
) -> LimitedPartnerResponse:
    return await service.get_lp(user, lp_id)


@router.patch(
    "/limited-partners/{lp_id}",
    response_model=LimitedPartnerResponse,
    summary="Update a limited partner",
    description="Commitment changes are rejected once the LP has received a capital call.",
    responses={
        404: {"model": ErrorResponse, "description": "LP not found"},
        422: {"model": ErrorResponse, "description": "Commitment is frozen"},
    },
)
async def update_limited_partner(
    lp_id: UUID,
    lp_update: LimitedPartnerUpdate,
    user: User = Depends(get_current_user),
    service: LimitedPartnerService = Depends(_get_lp_service),
) -> LimitedPartnerResponse:
    return await service.update_lp(user, lp_id, lp_update)


@router.get(
    "/funds/{fund_id}/limited-partners/{lp_id}/statement",
    response_model=LPStatementResponse,
    summary="Capital-account statement",
    description=(
        "Commitment, amount called, amount paid, outstanding balance and "
        "remaining commitment, with the call history oldest first."
    ),
    responses={404: {"model": ErrorResponse, "description": "Fund or LP not found"}},
)
async def get_lp_statement(
    fund_id: UUID,
    lp_id: UUID,
    user: User = Depends(get_current_user),
    service: CapitalCallService = Depends(_get_capital_call_service),
) -> LPStatementResponse:
    return await service.generate_lp_statement(user, lp_id, fund_id)
