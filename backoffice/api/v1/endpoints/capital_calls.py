"""
Capital call API endpoints.

- GET  /funds/{fund_id}/capital-calls                 — List a fund's calls
- POST /funds/{fund_id}/capital-calls                 — Issue a call
- POST /funds/{fund_id}/capital-calls/refresh-status  — Re-derive unsettled calls
- GET  /capital-calls/{call_id}                       — Retrieve a call
- POST /capital-calls/{call_id}/payments              — Record an LP payment
- POST /capital-calls/{call_id}/recompute-status      — Re-derive one call
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.deps import get_current_user
from backoffice.db.session import get_db
from backoffice.models.capital_call import CapitalCall, CapitalCallStatus
from backoffice.models.fund import Fund
from backoffice.models.limited_partner import LimitedPartner
from backoffice.models.user import User
from backoffice.repositories.capital_call_repo import CapitalCallRepository
from backoffice.repositories.fund_repo import FundRepository
from backoffice.repositories.lp_repo import LimitedPartnerRepository
from backoffice.schemas.capital_call import (
    CapitalCallCreate,
    CapitalCallDetail,
    PaymentCreate,
    StatusRefreshResult,
)
from backoffice.schemas.common import ErrorResponse, ValidationErrorResponse
from backoffice.services.capital_call_service import CapitalCallService

router = APIRouter()


# ── Dependency injection ──


def _get_capital_call_service(db: AsyncSession = Depends(get_db)) -> CapitalCallService:
    """
    Build a CapitalCallService wired to the current request's DB session.

    All three repositories share the session, so a call and its responses
    commit together.
    """
    return CapitalCallService(
        call_repo=CapitalCallRepository(CapitalCall, db),
        fund_repo=FundRepository(Fund, db),
        lp_repo=LimitedPartnerRepository(LimitedPartner, db),
    )


# ── Endpoints ──


@router.get(
    "/funds/{fund_id}/capital-calls",
    response_model=List[CapitalCallDetail],
    summary="List a fund's capital calls",
    description="Newest call first.  ``status`` filters on the status as of today.",
    responses={404: {"model": ErrorResponse, "description": "Fund not found"}},
)
async def list_capital_calls(
    fund_id: UUID,
    status: Optional[CapitalCallStatus] = Query(None, description="Filter by call status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    user: User = Depends(get_current_user),
    service: CapitalCallService = Depends(_get_capital_call_service),
) -> List[CapitalCallDetail]:
    return await service.list_capital_calls(
        user, fund_id=fund_id, status=status, skip=skip, limit=limit
    )


@router.post(
    "/funds/{fund_id}/capital-calls",
    response_model=CapitalCallDetail,
    status_code=201,
    summary="Issue a capital call",
    description=(
        "Creates the call and one response per LP currently in the fund in a "
        "single transaction.  Omit ``percentage`` to derive it from total "
        "commitments."
    ),
    responses={
        403: {"model": ErrorResponse, "description": "Caller may not modify this fund"},
        404: {"model": ErrorResponse, "description": "Fund not found"},
        422: {
            "model": ErrorResponse,
            "description": "No commitments, or amount and percentage disagree",
        },
    },
)
async def create_capital_call(
    fund_id: UUID,
    call_in: CapitalCallCreate,
    user: User = Depends(get_current_user),
    service: CapitalCallService = Depends(_get_capital_call_service),
) -> CapitalCallDetail:
    return await service.create_capital_call(user, fund_id, call_in)


@router.post(
    "/funds/{fund_id}/capital-calls/refresh-status",
    response_model=StatusRefreshResult,
    summary="Refresh call statuses",
    description="Re-derives every call of the fund that is not fully paid (marks OVERDUE).",
    responses={404: {"model": ErrorResponse, "description": "Fund not found"}},
)
async def refresh_call_statuses(
    fund_id: UUID,
    user: User = Depends(get_current_user),
    service: CapitalCallService = Depends(_get_capital_call_service),
) -> StatusRefreshResult:
    return await service.refresh_call_statuses(user, fund_id)


@router.get(
    "/capital-calls/{call_id}",
    response_model=CapitalCallDetail,
    summary="Get a capital call",
    responses={404: {"model": ErrorResponse, "description": "Capital call not found"}},
)
async def get_capital_call(
    call_id: UUID,
    user: User = Depends(get_current_user),
    service: CapitalCallService = Depends(_get_capital_call_service),
) -> CapitalCallDetail:
    return await service.get_capital_call(user, call_id)


@router.post(
    "/capital-calls/{call_id}/payments",
    response_model=CapitalCallDetail,
    summary="Record an LP payment",
    description=(
        "``amount_paid`` replaces the LP's previously recorded payment for the "
        "call; the LP's and the call's status are re-derived in the same "
        "transaction."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Call or LP response not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def record_payment(
    call_id: UUID,
    payment: PaymentCreate,
    user: User = Depends(get_current_user),
    service: CapitalCallService = Depends(_get_capital_call_service),
) -> CapitalCallDetail:
    return await service.record_payment(user, call_id, payment)


@router.post(
    "/capital-calls/{call_id}/recompute-status",
    response_model=CapitalCallDetail,
    summary="Recompute a call's status",
    responses={404: {"model": ErrorResponse, "description": "Capital call not found"}},
)
async def recompute_call_status(
    call_id: UUID,
    user: User = Depends(get_current_user),
    service: CapitalCallService = Depends(_get_capital_call_service),
) -> CapitalCallDetail:
    return await service.recompute_call_status(user, call_id)
