"""
Fund API endpoints.

- GET    /funds               — List funds visible to the caller
- POST   /funds               — Create a new fund
- GET    /funds/{id}          — Retrieve a specific fund
- PUT    /funds/{id}          — Update a fund (full replacement)
- DELETE /funds/{id}          — Delete a fund with no dependent records
- GET    /funds/{id}/summary  — Commitments, invested capital, counts
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.deps import get_current_user
from backoffice.db.session import get_db
from backoffice.models.fund import Fund
from backoffice.models.user import User
from backoffice.repositories.fund_repo import FundRepository
from backoffice.schemas.common import ErrorResponse, ValidationErrorResponse
from backoffice.schemas.fund import FundCreate, FundResponse, FundSummary, FundUpdate
from backoffice.services.fund_service import FundService

router = APIRouter()


# ── Dependency injection ──
# FastAPI's Depends() system creates a fresh service instance per request,
# each wired to its own DB session, so one request's transaction cannot
# bleed into another.


def _get_fund_service(db: AsyncSession = Depends(get_db)) -> FundService:
    """Build a FundService wired to the current request's DB session."""
    return FundService(FundRepository(Fund, db))


# ── Endpoints ──


@router.get(
    "",
    response_model=List[FundResponse],
    summary="List funds",
    description=(
        "Returns the funds the caller may see, ordered by name.  Use ``skip`` "
        "and ``limit`` to page through large result sets."
    ),
)
async def list_funds(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Max records to return"),
    user: User = Depends(get_current_user),
    service: FundService = Depends(_get_fund_service),
) -> List[FundResponse]:
    return await service.get_all_funds(user, skip=skip, limit=limit)


@router.post(
    "",
    response_model=FundResponse,
    status_code=201,
    summary="Create a new fund",
    responses={
        403: {"model": ErrorResponse, "description": "Caller may not create funds"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def create_fund(
    fund: FundCreate,
    user: User = Depends(get_current_user),
    service: FundService = Depends(_get_fund_service),
) -> FundResponse:
    return await service.create_fund(user, fund)


@router.get(
    "/{fund_id}",
    response_model=FundResponse,
    summary="Get a specific fund",
    responses={404: {"model": ErrorResponse, "description": "Fund not found"}},
)
async def get_fund(
    fund_id: UUID,
    user: User = Depends(get_current_user),
    service: FundService = Depends(_get_fund_service),
) -> FundResponse:
    return await service.get_fund(user, fund_id)


@router.put(
    "/{fund_id}",
    response_model=FundResponse,
    summary="Update a fund",
    description=(
        "Full replacement update.  Status may only move forward through "
        "RAISING → INVESTING → FULLY_INVESTED → HARVESTING → CLOSED."
    ),
    responses={
        403: {"model": ErrorResponse, "description": "Caller may not modify this fund"},
        404: {"model": ErrorResponse, "description": "Fund not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def update_fund(
    fund_id: UUID,
    fund_update: FundUpdate,
    user: User = Depends(get_current_user),
    service: FundService = Depends(_get_fund_service),
) -> FundResponse:
    return await service.update_fund(user, fund_id, fund_update)


@router.delete(
    "/{fund_id}",
    status_code=204,
    summary="Delete a fund",
    responses={
        403: {"model": ErrorResponse, "description": "Only SUPER_ADMIN may delete funds"},
        404: {"model": ErrorResponse, "description": "Fund not found"},
        409: {"model": ErrorResponse, "description": "Fund has dependent records"},
    },
)
async def delete_fund(
    fund_id: UUID,
    user: User = Depends(get_current_user),
    service: FundService = Depends(_get_fund_service),
) -> Response:
    await service.delete_fund(user, fund_id)
    return Response(status_code=204)


@router.get(
    "/{fund_id}/summary",
    response_model=FundSummary,
    summary="Fund summary",
    responses={404: {"model": ErrorResponse, "description": "Fund not found"}},
)
async def get_fund_summary(
    fund_id: UUID,
    user: User = Depends(get_current_user),
    service: FundService = Depends(_get_fund_service),
) -> FundSummary:
    return await service.get_summary(user, fund_id)
