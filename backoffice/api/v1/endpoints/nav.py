"""
NAV API endpoints.

- GET  /funds/{fund_id}/nav                    — NAV history (optional start / end)
- POST /funds/{fund_id}/nav                    — Calculate and store a NAV
- GET  /funds/{fund_id}/nav/latest             — Most recent NAV
- GET  /nav/{calculation_id}                   — One calculation with holdings
- GET  /companies/{company_id}/valuation       — Latest valuation of a company
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.deps import get_current_user
from backoffice.core.exceptions import NotFoundException
from backoffice.db.session import get_db
from backoffice.models.fund import Fund
from backoffice.models.nav import NAVCalculation
from backoffice.models.user import User
from backoffice.repositories.fund_repo import FundRepository
from backoffice.repositories.nav_repo import NAVRepository
from backoffice.schemas.common import ErrorResponse, ValidationErrorResponse
from backoffice.schemas.nav import (
    CompanyValuationResponse,
    NAVCalculate,
    NAVCalculationResponse,
)
from backoffice.services.nav_service import NAVService

router = APIRouter()


def _get_nav_service(db: AsyncSession = Depends(get_db)) -> NAVService:
    return NAVService(
        nav_repo=NAVRepository(NAVCalculation, db),
        fund_repo=FundRepository(Fund, db),
    )


# ── Endpoints ──
# Calculations carry their holdings, so responses are validated from
# attributes explicitly rather than via the table model's own dump.


@router.get(
    "/funds/{fund_id}/nav",
    response_model=List[NAVCalculationResponse],
    summary="NAV history",
    description="Calculations dated within ``[start_date, end_date]``, newest first.",
    responses={
        404: {"model": ErrorResponse, "description": "Fund not found"},
        422: {"model": ErrorResponse, "description": "start_date after end_date"},
    },
)
async def get_nav_history(
    fund_id: UUID,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user: User = Depends(get_current_user),
    service: NAVService = Depends(_get_nav_service),
) -> List[NAVCalculationResponse]:
    calculations = await service.get_historical_nav(user, fund_id, start_date, end_date)
    return [NAVCalculationResponse.model_validate(c) for c in calculations]


@router.post(
    "/funds/{fund_id}/nav",
    response_model=NAVCalculationResponse,
    status_code=201,
    summary="Calculate NAV",
    responses={
        403: {"model": ErrorResponse, "description": "Caller may not modify this fund"},
        404: {"model": ErrorResponse, "description": "Fund not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def calculate_nav(
    fund_id: UUID,
    nav_in: NAVCalculate,
    user: User = Depends(get_current_user),
    service: NAVService = Depends(_get_nav_service),
) -> NAVCalculationResponse:
    calculation = await service.calculate_nav(
        user, fund_id, nav_in.calculation_date, nav_in.holdings, nav_in.currency
    )
    return NAVCalculationResponse.model_validate(calculation)


@router.get(
    "/funds/{fund_id}/nav/latest",
    response_model=NAVCalculationResponse,
    summary="Latest NAV",
    responses={404: {"model": ErrorResponse, "description": "Fund or NAV not found"}},
)
async def get_latest_nav(
    fund_id: UUID,
    user: User = Depends(get_current_user),
    service: NAVService = Depends(_get_nav_service),
) -> NAVCalculationResponse:
    calculation = await service.get_latest_nav(user, fund_id)
    if calculation is None:
        raise NotFoundException("NAVCalculation", f"latest for fund {fund_id}")
    return NAVCalculationResponse.model_validate(calculation)


@router.get(
    "/nav/{calculation_id}",
    response_model=NAVCalculationResponse,
    summary="Get a NAV calculation",
    responses={404: {"model": ErrorResponse, "description": "Calculation not found"}},
)
async def get_calculation(
    calculation_id: UUID,
    user: User = Depends(get_current_user),
    service: NAVService = Depends(_get_nav_service),
) -> NAVCalculationResponse:
    return NAVCalculationResponse.model_validate(
        await service.get_calculation(user, calculation_id)
    )


@router.get(
    "/companies/{company_id}/valuation",
    response_model=CompanyValuationResponse,
    summary="Company valuation",
    description=(
        "The company's value in the newest NAV calculation that includes it, "
        "ignoring calculations dated after ``as_of``."
    ),
    responses={404: {"model": ErrorResponse, "description": "Company never valued"}},
)
async def get_company_valuation(
    company_id: str,
    as_of: Optional[str] = Query(None, description="ISO date (YYYY-MM-DD)"),
    user: User = Depends(get_current_user),
    service: NAVService = Depends(_get_nav_service),
) -> CompanyValuationResponse:
    valuation = await service.get_company_valuation(user, company_id, as_of)
    if valuation is None:
        raise NotFoundException("CompanyValuation", company_id)
    return valuation
