"""
Investment API endpoints.

- GET  /investments  — List investments (filter by company and / or fund)
- POST /investments  — Record a fund's investment in a company
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from backoffice.api.deps import get_current_user
from backoffice.api.v1.endpoints.companies import get_portfolio_service
from backoffice.models.user import User
from backoffice.schemas.common import ErrorResponse, ValidationErrorResponse
from backoffice.schemas.investment import InvestmentCreate, InvestmentResponse
from backoffice.services.portfolio_service import PortfolioService

router = APIRouter()


@router.get(
    "",
    response_model=List[InvestmentResponse],
    summary="List investments",
    description="Most recent investment date first.",
)
async def list_investments(
    company_id: Optional[UUID] = Query(None),
    fund_id: Optional[UUID] = Query(None),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Max records to return"),
    user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
) -> List[InvestmentResponse]:
    return await service.list_investments(
        company_id=company_id, fund_id=fund_id, skip=skip, limit=limit
    )


@router.post(
    "",
    response_model=InvestmentResponse,
    status_code=201,
    summary="Record an investment",
    description=(
        "Validates that the fund and company exist and that the caller may "
        "modify the fund before recording the investment."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Fund or company not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def create_investment(
    invest_in: InvestmentCreate,
    user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
) -> InvestmentResponse:
    return await service.add_investment(user, invest_in)
