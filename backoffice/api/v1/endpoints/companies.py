"""
Portfolio company API endpoints.

- GET    /companies                             — List companies
- POST   /companies                             — Add a company
- GET    /companies/{id}                        — Retrieve a company
- PATCH  /companies/{id}                        — Partial update
- DELETE /companies/{id}                        — Remove an unused company
- GET    /companies/{id}/total-invested         — Invested per currency
- GET    /companies/{id}/ownership              — Summed ownership percentage
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.deps import get_current_user
from backoffice.db.session import get_db
from backoffice.models.company import CompanyStage, PortfolioCompany
from backoffice.models.fund import Fund
from backoffice.models.investment import Investment
from backoffice.models.user import User
from backoffice.repositories.company_repo import CompanyRepository
from backoffice.repositories.fund_repo import FundRepository
from backoffice.repositories.investment_repo import InvestmentRepository
from backoffice.schemas.common import ErrorResponse, ValidationErrorResponse
from backoffice.schemas.company import CompanyCreate, CompanyResponse, CompanyUpdate
from backoffice.schemas.investment import OwnershipResponse, TotalInvestedResponse
from backoffice.services.portfolio_service import PortfolioService

router = APIRouter()


def get_portfolio_service(db: AsyncSession = Depends(get_db)) -> PortfolioService:
    """Shared with the investments router."""
    return PortfolioService(
        company_repo=CompanyRepository(PortfolioCompany, db),
        invest_repo=InvestmentRepository(Investment, db),
        fund_repo=FundRepository(Fund, db),
    )


@router.get("", response_model=List[CompanyResponse], summary="List portfolio companies")
async def list_companies(
    stage: Optional[CompanyStage] = Query(None),
    sector: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
) -> List[CompanyResponse]:
    return await service.list_companies(stage=stage, sector=sector, skip=skip, limit=limit)


@router.post(
    "",
    response_model=CompanyResponse,
    status_code=201,
    summary="Add a portfolio company",
    responses={
        403: {"model": ErrorResponse, "description": "Caller may not edit the portfolio"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def create_company(
    company_in: CompanyCreate,
    user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
) -> CompanyResponse:
    return await service.add_company(user, company_in)


@router.get(
    "/{company_id}",
    response_model=CompanyResponse,
    summary="Get a portfolio company",
    responses={404: {"model": ErrorResponse, "description": "Company not found"}},
)
async def get_company(
    company_id: UUID,
    user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
) -> CompanyResponse:
    return await service.get_company(company_id)


@router.patch(
    "/{company_id}",
    response_model=CompanyResponse,
    summary="Update a portfolio company",
    responses={404: {"model": ErrorResponse, "description": "Company not found"}},
)
async def update_company(
    company_id: UUID,
    company_update: CompanyUpdate,
    user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
) -> CompanyResponse:
    return await service.update_company(user, company_id, company_update)


@router.delete(
    "/{company_id}",
    status_code=204,
    summary="Delete a portfolio company",
    responses={
        404: {"model": ErrorResponse, "description": "Company not found"},
        409: {"model": ErrorResponse, "description": "Company has recorded activity"},
    },
)
async def delete_company(
    company_id: UUID,
    user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
) -> Response:
    await service.delete_company(user, company_id)
    return Response(status_code=204)


@router.get(
    "/{company_id}/total-invested",
    response_model=TotalInvestedResponse,
    summary="Total invested in a company, per currency",
    responses={404: {"model": ErrorResponse, "description": "Company not found"}},
)
async def get_total_invested(
    company_id: UUID,
    user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
) -> TotalInvestedResponse:
    totals = await service.get_total_invested(company_id)
    return TotalInvestedResponse(company_id=company_id, totals=totals)


@router.get(
    "/{company_id}/ownership",
    response_model=OwnershipResponse,
    summary="Summed ownership percentage",
    responses={404: {"model": ErrorResponse, "description": "Company not found"}},
)
async def get_ownership(
    company_id: UUID,
    user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
) -> OwnershipResponse:
    return OwnershipResponse(
        company_id=company_id, ownership=await service.get_ownership(company_id)
    )
