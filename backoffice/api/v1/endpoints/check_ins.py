"""
Check-in API endpoints.

- GET  /check-ins                           — Check-ins across companies
- GET  /companies/{company_id}/check-ins    — One company's check-ins
- POST /companies/{company_id}/check-ins    — Record a check-in
- GET  /companies/{company_id}/last-contact — Last check-in, open tasks, latest investment
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.deps import get_current_user
from backoffice.db.session import get_db
from backoffice.models.check_in import CheckIn
from backoffice.models.company import PortfolioCompany
from backoffice.models.investment import Investment
from backoffice.models.task import Task
from backoffice.models.user import User
from backoffice.repositories.check_in_repo import CheckInRepository
from backoffice.repositories.company_repo import CompanyRepository
from backoffice.repositories.investment_repo import InvestmentRepository
from backoffice.repositories.task_repo import TaskRepository
from backoffice.schemas.check_in import CheckInCreate, CheckInResponse, CompanyContactResponse
from backoffice.schemas.common import ErrorResponse, ValidationErrorResponse
from backoffice.services.check_in_service import CheckInService

router = APIRouter()


def get_check_in_service(db: AsyncSession = Depends(get_db)) -> CheckInService:
    return CheckInService(
        check_in_repo=CheckInRepository(CheckIn, db),
        company_repo=CompanyRepository(PortfolioCompany, db),
        task_repo=TaskRepository(Task, db),
        invest_repo=InvestmentRepository(Investment, db),
    )


@router.get(
    "/check-ins",
    response_model=List[CheckInResponse],
    summary="List check-ins",
    description="Newest first, optionally from ``since`` (inclusive).",
)
async def list_check_ins(
    since: Optional[date] = Query(None),
    limit: int = Query(10, ge=1, le=1000),
    user: User = Depends(get_current_user),
    service: CheckInService = Depends(get_check_in_service),
) -> List[CheckInResponse]:
    check_ins = await service.list_check_ins(since=since, limit=limit)
    return [CheckInResponse.model_validate(c) for c in check_ins]


@router.get(
    "/companies/{company_id}/check-ins",
    response_model=List[CheckInResponse],
    summary="Company check-in history",
    responses={404: {"model": ErrorResponse, "description": "Company not found"}},
)
async def list_company_check_ins(
    company_id: UUID,
    since: Optional[date] = Query(None),
    limit: int = Query(10, ge=1, le=1000),
    user: User = Depends(get_current_user),
    service: CheckInService = Depends(get_check_in_service),
) -> List[CheckInResponse]:
    check_ins = await service.list_check_ins(company_id=company_id, since=since, limit=limit)
    return [CheckInResponse.model_validate(c) for c in check_ins]


@router.post(
    "/companies/{company_id}/check-ins",
    response_model=CheckInResponse,
    status_code=201,
    summary="Record a check-in",
    responses={
        403: {"model": ErrorResponse, "description": "READ_ONLY callers cannot record"},
        404: {"model": ErrorResponse, "description": "Company not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def create_check_in(
    company_id: UUID,
    check_in_in: CheckInCreate,
    user: User = Depends(get_current_user),
    service: CheckInService = Depends(get_check_in_service),
) -> CheckInResponse:
    check_in = await service.create_check_in(user, company_id, check_in_in)
    return CheckInResponse.model_validate(check_in)


@router.get(
    "/companies/{company_id}/last-contact",
    response_model=CompanyContactResponse,
    summary="Last contact with a company",
    responses={404: {"model": ErrorResponse, "description": "Company not found"}},
)
async def get_last_contact(
    company_id: UUID,
    user: User = Depends(get_current_user),
    service: CheckInService = Depends(get_check_in_service),
) -> CompanyContactResponse:
    return await service.get_last_contact(user, await service.get_company(company_id))
