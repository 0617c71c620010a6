"""
MCP tool endpoints.

Plain JSON endpoints for tool-calling agents.  They address funds, LPs and
companies by name (users by email) rather than id and return self-contained
payloads, but authorise and compute exactly like the REST API because they
call the same services.

- GET  /mcp/fund.list                              — Visible funds with summaries
- GET  /mcp/lp.statement?lp=<name>&fund=<name>     — LP capital-account statement
- GET  /mcp/company.last-contact?company=<name>    — Last check-in and open tasks
- POST /mcp/task.create                            — Task by company name and assignee email
"""

from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.deps import get_current_user
from backoffice.api.v1.endpoints.check_ins import get_check_in_service
from backoffice.api.v1.endpoints.tasks import get_task_service
from backoffice.db.session import get_db
from backoffice.models.capital_call import CapitalCall
from backoffice.models.fund import Fund
from backoffice.models.limited_partner import LimitedPartner
from backoffice.models.user import User
from backoffice.repositories.capital_call_repo import CapitalCallRepository
from backoffice.repositories.fund_repo import FundRepository
from backoffice.repositories.lp_repo import LimitedPartnerRepository
from backoffice.schemas.check_in import CompanyContactResponse
from backoffice.schemas.common import ErrorResponse
from backoffice.schemas.fund import FundSummary
from backoffice.schemas.limited_partner import LPStatementResponse
from backoffice.schemas.task import TaskCreateByName, TaskResponse
from backoffice.services.capital_call_service import CapitalCallService
from backoffice.services.check_in_service import CheckInService
from backoffice.services.fund_service import FundService
from backoffice.services.task_service import TaskService

router = APIRouter()


class FundListPayload(BaseModel):
    funds: List[FundSummary]


class StatementPayload(BaseModel):
    statement: LPStatementResponse
    generated_at: datetime


class LastContactPayload(BaseModel):
    company: CompanyContactResponse
    generated_at: datetime


class TaskPayload(BaseModel):
    task: TaskResponse


def _get_fund_service(db: AsyncSession = Depends(get_db)) -> FundService:
    return FundService(FundRepository(Fund, db))


def _get_capital_call_service(db: AsyncSession = Depends(get_db)) -> CapitalCallService:
    return CapitalCallService(
        call_repo=CapitalCallRepository(CapitalCall, db),
        fund_repo=FundRepository(Fund, db),
        lp_repo=LimitedPartnerRepository(LimitedPartner, db),
    )


@router.get(
    "/fund.list",
    response_model=FundListPayload,
    summary="List funds with summaries",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def fund_list(
    user: User = Depends(get_current_user),
    service: FundService = Depends(_get_fund_service),
) -> FundListPayload:
    funds = await service.get_all_funds(user, skip=0, limit=1000)
    return FundListPayload(funds=[await service.get_summary(user, fund.id) for fund in funds])


@router.get(
    "/lp.statement",
    response_model=StatementPayload,
    summary="LP statement by name",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Caller may not view this fund"},
        404: {"model": ErrorResponse, "description": "LP or fund not found"},
    },
)
async def lp_statement(
    lp: str = Query(..., min_length=1, description="Limited partner name"),
    fund: str = Query(..., min_length=1, description="Fund name"),
    user: User = Depends(get_current_user),
    service: CapitalCallService = Depends(_get_capital_call_service),
) -> StatementPayload:
    statement = await service.generate_lp_statement_by_name(user, lp, fund)
    return StatementPayload(statement=statement, generated_at=datetime.now(timezone.utc))


@router.get(
    "/company.last-contact",
    response_model=LastContactPayload,
    summary="Last contact with a company by name",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Company not found"},
    },
)
async def company_last_contact(
    company: str = Query(..., min_length=1, description="Company name"),
    user: User = Depends(get_current_user),
    service: CheckInService = Depends(get_check_in_service),
) -> LastContactPayload:
    contact = await service.get_last_contact_by_name(user, company)
    return LastContactPayload(company=contact, generated_at=datetime.now(timezone.utc))


@router.post(
    "/task.create",
    response_model=TaskPayload,
    status_code=201,
    summary="Create a task by company name and assignee email",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "READ_ONLY callers cannot create"},
        404: {"model": ErrorResponse, "description": "Company or assignee not found"},
    },
)
async def task_create(
    task_in: TaskCreateByName,
    user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskPayload:
    task = await service.create_task_by_name(user, task_in)
    return TaskPayload(task=TaskResponse.model_validate(task))
