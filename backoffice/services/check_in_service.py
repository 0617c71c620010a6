"""
Check-in service.

Check-ins log each conversation with a portfolio company.  The newest one is
the company's last contact, which :meth:`CheckInService.get_last_contact`
combines with the company's open tasks and latest investment.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from backoffice.core import permissions
from backoffice.core.exceptions import BusinessRuleViolation, CompanyNotFoundError
from backoffice.models.check_in import CheckIn
from backoffice.models.company import PortfolioCompany
from backoffice.models.user import User
from backoffice.repositories.check_in_repo import CheckInRepository
from backoffice.repositories.company_repo import CompanyRepository
from backoffice.repositories.investment_repo import InvestmentRepository
from backoffice.repositories.task_repo import TaskRepository
from backoffice.schemas.check_in import (
    CheckInCreate,
    CheckInResponse,
    CompanyContactResponse,
    LastContact,
    LatestInvestment,
)
from backoffice.schemas.task import TaskResponse
from backoffice.services import accounting
from backoffice.services.nav_service import DateLike, coerce_date

logger = logging.getLogger(__name__)

UPCOMING_TASK_LIMIT = 5


def _money(value: Optional[Decimal]) -> Optional[Decimal]:
    return None if value is None else accounting.quantize_money(value)


class CheckInService:
    """Records check-ins and answers "when did we last talk to them?"."""

    def __init__(
        self,
        check_in_repo: CheckInRepository,
        company_repo: CompanyRepository,
        task_repo: TaskRepository,
        invest_repo: InvestmentRepository,
        clock: Callable[[], date] = date.today,
    ):
        self._repo = check_in_repo
        self._company_repo = company_repo
        self._task_repo = task_repo
        self._invest_repo = invest_repo
        self._clock = clock

    async def get_company(self, company_id: UUID) -> PortfolioCompany:
        company = await self._company_repo.get(company_id)
        if not company:
            raise CompanyNotFoundError(company_id)
        return company

    async def get_company_by_name(self, name: str) -> PortfolioCompany:
        company = await self._company_repo.get_by_name(name)
        if not company:
            raise CompanyNotFoundError(name)
        return company

    # ── Commands ──

    async def create_check_in(
        self, user: User, company_id: UUID, check_in_in: CheckInCreate
    ) -> CheckIn:
        permissions.require(permissions.can_record_activity(user), "record check-ins")
        company = await self.get_company(company_id)

        check_in = CheckIn(
            company_id=company.id,
            check_in_date=check_in_in.check_in_date or self._clock(),
            revenue=_money(check_in_in.revenue),
            burn=_money(check_in_in.burn),
            runway=check_in_in.runway,
            headcount=check_in_in.headcount,
            notes=check_in_in.notes,
            metrics=check_in_in.metrics,
        )
        try:
            created = await self._repo.create(check_in)
        except IntegrityError as exc:
            await self._repo.rollback()
            logger.warning("IntegrityError creating check-in for company %s: %s", company.id, exc)
            raise BusinessRuleViolation(
                "Check-in violates a database constraint. Check all fields."
            )
        logger.info(
            "Recorded check-in %s with %s on %s", created.id, company.name, created.check_in_date
        )
        return created

    # ── Queries ──

    async def list_check_ins(
        self,
        company_id: Optional[UUID] = None,
        since: Optional[DateLike] = None,
        limit: int = 10,
    ) -> List[CheckIn]:
        """Newest first, optionally for one company and from ``since`` (inclusive)."""
        since_date = coerce_date(since, "since")
        if company_id is not None:
            await self.get_company(company_id)
        return await self._repo.list_check_ins(
            company_id=company_id, since=since_date, limit=limit
        )

    async def get_last_contact(
        self, user: User, company: PortfolioCompany
    ) -> CompanyContactResponse:
        """
        The company's newest check-in (with days elapsed since it), up to five
        open tasks soonest due first and its latest investment among the
        funds ``user`` can see.
        """
        latest = await self._repo.latest_for_company(company.id)
        last_contact = None
        if latest is not None:
            last_contact = LastContact(
                **CheckInResponse.model_validate(latest).model_dump(),
                days_since=(self._clock() - latest.check_in_date).days,
            )
        tasks = await self._task_repo.open_for_company(company.id, limit=UPCOMING_TASK_LIMIT)
        investment = await self._invest_repo.latest_for_company(
            company.id, owner_id=permissions.visible_owner_filter(user)
        )
        return CompanyContactResponse(
            company_id=company.id,
            name=company.name,
            sector=company.sector,
            website=company.website,
            last_contact=last_contact,
            upcoming_tasks=[TaskResponse.model_validate(t) for t in tasks],
            latest_investment=(
                LatestInvestment.model_validate(investment) if investment is not None else None
            ),
        )

    async def get_last_contact_by_name(
        self, user: User, company_name: str
    ) -> CompanyContactResponse:
        return await self.get_last_contact(user, await self.get_company_by_name(company_name))
