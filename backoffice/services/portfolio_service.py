"""
Portfolio service — companies and the investments funds make in them.

Companies are shared across funds, so writes need a portfolio-writer role
rather than ownership of a particular fund.  Recording an investment also
needs mutate access to the investing fund.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from backoffice.core import permissions
from backoffice.core.exceptions import (
    BusinessRuleViolation,
    CompanyNotFoundError,
    ConflictException,
)
from backoffice.models.company import CompanyStage, PortfolioCompany
from backoffice.models.investment import Investment
from backoffice.models.user import User
from backoffice.repositories.company_repo import CompanyRepository
from backoffice.repositories.fund_repo import FundRepository
from backoffice.repositories.investment_repo import InvestmentRepository
from backoffice.schemas.company import CompanyCreate, CompanyUpdate
from backoffice.schemas.investment import InvestmentCreate
from backoffice.services import accounting
from backoffice.services.fund_service import get_mutable_fund

logger = logging.getLogger(__name__)


class PortfolioService:
    """Portfolio companies, investments and their aggregates."""

    def __init__(
        self,
        company_repo: CompanyRepository,
        invest_repo: InvestmentRepository,
        fund_repo: FundRepository,
    ):
        self._company_repo = company_repo
        self._invest_repo = invest_repo
        self._fund_repo = fund_repo

    # ── Companies ──

    async def list_companies(
        self,
        stage: Optional[CompanyStage] = None,
        sector: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[PortfolioCompany]:
        return await self._company_repo.list_companies(
            stage=stage, sector=sector, skip=skip, limit=limit
        )

    async def get_company(self, company_id: UUID) -> PortfolioCompany:
        company = await self._company_repo.get(company_id)
        if not company:
            raise CompanyNotFoundError(company_id)
        return company

    async def add_company(self, user: User, company_in: CompanyCreate) -> PortfolioCompany:
        permissions.require(permissions.can_write_portfolio(user), "add portfolio companies")
        company = PortfolioCompany(**company_in.model_dump())
        company.name = company.name.strip()
        try:
            created = await self._company_repo.create(company)
        except IntegrityError as exc:
            await self._company_repo.rollback()
            logger.warning("IntegrityError creating company: %s", exc)
            raise BusinessRuleViolation(
                "Company data violates a database constraint. Check all fields."
            )
        logger.info("Added portfolio company %s (%s)", created.id, created.name)
        return created

    async def update_company(
        self, user: User, company_id: UUID, company_update: CompanyUpdate
    ) -> PortfolioCompany:
        """Partial update: only the fields present in the payload change."""
        permissions.require(permissions.can_write_portfolio(user), "update portfolio companies")
        company = await self.get_company(company_id)
        changes = company_update.model_dump(exclude_unset=True)
        for key, value in changes.items():
            setattr(company, key, value)
        try:
            updated = await self._company_repo.update(company)
        except IntegrityError as exc:
            await self._company_repo.rollback()
            logger.warning("IntegrityError updating company %s: %s", company_id, exc)
            raise BusinessRuleViolation(
                "Company update violates a database constraint. Check all fields."
            )
        logger.info("Updated company %s (%s)", updated.id, ", ".join(sorted(changes)))
        return updated

    async def delete_company(self, user: User, company_id: UUID) -> None:
        """Remove a company with no investments, updates or check-ins recorded against it."""
        permissions.require(permissions.can_write_portfolio(user), "delete portfolio companies")
        company = await self.get_company(company_id)
        try:
            await self._company_repo.delete(company.id)
        except IntegrityError as exc:
            await self._company_repo.rollback()
            logger.warning("IntegrityError deleting company %s: %s", company_id, exc)
            raise ConflictException(
                f"Company '{company.name}' has investments, updates or check-ins "
                "and cannot be deleted"
            )
        logger.info("Deleted company %s (%s)", company_id, company.name)

    # ── Investments ──

    async def add_investment(self, user: User, invest_in: InvestmentCreate) -> Investment:
        """
        Record a fund's investment in a company.

        Validation sequence:
        1. The **fund** must exist and the caller must be allowed to modify it.
        2. The **company** must exist → :class:`CompanyNotFoundError`.
        """
        permissions.require(permissions.can_write_portfolio(user), "record investments")
        fund = await get_mutable_fund(
            self._fund_repo, user, invest_in.fund_id, "record investments"
        )
        company = await self.get_company(invest_in.company_id)

        investment = Investment(
            **invest_in.model_dump(exclude={"amount", "valuation"}),
            amount=accounting.quantize_money(invest_in.amount),
            valuation=accounting.quantize_money(invest_in.valuation),
        )
        # IntegrityError covers the fund or company disappearing between the
        # existence checks and the INSERT.
        try:
            created = await self._invest_repo.create(investment)
        except IntegrityError as exc:
            await self._invest_repo.rollback()
            logger.warning(
                "IntegrityError creating investment (fund=%s, company=%s): %s",
                fund.id,
                company.id,
                exc,
            )
            raise BusinessRuleViolation(
                "Investment could not be created; a referenced fund or company "
                "may have been removed, or a database constraint was violated."
            )
        logger.info(
            "Recorded investment %s: fund %s → %s, %s %s (%s)",
            created.id,
            fund.id,
            company.name,
            created.amount,
            created.currency,
            created.round,
            extra={"fund_id": str(fund.id)},
        )
        return created

    async def list_investments(
        self,
        company_id: Optional[UUID] = None,
        fund_id: Optional[UUID] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Investment]:
        """Investments, newest first, optionally for one company and/or fund."""
        return await self._invest_repo.list_investments(
            company_id=company_id, fund_id=fund_id, skip=skip, limit=limit
        )

    async def get_total_invested(self, company_id: Optional[UUID] = None) -> Dict[str, Decimal]:
        """
        Total invested per currency, across all companies or for one.

        Currencies are never netted against each other.
        """
        if company_id is not None:
            await self.get_company(company_id)
        return await self._invest_repo.total_by_currency(company_id)

    async def get_ownership(self, company_id: UUID) -> Decimal:
        """Sum of per-round ownership percentages (no dilution modelling)."""
        await self.get_company(company_id)
        return await self._invest_repo.ownership_sum(company_id)
