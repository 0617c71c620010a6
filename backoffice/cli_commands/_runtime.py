"""
Plumbing shared by the CLI commands.

Each command runs one unit of work: open a session, resolve the logged-in
user from the stored CLI identity, call a service, render the result.
Domain errors are printed in red and exit with status 1.
"""

import asyncio
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Optional, TypeVar
from uuid import UUID

import typer
from pydantic import ValidationError
from rich.console import Console
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.exceptions import AppException, AuthenticationError
from backoffice.core.security import EmailAuthenticator, load_cli_identity
from backoffice.db.session import AsyncSessionLocal, engine
from backoffice.models.capital_call import CapitalCall
from backoffice.models.check_in import CheckIn
from backoffice.models.company import PortfolioCompany
from backoffice.models.fund import Fund
from backoffice.models.investment import Investment
from backoffice.models.limited_partner import LimitedPartner
from backoffice.models.nav import NAVCalculation
from backoffice.models.task import Task
from backoffice.models.update import CompanyUpdate
from backoffice.models.user import User
from backoffice.repositories.capital_call_repo import CapitalCallRepository
from backoffice.repositories.check_in_repo import CheckInRepository
from backoffice.repositories.company_repo import CompanyRepository
from backoffice.repositories.fund_repo import FundRepository
from backoffice.repositories.investment_repo import InvestmentRepository
from backoffice.repositories.lp_repo import LimitedPartnerRepository
from backoffice.repositories.nav_repo import NAVRepository
from backoffice.repositories.task_repo import TaskRepository
from backoffice.repositories.update_repo import UpdateRepository
from backoffice.repositories.user_repo import UserRepository
from backoffice.services.capital_call_service import CapitalCallService
from backoffice.services.check_in_service import CheckInService
from backoffice.services.fund_service import FundService
from backoffice.services.lp_service import LimitedPartnerService
from backoffice.services.nav_service import NAVService
from backoffice.services.portfolio_service import PortfolioService
from backoffice.services.task_service import TaskService
from backoffice.services.update_service import UpdateService

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)


# ── Service wiring (one session per command) ──


def fund_service(db: AsyncSession) -> FundService:
    return FundService(FundRepository(Fund, db))


def lp_service(db: AsyncSession) -> LimitedPartnerService:
    return LimitedPartnerService(
        LimitedPartnerRepository(LimitedPartner, db), FundRepository(Fund, db)
    )


def capital_call_service(db: AsyncSession) -> CapitalCallService:
    return CapitalCallService(
        CapitalCallRepository(CapitalCall, db),
        FundRepository(Fund, db),
        LimitedPartnerRepository(LimitedPartner, db),
    )


def nav_service(db: AsyncSession) -> NAVService:
    return NAVService(NAVRepository(NAVCalculation, db), FundRepository(Fund, db))


def portfolio_service(db: AsyncSession) -> PortfolioService:
    return PortfolioService(
        CompanyRepository(PortfolioCompany, db),
        InvestmentRepository(Investment, db),
        FundRepository(Fund, db),
    )


def update_service(db: AsyncSession) -> UpdateService:
    return UpdateService(
        UpdateRepository(CompanyUpdate, db), CompanyRepository(PortfolioCompany, db)
    )


def check_in_service(db: AsyncSession) -> CheckInService:
    return CheckInService(
        CheckInRepository(CheckIn, db),
        CompanyRepository(PortfolioCompany, db),
        TaskRepository(Task, db),
        InvestmentRepository(Investment, db),
    )


def task_service(db: AsyncSession) -> TaskService:
    return TaskService(
        TaskRepository(Task, db),
        CompanyRepository(PortfolioCompany, db),
        UserRepository(User, db),
    )


# ── Execution ──


async def current_user(db: AsyncSession) -> User:
    email = load_cli_identity()
    if not email:
        raise AuthenticationError("Not logged in. Run `backoffice auth login <email>` first.")
    return await EmailAuthenticator(UserRepository(User, db)).authenticate(email)


def fail(message: str) -> None:
    err_console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


def _run(main: Callable[[], Awaitable[T]]) -> T:
    async def _wrapped() -> T:
        try:
            return await main()
        finally:
            await engine.dispose()

    try:
        return asyncio.run(_wrapped())
    except AppException as exc:
        fail(exc.message)
    except ValidationError as exc:
        fail("; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()))


def run(fn: Callable[[AsyncSession, User], Awaitable[T]]) -> T:
    """Run ``fn(session, user)`` as the logged-in user."""

    async def main() -> T:
        async with AsyncSessionLocal() as session:
            return await fn(session, await current_user(session))

    return _run(main)


def run_anonymous(fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
    """Run ``fn(session)`` without requiring a login (bootstrap commands)."""

    async def main() -> T:
        async with AsyncSessionLocal() as session:
            return await fn(session)

    return _run(main)


# ── Argument parsing / formatting ──


def parse_uuid(value: str, name: str) -> UUID:
    try:
        return UUID(value.strip())
    except ValueError:
        raise typer.BadParameter(f"{name} must be a UUID, got '{value}'")


def as_uuid(value: str) -> Optional[UUID]:
    """``UUID`` if ``value`` parses as one, else ``None`` (treat it as a name)."""
    try:
        return UUID(value.strip())
    except ValueError:
        return None


def parse_decimal(value: str, name: str) -> Decimal:
    try:
        return Decimal(value.strip().replace(",", "").replace("$", ""))
    except InvalidOperation:
        raise typer.BadParameter(f"{name} must be a number, got '{value}'")


def money(value: Any) -> str:
    if value is None:
        return "-"
    return f"{Decimal(value):,.2f}"


async def resolve_fund(db: AsyncSession, user: User, ref: str) -> Fund:
    """A fund by id, or by exact name when ``ref`` is not a UUID."""
    service = fund_service(db)
    fund_id = as_uuid(ref)
    if fund_id is not None:
        return await service.get_fund(user, fund_id)
    return await service.get_fund_by_name(user, ref)
