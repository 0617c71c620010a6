"""
Seed script: populates the database with sample data for development / demo.

Usage:
    backoffice db seed

Or run directly when the database is accessible:
    python -m backoffice.seed

The script is idempotent: it does nothing if any user already exists.
Users are inserted directly; everything else goes through the services as
the seeded super admin, so the sample data obeys the same rules as real data.
"""

import asyncio
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.db.base import create_tables
from backoffice.db.session import AsyncSessionLocal, engine
from backoffice.models.capital_call import CapitalCall
from backoffice.models.check_in import CheckIn
from backoffice.models.company import CompanyStage, PortfolioCompany
from backoffice.models.fund import Fund, FundStatus
from backoffice.models.investment import Investment, InvestmentType
from backoffice.models.limited_partner import LimitedPartner, LPType
from backoffice.models.nav import NAVCalculation, ValuationMethod
from backoffice.models.task import Task, TaskPriority
from backoffice.models.update import CompanyUpdate, UpdateType
from backoffice.models.user import User, UserRole
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
from backoffice.schemas.capital_call import CapitalCallCreate, PaymentCreate
from backoffice.schemas.check_in import CheckInCreate
from backoffice.schemas.company import CompanyCreate
from backoffice.schemas.fund import FundCreate
from backoffice.schemas.investment import InvestmentCreate
from backoffice.schemas.limited_partner import LimitedPartnerCreate
from backoffice.schemas.nav import HoldingInput
from backoffice.schemas.task import TaskCreate
from backoffice.schemas.update import MetricInput, UpdateCreate
from backoffice.services.capital_call_service import CapitalCallService
from backoffice.services.check_in_service import CheckInService
from backoffice.services.fund_service import FundService
from backoffice.services.lp_service import LimitedPartnerService
from backoffice.services.nav_service import NAVService
from backoffice.services.portfolio_service import PortfolioService
from backoffice.services.task_service import TaskService
from backoffice.services.update_service import UpdateService

logger = logging.getLogger(__name__)

# ── Sample data ──

USERS = [
    ("Ada Admin", "admin@example.com", UserRole.SUPER_ADMIN),
    ("Morgan Manager", "manager@example.com", UserRole.FUND_MANAGER),
    ("Avery Analyst", "analyst@example.com", UserRole.ANALYST),
    ("Riley Reader", "readonly@example.com", UserRole.READ_ONLY),
    ("Uma User", "user@example.com", UserRole.USER),
]

FUND = FundCreate(
    name="Example Ventures Fund I",
    description="Early-stage software fund",
    vintage_year=2024,
    target_size=Decimal("50000000.00"),
    currency="USD",
    status=FundStatus.INVESTING,
)

LPS = [
    LimitedPartnerCreate(
        name="Harbor Pension Plan",
        email="ir@harborpension.example.com",
        lp_type=LPType.INSTITUTION,
        commitment=Decimal("10000000.00"),
    ),
    LimitedPartnerCreate(
        name="Jordan Family Office",
        email="office@jordanfamily.example.com",
        lp_type=LPType.FAMILY_OFFICE,
        commitment=Decimal("1000000.00"),
    ),
]

COMPANIES = [
    CompanyCreate(
        name="Acme Robotics",
        description="Warehouse automation",
        sector="Robotics",
        stage=CompanyStage.SERIES_A,
        founded=date(2019, 5, 1),
        website="https://acme-robotics.example.com",
    ),
    CompanyCreate(
        name="Brightline Health",
        description="Clinical scheduling software",
        sector="Healthcare",
        stage=CompanyStage.SEED,
        founded=date(2021, 2, 15),
    ),
]


async def seed_data(session: AsyncSession) -> bool:
    """Insert the sample data.  Returns ``False`` if the database already had users."""
    user_repo = UserRepository(User, session)
    if await user_repo.count():
        logger.info("Database already contains users; skipping seed")
        return False

    users = {}
    for name, email, role in USERS:
        users[role] = await user_repo.create(User(name=name, email=email.lower(), role=role))
    admin = users[UserRole.SUPER_ADMIN]

    fund_repo = FundRepository(Fund, session)
    lp_repo = LimitedPartnerRepository(LimitedPartner, session)
    company_repo = CompanyRepository(PortfolioCompany, session)

    fund = await FundService(fund_repo).create_fund(
        admin, FUND.model_copy(update={"owner_id": users[UserRole.FUND_MANAGER].id})
    )

    lp_service = LimitedPartnerService(lp_repo, fund_repo)
    lps = [await lp_service.create_lp(admin, fund.id, lp_in) for lp_in in LPS]

    call_service = CapitalCallService(
        CapitalCallRepository(CapitalCall, session), fund_repo, lp_repo
    )
    call = await call_service.create_capital_call(
        admin,
        fund.id,
        CapitalCallCreate(
            amount=Decimal("1100000.00"),
            call_date=date(2024, 3, 1),
            due_date=date(2024, 3, 31),
            description="Initial drawdown",
        ),
    )
    await call_service.record_payment(
        admin,
        call.id,
        PaymentCreate(
            lp_id=lps[0].id, amount_paid=Decimal("500000.00"), date_paid=date(2024, 3, 20)
        ),
    )

    portfolio = PortfolioService(
        company_repo, InvestmentRepository(Investment, session), fund_repo
    )
    companies = [await portfolio.add_company(admin, company_in) for company_in in COMPANIES]
    await portfolio.add_investment(
        admin,
        InvestmentCreate(
            fund_id=fund.id,
            company_id=companies[0].id,
            amount=Decimal("750000.00"),
            currency="USD",
            investment_date=date(2024, 4, 2),
            round="Series A",
            valuation=Decimal("15000000.00"),
            ownership=Decimal("5"),
            investment_type=InvestmentType.PRIMARY,
        ),
    )

    await NAVService(NAVRepository(NAVCalculation, session), fund_repo).calculate_nav(
        admin,
        fund.id,
        date(2024, 6, 30),
        [
            HoldingInput(
                company_id=companies[0].id,
                value=Decimal("900000.00"),
                method=ValuationMethod.LAST_ROUND,
            )
        ],
    )

    await UpdateService(UpdateRepository(CompanyUpdate, session), company_repo).create_update(
        admin,
        companies[0].id,
        UpdateCreate(
            update_date=date(2024, 6, 30),
            update_type=UpdateType.QUARTERLY,
            notes="Q2 board pack",
            metrics=[
                MetricInput(name="ARR", value=Decimal("2400000")),
                MetricInput(name="Headcount", value=Decimal("38")),
                MetricInput(name="Runway", value="18 months"),
            ],
        ),
    )

    task_repo = TaskRepository(Task, session)
    await CheckInService(
        CheckInRepository(CheckIn, session),
        company_repo,
        task_repo,
        InvestmentRepository(Investment, session),
    ).create_check_in(
        admin,
        companies[0].id,
        CheckInCreate(
            check_in_date=date(2024, 7, 8),
            revenue=Decimal("200000.00"),
            burn=Decimal("260000.00"),
            runway=18,
            headcount=38,
            notes="Hiring two enterprise AEs; pipeline looks strong",
        ),
    )
    await TaskService(task_repo, company_repo, user_repo).create_task(
        admin,
        TaskCreate(
            description="Review Q2 board pack",
            due_date=date(2024, 7, 15),
            priority=TaskPriority.HIGH,
            company_id=companies[0].id,
            assigned_to_id=users[UserRole.ANALYST].id,
        ),
    )

    logger.info(
        "Seeded %d users, fund '%s', %d LPs, 1 capital call, %d companies, a check-in and a task",
        len(users),
        fund.name,
        len(lps),
        len(companies),
    )
    return True


async def seed() -> bool:
    """Create tables and insert sample data if the database is empty."""
    await create_tables(engine)
    try:
        async with AsyncSessionLocal() as session:
            return await seed_data(session)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    from backoffice.core.logging import setup_logging

    setup_logging(to_files=False)
    asyncio.run(seed())
