"""
Shared pytest fixtures for the test suite.

Unit tests run against mocked repositories; the scenario tests use a fresh
in-memory SQLite database per test (``db_session``).  Either way no external
database or network I/O is needed.
"""

import os

# Settings are validated at import time; select SQLite before anything from
# ``backoffice`` is imported.
os.environ.setdefault("USE_SQLITE", "true")

import uuid  # noqa: E402
from datetime import date, datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Optional  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from backoffice.models.capital_call import (  # noqa: E402
    CapitalCall,
    CapitalCallResponse,
    CapitalCallStatus,
    ResponseStatus,
)
from backoffice.models.company import CompanyStage, PortfolioCompany  # noqa: E402
from backoffice.models.fund import Fund, FundStatus  # noqa: E402
from backoffice.models.limited_partner import LimitedPartner, LPType  # noqa: E402
from backoffice.models.user import User, UserRole  # noqa: E402

# ────────────────────────────────────────────────────────────────────────────
# Factory helpers: create domain objects with sensible defaults
# ────────────────────────────────────────────────────────────────────────────

FUND_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
LP_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")
CALL_ID = uuid.UUID("33333333-3333-3333-3333-333333333333")
COMPANY_ID = uuid.UUID("44444444-4444-4444-4444-444444444444")
ADMIN_ID = uuid.UUID("aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa")
MANAGER_ID = uuid.UUID("bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb")


def make_user(
    *,
    role: UserRole = UserRole.SUPER_ADMIN,
    id: Optional[uuid.UUID] = None,
    email: Optional[str] = None,
    name: str = "Test User",
) -> User:
    """Create a User with the given role (fresh id unless one is passed)."""
    user_id = id or uuid.uuid4()
    return User(
        id=user_id,
        name=name,
        email=email or f"{role.value.lower()}-{user_id.hex[:8]}@example.com",
        role=role,
    )


def make_fund(
    *,
    id: uuid.UUID = FUND_ID,
    name: str = "Test Fund I",
    owner_id: uuid.UUID = MANAGER_ID,
    vintage_year: int = 2024,
    target_size: Decimal = Decimal("100000000.00"),
    currency: str = "USD",
    status: FundStatus = FundStatus.RAISING,
) -> Fund:
    """Create a Fund domain object with sensible test defaults."""
    return Fund(
        id=id,
        name=name,
        owner_id=owner_id,
        vintage_year=vintage_year,
        target_size=target_size,
        currency=currency,
        status=status,
        created_at=datetime.now(timezone.utc),
    )


def make_lp(
    *,
    id: uuid.UUID = LP_ID,
    fund_id: uuid.UUID = FUND_ID,
    name: str = "Test LP",
    commitment: Decimal = Decimal("10000000.00"),
    lp_type: LPType = LPType.INSTITUTION,
    email: Optional[str] = "lp@example.com",
) -> LimitedPartner:
    """Create a LimitedPartner domain object with sensible test defaults."""
    return LimitedPartner(
        id=id,
        fund_id=fund_id,
        name=name,
        commitment=commitment,
        lp_type=lp_type,
        email=email,
        created_at=datetime.now(timezone.utc),
    )


def make_call(
    *,
    id: uuid.UUID = CALL_ID,
    fund_id: uuid.UUID = FUND_ID,
    amount: Decimal = Decimal("1100000.00"),
    percentage: Decimal = Decimal("10.000000"),
    call_date: date = date(2024, 3, 1),
    due_date: date = date(2024, 3, 31),
    status: CapitalCallStatus = CapitalCallStatus.PENDING,
) -> CapitalCall:
    """Create a CapitalCall without responses; attach them with :func:`make_response`."""
    return CapitalCall(
        id=id,
        fund_id=fund_id,
        amount=amount,
        percentage=percentage,
        call_date=call_date,
        due_date=due_date,
        status=status,
        created_at=datetime.now(timezone.utc),
    )


def make_response(
    call: CapitalCall,
    lp: LimitedPartner,
    *,
    expected_amount: Optional[Decimal] = None,
    amount_paid: Decimal = Decimal("0"),
    date_paid: Optional[date] = None,
    status: ResponseStatus = ResponseStatus.PENDING,
) -> CapitalCallResponse:
    """
    Create a response linking ``lp`` to ``call`` and append it to ``call.responses``.

    ``expected_amount`` defaults to the LP's commitment times the call percentage.
    """
    if expected_amount is None:
        expected_amount = (lp.commitment * call.percentage / 100).quantize(Decimal("0.01"))
    response = CapitalCallResponse(
        capital_call_id=call.id,
        lp_id=lp.id,
        expected_amount=expected_amount,
        amount_paid=amount_paid,
        date_paid=date_paid,
        status=status,
    )
    response.limited_partner = lp
    call.responses.append(response)
    return response


def make_company(
    *,
    id: uuid.UUID = COMPANY_ID,
    name: str = "Acme Robotics",
    sector: str = "Robotics",
    stage: CompanyStage = CompanyStage.SERIES_A,
) -> PortfolioCompany:
    return PortfolioCompany(
        id=id,
        name=name,
        sector=sector,
        stage=stage,
        founded=date(2019, 5, 1),
        created_at=datetime.now(timezone.utc),
    )


# ────────────────────────────────────────────────────────────────────────────
# Pytest fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def admin():
    return make_user(role=UserRole.SUPER_ADMIN, id=ADMIN_ID)


@pytest.fixture()
def manager():
    """The FUND_MANAGER who owns the default test fund."""
    return make_user(role=UserRole.FUND_MANAGER, id=MANAGER_ID)


@pytest.fixture()
def analyst():
    return make_user(role=UserRole.ANALYST)


@pytest.fixture()
def plain_user():
    return make_user(role=UserRole.USER)


@pytest.fixture()
def fund_repo():
    """Mocked FundRepository."""
    repo = AsyncMock()
    repo.db = AsyncMock()
    return repo


@pytest_asyncio.fixture()
async def db_session():
    """
    A session on a private in-memory SQLite database with every table created.

    Each test gets its own engine, so nothing leaks between tests.
    """
    from backoffice.db.base import create_tables
    from backoffice.db.session import build_engine, build_sessionmaker

    engine = build_engine("sqlite+aiosqlite://", echo=False)
    await create_tables(engine)
    session_factory = build_sessionmaker(engine)
    async with session_factory() as session:
        yield session
    await engine.dispose()
