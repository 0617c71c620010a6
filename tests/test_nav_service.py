"""
Unit tests for NAVService.

All repository calls are mocked.  Tests cover:
- input coercion helpers (dates, ranges, company ids, currencies)
- calculate_nav: exact totals, empty holdings, rejected inputs, permissions
- latest / historical queries
- get_company_valuation: newest holding, never valued, owner-scoped search
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from backoffice.core.exceptions import (
    InvalidCompanyIdError,
    InvalidCurrencyError,
    InvalidDateError,
    NotFoundException,
    PermissionDeniedError,
    ValidationException,
)
from backoffice.models.nav import NAVCalculation, NAVHolding, ValuationMethod
from backoffice.schemas.nav import HoldingInput
from backoffice.services import nav_service as nav_module
from backoffice.services.nav_service import NAVService

from .conftest import COMPANY_ID, FUND_ID, make_fund

# ────────────────────────────────────────────────────────────────────────────
# Fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def nav_repo():
    return AsyncMock()


@pytest.fixture()
def service(nav_repo, fund_repo):
    fund_repo.get.return_value = make_fund()
    return NAVService(nav_repo, fund_repo)


def _calculation(calc_date: date, total: str = "100.00") -> NAVCalculation:
    return NAVCalculation(
        fund_id=FUND_ID, calculation_date=calc_date, total_value=Decimal(total), currency="USD"
    )


def _stored(nav_repo):
    """Make ``get_with_holdings`` return the calculation passed to ``create_many``."""

    async def _get(calculation_id):
        return nav_repo.create_many.call_args.args[0][0]

    nav_repo.get_with_holdings.side_effect = _get


# ────────────────────────────────────────────────────────────────────────────
# Coercion helpers
# ────────────────────────────────────────────────────────────────────────────


class TestCoercion:
    def test_date_from_iso_string(self):
        assert nav_module.coerce_date("2024-06-30", "d") == date(2024, 6, 30)

    def test_bad_date(self):
        with pytest.raises(InvalidDateError) as exc_info:
            nav_module.coerce_date("30/06/2024", "calculation_date")
        assert exc_info.value.field == "calculation_date"

    def test_inverted_range(self):
        with pytest.raises(InvalidDateError):
            nav_module.coerce_date_range("2024-12-31", "2024-01-01")

    def test_open_range(self):
        assert nav_module.coerce_date_range(None, "2024-01-01") == (None, date(2024, 1, 1))

    def test_company_id_from_string(self):
        assert nav_module.coerce_company_id(str(COMPANY_ID)) == COMPANY_ID

    def test_bad_company_id(self):
        with pytest.raises(InvalidCompanyIdError):
            nav_module.coerce_company_id("acme")

    def test_currency_defaults_and_upper_cases(self):
        assert nav_module.coerce_currency(None) == "USD"
        assert nav_module.coerce_currency(" eur ") == "EUR"

    def test_unknown_currency(self):
        with pytest.raises(InvalidCurrencyError):
            nav_module.coerce_currency("XYZ")


# ────────────────────────────────────────────────────────────────────────────
# calculate_nav
# ────────────────────────────────────────────────────────────────────────────


class TestCalculateNav:
    @pytest.mark.asyncio
    async def test_total_is_exact_sum(self, service, nav_repo, admin):
        _stored(nav_repo)
        holdings = [
            HoldingInput(company_id=COMPANY_ID, value=Decimal("0.10")),
            HoldingInput(
                company_id=uuid4(), value=Decimal("0.20"), method=ValuationMethod.DCF
            ),
        ]

        calculation = await service.calculate_nav(admin, FUND_ID, "2024-06-30", holdings)

        assert calculation.total_value == Decimal("0.30")
        assert calculation.calculation_date == date(2024, 6, 30)
        assert calculation.currency == "USD"
        rows = nav_repo.create_many.call_args.args[0][1:]
        assert all(isinstance(r, NAVHolding) for r in rows)
        assert [r.method for r in rows] == [ValuationMethod.LAST_ROUND, ValuationMethod.DCF]

    @pytest.mark.asyncio
    async def test_no_holdings_totals_zero(self, service, nav_repo, manager):
        _stored(nav_repo)

        calculation = await service.calculate_nav(manager, FUND_ID, date(2024, 6, 30), [])

        assert calculation.total_value == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_total_matches_rounded_holdings(self, service, nav_repo, admin):
        _stored(nav_repo)
        holdings = [
            HoldingInput(company_id=COMPANY_ID, value=Decimal("0.005")),
            HoldingInput(company_id=uuid4(), value=Decimal("0.005")),
        ]

        calculation = await service.calculate_nav(admin, FUND_ID, "2024-06-30", holdings)

        rows = nav_repo.create_many.call_args.args[0][1:]
        assert [r.value for r in rows] == [Decimal("0.01"), Decimal("0.01")]
        assert calculation.total_value == Decimal("0.02")

    @pytest.mark.asyncio
    async def test_negative_holding_rejected(self, service, nav_repo, admin):
        bad = HoldingInput.model_construct(
            company_id=COMPANY_ID,
            value=Decimal("-1"),
            method=ValuationMethod.LAST_ROUND,
            notes=None,
        )

        with pytest.raises(ValidationException) as exc_info:
            await service.calculate_nav(admin, FUND_ID, "2024-06-30", [bad])
        assert exc_info.value.field == "holdings[0].value"
        nav_repo.create_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bad_date_rejected(self, service, nav_repo, admin):
        with pytest.raises(InvalidDateError):
            await service.calculate_nav(admin, FUND_ID, "June 30", [])
        nav_repo.create_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_currency_rejected(self, service, admin):
        with pytest.raises(InvalidCurrencyError):
            await service.calculate_nav(admin, FUND_ID, "2024-06-30", [], currency="ABC")

    @pytest.mark.asyncio
    async def test_analyst_cannot_calculate(self, service, analyst):
        with pytest.raises(PermissionDeniedError):
            await service.calculate_nav(analyst, FUND_ID, "2024-06-30", [])


# ────────────────────────────────────────────────────────────────────────────
# Queries
# ────────────────────────────────────────────────────────────────────────────


class TestQueries:
    @pytest.mark.asyncio
    async def test_latest_is_first_of_newest_first_list(self, service, nav_repo, analyst):
        newest = _calculation(date(2024, 6, 30))
        nav_repo.list_for_fund.return_value = [newest, _calculation(date(2024, 3, 31))]

        assert await service.get_latest_nav(analyst, FUND_ID) is newest

    @pytest.mark.asyncio
    async def test_latest_without_history(self, service, nav_repo, analyst):
        nav_repo.list_for_fund.return_value = []

        assert await service.get_latest_nav(analyst, FUND_ID) is None

    @pytest.mark.asyncio
    async def test_history_passes_coerced_range(self, service, nav_repo, analyst):
        nav_repo.list_for_fund.return_value = []

        await service.get_historical_nav(analyst, FUND_ID, "2024-01-01", "2024-12-31")

        nav_repo.list_for_fund.assert_awaited_once_with(
            FUND_ID, start=date(2024, 1, 1), end=date(2024, 12, 31)
        )

    @pytest.mark.asyncio
    async def test_missing_calculation(self, service, nav_repo, admin):
        nav_repo.get_with_holdings.return_value = None

        with pytest.raises(NotFoundException):
            await service.get_calculation(admin, uuid4())


class TestCompanyValuation:
    @pytest.mark.asyncio
    async def test_returns_newest_holding(self, service, nav_repo, analyst):
        calculation = _calculation(date(2024, 6, 30), "900000.00")
        holding = NAVHolding(
            calculation_id=calculation.id,
            company_id=COMPANY_ID,
            value=Decimal("900000.00"),
            method=ValuationMethod.LAST_ROUND,
        )
        nav_repo.latest_holding_for_company.return_value = (holding, calculation)

        valuation = await service.get_company_valuation(analyst, str(COMPANY_ID), "2024-12-31")

        nav_repo.latest_holding_for_company.assert_awaited_once_with(
            COMPANY_ID, date(2024, 12, 31), owner_id=None
        )
        assert valuation.value == Decimal("900000.00")
        assert valuation.calculation_id == calculation.id
        assert valuation.calculation_date == date(2024, 6, 30)

    @pytest.mark.asyncio
    async def test_never_valued(self, service, nav_repo, analyst):
        nav_repo.latest_holding_for_company.return_value = None

        assert await service.get_company_valuation(analyst, COMPANY_ID) is None

    @pytest.mark.asyncio
    async def test_user_only_searches_own_funds(self, service, nav_repo, plain_user):
        nav_repo.latest_holding_for_company.return_value = None

        assert await service.get_company_valuation(plain_user, COMPANY_ID) is None
        nav_repo.latest_holding_for_company.assert_awaited_once_with(
            COMPANY_ID, None, owner_id=plain_user.id
        )
