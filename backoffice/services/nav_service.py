"""
NAV service.

A NAV calculation values each holding of a fund on a date and stores the
exact ``Decimal`` total.  Calculations are append-only: recalculating a date
adds a new snapshot and "latest" means the newest date, then the most
recently created.

Dates, currencies and company ids may arrive as strings (CLI arguments,
query parameters); they are coerced here so every entry point rejects bad
input with the same typed error.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence, Tuple, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from backoffice.core import permissions
from backoffice.core.config import settings
from backoffice.core.exceptions import (
    BusinessRuleViolation,
    InvalidCompanyIdError,
    InvalidCurrencyError,
    InvalidDateError,
    NotFoundException,
    ValidationException,
)
from backoffice.models.nav import NAVCalculation, NAVHolding
from backoffice.models.user import User
from backoffice.repositories.fund_repo import FundRepository
from backoffice.repositories.nav_repo import NAVRepository
from backoffice.schemas.nav import CompanyValuationResponse, HoldingInput
from backoffice.services import accounting
from backoffice.services.fund_service import get_mutable_fund, get_visible_fund

logger = logging.getLogger(__name__)

DateLike = Union[date, str]


def coerce_date(value: Optional[DateLike], field: str) -> Optional[date]:
    """Accept a ``date`` or an ISO ``YYYY-MM-DD`` string; ``None`` passes through."""
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidDateError(field, value)


def coerce_date_range(
    start: Optional[DateLike], end: Optional[DateLike]
) -> Tuple[Optional[date], Optional[date]]:
    """Coerce an inclusive range; ``start`` after ``end`` is an :class:`InvalidDateError`."""
    start_date = coerce_date(start, "start_date")
    end_date = coerce_date(end, "end_date")
    if start_date and end_date and start_date > end_date:
        raise InvalidDateError("start_date", start_date, constraint="must not be after end_date")
    return start_date, end_date


def coerce_company_id(value: Union[UUID, str]) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError:
        raise InvalidCompanyIdError(value)


def coerce_currency(value: Optional[str]) -> str:
    code = (value or settings.DEFAULT_CURRENCY).strip().upper()
    if code not in settings.currency_codes:
        raise InvalidCurrencyError(value)
    return code


class NAVService:
    """Calculates, stores and queries fund NAV snapshots."""

    def __init__(self, nav_repo: NAVRepository, fund_repo: FundRepository):
        self._repo = nav_repo
        self._fund_repo = fund_repo

    # ── Commands ──

    async def calculate_nav(
        self,
        user: User,
        fund_id: UUID,
        calculation_date: DateLike,
        holdings: Sequence[HoldingInput],
        currency: Optional[str] = None,
    ) -> NAVCalculation:
        """
        Value ``holdings`` as of ``calculation_date`` and store the snapshot.

        Holding values are rounded to the cent first and ``total_value`` is the
        exact sum of the stored values; no holdings means a total of zero.
        The calculation and its holdings share one commit.
        """
        fund = await get_mutable_fund(self._fund_repo, user, fund_id, "calculate NAV")
        calc_date = coerce_date(calculation_date, "calculation_date")
        if calc_date is None:
            raise InvalidDateError("calculation_date", constraint="is required")
        code = coerce_currency(currency)

        for position, holding in enumerate(holdings):
            if holding.value < 0:
                raise ValidationException(
                    f"holdings[{position}].value", "must be non-negative", holding.value
                )

        values = [accounting.quantize_money(h.value) for h in holdings]
        calculation = NAVCalculation(
            fund_id=fund.id,
            calculation_date=calc_date,
            total_value=accounting.sum_decimal(values),
            currency=code,
        )
        rows = [
            NAVHolding(
                calculation_id=calculation.id,
                company_id=h.company_id,
                value=value,
                method=h.method,
                notes=h.notes,
            )
            for h, value in zip(holdings, values)
        ]
        try:
            await self._repo.create_many([calculation, *rows])
        except IntegrityError as exc:
            await self._repo.rollback()
            logger.warning("IntegrityError storing NAV for fund %s: %s", fund.id, exc)
            raise BusinessRuleViolation(
                "NAV calculation violates a database constraint. Check all holdings."
            )
        logger.info(
            "Calculated NAV %s for fund %s on %s: %s %s over %d holdings",
            calculation.id,
            fund.id,
            calc_date,
            calculation.total_value,
            code,
            len(rows),
            extra={"fund_id": str(fund.id)},
        )
        return await self._repo.get_with_holdings(calculation.id)

    # ── Queries ──

    async def get_calculation(self, user: User, calculation_id: UUID) -> NAVCalculation:
        calculation = await self._repo.get_with_holdings(calculation_id)
        if not calculation:
            raise NotFoundException("NAVCalculation", calculation_id)
        await get_visible_fund(self._fund_repo, user, calculation.fund_id)
        return calculation

    async def list_calculations(self, user: User, fund_id: UUID) -> List[NAVCalculation]:
        """Every calculation for the fund, newest first."""
        await get_visible_fund(self._fund_repo, user, fund_id)
        return await self._repo.list_for_fund(fund_id)

    async def get_latest_nav(self, user: User, fund_id: UUID) -> Optional[NAVCalculation]:
        calculations = await self.list_calculations(user, fund_id)
        return calculations[0] if calculations else None

    async def get_historical_nav(
        self,
        user: User,
        fund_id: UUID,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> List[NAVCalculation]:
        """Calculations dated within ``[start, end]`` (both inclusive), newest first."""
        start_date, end_date = coerce_date_range(start, end)
        await get_visible_fund(self._fund_repo, user, fund_id)
        return await self._repo.list_for_fund(fund_id, start=start_date, end=end_date)

    async def get_company_valuation(
        self,
        user: User,
        company_id: Union[UUID, str],
        as_of: Optional[DateLike] = None,
    ) -> Optional[CompanyValuationResponse]:
        """
        The company's value in the newest calculation that holds it, ignoring
        calculations dated after ``as_of``.  Only calculations of funds the
        user can see are considered; ``None`` if none of them values it.
        """
        cid = coerce_company_id(company_id)
        as_of_date = coerce_date(as_of, "as_of")
        found = await self._repo.latest_holding_for_company(
            cid, as_of_date, owner_id=permissions.visible_owner_filter(user)
        )
        if found is None:
            return None
        holding, calculation = found
        return CompanyValuationResponse(
            company_id=cid,
            value=holding.value,
            currency=calculation.currency,
            method=holding.method,
            calculation_id=calculation.id,
            calculation_date=calculation.calculation_date,
        )
