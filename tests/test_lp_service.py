"""
Unit tests for LimitedPartnerService.

All repository calls are mocked.  Tests cover:
- list_lps: per-fund and cross-fund listing permissions
- create_lp: email normalisation, commitment quantisation, permissions
- update_lp: commitment frozen once the LP has been called
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError

from backoffice.core.exceptions import (
    BusinessRuleViolation,
    NotFoundException,
    PermissionDeniedError,
)
from backoffice.models.limited_partner import LPType
from backoffice.schemas.limited_partner import LimitedPartnerCreate, LimitedPartnerUpdate
from backoffice.services.lp_service import LimitedPartnerService

from .conftest import FUND_ID, LP_ID, make_fund, make_lp

# ────────────────────────────────────────────────────────────────────────────
# Fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def lp_repo():
    return AsyncMock()


@pytest.fixture()
def lp_service(lp_repo, fund_repo):
    fund_repo.get.return_value = make_fund()
    return LimitedPartnerService(lp_repo, fund_repo)


# ────────────────────────────────────────────────────────────────────────────
# list_lps / get_lp
# ────────────────────────────────────────────────────────────────────────────


class TestListLps:
    @pytest.mark.asyncio
    async def test_lists_for_fund(self, lp_service, lp_repo, analyst):
        lp_repo.list_lps.return_value = [make_lp()]

        result = await lp_service.list_lps(analyst, FUND_ID, lp_type=LPType.INSTITUTION)

        lp_repo.list_lps.assert_awaited_once_with(
            fund_id=FUND_ID, lp_type=LPType.INSTITUTION, skip=0, limit=100
        )
        assert len(result) == 1

    @pytest.mark.asyncio
    async def test_cross_fund_needs_read_all_role(self, lp_service, lp_repo, plain_user):
        with pytest.raises(PermissionDeniedError):
            await lp_service.list_lps(plain_user)
        lp_repo.list_lps.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_missing_lp(self, lp_service, lp_repo, admin):
        lp_repo.get.return_value = None

        with pytest.raises(NotFoundException) as exc_info:
            await lp_service.get_lp(admin, LP_ID)
        assert exc_info.value.resource == "LimitedPartner"


# ────────────────────────────────────────────────────────────────────────────
# create_lp
# ────────────────────────────────────────────────────────────────────────────


class TestCreateLp:
    @pytest.mark.asyncio
    async def test_normalises_email_and_commitment(self, lp_service, lp_repo, manager):
        lp_repo.create.side_effect = lambda lp: lp
        lp_in = LimitedPartnerCreate(
            name="  Harbor Pension Plan ",
            email="Treasury@Harbor.EXAMPLE.com",
            commitment=Decimal("2500000.005"),
            lp_type=LPType.INSTITUTION,
        )

        lp = await lp_service.create_lp(manager, FUND_ID, lp_in)

        assert lp.name == "Harbor Pension Plan"
        assert lp.email == "treasury@harbor.example.com"
        assert lp.commitment == Decimal("2500000.01")
        assert lp.fund_id == FUND_ID

    @pytest.mark.asyncio
    async def test_analyst_cannot_add(self, lp_service, lp_repo, analyst):
        lp_in = LimitedPartnerCreate(name="LP", commitment=Decimal("100"))

        with pytest.raises(PermissionDeniedError):
            await lp_service.create_lp(analyst, FUND_ID, lp_in)
        lp_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_fund(self, lp_service, fund_repo, admin):
        fund_repo.get.return_value = None
        lp_in = LimitedPartnerCreate(name="LP", commitment=Decimal("100"))

        with pytest.raises(NotFoundException):
            await lp_service.create_lp(admin, FUND_ID, lp_in)

    @pytest.mark.asyncio
    async def test_integrity_error(self, lp_service, lp_repo, admin):
        lp_repo.create.side_effect = IntegrityError("INSERT", {}, Exception("check"))
        lp_in = LimitedPartnerCreate(name="LP", commitment=Decimal("100"))

        with pytest.raises(BusinessRuleViolation):
            await lp_service.create_lp(admin, FUND_ID, lp_in)
        lp_repo.rollback.assert_awaited_once()


# ────────────────────────────────────────────────────────────────────────────
# update_lp
# ────────────────────────────────────────────────────────────────────────────


class TestUpdateLp:
    @pytest.mark.asyncio
    async def test_commitment_frozen_after_call(self, lp_service, lp_repo, admin):
        lp_repo.get.return_value = make_lp()
        lp_repo.response_count.return_value = 1

        with pytest.raises(BusinessRuleViolation) as exc_info:
            await lp_service.update_lp(
                admin, LP_ID, LimitedPartnerUpdate(commitment=Decimal("20000000"))
            )
        assert "frozen" in exc_info.value.message
        lp_repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_same_commitment_is_not_a_change(self, lp_service, lp_repo, admin):
        lp_repo.get.return_value = make_lp()
        lp_repo.response_count.return_value = 3
        lp_repo.update.side_effect = lambda lp: lp

        lp = await lp_service.update_lp(
            admin, LP_ID, LimitedPartnerUpdate(commitment=Decimal("10000000"))
        )

        assert lp.commitment == Decimal("10000000.00")
        lp_repo.response_count.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_commitment_changes_before_any_call(self, lp_service, lp_repo, admin):
        lp_repo.get.return_value = make_lp()
        lp_repo.response_count.return_value = 0
        lp_repo.update.side_effect = lambda lp: lp

        lp = await lp_service.update_lp(
            admin, LP_ID, LimitedPartnerUpdate(commitment=Decimal("12000000"))
        )

        assert lp.commitment == Decimal("12000000.00")

    @pytest.mark.asyncio
    async def test_contact_fields_update_freely(self, lp_service, lp_repo, manager):
        lp_repo.get.return_value = make_lp()
        lp_repo.update.side_effect = lambda lp: lp

        lp = await lp_service.update_lp(
            manager, LP_ID, LimitedPartnerUpdate(email="New@Example.com", phone="+1 555 0100")
        )

        assert lp.email == "new@example.com"
        assert lp.phone == "+1 555 0100"
        lp_repo.response_count.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_commitment_cannot_be_cleared(self, lp_service, lp_repo, admin):
        lp_repo.get.return_value = make_lp()

        with pytest.raises(BusinessRuleViolation):
            await lp_service.update_lp(admin, LP_ID, LimitedPartnerUpdate(commitment=None))
