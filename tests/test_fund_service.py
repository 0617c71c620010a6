"""
Unit tests for FundService — business logic layer.

All repository calls are mocked.  Tests cover:
- get_all_funds: owner filter per role, pagination
- get_fund: found, not found, not visible
- get_summary: roll-up figures
- create_fund: success, owner assignment, permission, IntegrityError
- update_fund: success, not found, ownership, invalid status transition
- delete_fund: SUPER_ADMIN only, restricted by dependent rows
- _validate_status_transition: all valid/invalid combinations
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from backoffice.core.exceptions import (
    BusinessRuleViolation,
    ConflictException,
    NotFoundException,
    PermissionDeniedError,
)
from backoffice.models.fund import FundStatus
from backoffice.models.user import UserRole
from backoffice.schemas.fund import FundCreate, FundUpdate
from backoffice.services.fund_service import FundService, _validate_status_transition

from .conftest import FUND_ID, MANAGER_ID, make_fund, make_user

# ────────────────────────────────────────────────────────────────────────────
# Fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def fund_service(fund_repo):
    """FundService wired to the mocked repository."""
    return FundService(fund_repo)


def _fund_update(**overrides) -> FundUpdate:
    data = dict(
        name="Test Fund I",
        vintage_year=2024,
        target_size=Decimal("150000000"),
        status=FundStatus.INVESTING,
    )
    data.update(overrides)
    return FundUpdate(**data)


# ────────────────────────────────────────────────────────────────────────────
# get_all_funds
# ────────────────────────────────────────────────────────────────────────────


class TestGetAllFunds:
    """Tests for FundService.get_all_funds."""

    @pytest.mark.asyncio
    async def test_read_all_role_lists_every_fund(self, fund_service, fund_repo, analyst):
        fund_repo.list_funds.return_value = [make_fund(), make_fund(id=uuid4(), name="Fund 2")]

        result = await fund_service.get_all_funds(analyst)

        fund_repo.list_funds.assert_awaited_once_with(owner_id=None, skip=0, limit=100)
        assert len(result) == 2

    @pytest.mark.asyncio
    async def test_user_only_sees_owned_funds(self, fund_service, fund_repo, plain_user):
        fund_repo.list_funds.return_value = []

        await fund_service.get_all_funds(plain_user)

        fund_repo.list_funds.assert_awaited_once_with(owner_id=plain_user.id, skip=0, limit=100)

    @pytest.mark.asyncio
    async def test_passes_pagination(self, fund_service, fund_repo, admin):
        fund_repo.list_funds.return_value = []

        await fund_service.get_all_funds(admin, skip=10, limit=5)

        fund_repo.list_funds.assert_awaited_once_with(owner_id=None, skip=10, limit=5)


# ────────────────────────────────────────────────────────────────────────────
# get_fund / get_summary
# ────────────────────────────────────────────────────────────────────────────


class TestGetFund:
    """Tests for FundService.get_fund."""

    @pytest.mark.asyncio
    async def test_returns_fund_when_found(self, fund_service, fund_repo, admin):
        expected = make_fund()
        fund_repo.get.return_value = expected

        result = await fund_service.get_fund(admin, FUND_ID)

        assert result == expected
        fund_repo.get.assert_awaited_once_with(FUND_ID)

    @pytest.mark.asyncio
    async def test_raises_not_found_when_missing(self, fund_service, fund_repo, admin):
        fund_repo.get.return_value = None

        with pytest.raises(NotFoundException) as exc_info:
            await fund_service.get_fund(admin, FUND_ID)
        assert exc_info.value.status_code == 404
        assert "Fund" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_user_cannot_view_foreign_fund(self, fund_service, fund_repo, plain_user):
        fund_repo.get.return_value = make_fund()

        with pytest.raises(PermissionDeniedError) as exc_info:
            await fund_service.get_fund(plain_user, FUND_ID)
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_user_can_view_owned_fund(self, fund_service, fund_repo, plain_user):
        fund_repo.get.return_value = make_fund(owner_id=plain_user.id)

        result = await fund_service.get_fund(plain_user, FUND_ID)

        assert result.owner_id == plain_user.id

    @pytest.mark.asyncio
    async def test_by_name(self, fund_service, fund_repo, analyst):
        fund_repo.get_by_name.return_value = None

        with pytest.raises(NotFoundException):
            await fund_service.get_fund_by_name(analyst, "Missing Fund")


class TestGetSummary:
    @pytest.mark.asyncio
    async def test_rolls_up_figures(self, fund_service, fund_repo, analyst):
        fund_repo.get.return_value = make_fund()
        fund_repo.total_commitments.return_value = Decimal("11000000.00")
        fund_repo.invested_by_currency.return_value = {"USD": Decimal("750000.00")}
        fund_repo.lp_count.return_value = 2
        fund_repo.capital_call_count.return_value = 1

        summary = await fund_service.get_summary(analyst, FUND_ID)

        assert summary.fund.id == FUND_ID
        assert summary.total_commitments == Decimal("11000000.00")
        assert summary.total_invested == {"USD": Decimal("750000.00")}
        assert summary.lp_count == 2
        assert summary.capital_call_count == 1


# ────────────────────────────────────────────────────────────────────────────
# create_fund
# ────────────────────────────────────────────────────────────────────────────


class TestCreateFund:
    """Tests for FundService.create_fund."""

    @pytest.mark.asyncio
    async def test_caller_becomes_owner(self, fund_service, fund_repo, manager):
        fund_in = FundCreate(name="New Fund", vintage_year=2024, target_size=Decimal("1000000"))
        fund_repo.create.side_effect = lambda fund: fund

        result = await fund_service.create_fund(manager, fund_in)

        assert result.owner_id == MANAGER_ID
        assert result.status == FundStatus.RAISING
        assert result.currency == "USD"
        fund_repo.create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_super_admin_assigns_owner(self, fund_service, fund_repo, admin):
        fund_in = FundCreate(
            name="New Fund",
            vintage_year=2024,
            target_size=Decimal("1000000"),
            owner_id=MANAGER_ID,
        )
        fund_repo.create.side_effect = lambda fund: fund

        result = await fund_service.create_fund(admin, fund_in)

        assert result.owner_id == MANAGER_ID

    @pytest.mark.asyncio
    async def test_manager_cannot_assign_other_owner(self, fund_service, fund_repo, manager):
        fund_in = FundCreate(
            name="New Fund",
            vintage_year=2024,
            target_size=Decimal("1000000"),
            owner_id=uuid4(),
        )

        with pytest.raises(PermissionDeniedError):
            await fund_service.create_fund(manager, fund_in)
        fund_repo.create.assert_not_awaited()

    @pytest.mark.parametrize("role", [UserRole.ANALYST, UserRole.READ_ONLY, UserRole.USER])
    @pytest.mark.asyncio
    async def test_other_roles_cannot_create(self, fund_service, fund_repo, role):
        fund_in = FundCreate(name="Fund", vintage_year=2024, target_size=Decimal("1000"))

        with pytest.raises(PermissionDeniedError):
            await fund_service.create_fund(make_user(role=role), fund_in)

    @pytest.mark.asyncio
    async def test_integrity_error_raises_business_rule(self, fund_service, fund_repo, admin):
        fund_repo.create.side_effect = IntegrityError("INSERT", {}, Exception("constraint"))
        fund_in = FundCreate(name="Fund", vintage_year=2024, target_size=Decimal("1000"))

        with pytest.raises(BusinessRuleViolation) as exc_info:
            await fund_service.create_fund(admin, fund_in)
        assert exc_info.value.status_code == 422
        fund_repo.rollback.assert_awaited_once()


# ────────────────────────────────────────────────────────────────────────────
# update_fund
# ────────────────────────────────────────────────────────────────────────────


class TestUpdateFund:
    """Tests for FundService.update_fund."""

    @pytest.mark.asyncio
    async def test_owner_updates_fund(self, fund_service, fund_repo, manager):
        existing = make_fund(status=FundStatus.RAISING)
        fund_repo.get.return_value = existing
        fund_repo.update.side_effect = lambda fund: fund

        result = await fund_service.update_fund(manager, FUND_ID, _fund_update())

        assert result.status == FundStatus.INVESTING
        assert result.target_size == Decimal("150000000")
        fund_repo.update.assert_awaited_once_with(existing)

    @pytest.mark.asyncio
    async def test_raises_not_found(self, fund_service, fund_repo, admin):
        fund_repo.get.return_value = None

        with pytest.raises(NotFoundException):
            await fund_service.update_fund(admin, FUND_ID, _fund_update())

    @pytest.mark.asyncio
    async def test_other_manager_cannot_update(self, fund_service, fund_repo):
        fund_repo.get.return_value = make_fund()
        other = make_user(role=UserRole.FUND_MANAGER)

        with pytest.raises(PermissionDeniedError):
            await fund_service.update_fund(other, FUND_ID, _fund_update())
        fund_repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_backward_transition_rejected(self, fund_service, fund_repo, admin):
        fund_repo.get.return_value = make_fund(status=FundStatus.CLOSED)

        with pytest.raises(BusinessRuleViolation) as exc_info:
            await fund_service.update_fund(admin, FUND_ID, _fund_update(status=FundStatus.RAISING))
        assert "Invalid status transition" in exc_info.value.message
        fund_repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_integrity_error(self, fund_service, fund_repo, admin):
        fund_repo.get.return_value = make_fund()
        fund_repo.update.side_effect = IntegrityError("UPDATE", {}, Exception("constraint"))

        with pytest.raises(BusinessRuleViolation):
            await fund_service.update_fund(admin, FUND_ID, _fund_update())
        fund_repo.rollback.assert_awaited_once()


# ────────────────────────────────────────────────────────────────────────────
# delete_fund
# ────────────────────────────────────────────────────────────────────────────


class TestDeleteFund:
    @pytest.mark.asyncio
    async def test_super_admin_deletes(self, fund_service, fund_repo, admin):
        fund_repo.get.return_value = make_fund()

        await fund_service.delete_fund(admin, FUND_ID)

        fund_repo.delete.assert_awaited_once_with(FUND_ID)

    @pytest.mark.asyncio
    async def test_owner_manager_cannot_delete(self, fund_service, fund_repo, manager):
        with pytest.raises(PermissionDeniedError):
            await fund_service.delete_fund(manager, FUND_ID)
        fund_repo.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dependent_rows_conflict(self, fund_service, fund_repo, admin):
        fund_repo.get.return_value = make_fund()
        fund_repo.delete.side_effect = IntegrityError("DELETE", {}, Exception("fk"))

        with pytest.raises(ConflictException) as exc_info:
            await fund_service.delete_fund(admin, FUND_ID)
        assert exc_info.value.status_code == 409


# ────────────────────────────────────────────────────────────────────────────
# _validate_status_transition
# ────────────────────────────────────────────────────────────────────────────


_ORDER = [
    FundStatus.RAISING,
    FundStatus.INVESTING,
    FundStatus.FULLY_INVESTED,
    FundStatus.HARVESTING,
    FundStatus.CLOSED,
]


class TestValidateStatusTransition:
    @pytest.mark.parametrize(
        "current, requested",
        [(a, b) for i, a in enumerate(_ORDER) for b in _ORDER[i:]],
    )
    def test_forward_or_same_allowed(self, current, requested):
        _validate_status_transition(current, requested)

    @pytest.mark.parametrize(
        "current, requested",
        [(a, b) for i, a in enumerate(_ORDER) for b in _ORDER[:i]],
    )
    def test_backward_rejected(self, current, requested):
        with pytest.raises(BusinessRuleViolation):
            _validate_status_transition(current, requested)
