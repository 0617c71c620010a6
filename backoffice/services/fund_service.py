"""
Fund service — business logic layer for fund operations.

All business rules and validation live here; the service never exposes
repository internals to the caller.  Every method takes the acting
:class:`~backoffice.models.user.User` and checks it against
:mod:`backoffice.core.permissions` before touching data.

Raises domain-specific exceptions from ``backoffice.core.exceptions`` so the
service layer stays framework-agnostic (no direct FastAPI imports).

:func:`get_visible_fund` and :func:`get_mutable_fund` are shared with the
other services: anything hanging off a fund (LPs, calls, NAV) is authorised
through the fund it belongs to.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from backoffice.core import permissions
from backoffice.core.exceptions import (
    BusinessRuleViolation,
    ConflictException,
    NotFoundException,
    PermissionDeniedError,
)
from backoffice.models.fund import Fund, FundStatus
from backoffice.models.user import User, UserRole
from backoffice.repositories.fund_repo import FundRepository
from backoffice.schemas.fund import FundCreate, FundResponse, FundSummary, FundUpdate

logger = logging.getLogger(__name__)


async def get_visible_fund(repo: FundRepository, user: User, fund_id: UUID) -> Fund:
    """Load a fund the caller may read, or raise 404 / 403."""
    fund = await repo.get(fund_id)
    if not fund:
        raise NotFoundException("Fund", fund_id)
    permissions.require(permissions.can_view_fund(user, fund), "view", f"fund '{fund.name}'")
    return fund


async def get_mutable_fund(
    repo: FundRepository, user: User, fund_id: UUID, action: str = "modify"
) -> Fund:
    """Load a fund the caller may change, or raise 404 / 403."""
    fund = await repo.get(fund_id)
    if not fund:
        raise NotFoundException("Fund", fund_id)
    permissions.require(permissions.can_mutate_fund(user, fund), action, f"fund '{fund.name}'")
    return fund


class FundService:
    """Encapsulates CRUD + business rules for :class:`Fund`."""

    def __init__(self, fund_repo: FundRepository):
        self._repo = fund_repo

    # ── Queries ──

    async def get_all_funds(self, user: User, skip: int = 0, limit: int = 100) -> List[Fund]:
        """Funds the caller may see, ordered by name."""
        owner_id = permissions.visible_owner_filter(user)
        return await self._repo.list_funds(owner_id=owner_id, skip=skip, limit=limit)

    async def get_fund(self, user: User, fund_id: UUID) -> Fund:
        """
        Retrieve a single fund by ID.

        Raises :class:`NotFoundException` if the fund does not exist and
        :class:`PermissionDeniedError` if the caller cannot see it.
        """
        return await get_visible_fund(self._repo, user, fund_id)

    async def get_fund_by_name(self, user: User, name: str) -> Fund:
        fund = await self._repo.get_by_name(name)
        if not fund:
            raise NotFoundException("Fund", name)
        permissions.require(permissions.can_view_fund(user, fund), "view", f"fund '{fund.name}'")
        return fund

    async def get_summary(self, user: User, fund_id: UUID) -> FundSummary:
        """Commitments, invested capital per currency, LP and call counts."""
        fund = await get_visible_fund(self._repo, user, fund_id)
        return FundSummary(
            fund=FundResponse.model_validate(fund),
            total_commitments=await self._repo.total_commitments(fund.id),
            total_invested=await self._repo.invested_by_currency(fund.id),
            lp_count=await self._repo.lp_count(fund.id),
            capital_call_count=await self._repo.capital_call_count(fund.id),
        )

    # ── Commands ──

    async def create_fund(self, user: User, fund_in: FundCreate) -> Fund:
        """
        Create a new fund owned by the caller.

        Only a SUPER_ADMIN may create a fund on someone else's behalf via
        ``owner_id``.  Catches ``IntegrityError`` from DB-level CHECK / FK
        constraints and surfaces a clean 422.
        """
        permissions.require(permissions.can_create_fund(user), "create funds")
        owner_id = fund_in.owner_id or user.id
        if owner_id != user.id and user.role != UserRole.SUPER_ADMIN:
            raise PermissionDeniedError("create funds owned by another user")

        fund = Fund(**fund_in.model_dump(exclude={"owner_id"}), owner_id=owner_id)
        try:
            created = await self._repo.create(fund)
        except IntegrityError as exc:
            await self._repo.rollback()
            logger.warning("IntegrityError creating fund: %s", exc)
            raise BusinessRuleViolation(
                "Fund data violates a database constraint. Check all fields."
            )
        logger.info(
            "Created fund %s (%s) owned by %s",
            created.id,
            created.name,
            created.owner_id,
            extra={"fund_id": str(created.id)},
        )
        return created

    async def update_fund(self, user: User, fund_id: UUID, fund_update: FundUpdate) -> Fund:
        """
        Full replacement update of an existing fund (PUT semantics).

        Raises :class:`BusinessRuleViolation` for backward status transitions
        or DB constraint violations.
        """
        fund = await get_mutable_fund(self._repo, user, fund_id)

        _validate_status_transition(fund.status, fund_update.status)

        for key, value in fund_update.model_dump().items():
            setattr(fund, key, value)

        try:
            updated = await self._repo.update(fund)
        except IntegrityError as exc:
            await self._repo.rollback()
            logger.warning("IntegrityError updating fund %s: %s", fund_id, exc)
            raise BusinessRuleViolation(
                "Fund update violates a database constraint. Check all fields."
            )
        logger.info("Updated fund %s (status=%s)", updated.id, updated.status.value)
        return updated

    async def delete_fund(self, user: User, fund_id: UUID) -> None:
        """
        Delete a fund that has nothing attached to it.

        LPs, calls, investments and NAV rows reference the fund with
        ``ON DELETE RESTRICT``; the resulting ``IntegrityError`` becomes a 409.
        """
        permissions.require(permissions.can_delete_fund(user), "delete funds")
        fund = await self._repo.get(fund_id)
        if not fund:
            raise NotFoundException("Fund", fund_id)
        try:
            await self._repo.delete(fund_id)
        except IntegrityError as exc:
            await self._repo.rollback()
            logger.warning("IntegrityError deleting fund %s: %s", fund_id, exc)
            raise ConflictException(
                f"Fund '{fund.name}' still has limited partners, capital calls, "
                f"investments or NAV history and cannot be deleted"
            )
        logger.info("Deleted fund %s (%s)", fund_id, fund.name)


# ── Status transition rules ──

_LIFECYCLE: List[FundStatus] = [
    FundStatus.RAISING,
    FundStatus.INVESTING,
    FundStatus.FULLY_INVESTED,
    FundStatus.HARVESTING,
    FundStatus.CLOSED,
]


def _validate_status_transition(current: FundStatus, requested: FundStatus) -> None:
    """
    Enforce one-way fund lifecycle transitions.

    A fund may stay where it is or move to any later stage; moving backwards
    (e.g. CLOSED → RAISING) raises a :class:`BusinessRuleViolation`.
    """
    if _LIFECYCLE.index(requested) < _LIFECYCLE.index(current):
        raise BusinessRuleViolation(
            f"Invalid status transition: '{current.value}' → '{requested.value}'. "
            f"Fund lifecycle is {' → '.join(s.value for s in _LIFECYCLE)} (one-way)."
        )
