"""
Limited partner service.

LPs are managed through the fund they belong to: reading an LP needs read
access to its fund, changing one needs mutate access.  Once an LP has been
included in a capital call its commitment is frozen, because every expected
amount and statement total is derived from it.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from backoffice.core import permissions
from backoffice.core.exceptions import BusinessRuleViolation, NotFoundException
from backoffice.models.limited_partner import LimitedPartner, LPType
from backoffice.models.user import User
from backoffice.repositories.fund_repo import FundRepository
from backoffice.repositories.lp_repo import LimitedPartnerRepository
from backoffice.schemas.limited_partner import LimitedPartnerCreate, LimitedPartnerUpdate
from backoffice.services import accounting
from backoffice.services.fund_service import get_mutable_fund, get_visible_fund

logger = logging.getLogger(__name__)


class LimitedPartnerService:
    """CRUD + business rules for :class:`LimitedPartner`."""

    def __init__(self, lp_repo: LimitedPartnerRepository, fund_repo: FundRepository):
        self._repo = lp_repo
        self._fund_repo = fund_repo

    # ── Queries ──

    async def list_lps(
        self,
        user: User,
        fund_id: Optional[UUID] = None,
        lp_type: Optional[LPType] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[LimitedPartner]:
        if fund_id is not None:
            await get_visible_fund(self._fund_repo, user, fund_id)
        else:
            permissions.require(
                permissions.visible_owner_filter(user) is None,
                "list limited partners across funds",
            )
        return await self._repo.list_lps(fund_id=fund_id, lp_type=lp_type, skip=skip, limit=limit)

    async def get_lp(self, user: User, lp_id: UUID) -> LimitedPartner:
        lp = await self._repo.get(lp_id)
        if not lp:
            raise NotFoundException("LimitedPartner", lp_id)
        await get_visible_fund(self._fund_repo, user, lp.fund_id)
        return lp

    # ── Commands ──

    async def create_lp(
        self, user: User, fund_id: UUID, lp_in: LimitedPartnerCreate
    ) -> LimitedPartner:
        """Admit an LP to a fund.  Existing capital calls are not extended to it."""
        fund = await get_mutable_fund(self._fund_repo, user, fund_id, "add limited partners")
        lp = LimitedPartner(
            fund_id=fund.id,
            name=lp_in.name,
            email=str(lp_in.email).lower() if lp_in.email else None,
            phone=lp_in.phone,
            lp_type=lp_in.lp_type,
            commitment=accounting.quantize_money(lp_in.commitment),
        )
        try:
            created = await self._repo.create(lp)
        except IntegrityError as exc:
            await self._repo.rollback()
            logger.warning("IntegrityError creating LP in fund %s: %s", fund.id, exc)
            raise BusinessRuleViolation(
                "Limited partner data violates a database constraint. Check all fields."
            )
        logger.info(
            "Added LP %s (%s) to fund %s with commitment %s",
            created.id,
            created.name,
            fund.id,
            created.commitment,
            extra={"fund_id": str(fund.id), "lp_id": str(created.id)},
        )
        return created

    async def update_lp(
        self, user: User, lp_id: UUID, lp_update: LimitedPartnerUpdate
    ) -> LimitedPartner:
        """
        Partial update.  Changing ``commitment`` after the LP has received a
        capital call raises :class:`BusinessRuleViolation`.
        """
        lp = await self._repo.get(lp_id)
        if not lp:
            raise NotFoundException("LimitedPartner", lp_id)
        await get_mutable_fund(self._fund_repo, user, lp.fund_id, "update limited partners")

        changes = lp_update.model_dump(exclude_unset=True)
        if "commitment" in changes:
            commitment = changes["commitment"]
            if commitment is None:
                raise BusinessRuleViolation("commitment cannot be cleared")
            commitment = accounting.quantize_money(commitment)
            if commitment != lp.commitment and await self._repo.response_count(lp.id):
                raise BusinessRuleViolation(
                    f"Commitment of '{lp.name}' is frozen: the LP has already been "
                    f"included in capital calls",
                    details={"lp_id": str(lp.id), "commitment": str(lp.commitment)},
                )
            changes["commitment"] = commitment
        if changes.get("name") is not None:
            changes["name"] = changes["name"].strip()
        if changes.get("email") is not None:
            changes["email"] = str(changes["email"]).lower()

        for key, value in changes.items():
            setattr(lp, key, value)

        try:
            updated = await self._repo.update(lp)
        except IntegrityError as exc:
            await self._repo.rollback()
            logger.warning("IntegrityError updating LP %s: %s", lp_id, exc)
            raise BusinessRuleViolation(
                "Limited partner update violates a database constraint. Check all fields."
            )
        logger.info("Updated LP %s (%s)", updated.id, ", ".join(sorted(changes)) or "no changes")
        return updated
